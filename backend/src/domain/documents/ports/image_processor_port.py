"""Image Processor Port - external resize/encode capability used for thumbnails."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ImageProcessorPort(Protocol):

    def create_thumbnail(
        self,
        content: bytes,
        width: int,
        height: int,
        image_format: str,
        quality: int,
    ) -> bytes:
        """Fit the image inside width x height (never enlarging) and encode it.

        Raises any exception on undecodable input; callers treat thumbnail
        failures as non-fatal.
        """
        ...
