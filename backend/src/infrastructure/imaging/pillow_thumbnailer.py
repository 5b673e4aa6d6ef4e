"""Pillow-backed ImageProcessorPort for document thumbnails"""

from io import BytesIO

from PIL import Image


# Pillow encoder names per configured thumbnail format
_PIL_FORMATS = {
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
}


class PillowThumbnailer:
    """Fits an image inside a bounding box, never enlarging it.

    Example:
        thumbnailer = PillowThumbnailer()
        thumb = thumbnailer.create_thumbnail(photo_bytes, 320, 320, "webp", 80)
    """

    def create_thumbnail(
        self,
        content: bytes,
        width: int,
        height: int,
        image_format: str,
        quality: int,
    ) -> bytes:
        """Resize and re-encode content.

        Raises:
            ValueError: If image_format is not jpeg, png or webp
            PIL.UnidentifiedImageError: If content is not a decodable image
        """
        pil_format = _PIL_FORMATS.get(image_format.lower())
        if pil_format is None:
            raise ValueError(f"Unsupported thumbnail format: {image_format}")

        with Image.open(BytesIO(content)) as image:
            image.load()
            thumbnail = image.copy()

        # thumbnail() keeps aspect ratio and only ever shrinks
        thumbnail.thumbnail((width, height))

        if pil_format == "JPEG" and thumbnail.mode not in ("RGB", "L"):
            thumbnail = thumbnail.convert("RGB")

        output = BytesIO()
        if pil_format == "PNG":
            thumbnail.save(output, format=pil_format, optimize=True)
        else:
            thumbnail.save(output, format=pil_format, quality=quality)
        return output.getvalue()
