"""Request ID propagation for log correlation.

The current request ID lives in a ContextVar so it follows the request
through awaits and into asyncio.to_thread workers.
"""

import re
import uuid
from contextvars import ContextVar, Token
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"
NO_REQUEST_ID = "no-request-id"

# Client-supplied IDs are echoed back, so only accept short, printable tokens
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return str(uuid.uuid4())


def resolve_request_id(header_value: Optional[str]) -> str:
    """Reuse the caller's request ID if well-formed, otherwise mint one."""
    if header_value and _VALID_REQUEST_ID.match(header_value):
        return header_value
    return generate_request_id()


def get_request_id() -> str:
    return request_id_var.get() or NO_REQUEST_ID


def set_request_id(request_id: str) -> Token:
    """Set request ID in current context.

    Returns:
        Token for request_id_var.reset()
    """
    return request_id_var.set(request_id)
