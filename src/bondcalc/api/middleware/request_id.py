"""Request correlation IDs.

Every response carries X-Request-Id, and error envelopes repeat it. A
client-supplied ID is echoed only when it is a short token of safe characters;
anything else is replaced so it cannot reach logs or headers verbatim.
"""

import re
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-Id"

_ACCEPTED_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")


def resolve_request_id(incoming: str | None) -> str:
    """Return the caller's ID if it is acceptable, else a fresh uuid4."""
    candidate = (incoming or "").strip()
    if _ACCEPTED_REQUEST_ID.match(candidate):
        return candidate
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Store the resolved ID on request.state.request_id and echo it back."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
