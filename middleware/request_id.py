"""
Request ID middleware.

Every log line written while handling a request (a webhook delivery, a
password-setup submission) carries the same id, which is echoed back in the
X-Request-ID response header. An id supplied by the storefront proxy is kept
when it is short and printable; otherwise a fresh uuid4 is used.

The id lives in a context variable, so overlapping requests never see each
other's id; RequestIDFilter (core.logging_config) copies it onto records.
"""

import re
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from core.logging_config import request_id_var

REQUEST_ID_HEADER = "X-Request-ID"
# Ids end up verbatim in JSON logs
_ACCEPTED_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_request_id(supplied: str | None) -> str:
    if supplied and _ACCEPTED_REQUEST_ID.match(supplied):
        return supplied
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        token = request_id_var.set(request_id)
        try:
            response: Response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "no-request-id")
