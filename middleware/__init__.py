from middleware.request_id import RequestIDMiddleware, get_request_id, resolve_request_id
from middleware.rate_limiter import limiter, rate_limit_key

__all__ = ["RequestIDMiddleware", "get_request_id", "resolve_request_id", "limiter", "rate_limit_key"]
