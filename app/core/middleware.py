# app/core/middleware.py
"""Request tracing and access logging"""
import uuid
import time
import logging
from starlette.requests import Request

logger = logging.getLogger(__name__)

QUIET_PATH_PREFIXES = ("/health",)


async def correlation_id_middleware(request: Request, call_next):
    """Tag each request with a correlation id, echoed in X-Correlation-ID"""
    correlation_id = (
        request.headers.get("X-Correlation-ID")
        or request.headers.get("X-Request-ID")
        or uuid.uuid4().hex
    )
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


def _business_scope(request: Request) -> str:
    return request.headers.get("X-Business-ID") or request.query_params.get("businessId") or "-"


async def request_logging_middleware(request: Request, call_next):
    """One log line per request with its business scope and timing"""
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - started) * 1000, 2)

    level = logging.DEBUG if request.url.path.startswith(QUIET_PATH_PREFIXES) else logging.INFO
    logger.log(
        level,
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({duration_ms}ms, business={_business_scope(request)})",
        extra={
            "correlation_id": getattr(request.state, "correlation_id", "unknown"),
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        }
    )
    return response
