"""Request tracing middleware.

Every request gets an ``X-Request-ID`` (taken from the caller or generated),
bound to the logging context so service logs can be correlated, and echoed
back on the response. Completion is logged with the status, timing, client
IP and, once the auth dependency has run, the user id.
"""

import time
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)
from libs.common.rate_limit import get_client_ip

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Health checks and tracking beacons fire constantly
QUIET_PATHS = frozenset(
    {"/health", "/api/tracking/click", "/api/tracking/impression"}
)


def _user_id(request: Request) -> Optional[str]:
    user = getattr(request.state, "user", None)
    return getattr(user, "user_id", None)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            path=request.url.path,
            method=request.method,
        )
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request failed",
                extra={
                    "extra_fields": {
                        "client_ip": get_client_ip(request),
                        "user_id": _user_id(request),
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    }
                },
            )
            raise
        else:
            if request.url.path not in QUIET_PATHS or response.status_code >= 500:
                level = "warning" if response.status_code >= 400 else "info"
                getattr(logger, level)(
                    "%s %s -> %s",
                    request.method,
                    request.url.path,
                    response.status_code,
                    extra={
                        "extra_fields": {
                            "status_code": response.status_code,
                            "client_ip": get_client_ip(request),
                            "user_id": _user_id(request),
                            "duration_ms": round(
                                (time.perf_counter() - started) * 1000, 2
                            ),
                        }
                    },
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_request_context()


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install request tracing on ``app``."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
