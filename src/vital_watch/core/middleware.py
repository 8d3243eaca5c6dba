"""
Request logging middleware.

Every request gets an id that is echoed in `X-Request-ID` and used by the
exception handlers, so a client-visible 401 or 502 can be matched to the
internal reason in the logs.
"""
import logging
import time
import uuid
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

# Set up logging
logger = logging.getLogger(__name__)

# Liveness probes would otherwise drown out real traffic
QUIET_PATHS = {"/", "/health"}

def describe_caller(request: Request) -> str:
    """`<role> <id>` once the authorization gate has run, `anonymous` otherwise."""
    role = getattr(request.state, "role", None)
    if role is None:
        return "anonymous"
    return f"{role.value} {request.state.subject_id}"

def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request with its id, caller, status and duration.

    The Authorization header is never logged.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request {request_id} failed: {request.method} {request.url.path} "
                f"- Error: {str(e)} - Duration: {time.perf_counter() - start_time:.4f}s"
            )
            raise

        process_time = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        level = level_for_status(response.status_code)
        if request.url.path in QUIET_PATHS and level == logging.INFO:
            level = logging.DEBUG
        logger.log(
            level,
            f"Request {request_id}: {request.method} {request.url.path} by {describe_caller(request)} "
            f"- Status: {response.status_code} - Duration: {process_time:.4f}s"
        )
        return response


def setup_middlewares(app: FastAPI) -> None:
    """Attach the custom middleware to the application."""
    app.add_middleware(RequestLoggingMiddleware)
