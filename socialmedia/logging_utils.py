import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from pythonjsonlogger import jsonlogger

from socialmedia.metrics import record_http_request


# Context variable to store request_id for the current request
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Path parameters copied onto every request log record
LOGGED_PATH_PARAMS = ("account_id", "message_id")

# Uvicorn loggers routed through the JSON handler; access logging is ours
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping an ISO-8601 UTC ts, the level name and the request_id."""

    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)
        log_record.setdefault(
            'ts',
            datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
        )
        log_record['level'] = record.levelname
        if request_id_ctx.get() and 'request_id' not in log_record:
            log_record['request_id'] = request_id_ctx.get()


def _json_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter('%(ts)s %(level)s %(name)s %(message)s'))
    return handler


def setup_logging(log_level: str = "INFO"):
    """
    Send all application and Uvicorn logs to stdout as JSON lines.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    handler = _json_handler()

    root = logging.getLogger()
    root.setLevel(log_level.upper())
    root.handlers = [handler]

    for logger_name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False

    # RequestLoggingMiddleware writes the access log
    logging.getLogger("uvicorn.access").disabled = True

    return root


def _route_path(request: Request) -> str:
    """Route template for the request, falling back to the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Emit one "Request completed" JSON record per request and count it.

    Every record carries request_id, method, path, route, status and
    latency_ms, plus account_id / message_id when they appear in the
    route's path. Routes add operation and result (and body ids) through
    log_operation_data.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            elapsed = time.perf_counter() - started
            route_path = _route_path(request)
            if request.url.path != "/metrics":
                record_http_request(request.method, route_path, response.status_code, elapsed)

            log_data = {
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "route": route_path,
                "status": response.status_code,
                "latency_ms": round(elapsed * 1000, 2),
            }
            log_data.update(
                (name, request.path_params[name])
                for name in LOGGED_PATH_PARAMS
                if name in request.path_params
            )
            log_data.update(getattr(request.state, "operation_log_data", {}))

            if response.status_code >= 500:
                level = logging.ERROR
            elif response.status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO
            logging.getLogger("socialmedia.requests").log(level, "Request completed", extra=log_data)

            return response
        finally:
            request_id_ctx.reset(token)


def log_operation_data(request: Request, operation: str, result: str, **fields):
    """
    Attach operation-specific logging data to the request state.
    This data will be included in the request log by the middleware.

    Args:
        request: FastAPI request object
        operation: Operation name (register, login, create_message, ...)
        result: Outcome ("success", "not_found" or an error kind)
        **fields: Extra identifiers such as account_id or message_id; None values are dropped
    """
    operation_data = {"operation": operation, "result": result}
    operation_data.update({key: value for key, value in fields.items() if value is not None})

    request.state.operation_log_data = operation_data
