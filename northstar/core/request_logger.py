import logging
import time
import uuid
from contextvars import ContextVar
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_ctx: ContextVar[str | None] = ContextVar("user_id", default=None)

logger = logging.getLogger("northstar.request")

# Polled by load balancers; not worth an access log line
QUIET_PATHS = {"/api/health"}


class RequestContextFilter(logging.Filter):
    """Stamp request_id/user_id onto every record emitted while a request is handled"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()
        record.user_id = user_id_ctx.get()
        return True


class ContextLoggingMiddleware:
    """
    Binds the gateway's X-Request-ID and X-User-ID to the current context.
    A request without an id gets a fresh one, echoed back in the response.
    """
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        req_id = headers.get("x-request-id") or uuid.uuid4().hex
        request_token = request_id_ctx.set(req_id)
        user_token = user_id_ctx.set(headers.get("x-user-id") or None)

        async def send_with_request_id(message: Message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].append((b"x-request-id", req_id.encode()))
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            request_id_ctx.reset(request_token)
            user_id_ctx.reset(user_token)


class RequestLoggingMiddleware:
    """One access log line per request; server errors are logged as errors."""
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http" or scope["path"] in QUIET_PATHS:
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status_code = 500

        async def capture_status(message: Message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, capture_status)
        finally:
            level = logging.ERROR if status_code >= 500 else logging.INFO
            logger.log(
                level,
                f"{scope['method']} {scope['path']} -> {status_code}",
                extra={
                    "method": scope["method"],
                    "path": scope["path"],
                    "status_code": status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
