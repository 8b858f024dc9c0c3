"""Request logging middleware for FastAPI / Starlette applications.

For every request the middleware:
1. Generates a UUID4 correlation id and derives ``logger.with_id(id)``.
2. Stores that Logger on ``request.state.logger`` and binds it with
   ``fieldlog.context.bind`` for the duration of the request.
3. Times the request and writes one ``"handled request"`` info line with
   the request metadata as root fields.

Example:
    app = FastAPI()
    app.add_middleware(LoggerMiddleware, logger=fieldlog.new("api"))

    @app.get("/items/{item_id}")
    async def read_item(item_id: int, request: Request):
        log = from_request(request)
        log.info("reading item", item_id=item_id)
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from fieldlog.context import bind
from fieldlog.default import get_default
from fieldlog.logger import Logger

#: Predicate deciding whether a handler exception is expected noise.
IgnorableErrorFunc = Callable[[Exception], bool]


def _never_ignorable(err: Exception) -> bool:
    return False


def client_ip(request: Request) -> str:
    """Return the client address for a request.

    Behind a proxy chain the last ``X-Forwarded-For`` entry is the address
    seen by our own load balancer, so it is preferred over the socket peer.
    """
    xff = request.headers.get("x-forwarded-for", "")
    if xff:
        return xff.split(",")[-1].strip()
    return request.client.host if request.client else ""


def from_request(request: Request) -> Logger:
    """Return the Logger attached by ``LoggerMiddleware``.

    Falls back to the process default Logger when the middleware did not run
    for this request.
    """
    log = getattr(request.state, "logger", None)
    if isinstance(log, Logger):
        return log
    return get_default()


class LoggerMiddleware(BaseHTTPMiddleware):
    """Attach a request-scoped Logger and log every handled request.

    Handler exceptions:
    - when ``is_ignorable_error(exc)`` is true, a warn line ``"ignored
      error"`` is written with the exception attached and the exception is
      re-raised to the application's error handling;
    - otherwise the request is answered with a 500 and the exception is
      attached to the ``"handled request"`` line.
    """

    def __init__(
        self,
        app: ASGIApp,
        logger: Logger | None = None,
        is_ignorable_error: IgnorableErrorFunc | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: Downstream ASGI application.
            logger: Base Logger every request Logger is derived from. The
                process default Logger (resolved per request) when None.
            is_ignorable_error: Predicate for expected exceptions. By
                default no exception is ignorable.
        """
        super().__init__(app)
        self.logger = logger
        self.is_ignorable_error = is_ignorable_error or _never_ignorable

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Run one request with a request-scoped Logger and log its outcome.

        Args:
            request: Incoming request. ``request.state.logger`` is set to
                the derived Logger before the handler runs.
            call_next: Downstream application.

        Returns:
            The handler's response, or a plain-text 500 response when the
            handler raised an exception that is not ignorable.

        Raises:
            Exception: The handler's exception, re-raised after the
                ``"ignored error"`` warning when it is ignorable.

        Example:
            A request to ``GET /items/7`` produces, after the handler's own
            lines, one line like
            ``{"level":"info","id":"<uuid>","message":"handled request",
            "status_code":200,"method":"GET","route":"/items/{item_id}",...}``.
        """
        start_time = time.perf_counter()

        base = self.logger if self.logger is not None else get_default()
        log = base.with_id(str(uuid.uuid4()))
        request.state.logger = log

        with bind(log):
            try:
                response = await call_next(request)
            except Exception as exc:
                if self.is_ignorable_error(exc):
                    log.with_error(exc).warn("ignored error")
                    raise
                log = log.with_error(exc)
                response = PlainTextResponse("Internal Server Error", status_code=500)

        duration_ms = (time.perf_counter() - start_time) * 1000

        route_obj = request.scope.get("route")
        route = getattr(route_obj, "path", "") if route_obj else ""

        log.with_root(
            {
                "status_code": response.status_code,
                "method": request.method,
                "path": request.url.path,
                "route": route,
                "response_time": duration_ms,
                "referer": request.headers.get("referer", ""),
                "user_agent": request.headers.get("user-agent", ""),
                "ip_address": client_ip(request),
                "trace_id": request.headers.get("x-amzn-trace-id", ""),
            }
        ).info("handled request")

        return response
