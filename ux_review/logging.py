"""Logging for the review service.

Everything ends up in loguru: routers log through it directly, while the
pipeline and provider modules use stdlib loggers that are intercepted here.
Each request gets a short id so one batch's screen, provider and comment logs
read as a unit.
"""

import logging
import sys
import time
import uuid

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

_LOG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{extra[request_id]} | <level>{message}</level>"
)

# httpx logs full request URLs at INFO, and Gemini carries its key in the query string
_NOISY_LOGGERS = ("httpcore", "httpx", "PIL", "multipart")


class _InterceptHandler(logging.Handler):
    """Redirect stdlib logging records (pipeline modules, httpx) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(log_level: str = "DEBUG", json_logs: bool = False) -> None:
    """Install loguru as the only handler.

    With ``json_logs`` every record is serialized to one JSON line on stderr
    instead of the coloured console format.
    """
    logger.remove()
    logger.configure(extra={"request_id": "-"})
    if json_logs:
        logger.add(sys.stderr, level=log_level.upper(), serialize=True)
    else:
        logger.add(sys.stderr, format=_LOG_FORMAT, level=log_level.upper(), colorize=True)

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag every request with a short id and log its outcome and duration.

    The id is bound via ``logger.contextualize`` for the whole batch, so every
    per-screen line (export, provider call, comment writes) carries it, and it
    is echoed back to the plugin in ``X-Request-ID``.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = uuid.uuid4().hex[:8]
        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        with logger.contextualize(request_id=rid):
            logger.info("{method} {path} from {client_ip}", method=method, path=path, client_ip=client_ip)
            start = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception:
                duration_ms = (time.perf_counter() - start) * 1000
                logger.exception(
                    "{method} {path} -> UNHANDLED ({duration_ms:.0f}ms)",
                    method=method,
                    path=path,
                    duration_ms=duration_ms,
                )
                raise
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "{method} {path} -> {status} ({duration_ms:.0f}ms)",
                method=method,
                path=path,
                status=response.status_code,
                duration_ms=duration_ms,
            )

        response.headers["X-Request-ID"] = rid
        return response
