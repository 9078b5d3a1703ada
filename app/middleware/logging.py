import logging
import sys
import time
import uuid
from pathlib import Path
from typing import Callable, List, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries whose INFO output drowns out ours
QUIET_LOGGERS = ("uvicorn", "httpx", "httpcore")


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger from settings.

    Logs go to stdout, and also to LOG_FILE when one is configured.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    log_file = log_file or settings.LOG_FILE

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=log_level, format=LOG_FORMAT, handlers=handlers)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger("app")
    logger.setLevel(log_level)
    return logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each request with its outcome and duration.

    A caller-supplied X-Request-ID is reused so that the frontend's and the
    backend's logs can be matched; otherwise one is generated. Either way it
    is echoed back on the response.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = logging.getLogger("app.request")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"

        self.logger.debug(f"Request started: {route} [request_id: {request_id}]")

        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error(
                f"Request failed: {route} [error: {str(e)}] [request_id: {request_id}]",
                exc_info=True
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        log = self.logger.warning if response.status_code >= 500 else self.logger.info
        log(
            f"{route} -> {response.status_code} in {elapsed_ms:.1f}ms "
            f"[client: {request.client.host if request.client else 'unknown'}] "
            f"[request_id: {request_id}]"
        )

        response.headers["X-Request-ID"] = request_id
        return response


def add_logging_middleware(app: FastAPI):
    """Add request logging middleware to the FastAPI app."""
    app.add_middleware(RequestLoggingMiddleware)
