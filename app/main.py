import time
import traceback
import uuid
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from app.app_config import get_app_environ_config
from app.realtime.socketio import build_realtime
from app.shared.api.health import router as health_router
from app.shared.api.utils import (
    E_INTERNAL,
    api_failure,
    init_logger,
    validation_exception_handler,
)


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000

            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000

            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            failure = api_failure(
                errcode=E_INTERNAL,
                errmesg=f"Internal server error (request_id: {request_id})",
            )
            return ORJSONResponse(
                status_code=500,
                content=failure.model_dump(),
            )


cfg = get_app_environ_config()
realtime = build_realtime(cfg)


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger(cfg.DEBUG)

    logger.info("Application startup...")

    server.state.classroom = realtime.classroom
    realtime.channel.start()

    logger.info(f"Classroom room={cfg.CLASSROOM_ROOM} kick_grace={cfg.KICK_GRACE_SECONDS}s")

    yield

    logger.info("Application shutdown...")

    await realtime.close()


app = FastAPI(
    version="1.0",
    title="Classroom Live API",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=cfg.API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore

app.include_router(health_router)

# Socket.IO sits in front of FastAPI: Engine.IO needs both long-polling and
# WebSocket upgrades on /socket.io, everything else falls through to FastAPI.
asgi_app = socketio.ASGIApp(realtime.server, other_asgi_app=app, socketio_path="socket.io")


def build_granian_kwargs():
    kwargs = {
        "interface": "asgi",
        "address": cfg.API_HOST,
        "port": cfg.API_PORT,
        # One process holds the authoritative session
        "workers": 1,
        "reload": cfg.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("app.main:asgi_app", **granian_kwargs).serve()
