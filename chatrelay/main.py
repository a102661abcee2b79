import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import socketio

from chatrelay.core.config import settings
from chatrelay.core.logging import setup_logging
from chatrelay.api.routes import router as api_router
from chatrelay.db.session import create_tables
from chatrelay.socket.events import register_socket_events

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.CREATE_TABLES:
        await create_tables()
    logger.info("Chat relay ready on port %s", settings.PORT)
    yield


# FastAPI app
fastapi_app = FastAPI(title="Chat Relay (FastAPI + Socket.IO)", lifespan=lifespan)

# CORS
origins = settings.cors_origins
fastapi_app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@fastapi_app.exception_handler(SQLAlchemyError)
@fastapi_app.exception_handler(OSError)
async def store_error_handler(request: Request, exc: Exception):
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Server error"})


# REST routes
fastapi_app.include_router(api_router, prefix="/api")

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=origins or "*")
register_socket_events(sio)

# Expose a single ASGI app (Socket.IO wrapping FastAPI)
app = socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
