from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend import ChatBackend
from constants import CORS_ORIGINS, ENABLE_ROOMS, LOG_FILE, LOG_LEVEL
from dispatcher import Dispatcher
from logging_config import get_logger, setup_logging
from routers.chat import chat_router
from routers.rooms import rooms_router

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(enable_rooms: bool = ENABLE_ROOMS) -> FastAPI:
    """Build the application around a fresh, empty ChatBackend.

    The backend lives exactly as long as the app: created here, torn down
    when the lifespan ends.
    """
    chat_backend = ChatBackend(enable_rooms=enable_rooms)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("NeonChat coordinator started")
        yield
        chat_backend.shutdown()

    app = FastAPI(title="NeonChat", lifespan=lifespan)
    app.state.chat_backend = chat_backend
    app.state.dispatcher = Dispatcher(chat_backend)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat_router)
    # A deployment without public rooms only exposes random matchmaking
    if enable_rooms:
        app.include_router(rooms_router)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
