# chatrooms/main.py
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import create_async_engine

from chatrooms.api import chatrooms, live, messages
from chatrooms.config import AppConfig
from chatrooms.domain.errors import (
    AlreadyMemberError,
    ChatroomServiceError,
    DuplicateNameError,
    NotFoundError,
    NotMemberError,
    TransientStoreError,
    ValidationError,
)
from chatrooms.infrastructure.activity import ActivityRecorder
from chatrooms.infrastructure.database import create_database
from chatrooms.infrastructure.delivery_hub import LiveDeliveryHub
from chatrooms.infrastructure.event_dispatcher import EventDispatcher
from chatrooms.infrastructure.event_handlers import EventHandlers
from chatrooms.infrastructure.redis_client import RedisClient
from chatrooms.infrastructure.security import SecurityService
from chatrooms.infrastructure.sequencer import RoomSequencer

ERROR_STATUS_CODES = {
    ValidationError: 400,
    NotMemberError: 403,
    NotFoundError: 404,
    AlreadyMemberError: 409,
    DuplicateNameError: 409,
    TransientStoreError: 500,
}


class Application:
    def __init__(self, config: AppConfig):
        self.config = config
        self.logger = self.setup_logger()
        engine = create_async_engine(config.DATABASE_URL, echo=False)
        self.database = create_database(engine)
        self.redis_client = RedisClient(
            config.REDIS_HOST,
            config.REDIS_PORT,
            self.logger.getChild("redis"),
            enabled=config.REDIS_ENABLED,
        )
        self.event_dispatcher = EventDispatcher(self.logger.getChild("events"))
        self.security_service = SecurityService(config)
        self.event_handlers = EventHandlers(self.redis_client)
        self.delivery_hub = LiveDeliveryHub(
            self.logger.getChild("hub"),
            send_timeout=config.WS_SEND_TIMEOUT_SECONDS,
            outbox_size=config.WS_OUTBOX_SIZE,
        )
        self.sequencer = RoomSequencer()
        self.activity_recorder = ActivityRecorder(self.logger.getChild("activity"))

        # Register event handlers
        self.event_dispatcher.register(
            "MessageCreated", self.event_handlers.publish_message_created
        )
        self.event_dispatcher.register(
            "MemberJoined", self.event_handlers.publish_member_joined
        )

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        await self.database.connect()
        await self.redis_client.connect()
        yield
        await self.delivery_hub.teardown()
        await self.activity_recorder.flush()
        await self.database.disconnect()
        await self.redis_client.disconnect()

    def setup_logger(self):
        logger = logging.getLogger("ChatAPI")
        logger.setLevel(self.config.LOG_LEVEL.upper())

        if not logger.handlers:
            c_handler = logging.StreamHandler(sys.stdout)
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
            c_handler.setFormatter(formatter)
            logger.addHandler(c_handler)

        return logger

    def create_app(self) -> FastAPI:
        app = FastAPI(
            title=self.config.PROJECT_NAME,
            version=self.config.PROJECT_VERSION,
            description=self.config.PROJECT_DESCRIPTION,
            openapi_url=f"{self.config.API_V1_STR}/openapi.json",
            lifespan=self.lifespan,
        )

        app.state.config = self.config
        app.state.security_service = self.security_service
        app.state.event_dispatcher = self.event_dispatcher
        app.state.database = self.database
        app.state.logger = self.logger
        app.state.delivery_hub = self.delivery_hub
        app.state.sequencer = self.sequencer
        app.state.activity_recorder = self.activity_recorder

        app.include_router(
            chatrooms.router,
            prefix=f"{self.config.API_V1_STR}/chatrooms",
            tags=["chatrooms"],
        )
        app.include_router(
            messages.router,
            prefix=f"{self.config.API_V1_STR}/chatrooms",
            tags=["messages"],
        )
        app.include_router(live.router, prefix=self.config.API_V1_STR, tags=["live"])

        @app.exception_handler(ChatroomServiceError)
        async def service_error_handler(request: Request, exc: ChatroomServiceError):
            status_code = ERROR_STATUS_CODES.get(type(exc), 500)
            if status_code >= 500:
                self.logger.error(f"{request.method} {request.url.path}: {exc.message}")
            return JSONResponse(status_code=status_code, content={"detail": exc.message})

        @app.exception_handler(RequestValidationError)
        async def request_validation_handler(
            request: Request, exc: RequestValidationError
        ):
            return JSONResponse(
                status_code=400, content={"detail": jsonable_errors(exc)}
            )

        @app.exception_handler(Exception)
        async def global_exception_handler(request: Request, exc: Exception):
            self.logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return JSONResponse(
                status_code=500,
                content={"detail": f"An unexpected error occurred: {str(exc)}"},
            )

        @app.get("/")
        async def root():
            return {"message": "Welcome to the Chatrooms API"}

        @app.get("/health")
        async def health():
            return {"status": "ok"}

        return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


def create():
    config = AppConfig()
    application = Application(config)
    app = application.create_app()
    application.logger.info("Application created and configured")

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create(), host="127.0.0.1", port=8000)
