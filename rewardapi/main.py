import logging
from dotenv import load_dotenv
from fastapi import FastAPI
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from rewardapi import containers
from rewardapi.config import settings
from rewardapi.core.exception_handlers import register_exception_handlers
from rewardapi.core.logging_middleware import LoggingMiddleware
from rewardapi.logging_config import setup_logging
from rewardapi.routers import (
    health_router,
    point_router,
    promocode_router,
    shop_router,
    telegram_router,
    wheel_router,
)
from rewardapi.utils.config import init_logging

load_dotenv("rewardapi/.env")

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router.router)
    app.include_router(point_router.router)
    app.include_router(wheel_router.router)
    app.include_router(shop_router.router)
    app.include_router(promocode_router.router)
    app.include_router(telegram_router.router)
    return app


if settings.ENVIRONMENT == "development":
    setup_logging(settings.LOG_LEVEL, sql_echo=settings.DEBUG)
else:
    # Lambda: JSON 한 줄 로그
    init_logging(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
app = create_app()

handler = Mangum(app)
