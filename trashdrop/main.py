import logging
from dotenv import load_dotenv
from fastapi import FastAPI
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from trashdrop import containers
from trashdrop.config import settings
from trashdrop.core.exception_handlers import install_exception_handlers
from trashdrop.core.logging_middleware import LoggingMiddleware
from trashdrop.logging_config import setup_logging
from trashdrop.routers import (
    bag_router,
    health_router,
    location_router,
    pickup_router,
    point_router,
    report_router,
    reward_router,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    load_dotenv("trashdrop/.env")
    setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)

    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    install_exception_handlers(app)

    @app.get("/")
    def hello() -> dict:
        return {"message": f"{settings.APP_NAME} is running"}

    for router in (
        health_router.router,
        point_router.router,
        reward_router.router,
        location_router.router,
        pickup_router.router,
        bag_router.router,
        report_router.router,
    ):
        app.include_router(router, prefix=settings.API_V1_STR)

    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    return app


app = create_app()

handler = Mangum(app)
