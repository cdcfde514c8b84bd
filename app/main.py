import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app import config
from app.container import Services, build_services
from app.db.postgres import async_session, init_models
from app.feedback_sessions.router import router as feedback_sessions_router
from app.statistics.router import router as statistics_router
from app.reviews.router import router as reviews_router
from app.employees.router import router as employees_router, positions_router
from app.settings.router import router as settings_router
from app.reports.router import router as reports_router

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.DB_AUTO_CREATE:
        logger.info("Creating database tables")
        await init_models()
    yield


def create_app(services: Services | None = None) -> FastAPI:
    app = FastAPI(title="Pharmacy Feedback Service", lifespan=lifespan)
    app.state.services = services or build_services(async_session)

    app.include_router(feedback_sessions_router)
    app.include_router(statistics_router)
    app.include_router(reviews_router)
    app.include_router(employees_router)
    app.include_router(positions_router)
    app.include_router(settings_router)
    app.include_router(reports_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
