import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import Settings, settings as default_settings
from shared.core.database import Base, SessionLocal, compliance_engine
from shared.core.logging_config import setup_logging
from shared.exception_handler import setup_exception_handlers
from shared.utils.blob_store import BlobStore, LocalBlobStore
from shared.utils.task_runner import TaskRunner

from . import models  # noqa: F401  registers every table on Base
from .crud.imports.import_orchestrator import ImportOrchestrator
from .crud.scheduler.scheduler_service import ComebackScheduler
from .router.businesses import businesses_router
from .router.cases import cases_router
from .router.imports import duplicate_reviews_router, imports_router
from .router.system import notifications_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings = default_settings,
    engine=compliance_engine,
    session_factory=SessionLocal,
    blob_store: BlobStore | None = None,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create all tables
        Base.metadata.create_all(bind=engine)

        task_runner = TaskRunner()
        app.state.task_runner = task_runner
        app.state.import_orchestrator = ImportOrchestrator(
            session_factory=session_factory,
            blob_store=blob_store or LocalBlobStore(settings.UPLOAD_DIR),
            task_runner=task_runner,
            settings=settings,
        )
        scheduler = ComebackScheduler(
            session_factory=session_factory,
            interval_seconds=settings.COMEBACK_SWEEP_INTERVAL_SECONDS,
        )
        app.state.comeback_scheduler = scheduler
        if settings.COMEBACK_SWEEP_ENABLED:
            scheduler.start()

        yield

        await scheduler.stop()
        if task_runner.active_count:
            logger.info("Waiting for %d import job(s) to finish",
                        task_runner.active_count)
        await task_runner.drain()

    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title="Compliance Service API", lifespan=lifespan)

    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    # Include routers
    app.include_router(imports_router.router)
    app.include_router(duplicate_reviews_router.router)
    app.include_router(cases_router.router)
    app.include_router(businesses_router.router)
    app.include_router(notifications_router.router)

    return app


app = create_app()
