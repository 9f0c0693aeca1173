import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kesinti_radar.config import Settings, settings
from kesinti_radar.database import create_db_engine, create_session_factory, init_db
from kesinti_radar.services.address_book import AddressBook
from kesinti_radar.services.data_source import OutageDataSource, build_data_source
from kesinti_radar.services.key_value_store import KeyValueStore
from kesinti_radar.services.report_log import ReportLog
from kesinti_radar.services.repository import OutageRepository
from kesinti_radar.tasks.scheduler import ReminderScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.reminders.start()
    # Providers load in the background so startup does not wait on the data source
    app.state.initial_load = asyncio.create_task(_initial_load(app.state.repository))
    yield
    app.state.initial_load.cancel()
    await app.state.report_log.drain()
    app.state.reminders.shutdown()
    app.state.engine.dispose()


async def _initial_load(repository: OutageRepository):
    logger.info("Loading providers...")
    if await repository.load_initial_data():
        logger.info("Initial provider load complete")
    else:
        logger.error("Initial provider load failed; use /api/v1/providers/refresh to retry")


def create_app(
    app_settings: Settings | None = None,
    data_source: OutageDataSource | None = None,
) -> FastAPI:
    """Build the API with its services wired explicitly onto ``app.state``."""
    app_settings = app_settings or settings

    engine = create_db_engine(app_settings.database_url)
    init_db(engine)

    repository = OutageRepository(
        data_source or build_data_source(app_settings),
        timeout=app_settings.fetch_timeout_seconds,
        initial_load_retries=app_settings.initial_load_retries,
        retry_backoff_seconds=app_settings.retry_backoff_seconds,
    )

    app = FastAPI(
        title="Kesinti Radar",
        description="Utility outage information for electricity, water, natural gas and internet",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.engine = engine
    app.state.repository = repository
    app.state.address_book = AddressBook(KeyValueStore(create_session_factory(engine)))
    app.state.report_log = ReportLog(repository)
    app.state.reminders = ReminderScheduler(
        lead_minutes=app_settings.reminder_lead_minutes,
        enabled_types=app_settings.reminder_type_list,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from kesinti_radar.routers import addresses, outage, providers, reminders, stats

    app.include_router(providers.router, prefix="/api/v1")
    app.include_router(outage.router, prefix="/api/v1")
    app.include_router(addresses.router, prefix="/api/v1")
    app.include_router(stats.router, prefix="/api/v1")
    app.include_router(reminders.router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok", "data_source": repository.data_source.name}

    return app
