from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from typing import Optional
import logging
import sys
import time
import uvicorn
from app.config import Settings
from app.database import ItemStore
from app.models import ReadResponse, WriteResponse
from app.names import generate_name
from app.region import RegionRouter

logger = logging.getLogger(__name__)

def configure_logging(level: str):
    """Configure root logging from a normalized LOG_LEVEL (see Settings)"""
    # logging has no trace level
    if level == "trace":
        level = "debug"
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(level.upper())

def create_app(settings: Optional[Settings] = None, store=None) -> FastAPI:
    """
    Build the application.
    The router decides the database endpoint once, here; `store` may be
    supplied to bypass PostgreSQL entirely.
    """
    settings = settings or Settings()
    router = RegionRouter(settings)
    if store is None:
        store = ItemStore(
            router.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the item store and create the schema on the primary"""
        # Startup
        logger.info(
            "Starting in region %s (primary %s), using %s database",
            settings.fly_region or "-",
            settings.primary_region or "-",
            "replica" if router.uses_replica else "primary"
        )
        await store.open()
        if not router.uses_replica:
            await store.init_schema()

        yield
        # Shutdown
        await store.close()

    app = FastAPI(title="Multi-Region Items Demo", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.router = router
    app.state.store = store
    router.install(app)

    @app.api_route("/", methods=["GET", "HEAD"])
    async def root():
        """Liveness check"""
        return {"hello": "world"}

    @app.get("/read", response_model=ReadResponse)
    async def read_items(request: Request):
        """Five most recent items, newest first"""
        start = time.perf_counter()
        data = await request.app.state.store.recent_items(limit=5)
        duration = round((time.perf_counter() - start) * 1000, 2)
        logger.debug("Read took: %sms", duration)

        return ReadResponse(duration=duration, data=data, regions=router.regions())

    @app.get("/write", response_model=WriteResponse)
    async def write_item(request: Request):
        """
        Insert an item with a random name.
        On a replica this raises ReplicaWriteRejected, which the region
        router answers with a replay directive.
        """
        start = time.perf_counter()
        data = await request.app.state.store.create_item(generate_name())
        duration = round((time.perf_counter() - start) * 1000, 2)
        logger.debug("Write took: %sms", duration)

        return WriteResponse(duration=duration, data=data, regions=router.regions())

    return app

app = create_app()

def run():
    """Serve the app with uvicorn on HOST:PORT"""
    settings = app.state.settings
    configure_logging(settings.log_level)
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)
    except Exception:
        logger.exception("Server failed")
        sys.exit(1)

if __name__ == "__main__":
    run()
