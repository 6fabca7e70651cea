import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from talkmate.api.routes_admin import router as admin_router
from talkmate.api.routes_logs import LOG_FORMAT, log_handler, router as logs_router
from talkmate.api.routes_telegram import router as telegram_router
from talkmate.config import AppConfig, get_config, get_data_dir
from talkmate.integrations.history import history
from talkmate.storage.database import Database
from talkmate.storage.errors import InvalidKey, StorageError

__version__ = "1.0.0"

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    stream=sys.stdout,
)
logging.getLogger().addHandler(log_handler)

logger = logging.getLogger(__name__)


def create_app(
    db: Optional[Database] = None,
    config: Optional[AppConfig] = None,
    start_jobs: bool = True,
) -> FastAPI:
    """Build the API. ``db``/``config`` are created at startup when omitted."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from talkmate.scheduler.runner import start_scheduler, stop_scheduler

        if app.state.config is None:
            app.state.config = get_config()
        cfg = app.state.config
        if app.state.db is None:
            data_dir = get_data_dir()
            app.state.db = Database(
                data_dir / "records", cfg.storage, backups_dir=data_dir / "backups"
            )
        history.max_messages = cfg.telegram.history_turns
        history.ttl = cfg.telegram.history_ttl_seconds

        if start_jobs:
            start_scheduler(app.state.db)
        yield
        if start_jobs:
            stop_scheduler()
        app.state.db.close()

    app = FastAPI(title="TalkMate Backend", version=__version__, lifespan=lifespan)
    app.state.db = db
    app.state.config = config

    @app.exception_handler(InvalidKey)
    async def invalid_key_handler(request: Request, exc: InvalidKey):
        logger.warning("Rejected key on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"detail": "Invalid identifier"}, status_code=400)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"detail": "Storage unavailable"}, status_code=503)

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok", "version": __version__}

    app.include_router(telegram_router)
    app.include_router(admin_router)
    app.include_router(logs_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8765)
