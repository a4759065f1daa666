import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from swes_glossary.config import DEFAULT_ADMIN_PASSWORD, Settings, settings
from swes_glossary.database import Storage
from swes_glossary.exceptions import GlossaryError, StorageError
from swes_glossary.routers import admin, home, terms
from swes_glossary.services.term_service import TermService

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """
    Configure the root logger with a console handler and, optionally, a file
    handler under ``settings.log_dir``. Does nothing if already configured.
    """
    if logging.getLogger().handlers:
        return

    # Create a formatter
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(settings.log_level)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    # File handler
    if settings.log_to_file:
        os.makedirs(settings.log_dir, exist_ok=True)
        file_handler = logging.FileHandler(
            os.path.join(settings.log_dir, "swes_glossary.log"), encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Configure root logger
    logging.basicConfig(level=logging.DEBUG, handlers=handlers)


async def seed_database(storage: Storage, seed_file: str) -> None:
    """Seed an empty store; a bad snapshot is logged and startup continues."""
    try:
        seeded = await TermService(storage).seed_if_empty(seed_file)
    except (GlossaryError, SQLAlchemyError, ValueError) as e:
        # ValueError also covers malformed JSON
        logger.critical(f"Seeding from {seed_file} failed: {e}")
        return
    if seeded:
        logger.info(f"Seeded {seeded} terms into the database.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema and seed an empty store on startup, close the pool on shutdown."""
    storage: Storage = app.state.storage
    settings: Settings = app.state.settings
    try:
        await storage.initialize_schema()
    except (StorageError, SQLAlchemyError) as e:
        # Keep serving; requests will report the storage error themselves
        logger.critical(f"Database initialization failed: {e}")
    else:
        if settings.seed_on_startup:
            await seed_database(storage, settings.seed_file)
    yield
    await storage.dispose()


async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(settings: Settings = settings) -> FastAPI:
    """
    Build the FastAPI application for the given settings.

    The storage adapter is constructed once here and shared through
    ``app.state`` with every request handler.
    """
    configure_logging(settings)
    if settings.admin_password == DEFAULT_ADMIN_PASSWORD:
        logger.warning("ADMIN_PASSWORD is not set, using the default password.")

    app = FastAPI(title="SWES Glossary", lifespan=lifespan)
    app.state.settings = settings
    app.state.storage = Storage.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)

    # Include the routers; the frontend catch-all must come last
    app.include_router(terms.router)
    app.include_router(admin.router)
    app.include_router(home.router)
    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run("swes_glossary.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
