import logging
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from fastapi import Request
from sqlalchemy import TextClause, make_url, text
from sqlalchemy.exc import ArgumentError, NoSuchModuleError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base

from swes_glossary.exceptions import StorageConfigurationError

logger = logging.getLogger(__name__)

# A quoted SQL literal or a positional placeholder.
_PLACEHOLDER_RE = re.compile(r"'[^']*(?:''[^']*)*'|\?")
_INSERT_RE = re.compile(r"^\s*INSERT\b", re.IGNORECASE)

_SSL_MODES = {"require", "verify-ca", "verify-full"}

# Create a declarative base for the ORM models.
Base = declarative_base()


class Backend(str, Enum):
    SQLITE = "sqlite"
    POSTGRES = "postgres"


@dataclass(frozen=True)
class ExecuteResult:
    """
    Outcome of a mutating statement.

    Attributes
    ----------
    inserted_id : int, optional
        Generated primary key, only set for INSERT statements.
    affected_rows : int
        Number of rows changed; 0 means the target was not found.
    """

    inserted_id: Optional[int]
    affected_rows: int


def bind_positional(query: str, params: Sequence[Any] = ()) -> Tuple[TextClause, Dict[str, Any]]:
    """
    Translate ``?`` placeholders into named bind parameters.

    The driver renders the named binds in its own style (``?`` for SQLite,
    ``$1, $2, ...`` for asyncpg), so callers write a single query for both
    backends. Question marks inside quoted literals are left alone.

    Parameters
    ----------
    query : str
        SQL using positional ``?`` placeholders.
    params : Sequence
        Values for the placeholders, in order.

    Returns
    -------
    tuple of (TextClause, dict)
        The executable statement and its bound values.

    Raises
    ------
    ValueError
        If the number of placeholders and parameters differ.
    """
    names: List[str] = []

    def _replace(match: re.Match) -> str:
        if match.group(0) != "?":
            # Literal text, keep text() from reading ":word" as a bind
            return match.group(0).replace(":", r"\:")
        names.append(f"p{len(names) + 1}")
        return f":{names[-1]}"

    sql = _PLACEHOLDER_RE.sub(_replace, query)
    if len(names) != len(params):
        raise ValueError(
            f"Query has {len(names)} placeholders but {len(params)} parameters were given"
        )
    return text(sql), dict(zip(names, params))


class StorageConnection:
    """
    Query operations bound to a single open connection.

    Used directly inside :meth:`Storage.transaction`; the top-level
    :class:`Storage` methods open a short-lived connection per call and
    delegate here.
    """

    def __init__(self, connection: AsyncConnection, backend: Backend):
        self.connection = connection
        self.backend = backend

    async def fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        statement, bound = bind_positional(query, params)
        result = await self.connection.execute(statement, bound)
        return [dict(row) for row in result.mappings().all()]

    async def fetch_one(self, query: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        statement, bound = bind_positional(query, params)
        result = await self.connection.execute(statement, bound)
        row = result.mappings().first()
        return dict(row) if row is not None else None

    async def execute(self, query: str, params: Sequence[Any] = ()) -> ExecuteResult:
        is_insert = bool(_INSERT_RE.match(query))
        if is_insert and self.backend is Backend.POSTGRES:
            # asyncpg has no lastrowid, ask for the key explicitly
            query = query.rstrip().rstrip(";") + " RETURNING id"

        statement, bound = bind_positional(query, params)
        result = await self.connection.execute(statement, bound)

        inserted_id = None
        if is_insert:
            if self.backend is Backend.POSTGRES:
                row = result.first()
                inserted_id = row[0] if row is not None else None
            else:
                inserted_id = result.lastrowid
        return ExecuteResult(inserted_id=inserted_id, affected_rows=result.rowcount)


class Storage:
    """
    Uniform async query interface over SQLite or PostgreSQL.

    One instance is built at startup from the settings and shared by
    reference; the backend never changes for the lifetime of the process.

    Attributes
    ----------
    backend : Backend
        Which store this adapter talks to.
    init_error : Exception or None
        Set when the engine could not be constructed. Every call then raises
        :class:`StorageConfigurationError`.
    """

    def __init__(
        self,
        database_url: str,
        backend: Backend,
        *,
        ssl: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        self.backend = backend
        self.init_error: Optional[Exception] = None
        self._engine: Optional[AsyncEngine] = None

        try:
            url = make_url(database_url)
            engine_kwargs: Dict[str, Any] = {"echo": echo}
            if backend is Backend.POSTGRES:
                connect_args = {}
                sslmode = url.query.get("sslmode")
                if sslmode is not None:
                    # asyncpg does not understand the libpq sslmode argument
                    url = url.difference_update_query(["sslmode"])
                if ssl or sslmode in _SSL_MODES:
                    connect_args["ssl"] = "require"
                engine_kwargs.update(
                    pool_size=pool_size,
                    max_overflow=max_overflow,
                    connect_args=connect_args,
                )
            self._engine = create_async_engine(url, **engine_kwargs)
        except (ArgumentError, NoSuchModuleError, ImportError) as e:
            logger.critical(f"Failed to initialize {backend.value} engine: {e}")
            self.init_error = e
        else:
            logger.info(f"Using {backend.value} database.")

    @classmethod
    def from_settings(cls, settings) -> "Storage":
        """Build the adapter described by a :class:`~swes_glossary.config.Settings`."""
        return cls(
            settings.resolved_database_url,
            settings.backend,
            ssl=settings.database_ssl,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            echo=settings.db_echo,
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StorageConfigurationError(
                f"Database connection not configured: {self.init_error}"
            )
        return self._engine

    async def fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a read query and return every row as a dict."""
        async with self.engine.connect() as conn:
            return await StorageConnection(conn, self.backend).fetch_all(query, params)

    async def fetch_one(self, query: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        """Run a read query and return the first row, or None when nothing matched."""
        async with self.engine.connect() as conn:
            return await StorageConnection(conn, self.backend).fetch_one(query, params)

    async def execute(self, query: str, params: Sequence[Any] = ()) -> ExecuteResult:
        """Run and commit a mutating statement."""
        async with self.engine.begin() as conn:
            return await StorageConnection(conn, self.backend).execute(query, params)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StorageConnection]:
        """
        Group several statements into one transaction.

        Commits when the block exits normally and rolls back if it raises.
        """
        async with self.engine.begin() as conn:
            yield StorageConnection(conn, self.backend)

    async def initialize_schema(self) -> List[int]:
        """
        Create the ``terms`` table if needed and apply pending migrations.

        Returns
        -------
        list of int
            Versions of the migrations applied by this call.
        """
        # models.py registers its tables on Base, import it before create_all
        from swes_glossary import models  # noqa: F401
        from swes_glossary.migrations import apply_migrations

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            applied = await conn.run_sync(apply_migrations)
        logger.info("Database initialized.")
        return applied

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()


def get_storage(request: Request) -> Storage:
    """
    Dependency to provide the application's storage adapter to endpoints.

    Returns
    -------
    Storage
        The adapter built once by the application factory.
    """
    return request.app.state.storage
