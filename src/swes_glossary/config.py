from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from swes_glossary.database import Backend

DEFAULT_SEED_FILE = str(Path(__file__).parent / "data" / "terms.json")
DEFAULT_ADMIN_PASSWORD = "admin"


class Settings(BaseSettings):
    """
    Configuration settings for the glossary application.

    Attributes
    ----------
    database_url : str, optional
        Connection string for the hosted PostgreSQL database. When unset, the
        embedded SQLite file at ``sqlite_path`` is used instead.
    sqlite_path : str
        Location of the SQLite database file.
    database_ssl : bool
        Require TLS when connecting to PostgreSQL.
    admin_password : str
        Shared secret expected in the ``X-Admin-Password`` header.
    port : int
        Port for the local uvicorn server.
    static_dir : str
        Build output directory of the frontend.
    seed_file : str
        JSON snapshot imported once into an empty store.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Storage
    database_url: Optional[str] = None
    sqlite_path: str = "./swes.db"
    database_ssl: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_echo: bool = False

    # Admin gate
    admin_password: str = DEFAULT_ADMIN_PASSWORD

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    static_dir: str = "dist"
    cors_origins: List[str] = ["*"]

    # Seeding
    seed_file: str = DEFAULT_SEED_FILE
    seed_on_startup: bool = True

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = True

    @property
    def backend(self) -> Backend:
        """The storage backend, chosen once by the presence of ``database_url``."""
        return Backend.POSTGRES if self.database_url else Backend.SQLITE

    @property
    def resolved_database_url(self) -> str:
        if self.backend is Backend.SQLITE:
            return f"sqlite+aiosqlite:///{self.sqlite_path}"
        url = self.database_url
        # Hosted providers hand out libpq style URLs
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url[len(prefix):]
        return url


# Create a global settings instance that can be imported elsewhere.
settings = Settings()
