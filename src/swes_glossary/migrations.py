"""
Additive schema migrations.

Each migration adds one column. It is applied only when inspection of the
live schema shows the column is missing, so running the list again is a
no-op on both backends.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from sqlalchemy import Connection, Text, inspect, text
from sqlalchemy.types import TypeEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    table: str
    column: str
    type_: TypeEngine


MIGRATIONS: Sequence[Migration] = (
    Migration(
        version=1,
        description="add formula_description to terms",
        table="terms",
        column="formula_description",
        type_=Text(),
    ),
)


def has_column(connection: Connection, table: str, column: str) -> bool:
    # Fresh inspector each time, the default one caches reflected columns
    columns = inspect(connection).get_columns(table)
    return any(c["name"] == column for c in columns)


def apply_migrations(
    connection: Connection, migrations: Sequence[Migration] = MIGRATIONS
) -> List[int]:
    """
    Apply every migration whose column is absent, in version order.

    Parameters
    ----------
    connection : Connection
        A synchronous connection (use ``AsyncConnection.run_sync``).
    migrations : Sequence[Migration], optional
        The migrations to consider, by default :data:`MIGRATIONS`.

    Returns
    -------
    list of int
        Versions actually applied.
    """
    applied = []
    for migration in sorted(migrations, key=lambda m: m.version):
        if has_column(connection, migration.table, migration.column):
            continue
        column_type = migration.type_.compile(dialect=connection.dialect)
        connection.execute(
            text(
                f"ALTER TABLE {migration.table} "
                f"ADD COLUMN {migration.column} {column_type}"
            )
        )
        logger.info(f"Migration {migration.version}: {migration.description}")
        applied.append(migration.version)
    return applied
