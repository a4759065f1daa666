"""Tests for the storage adapter and schema migrations."""

import pytest
from sqlalchemy.dialects.postgresql import asyncpg as pg_asyncpg

from swes_glossary.database import (
    Backend,
    ExecuteResult,
    Storage,
    StorageConnection,
    bind_positional,
)
from swes_glossary.exceptions import StorageConfigurationError

INSERT = "INSERT INTO terms (term, definition) VALUES (?, ?)"


class FakeResult:
    def __init__(self, rows, rowcount):
        self.rows = rows
        self.rowcount = rowcount

    def first(self):
        return self.rows[0] if self.rows else None


class FakeConnection:
    """Records executed SQL and answers with a canned result."""

    def __init__(self, result):
        self.result = result
        self.executed = []

    async def execute(self, statement, params):
        self.executed.append((str(statement), params))
        return self.result


class TestBindPositional:
    def test_numbers_placeholders_in_order(self):
        statement, params = bind_positional(
            "SELECT * FROM terms WHERE id = ? AND term = ?", [3, "Porosity"]
        )

        assert str(statement) == "SELECT * FROM terms WHERE id = :p1 AND term = :p2"
        assert params == {"p1": 3, "p2": "Porosity"}

    def test_question_marks_in_literals_are_kept(self):
        statement, params = bind_positional("SELECT 'why?' AS q, 'it''s ?' AS r, ? AS v", [1])

        assert str(statement) == "SELECT 'why?' AS q, 'it''s ?' AS r, :p1 AS v"
        assert params == {"p1": 1}

    def test_renders_dollar_placeholders_for_postgres(self):
        statement, _ = bind_positional("UPDATE terms SET term = ? WHERE id = ?", ["x", 1])

        compiled = str(statement.compile(dialect=pg_asyncpg.dialect()))

        assert compiled == "UPDATE terms SET term = $1 WHERE id = $2"

    def test_colons_in_literals_are_not_binds(self):
        statement, params = bind_positional(
            "SELECT * FROM terms WHERE formula = 't:half' AND id = ?", [7]
        )

        assert set(statement.compile().params) == {"p1"}
        assert params == {"p1": 7}
        assert str(statement) == "SELECT * FROM terms WHERE formula = 't:half' AND id = :p1"

    def test_count_mismatch_is_rejected(self):
        with pytest.raises(ValueError):
            bind_positional("SELECT * FROM terms WHERE id = ?", [])


class TestStorage:
    @pytest.mark.asyncio
    async def test_execute_insert_reports_generated_id(self, storage):
        first = await storage.execute(INSERT, ["Porosity", "void fraction"])
        second = await storage.execute(INSERT, ["Salinity", "salt content"])

        assert first.affected_rows == 1
        assert first.inserted_id is not None
        assert second.inserted_id > first.inserted_id

    @pytest.mark.asyncio
    async def test_execute_update_reports_affected_rows(self, storage):
        created = await storage.execute(INSERT, ["Porosity", "void fraction"])

        hit = await storage.execute(
            "UPDATE terms SET definition = ? WHERE id = ?", ["pore share", created.inserted_id]
        )
        miss = await storage.execute(
            "UPDATE terms SET definition = ? WHERE id = ?", ["pore share", 9999]
        )

        assert hit == ExecuteResult(inserted_id=None, affected_rows=1)
        assert miss.affected_rows == 0

    @pytest.mark.asyncio
    async def test_fetch_one_returns_none_without_match(self, storage):
        assert await storage.fetch_one("SELECT * FROM terms WHERE id = ?", [42]) is None

    @pytest.mark.asyncio
    async def test_fetch_all_returns_dict_rows(self, storage):
        await storage.execute(INSERT, ["Porosity", "void fraction"])

        rows = await storage.fetch_all("SELECT term, definition FROM terms")

        assert rows == [{"term": "Porosity", "definition": "void fraction"}]

    @pytest.mark.asyncio
    async def test_ids_are_not_reused_after_delete(self, storage):
        first = await storage.execute(INSERT, ["Porosity", "void fraction"])
        await storage.execute("DELETE FROM terms WHERE id = ?", [first.inserted_id])

        second = await storage.execute(INSERT, ["Salinity", "salt content"])

        assert second.inserted_id > first.inserted_id

    @pytest.mark.asyncio
    async def test_transaction_rolls_back_on_error(self, storage):
        with pytest.raises(RuntimeError):
            async with storage.transaction() as tx:
                await tx.execute(INSERT, ["Porosity", "void fraction"])
                raise RuntimeError("abort")

        assert await storage.fetch_all("SELECT * FROM terms") == []

    @pytest.mark.asyncio
    async def test_transaction_commits(self, storage):
        async with storage.transaction() as tx:
            await tx.execute(INSERT, ["Porosity", "void fraction"])
            await tx.execute(INSERT, ["Salinity", "salt content"])

        rows = await storage.fetch_all("SELECT term FROM terms ORDER BY term ASC")
        assert [r["term"] for r in rows] == ["Porosity", "Salinity"]


class TestSchema:
    @pytest.mark.asyncio
    async def test_initialize_schema_is_idempotent(self, storage):
        assert await storage.initialize_schema() == []

    @pytest.mark.asyncio
    async def test_legacy_table_gets_formula_description(self, tmp_path):
        storage = Storage(f"sqlite+aiosqlite:///{tmp_path / 'legacy.db'}", Backend.SQLITE)
        await storage.execute(
            "CREATE TABLE terms (id INTEGER PRIMARY KEY AUTOINCREMENT, term TEXT, "
            "definition TEXT, description TEXT, category TEXT, formula TEXT)"
        )
        await storage.execute(INSERT, ["Porosity", "void fraction"])

        applied = await storage.initialize_schema()
        again = await storage.initialize_schema()
        row = await storage.fetch_one("SELECT term, formula_description FROM terms")
        await storage.dispose()

        assert applied == [1]
        assert again == []
        assert row == {"term": "Porosity", "formula_description": None}


class TestConfigurationErrors:
    @pytest.mark.asyncio
    async def test_unparseable_url_fails_every_call(self):
        storage = Storage("not a database url", Backend.POSTGRES)

        assert storage.init_error is not None
        with pytest.raises(StorageConfigurationError):
            await storage.fetch_all("SELECT 1")
        with pytest.raises(StorageConfigurationError):
            await storage.execute("DELETE FROM terms WHERE id = ?", [1])
        with pytest.raises(StorageConfigurationError):
            await storage.initialize_schema()
        # Nothing to close
        await storage.dispose()

    def test_unknown_driver_is_a_configuration_error(self):
        storage = Storage("postgresql+nosuchdriver://user@localhost/db", Backend.POSTGRES)

        with pytest.raises(StorageConfigurationError):
            storage.engine

    def test_sslmode_is_removed_from_postgres_url(self):
        storage = Storage(
            "postgresql+asyncpg://user:pw@localhost:5432/glossary?sslmode=require",
            Backend.POSTGRES,
        )

        assert storage.init_error is None
        assert "sslmode" not in storage.engine.url.query
        assert storage.backend is Backend.POSTGRES


class TestPostgresExecute:
    @pytest.mark.asyncio
    async def test_insert_returns_id_from_returning_row(self):
        connection = FakeConnection(FakeResult(rows=[(41,)], rowcount=1))
        storage_connection = StorageConnection(connection, Backend.POSTGRES)

        result = await storage_connection.execute(INSERT + ";  ", ["Porosity", "void fraction"])

        sql, params = connection.executed[0]
        assert sql == "INSERT INTO terms (term, definition) VALUES (:p1, :p2) RETURNING id"
        assert params == {"p1": "Porosity", "p2": "void fraction"}
        assert result == ExecuteResult(inserted_id=41, affected_rows=1)

    @pytest.mark.asyncio
    async def test_update_has_no_returning_clause(self):
        connection = FakeConnection(FakeResult(rows=[], rowcount=0))
        storage_connection = StorageConnection(connection, Backend.POSTGRES)

        result = await storage_connection.execute(
            "UPDATE terms SET term = ? WHERE id = ?", ["Salinity", 9]
        )

        sql, _ = connection.executed[0]
        assert "RETURNING" not in sql
        assert result == ExecuteResult(inserted_id=None, affected_rows=0)
