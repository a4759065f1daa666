import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from swes_glossary.database import Storage
from swes_glossary.exceptions import (
    TermImportError,
    TermNotFoundError,
    TermValidationError,
)
from swes_glossary.schemas import Term, TermPayload
from swes_glossary.utils import is_blank, load_seed_terms

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"

_COLUMNS = "id, term, definition, description, category, formula, formula_description"
_SELECT_TERMS = f"SELECT {_COLUMNS} FROM terms ORDER BY term ASC"
_SELECT_TERM = f"SELECT {_COLUMNS} FROM terms WHERE id = ?"
_COUNT_TERMS = "SELECT COUNT(*) AS count FROM terms"
_INSERT_TERM = (
    "INSERT INTO terms (term, definition, description, category, formula, formula_description) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)
_UPDATE_TERM = (
    "UPDATE terms SET term = ?, definition = ?, description = ?, category = ?, "
    "formula = ?, formula_description = ? WHERE id = ?"
)
_DELETE_TERM = "DELETE FROM terms WHERE id = ?"

_IMPORT_DEFAULTS = ("description", "category", "formula", "formula_description")


class TermService:
    """
    Service class for managing glossary terms.

    This class provides the typed operations exposed by the API (list,
    create, update, delete, bulk import) on top of the storage adapter, and
    enforces required-field validation.

    Attributes
    ----------
    storage : Storage
        Adapter used to reach the configured backend.
    """

    def __init__(self, storage: Storage):
        """
        Initialize the TermService with a storage adapter.

        Parameters
        ----------
        storage : Storage
            Adapter used to reach the configured backend.
        """
        self.storage = storage

    async def list(
        self, search: Optional[str] = None, category: Optional[str] = None
    ) -> List[Term]:
        """
        Return all terms ordered by `term` ascending.

        Parameters
        ----------
        search : str, optional
            Case-insensitive text that must appear in the term or its definition.
        category : str, optional
            Only keep terms of this category. ``"All"`` disables the filter.

        Returns
        -------
        list of Term
            The matching terms, in backend collation order.
        """
        rows = await self.storage.fetch_all(_SELECT_TERMS)
        terms = [Term(**row) for row in rows]

        if search:
            needle = search.lower()
            terms = [
                t
                for t in terms
                if needle in (t.term or "").lower()
                or needle in (t.definition or "").lower()
            ]
        if category and category != ALL_CATEGORIES:
            terms = [t for t in terms if t.category == category]
        return terms

    async def get(self, term_id: int) -> Term:
        """
        Retrieve a single term by id.

        Raises
        ------
        TermNotFoundError
            If no row has this id.
        """
        row = await self.storage.fetch_one(_SELECT_TERM, [term_id])
        if row is None:
            raise TermNotFoundError(term_id)
        return Term(**row)

    async def related(self, term: Term) -> List[Term]:
        """
        Other terms in the same category as `term`.

        Terms without a category have no related terms.
        """
        if is_blank(term.category):
            return []
        return [
            t
            for t in await self.list(category=term.category)
            if t.id != term.id
        ]

    async def categories(self) -> List[str]:
        """Distinct non-empty categories, in term order."""
        seen = []
        for t in await self.list():
            if t.category and t.category not in seen:
                seen.append(t.category)
        return seen

    async def count(self) -> int:
        row = await self.storage.fetch_one(_COUNT_TERMS)
        return int(row["count"]) if row else 0

    async def create(self, payload: TermPayload) -> Term:
        """
        Validate and insert a new term.

        Returns
        -------
        Term
            The stored term, including its generated id.

        Raises
        ------
        TermValidationError
            If `term` or `definition` is missing or empty.
        """
        self._validate(payload)
        result = await self.storage.execute(_INSERT_TERM, self._values(payload))
        logger.info(f"Created term {result.inserted_id} '{payload.term}'")
        return Term(id=result.inserted_id, **payload.model_dump())

    async def update(self, term_id: int, payload: TermPayload) -> Term:
        """
        Replace every field of an existing term.

        The returned term echoes the payload; it is not re-read from storage.

        Raises
        ------
        TermValidationError
            If `term` or `definition` is missing or empty.
        TermNotFoundError
            If no row has this id.
        """
        self._validate(payload)
        result = await self.storage.execute(
            _UPDATE_TERM, [*self._values(payload), term_id]
        )
        if result.affected_rows == 0:
            raise TermNotFoundError(term_id)
        logger.info(f"Updated term {term_id}")
        return Term(id=term_id, **payload.model_dump())

    async def delete(self, term_id: int) -> int:
        """
        Delete a term.

        Returns
        -------
        int
            Rows removed: 1, or 0 when the id did not exist (not an error).
        """
        result = await self.storage.execute(_DELETE_TERM, [term_id])
        logger.info(f"Deleted term {term_id} ({result.affected_rows} row(s))")
        return result.affected_rows

    async def bulk_import(self, records: Sequence[Any]) -> int:
        """
        Insert a batch of term-like records, all or nothing.

        Every record is validated before anything is written. The inserts
        then share one transaction: if any of them fails, none are kept.
        Field names are matched case-insensitively and missing optional
        fields are stored as empty strings.

        Parameters
        ----------
        records : Sequence
            Term-like mappings.

        Returns
        -------
        int
            Number of terms imported.

        Raises
        ------
        TermValidationError
            If a record is not a valid term; nothing is inserted.
        TermImportError
            If the storage failed; the whole batch was rolled back.
        """
        payloads = []
        for index, record in enumerate(records):
            if isinstance(record, Mapping):
                # Spreadsheet exports capitalise their headers
                record = {str(key).lower(): value for key, value in record.items()}
            try:
                payload = TermPayload.model_validate(record)
            except ValidationError as e:
                raise TermValidationError(f"Record {index} is not a valid term: {e}") from e
            try:
                self._validate(payload)
            except TermValidationError as e:
                raise TermValidationError(f"Record {index}: {e}") from e
            for field in _IMPORT_DEFAULTS:
                if getattr(payload, field) is None:
                    setattr(payload, field, "")
            payloads.append(payload)

        try:
            async with self.storage.transaction() as tx:
                for payload in payloads:
                    await tx.execute(_INSERT_TERM, self._values(payload))
        except SQLAlchemyError as e:
            logger.error(f"Import of {len(payloads)} terms rolled back: {e}")
            raise TermImportError("Failed to import terms") from e

        logger.info(f"Imported {len(payloads)} terms.")
        return len(payloads)

    async def seed_if_empty(self, path: str | Path) -> int:
        """
        Import the bundled JSON snapshot into an empty store.

        Returns
        -------
        int
            Number of terms seeded; 0 when the store already had data.
        """
        if await self.count() > 0:
            return 0
        records = load_seed_terms(path)
        if not records:
            logger.warning(f"Database empty but no seed data found at {path}")
            return 0
        logger.info("Database empty. Seeding from JSON snapshot...")
        return await self.bulk_import(records)

    def _validate(self, payload: TermPayload) -> None:
        if is_blank(payload.term) or is_blank(payload.definition):
            raise TermValidationError("Missing required fields")

    def _values(self, payload: TermPayload) -> List[Any]:
        return [
            payload.term,
            payload.definition,
            payload.description,
            payload.category,
            payload.formula,
            payload.formula_description,
        ]
