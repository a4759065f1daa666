class GlossaryError(Exception):
    """Base class for all glossary errors."""


class StorageError(GlossaryError):
    """Raised by the storage adapter for failures outside the driver."""


class StorageConfigurationError(StorageError):
    """The database engine could not be set up at start."""


class TermValidationError(GlossaryError):
    """A term payload is missing a required field."""


class TermNotFoundError(GlossaryError):
    """No term exists with the requested id."""

    def __init__(self, term_id: int):
        super().__init__(f"Term {term_id} not found")
        self.term_id = term_id


class TermImportError(GlossaryError):
    """A bulk import failed and was rolled back."""
