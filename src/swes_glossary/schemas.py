from typing import List, Optional
from pydantic import BaseModel, Field


class TermPayload(BaseModel):
    """
    Represents admin input to create or fully replace a term.

    `term` and `definition` are optional here so that missing values reach the
    service and are reported as a 400 rather than a schema error.
    """

    term: Optional[str] = Field(None, description="The glossary term.")
    definition: Optional[str] = Field(None, description="Short definition of the term.")
    description: Optional[str] = Field(
        None, description="Longer free-text explanation."
    )
    category: Optional[str] = Field(
        None, description="Free-form label used for grouping, e.g. 'Soil Physics'."
    )
    formula: Optional[str] = Field(
        None, description="Math markup rendered by the client."
    )
    formula_description: Optional[str] = Field(
        None, description="Legend for the symbols used in the formula."
    )


class Term(TermPayload):
    """
    A stored glossary entry, including its server generated id.
    """

    id: int = Field(..., description="Server generated, immutable identifier.")


class TermDetail(Term):
    """
    A single term together with the other terms of its category.
    """

    related: List[Term] = Field(
        default_factory=list,
        description="Other terms sharing the same category.",
    )


class LoginRequest(BaseModel):
    password: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool


class HealthResponse(BaseModel):
    status: str
    db: str = Field(..., description="Active storage backend: 'sqlite' or 'postgres'.")


class DeleteResponse(BaseModel):
    message: str
    affected_count: int = Field(
        ..., description="Rows removed; 0 when the id did not exist."
    )


class ImportResponse(BaseModel):
    message: str
    imported_count: int
