from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from swes_glossary.database import Storage, get_storage
from swes_glossary.exceptions import TermNotFoundError, TermValidationError
from swes_glossary.schemas import DeleteResponse, Term, TermDetail, TermPayload
from swes_glossary.security import require_admin
from swes_glossary.services.term_service import TermService

router = APIRouter(prefix="/api", tags=["terms"])


@router.get("/terms", response_model=List[Term])
async def list_terms(
    search: Optional[str] = None,
    category: Optional[str] = None,
    storage: Storage = Depends(get_storage),
) -> List[Term]:
    """
    List glossary terms ordered alphabetically.

    Parameters
    ----------
    search : str, optional
        Case-insensitive text to look for in the term or its definition.
    category : str, optional
        Restrict to one category; ``All`` returns every category.
    storage : Storage, optional
        Storage adapter provided by dependency injection.

    Returns
    -------
    List[Term]
        The matching terms.
    """
    return await TermService(storage).list(search=search, category=category)


@router.get("/categories", response_model=List[str])
async def list_categories(storage: Storage = Depends(get_storage)) -> List[str]:
    """Distinct categories used by the stored terms."""
    return await TermService(storage).categories()


@router.get("/terms/{term_id}", response_model=TermDetail)
async def get_term(term_id: int, storage: Storage = Depends(get_storage)) -> TermDetail:
    """
    Retrieve one term along with the other terms of its category.
    """
    term_service = TermService(storage)
    try:
        term = await term_service.get(term_id)
    except TermNotFoundError as e:
        raise HTTPException(404, str(e))
    related = await term_service.related(term)
    return TermDetail(**term.model_dump(), related=related)


@router.post("/terms", response_model=Term, dependencies=[Depends(require_admin)])
async def create_term(
    payload: TermPayload, storage: Storage = Depends(get_storage)
) -> Term:
    """
    Create a new term.

    Parameters
    ----------
    payload : TermPayload
        The term fields; `term` and `definition` are required.
    storage : Storage, optional
        Storage adapter provided by dependency injection.

    Returns
    -------
    Term
        The created term, including its generated id.
    """
    try:
        return await TermService(storage).create(payload)
    except TermValidationError as e:
        raise HTTPException(400, str(e))


@router.put(
    "/terms/{term_id}", response_model=Term, dependencies=[Depends(require_admin)]
)
async def update_term(
    term_id: int, payload: TermPayload, storage: Storage = Depends(get_storage)
) -> Term:
    """
    Replace every field of an existing term.

    Returns
    -------
    Term
        The term as sent, with its id.
    """
    try:
        return await TermService(storage).update(term_id, payload)
    except TermValidationError as e:
        raise HTTPException(400, str(e))
    except TermNotFoundError:
        raise HTTPException(404, "Term not found")


@router.delete(
    "/terms/{term_id}",
    response_model=DeleteResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_term(
    term_id: int, storage: Storage = Depends(get_storage)
) -> DeleteResponse:
    """
    Delete a term. Deleting an unknown id succeeds with ``affected_count`` 0.
    """
    affected = await TermService(storage).delete(term_id)
    return DeleteResponse(message="Term deleted", affected_count=affected)
