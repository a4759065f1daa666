import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from swes_glossary.database import Storage, get_storage
from swes_glossary.exceptions import TermImportError, TermValidationError
from swes_glossary.schemas import ImportResponse, LoginRequest, LoginResponse
from swes_glossary.security import check_password, require_admin
from swes_glossary.services.term_service import TermService

router = APIRouter(prefix="/api", tags=["admin"])
logger = logging.getLogger(__name__)


@router.post(
    "/import", response_model=ImportResponse, dependencies=[Depends(require_admin)]
)
async def import_terms(
    records: Any = Body(...), storage: Storage = Depends(get_storage)
) -> ImportResponse:
    """
    Bulk-import an array of term records.

    The batch is atomic: either every record is stored or none is.

    Parameters
    ----------
    records : Any
        JSON array of term-like objects.
    storage : Storage, optional
        Storage adapter provided by dependency injection.

    Returns
    -------
    ImportResponse
        How many terms were imported.
    """
    if not isinstance(records, list):
        raise HTTPException(400, "Input must be an array")
    try:
        count = await TermService(storage).bulk_import(records)
    except TermValidationError as e:
        raise HTTPException(400, str(e))
    except TermImportError as e:
        raise HTTPException(500, str(e))
    return ImportResponse(message=f"Imported {count} terms.", imported_count=count)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request, credentials: Optional[LoginRequest] = None
) -> LoginResponse:
    """
    Check the admin password.

    No session is created; the client keeps the password and sends it in the
    admin header on every mutating request.
    """
    logger.info("Login attempt received.")
    password = credentials.password if credentials else None
    if not check_password(password, request.app.state.settings.admin_password):
        logger.info("Login failed: password mismatch.")
        raise HTTPException(401, "Invalid password")
    logger.info("Login successful.")
    return LoginResponse(success=True)
