from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse

from swes_glossary.database import Storage, get_storage
from swes_glossary.schemas import HealthResponse

router = APIRouter()

LANDING_PAGE = """
    <html>
        <head><title>SWES Glossary API</title></head>
        <body style="font-family:Arial, sans-serif;">
            <h1>Soil, Water and Environment Sciences</h1>
            <p><strong>Glossary API</strong>. The frontend build was not found.</p>
            <p>Use <a href="/docs">/docs</a> to explore the API.</p>
            <p><i>Try listing the terms at <code>/api/terms</code></i></p>
        </body>
    </html>
    """


@router.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health(storage: Storage = Depends(get_storage)) -> HealthResponse:
    return HealthResponse(status="ok", db=storage.backend.value)


@router.get("/{full_path:path}", include_in_schema=False, tags=["UI"])
async def frontend(full_path: str, request: Request):
    """
    Serve the built frontend.

    Existing files under the build directory are returned as-is; every other
    path gets ``index.html`` so the client router can handle it.
    """
    if full_path == "api" or full_path.startswith("api/"):
        raise HTTPException(404, "Not Found")

    dist = Path(request.app.state.settings.static_dir).resolve()
    index = dist / "index.html"
    if not index.is_file():
        if full_path == "":
            return HTMLResponse(LANDING_PAGE)
        raise HTTPException(404, "Not Found")

    candidate = (dist / full_path).resolve()
    if full_path and candidate.is_relative_to(dist) and candidate.is_file():
        return FileResponse(candidate)
    return FileResponse(index)
