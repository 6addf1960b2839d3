"""sheetsplus/api/routes/sessions.py
###############################################################################
Editing-session endpoints
###############################################################################
Upload → extraction → grid → edits → export, all under ``/v1/sessions``.

Every mutation acquires the session's lock so concurrent requests for one
session are applied in arrival order; different sessions never share state.
Domain errors (`OutOfRangeError`, `SessionNotFoundError`, `EmptyGridError`,
`ExtractionError`) propagate to the global handlers in
:pymod:`sheetsplus.api.errors`.
"""

from __future__ import annotations

import asyncio
from typing import Final

import structlog
from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from sheetsplus.api.schemas import CellEdit, GridReplace, GridView
from sheetsplus.core.config import Settings, get_settings
from sheetsplus.core.logging import bind_session_context
from sheetsplus.export.docx import DOCX_MEDIA_TYPE
from sheetsplus.ingestion.validators import validate_file
from sheetsplus.services.extraction_service import extract_grid
from sheetsplus.sessions.store import SessionStore, get_session_store

__all__: list[str] = [
    "router",
]

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/v1/sessions",
    tags=["sessions"],
    dependencies=[Depends(bind_session_context)],
)

CSV_FILENAME: Final[str] = "exported_data.csv"
DOCX_FILENAME: Final[str] = "exported_data.docx"

FILE_PARAM: UploadFile = File(..., description="Image (JPG, PNG) or PDF to extract")
SETTINGS_DEP: Settings = Depends(get_settings)
STORE_DEP: SessionStore = Depends(get_session_store)


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.post(
    "",
    summary="Upload a document and open an editing session on its table.",
    response_model=GridView,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    file: UploadFile = FILE_PARAM,
    settings: Settings = SETTINGS_DEP,
    store: SessionStore = STORE_DEP,
) -> GridView:
    validate_file(file, settings=settings)
    result = await extract_grid(file, settings)
    session = store.create(
        result.grid, filename=result.filename, content_type=result.content_type
    )
    return GridView.from_session(session)


@router.post(
    "/{session_id}/extraction",
    summary="Run a new extraction, replacing the session grid in full.",
    response_model=GridView,
)
async def replace_extraction(
    session_id: str,
    file: UploadFile = FILE_PARAM,
    settings: Settings = SETTINGS_DEP,
    store: SessionStore = STORE_DEP,
) -> GridView:
    """Clear the grid, extract **file** and store the result.

    The session lock is held for the whole extraction, so edits sent
    meanwhile wait and then apply to the new grid.  A failed extraction
    leaves the grid empty.
    """
    session = store.get(session_id)
    validate_file(file, settings=settings)
    async with session.lock:
        session.editor.set_grid([])
        result = await extract_grid(file, settings)
        session.editor.set_grid(result.grid)
        session.filename = result.filename
        session.content_type = result.content_type
    logger.info(
        "session_grid_replaced", session_id=session_id, filename=result.filename
    )
    return GridView.from_session(session)


@router.get("/{session_id}", response_model=GridView)
async def get_session(session_id: str, store: SessionStore = STORE_DEP) -> GridView:
    return GridView.from_session(store.get(session_id))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, store: SessionStore = STORE_DEP) -> Response:
    store.delete(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{session_id}/grid", response_model=GridView)
async def replace_grid(
    session_id: str, body: GridReplace, store: SessionStore = STORE_DEP
) -> GridView:
    """Replace the grid with client-supplied rows (ragged rows are padded)."""
    session = store.get(session_id)
    async with session.lock:
        session.editor.set_grid(body.rows)
    return GridView.from_session(session)


@router.patch("/{session_id}/cells", response_model=GridView)
async def edit_cell(
    session_id: str, body: CellEdit, store: SessionStore = STORE_DEP
) -> GridView:
    session = store.get(session_id)
    async with session.lock:
        session.editor.edit_cell(body.row, body.col, body.value)
    return GridView.from_session(session)


@router.post("/{session_id}/rows", response_model=GridView)
async def add_row(session_id: str, store: SessionStore = STORE_DEP) -> GridView:
    session = store.get(session_id)
    async with session.lock:
        session.editor.add_row()
    return GridView.from_session(session)


@router.delete("/{session_id}/rows/{index}", response_model=GridView)
async def remove_row(
    session_id: str, index: int, store: SessionStore = STORE_DEP
) -> GridView:
    session = store.get(session_id)
    async with session.lock:
        session.editor.remove_row(index)
    return GridView.from_session(session)


@router.post("/{session_id}/columns", response_model=GridView)
async def add_column(session_id: str, store: SessionStore = STORE_DEP) -> GridView:
    session = store.get(session_id)
    async with session.lock:
        session.editor.add_column()
    return GridView.from_session(session)


@router.delete("/{session_id}/columns/{index}", response_model=GridView)
async def remove_column(
    session_id: str, index: int, store: SessionStore = STORE_DEP
) -> GridView:
    session = store.get(session_id)
    async with session.lock:
        session.editor.remove_column(index)
    return GridView.from_session(session)


@router.get("/{session_id}/export/csv", summary="Download the grid as CSV.")
async def export_csv(session_id: str, store: SessionStore = STORE_DEP) -> Response:
    session = store.get(session_id)
    async with session.lock:
        content = session.editor.to_csv()
    logger.info("export_csv", session_id=session_id, size_bytes=len(content))
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers=_attachment(CSV_FILENAME),
    )


@router.get("/{session_id}/export/docx", summary="Download the grid as a Word table.")
async def export_docx(session_id: str, store: SessionStore = STORE_DEP) -> Response:
    session = store.get(session_id)
    async with session.lock:
        content = await asyncio.to_thread(session.editor.to_tabular_document)
    logger.info("export_docx", session_id=session_id, size_bytes=len(content))
    return Response(
        content=content,
        media_type=DOCX_MEDIA_TYPE,
        headers=_attachment(DOCX_FILENAME),
    )
