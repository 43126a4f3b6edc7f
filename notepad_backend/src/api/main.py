import logging
import os
from typing import Any, Dict, List

from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from src import actions
from src.auth import get_current_user_id, resolve_user_id
from src.db import Base, engine, get_db
from src.errors import ActionError, ValidationFailed
from src.schemas import (
    ActionResponse,
    CategoryCreate,
    CategoryListResponse,
    CategoryOut,
    CategoryResponse,
    CategoryUpdate,
    ErrorResponse,
    NoteCreate,
    NoteListQuery,
    NoteListResponse,
    NoteOut,
    NoteRef,
    NoteResponse,
    NoteUpdate,
)

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Service health and readiness endpoints."},
    {"name": "Categories", "description": "Owner-scoped note categories."},
    {"name": "Notes", "description": "Owner-scoped notes with pins, colors and soft-archive."},
]

app = FastAPI(
    title="Quick Notepad API",
    description="Per-user notes and categories exposed as named actions over a relational store.",
    version="1.0.0",
    openapi_tags=openapi_tags,
)

_error_responses = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
}


def _parse_allowed_origins() -> List[str]:
    """
    Parse comma-separated ALLOWED_ORIGINS from env.

    Falls back to localhost dev origins when not set.
    """
    raw = (os.getenv("ALLOWED_ORIGINS") or "").strip()
    if not raw:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]

    origins = [o.strip() for o in raw.split(",")]
    return [o for o in origins if o]


def _parse_allowed_origin_regex() -> str | None:
    """Return ALLOWED_ORIGIN_REGEX when set; there is no default pattern."""
    raw = (os.getenv("ALLOWED_ORIGIN_REGEX") or "").strip()
    return raw or None


app.add_middleware(
    CORSMiddleware,
    allow_origins=_parse_allowed_origins(),
    allow_origin_regex=_parse_allowed_origin_regex(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(exc: ActionError) -> JSONResponse:
    error: Dict[str, Any] = {"code": exc.code, "message": exc.message}
    issues = getattr(exc, "issues", None)
    if issues:
        error["issues"] = issues
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({"success": False, "error": error}),
    )


@app.exception_handler(ActionError)
async def _action_error_handler(request: Request, exc: ActionError) -> JSONResponse:
    """Render Unauthorized / ValidationFailed / NotFound in the action error envelope."""
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed payloads as BAD_REQUEST rather than FastAPI's default 422."""
    if request.url.path.startswith("/actions/"):
        # Identity is checked before the payload, even when the body never parsed.
        try:
            resolve_user_id(request.headers.get("Authorization"), request.headers.get("X-User-Id"))
        except ActionError as auth_exc:
            return _error_response(auth_exc)

    issues = [
        {"path": [str(p) for p in err.get("loc", ()) if p != "body"], "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    message = issues[0]["message"] if issues else ValidationFailed.default_message
    return _error_response(ValidationFailed(message, issues=issues))


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Return JSON for unexpected errors.

    Keeps clients from seeing non-JSON bodies while the real cause (DB errors, coding
    errors) is logged with its traceback.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(ActionError())


@app.on_event("startup")
def _startup_configure_logging() -> None:
    """Apply LOG_LEVEL to the root logger once the server starts."""
    logging.basicConfig(level=(os.getenv("LOG_LEVEL") or "INFO").upper())


@app.on_event("startup")
def _startup_create_tables() -> None:
    """
    Create database tables if they do not exist.

    Do NOT fail application startup if the DB is unavailable/misconfigured; the service
    should still bind to its port and expose /health/db to report readiness.
    """
    try:
        Base.metadata.create_all(bind=engine)
    except Exception:
        logger.exception("Database initialization failed during startup (tables not created).")


# PUBLIC_INTERFACE
@app.get("/", tags=["Health"], summary="Health check", description="Returns a simple health payload.")
def health_check() -> Dict[str, str]:
    """Health check endpoint used by previews/monitoring."""
    return {"message": "Healthy"}


# PUBLIC_INTERFACE
@app.get(
    "/health/db",
    tags=["Health"],
    summary="Database health check",
    description=(
        "Verifies database connectivity by running a lightweight read-only query (SELECT 1). "
        "Returns status=up when the query succeeds, otherwise status=down with error details."
    ),
)
def health_check_db(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Database readiness endpoint used to verify DB connectivity."""
    try:
        value = db.execute(text("SELECT 1")).scalar_one()
        return {"status": "up", "query": "SELECT 1", "result": int(value)}
    except Exception as exc:
        return {"status": "down", "error": str(exc)}


# Categories

# PUBLIC_INTERFACE
@app.post(
    "/actions/createCategory",
    response_model=CategoryResponse,
    responses=_error_responses,
    tags=["Categories"],
    summary="Create category",
)
def create_category(
    payload: CategoryCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> CategoryResponse:
    """Create a category owned by the caller."""
    category = actions.create_category(db, user_id, payload)
    return CategoryResponse(data={"category": CategoryOut.model_validate(category)})


# PUBLIC_INTERFACE
@app.post(
    "/actions/updateCategory",
    response_model=CategoryResponse,
    responses=_error_responses,
    tags=["Categories"],
    summary="Update category",
    description="Apply the provided fields only; at least one of name, icon, sortOrder is required.",
)
def update_category(
    payload: CategoryUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> CategoryResponse:
    """Partially update one of the caller's categories."""
    category = actions.update_category(db, user_id, payload)
    return CategoryResponse(data={"category": CategoryOut.model_validate(category)})


# PUBLIC_INTERFACE
@app.post(
    "/actions/listCategories",
    response_model=CategoryListResponse,
    responses=_error_responses,
    tags=["Categories"],
    summary="List categories",
    description="Return all of the caller's categories ordered by creation time.",
)
def list_categories(
    payload: Dict[str, Any] | None = Body(default=None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> CategoryListResponse:
    """List the caller's categories."""
    categories = actions.list_categories(db, user_id)
    items = [CategoryOut.model_validate(c) for c in categories]
    return CategoryListResponse(data={"items": items, "total": len(items)})


# Notes

# PUBLIC_INTERFACE
@app.post(
    "/actions/createNote",
    response_model=NoteResponse,
    responses=_error_responses,
    tags=["Notes"],
    summary="Create note",
    description="Create a note; a categoryId must reference one of the caller's categories.",
)
def create_note(
    payload: NoteCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> NoteResponse:
    """Create a note owned by the caller."""
    note = actions.create_note(db, user_id, payload)
    return NoteResponse(data={"note": NoteOut.model_validate(note)})


# PUBLIC_INTERFACE
@app.post(
    "/actions/getNote",
    response_model=NoteResponse,
    responses=_error_responses,
    tags=["Notes"],
    summary="Get note",
)
def get_note(
    payload: NoteRef,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> NoteResponse:
    """Fetch one of the caller's notes by id."""
    note = actions.get_note(db, user_id, payload.id)
    return NoteResponse(data={"note": NoteOut.model_validate(note)})


# PUBLIC_INTERFACE
@app.post(
    "/actions/updateNote",
    response_model=NoteResponse,
    responses=_error_responses,
    tags=["Notes"],
    summary="Update note",
    description=(
        "Apply the provided fields only. categoryId, title and color accept null to clear them; "
        "a non-null categoryId must reference one of the caller's categories."
    ),
)
def update_note(
    payload: NoteUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> NoteResponse:
    """Partially update one of the caller's notes."""
    note = actions.update_note(db, user_id, payload)
    return NoteResponse(data={"note": NoteOut.model_validate(note)})


# PUBLIC_INTERFACE
@app.post(
    "/actions/deleteNote",
    response_model=ActionResponse,
    responses=_error_responses,
    tags=["Notes"],
    summary="Delete note",
)
def delete_note(
    payload: NoteRef,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResponse:
    """Delete one of the caller's notes."""
    actions.delete_note(db, user_id, payload.id)
    return ActionResponse()


# PUBLIC_INTERFACE
@app.post(
    "/actions/listNotes",
    response_model=NoteListResponse,
    responses=_error_responses,
    tags=["Notes"],
    summary="List notes",
    description=(
        "List the caller's notes. Archived notes are hidden unless includeArchived is true; "
        "pinnedOnly restricts to pinned notes; categoryId must be one of the caller's categories."
    ),
)
def list_notes(
    payload: NoteListQuery | None = Body(default=None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> NoteListResponse:
    """List the caller's notes with the given filters."""
    notes = actions.list_notes(db, user_id, payload or NoteListQuery())
    items = [NoteOut.model_validate(n) for n in notes]
    return NoteListResponse(data={"items": items, "total": len(items)})
