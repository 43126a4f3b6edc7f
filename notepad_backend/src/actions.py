"""
Action handlers for the notepad.

Every handler receives an open Session and the already-resolved owner id, and only ever
touches rows belonging to that owner. Lookups by id always filter on the owner as well, so
a row owned by someone else is reported exactly like a missing one.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from src.errors import NotFound
from src.models import Category, Note
from src.schemas import CategoryCreate, CategoryUpdate, NoteCreate, NoteListQuery, NoteUpdate

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _commit(db: Session, row) -> None:
    try:
        db.commit()
    except Exception:
        logger.exception("Failed committing %s %s", type(row).__name__, row.id)
        db.rollback()
        raise
    db.refresh(row)


# PUBLIC_INTERFACE
def resolve_owned_category(db: Session, category_id: str, user_id: str) -> Category:
    """Fetch a category by id and owner, or raise NotFound."""
    category = (
        db.query(Category)
        .filter(Category.id == category_id, Category.user_id == user_id)
        .one_or_none()
    )
    if category is None:
        logger.debug("Category %s not found for user %s", category_id, user_id)
        raise NotFound("Category not found.")
    return category


# PUBLIC_INTERFACE
def resolve_owned_note(db: Session, note_id: str, user_id: str) -> Note:
    """Fetch a note by id and owner, or raise NotFound."""
    note = db.query(Note).filter(Note.id == note_id, Note.user_id == user_id).one_or_none()
    if note is None:
        logger.debug("Note %s not found for user %s", note_id, user_id)
        raise NotFound("Note not found.")
    return note


# Categories

def create_category(db: Session, user_id: str, payload: CategoryCreate) -> Category:
    now = _now()
    category = Category(
        id=_new_id(),
        user_id=user_id,
        name=payload.name,
        icon=payload.icon,
        sort_order=payload.sort_order,
        created_at=now,
        updated_at=now,
    )
    db.add(category)
    _commit(db, category)
    logger.info("Created category %s for user %s", category.id, user_id)
    return category


def update_category(db: Session, user_id: str, payload: CategoryUpdate) -> Category:
    category = resolve_owned_category(db, payload.id, user_id)

    changes = payload.changes()
    for field, value in changes.items():
        setattr(category, field, value)
    category.updated_at = _now()

    _commit(db, category)
    logger.info("Updated category %s fields=%s", category.id, sorted(changes))
    return category


def list_categories(db: Session, user_id: str) -> List[Category]:
    return (
        db.query(Category)
        .filter(Category.user_id == user_id)
        .order_by(Category.created_at.asc(), Category.id.asc())
        .all()
    )


# Notes

def create_note(db: Session, user_id: str, payload: NoteCreate) -> Note:
    if payload.category_id is not None:
        resolve_owned_category(db, payload.category_id, user_id)

    now = _now()
    note = Note(
        id=_new_id(),
        user_id=user_id,
        category_id=payload.category_id,
        title=payload.title,
        body=payload.body,
        color=payload.color,
        is_pinned=payload.is_pinned,
        is_archived=payload.is_archived,
        created_at=now,
        updated_at=now,
    )
    db.add(note)
    _commit(db, note)
    logger.info("Created note %s for user %s body_len=%s", note.id, user_id, len(payload.body))
    return note


def get_note(db: Session, user_id: str, note_id: str) -> Note:
    return resolve_owned_note(db, note_id, user_id)


def update_note(db: Session, user_id: str, payload: NoteUpdate) -> Note:
    note = resolve_owned_note(db, payload.id, user_id)

    changes = payload.changes()
    # An explicit null clears the category without a lookup.
    if changes.get("category_id") is not None:
        resolve_owned_category(db, changes["category_id"], user_id)

    for field, value in changes.items():
        setattr(note, field, value)
    note.updated_at = _now()

    _commit(db, note)
    logger.info("Updated note %s fields=%s", note.id, sorted(changes))
    return note


def delete_note(db: Session, user_id: str, note_id: str) -> None:
    deleted = (
        db.query(Note)
        .filter(Note.id == note_id, Note.user_id == user_id)
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.rollback()
        raise NotFound("Note not found.")
    db.commit()
    logger.info("Deleted note %s for user %s", note_id, user_id)


def list_notes(db: Session, user_id: str, query: NoteListQuery) -> List[Note]:
    if query.category_id is not None:
        resolve_owned_category(db, query.category_id, user_id)

    filters = [Note.user_id == user_id]
    if query.category_id is not None:
        filters.append(Note.category_id == query.category_id)
    if not query.include_archived:
        filters.append(Note.is_archived.is_(False))
    if query.pinned_only:
        filters.append(Note.is_pinned.is_(True))

    return db.query(Note).filter(*filters).order_by(Note.created_at.asc(), Note.id.asc()).all()
