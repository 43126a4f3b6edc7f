from datetime import datetime
from typing import Any, ClassVar, Dict, FrozenSet, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

UPDATE_REQUIRES_FIELD = "At least one field must be provided to update."


class CamelModel(BaseModel):
    """Base for every wire schema: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldPatch(CamelModel):
    """
    Partial update for one entity.

    A field that is absent from the payload is left unchanged; a field that is present
    (even as null, where allowed) is applied. Subclasses list their patchable fields
    in ``patch_fields``.
    """
    patch_fields: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def _require_one_field(self):
        if not self.changes():
            raise ValueError(UPDATE_REQUIRES_FIELD)
        return self

    def changes(self) -> Dict[str, Any]:
        """Return the provided fields as a mapping of attribute name to new value."""
        provided = self.patch_fields & self.model_fields_set
        return {name: getattr(self, name) for name in sorted(provided)}


# Categories

class CategoryCreate(CamelModel):
    """Payload for createCategory."""
    name: str = Field(..., min_length=1, description="Category name, e.g. 'Work'.")
    icon: str | None = Field(None, description="Optional emoji or icon.")
    sort_order: float | None = Field(None, description="Optional advisory rank.")


class CategoryUpdate(FieldPatch):
    """Payload for updateCategory; at least one of name, icon, sortOrder is required."""
    patch_fields: ClassVar[FrozenSet[str]] = frozenset({"name", "icon", "sort_order"})

    id: str = Field(..., min_length=1)
    name: str | None = Field(None, min_length=1)
    icon: str | None = None
    sort_order: float | None = None

    @field_validator("name")
    @classmethod
    def _name_not_null(cls, value):
        if value is None:
            raise ValueError("name may not be null")
        return value


class CategoryOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    icon: str | None = None
    sort_order: float | None = None
    created_at: datetime
    updated_at: datetime


# Notes

class NoteCreate(CamelModel):
    """Payload for createNote."""
    category_id: str | None = Field(None, min_length=1, description="Category owned by the caller.")
    title: str | None = None
    body: str = Field(..., min_length=1, description="Main note content (non-empty).")
    color: str | None = Field(None, description="Display color, e.g. '#FFF7C2'.")
    is_pinned: bool = False
    is_archived: bool = False


class NoteUpdate(FieldPatch):
    """
    Payload for updateNote.

    categoryId, title and color may be sent as null to clear them. body, isPinned and
    isArchived may be omitted but not nulled.
    """
    patch_fields: ClassVar[FrozenSet[str]] = frozenset(
        {"category_id", "title", "body", "color", "is_pinned", "is_archived"}
    )

    id: str = Field(..., min_length=1)
    category_id: str | None = Field(None, min_length=1)
    title: str | None = None
    body: str | None = Field(None, min_length=1)
    color: str | None = None
    is_pinned: bool | None = None
    is_archived: bool | None = None

    @field_validator("body", "is_pinned", "is_archived")
    @classmethod
    def _not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{to_camel(info.field_name)} may not be null")
        return value


class NoteRef(CamelModel):
    """Payload for actions addressing a single note (getNote, deleteNote)."""
    id: str = Field(..., min_length=1)


class NoteListQuery(CamelModel):
    """Payload for listNotes; an empty categoryId means no category filter."""
    category_id: str | None = None
    include_archived: bool = False
    pinned_only: bool = False

    @field_validator("category_id", mode="before")
    @classmethod
    def _empty_means_unset(cls, value):
        return value or None


class NoteOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    category_id: str | None = None
    title: str | None = None
    body: str
    color: str | None = None
    is_pinned: bool
    is_archived: bool
    created_at: datetime
    updated_at: datetime


# Response envelopes

class ActionResponse(CamelModel):
    """Envelope returned by every successful action."""
    success: bool = True


class CategoryData(CamelModel):
    category: CategoryOut


class CategoryResponse(ActionResponse):
    data: CategoryData


class CategoryListData(CamelModel):
    items: List[CategoryOut]
    total: int


class CategoryListResponse(ActionResponse):
    data: CategoryListData


class NoteData(CamelModel):
    note: NoteOut


class NoteResponse(ActionResponse):
    data: NoteData


class NoteListData(CamelModel):
    items: List[NoteOut]
    total: int


class NoteListResponse(ActionResponse):
    data: NoteListData


class ErrorBody(CamelModel):
    code: str
    message: str
    issues: List[Dict[str, Any]] | None = None


class ErrorResponse(CamelModel):
    success: bool = False
    error: ErrorBody
