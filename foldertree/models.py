"""Pydantic models that capture folder backend concepts."""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class Category(str, Enum):
    """Domain classification of a folder."""

    PROFESIONAL_INDEPENDIENTE = "profesional_independiente"
    TRANSPORTE_ESCOLAR = "transporte_escolar"
    ENCARGADOR_SEGUROS = "encargador_seguros"


DEFAULT_CATEGORY = Category.PROFESIONAL_INDEPENDIENTE


class FolderRecord(BaseModel):
    """One folder as returned by the backend.

    Accepts the backend's field spellings (``_id``/``id``,
    ``parentFolder`` as an id or as a populated object, ``descripcion``).
    Nested children may arrive under ``subfolders`` or ``subcarpetas``.
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    name: str = Field(..., min_length=1)
    category: str | None = None
    description: str | None = Field(default=None, validation_alias=AliasChoices("description", "descripcion"))
    parent_folder: str | None = Field(default=None, validation_alias=AliasChoices("parentFolder", "parent_folder"))
    files: list[Any] = Field(default_factory=list)
    subfolders: list[Any] = Field(default_factory=list)
    subcarpetas: list[Any] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("parent_folder", mode="before")
    @classmethod
    def _parent_id(cls, value: Any) -> str | None:
        if isinstance(value, Mapping):
            value = value.get("_id", value.get("id"))
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("files", "subfolders", "subcarpetas", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def children(self) -> list[Any]:
        """Nested children, whichever key carries them (first non-empty wins)."""
        return self.subfolders or self.subcarpetas


class NestedFolderSpec(BaseModel):
    """Description of a brand-new folder tree, as sent to create-nested."""

    name: str = Field(..., min_length=1)
    category: Category | None = None
    description: str = ""
    subfolders: list[NestedFolderSpec] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# helpers


def coerce_category(value: Any, default: Category = DEFAULT_CATEGORY) -> Category:
    """Normalize a category value, falling back to ``default`` for unknown ones."""
    if isinstance(value, Category):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        return Category(str(value).strip().lower())
    except ValueError:
        logger.warning("Unknown folder category %r, using %s", value, default.value)
        return default


def coerce_tree_description(value: Any) -> NestedFolderSpec:
    """Normalize supported inputs into a NestedFolderSpec instance."""
    if isinstance(value, NestedFolderSpec):
        return value
    payload: Mapping[str, Any]
    if isinstance(value, Mapping):
        payload = value
    elif isinstance(value, Path):
        payload = _load_text_payload(value.read_text())
    elif isinstance(value, (str, bytes)):
        payload = _load_text_payload(value)
    else:
        raise TypeError("Unsupported value for a folder tree description")
    try:
        return NestedFolderSpec.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid folder tree description: {exc}") from exc


def _load_text_payload(raw: str | bytes) -> dict[str, Any]:
    """Interpret raw text as YAML first, falling back to JSON."""
    text = raw.decode() if isinstance(raw, bytes) else raw
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError:
        return json.loads(text)


__all__ = [
    "Category",
    "DEFAULT_CATEGORY",
    "FolderRecord",
    "NestedFolderSpec",
    "coerce_category",
    "coerce_tree_description",
]
