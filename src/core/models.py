# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

Every module imports these types from here.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

# Separator for list fields flattened into text (CSV export, legacy cache entries).
LIST_SEPARATOR = "; "


def _coerce_string_set(value: Any) -> list[str]:
    """Normalize a raw list-ish value into an ordered, de-duplicated string list.

    Accepts None, a flattened string ("a; b"), or any iterable of scalars.
    Blank items are dropped; the first occurrence of a duplicate wins.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items: list[Any] = value.split(LIST_SEPARATOR.strip())
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
    else:
        items = [value]

    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item is None:
            continue
        text = str(item).strip()
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return out


StringSet = Annotated[list[str], BeforeValidator(_coerce_string_set)]


# === INPUT ===


class Document(BaseModel):
    """One bibliographic record submitted for extraction."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    title: str = ""
    abstract: str = ""
    keywords: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> str:
        if v is None:
            raise ValueError("document id is required")
        text = str(v).strip()
        if not text:
            raise ValueError("document id must not be blank")
        return text

    @field_validator("title", "abstract", "keywords", mode="before")
    @classmethod
    def _text_or_empty(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, (list, tuple)):
            return LIST_SEPARATOR.join(str(x) for x in v if x is not None)
        return str(v)


# === OUTPUT ===


class ExtractionResult(BaseModel):
    """Structured fields extracted from one document.

    List fields are semantically sets: order is not significant and
    duplicates are removed at validation time.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = ""
    fusarium_species: StringSet = Field(default_factory=list)
    crop: StringSet = Field(default_factory=list)
    abiotic_factors: StringSet = Field(default_factory=list)
    observed_effects: StringSet = Field(default_factory=list)
    agronomic_practices: StringSet = Field(default_factory=list)
    modeling: bool = False
    summary: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("modeling", mode="before")
    @classmethod
    def _modeling_default(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("summary", mode="before")
    @classmethod
    def _summary_default(cls, v: Any) -> str:
        return "" if v is None else str(v)

    def with_id(self, document_id: str) -> ExtractionResult:
        """Return a copy tagged with the owning document id."""
        return self.model_copy(update={"id": document_id})


LIST_FIELDS: tuple[str, ...] = (
    "fusarium_species",
    "crop",
    "abiotic_factors",
    "observed_effects",
    "agronomic_practices",
)


def get_document_id(document: Any, id_field: str = "id") -> str:
    """Read the identifier of a document given as a mapping or an object."""
    if isinstance(document, Mapping):
        value = document.get(id_field)
    else:
        value = getattr(document, id_field, None)
    if value is None:
        raise KeyError(f"Document has no {id_field!r} field")
    return str(value)
