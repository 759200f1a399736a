# src/extraction/gemini_extractor.py — v1
"""Gemini-backed extraction functions.

GeminiExtractor is the default ``extract_fn``: one call per document,
output constrained by the ExtractionResult schema and validated at the
boundary. GenericSchemaExtractor extracts against a caller-supplied
``{field: description}`` schema. Unparseable output raises
ExtractionParseError so the document is not cached and stays retryable.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel, ValidationError

from fusextractor.core.errors import ExtractionParseError
from fusextractor.core.models import Document, ExtractionResult
from fusextractor.extraction.prompts import build_generic_prompt, build_prompt, compose_text

if TYPE_CHECKING:
    from fusextractor.config.settings import Settings
    from fusextractor.llm.google_client import GeminiClient
    from fusextractor.retry.executor import BackoffExecutor

logger = logging.getLogger(__name__)

_FENCE_START_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END_RE = re.compile(r"\s*```$")

# Schema keywords understood by the Gemini response_schema field.
_SCHEMA_KEYS = ("type", "items", "properties", "required", "description", "enum")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    cleaned = text.strip()
    cleaned = _FENCE_START_RE.sub("", cleaned)
    cleaned = _FENCE_END_RE.sub("", cleaned)
    return cleaned.strip()


def _project_schema(node: Any) -> Any:
    if not isinstance(node, dict):
        return node
    out: dict[str, Any] = {}
    for key in _SCHEMA_KEYS:
        if key not in node:
            continue
        if key == "properties":
            out[key] = {name: _project_schema(sub) for name, sub in node[key].items()}
        elif key == "items":
            out[key] = _project_schema(node[key])
        else:
            out[key] = node[key]
    return out


def response_schema_for(
    model: type[BaseModel],
    exclude: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Derive a Gemini response schema from a pydantic model.

    Titles and defaults are dropped; every remaining property is required.
    """
    schema = _project_schema(model.model_json_schema())
    properties = {
        name: sub for name, sub in schema.get("properties", {}).items()
        if name not in exclude
    }
    schema["properties"] = properties
    schema["required"] = list(properties)
    return schema


EXTRACTION_RESPONSE_SCHEMA = response_schema_for(ExtractionResult, exclude=("id",))


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse a model response that must be a single JSON object.

    Raises:
        ExtractionParseError: Invalid JSON, or JSON that is not an object.
    """
    cleaned = strip_code_fences(text or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionParseError(
            f"Failed to parse JSON response: {e}", {"raw_response": cleaned[:200]}
        ) from e

    if not isinstance(data, dict):
        raise ExtractionParseError(
            f"Expected a JSON object, got {type(data).__name__}",
            {"raw_response": cleaned[:200]},
        )
    return data


def parse_response(text: str) -> ExtractionResult:
    """Parse a model response into an ExtractionResult.

    Raises:
        ExtractionParseError: Response is not a JSON object of the expected shape.
    """
    data = parse_json_object(text)
    try:
        return ExtractionResult.model_validate(data)
    except ValidationError as e:
        raise ExtractionParseError(f"Response has unexpected shape: {e}") from e


def to_document(document: Any) -> Document:
    if isinstance(document, Document):
        return document
    if isinstance(document, Mapping):
        return Document.model_validate(dict(document))
    return Document.model_validate(document, from_attributes=True)


class GeminiExtractor:
    """Callable ``extract_fn(document) -> ExtractionResult`` backed by Gemini."""

    def __init__(self, client: GeminiClient) -> None:
        self._client = client

    def __call__(self, document: Any) -> ExtractionResult:
        doc = to_document(document)
        prompt = build_prompt(doc.title, doc.abstract, doc.keywords)
        response = self._client.complete(prompt, response_schema=EXTRACTION_RESPONSE_SCHEMA)
        return parse_response(response).with_id(doc.id)


class GenericSchemaExtractor:
    """Extract arbitrary fields described as ``{field: description}``.

    Returns the parsed JSON object restricted to the schema's fields;
    fields the model left out are None. When used as a scheduler
    ``extract_fn`` the mapping is validated into an ExtractionResult, so
    only fields sharing its names are kept there.
    """

    def __init__(self, client: GeminiClient, schema: Mapping[str, str]) -> None:
        if not schema:
            raise ValueError("schema must name at least one field")
        self._client = client
        self._schema = dict(schema)

    @property
    def fields(self) -> list[str]:
        return list(self._schema)

    def extract_text(self, text: str) -> dict[str, Any]:
        response = self._client.complete(build_generic_prompt(text, self._schema))
        data = parse_json_object(response)
        missing = [name for name in self._schema if name not in data]
        if missing:
            logger.debug("Model omitted fields: %s", ", ".join(missing))
        return {name: data.get(name) for name in self._schema}

    def __call__(self, document: Any) -> dict[str, Any]:
        doc = to_document(document)
        return self.extract_text(compose_text(doc.title, doc.abstract, doc.keywords))


def build_extract_fn(
    settings: Settings,
    executor: BackoffExecutor | None = None,
) -> Callable[[Any], ExtractionResult]:
    """Wire the Gemini client and wrap it in exponential-backoff retry."""
    from fusextractor.llm.google_client import GeminiClient
    from fusextractor.retry.executor import BackoffExecutor

    client = GeminiClient(
        model=settings.gemini_model,
        api_key=settings.google_api_key,
        temperature=settings.gemini_temperature,
        max_output_tokens=settings.gemini_max_output_tokens,
    )
    executor = executor or BackoffExecutor(settings.retry_config())
    logger.info(
        "Extraction via %s (max %d attempts per document)",
        client.model_name, executor.config.max_attempts,
    )
    return executor.wrap(GeminiExtractor(client))
