# src/extraction/rule_extractor.py — v1
"""Rule-based extraction: regex patterns per ExtractionResult field.

Runs without any model call, so it doubles as an offline baseline for
``compare_methods``. A RuleExtractor instance is a valid scheduler
``extract_fn``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from fusextractor.core.models import LIST_FIELDS, ExtractionResult
from fusextractor.extraction.gemini_extractor import to_document
from fusextractor.extraction.prompts import compose_text

logger = logging.getLogger(__name__)

# Fields a rule may target; "modeling" is True when any pattern matches,
# "summary" takes the first match.
RULE_FIELDS: tuple[str, ...] = (*LIST_FIELDS, "modeling", "summary")

DEFAULT_PATTERNS: dict[str, str] = {
    "fusarium_species": (
        r"\b(?-i:(?:Fusarium|F\.)\s+(?!(?:sp|spp|head|species|wilt|crown|root)\b)[a-z]{4,})\b"
    ),
    "crop": r"\b(?:wheat|barley|maize|corn|oats?|rye|triticale|rice|sorghum)\b",
    "abiotic_factors": (
        r"\b(?:temperature|relative humidity|humidity|moisture|rainfall|precipitation"
        r"|drought|water activity|CO2|wetness duration)\b"
    ),
    "observed_effects": (
        r"\b(?:deoxynivalenol|DON|zearalenone|nivalenol|T-2 toxin|mycotoxins?"
        r"|head blight|disease severity|disease incidence|yield loss)\b"
    ),
    "agronomic_practices": (
        r"\b(?:crop rotation|no-till|tillage|fungicides?|residue management"
        r"|sowing date|irrigation|nitrogen fertili[sz]ation|resistant cultivars?)\b"
    ),
    "modeling": r"\b(?:model(?:l)?ing|predictive models?|forecasting|simulations?)\b",
}


def _compile(pattern: Any, flags: int) -> list[re.Pattern[str]]:
    items = pattern if isinstance(pattern, (list, tuple)) else [pattern]
    return [p if isinstance(p, re.Pattern) else re.compile(p, flags) for p in items]


def _match_text(match: re.Match[str]) -> str:
    # First capture group when the pattern defines one, else the whole match.
    value = match.group(1) if match.re.groups else match.group(0)
    return " ".join((value or "").split())


class RuleExtractor:
    """Callable ``extract_fn(document) -> ExtractionResult`` using regex rules.

    Args:
        patterns: ``{field: pattern}``; a pattern may be a string, a compiled
            regex, or a list of either. Defaults to DEFAULT_PATTERNS.
        flags: Flags used to compile string patterns.
    """

    def __init__(
        self,
        patterns: Mapping[str, Any] | None = None,
        flags: int = re.IGNORECASE,
    ) -> None:
        patterns = DEFAULT_PATTERNS if patterns is None else patterns
        unknown = sorted(set(patterns) - set(RULE_FIELDS))
        if unknown:
            raise ValueError(f"No ExtractionResult field for pattern(s): {', '.join(unknown)}")
        self._rules = {name: _compile(pattern, flags) for name, pattern in patterns.items()}

    @property
    def fields(self) -> list[str]:
        return list(self._rules)

    def extract_text(self, text: str, document_id: str = "") -> ExtractionResult:
        values: dict[str, Any] = {"id": document_id}
        for name, regexes in self._rules.items():
            found = [_match_text(m) for rx in regexes for m in rx.finditer(text)]
            found = [f for f in found if f]
            if name == "modeling":
                values[name] = bool(found)
            elif name == "summary":
                values[name] = found[0] if found else ""
            else:
                values[name] = found
        return ExtractionResult.model_validate(values)

    def __call__(self, document: Any) -> ExtractionResult:
        doc = to_document(document)
        result = self.extract_text(compose_text(doc.title, doc.abstract, doc.keywords), doc.id)
        logger.debug(
            "Rules matched %d values for %s",
            sum(len(getattr(result, f)) for f in LIST_FIELDS), doc.id,
        )
        return result
