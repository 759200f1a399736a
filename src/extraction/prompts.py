# src/extraction/prompts.py — v1
"""Prompt templates for Fusarium and generic-schema extraction."""

from __future__ import annotations

from collections.abc import Mapping

FUSARIUM_PROMPT = """
Extract structured information about Fusarium species on cereal crops under environmental conditions.

Text to analyze:
{text}

Extract the following information:
- fusarium_species: List of Fusarium species mentioned (e.g., ["Fusarium graminearum", "F. culmorum"])
- crop: Cereal crop(s) studied (e.g., ["wheat", "barley"])
- abiotic_factors: Environmental factors studied (e.g., ["temperature", "moisture", "humidity"])
- observed_effects: Effects on crop/disease (e.g., ["yield loss", "toxin production", "disease severity"])
- agronomic_practices: Management strategies mentioned (e.g., ["fungicide application", "crop rotation"])
- modeling: true if the study involves modeling/prediction, false otherwise
- summary: Brief 1-2 sentence summary of the main findings

Return ONLY valid JSON in this exact format:
{{
  "fusarium_species": [],
  "crop": [],
  "abiotic_factors": [],
  "observed_effects": [],
  "agronomic_practices": [],
  "modeling": false,
  "summary": ""
}}

If any field has no information, return an empty array [] or appropriate empty value.
Do not include any text before or after the JSON.
"""


def compose_text(title: str | None = "", abstract: str | None = "", keywords: str | None = "") -> str:
    """Join the non-empty labelled sections of a record."""
    sections = [
        ("Title", title),
        ("Keywords", keywords),
        ("Abstract", abstract),
    ]
    return "\n\n".join(
        f"{label}: {value.strip()}"
        for label, value in sections
        if value and value.strip()
    )


def build_prompt(title: str | None = "", abstract: str | None = "", keywords: str | None = "") -> str:
    return FUSARIUM_PROMPT.format(text=compose_text(title, abstract, keywords))


GENERIC_PROMPT = """
Extract structured information from the following text.

Text:
{text}

Extract:
{fields}

Return ONLY valid JSON. Do not include any text before or after the JSON.
"""


def build_generic_prompt(text: str, schema: Mapping[str, str]) -> str:
    """Prompt asking for each ``{field: description}`` entry of ``schema``."""
    fields = "\n".join(f"- {name}: {description}" for name, description in schema.items())
    return GENERIC_PROMPT.format(text=text, fields=fields)
