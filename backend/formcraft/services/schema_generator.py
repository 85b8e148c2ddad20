"""Form schema generation: turn a natural-language description into a schema via LLM."""

import json
import logging
import re
import time
from typing import Any

import httpx
from pydantic import ValidationError

from formcraft.core.config import settings
from formcraft.schemas.form_schema import FormSchema

logger = logging.getLogger(__name__)

SCHEMA_SYSTEM_PROMPT = (
    "You are a form schema generator. Convert natural language form descriptions "
    "into structured JSON form schemas.\n\n"
    "Output ONLY valid JSON in this exact format:\n"
    "{\n"
    '  "title": "Form Title",\n'
    '  "description": "Brief description of the form",\n'
    '  "fields": [\n'
    "    {\n"
    '      "id": "fieldName",\n'
    '      "label": "Field Label",\n'
    '      "type": "text|email|number|textarea|select",\n'
    '      "placeholder": "Optional placeholder text",\n'
    '      "required": true,\n'
    '      "options": [{"value": "opt1", "label": "Option 1"}]\n'
    "    }\n"
    "  ]\n"
    "}\n\n"
    "Rules:\n"
    "- Use camelCase for field id\n"
    "- type must be one of: text, email, number, textarea, select\n"
    '- Include "options" only for select fields (with value and label properties)\n'
    "- Make sensible decisions about required fields\n"
    "- Generate 3-10 fields based on the description\n"
    "- Add helpful placeholder text where appropriate\n"
    "- Output ONLY the JSON, no markdown, no explanation"
)

_CODE_FENCE_OPEN = re.compile(r"^```(?:json)?\n?")
_CODE_FENCE_CLOSE = re.compile(r"\n?```$")


class SchemaGenerationError(Exception):
    """Raised when the schema generator fails or returns unusable content."""


def strip_code_fences(content: str) -> str:
    text = content.strip()
    if text.startswith("```"):
        text = _CODE_FENCE_CLOSE.sub("", _CODE_FENCE_OPEN.sub("", text))
    return text


def normalize_generated_schema(document: Any) -> dict[str, Any]:
    """Assign a schema id if missing and check the document is schema-shaped.

    Malformed output is rejected as a whole, not repaired field by field.
    """
    if not isinstance(document, dict):
        raise SchemaGenerationError("Generated schema is not a JSON object")
    if not document.get("id"):
        document["id"] = f"schema-{int(time.time() * 1000)}"
    try:
        FormSchema.from_document(document)
    except ValidationError as exc:
        raise SchemaGenerationError(f"Generated schema has an invalid shape: {exc.error_count()} error(s)") from exc
    return document


async def generate_form_schema(prompt: str) -> dict[str, Any]:
    """Generate a form schema document from a natural-language prompt.

    Args:
        prompt: Free-text description of the desired form.

    Returns:
        The schema document (title, description, fields, id).

    Raises:
        SchemaGenerationError: On missing configuration, transport/API errors,
            unparseable replies or replies that are not schema-shaped.
    """
    api_key = settings.OPENROUTER_API_KEY
    if not api_key:
        raise SchemaGenerationError("OPENROUTER_API_KEY not configured")

    payload = {
        "model": settings.SCHEMA_MODEL,
        "messages": [
            {"role": "system", "content": SCHEMA_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "temperature": 0.7,
        "max_tokens": 1500,
    }

    try:
        async with httpx.AsyncClient(timeout=settings.SCHEMA_GENERATION_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.SCHEMA_GENERATION_URL,
                json=payload,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error("Schema generation API returned %d: %s", exc.response.status_code, exc.response.text)
        raise SchemaGenerationError(f"Schema generation API error: {exc.response.status_code}") from exc
    except httpx.RequestError as exc:
        logger.error("Schema generation request failed: %s", exc)
        raise SchemaGenerationError(f"Schema generation request failed: {exc}") from exc

    content = None
    try:
        data = response.json()
        content = data["choices"][0]["message"]["content"]
        document = json.loads(strip_code_fences(content))
    except (KeyError, IndexError, json.JSONDecodeError, TypeError, AttributeError, ValueError) as exc:
        logger.error("Failed to parse generated schema: %s (raw: %s)", exc, content)
        raise SchemaGenerationError(f"Failed to parse generated schema: {exc}") from exc

    schema = normalize_generated_schema(document)
    logger.info("Generated schema %s with %d fields", schema["id"], len(schema.get("fields", [])))
    return schema
