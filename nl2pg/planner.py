"""
Plan Generator Module

Asks a language model (OpenAI or Google Gemini) to turn a natural
language request plus the database schema into one JSON query plan.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from .config import ConfigurationError, Provider, get_provider, get_temperature
from .plan import Nl2pgError

logger = logging.getLogger(__name__)


class PlanGenerationError(Nl2pgError):
    """The model reply could not be turned into a plan"""


PLAN_PROMPT = """
You are a PostgreSQL expert. Translate the user's request into a single
database operation described as JSON.

Database Schema (table -> fields -> type):
{schema}

User Request: {prompt}

Respond with ONE JSON object and nothing else, using these keys:
- "operation": one of "select", "insert", "update", "delete"
- "table": the table name exactly as it appears in the schema
- "fields": (select only) list of column names, omit for all columns
- "where": (select, update, delete) SQL predicate text, e.g. "id = 1"
- "values": (insert, update) object mapping column name to value

Rules:
1. Use only tables and columns from the schema
2. update and delete MUST include a "where" predicate
3. Do not use joins, subqueries or more than one table
4. Do not wrap the JSON in markdown
"""


# Lazy imports - only import a provider SDK when it is used
def _get_openai_client(api_key: str):
    from openai import AsyncOpenAI
    return AsyncOpenAI(api_key=api_key)


def _get_gemini_model(api_key: str, model: str):
    import google.generativeai as genai
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(model)


def build_prompt(prompt: str, schema: Dict[str, Any]) -> str:
    return PLAN_PROMPT.format(schema=json.dumps(schema, indent=2), prompt=prompt)


def extract_plan(text: str) -> Dict[str, Any]:
    """
    Parse the JSON plan out of a model reply.

    Markdown code fences are stripped; if the reply still is not valid
    JSON, the outermost {...} block is tried.
    """
    if not text or not text.strip():
        raise PlanGenerationError("Model returned an empty response")

    cleaned = re.sub(r"^```(?:json)?\s*|\s*```$", "", text.strip(), flags=re.IGNORECASE)
    try:
        plan = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise PlanGenerationError(f"No JSON object in model response: {text[:200]!r}")
        try:
            plan = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            raise PlanGenerationError(f"Invalid JSON in model response: {e}") from e

    if not isinstance(plan, dict):
        raise PlanGenerationError(f"Expected a JSON object, got {type(plan).__name__}")
    return plan


async def _complete_openai(prompt_text: str, model: str, api_key: str) -> str:
    client = _get_openai_client(api_key)
    temperature = get_temperature()

    # Instruct models are only served by the legacy completions endpoint
    if "instruct" in model:
        response = await client.completions.create(
            model=model,
            prompt=prompt_text,
            temperature=temperature,
            max_tokens=500,
        )
        return response.choices[0].text

    response = await client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": prompt_text}],
        temperature=temperature,
        max_tokens=500,
        response_format={"type": "json_object"},
    )
    return response.choices[0].message.content


async def _complete_google(prompt_text: str, model: str, api_key: str) -> str:
    gemini = _get_gemini_model(api_key, model)
    response = await gemini.generate_content_async(
        prompt_text,
        generation_config={"temperature": get_temperature()},
    )
    return response.text


async def generate_postgres_plan(
    prompt: str,
    provider,
    model: str,
    schema: Dict[str, Any],
    api_key: Optional[str],
) -> Dict[str, Any]:
    """
    Generate a query plan for a natural language request.

    Args:
        prompt: The user's request
        provider: "openai" or "google"
        model: Provider model name
        schema: Introspected schema mapping
        api_key: Credential for the provider

    Returns:
        The plan as decoded from the model's JSON reply
    """
    provider = get_provider(provider)
    if not api_key:
        raise ConfigurationError(f"No API key configured for provider '{provider.value}'")

    prompt_text = build_prompt(prompt, schema)
    logger.info("Requesting plan from %s model %s", provider.value, model)

    if provider is Provider.OPENAI:
        reply = await _complete_openai(prompt_text, model, api_key)
    else:
        reply = await _complete_google(prompt_text, model, api_key)

    logger.debug("Model reply: %s", reply)
    return extract_plan(reply)
