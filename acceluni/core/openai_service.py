import json
import logging
from typing import Any

from openai import OpenAI, OpenAIError

from acceluni.core.config import settings
from acceluni.core.errors import UpstreamGenerationError
from acceluni.utils.json_utils import safe_json_loads

logger = logging.getLogger(__name__)

openai_client: OpenAI | None
if settings.OPENAI_API_KEY:
    openai_client = OpenAI(api_key=settings.OPENAI_API_KEY)
    logger.info("✅ OpenAI client configured.")
else:
    openai_client = None
    logger.warning("⚠️ OPENAI_API_KEY missing: generation will use fallback templates.")


def generate_json(
    system_prompt: str,
    user_prompt: str,
    *,
    model: str,
    temperature: float = 0.7,
    max_tokens: int = 3000,
) -> dict[str, Any]:
    """Run a chat completion and return its content parsed as a JSON object.

    Every failure (no client, transport error, empty or non-JSON answer) is
    raised as :class:`UpstreamGenerationError` so callers can degrade to their
    fallback content with a single ``except``.
    """
    if openai_client is None:
        raise UpstreamGenerationError("OpenAI client is not configured")

    logger.info("Calling OpenAI model %s", model)
    try:
        response = openai_client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except OpenAIError as exc:
        raise UpstreamGenerationError(f"OpenAI request failed: {exc}") from exc

    content = response.choices[0].message.content if response.choices else None
    if not content:
        raise UpstreamGenerationError("No response from OpenAI")

    try:
        parsed = safe_json_loads(content)
    except (json.JSONDecodeError, ValueError) as exc:
        logger.error("Could not parse OpenAI answer as JSON: %s", exc)
        raise UpstreamGenerationError("OpenAI answer is not valid JSON") from exc

    if not isinstance(parsed, dict):
        raise UpstreamGenerationError("OpenAI answer is not a JSON object")
    return parsed
