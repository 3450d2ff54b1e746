import logging
import os
from typing import Optional

import httpx

from .errors import ConfigError, ConnectivityError, UpstreamError

logger = logging.getLogger(__name__)

_GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_URL = (
    f"https://generativelanguage.googleapis.com/v1beta"
    f"/models/{_GEMINI_MODEL}:generateContent"
)
GEMINI_TIMEOUT = float(os.getenv("GEMINI_TIMEOUT", "60"))


def _error_message(response: httpx.Response) -> str:
    """Prefer the provider's own error message over the raw body."""
    try:
        detail = response.json()
        return detail.get("error", {}).get("message") or response.text
    except (ValueError, AttributeError):
        return response.text


def require_api_key() -> str:
    api_key = os.getenv("GEMINI_API_KEY", "")
    if not api_key:
        raise ConfigError("Gemini API key not configured.")
    return api_key


async def generate_text(
    prompt: str,
    *,
    temperature: float,
    max_output_tokens: int,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Send a single text prompt to Gemini and return the first candidate's text.

    Nothing is retried: one failed call is one failed request.
    """
    api_key = require_api_key()

    payload = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens,
            # 2.5 models bill thinking against maxOutputTokens; the score
            # replies are short enough that no thinking is needed.
            "thinkingConfig": {"thinkingBudget": 0},
        },
    }

    logger.info(
        "Calling Gemini (prompt %d chars, maxOutputTokens=%d)",
        len(prompt),
        max_output_tokens,
    )
    try:
        async with httpx.AsyncClient(
            timeout=GEMINI_TIMEOUT, transport=transport
        ) as client:
            response = await client.post(
                GEMINI_URL, params={"key": api_key}, json=payload
            )
    except httpx.RequestError as exc:
        raise ConnectivityError(f"Could not reach Gemini API: {exc}") from exc

    if not response.is_success:
        msg = _error_message(response)
        logger.error("Gemini API error %s: %s", response.status_code, msg)
        raise UpstreamError(
            f"Gemini API error ({response.status_code}): {msg}",
            status=response.status_code,
            body=response.text,
        )

    try:
        data = response.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise UpstreamError(
            f"Unexpected response from Gemini API: {exc!r}",
            status=response.status_code,
            body=response.text,
        ) from exc
