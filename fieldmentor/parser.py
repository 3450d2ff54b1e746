import logging
import re
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from .errors import ParseError
from .schemas import ParsedResult

logger = logging.getLogger(__name__)

_SCORE_RE = re.compile(r"SCORE:\s*([0-9]+)", re.IGNORECASE)
_CONGRATS_RE = re.compile(
    r"CONGRATULATIONS:(.*?)(?=ADVICE:|$)", re.IGNORECASE | re.DOTALL
)
_ADVICE_RE = re.compile(r"ADVICE:(.*)$", re.IGNORECASE | re.DOTALL)

FALLBACK_CONGRATULATIONS = (
    "Great work, {user_name}! You have put real effort into turning your goal "
    "into working code, and that progress matters."
)
FALLBACK_ADVICE = (
    "Re-read your goal and list the pieces your code does not cover yet. "
    "Tackle the smallest missing piece first and get it working end to end. "
    "Add a quick test or manual check for each piece as you finish it. "
    "Then revisit the goal and repeat until every part is covered."
)


class ResponseParser(Protocol):
    def parse(self, raw_text: str, user_name: str) -> ParsedResult:
        ...


class RegexResponseParser:
    """Pulls ``SCORE:``, ``CONGRATULATIONS:`` and ``ADVICE:`` out of free text.

    The score token is mandatory and must be within 1-100. The two text
    sections are optional and fall back to fixed messages.
    """

    def parse(self, raw_text: str, user_name: str) -> ParsedResult:
        score_match = _SCORE_RE.search(raw_text)
        if not score_match:
            logger.warning("Model reply has no SCORE token: %r", raw_text)
            raise ParseError("Invalid response format from the language model.")

        raw_score = int(score_match.group(1), 10)

        congrats_match = _CONGRATS_RE.search(raw_text)
        congratulations = congrats_match.group(1).strip() if congrats_match else ""
        if not congratulations:
            congratulations = FALLBACK_CONGRATULATIONS.format(user_name=user_name)

        advice_match = _ADVICE_RE.search(raw_text)
        advice = advice_match.group(1).strip() if advice_match else ""
        if not advice:
            advice = FALLBACK_ADVICE

        try:
            return ParsedResult(
                raw_score=raw_score, congratulations=congratulations, advice=advice
            )
        except PydanticValidationError as exc:
            logger.warning("Model reply has out-of-range score: %r", raw_text)
            raise ParseError(
                f"Invalid score received: {raw_score} is outside 1-100."
            ) from exc
