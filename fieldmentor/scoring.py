import logging
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from .auth import SessionContext, require_session
from .errors import ParseError, ValidationError
from .gemini import generate_text
from .normalizer import Normalization, normalize
from .parser import RegexResponseParser, ResponseParser
from .prompts import DEFAULT_USER_NAME, PromptStyle, build_score_prompt
from .schemas import ScoreRequest, ScoreResponse

logger = logging.getLogger(__name__)

TextGenerator = Callable[..., Awaitable[str]]


@dataclass(frozen=True)
class ScoringPolicy:
    name: str
    prompt_style: PromptStyle
    normalization: Normalization
    temperature: float
    max_output_tokens: int


DIRECT = ScoringPolicy(
    name="direct",
    prompt_style=PromptStyle.FEEDBACK,
    normalization=Normalization.PASS_THROUGH_FLOOR,
    temperature=0.3,
    max_output_tokens=400,
)
GENEROUS = ScoringPolicy(
    name="generous",
    prompt_style=PromptStyle.FEEDBACK,
    normalization=Normalization.GENEROUS_REMAP,
    temperature=0.3,
    max_output_tokens=400,
)
SCORE_ONLY = ScoringPolicy(
    name="score_only",
    prompt_style=PromptStyle.BRIEF,
    normalization=Normalization.PASS_THROUGH_FLOOR,
    temperature=0.1,
    max_output_tokens=10,
)

POLICIES = {policy.name: policy for policy in (DIRECT, GENEROUS, SCORE_ONLY)}


def policy_from_env() -> ScoringPolicy:
    name = os.getenv("SCORING_POLICY", DIRECT.name).strip().lower()
    try:
        return POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown SCORING_POLICY {name!r}; expected one of {sorted(POLICIES)}."
        ) from None


class ScoreHandler:
    """Scores a goal/code pair for an authenticated caller.

    The prompt template, token budget and score normalization all come from
    the ``ScoringPolicy`` given at construction time.
    """

    def __init__(
        self,
        policy: ScoringPolicy,
        generate: TextGenerator = generate_text,
        parser: Optional[ResponseParser] = None,
    ):
        self.policy = policy
        self._generate = generate
        self._parser = parser or RegexResponseParser()

    async def handle(
        self, session: Optional[SessionContext], body: Any
    ) -> ScoreResponse:
        session = require_session(session)
        request = self._validate(body)

        goal = request.goal.strip()
        code = request.code.strip()
        user_name = (
            (request.user_name or "").strip()
            or session.display_name
            or DEFAULT_USER_NAME
        )
        logger.info(
            "Scoring for user %s (goal %d chars, code %d chars, policy=%s)",
            session.user_id,
            len(goal),
            len(code),
            self.policy.name,
        )

        prompt = build_score_prompt(goal, code, user_name, self.policy.prompt_style)
        raw_reply = await self._generate(
            prompt,
            temperature=self.policy.temperature,
            max_output_tokens=self.policy.max_output_tokens,
        )

        parsed = self._parser.parse(raw_reply, user_name)
        try:
            score = normalize(parsed.raw_score, self.policy.normalization)
        except ValueError as exc:
            raise ParseError(str(exc)) from exc

        return ScoreResponse(
            score=score,
            congratulations=parsed.congratulations,
            advice=parsed.advice,
        )

    @staticmethod
    def _validate(body: Any) -> ScoreRequest:
        if not isinstance(body, dict):
            raise ValidationError("Missing goal or code")
        try:
            request = ScoreRequest.model_validate(body)
        except PydanticValidationError as exc:
            raise ValidationError("Invalid goal or code") from exc
        if not (request.goal or "").strip() or not (request.code or "").strip():
            raise ValidationError("Missing goal or code")
        return request
