import asyncio
from unittest.mock import AsyncMock

import pytest

from fieldmentor.auth import SessionContext
from fieldmentor.errors import AuthError, ParseError, UpstreamError, ValidationError
from fieldmentor.scoring import (
    DIRECT,
    GENEROUS,
    SCORE_ONLY,
    ScoreHandler,
    policy_from_env,
)

SESSION = SessionContext(user_id="user_123", display_name="Asha")
BODY = {"goal": "Print hello world", "code": "print('hello world')"}


def _handle(handler, body=BODY, session=SESSION):
    return asyncio.run(handler.handle(session, body))


def _handler(reply, policy=DIRECT):
    generate = AsyncMock(return_value=reply)
    return ScoreHandler(policy, generate=generate), generate


@pytest.mark.parametrize("body", [BODY, {}, None, "garbage"])
def test_no_session_is_rejected_before_anything_else(body):
    handler, generate = _handler("SCORE: 90")
    with pytest.raises(AuthError):
        _handle(handler, body=body, session=None)
    generate.assert_not_awaited()


@pytest.mark.parametrize(
    "body",
    [
        {"goal": "Print hello world"},
        {"code": "print('hi')"},
        {"goal": "   ", "code": "print('hi')"},
        {"goal": "Print hello world", "code": ""},
        {"goal": 3, "code": "print('hi')"},
        [],
        None,
    ],
)
def test_invalid_payload_never_reaches_provider(body):
    handler, generate = _handler("SCORE: 90")
    with pytest.raises(ValidationError):
        _handle(handler, body=body)
    assert generate.await_count == 0


def test_direct_policy_passes_score_through():
    handler, generate = _handler(
        "SCORE: 87\nCONGRATULATIONS: Nice job!\nADVICE: Add tests."
    )
    result = _handle(handler)
    assert result.score == 87
    assert result.congratulations == "Nice job!"
    assert result.advice == "Add tests."
    generate.assert_awaited_once()
    kwargs = generate.await_args.kwargs
    assert kwargs["temperature"] == DIRECT.temperature
    assert kwargs["max_output_tokens"] == 400


def test_direct_policy_floors_low_scores():
    handler, _ = _handler("SCORE: 3")
    assert _handle(handler).score == 5


def test_generous_policy_remaps_score():
    handler, _ = _handler("SCORE: 60\nCONGRATULATIONS: Ok.\nADVICE: More.", GENEROUS)
    assert _handle(handler).score == 80


def test_score_only_policy_uses_small_budget_and_brief_prompt():
    handler, generate = _handler("SCORE: 42", SCORE_ONLY)
    result = _handle(handler)
    assert result.score == 42
    prompt = generate.await_args.args[0]
    assert "CONGRATULATIONS:" not in prompt
    assert generate.await_args.kwargs["max_output_tokens"] == 10
    assert generate.await_args.kwargs["temperature"] == 0.1


def test_inputs_are_trimmed_before_prompting():
    handler, generate = _handler("SCORE: 90")
    _handle(handler, body={"goal": "  Print hello  ", "code": "\nprint('hello')\n"})
    prompt = generate.await_args.args[0]
    assert "GOAL: Print hello\n" in prompt
    assert "CODE: print('hello')\n" in prompt


def test_user_name_from_body_wins():
    handler, generate = _handler("SCORE: 90")
    result = _handle(handler, body={**BODY, "userName": "Ravi"})
    assert "Ravi" in generate.await_args.args[0]
    assert result.congratulations.startswith("Great work, Ravi!")


def test_user_name_falls_back_to_session_then_default():
    handler, _ = _handler("SCORE: 90")
    assert _handle(handler).congratulations.startswith("Great work, Asha!")

    anonymous = SessionContext(user_id="user_456")
    result = _handle(handler, session=anonymous)
    assert result.congratulations.startswith("Great work, Developer!")


@pytest.mark.parametrize("reply", ["I think it's great", "SCORE: 150"])
def test_bad_replies_raise_parse_error(reply):
    handler, _ = _handler(reply)
    with pytest.raises(ParseError):
        _handle(handler)


def test_provider_errors_propagate_without_retry():
    generate = AsyncMock(side_effect=UpstreamError("Gemini API error (503): down", status=503))
    handler = ScoreHandler(DIRECT, generate=generate)
    with pytest.raises(UpstreamError):
        _handle(handler)
    assert generate.await_count == 1


def test_policy_from_env(monkeypatch):
    monkeypatch.setenv("SCORING_POLICY", "Generous")
    assert policy_from_env() is GENEROUS
    monkeypatch.delenv("SCORING_POLICY")
    assert policy_from_env() is DIRECT
    monkeypatch.setenv("SCORING_POLICY", "lenient")
    with pytest.raises(ValueError):
        policy_from_env()
