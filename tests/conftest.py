import asyncio
import os

# Must be set before any fieldmentor import: modules read env at import time.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["RATE_LIMIT_PER_IP"] = "1000/minute"
os.environ["SCORING_POLICY"] = "direct"
os.environ["GEMINI_API_KEY"] = "test-key"
os.environ["SESSION_JWT_KEY"] = "test-session-secret"
os.environ["SESSION_JWT_ALGORITHMS"] = "HS256"
os.environ.pop("GEMINI_MODEL", None)

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from fieldmentor.database import Base, engine
from fieldmentor.main import app, get_score_handler
from fieldmentor.scoring import DIRECT, ScoreHandler

SESSION_SECRET = "test-session-secret"


def session_token(user_id, name=None, secret=SESSION_SECRET, exp=9999999999):
    claims = {"sub": user_id, "exp": exp}
    if name:
        claims["first_name"] = name
    return jwt.encode(claims, secret, algorithm="HS256")


def auth_headers(user_id="user_123", name="Asha"):
    return {"Authorization": f"Bearer {session_token(user_id, name)}"}


AUTH_HEADERS = auth_headers()

GOOD_REPLY = (
    "SCORE: 87\n"
    "CONGRATULATIONS: Nice job!\n"
    "ADVICE: Add tests."
)


async def _drop_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    asyncio.run(_drop_tables())


@pytest.fixture
def fake_generate():
    return AsyncMock(return_value=GOOD_REPLY)


@pytest.fixture
def score_client(client, fake_generate):
    """A client whose /api/score handler talks to ``fake_generate``."""
    handler = ScoreHandler(DIRECT, generate=fake_generate)
    app.dependency_overrides[get_score_handler] = lambda: handler
    return client
