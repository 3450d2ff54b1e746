import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

logger = logging.getLogger(__name__)

from dotenv import load_dotenv
load_dotenv()

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import select
from starlette.exceptions import HTTPException as StarletteHTTPException

from .assistant import (
    answer_question,
    connection_error_message,
    diagnose_image,
    image_failure_message,
)
from .auth import SessionContext, get_session, require_session
from .database import Base, SessionLocal, engine
from .errors import ConfigError, FieldMentorError, ValidationError
from .models import UserInput
from .schemas import (
    ChatRequest,
    ChatResponse,
    LatestInputs,
    SaveRequest,
    SaveResponse,
    ScoreResponse,
    UserInputOut,
)
from .scoring import ScoreHandler, policy_from_env

MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10 MB

# --- Rate limiting ---
RATE_LIMIT_PER_IP = os.getenv("RATE_LIMIT_PER_IP", "30/minute")

limiter = Limiter(key_func=get_remote_address)

score_handler = ScoreHandler(policy_from_env())


def get_score_handler() -> ScoreHandler:
    return score_handler


async def _read_json(request: Request):
    try:
        return await request.json()
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON.") from exc


async def _latest_content(user_id: str, prompt_type: str) -> Optional[str]:
    async with SessionLocal() as session:
        return await session.scalar(
            select(UserInput.content)
            .where(UserInput.user_id == user_id, UserInput.prompt_type == prompt_type)
            .order_by(UserInput.created_at.desc())
            .limit(1)
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield


app = FastAPI(title="FieldMentor", lifespan=lifespan)
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        {"error": "Rate limit exceeded. Please slow down and try again later."},
        status_code=429,
    )


@app.exception_handler(FieldMentorError)
async def field_mentor_error_handler(request: Request, exc: FieldMentorError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse({"error": str(exc)}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "Invalid request body."}, status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.post("/api/score", response_model=ScoreResponse)
@limiter.limit(RATE_LIMIT_PER_IP)
async def score(
    request: Request,
    session: Optional[SessionContext] = Depends(get_session),
    handler: ScoreHandler = Depends(get_score_handler),
):
    # Auth is checked before the body is even read.
    session = require_session(session)
    body = await _read_json(request)
    return await handler.handle(session, body)


@app.post("/api/save", response_model=SaveResponse)
async def save(
    request: Request,
    session: Optional[SessionContext] = Depends(get_session),
):
    session = require_session(session)
    try:
        payload = SaveRequest.model_validate(await _read_json(request))
    except PydanticValidationError as exc:
        raise ValidationError("Missing text or type") from exc

    text = (payload.text or "").strip()
    prompt_type = (payload.type or "").strip()
    if not text or not prompt_type:
        raise ValidationError("Missing text or type")

    async with SessionLocal() as db:
        row = UserInput(user_id=session.user_id, prompt_type=prompt_type, content=text)
        db.add(row)
        await db.commit()

    logger.info("Saved %s input for user %s", prompt_type, session.user_id)
    return SaveResponse(success=True, data=[UserInputOut.model_validate(row)])


@app.get("/api/user-data", response_model=LatestInputs)
async def user_data(session: Optional[SessionContext] = Depends(get_session)):
    session = require_session(session)
    goal = await _latest_content(session.user_id, "goal")
    code = await _latest_content(session.user_id, "code")
    return LatestInputs(goal=goal, code=code, has_data=bool(goal and code))


@app.post("/api/chat", response_model=ChatResponse)
@limiter.limit(RATE_LIMIT_PER_IP)
async def chat(request: Request, payload: ChatRequest):
    message = (payload.message or "").strip()
    if not message:
        raise ValidationError("Missing message")

    try:
        text = await answer_question(message, payload.language)
    except FieldMentorError as exc:
        logger.error("Chat failed: %s", exc)
        return JSONResponse(
            {"message": connection_error_message(payload.language)},
            status_code=500,
        )
    return ChatResponse(message=text)


@app.post("/api/chat/image", response_model=ChatResponse)
@limiter.limit(RATE_LIMIT_PER_IP)
async def chat_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    message: str = Form(""),
    language: str = Form("en"),
):
    if image is None:
        return JSONResponse({"message": "No image provided"}, status_code=400)

    if image.size is not None and image.size > MAX_IMAGE_BYTES:
        raise ValidationError("Image must be under 10 MB.")
    image_bytes = await image.read(MAX_IMAGE_BYTES + 1)
    if not image_bytes:
        return JSONResponse({"message": "No image provided"}, status_code=400)
    if len(image_bytes) > MAX_IMAGE_BYTES:
        raise ValidationError("Image must be under 10 MB.")

    try:
        text = await diagnose_image(image_bytes, message.strip(), language)
    except ConfigError:
        raise
    except FieldMentorError as exc:
        logger.error("Image diagnosis failed: %s", exc)
        return ChatResponse(message=image_failure_message(language))
    return ChatResponse(message=text)
