from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScoreRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional so that missing fields surface as a 400, not a 422.
    goal: Optional[str] = None
    code: Optional[str] = None
    user_name: Optional[str] = Field(default=None, alias="userName")


class ParsedResult(BaseModel):
    raw_score: int
    congratulations: str
    advice: str

    @field_validator("raw_score")
    @classmethod
    def check_range(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError(f"score {v} is outside 1-100")
        return v


class ScoreResponse(BaseModel):
    score: int = Field(ge=1, le=100)
    congratulations: str
    advice: str


class SaveRequest(BaseModel):
    text: Optional[str] = None
    type: Optional[str] = None


class UserInputOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    prompt_type: str
    content: str
    created_at: datetime


class SaveResponse(BaseModel):
    success: bool
    data: List[UserInputOut]


class LatestInputs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    goal: Optional[str]
    code: Optional[str]
    has_data: bool = Field(alias="hasData")


class ChatRequest(BaseModel):
    message: Optional[str] = None
    language: str = "en"


class ChatResponse(BaseModel):
    message: str


class Prediction(BaseModel):
    prediction: str
    confidence: float
