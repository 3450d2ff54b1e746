import enum
from typing import Optional

DEFAULT_USER_NAME = "Developer"


class PromptStyle(str, enum.Enum):
    BRIEF = "brief"
    FEEDBACK = "feedback"


_JUDGING_RULES = """\
How to judge:
- Ignore how ambitious or impressive the goal is. Judge ONLY how well the code \
achieves the goal that was actually stated.
- A small goal that the code fully achieves deserves a high score.
- A huge goal that the code only starts on deserves a low score, no matter how \
good the code itself is.

Calibration examples:
- Goal "print hello world", code prints "hello world" -> SCORE: 100
- Goal "add two numbers in a function", code defines add(a, b) returning a + b -> SCORE: 100
- Goal "build a full e-commerce site with payments", code is one HTML page \
with a header -> SCORE: 10
- Goal "build a todo app with add, delete and persistence", code adds and \
deletes items in memory only -> SCORE: 65
"""

BRIEF_SCORE_PROMPT = """\
You are an expert programming mentor. You will be given a developer's goal and \
their recent code. Rate how well the code aligns with achieving their goal on \
a scale of 1-100.

{rules}
GOAL: {goal}

CODE: {code}

Respond with exactly one line and nothing else:
SCORE: <integer from 1 to 100>
"""

FEEDBACK_SCORE_PROMPT = """\
You are an expert programming mentor reviewing work by {user_name}. You will \
be given their goal and their recent code. Rate how well the code aligns with \
achieving the goal on a scale of 1-100, then encourage and guide them.

{rules}
GOAL: {goal}

CODE: {code}

Respond using EXACTLY this format, with each label at the start of its own line \
and no markdown:
SCORE: <integer from 1 to 100>
CONGRATULATIONS: <exactly 2-3 sentences of warm, specific praise addressed to \
{user_name} by name>
ADVICE: <exactly 4 sentences of concrete, actionable next steps toward the goal>
"""

CHAT_PROMPTS = {
    "en": """\
You are a helpful farming assistant. You MUST respond ONLY in English language.

User message: {message}

IMPORTANT: Your response must be in English language only.

Keep your response:
- Under 100 words
- Simple language
- Practical steps only
- Talk like you're helping a neighbor farmer
- MANDATORY: Use English language only
""",
    "hi": """\
आप एक सहायक कृषि सलाहकार हैं। आपको केवल देवनागरी लिपि में हिंदी में जवाब देना है।

उपयोगकर्ता का संदेश: {message}

महत्वपूर्ण: आपका जवाब केवल हिंदी भाषा में देवनागरी लिपि में होना चाहिए।

अपना जवाब रखें:
- 100 शब्दों के अंदर
- सरल हिंदी भाषा में
- व्यावहारिक सुझाव दें
- पड़ोसी किसान की तरह बात करें
- अनिवार्य: केवल हिंदी में जवाब दें
""",
}

DIAGNOSIS_PROMPTS = {
    "en": """\
You are a helpful veterinary assistant. You MUST respond ONLY in English.

Image Analysis Results:
- Animal Health Status: {prediction}
- Confidence: {confidence}%
{question}
Based on this diagnosis, please provide:
- Response under 100 words
- If diseased: treatment recommendations
- If healthy: preventive measures
- Practical farming advice
- MANDATORY: Use English language only
""",
    "hi": """\
आप एक सहायक पशु चिकित्सक हैं। आपको केवल देवनागरी लिपि में हिंदी में जवाब देना है।

इमेज एनालिसिस रिजल्ट:
- पशु की स्वास्थ्य स्थिति: {prediction}
- विश्वसनीयता: {confidence}%
{question}
कृपया इस रिपोर्ट के आधार पर:
- 100 शब्दों में सलाह दें
- यदि बीमारी है तो इलाज के सुझाव दें
- यदि स्वस्थ है तो बचाव के उपाय बताएं
- व्यावहारिक सुझाव दें
- केवल हिंदी में जवाब दें
""",
}

_QUESTION_LINES = {
    "en": "- Farmer's Question: {message}\n",
    "hi": "- किसान का प्रश्न: {message}\n",
}


def resolve_language(language: Optional[str]) -> str:
    """Map a requested language onto a supported one (English by default)."""
    language = (language or "").strip().lower()
    return language if language in CHAT_PROMPTS else "en"


def build_score_prompt(
    goal: str,
    code: str,
    user_name: str = DEFAULT_USER_NAME,
    style: PromptStyle = PromptStyle.FEEDBACK,
) -> str:
    if style is PromptStyle.BRIEF:
        return BRIEF_SCORE_PROMPT.format(rules=_JUDGING_RULES, goal=goal, code=code)
    return FEEDBACK_SCORE_PROMPT.format(
        rules=_JUDGING_RULES, goal=goal, code=code, user_name=user_name
    )


def build_chat_prompt(message: str, language: str = "en") -> str:
    return CHAT_PROMPTS[resolve_language(language)].format(message=message)


def build_diagnosis_prompt(
    prediction: str,
    confidence: float,
    message: Optional[str] = None,
    language: str = "en",
) -> str:
    language = resolve_language(language)
    question = _QUESTION_LINES[language].format(message=message) if message else ""
    return DIAGNOSIS_PROMPTS[language].format(
        prediction=prediction, confidence=confidence, question=question
    )
