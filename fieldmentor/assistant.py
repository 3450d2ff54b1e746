from .gemini import generate_text, require_api_key
from .inference import predict_health
from .prompts import build_chat_prompt, build_diagnosis_prompt, resolve_language

CHAT_TEMPERATURE = 0.7
CHAT_MAX_OUTPUT_TOKENS = 300

CONNECTION_ERROR_MESSAGES = {
    "en": "I'm having trouble connecting. Please try again.",
    "hi": "कनेक्शन में समस्या है। फिर से कोशिश करें।",
}

IMAGE_FAILURE_MESSAGES = {
    "en": (
        "Image analysis failed. Please make sure the Python model server is "
        "running and try again."
    ),
    "hi": "इमेज एनालिसिस में समस्या है। कृपया मॉडल सर्वर चालू करें और फिर कोशिश करें।",
}


def connection_error_message(language: str) -> str:
    return CONNECTION_ERROR_MESSAGES[resolve_language(language)]


def image_failure_message(language: str) -> str:
    return IMAGE_FAILURE_MESSAGES[resolve_language(language)]


async def answer_question(message: str, language: str = "en") -> str:
    prompt = build_chat_prompt(message, language)
    return await generate_text(
        prompt,
        temperature=CHAT_TEMPERATURE,
        max_output_tokens=CHAT_MAX_OUTPUT_TOKENS,
    )


async def diagnose_image(
    image_bytes: bytes, message: str = "", language: str = "en"
) -> str:
    """Classify the photo, then ask the model for advice based on the result."""
    require_api_key()
    prediction = await predict_health(image_bytes)
    prompt = build_diagnosis_prompt(
        prediction.prediction, prediction.confidence, message or None, language
    )
    return await generate_text(
        prompt,
        temperature=CHAT_TEMPERATURE,
        max_output_tokens=CHAT_MAX_OUTPUT_TOKENS,
    )
