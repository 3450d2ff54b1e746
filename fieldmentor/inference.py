import base64
import logging
import os
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from .errors import ConnectivityError, UpstreamError
from .schemas import Prediction

logger = logging.getLogger(__name__)

INFERENCE_URL = os.getenv("INFERENCE_URL", "http://localhost:8000/predict")
INFERENCE_TIMEOUT = float(os.getenv("INFERENCE_TIMEOUT", "30"))


async def predict_health(
    image_bytes: bytes,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Prediction:
    """Classify an animal photo on the image inference server."""
    payload = {"image": base64.b64encode(image_bytes).decode("utf-8")}

    try:
        async with httpx.AsyncClient(
            timeout=INFERENCE_TIMEOUT, transport=transport
        ) as client:
            response = await client.post(INFERENCE_URL, json=payload)
    except httpx.RequestError as exc:
        raise ConnectivityError(f"Could not reach inference server: {exc}") from exc

    if not response.is_success:
        raise UpstreamError(
            f"Inference server error ({response.status_code})",
            status=response.status_code,
            body=response.text,
        )

    try:
        prediction = Prediction.model_validate(response.json())
    except (ValueError, PydanticValidationError) as exc:
        raise UpstreamError(
            f"Unexpected response from inference server: {exc}",
            status=response.status_code,
            body=response.text,
        ) from exc

    logger.info(
        "Inference server predicted %s (%.1f%%)",
        prediction.prediction,
        prediction.confidence,
    )
    return prediction
