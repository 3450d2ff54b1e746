import asyncio
import base64
import json

import httpx
import pytest

from fieldmentor.errors import ConnectivityError, UpstreamError
from fieldmentor.inference import predict_health


def _predict(handler, image=b"fake-jpeg"):
    return asyncio.run(predict_health(image, transport=httpx.MockTransport(handler)))


def test_sends_base64_image_and_returns_prediction():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"prediction": "Healthy", "confidence": 93.4})

    result = _predict(handler, b"\xff\xd8\xff")
    assert result.prediction == "Healthy"
    assert result.confidence == 93.4
    assert base64.b64decode(seen[0]["image"]) == b"\xff\xd8\xff"


def test_server_error_is_upstream_error():
    def handler(request):
        return httpx.Response(500, text="model not loaded")

    with pytest.raises(UpstreamError) as excinfo:
        _predict(handler)
    assert excinfo.value.status == 500


def test_malformed_prediction_is_upstream_error():
    def handler(request):
        return httpx.Response(200, json={"label": "Healthy"})

    with pytest.raises(UpstreamError):
        _predict(handler)


def test_server_down_is_connectivity_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ConnectivityError):
        _predict(handler)
