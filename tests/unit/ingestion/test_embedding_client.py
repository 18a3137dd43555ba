import json

import httpx
import numpy as np
import pytest

from common.config.settings import EmbeddingSettings
from common.errors import ConfigError, DecodeError, InvalidInputError, TransportError, UpstreamError
from ingestion.embedding import EmbeddingClient

URL = "https://embeddings.example.com/v1/embeddings"


def _client(handler, dimension=4, **kwargs):
    return EmbeddingClient(
        URL,
        kwargs.pop("token", "secret"),
        dimension=dimension,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _ok(vector):
    return httpx.Response(
        200, json={"model": "BAAI/bge-m3", "data": [{"embedding": vector, "index": 0}]}
    )


@pytest.mark.asyncio
async def test_embed_posts_model_input_and_bearer_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return _ok([0.1, 0.2, 0.3, 0.4])

    client = _client(handler)
    vector = await client.embed("list all customers")
    await client.aclose()

    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {
        "model": "BAAI/bge-m3",
        "input": "list all customers",
        "encoding_format": "float",
    }
    assert vector.dtype == np.float32
    assert vector.shape == (4,)
    np.testing.assert_allclose(vector, [0.1, 0.2, 0.3, 0.4], rtol=1e-6)


@pytest.mark.asyncio
async def test_empty_text_is_rejected_without_network_call():
    calls = []

    def handler(request):
        calls.append(request)
        return _ok([0.0] * 4)

    client = _client(handler)
    with pytest.raises(InvalidInputError):
        await client.embed("")
    assert calls == []


@pytest.mark.asyncio
async def test_missing_token_is_a_config_error():
    client = _client(lambda request: _ok([0.0] * 4), token="")
    with pytest.raises(ConfigError) as exc_info:
        await client.embed("hello")
    assert exc_info.value.missing == ["token"]


@pytest.mark.asyncio
async def test_non_200_raises_upstream_error_with_status():
    client = _client(lambda request: httpx.Response(401, json={"message": "bad token"}))
    with pytest.raises(UpstreamError) as exc_info:
        await client.embed("hello")
    assert exc_info.value.status_code == 401
    assert "bad token" in str(exc_info.value)


@pytest.mark.asyncio
async def test_network_failure_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    with pytest.raises(TransportError):
        await client.embed("hello")


@pytest.mark.asyncio
async def test_timeout_raises_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = _client(handler)
    with pytest.raises(TransportError, match="timed out"):
        await client.embed("hello")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={"data": []}),
        httpx.Response(200, json={"data": [{"embedding": [1.0, 2.0], "index": 0}]}),
    ],
    ids=["malformed", "empty", "wrong-dimension"],
)
async def test_bad_payload_raises_decode_error(response):
    client = _client(lambda request: response)
    with pytest.raises(DecodeError):
        await client.embed("hello")


def test_from_settings_uses_configured_model_and_dimension():
    settings = EmbeddingSettings(url=URL, token="t", model="custom-model", timeout_seconds=3)
    client = EmbeddingClient.from_settings(settings)
    assert client.dimension == 1024
