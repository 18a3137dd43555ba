"""HTTP client for the remote text embedding service."""

import logging
from typing import Optional

import httpx
import numpy as np
from opentelemetry import trace
from pydantic import ValidationError

from common.config.settings import (
    DEFAULT_EMBEDDING_DIMENSION,
    DEFAULT_EMBEDDING_MODEL,
    EmbeddingSettings,
)
from common.errors import ConfigError, DecodeError, InvalidInputError, TransportError, UpstreamError

from .models import EmbeddingRequest, EmbeddingResponse, EmbeddingVector

logger = logging.getLogger(__name__)

MAX_ERROR_DETAIL_LENGTH = 512


class EmbeddingClient:
    """Turn text into a dense vector with one POST per call and no retries."""

    def __init__(
        self,
        url: Optional[str],
        token: Optional[str],
        model: str = DEFAULT_EMBEDDING_MODEL,
        dimension: int = DEFAULT_EMBEDDING_DIMENSION,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url
        self._token = token
        self._model = model
        self._dimension = dimension
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(
        cls, settings: EmbeddingSettings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "EmbeddingClient":
        return cls(
            url=settings.url,
            token=settings.token,
            model=settings.model,
            dimension=settings.dimension,
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def embed(self, text: str) -> EmbeddingVector:
        """Embed ``text`` into a float32 vector of the configured dimension.

        Raises:
            InvalidInputError: ``text`` is empty.
            ConfigError: endpoint URL or token is unset.
            TransportError: network failure or timeout.
            UpstreamError: non-200 response (``status_code`` preserved).
            DecodeError: malformed, empty or wrongly sized embedding.
        """
        if not text:
            raise InvalidInputError("text to embed must not be empty")
        missing = [
            name for name, value in (("url", self._url), ("token", self._token)) if not value
        ]
        if missing:
            raise ConfigError(
                f"embedding service configuration incomplete: {', '.join(missing)}",
                missing=missing,
            )

        request = EmbeddingRequest(model=self._model, input=text)
        tracer = trace.get_tracer("embedding")
        with tracer.start_as_current_span("embedding.embed") as span:
            span.set_attribute("embedding.model", self._model)
            span.set_attribute("embedding.input_chars", len(text))
            try:
                response = await self._get_client().post(
                    self._url,
                    json=request.model_dump(),
                    headers={"Authorization": f"Bearer {self._token}"},
                )
            except httpx.TimeoutException as exc:
                raise TransportError(f"embedding request timed out: {exc}") from exc
            except httpx.HTTPError as exc:
                raise TransportError(f"embedding request failed: {exc}") from exc

            span.set_attribute("http.status_code", response.status_code)
            if response.status_code != httpx.codes.OK:
                raise UpstreamError(
                    f"embedding request failed with status {response.status_code}"
                    f"{_error_detail(response)}",
                    status_code=response.status_code,
                )
            return self._decode(response)

    def _decode(self, response: httpx.Response) -> EmbeddingVector:
        try:
            payload = EmbeddingResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise DecodeError(f"failed to parse embedding response: {exc}") from exc
        if not payload.data:
            raise DecodeError("embedding response contained no data")

        vector = np.asarray(payload.data[0].embedding, dtype=np.float32)
        if vector.shape != (self._dimension,):
            raise DecodeError(
                f"embedding has {vector.size} dimensions, expected {self._dimension}"
            )
        return vector


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    return f", error: {str(body)[:MAX_ERROR_DETAIL_LENGTH]}"
