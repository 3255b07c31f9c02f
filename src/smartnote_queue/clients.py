"""HTTP clients for the external translation and generation services.

Both clients use an explicit timeout; a timeout is reported like any other
failure, as ExternalServiceError.
"""

import logging
from typing import Protocol, override

import httpx

from .errors import ExternalServiceError
from .schemas import ProcessingParameters

logger = logging.getLogger(__name__)


class TranslationService(Protocol):
    def translate(self, text: str, target_language: str) -> str: ...


class GenerationService(Protocol):
    def generate(self, params: ProcessingParameters, text: str) -> str: ...


class HTTPTranslationClient(TranslationService):
    """Translation over the Google ``translate_a/single`` (gtx) endpoint.

    The request is form-encoded (``sl=auto&tl=<lang>&q=<text>``) and the
    translated text is the concatenation of ``data[0][i][0]``.
    """

    SERVICE_NAME: str = "translation"

    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url: str = url
        self.timeout: float = timeout
        self._client: httpx.Client = httpx.Client(timeout=timeout, transport=transport)

    @override
    def translate(self, text: str, target_language: str) -> str:
        try:
            response = self._client.post(
                self.url,
                data={"sl": "auto", "tl": target_language, "q": text},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise ExternalServiceError(self.SERVICE_NAME, f"timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError(self.SERVICE_NAME, str(exc)) from exc
        except ValueError as exc:
            raise ExternalServiceError(self.SERVICE_NAME, "response is not JSON") from exc

        try:
            sentences = payload[0]
            translated = "".join(
                str(sentence[0]) for sentence in sentences if sentence and sentence[0] is not None
            )
        except (TypeError, IndexError, KeyError) as exc:
            raise ExternalServiceError(self.SERVICE_NAME, "unexpected response format") from exc

        if not translated.strip():
            raise ExternalServiceError(self.SERVICE_NAME, "empty translation")
        return translated

    def close(self) -> None:
        self._client.close()


class HTTPGenerationClient(GenerationService):
    """Client for the AI generation service.

    Posts ``{"context_id", "environment", "direct", "text"}`` and reads the
    generated text from ``response`` (or ``text``) in the JSON body.
    An empty result is returned as ``""``; deciding what that means is left
    to the caller.
    """

    SERVICE_NAME: str = "generation"

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        timeout: float = 120.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url: str = url
        self.timeout: float = timeout
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client: httpx.Client = httpx.Client(
            timeout=timeout, headers=headers, transport=transport
        )

    @override
    def generate(self, params: ProcessingParameters, text: str) -> str:
        body = {
            "context_id": params.context_id,
            "environment": params.environment,
            "direct": params.direct,
            "text": text,
            **params.extra,
        }
        try:
            response = self._client.post(self.url, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise ExternalServiceError(self.SERVICE_NAME, f"timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError(self.SERVICE_NAME, str(exc)) from exc
        except ValueError as exc:
            raise ExternalServiceError(self.SERVICE_NAME, "response is not JSON") from exc

        if not isinstance(payload, dict):
            raise ExternalServiceError(self.SERVICE_NAME, "unexpected response format")

        result = payload.get("response", payload.get("text"))
        if result is None:
            return ""
        return str(result)

    def close(self) -> None:
        self._client.close()
