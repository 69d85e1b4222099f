"""Response classification: transport status codes to typed outcomes.

Rules, in priority order:
    401 -> UnauthorizedError
    404 -> NotFoundError
    503 -> RetryableUnavailableError (retried once by ``retry_once``)
    any other status -> decode the body; Decoded on success, otherwise
    UnclassifiedResponseError with the status and raw body.

Error outcomes are returned, not raised; the module dispatch layer decides
when to raise them.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

import httpx
from pydantic import BaseModel, ValidationError

from twitchclient.errors import (
    NotFoundError,
    RetryableUnavailableError,
    UnauthorizedError,
    UnclassifiedResponseError,
)

# Header values never copied into diagnostic context
_MASKED_HEADERS = {"authorization", "client-secret", "cookie"}


class ErrorPayload(BaseModel):
    """Error body returned by the upstream APIs."""

    error: str
    status: int
    message: str = ""


@dataclass
class Decoded:
    status: int
    payload: Any

    @property
    def is_error(self) -> bool:
        return self.status >= 400


ClassifiedOutcome = Union[
    Decoded,
    UnauthorizedError,
    NotFoundError,
    RetryableUnavailableError,
    UnclassifiedResponseError,
]


def _format_headers(headers: httpx.Headers) -> str:
    items = []
    for name, value in headers.items():
        if name.lower() in _MASKED_HEADERS:
            value = "***"
        items.append(f"{name}={value}")
    return "[" + ", ".join(items) + "]"


class ErrorClassifier:
    """Stateless; one instance is shared by every module."""

    def classify(
        self,
        response: httpx.Response,
        payload_model: type[BaseModel] | None = None,
    ) -> ClassifiedOutcome:
        """Map a completed response to exactly one outcome.

        The body is read once, before any branch, so diagnostic text is
        available to every rule. A broken body stream leaves it empty.
        """
        read_failed = False
        try:
            raw = response.read()
        except (httpx.HTTPError, httpx.StreamError):
            raw = b""
            read_failed = True
        body = raw.decode("utf-8", errors="replace")
        context = self._diagnostic_context(response, body)
        status = response.status_code

        if status == 401:
            return UnauthorizedError(status, context)
        if status == 404:
            return NotFoundError(status, context)
        if status == 503:
            return RetryableUnavailableError(status, context)

        if read_failed:
            return UnclassifiedResponseError(status, context)
        try:
            return Decoded(status=status, payload=self._decode(status, raw, payload_model))
        except (ValueError, ValidationError):
            return UnclassifiedResponseError(status, context)

    @staticmethod
    def _decode(status: int, raw: bytes, payload_model: type[BaseModel] | None) -> Any:
        if status >= 400:
            return ErrorPayload.model_validate_json(raw)
        if payload_model is not None:
            return payload_model.model_validate_json(raw)
        if not raw.strip():
            return None
        return json.loads(raw)

    @staticmethod
    def _diagnostic_context(response: httpx.Response, body: str) -> dict[str, str]:
        request = response.request
        return {
            "requestUrl": str(request.url),
            "requestMethod": request.method,
            "requestHeaders": _format_headers(request.headers),
            "responseBody": body,
        }


def retry_once(send: Callable[[], ClassifiedOutcome]) -> ClassifiedOutcome:
    """Run ``send`` and repeat it exactly once if the upstream answered 503.

    No backoff. A second 503 comes back marked terminal instead of looping.
    """
    outcome = send()
    if not isinstance(outcome, RetryableUnavailableError):
        return outcome

    outcome = send()
    if isinstance(outcome, RetryableUnavailableError):
        outcome.terminal = True
    return outcome
