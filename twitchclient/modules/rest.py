"""REST request/response modules (helix, kraken, tmi, extensions)."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from twitchclient.auth.credentials import OAuth2Credential
from twitchclient.dispatch.classifier import ClassifiedOutcome, ErrorPayload, retry_once
from twitchclient.errors import ApiError, ApiResponseError, DispatchTimeoutError, TransportError
from twitchclient.logging.jsonlog import DispatchTimer
from twitchclient.modules.base import ApiModule

logger = logging.getLogger(__name__)


def _log_request(request: httpx.Request) -> None:
    logger.debug(
        "HTTP request",
        extra={"context": {"method": request.method, "url": str(request.url)}},
    )


def _log_response(response: httpx.Response) -> None:
    logger.debug(
        "HTTP response",
        extra={"context": {
            "method": response.request.method,
            "url": str(response.request.url),
            "status": response.status_code,
        }},
    )


def build_http_client(
    timeout: float,
    proxy_url: str | None = None,
    transport: httpx.BaseTransport | None = None,
    debug: bool = False,
) -> httpx.Client:
    event_hooks = {"request": [_log_request], "response": [_log_response]} if debug else None
    return httpx.Client(
        timeout=httpx.Timeout(timeout),
        proxy=proxy_url,
        transport=transport,
        event_hooks=event_hooks,
    )


class RestModule(ApiModule):
    """Sends classified, rate-limited requests to one REST surface."""

    def __init__(
        self,
        *args: Any,
        base_url: str,
        client_id: str = "",
        user_agent: str = "",
        default_auth_token: OAuth2Credential | None = None,
        http_client: httpx.Client | None = None,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.user_agent = user_agent
        self.default_auth_token = default_auth_token
        self._client = http_client

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = build_http_client(self.timeout)
        return self._client

    def _build_headers(self, auth_token: OAuth2Credential | None) -> dict:
        headers = {"Accept": "application/json"}
        if self.client_id:
            headers["Client-Id"] = self.client_id
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        token = auth_token or self.default_auth_token
        if token is not None:
            headers["Authorization"] = token.authorization_header
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        json: Any = None,
        auth_token: OAuth2Credential | None = None,
        model: type[BaseModel] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Queue a request and wait for its decoded payload.

        Raises:
            UnauthorizedError, NotFoundError, RetryableUnavailableError,
            UnclassifiedResponseError: classified failure outcomes.
            ApiError: the upstream returned a decoded error payload.
            QueueFullError: the module's queue rejected the call.
            DispatchTimeoutError: the call did not finish in time.
            TransportError: the upstream could not be reached.
        """
        url = f"{self.base_url}/{path.lstrip('/')}" if path else self.base_url
        headers = self._build_headers(auth_token)

        def dispatch() -> Any:
            request = self._get_client().build_request(
                method, url, params=params, json=json, headers=headers
            )
            return self._exchange(request, model)

        return self.call(dispatch, timeout=timeout)

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def _exchange(self, request: httpx.Request, model: type[BaseModel] | None) -> Any:
        """Send with the single 503 retry, then raise or unwrap the outcome."""
        attempts = 0

        def send() -> ClassifiedOutcome:
            nonlocal attempts
            attempts += 1
            return self._send_once(request, model)

        with DispatchTimer() as timer:
            outcome = retry_once(send)

        logger.debug(
            "Request dispatched",
            extra={"context": {
                "module": self.name,
                "method": request.method,
                "url": str(request.url),
                "attempts": attempts,
                "outcome": type(outcome).__name__,
                "latency_ms": timer.elapsed_ms,
            }},
        )

        if isinstance(outcome, ApiResponseError):
            raise outcome
        if outcome.is_error:
            payload: ErrorPayload = outcome.payload
            raise ApiError(outcome.status, payload.error, payload.message)
        return outcome.payload

    def _send_once(self, request: httpx.Request, model: type[BaseModel] | None) -> ClassifiedOutcome:
        client = self._get_client()
        try:
            response = client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise DispatchTimeoutError(f"{self.name} upstream timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{self.name} upstream error: {e}") from e
        try:
            return self.classifier.classify(response, payload_model=model)
        finally:
            response.close()

    def close(self) -> None:
        super().close()
        if self._client and not self._client.is_closed:
            self._client.close()
            self._client = None
