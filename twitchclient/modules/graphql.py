"""Query-based GraphQL endpoint."""

from dataclasses import dataclass, field
from typing import Any

from twitchclient.auth.credentials import OAuth2Credential
from twitchclient.modules.rest import RestModule


@dataclass
class GraphQLResult:
    data: Any = None
    errors: list[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class GraphQLModule(RestModule):
    """Posts query documents to the single GraphQL endpoint."""

    def query(
        self,
        document: str,
        variables: dict | None = None,
        operation_name: str | None = None,
        auth_token: OAuth2Credential | None = None,
        timeout: float | None = None,
    ) -> GraphQLResult:
        body: dict[str, Any] = {"query": document}
        if variables:
            body["variables"] = variables
        if operation_name:
            body["operationName"] = operation_name

        payload = self.request("POST", "", json=body, auth_token=auth_token, timeout=timeout) or {}
        return GraphQLResult(data=payload.get("data"), errors=payload.get("errors") or [])
