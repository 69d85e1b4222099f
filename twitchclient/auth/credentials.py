"""Identity providers and OAuth2 credentials.

Token acquisition and refresh happen elsewhere; this module only holds the
application identity and the credentials handed to the modules.
"""

import threading
from dataclasses import dataclass, field

TWITCH_PROVIDER = "twitch"
TWITCH_AUTHORIZE_URL = "https://id.twitch.tv/oauth2/authorize"
TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"


@dataclass(frozen=True)
class OAuth2Credential:
    access_token: str = field(repr=False)
    provider: str = TWITCH_PROVIDER
    refresh_token: str = field(default="", repr=False)
    user_id: str = ""
    user_name: str = ""
    scopes: tuple[str, ...] = ()

    @property
    def authorization_header(self) -> str:
        token = self.access_token
        if token.lower().startswith("oauth:"):
            token = token[len("oauth:"):]
        return f"Bearer {token}"


@dataclass(frozen=True)
class IdentityProvider:
    name: str
    client_id: str
    client_secret: str = field(repr=False)
    redirect_url: str
    authorize_url: str = TWITCH_AUTHORIZE_URL
    token_url: str = TWITCH_TOKEN_URL


class CredentialManager:
    """Thread-safe store of identity providers and credentials."""

    def __init__(self):
        self._providers: dict[str, IdentityProvider] = {}
        self._credentials: list[OAuth2Credential] = []
        self._lock = threading.Lock()

    def register_identity_provider(self, provider: IdentityProvider) -> None:
        """Register, replacing any provider with the same name."""
        with self._lock:
            self._providers[provider.name] = provider

    def get_identity_provider(self, name: str) -> IdentityProvider | None:
        with self._lock:
            return self._providers.get(name)

    def add_credential(self, credential: OAuth2Credential) -> None:
        with self._lock:
            self._credentials.append(credential)

    @property
    def credentials(self) -> list[OAuth2Credential]:
        with self._lock:
            return list(self._credentials)


def register_identity_provider(
    manager: CredentialManager,
    client_id: str,
    client_secret: str,
    redirect_url: str,
) -> IdentityProvider:
    provider = IdentityProvider(
        name=TWITCH_PROVIDER,
        client_id=client_id,
        client_secret=client_secret,
        redirect_url=redirect_url,
    )
    manager.register_identity_provider(provider)
    return provider
