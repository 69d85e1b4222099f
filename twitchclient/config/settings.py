"""Client settings loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application identity
    client_id: str = ""
    client_secret: str = ""
    user_agent: str = "twitchclient/0.3.0"
    redirect_url: str = "http://localhost"

    # Comma-separated module kinds, e.g. "helix,chat"
    enabled_modules: str = ""

    # Dispatch
    request_queue_size: int = -1  # -1 = unbounded
    request_queue_timeout: float = 1.0
    timeout: float = 5.0  # Per-call timeout in seconds
    rate_limit_capacity: int = 800
    rate_limit_period: float = 60.0

    # Streaming modules
    chat_queue_size: int = 200
    chat_queue_timeout: float = 1.0
    chat_rate_limit_capacity: int = 20
    chat_rate_limit_period: float = 30.0

    # Maintenance
    helper_thread_delay: float = 10.0
    default_event_handler: str = "simple"  # simple | isolated

    # Transport
    proxy_url: str = ""
    http_debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: str = ""  # Empty = stdout only

    model_config = {"env_prefix": "TWITCH_", "env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def enabled_modules_list(self) -> list[str]:
        """Parse the comma-separated module list, lowercased."""
        return [m.strip().lower() for m in self.enabled_modules.split(",") if m.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
