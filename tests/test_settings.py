"""Tests for twitchclient/config/settings.py — Settings and enabled_modules_list."""

from twitchclient.config.settings import get_settings


class TestSettings:

    def test_defaults(self, override_settings):
        override_settings()
        s = get_settings()
        assert s.request_queue_size == -1
        assert s.timeout == 5.0
        assert s.chat_queue_size == 200
        assert s.chat_rate_limit_capacity == 20
        assert s.chat_rate_limit_period == 30.0
        assert s.helper_thread_delay == 10.0
        assert s.default_event_handler == "simple"
        assert s.log_level == "INFO"

    def test_enabled_modules_list(self, override_settings):
        override_settings(TWITCH_ENABLED_MODULES="Helix, chat ,pubsub")
        s = get_settings()
        assert s.enabled_modules_list == ["helix", "chat", "pubsub"]

    def test_enabled_modules_list_strips_empty(self, override_settings):
        override_settings(TWITCH_ENABLED_MODULES="helix,,tmi,")
        s = get_settings()
        assert s.enabled_modules_list == ["helix", "tmi"]

    def test_enabled_modules_list_empty(self, override_settings):
        override_settings(TWITCH_ENABLED_MODULES="")
        assert get_settings().enabled_modules_list == []

    def test_env_override(self, override_settings):
        override_settings(
            TWITCH_CLIENT_ID="abc",
            TWITCH_CHAT_QUEUE_SIZE="50",
            TWITCH_TIMEOUT="2.5",
            TWITCH_HTTP_DEBUG="true",
        )
        s = get_settings()
        assert s.client_id == "abc"
        assert s.chat_queue_size == 50
        assert s.timeout == 2.5
        assert s.http_debug is True

    def test_cached(self, override_settings):
        override_settings()
        assert get_settings() is get_settings()
