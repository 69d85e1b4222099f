"""Module identities and the worker threads each one keeps busy."""

from enum import Enum


class ModuleKind(str, Enum):
    EXTENSIONS = "extensions"
    HELIX = "helix"
    KRAKEN = "kraken"
    TMI = "tmi"
    GRAPHQL = "graphql"
    CHAT = "chat"
    PUBSUB = "pubsub"

    @property
    def is_streaming(self) -> bool:
        return self in (ModuleKind.CHAT, ModuleKind.PUBSUB)


# Client helper maintenance task
BASE_THREAD_REQUIREMENT = 1

# REST/query surfaces: one queue consumer.
# Streaming surfaces: one queue consumer plus one keepalive task.
MODULE_THREAD_REQUIREMENTS: dict[ModuleKind, int] = {
    ModuleKind.EXTENSIONS: 1,
    ModuleKind.HELIX: 1,
    ModuleKind.KRAKEN: 1,
    ModuleKind.TMI: 1,
    ModuleKind.GRAPHQL: 1,
    ModuleKind.CHAT: 2,
    ModuleKind.PUBSUB: 2,
}

DEFAULT_BASE_URLS: dict[ModuleKind, str] = {
    ModuleKind.EXTENSIONS: "https://api.twitch.tv/extensions",
    ModuleKind.HELIX: "https://api.twitch.tv/helix",
    ModuleKind.KRAKEN: "https://api.twitch.tv/kraken",
    ModuleKind.TMI: "https://tmi.twitch.tv",
    ModuleKind.GRAPHQL: "https://gql.twitch.tv/gql",
    ModuleKind.CHAT: "wss://irc-ws.chat.twitch.tv:443",
    ModuleKind.PUBSUB: "wss://pubsub-edge.twitch.tv:443",
}


def parse_module_kinds(names: list[str]) -> frozenset[ModuleKind]:
    """Resolve module names (e.g. from settings) to kinds."""
    kinds = set()
    for name in names:
        try:
            kinds.add(ModuleKind(name))
        except ValueError:
            raise ValueError(f"Unknown module: {name}") from None
    return frozenset(kinds)
