from __future__ import annotations

from typing import Any, Protocol


__all__ = ('DiscordCache',)


class DiscordCache(Protocol):
    """read-only view over the guild, channel and member cache

    owned by whatever keeps the gateway connection, interactions only ever
    look objects up by id
    """

    def get_channel(self, channel_id: int) -> Any | None:  # noqa: ANN401
        ...

    def get_guild(self, guild_id: int) -> Any | None:  # noqa: ANN401
        ...

    def get_member(self, guild_id: int, user_id: int) -> Any | None:  # noqa: ANN401
        ...
