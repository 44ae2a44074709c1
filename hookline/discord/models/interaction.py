from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self
from datetime import datetime

from pydantic import ConfigDict, PrivateAttr

from hookline.discord.types import Snowflake, snowflake_time
from hookline.discord.enums import (
    ApplicationCommandOptionType,
    ApplicationCommandType,
    InteractionType,
    ReplyState
)

from .message import Message, MessagePayload
from .response import InteractionResponse
from .base import RawBaseModel
from .webhook import Webhook

if TYPE_CHECKING:
    from hookline.client import InteractionClient

    from .reply import SyncReply


__all__ = (
    'ApplicationCommandInteractionData',
    'ApplicationCommandInteractionDataOption',
    'Interaction',
)


SUB_COMMAND_TYPES = {
    ApplicationCommandOptionType.SUB_COMMAND,
    ApplicationCommandOptionType.SUB_COMMAND_GROUP
}


class ApplicationCommandInteractionDataOption(RawBaseModel):
    name: str
    type: ApplicationCommandOptionType
    value: str | int | float | bool | None = None
    options: list[ApplicationCommandInteractionDataOption] | None = None
    focused: bool | None = None


class ApplicationCommandInteractionData(RawBaseModel):
    id: Snowflake
    name: str
    type: ApplicationCommandType = ApplicationCommandType.CHAT_INPUT
    options: list[ApplicationCommandInteractionDataOption] | None = None
    resolved: dict | None = None
    guild_id: Snowflake | None = None
    target_id: Snowflake | None = None


class Interaction(RawBaseModel):
    model_config = ConfigDict(frozen=True)

    id: Snowflake
    """ID of the interaction"""
    application_id: Snowflake
    """ID of the application this interaction is for"""
    type: InteractionType
    """Type of interaction"""
    token: str
    """Continuation token for responding to the interaction"""
    version: int = 1
    """Read-only property, always `1`"""
    data: ApplicationCommandInteractionData | dict | None = None
    """Interaction data payload"""
    guild_id: Snowflake | None = None
    """Guild that the interaction was sent from"""
    channel_id: Snowflake | None = None
    """Channel that the interaction was sent from"""
    member: dict | None = None
    """Raw guild member data for the invoking user"""
    user: dict | None = None
    """Raw user data for the invoking user, if invoked in a DM"""
    locale: str | None = None
    """Selected language of the invoking user"""
    guild_locale: str | None = None
    """Guild's preferred locale, if invoked in a guild"""
    # ? library stuff, the only mutable part of an interaction
    _client: InteractionClient | None = PrivateAttr(None)
    _sync_reply: SyncReply | None = PrivateAttr(None)

    def bind(
        self,
        client: InteractionClient | None,
        sync_reply: SyncReply | None = None
    ) -> Self:
        self._client = client
        self._sync_reply = sync_reply
        return self

    @property
    def command(self) -> ApplicationCommandInteractionData | None:
        return (
            self.data
            if isinstance(self.data, ApplicationCommandInteractionData) else
            None
        )

    @property
    def command_id(self) -> Snowflake | None:
        return self.command.id if self.command is not None else None

    @property
    def command_name(self) -> str | None:
        return self.command.name if self.command is not None else None

    @property
    def options(self) -> list[ApplicationCommandInteractionDataOption]:
        if self.command is None:
            return []

        return self.command.options or []

    @property
    def command_path(self) -> tuple[str, ...]:
        """command name followed by any invoked group and sub-command names"""
        if self.command is None:
            return ()

        path = [self.command.name]
        options = self.options

        while options and options[0].type in SUB_COMMAND_TYPES:
            path.append(options[0].name)
            options = options[0].options or []

        return tuple(path)

    @property
    def option_values(self) -> dict[str, Any]:
        options = self.options

        while options and options[0].type in SUB_COMMAND_TYPES:
            options = options[0].options or []

        return {
            option.name: option.value
            for option in options
        }

    @property
    def created_at(self) -> datetime:
        return snowflake_time(self.id)

    @property
    def author_id(self) -> Snowflake | None:
        user = (
            self.member.get('user')
            if self.member is not None else
            self.user
        )

        if not user or 'id' not in user:
            return None

        return Snowflake(user['id'])

    @property
    def channel(self) -> Any | None:  # noqa: ANN401
        if self.channel_id is None or self._client is None or self._client.cache is None:
            return None

        return self._client.cache.get_channel(self.channel_id)

    @property
    def guild(self) -> Any | None:  # noqa: ANN401
        if self.guild_id is None or self._client is None or self._client.cache is None:
            return None

        return self._client.cache.get_guild(self.guild_id)

    @property
    def member_object(self) -> Any | None:  # noqa: ANN401
        """cached member for the invoking user, if invoked in a guild"""
        if (
            self.member is None or
            self.guild_id is None or
            self.author_id is None or
            self._client is None or
            self._client.cache is None
        ):
            return None

        return self._client.cache.get_member(self.guild_id, self.author_id)

    @property
    def reply_state(self) -> ReplyState:
        if self._sync_reply is None:
            return ReplyState.CLOSED

        return self._sync_reply.state

    def acknowledge(self) -> bool:
        """acknowledge without content, only possible while the synchronous reply is open"""
        if self._sync_reply is None:
            return False

        return self._sync_reply.acknowledge()

    async def reply(
        self,
        content: Any | None = None,  # noqa: ANN401
        **options  # noqa: ANN003
    ) -> Message | None:
        """reply to this interaction

        goes out as the http response when the synchronous reply is still
        open, otherwise as a follow-up message. returns the follow-up
        message, or None when it was sent synchronously
        """
        payload = MessagePayload.create(content, **options)

        if (
            self._sync_reply is not None and
            self._sync_reply.reply(InteractionResponse.channel_message(payload))
        ):
            return None

        return await self._send_followup(payload)

    async def followup(
        self,
        content: Any | None = None,  # noqa: ANN401
        **options  # noqa: ANN003
    ) -> Message:
        return await self._send_followup(
            MessagePayload.create(content, **options))

    async def _send_followup(self, payload: MessagePayload) -> Message:
        if self._sync_reply is not None:
            await self._sync_reply.wait_delivered()

        message = await Webhook.from_interaction(self).execute(payload)

        assert message is not None
        return message
