from __future__ import annotations

from typing import Any, Self
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hookline.discord.enums import MessageFlag, AllowedMentionType
from hookline.discord.types import Snowflake
from hookline.errors import InteractionError
from hookline.discord.http import File

from .base import RawBaseModel


__all__ = (
    'AllowedMentions',
    'Embed',
    'Message',
    'MessagePayload',
)


MAX_CONTENT_LENGTH = 2000
MAX_EMBEDS = 10
MAX_FILES = 10


class EmbedField(BaseModel):
    name: str
    value: str
    inline: bool = False


class EmbedFooter(BaseModel):
    text: str
    icon_url: str | None = None


class Embed(RawBaseModel):
    title: str | None = None
    description: str | None = None
    url: str | None = None
    color: int | None = None
    timestamp: datetime | None = None
    footer: EmbedFooter | None = None
    fields: list[EmbedField] = Field(default_factory=list)

    def add_field(self, name: str, value: str, inline: bool = False) -> Self:
        self.fields.append(EmbedField(name=name, value=value, inline=inline))
        return self

    def as_payload(self) -> dict[str, Any]:
        return self.model_dump(mode='json', exclude_none=True)


class AllowedMentions(RawBaseModel):
    parse: list[AllowedMentionType] = Field(default_factory=list)
    roles: list[Snowflake] | None = None
    users: list[Snowflake] | None = None
    replied_user: bool | None = None

    def as_payload(self) -> dict[str, Any]:
        return self.model_dump(mode='json', exclude_none=True)


class Message(RawBaseModel):
    id: Snowflake
    channel_id: Snowflake
    content: str = ''
    timestamp: datetime | None = None
    tts: bool = False
    flags: MessageFlag = MessageFlag.NONE
    embeds: list[Embed] = Field(default_factory=list)
    webhook_id: Snowflake | None = None
    application_id: Snowflake | None = None


class MessagePayload(BaseModel):
    """resolved, validated message data for an interaction reply

    created from whatever a handler hands back, see `MessagePayload.create`
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, extra='forbid')

    content: str | None = None
    tts: bool = False
    embeds: list[Embed] = Field(default_factory=list)
    allowed_mentions: AllowedMentions | None = None
    flags: MessageFlag = MessageFlag.NONE
    files: list[File] = Field(default_factory=list, exclude=True)

    @classmethod
    def create(
        cls,
        content: Any | None = None,  # noqa: ANN401
        **options  # noqa: ANN003
    ) -> MessagePayload:
        match content:
            case MessagePayload() if not options:
                return content.check_limits()
            case MessagePayload():
                return cls.create(
                    **(content.model_dump(exclude_unset=True) | {
                        'files': content.files
                    } | options))
            case dict():
                options = content | options
                content = options.pop('content', None)
            case str() | None:
                pass
            case _:
                content = str(content)

        try:
            payload = cls(content=content, **options)
        except ValidationError as e:
            raise InteractionError(
                f'invalid message: {e.errors()[0]["msg"]}'
            ) from e

        return payload.check_limits()

    def check_limits(self) -> Self:
        # ? anything over the limit would have to be split into multiple messages
        if self.content is not None and len(self.content) > MAX_CONTENT_LENGTH:
            raise InteractionError('message is too long')

        if len(self.embeds) > MAX_EMBEDS:
            raise InteractionError(
                f'messages can have at most {MAX_EMBEDS} embeds')

        if len(self.files) > MAX_FILES:
            raise InteractionError(
                f'messages can have at most {MAX_FILES} files')

        if not (self.content or self.embeds or self.files):
            raise InteractionError('message is empty')

        return self

    def as_payload(self) -> dict[str, Any]:
        json: dict[str, Any] = {}

        if self.content is not None:
            json['content'] = self.content

        if self.tts:
            json['tts'] = True

        if self.embeds:
            json['embeds'] = [
                embed.as_payload()
                for embed in self.embeds
            ]

        if self.allowed_mentions is not None:
            json['allowed_mentions'] = self.allowed_mentions.as_payload()

        if self.flags:
            json['flags'] = self.flags.value

        if self.files:
            json['attachments'] = [
                file.as_payload(index)
                for index, file in enumerate(self.files)
            ]

        return json
