from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from hookline.discord.enums import InteractionCallbackType
from hookline.discord.http import File

from .message import MessagePayload


__all__ = ('InteractionResponse',)


class InteractionResponse(BaseModel):
    """a single response to an interaction

    one of `pong`, `acknowledge` (bare, deferred) or `channel_message`
    """
    type: InteractionCallbackType
    data: MessagePayload | None = None

    @classmethod
    def pong(cls) -> InteractionResponse:
        return cls(type=InteractionCallbackType.PONG)

    @classmethod
    def acknowledge(cls) -> InteractionResponse:
        return cls(
            type=InteractionCallbackType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE)

    @classmethod
    def channel_message(cls, payload: MessagePayload) -> InteractionResponse:
        return cls(
            type=InteractionCallbackType.CHANNEL_MESSAGE_WITH_SOURCE,
            data=payload)

    @property
    def files(self) -> list[File]:
        return self.data.files if self.data is not None else []

    @property
    def has_files(self) -> bool:
        return bool(self.files)

    def as_payload(self) -> dict[str, Any]:
        json: dict[str, Any] = {'type': self.type.value}

        if self.data is not None:
            json['data'] = self.data.as_payload()

        return json
