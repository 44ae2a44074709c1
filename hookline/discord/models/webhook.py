from __future__ import annotations

from typing import TYPE_CHECKING, Literal, overload

from hookline.discord.http import Route, request
from hookline.discord.types import Snowflake

from .message import Message, MessagePayload
from .base import RawBaseModel

if TYPE_CHECKING:
    from .interaction import Interaction


__all__ = ('Webhook',)


class Webhook(RawBaseModel):
    id: Snowflake
    token: str
    application_id: Snowflake | None = None

    @classmethod
    def from_interaction(
        cls,
        interaction: Interaction
    ) -> Webhook:
        # ? interaction webhooks are keyed by application id and continuation token
        return cls(
            id=interaction.application_id,
            token=interaction.token,
            application_id=interaction.application_id
        )

    @overload
    async def execute(
        self,
        payload: MessagePayload,
        *,
        wait: Literal[True] = True,
    ) -> Message:
        ...

    @overload
    async def execute(
        self,
        payload: MessagePayload,
        *,
        wait: Literal[False],
    ) -> None:
        ...

    async def execute(
        self,
        payload: MessagePayload,
        *,
        wait: bool = True,
    ) -> Message | None:
        message = await request(
            Route(
                'POST',
                '/webhooks/{webhook_id}/{webhook_token}',
                webhook_id=self.id,
                webhook_token=self.token
            ),
            json=payload.as_payload(),
            files=payload.files or None,
            params={'wait': str(wait).lower()}
        )

        if not wait or message is None:
            return None

        return Message(**message)
