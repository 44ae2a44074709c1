from __future__ import annotations

from asyncio import Event, Future, get_running_loop, shield

import logfire

from hookline.discord.enums import ReplyState

from .response import InteractionResponse


__all__ = ('SyncReply',)


class SyncReply:
    """synchronous reply slot for one in-flight interaction

    the first of `reply`, `acknowledge`, `defer` or `close` fills the slot
    and closes it, every later call is refused and returns False. the
    dispatcher waits on the slot and sends whatever landed in it as the
    response, then marks it delivered. follow-ups are only accepted by the
    platform after that, so they wait for `wait_delivered`
    """

    def __init__(self) -> None:
        self._slot: Future[InteractionResponse] = get_running_loop(
        ).create_future()
        self._delivered = Event()
        self.deferred = False

    @property
    def state(self) -> ReplyState:
        return (
            ReplyState.CLOSED
            if self._slot.done() else
            ReplyState.OPEN
        )

    def reply(self, response: InteractionResponse) -> bool:
        if self._slot.done():
            return False

        self._slot.set_result(response)

        return True

    def acknowledge(self) -> bool:
        return self.reply(InteractionResponse.acknowledge())

    def defer(self) -> None:
        """deadline callback"""
        if self.acknowledge():
            self.deferred = True
            logfire.debug('interaction deadline reached, deferring')

    def close(self) -> None:
        """refuse every later reply without a response, nobody reads the slot anymore"""
        if self._slot.done():
            return

        self._slot.cancel()
        # ? nothing will be delivered, follow-ups must not wait for it
        self._delivered.set()

    def mark_delivered(self) -> None:
        self._delivered.set()

    async def wait(self) -> InteractionResponse:
        return await shield(self._slot)

    async def wait_delivered(self) -> None:
        await self._delivered.wait()
