from __future__ import annotations

from asyncio import Task, create_task, get_running_loop
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, Protocol

import logfire

from hookline.discord.http import Route, request, get_bot_id
from hookline.errors import InteractionError, on_interaction_error
from hookline.discord.commands import ApplicationCommand, CommandRegistry
from hookline.discord.enums import InteractionType
from hookline.discord.cache import DiscordCache
from hookline.discord.models import (
    InteractionResponse,
    MessagePayload,
    Interaction,
    SyncReply
)


__all__ = (
    'InteractionClient',
    'InteractionHandler',
)


DEFAULT_DEADLINE = 0.25

RUNNING: set[Task] = set()


def create_strong_task(coroutine: Coroutine) -> Task:
    # ? the loop only keeps weak references to tasks
    task = create_task(coroutine)

    RUNNING.add(task)

    task.add_done_callback(RUNNING.discard)

    return task


class InteractionHandler(Protocol):
    """user supplied command handler

    may return the reply (a string, a dict of message options or a
    `MessagePayload`), or None when it replies through `interaction.reply`
    itself, at any point, including after returning
    """

    async def __call__(
        self,
        interaction: Interaction
    ) -> str | dict | MessagePayload | None:
        ...


ErrorSink = Callable[[Interaction, BaseException], Awaitable[None]]


class InteractionClient:
    """client for slash command interactions

    `handle` answers webhook deliveries, `handle_from_gateway` answers
    interactions delivered over the gateway with an explicit callback.
    command interactions race the handler against `deadline`, whichever
    lands first is the response, a late handler reply is sent as a
    follow-up message instead
    """

    def __init__(
        self,
        handler: InteractionHandler,
        *,
        token: str | None = None,
        public_key: str | None = None,
        application_id: int | None = None,
        deadline: float = DEFAULT_DEADLINE,
        cache: DiscordCache | None = None,
        on_error: ErrorSink = on_interaction_error,
    ) -> None:
        self.handler = handler
        self.token = token
        self.public_key = public_key
        self.deadline = deadline
        self.cache = cache
        self.on_error = on_error
        self._application_id = application_id
        self.commands = CommandRegistry(self)

    @property
    def application_id(self) -> int:
        if self._application_id is None:
            if not self.token:
                raise InteractionError(
                    'no bot token or application id configured')

            self._application_id = get_bot_id(self.token)

        return self._application_id

    # ? command registry proxies
    async def get_commands(
        self,
        guild_id: int | None = None
    ) -> list[ApplicationCommand]:
        return await self.commands.get_commands(guild_id)

    async def create_command(
        self,
        command: ApplicationCommand | dict,
        guild_id: int | None = None
    ) -> ApplicationCommand:
        return await self.commands.create_command(command, guild_id)

    async def delete_command(
        self,
        command_id: int,
        guild_id: int | None = None
    ) -> None:
        await self.commands.delete_command(command_id, guild_id)

    async def set_commands(
        self,
        commands: list[ApplicationCommand | dict],
        guild_id: int | None = None
    ) -> list[ApplicationCommand]:
        return await self.commands.set_commands(commands, guild_id)

    async def handle(self, data: dict[str, Any]) -> InteractionResponse:
        """produce exactly one response for an interaction payload

        the response counts as delivered once this returns, follow-ups
        wait for that
        """
        response, sync_reply = await self._respond(data)

        if sync_reply is not None:
            sync_reply.mark_delivered()

        return response

    async def _respond(
        self,
        data: dict[str, Any]
    ) -> tuple[InteractionResponse, SyncReply | None]:
        match data.get('type'):
            case InteractionType.PING.value:
                return InteractionResponse.pong(), None
            case InteractionType.APPLICATION_COMMAND.value:
                return await self._handle_command(data)
            case _:
                raise ValueError('invalid interaction data')

    async def _handle_command(
        self,
        data: dict[str, Any]
    ) -> tuple[InteractionResponse, SyncReply]:
        sync_reply = SyncReply()
        interaction = Interaction.model_validate(data).bind(self, sync_reply)

        timer = get_running_loop().call_later(self.deadline, sync_reply.defer)

        create_strong_task(self._run_handler(interaction, sync_reply))

        try:
            response = await sync_reply.wait()
        finally:
            timer.cancel()
            # ? no-op once answered, refuses late replies when the caller went away
            sync_reply.close()

        logfire.debug(
            '{command_name} answered with {response_type}',
            command_name=interaction.command_name,
            response_type=response.type.name,
            deferred=sync_reply.deferred)

        return response, sync_reply

    async def _run_handler(
        self,
        interaction: Interaction,
        sync_reply: SyncReply
    ) -> None:
        try:
            result = await self.handler(interaction)

            # ? None means the handler replies through the interaction itself
            if result is not None:
                await interaction.reply(result)
        except Exception as e:
            await self._report(interaction, e)

            # ? no-op if anything was already sent
            sync_reply.acknowledge()

    async def _report(self, interaction: Interaction, error: BaseException) -> None:
        try:
            await self.on_error(interaction, error)
        except Exception as e:
            logfire.error('error sink failed', _exc_info=e)

    async def handle_from_gateway(self, data: dict[str, Any]) -> InteractionResponse | None:
        """dispatch a gateway interaction, then submit the response as an interaction callback"""
        if data.get('type') == InteractionType.PING.value:
            return None

        response, sync_reply = await self._respond(data)

        try:
            await self.send_callback(
                data['id'],
                data['token'],
                response)
        finally:
            # ? follow-ups are only accepted once the callback went through
            if sync_reply is not None:
                sync_reply.mark_delivered()

        return response

    async def send_callback(
        self,
        interaction_id: int | str,
        interaction_token: str,
        response: InteractionResponse
    ) -> None:
        route = Route(
            'POST',
            '/interactions/{interaction_id}/{interaction_token}/callback',
            interaction_id=interaction_id,
            interaction_token=interaction_token
        )

        await request(
            route,
            json=response.as_payload(),
            files=response.files or None)

