from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from pydantic import Field, field_validator
import logfire

from hookline.discord.enums import ApplicationCommandOptionType, ApplicationCommandType
from hookline.discord.models.base import RawBaseModel
from hookline.discord.http import Route, request
from hookline.discord.types import Snowflake

if TYPE_CHECKING:
    from hookline.client import InteractionClient


__all__ = (
    'ApplicationCommand',
    'ApplicationCommandOption',
    'ApplicationCommandOptionChoice',
    'CommandRegistry',
)


# ? above this many individual changes a bulk overwrite is cheaper
MAX_INDIVIDUAL_UPDATES = 4


class ApplicationCommandOptionChoice(RawBaseModel):
    name: str
    name_localizations: dict[str, str] | None = None
    value: str | int | float

    def as_payload(self) -> dict[str, Any]:
        return self.model_dump(mode='json', exclude_none=True)


class ApplicationCommandOption(RawBaseModel):
    type: ApplicationCommandOptionType
    name: str = Field(pattern=r'^[-_\w]{1,32}$')
    name_localizations: dict[str, str] | None = None
    description: str = Field(max_length=100)
    description_localizations: dict[str, str] | None = None
    required: bool = False
    choices: list[ApplicationCommandOptionChoice] | None = None
    options: list[ApplicationCommandOption] | None = None
    min_value: int | float | None = None
    max_value: int | float | None = None
    min_length: int | None = None
    max_length: int | None = None
    autocomplete: bool = False

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, value: Any) -> Any:  # noqa: ANN401
        # ? accept option types by name, e.g. 'SUB_COMMAND_GROUP'
        if isinstance(value, str) and value in ApplicationCommandOptionType.__members__:
            return ApplicationCommandOptionType[value]

        return value

    def __eq__(self, value: object) -> bool:
        return (
            isinstance(value, ApplicationCommandOption) and
            value.type == self.type and
            value.name == self.name and
            value.description == self.description and
            value.required == self.required and
            value.choices == self.choices and
            (value.options or []) == (self.options or []) and
            value.min_value == self.min_value and
            value.max_value == self.max_value and
            value.min_length == self.min_length and
            value.max_length == self.max_length and
            value.autocomplete == self.autocomplete
        )

    def as_payload(self) -> dict[str, Any]:
        json: dict[str, Any] = {
            'type': self.type.value,
            'name': self.name,
            'description': self.description,
        }

        if self.required:
            json['required'] = True

        if self.autocomplete:
            json['autocomplete'] = True

        for key in (
            'name_localizations',
            'description_localizations',
            'min_value',
            'max_value',
            'min_length',
            'max_length'
        ):
            if (value := getattr(self, key)) is not None:
                json[key] = value

        if self.choices is not None:
            json['choices'] = [
                choice.as_payload()
                for choice in self.choices
            ]

        if self.options is not None:
            json['options'] = [
                option.as_payload()
                for option in self.options
            ]

        return json


class ApplicationCommand(RawBaseModel):
    id: Snowflake | None = None
    type: ApplicationCommandType = ApplicationCommandType.CHAT_INPUT
    application_id: Snowflake | None = None
    guild_id: Snowflake | None = None
    name: str
    name_localizations: dict[str, str] | None = None
    description: str = ''
    description_localizations: dict[str, str] | None = None
    options: list[ApplicationCommandOption] | None = None
    default_member_permissions: str | None = None
    nsfw: bool | None = None
    version: Snowflake | None = None

    def __eq__(self, value: object) -> bool:
        return (
            isinstance(value, ApplicationCommand) and
            value.type == self.type and
            value.name == self.name and
            value.description == self.description and
            (value.options or []) == (self.options or []) and
            value.default_member_permissions == self.default_member_permissions and
            bool(value.nsfw) == bool(self.nsfw)
        )

    def as_payload(self) -> dict[str, Any]:
        json: dict[str, Any] = {
            'name': self.name,
            'type': self.type.value,
        }

        if self.type == ApplicationCommandType.CHAT_INPUT:
            json['description'] = self.description
            json['options'] = [
                option.as_payload()
                for option in self.options or []
            ]

        if self.name_localizations is not None:
            json['name_localizations'] = self.name_localizations

        if self.description_localizations is not None:
            json['description_localizations'] = self.description_localizations

        if self.default_member_permissions is not None:
            json['default_member_permissions'] = self.default_member_permissions

        if self.nsfw is not None:
            json['nsfw'] = self.nsfw

        return json


def _patch_reason(local_command: ApplicationCommand, live_command: ApplicationCommand) -> list[str]:
    reasons = []

    if local_command.type != live_command.type:
        reasons.append(f'type ({local_command.type=} != {live_command.type=})')

    if local_command.description != live_command.description:
        reasons.append('description')

    if (local_command.options or []) != (live_command.options or []):
        reasons.append('options')

    if local_command.default_member_permissions != live_command.default_member_permissions:
        reasons.append('default_member_permissions')

    if bool(local_command.nsfw) != bool(live_command.nsfw):
        reasons.append('nsfw')

    return reasons


class CommandRegistry:
    """list, create, edit and delete registered commands

    every method is scoped globally, or to a single guild when `guild_id`
    is given
    """

    def __init__(self, client: InteractionClient) -> None:
        self.client = client

    def _route(
        self,
        method: str,
        guild_id: int | None = None,
        command_id: int | None = None
    ) -> Route:
        path = '/applications/{application_id}'
        params: dict[str, Any] = {'application_id': self.client.application_id}

        if guild_id is not None:
            path += '/guilds/{guild_id}'
            params['guild_id'] = guild_id

        path += '/commands'

        if command_id is not None:
            path += '/{command_id}'
            params['command_id'] = command_id

        return Route(method, path, **params)

    async def get_commands(
        self,
        guild_id: int | None = None
    ) -> list[ApplicationCommand]:
        return [
            ApplicationCommand(**command)
            for command in await request(
                self._route('GET', guild_id),
                token=self.client.token
            ) or []
        ]

    async def create_command(
        self,
        command: ApplicationCommand | dict,
        guild_id: int | None = None
    ) -> ApplicationCommand:
        if isinstance(command, dict):
            command = ApplicationCommand(**command)

        logfire.debug('registering {command_name}', command_name=command.name)

        return ApplicationCommand(**await request(
            self._route('POST', guild_id),
            json=command.as_payload(),
            token=self.client.token
        ))

    async def edit_command(
        self,
        command_id: int,
        command: ApplicationCommand | dict,
        guild_id: int | None = None
    ) -> ApplicationCommand:
        if isinstance(command, dict):
            command = ApplicationCommand(**command)

        logfire.debug('updating {command_name}', command_name=command.name)

        return ApplicationCommand(**await request(
            self._route('PATCH', guild_id, command_id),
            json=command.as_payload(),
            token=self.client.token
        ))

    async def delete_command(
        self,
        command_id: int,
        guild_id: int | None = None
    ) -> None:
        logfire.debug('deleting {command_id}', command_id=command_id)

        await request(
            self._route('DELETE', guild_id, command_id),
            token=self.client.token
        )

    async def set_commands(
        self,
        commands: list[ApplicationCommand | dict],
        guild_id: int | None = None
    ) -> list[ApplicationCommand]:
        """overwrite every registered command in one request"""
        commands = [
            ApplicationCommand(**command)
            if isinstance(command, dict) else
            command
            for command in commands
        ]

        return [
            ApplicationCommand(**command)
            for command in await request(
                self._route('PUT', guild_id),
                json=[command.as_payload() for command in commands],
                token=self.client.token
            ) or []
        ]

    async def sync_commands(
        self,
        commands: list[ApplicationCommand],
        guild_id: int | None = None
    ) -> None:
        with logfire.span(
            'sync_commands with {application_id}',
            application_id=self.client.application_id,
            guild_id=guild_id
        ):
            await self._sync_commands(commands, guild_id)

    async def _sync_commands(
        self,
        commands: list[ApplicationCommand],
        guild_id: int | None
    ) -> None:
        local_commands = {command.name: command for command in commands}
        live_commands = {
            command.name: command
            for command in await self.get_commands(guild_id)
        }

        if local_commands and not live_commands:
            logfire.debug('no commands found, registering all')
            await self.set_commands(commands, guild_id)
            return

        updates: list[
            tuple[
                Literal['POST', 'PATCH', 'DELETE'],
                ApplicationCommand,
                list[str] | None
            ]
        ] = []

        for command in local_commands.values():
            if command.name not in live_commands:
                updates.append(('POST', command, None))
                continue

            if live_commands[command.name] != command:
                updates.append((
                    'PATCH',
                    command.model_copy(
                        update={'id': live_commands[command.name].id}),
                    _patch_reason(command, live_commands[command.name])
                ))

        for command in live_commands.values():
            if command.name not in local_commands:
                updates.append(('DELETE', command, None))

        if len(updates) > MAX_INDIVIDUAL_UPDATES:
            logfire.debug('too many updates, registering all')
            await self.set_commands(commands, guild_id)
            return

        for method, command, reason in updates:
            match method:
                case 'POST':
                    await self.create_command(command, guild_id)
                case 'PATCH':
                    logfire.debug(
                        '{command_name} changed ({reason})',
                        command_name=command.name,
                        reason=', '.join(reason or []))
                    assert command.id is not None
                    await self.edit_command(command.id, command, guild_id)
                case 'DELETE':
                    assert command.id is not None
                    await self.delete_command(command.id, guild_id)
