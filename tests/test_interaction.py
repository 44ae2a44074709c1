from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from conftest import APPLICATION_ID, FakeRequest, command_payload
from hookline import InteractionClient
from hookline.discord import (
    ApplicationCommandOptionType,
    Interaction,
    MessageFlag,
    ReplyState,
    Snowflake
)


class DictCache:
    def __init__(self) -> None:
        self.channels: dict[int, Any] = {800000000000000001: 'general'}
        self.guilds: dict[int, Any] = {700000000000000001: 'guild'}
        self.members: dict[tuple[int, int], Any] = {
            (700000000000000001, 600000000000000001): 'member'
        }

    def get_channel(self, channel_id: int) -> Any | None:
        return self.channels.get(channel_id)

    def get_guild(self, guild_id: int) -> Any | None:
        return self.guilds.get(guild_id)

    def get_member(self, guild_id: int, user_id: int) -> Any | None:
        return self.members.get((guild_id, user_id))


async def noop(interaction: Interaction) -> None:
    return None


SUB_COMMAND_OPTIONS = [{
    'name': 'roles',
    'type': 2,
    'options': [{
        'name': 'add',
        'type': 1,
        'options': [
            {'name': 'role', 'type': 8, 'value': '500000000000000001'},
            {'name': 'silent', 'type': 5, 'value': True},
        ]
    }]
}]


def test_interaction_parses_ids_from_strings() -> None:
    interaction = Interaction.model_validate(command_payload())

    assert interaction.id == 1200000000000000001
    assert isinstance(interaction.id, Snowflake)
    assert interaction.application_id == APPLICATION_ID
    assert interaction.command_name == 'ping'
    assert interaction.command_id == 1100000000000000001


def test_command_path_follows_groups_and_sub_commands() -> None:
    interaction = Interaction.model_validate(
        command_payload('admin', SUB_COMMAND_OPTIONS))

    assert interaction.command_path == ('admin', 'roles', 'add')
    assert interaction.option_values == {
        'role': '500000000000000001',
        'silent': True
    }
    assert interaction.options[0].type == ApplicationCommandOptionType.SUB_COMMAND_GROUP


def test_plain_command_options() -> None:
    interaction = Interaction.model_validate(command_payload(
        'echo',
        [{'name': 'text', 'type': 3, 'value': 'hello'}]))

    assert interaction.command_path == ('echo',)
    assert interaction.option_values == {'text': 'hello'}


def test_created_at_comes_from_the_id() -> None:
    interaction = Interaction.model_validate(command_payload(
        id=str((1000 << 22) | 1)))

    assert interaction.created_at == datetime.fromtimestamp(
        1420070401, tz=timezone.utc)


def test_author_id_from_member_or_user() -> None:
    in_guild = Interaction.model_validate(command_payload(
        guild_id='700000000000000001',
        member={'user': {'id': '600000000000000001'}}))
    in_dm = Interaction.model_validate(command_payload(
        user={'id': '600000000000000002'}))
    nobody = Interaction.model_validate(command_payload())

    assert in_guild.author_id == 600000000000000001
    assert in_dm.author_id == 600000000000000002
    assert nobody.author_id is None


def test_interaction_is_immutable() -> None:
    interaction = Interaction.model_validate(command_payload())

    with pytest.raises(ValueError):
        interaction.token = 'something else'  # type: ignore[misc]


def test_cache_lookups() -> None:
    client = InteractionClient(
        noop,
        application_id=APPLICATION_ID,
        cache=DictCache())

    interaction = Interaction.model_validate(command_payload(
        guild_id='700000000000000001',
        member={'user': {'id': '600000000000000001'}}
    )).bind(client)

    assert interaction.channel == 'general'
    assert interaction.guild == 'guild'
    assert interaction.member_object == 'member'


def test_cache_lookups_without_cache() -> None:
    client = InteractionClient(noop, application_id=APPLICATION_ID)

    interaction = Interaction.model_validate(command_payload(
        guild_id='700000000000000001',
        member={'user': {'id': '600000000000000001'}}
    )).bind(client)

    assert interaction.channel is None
    assert interaction.guild is None
    assert interaction.member_object is None


def test_unbound_interaction_cannot_reply_synchronously() -> None:
    interaction = Interaction.model_validate(command_payload())

    assert interaction.reply_state == ReplyState.CLOSED
    assert interaction.acknowledge() is False


@pytest.mark.anyio
async def test_followup_always_uses_the_webhook(fake_request: FakeRequest) -> None:
    client = InteractionClient(noop, application_id=APPLICATION_ID)
    interaction = Interaction.model_validate(command_payload()).bind(client)

    message = await interaction.followup('later', flags=MessageFlag.EPHEMERAL)

    assert message.content == 'later'
    assert message.id == 900000000000000001
    assert fake_request.calls[0].url.endswith(
        f'/webhooks/{APPLICATION_ID}/continuation-token')
    assert fake_request.calls[0].json == {
        'content': 'later',
        'flags': MessageFlag.EPHEMERAL.value
    }


@pytest.mark.anyio
async def test_unbound_reply_falls_back_to_follow_up(fake_request: FakeRequest) -> None:
    interaction = Interaction.model_validate(command_payload())

    message = await interaction.reply('hello')

    assert message is not None
    assert [call.json for call in fake_request.calls] == [{'content': 'hello'}]
