"""Test harness configuration.

Every outbound REST call goes through `hookline.discord.http.request`; the
`fake_request` fixture swaps it out at each call site and records what would
have been sent.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import logfire
import pytest

from hookline import client as client_module
from hookline.discord import commands as commands_module
from hookline.discord.http import Route
from hookline.discord.models import webhook as webhook_module


logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture()
def anyio_backend() -> str:
    return 'asyncio'


@dataclass
class RecordedCall:
    method: str
    path: str
    url: str
    kwargs: dict[str, Any]

    @property
    def json(self) -> Any:
        return self.kwargs.get('json')


@dataclass
class FakeRequest:
    calls: list[RecordedCall] = field(default_factory=list)
    responses: dict[tuple[str, str], Any] = field(default_factory=dict)
    delays: dict[str, float] = field(default_factory=dict)
    log: list[str] = field(default_factory=list)

    def respond(self, method: str, path: str, payload: Any) -> None:
        self.responses[(method, path)] = payload

    def delay(self, path: str, seconds: float) -> None:
        self.delays[path] = seconds

    async def __call__(self, route: Route, **kwargs: Any) -> Any:
        self.log.append(f'start {route.path}')
        self.calls.append(RecordedCall(
            method=route.method,
            path=route.path,
            url=route.url,
            kwargs=kwargs))

        if route.path in self.delays:
            await asyncio.sleep(self.delays[route.path])

        self.log.append(f'end {route.path}')

        if (route.method, route.path) in self.responses:
            return self.responses[(route.method, route.path)]

        if route.path == '/webhooks/{webhook_id}/{webhook_token}':
            json = kwargs.get('json') or {}
            return {
                'id': '900000000000000001',
                'channel_id': '800000000000000001',
                'content': json.get('content', ''),
            }

        return None


@pytest.fixture()
def fake_request(monkeypatch: pytest.MonkeyPatch) -> FakeRequest:
    fake = FakeRequest()

    for module in (client_module, commands_module, webhook_module):
        monkeypatch.setattr(module, 'request', fake)

    return fake


async def drain() -> None:
    """wait for every background handler task to finish"""
    loop = asyncio.get_running_loop()

    while pending := [
        task
        for task in client_module.RUNNING
        if task.get_loop() is loop
    ]:
        await asyncio.gather(*pending, return_exceptions=True)


BOT_TOKEN = 'MTIzNDU2Nzg5MDEyMzQ1Njc4.GabcdE.abcdefghijklmnopqrstuvwxyz0'
APPLICATION_ID = 123456789012345678


def command_payload(
    name: str = 'ping',
    options: list[dict] | None = None,
    **extra: Any
) -> dict[str, Any]:
    data: dict[str, Any] = {
        'id': '1100000000000000001',
        'name': name,
        'type': 1,
    }

    if options is not None:
        data['options'] = options

    return {
        'id': '1200000000000000001',
        'application_id': str(APPLICATION_ID),
        'type': 2,
        'token': 'continuation-token',
        'version': 1,
        'data': data,
        'channel_id': '800000000000000001',
        **extra
    }
