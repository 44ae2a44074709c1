from __future__ import annotations

from collections.abc import Iterator
from time import sleep, time

import pytest
from fastapi.testclient import TestClient
from nacl.signing import SigningKey
from orjson import dumps

from conftest import APPLICATION_ID, FakeRequest, command_payload
from hookline import Env, InteractionClient
from hookline.core import create_app
from hookline.discord import Interaction


SIGNING_KEY = SigningKey.generate()
GATEWAY_KEY = SigningKey.generate()

HANDLED: list[Interaction] = []


async def handler(interaction: Interaction) -> str:
    HANDLED.append(interaction)
    return f'pong from {interaction.command_name}'


def signed(
    body: bytes,
    key: SigningKey = SIGNING_KEY,
    timestamp: str = '1700000000'
) -> dict[str, str]:
    return {
        'X-Signature-Ed25519': key.sign(timestamp.encode() + body).signature.hex(),
        'X-Signature-Timestamp': timestamp,
        'Content-Type': 'application/json'
    }


@pytest.fixture()
def http(fake_request: FakeRequest) -> Iterator[TestClient]:
    HANDLED.clear()

    client = InteractionClient(
        handler,
        public_key=SIGNING_KEY.verify_key.encode().hex(),
        application_id=APPLICATION_ID)

    env = Env(
        public_key=SIGNING_KEY.verify_key.encode().hex(),
        gateway_key=GATEWAY_KEY.verify_key.encode().hex(),
        dev=False)

    with TestClient(create_app(client, env)) as test_client:
        yield test_client


def test_ping(http: TestClient) -> None:
    body = dumps({'type': 1, 'id': '1', 'token': 't'})

    response = http.post('/interaction', content=body, headers=signed(body))

    assert response.status_code == 200
    assert response.json() == {'type': 1}


def test_legacy_route(http: TestClient) -> None:
    body = dumps({'type': 1})

    response = http.post('/discord/interaction', content=body, headers=signed(body))

    assert response.json() == {'type': 1}


def test_command(http: TestClient) -> None:
    body = dumps(command_payload())

    response = http.post('/interaction', content=body, headers=signed(body))

    assert response.status_code == 200
    assert response.json() == {
        'type': 4,
        'data': {'content': 'pong from ping'}
    }
    assert len(HANDLED) == 1


def test_tampered_body_is_forbidden(http: TestClient) -> None:
    body = dumps(command_payload())
    headers = signed(body)

    response = http.post(
        '/interaction',
        content=dumps(command_payload('admin')),
        headers=headers)

    assert response.status_code == 403
    assert response.content == b''
    assert HANDLED == []


def test_signature_from_another_key_is_forbidden(http: TestClient) -> None:
    body = dumps(command_payload())

    response = http.post(
        '/interaction',
        content=body,
        headers=signed(body, key=SigningKey.generate()))

    assert response.status_code == 403
    assert response.content == b''
    assert HANDLED == []


def test_missing_signature_is_forbidden(http: TestClient) -> None:
    response = http.post('/interaction', content=dumps(command_payload()))

    assert response.status_code == 403
    assert response.content == b''
    assert HANDLED == []


def test_malformed_signature_is_forbidden(http: TestClient) -> None:
    body = dumps({'type': 1})

    response = http.post(
        '/interaction',
        content=body,
        headers=signed(body) | {'X-Signature-Ed25519': 'not hex'})

    assert response.status_code == 403
    assert response.content == b''


def test_signed_garbage_is_a_bad_request(http: TestClient) -> None:
    body = b'{not json'

    response = http.post('/interaction', content=body, headers=signed(body))

    assert response.status_code == 400


def test_unknown_interaction_type_is_a_bad_request(http: TestClient) -> None:
    body = dumps({'type': 99})

    response = http.post('/interaction', content=body, headers=signed(body))

    assert response.status_code == 400
    assert HANDLED == []


def test_incomplete_command_is_a_bad_request(http: TestClient) -> None:
    body = dumps({'type': 2, 'id': '1'})

    response = http.post('/interaction', content=body, headers=signed(body))

    assert response.status_code == 400
    assert HANDLED == []


def test_gateway_event_requires_gateway_signature(http: TestClient) -> None:
    body = dumps({'op': 0, 't': 'INTERACTION_CREATE', 'd': command_payload()})

    response = http.post('/event', content=body, headers=signed(body))

    assert response.status_code == 403


def test_gateway_event_ignores_other_events(
    http: TestClient,
    fake_request: FakeRequest
) -> None:
    body = dumps({'op': 0, 't': 'MESSAGE_CREATE', 'd': {}})

    response = http.post('/event', content=body, headers=signed(body, GATEWAY_KEY))

    assert response.status_code == 200
    assert response.text == 'MESSAGE_CREATE'
    assert fake_request.calls == []


def test_gateway_interaction_is_answered_by_callback(
    http: TestClient,
    fake_request: FakeRequest
) -> None:
    body = dumps({'op': 0, 't': 'INTERACTION_CREATE', 'd': command_payload()})

    response = http.post('/event', content=body, headers=signed(body, GATEWAY_KEY))

    assert response.status_code == 200

    timeout = time() + 2
    while not fake_request.calls and time() < timeout:
        sleep(0.01)

    assert len(fake_request.calls) == 1
    assert fake_request.calls[0].path.endswith('/callback')
    assert fake_request.calls[0].json == {
        'type': 4,
        'data': {'content': 'pong from ping'}
    }


def test_healthcheck(http: TestClient) -> None:
    response = http.get('/healthcheck')

    assert response.status_code == 204
