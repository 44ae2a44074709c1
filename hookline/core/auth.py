from typing import Annotated

from nacl.exceptions import CryptoError
from fastapi import Request, Header
from nacl.signing import VerifyKey

from hookline.errors import InvalidSignature


def verify_signature(
    public_key: str | None,
    timestamp: str | None,
    body: bytes,
    signature: str | None
) -> bool:
    if not (public_key and timestamp and signature):
        return False

    try:
        VerifyKey(bytes.fromhex(public_key)).verify(
            timestamp.encode() + body,
            bytes.fromhex(signature))
    except (CryptoError, ValueError):
        # ? nacl raises its own ValueError subclass on malformed keys and signatures
        return False

    return True


async def discord_key_validator(
    request: Request,
    x_signature_ed25519: Annotated[str | None, Header()] = None,
    x_signature_timestamp: Annotated[str | None, Header()] = None,
) -> bytes:
    # ? the whole body has to be read before anything in it can be trusted
    body = await request.body()

    if not verify_signature(
        request.app.state.client.public_key,
        x_signature_timestamp,
        body,
        x_signature_ed25519
    ):
        raise InvalidSignature('invalid request signature')

    return body


async def gateway_key_validator(
    request: Request,
    x_signature_ed25519: Annotated[str | None, Header()] = None,
    x_signature_timestamp: Annotated[str | None, Header()] = None,
) -> bytes:
    body = await request.body()

    if not verify_signature(
        request.app.state.env.gateway_key,
        x_signature_timestamp,
        body,
        x_signature_ed25519
    ):
        raise InvalidSignature('invalid gateway signature')

    return body
