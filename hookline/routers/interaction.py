from typing import Any

from fastapi.responses import Response, JSONResponse
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from orjson import loads
import logfire

from hookline.core.auth import discord_key_validator, gateway_key_validator
from hookline.discord.models import GatewayEvent, InteractionResponse
from hookline.discord.http import encode_multipart
from hookline.client import InteractionClient, create_strong_task
from hookline.errors import on_event_error


router = APIRouter(include_in_schema=False)


async def render_response(response: InteractionResponse) -> Response:
    if not response.has_files:
        return JSONResponse(response.as_payload())

    body, content_type = await encode_multipart(
        response.as_payload(),
        response.files)

    return Response(body, media_type=content_type)


def _decode(body: bytes) -> dict[str, Any]:
    try:
        data = loads(body)
    except ValueError as e:
        raise HTTPException(400, 'Invalid request body') from e

    if not isinstance(data, dict):
        raise HTTPException(400, 'Invalid request body')

    return data


@router.post('/interaction')
@router.post('/discord/interaction')  # ? legacy route
async def post__interaction(
    request: Request,
    body: bytes = Depends(discord_key_validator)  # noqa: B008
) -> Response:
    data = _decode(body)
    client: InteractionClient = request.app.state.client

    try:
        response = await client.handle(data)
    except ValueError as e:
        # ? includes pydantic validation errors
        raise HTTPException(400, 'Invalid interaction data') from e

    return await render_response(response)


async def _dispatch_gateway_interaction(
    client: InteractionClient,
    data: dict[str, Any]
) -> None:
    try:
        await client.handle_from_gateway(data)
    except Exception as e:
        await on_event_error('INTERACTION_CREATE', e)


@router.post('/event')
async def post__event(
    request: Request,
    body: bytes = Depends(gateway_key_validator)  # noqa: B008
) -> Response:
    try:
        event = GatewayEvent.model_validate(_decode(body))
    except ValidationError as e:
        raise HTTPException(400, 'Invalid gateway event') from e

    if event.name != 'INTERACTION_CREATE' or event.data is None:
        return Response(event.name or '', status_code=200)

    logfire.debug(
        'gateway interaction {interaction_id}',
        interaction_id=event.data.get('id'))

    create_strong_task(_dispatch_gateway_interaction(
        request.app.state.client,
        event.data))

    return Response(event.name, status_code=200)
