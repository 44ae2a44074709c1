from __future__ import annotations

from typing import TYPE_CHECKING, Any

import logfire


if TYPE_CHECKING:
    from .discord.models import Interaction


class BaseHooklineException(Exception):
    ...


class HooklineException(BaseHooklineException):
    ...


class HTTPException(BaseHooklineException):
    status_code: int = 0

    def __init__(self, detail: Any | None = None) -> None:  # noqa: ANN401
        self.detail = detail
        super().__init__(detail)


class BadRequest(HTTPException):
    status_code: int = 400


class Unauthorized(HTTPException):
    status_code: int = 401


class Forbidden(HTTPException):
    status_code: int = 403


class NotFound(HTTPException):
    status_code: int = 404


class ServerError(HTTPException):
    status_code: int = 500


class InteractionError(BaseHooklineException):
    ...


class InvalidSignature(BaseHooklineException):
    ...


async def on_event_error(event: str, error: BaseException) -> None:
    if isinstance(error, InteractionError):
        logfire.warn(
            '{event} event error: {error}',
            event=event,
            error=str(error))
        return

    logfire.error(
        '{event} event error',
        event=event,
        _exc_info=error)


async def on_interaction_error(
    interaction: Interaction,
    error: BaseException
) -> None:
    attributes = {
        'interaction_id': interaction.id,
        'command_name': interaction.command_name
    }

    # ? expected errors are the user's fault, not ours
    if isinstance(error, InteractionError):
        logfire.warn(
            'interaction error: {error}',
            error=str(error),
            **attributes)
        return

    logfire.error(
        'interaction error',
        _exc_info=error,
        **attributes)
