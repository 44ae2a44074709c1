from __future__ import annotations

from logging import getLogger, Filter, LogRecord
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, Response
import logfire

from hookline.errors import InvalidSignature
from hookline.version import VERSION
from hookline.env import Env

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from hookline.client import InteractionClient


__all__ = (
    'configure_logfire',
    'create_app',
)


class LocalHealthcheckFilter(Filter):
    def filter(self, record: LogRecord) -> bool:
        return not bool(
            isinstance(record.args, tuple) and
            len(record.args) == 5 and
            all((
                str(record.args[0]).startswith('172'),
                record.args[1] == 'GET',
                record.args[2] == '/healthcheck',
                record.args[4] == 204
            ))
        )


getLogger('uvicorn.access').addFilter(LocalHealthcheckFilter())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # noqa: ARG001
    from .session import close_session

    yield

    await close_session()
    logfire.info('shutting down')


def configure_logfire(app: FastAPI, env: Env) -> None:
    if not env.logfire_token:
        return

    logfire.configure(
        service_name='hookline' + ('-dev' if env.dev else ''),
        service_version=VERSION,
        token=env.logfire_token,
        environment='development' if env.dev else 'production',
        scrubbing=False if env.dev else None,
        console=False
    )
    logfire.instrument_aiohttp_client()
    logfire.instrument_fastapi(
        app,
        capture_headers=app.debug,
        excluded_urls=['/healthcheck']
    )


async def on_invalid_signature(
    request: Request,  # noqa: ARG001
    error: InvalidSignature  # noqa: ARG001
) -> Response:
    # ? no body, nothing about the failure is leaked
    return Response(status_code=403)


def create_app(
    client: InteractionClient,
    env: Env | None = None
) -> FastAPI:
    from hookline.discord.http import set_base_url
    from hookline.routers import interaction

    env = env or Env.new()

    set_base_url(env.base_url)

    app = FastAPI(
        title='hookline',
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        version=VERSION,
        debug=env.dev
    )

    app.state.client = client
    app.state.env = env

    app.add_exception_handler(InvalidSignature, on_invalid_signature)

    configure_logfire(app, env)

    app.include_router(interaction.router)

    @app.get(
        '/healthcheck',
        status_code=204,
        include_in_schema=False)
    async def get__healthcheck() -> Response:
        return Response(status_code=204)

    return app
