# The MIT License (MIT)

# Copyright (c) 2015-2021 Rapptz
# Copyright (c) 2021-present Pycord Development

# Permission is hereby granted, free of charge, to any person obtaining a
# copy of this software and associated documentation files (the "Software"),
# to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense,
# and/or sell copies of the Software, and to permit persons to whom the
# Software is furnished to do so, subject to the following conditions:

# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.

# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS
# OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING
# FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER
# DEALINGS IN THE SOFTWARE.
# ? the http layer started out as py-cord's, rate limit handling still follows it
from __future__ import annotations

from asyncio import Event, Semaphore, sleep
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import quote
from sys import version_info
from base64 import b64decode
from re import fullmatch
from time import time

from aiohttp import __version__ as aiohttp_version, FormData, ClientResponse
from orjson import dumps, loads
import logfire

from hookline.errors import (
    HTTPException,
    InteractionError,
    ServerError,
    Unauthorized,
    BadRequest,
    Forbidden,
    NotFound
)
from hookline.core.session import get_session
from hookline.env import DEFAULT_BASE_URL
from hookline.version import VERSION


if TYPE_CHECKING:
    from collections.abc import Sequence
    from io import BufferedIOBase


__all__ = (
    'File',
    'Route',
    'encode_multipart',
    'multipart_form',
    'get_bot_id',
    'request',
    'set_base_url',
)


USER_AGENT = (
    f'DiscordBot (https://github.com/hookline/hookline, {VERSION}) '
    f'Python/{version_info.major}.{version_info.minor}.{version_info.micro} '
    f'aiohttp/{aiohttp_version}'
)

MAX_TRIES = 5
RETRY_STATUSES = frozenset({500, 502, 503, 504})
ERRORS: dict[int, type[HTTPException]] = {
    400: BadRequest,
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
}
# ? bot tokens start with the base64 encoded application id
TOKEN_PATTERN = (
    r'([A-Za-z0-9_-]{17,28})\.[A-Za-z0-9_-]{6,7}\.[A-Za-z0-9_-]{27,38}'
)
# ? route params that scope a rate limit bucket, in bucket key order
BUCKET_PARAMS = (
    'webhook_id',
    'webhook_token',
    'interaction_id',
    'interaction_token',
    'application_id',
    'guild_id',
)

base_url = DEFAULT_BASE_URL
global_limit = Event()
global_limit.set()
_buckets: dict[str, Bucket] = {}


def set_base_url(url: str) -> None:
    global base_url
    base_url = url.rstrip('/')


@dataclass
class Bucket:
    semaphore: Semaphore = field(default_factory=lambda: Semaphore(1))
    limit: int = 1
    remaining: int = 1
    reset: float = 0.0

    def update(self, response: ClientResponse) -> None:
        headers = response.headers

        if (limit := headers.get('X-RateLimit-Limit')) is not None:
            if int(limit) != self.limit:
                self.limit = int(limit)
                self.semaphore = Semaphore(max(self.limit // 5, 1))

        if (remaining := headers.get('X-RateLimit-Remaining')) is not None:
            self.remaining = int(remaining)

        if (reset := headers.get('X-RateLimit-Reset')) is not None:
            self.reset = float(reset)

    async def wait(self) -> None:
        if self.remaining == 0 and (delay := self.reset - time()) > 0:
            await sleep(delay)


class Route:
    """a REST endpoint, `path` keeps its placeholders for bucketing"""

    def __init__(
        self,
        method: str,
        path: str,
        **params  # noqa: ANN003
    ) -> None:
        self.method = method
        self.path = path
        self.params = params
        self.url = base_url + path.format_map({
            key: quote(value, safe='') if isinstance(value, str) else value
            for key, value in params.items()
        })

    def __repr__(self) -> str:
        return f'<Route {self.method} {self.path}>'

    @property
    def bucket(self) -> str:
        return ':'.join([
            *(
                str(self.params[key])
                for key in BUCKET_PARAMS
                if key in self.params
            ),
            self.path
        ])


class File:
    """binary attachment, read from its starting position on every upload"""

    def __init__(
        self,
        data: BufferedIOBase,
        filename: str | None = None,
        description: str | None = None,
        spoiler: bool = False,
    ) -> None:
        self.data = data
        self.description = description
        self._start = data.tell()

        if spoiler and filename is not None and not filename.startswith('SPOILER_'):
            filename = f'SPOILER_{filename}'

        self.filename = filename
        self.spoiler = spoiler or (
            filename is not None and filename.startswith('SPOILER_'))

    def read(self) -> bytes:
        self.data.seek(self._start)
        return self.data.read()

    def as_payload(self, index: int) -> dict[str, Any]:
        return {
            'id': index,
            'filename': self.filename,
            'description': self.description,
        }

    def as_form_dict(self, index: int) -> dict[str, Any]:
        return {
            'name': f'files[{index}]',
            'value': self.read(),
            'filename': self.filename,
            'content_type': 'application/octet-stream',
        }


def multipart_form(
    json: dict[str, Any],
    files: Sequence[File]
) -> list[dict[str, Any]]:
    return [
        {
            'name': 'payload_json',
            'value': dumps(json).decode()
        },
        *(
            file.as_form_dict(index)
            for index, file in enumerate(files)
        )
    ]


def _form_data(json: dict[str, Any], files: Sequence[File]) -> FormData:
    form_data = FormData(quote_fields=False)

    for params in multipart_form(json, files):
        form_data.add_field(**params)

    return form_data


class _BufferWriter:
    def __init__(self) -> None:
        self.chunks: list[bytes] = []

    async def write(self, chunk: bytes) -> None:
        self.chunks.append(bytes(chunk))


async def encode_multipart(
    json: dict[str, Any],
    files: Sequence[File]
) -> tuple[bytes, str]:
    """render a multipart body in memory, returns (body, content_type)"""
    writer = _form_data(json, files)()
    buffer = _BufferWriter()

    await writer.write(buffer)

    return b''.join(buffer.chunks), writer.content_type


def get_bot_id(token: str) -> int:
    m = fullmatch(TOKEN_PATTERN, token)

    if m is None:
        raise InteractionError('invalid token format')

    segment = m.group(1)

    try:
        return int(b64decode(
            segment + '=' * (-len(segment) % 4),
            altchars=b'-_'
        ).decode())
    except ValueError as e:
        raise InteractionError('invalid token format') from e


async def _read(response: ClientResponse) -> Any:  # noqa: ANN401
    text = await response.text(encoding='utf-8')

    if text and response.content_type == 'application/json':
        return loads(text)

    return text


async def _wait_rate_limit(route: Route, body: dict[str, Any]) -> None:
    retry_after = float(body.get('retry_after', 1))
    is_global = bool(body.get('global', False))

    logfire.debug(
        'rate limited on {route}, retrying in {retry_after}s',
        route=route.path,
        retry_after=retry_after,
        is_global=is_global)

    if not is_global:
        await sleep(retry_after)
        return

    global_limit.clear()

    try:
        await sleep(retry_after)
    finally:
        global_limit.set()


async def request(
    route: Route,
    *,
    json: dict[str, Any] | list[Any] | None = None,
    files: Sequence[File] | None = None,
    token: str | None = None,
    **kwargs,  # noqa: ANN003
) -> Any:  # noqa: ANN401
    """send a request, waiting out rate limits and retrying server errors

    registry routes are authorized with the bot `token`, interaction
    callbacks and follow-ups by the interaction token in their url.
    with `files` the json goes out as `payload_json` of a multipart body
    """
    headers = {'User-Agent': USER_AGENT}

    if token:
        headers['Authorization'] = f'Bot {token}'

    if json is not None and not files:
        headers['Content-Type'] = 'application/json'

    bucket = _buckets.setdefault(route.bucket, Bucket())

    await global_limit.wait()
    await bucket.wait()

    async with bucket.semaphore:
        for attempt in range(MAX_TRIES):
            # ? a form can only be sent once, build it fresh for every attempt
            body: Any = (
                _form_data(json if isinstance(json, dict) else {}, files)
                if files else
                dumps(json) if json is not None else
                None
            )

            async with get_session().request(
                route.method,
                route.url,
                data=body,
                headers=headers,
                **kwargs,
            ) as response:
                bucket.update(response)
                data = await _read(response)

                if 200 <= response.status < 300:
                    return data or None

                if response.status == 429 and isinstance(data, dict):
                    await _wait_rate_limit(route, data)
                    continue

                if response.status in RETRY_STATUSES and attempt < MAX_TRIES - 1:
                    await sleep(1 + attempt * 2)
                    continue

                raise ERRORS.get(
                    response.status,
                    ServerError if response.status >= 500 else HTTPException
                )(data)

    raise HTTPException(f'{route!r} is still rate limited after {MAX_TRIES} tries')
