from aiohttp import ClientSession


_session: ClientSession | None = None


def get_session() -> ClientSession:
    global _session

    # ? created lazily so it binds to the running loop
    if _session is None or _session.closed:
        _session = ClientSession()

    return _session


async def close_session() -> None:
    global _session

    if _session is not None and not _session.closed:
        await _session.close()

    _session = None
