from typing import Self
from os import environ

from pydantic import BaseModel


DEFAULT_BASE_URL = 'https://discord.com/api/v10'


class Env(BaseModel):
    bot_token: str = ''
    public_key: str = ''
    explicit_application_id: int | None = None
    gateway_key: str | None = None
    deadline_ms: int = 250
    dev: bool = True
    logfire_token: str | None = None
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def new(cls) -> Self:
        return cls.model_validate({
            'bot_token': environ.get('BOT_TOKEN', ''),
            'public_key': environ.get('PUBLIC_KEY', ''),
            'explicit_application_id': (
                int(environ['APPLICATION_ID'])
                if environ.get('APPLICATION_ID') else None),
            'gateway_key': environ.get('GATEWAY_KEY') or None,
            'deadline_ms': int(environ.get('DEADLINE_MS', '250')),
            'dev': environ.get('DEV', '1') != '0',
            'logfire_token': environ.get('LOGFIRE_TOKEN') or None,
            'base_url': environ.get('BASE_URL', DEFAULT_BASE_URL)
        })

    @property
    def deadline(self) -> float:
        return self.deadline_ms / 1000

