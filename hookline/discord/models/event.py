from __future__ import annotations

from pydantic import Field

from hookline.discord.enums import GatewayOpCode

from .base import RawBaseModel


class GatewayEvent(RawBaseModel):
    op_code: GatewayOpCode = Field(alias='op')
    data: dict | None = Field(None, alias='d')
    sequence: int | None = Field(None, alias='s')
    name: str | None = Field(None, alias='t')
