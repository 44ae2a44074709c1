from __future__ import annotations

from datetime import datetime, timezone

from pydantic_core import CoreSchema, core_schema
from pydantic.json_schema import JsonSchemaValue
from pydantic import GetJsonSchemaHandler


__all__ = ('Snowflake', 'snowflake_time')


DISCORD_EPOCH = 1420070400000


class Snowflake(int):
    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        _source_type: type[Snowflake] | None,
        _handler: GetJsonSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.union_schema([
                core_schema.int_schema(),
                core_schema.str_schema(pattern=r'^\d+$')
            ]),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda x: str(x),
                return_schema=core_schema.str_schema(),
            )
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls,
        _core_schema: CoreSchema,
        _handler: GetJsonSchemaHandler,
    ) -> JsonSchemaValue:
        return {'type': 'string', 'format': 'snowflake'}


def snowflake_time(snowflake: int) -> datetime:
    return datetime.fromtimestamp(
        ((snowflake >> 22) + DISCORD_EPOCH) / 1000,
        tz=timezone.utc
    )
