from .commands import (
    ApplicationCommandOptionChoice,
    ApplicationCommandOption,
    ApplicationCommand,
    CommandRegistry
)
from .http import Route, request, File
from .cache import DiscordCache
from .types import Snowflake
from .enums import (
    ApplicationCommandOptionType,
    InteractionCallbackType,
    ApplicationCommandType,
    AllowedMentionType,
    InteractionType,
    GatewayOpCode,
    MessageFlag,
    ReplyState
)
from .models import *  # noqa: F403


__all__ = (  # noqa: RUF022
    # Library Functions and Classes
    'CommandRegistry',
    'DiscordCache',
    'File',
    'Route',
    'request',
    # Types
    'Snowflake',
    # Enums
    'AllowedMentionType',
    'ApplicationCommandOptionType',
    'ApplicationCommandType',
    'GatewayOpCode',
    'InteractionCallbackType',
    'InteractionType',
    'MessageFlag',
    'ReplyState',
    # Models
    'AllowedMentions',
    'ApplicationCommand',
    'ApplicationCommandInteractionData',
    'ApplicationCommandInteractionDataOption',
    'ApplicationCommandOption',
    'ApplicationCommandOptionChoice',
    'Embed',
    'EmbedField',
    'EmbedFooter',
    'GatewayEvent',
    'Interaction',
    'InteractionResponse',
    'Message',
    'MessagePayload',
    'SyncReply',
    'Webhook',
)
