from .message import AllowedMentions, Embed, EmbedField, EmbedFooter, Message, MessagePayload
from .interaction import (
    ApplicationCommandInteractionDataOption,
    ApplicationCommandInteractionData,
    Interaction
)
from .response import InteractionResponse
from .event import GatewayEvent
from .reply import SyncReply
from .webhook import Webhook


__all__ = (
    'AllowedMentions',
    'ApplicationCommandInteractionData',
    'ApplicationCommandInteractionDataOption',
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
