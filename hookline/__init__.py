from .client import InteractionClient, InteractionHandler
from .env import Env
from .version import VERSION

__all__ = (
    'Env',
    'InteractionClient',
    'InteractionHandler',
    'VERSION',
)
