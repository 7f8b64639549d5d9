"""
Chat platform port and render model.

The discord.py implementation lives in ``signup_bot.gateway.discord_gateway``.
"""

from .events import EventKind, InteractionEvent, CollectorFilter, TimedOut, TIMED_OUT
from .view import (
    ButtonStyle, ButtonSpec, EmbedField, EmbedSpec, MessageView, chunk_buttons
)
from .base import ChannelRef, MessageRef, ChatGateway, Responder

__all__ = [
    'EventKind',
    'InteractionEvent',
    'CollectorFilter',
    'TimedOut',
    'TIMED_OUT',
    'ButtonStyle',
    'ButtonSpec',
    'EmbedField',
    'EmbedSpec',
    'MessageView',
    'chunk_buttons',
    'ChannelRef',
    'MessageRef',
    'ChatGateway',
    'Responder',
]
