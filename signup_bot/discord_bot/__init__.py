"""
Discord client: event routing and slash commands.
"""

from .bot import SignupBot

__all__ = ['SignupBot']
