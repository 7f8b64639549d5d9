"""
Signup Bot - Discord bot for event sign-ups.

Users register, join trainings with their preferred roles and staff manage
trainings, roles, tiers and bosses. A set of public board channels mirrors
the active trainings.
"""

__version__ = "1.0.0"
