"""
Command table entries and argument parsing shared by command handlers.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Awaitable, Callable, List, Optional

from ..exceptions import InvalidInput
from ..gateway.base import Responder
from ..flow_logging import LogTrace
from ..interactions.context import FlowContext

CommandHandler = Callable[..., Awaitable[None]]

DATETIME_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M:%S")


@dataclass(frozen=True)
class CommandSpec:
    """A slash command: its handler, help text and whether it is admin only.

    Handlers are called as ``handler(ctx, responder, invoker_id, trace, **arguments)``.
    """
    handler: CommandHandler
    description: str
    admin: bool = True


def parse_datetime(value: str) -> datetime:
    """Parse ``YYYY-MM-DD HH:MM`` as UTC."""
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise InvalidInput(f"`{value}` is not a valid date. Use `YYYY-MM-DD HH:MM` in UTC.")


def parse_day(value: str) -> date:
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidInput(f"`{value}` is not a valid day. Use `YYYY-MM-DD`.")


def parse_ids(value: Optional[str]) -> List[int]:
    """Parse a comma or space separated list of ids."""
    ids = []
    for part in parse_reprs(value):
        if not part.isdigit():
            raise InvalidInput(f"`{part}` is not an id.")
        ids.append(int(part))
    return ids


def parse_reprs(value: Optional[str]) -> List[str]:
    """Split a space or comma separated list of short names."""
    if not value:
        return []
    return [part for part in re.split(r"[\s,]+", value.strip()) if part]


def code_list(lines: List[str], empty: str = "Nothing here yet.") -> str:
    if not lines:
        return empty
    return "```\n" + "\n".join(lines) + "\n```"


__all__ = [
    'CommandHandler',
    'CommandSpec',
    'FlowContext',
    'LogTrace',
    'Responder',
    'parse_datetime',
    'parse_day',
    'parse_ids',
    'parse_reprs',
    'code_list',
]
