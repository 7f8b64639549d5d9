"""
Platform independent message render model.

Flows and the board describe messages with these value objects; the gateway
turns them into Discord embeds and components.
"""

import hashlib
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

# Discord limits
MAX_ROWS = 5
MAX_BUTTONS_PER_ROW = 5
MAX_LABEL_LENGTH = 80

EMBED_COLOR = 0x63332D


class ButtonStyle(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SUCCESS = "success"
    DANGER = "danger"
    LINK = "link"


@dataclass(frozen=True)
class ButtonSpec:
    custom_id: Optional[str]
    label: str
    style: ButtonStyle = ButtonStyle.SECONDARY
    emoji: Optional[str] = None
    disabled: bool = False
    url: Optional[str] = None

    def __post_init__(self):
        if len(self.label) > MAX_LABEL_LENGTH:
            object.__setattr__(self, "label", self.label[:MAX_LABEL_LENGTH - 1] + "…")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "custom_id": self.custom_id,
            "label": self.label,
            "style": self.style.value,
            "emoji": self.emoji,
            "disabled": self.disabled,
            "url": self.url,
        }


@dataclass(frozen=True)
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass(frozen=True)
class EmbedSpec:
    title: Optional[str] = None
    description: Optional[str] = None
    fields: Tuple[EmbedField, ...] = ()
    footer: Optional[str] = None
    color: int = EMBED_COLOR
    url: Optional[str] = None

    def with_field(self, name: str, value: str, inline: bool = False) -> 'EmbedSpec':
        return replace(self, fields=self.fields + (EmbedField(name, value, inline),))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "fields": [[f.name, f.value, f.inline] for f in self.fields],
            "footer": self.footer,
            "color": self.color,
            "url": self.url,
        }


@dataclass(frozen=True)
class MessageView:
    """Full content of a message: text, embeds and rows of buttons."""
    content: Optional[str] = None
    embeds: Tuple[EmbedSpec, ...] = ()
    rows: Tuple[Tuple[ButtonSpec, ...], ...] = field(default_factory=tuple)

    def __post_init__(self):
        if len(self.rows) > MAX_ROWS:
            raise ValueError(f"A message holds at most {MAX_ROWS} component rows")
        for row in self.rows:
            if len(row) > MAX_BUTTONS_PER_ROW:
                raise ValueError(f"A row holds at most {MAX_BUTTONS_PER_ROW} buttons")

    @classmethod
    def info(cls, text: str, title: Optional[str] = None) -> 'MessageView':
        return cls(embeds=(EmbedSpec(title=title, description=text),))

    def with_rows(self, *rows: Sequence[ButtonSpec]) -> 'MessageView':
        """Copy of this view with ``rows`` appended."""
        return replace(self, rows=self.rows + tuple(tuple(row) for row in rows if row))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "embeds": [e.to_dict() for e in self.embeds],
            "rows": [[b.to_dict() for b in row] for row in self.rows],
        }

    def fingerprint(self) -> str:
        """Stable hash of the rendered content, used to skip no-op edits."""
        payload = json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def chunk_buttons(buttons: Sequence[ButtonSpec], per_row: int) -> Tuple[Tuple[ButtonSpec, ...], ...]:
    """Split buttons into rows of at most ``per_row``."""
    return tuple(
        tuple(buttons[i:i + per_row]) for i in range(0, len(buttons), per_row)
    )
