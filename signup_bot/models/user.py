"""
Registered user model.
"""

import re
from dataclasses import dataclass

from .base import BaseModel

# Guild Wars 2 account names, e.g. "Some Name.1234"
GW2_ACCOUNT_PATTERN = re.compile(r"^[a-zA-Z\s]{3,27}\.[0-9]{4}$")


def is_valid_gw2_id(value: str) -> bool:
    return bool(GW2_ACCOUNT_PATTERN.match(value))


@dataclass(frozen=True)
class User(BaseModel):
    id: int
    discord_id: int
    gw2_id: str
