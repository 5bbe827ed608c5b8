"""Value types shared by the dialogue and call session layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Role = Literal["caller", "assistant"]


@dataclass(frozen=True, slots=True)
class ConversationTurn:
    """One immutable entry of the conversation history."""

    role: Role
    text: str
