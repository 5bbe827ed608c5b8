"""Bounded conversation memory and reply generation for one call."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable

from agents.errors import GenerationError
from agents.schemas import ConversationTurn, Role
from agents.state_utils import build_llm_history
from llm.base import BaseLLMClient

LOGGER = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are the front desk voice of a busy studio, speaking with a caller on the phone. "
    "Always reply in the language the caller uses. "
    "Keep every reply to one or two short spoken sentences. "
    "When it helps, ask exactly one clarifying or scheduling question. "
    "Never say or imply that you are an AI, a bot or an automated system."
)

DEFAULT_MAX_TURNS = 20


class DialogueEngine:
    """Keeps the last ``max_turns`` turns and asks the LLM for the next reply."""

    def __init__(
        self,
        llm: BaseLLMClient,
        *,
        max_turns: int = DEFAULT_MAX_TURNS,
        system_prompt: str = SYSTEM_PROMPT,
        temperature: float = 0.4,
        max_tokens: int = 120,
    ) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be positive")
        self._llm = llm
        self._history: deque[ConversationTurn] = deque(maxlen=max_turns)
        self._system_prompt = system_prompt
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def max_turns(self) -> int:
        return self._history.maxlen or 0

    @property
    def history(self) -> list[ConversationTurn]:
        return list(self._history)

    def record_turn(self, role: Role, text: str) -> ConversationTurn:
        turn = ConversationTurn(role=role, text=text)
        # deque(maxlen=...) drops from the left once full.
        self._history.append(turn)
        return turn

    async def generate_reply(self, history: Iterable[ConversationTurn], caller_text: str) -> str:
        messages = build_llm_history(self._system_prompt, history, caller_text)
        try:
            reply = await self._llm.chat(
                messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as exc:
            raise GenerationError(f"LLM request failed: {exc}") from exc
        return (reply or "").strip()
