from __future__ import annotations

from collections.abc import Iterable

from agents.schemas import ConversationTurn


def role_for_turn(role: str) -> str:
    role_norm = role.strip().lower()
    if role_norm == "assistant":
        return "assistant"
    return "user"


def build_llm_history(
    system_prompt: str,
    turns: Iterable[ConversationTurn],
    caller_text: str | None = None,
) -> list[dict[str, str]]:
    """Map conversation turns onto chat messages, optionally ending with a fresh caller line."""

    history: list[dict[str, str]] = [{"role": "system", "content": system_prompt}]
    for turn in turns:
        history.append({"role": role_for_turn(turn.role), "content": turn.text})

    if caller_text is not None:
        last = history[-1]
        # Skip the fresh line when the caller turn was already recorded.
        if not (last["role"] == "user" and last["content"] == caller_text):
            history.append({"role": "user", "content": caller_text})
    return history
