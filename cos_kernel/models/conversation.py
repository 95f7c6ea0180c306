"""Conversation state — utterances, completed turns and the cross-turn context."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from cos_kernel.models.intent import Intent


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Utterance(BaseModel):
    """One piece of user input. Immutable."""

    model_config = ConfigDict(frozen=True)

    text: str
    timestamp: datetime = Field(default_factory=_utcnow)


class ConversationTurn(BaseModel):
    """A completed utterance-to-reply cycle."""

    model_config = ConfigDict(frozen=True)

    input: str
    response: str
    intent: Intent
    timestamp: datetime = Field(default_factory=_utcnow)


class ConversationContext(BaseModel):
    """
    State carried from one turn to the next within a session.

    Never mutated in place. The orchestrator replaces it after each turn
    with the result of ``with_turn``.
    """

    model_config = ConfigDict(frozen=True)

    previous_intent: Optional[Intent] = None
    user_preferences: Dict[str, Any] = {}
    device_state: Dict[str, Any] = {}
    history: List[ConversationTurn] = []
    max_history: int = Field(ge=0, default=20)

    @property
    def is_new_conversation(self) -> bool:
        return self.previous_intent is None

    def with_turn(self, turn: ConversationTurn) -> "ConversationContext":
        """Return a new context recording ``turn`` as the latest one."""
        history = list(self.history) + [turn]
        if self.max_history and len(history) > self.max_history:
            history = history[-self.max_history:]
        elif not self.max_history:
            history = []
        return self.model_copy(
            update={"previous_intent": turn.intent, "history": history}
        )

    def with_preferences(self, **preferences: Any) -> "ConversationContext":
        merged = {**self.user_preferences, **preferences}
        return self.model_copy(update={"user_preferences": merged})

    def with_device_state(self, **state: Any) -> "ConversationContext":
        merged = {**self.device_state, **state}
        return self.model_copy(update={"device_state": merged})
