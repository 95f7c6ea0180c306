"""
Tagged results — every Success/Error split in the pipeline.

Each union is discriminated on a ``kind`` literal so callers branch on
``result.kind`` (or isinstance) instead of catching exceptions.
"""

from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from cos_kernel.models.intent import CoarseCategory, Intent


DEFAULT_REPLY = "I'll help you with that."
UNKNOWN_REPLY = "I'm not sure how to help with that yet."

MATCHED_CONFIDENCE = 0.8
DEGRADED_CONFIDENCE = 0.3


class ResultSource(str, Enum):
    GENERATIVE = "generative"   # Intent taken from the model completion
    PATTERN = "pattern"         # Intent resolved by the deterministic cascade


class ClassificationResult(BaseModel):
    """Parsed understanding of one utterance."""

    intent: Intent
    confidence: float = Field(ge=0.0, le=1.0)   # Coarse signal, not a probability
    reply: str = DEFAULT_REPLY
    action_data: Dict[str, Any] = {}
    source: ResultSource = ResultSource.GENERATIVE


# --- Understanding Engine ---

class FailureType(str, Enum):
    BACKEND_UNAVAILABLE = "backend_unavailable"
    BACKEND_FAILURE = "backend_failure"


class Understood(BaseModel):
    kind: Literal["understood"] = "understood"
    intent: Intent
    confidence: float = Field(ge=0.0, le=1.0)
    reply: str
    action_data: Dict[str, Any] = {}
    source: ResultSource = ResultSource.GENERATIVE

    @classmethod
    def from_classification(cls, result: ClassificationResult) -> "Understood":
        return cls(
            intent=result.intent,
            confidence=result.confidence,
            reply=result.reply,
            action_data=result.action_data,
            source=result.source,
        )


class UnderstandingFailed(BaseModel):
    kind: Literal["failed"] = "failed"
    message: str                            # Short, safe to show to the user
    error_type: FailureType = FailureType.BACKEND_FAILURE


UnderstandingResult = Union[Understood, UnderstandingFailed]


# --- Handlers ---

class HandlerSuccess(BaseModel):
    kind: Literal["success"] = "success"
    message: str
    data: Optional[Any] = None


class HandlerError(BaseModel):
    kind: Literal["error"] = "error"
    message: str


HandlerResult = Union[HandlerSuccess, HandlerError]


# --- Orchestrator ---

class ReplySource(str, Enum):
    HANDLER = "handler"
    ENGINE = "engine"
    APOLOGY = "apology"


class TurnReply(BaseModel):
    """Final outcome of one turn, as seen by the session owner."""

    reply: str
    source: ReplySource
    intent: Intent = Intent.UNKNOWN
    category: CoarseCategory = CoarseCategory.UNKNOWN
    confidence: float = Field(ge=0.0, le=1.0, default=0.0)
    data: Optional[Any] = None
    handler: Optional[str] = None
    sequence: int = 0
    committed: bool = True                  # False if a newer turn already committed
