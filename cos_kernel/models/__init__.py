"""cOS Kernel data models."""

from cos_kernel.models.conversation import (
    ConversationContext,
    ConversationTurn,
    Utterance,
)
from cos_kernel.models.intent import (
    INTENT_CATEGORIES,
    CoarseCategory,
    Intent,
    category_for,
)
from cos_kernel.models.result import (
    DEFAULT_REPLY,
    UNKNOWN_REPLY,
    ClassificationResult,
    FailureType,
    HandlerError,
    HandlerResult,
    HandlerSuccess,
    ReplySource,
    ResultSource,
    TurnReply,
    Understood,
    UnderstandingFailed,
    UnderstandingResult,
)

__all__ = [
    "DEFAULT_REPLY",
    "UNKNOWN_REPLY",
    "INTENT_CATEGORIES",
    "ClassificationResult",
    "CoarseCategory",
    "ConversationContext",
    "ConversationTurn",
    "FailureType",
    "HandlerError",
    "HandlerResult",
    "HandlerSuccess",
    "Intent",
    "ReplySource",
    "ResultSource",
    "TurnReply",
    "Understood",
    "UnderstandingFailed",
    "UnderstandingResult",
    "Utterance",
    "category_for",
]
