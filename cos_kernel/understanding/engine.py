"""
Understanding Engine — utterance + context → tagged UnderstandingResult.

States:
  UNINITIALIZED → READY → (PROCESSING → READY)* → UNINITIALIZED (teardown)

Behavioral Contract:
- READY is entered only after the backend confirms it can accept completions
- While UNINITIALIZED every request fails fast with "not initialized"
- One prompt, one completion, one parse per turn
- The blocking completion runs off the event loop; one in flight at a time
- Never raises across ``process``: backend failures become UnderstandingFailed
- Context is read, never written; the orchestrator owns it

An engine built without a backend is pattern-only: it initializes without
a model and resolves every turn through the deterministic fallback.
"""

import asyncio
from enum import Enum
from typing import Optional, Union

from loguru import logger

from cos_kernel.classifier.patterns import PatternClassifier
from cos_kernel.errors import BackendUnavailableError
from cos_kernel.models.conversation import ConversationContext, Utterance
from cos_kernel.models.intent import Intent
from cos_kernel.models.result import (
    FailureType,
    UnderstandingFailed,
    UnderstandingResult,
    Understood,
)
from cos_kernel.understanding.backend import GenerativeBackend
from cos_kernel.understanding.parser import (
    DATA_LABEL,
    INTENT_LABEL,
    RESPONSE_LABEL,
    classify_fallback,
    parse_completion,
)


NOT_INITIALIZED = "AI engine not initialized"
PROCESSING_FAILED = "AI processing failed"

TASK_FRAMING = (
    "You are cOS, a conversational assistant. Analyze the user's request "
    "and provide:"
)
NEW_CONVERSATION = "This is the start of a new conversation"


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    PROCESSING = "processing"


def build_prompt(utterance: str, context: ConversationContext) -> str:
    """Instructional prompt: framing, closed intent list, utterance, prior turn."""
    intent_list = ", ".join(i.value for i in Intent if i != Intent.UNKNOWN)
    if context.previous_intent is not None:
        context_info = f"Previous intent: {context.previous_intent.value}"
    else:
        context_info = NEW_CONVERSATION

    return (
        f"{TASK_FRAMING}\n"
        f"1. The intent (one of: {intent_list}, or {Intent.UNKNOWN.value})\n"
        f"2. A natural, helpful response\n"
        f"3. Any relevant data extracted from the request\n"
        f"\n"
        f'User request: "{utterance}"\n'
        f"{context_info}\n"
        f"\n"
        f"Respond in this format:\n"
        f"{INTENT_LABEL} [intent_name]\n"
        f"{RESPONSE_LABEL} [natural response to user]\n"
        f"{DATA_LABEL} [any extracted data as key:value pairs]"
    )


class UnderstandingEngine:
    """Owns the completion call and turns its output into a typed result."""

    def __init__(
        self,
        backend: Optional[GenerativeBackend] = None,
        classifier: Optional[PatternClassifier] = None,
    ):
        self.backend = backend
        self.classifier = classifier or PatternClassifier()
        self._state = EngineState.UNINITIALIZED
        self._inflight = asyncio.Lock()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state != EngineState.UNINITIALIZED

    @property
    def mode(self) -> str:
        return "generative" if self.backend is not None else "pattern_only"

    def initialize(self) -> bool:
        """Move to READY if the backend can accept completions."""
        if self.is_ready:
            return True

        if self.backend is None:
            logger.info("Understanding engine ready (pattern-only, no backend)")
            self._state = EngineState.READY
            return True

        try:
            if not self.backend.is_available():
                logger.warning("Generative backend unavailable; engine stays uninitialized")
                return False
            if not self.backend.initialize():
                logger.warning("Generative backend refused to initialize")
                return False
        except Exception as e:
            logger.error(f"Generative backend initialization failed: {e}")
            return False

        self._state = EngineState.READY
        logger.info("Understanding engine ready (generative backend)")
        return True

    def teardown(self) -> None:
        """Release the backend and return to UNINITIALIZED."""
        if self.backend is not None:
            try:
                self.backend.close()
            except Exception as e:
                logger.error(f"Error while closing generative backend: {e}")
        self._state = EngineState.UNINITIALIZED
        logger.info("Understanding engine torn down")

    async def process(
        self,
        utterance: Union[Utterance, str],
        context: Optional[ConversationContext] = None,
    ) -> UnderstandingResult:
        if isinstance(utterance, str):
            utterance = Utterance(text=utterance)
        if context is None:
            context = ConversationContext()

        if not self.is_ready:
            return UnderstandingFailed(
                message=NOT_INITIALIZED,
                error_type=FailureType.BACKEND_UNAVAILABLE,
            )

        if self.backend is None:
            result = classify_fallback(utterance.text, self.classifier)
            return Understood.from_classification(result)

        prompt = build_prompt(utterance.text, context)
        async with self._inflight:
            self._state = EngineState.PROCESSING
            try:
                completion = await asyncio.to_thread(self.backend.complete, prompt)
            except BackendUnavailableError as e:
                logger.warning(f"Backend unavailable mid-session: {e}")
                return UnderstandingFailed(
                    message=NOT_INITIALIZED,
                    error_type=FailureType.BACKEND_UNAVAILABLE,
                )
            except Exception as e:
                logger.exception(f"Completion failed: {e}")
                return UnderstandingFailed(
                    message=PROCESSING_FAILED,
                    error_type=FailureType.BACKEND_FAILURE,
                )
            finally:
                if self._state == EngineState.PROCESSING:
                    self._state = EngineState.READY

        if not isinstance(completion, str):
            logger.error(f"Backend returned {type(completion).__name__}, expected str")
            return UnderstandingFailed(
                message=PROCESSING_FAILED,
                error_type=FailureType.BACKEND_FAILURE,
            )

        result = parse_completion(completion, utterance.text, self.classifier)
        logger.debug(
            f"Understood {utterance.text!r} as {result.intent.value} "
            f"({result.source.value}, confidence={result.confidence})"
        )
        return Understood.from_classification(result)
