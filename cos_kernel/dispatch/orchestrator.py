"""
Dispatch Orchestrator — one turn from raw text to reply text.

States per turn:
  SUBMITTED → UNDERSTOOD → (HANDLER | ENGINE_REPLY | APOLOGY) → COMMIT

Behavioral Contract:
- Every turn ends in exactly one of: handler reply, engine reply, apology
- A handler's own reply (success or error) is returned verbatim
- No matching handler: the engine's reply and action data are returned
- The orchestrator is the only writer of ConversationContext
- Context is committed after every turn, whatever the outcome, but only if
  no turn submitted later has already committed (last-submitted-wins)
- Users only ever see one sentence on failure; details go to the log
"""

from typing import Optional

from loguru import logger

from cos_kernel.dispatch.registry import Handler, HandlerRegistry
from cos_kernel.models.conversation import (
    ConversationContext,
    ConversationTurn,
    Utterance,
)
from cos_kernel.models.intent import category_for
from cos_kernel.models.result import (
    HandlerSuccess,
    ReplySource,
    TurnReply,
    UnderstandingFailed,
)
from cos_kernel.understanding.engine import UnderstandingEngine


HANDLER_CRASHED = "something went wrong while handling your request"


def apology(message: str) -> str:
    """The single user-facing sentence for a failed turn."""
    return f"Sorry, I couldn't process that: {message.rstrip('.')}."


class DispatchOrchestrator:
    """
    Owns one conversation session: its context and the turn sequence.

    The engine and registry may be shared between sessions.
    """

    def __init__(
        self,
        engine: UnderstandingEngine,
        registry: Optional[HandlerRegistry] = None,
        context: Optional[ConversationContext] = None,
    ):
        self.engine = engine
        self.registry = registry if registry is not None else HandlerRegistry()
        self._context = context if context is not None else ConversationContext()
        self._submitted = 0
        self._committed = 0

    @property
    def context(self) -> ConversationContext:
        return self._context

    @property
    def turns_submitted(self) -> int:
        return self._submitted

    def initialize(self) -> bool:
        return self.engine.initialize()

    def register_handler(self, handler: Handler) -> None:
        self.registry.register(handler)

    def reset(self) -> None:
        """Forget the conversation so far. Later commits still apply in order."""
        self._context = ConversationContext(
            user_preferences=self._context.user_preferences,
            device_state=self._context.device_state,
            max_history=self._context.max_history,
        )

    async def process(self, text: str) -> str:
        reply = await self.process_turn(text)
        return reply.reply

    async def process_turn(self, text: str) -> TurnReply:
        """Run one full turn and commit its outcome to the context."""
        self._submitted += 1
        sequence = self._submitted
        snapshot = self._context

        reply = await self._resolve(text, snapshot)
        reply.sequence = sequence
        reply.committed = self._commit(sequence, text, reply)
        return reply

    async def _resolve(self, text: str, context: ConversationContext) -> TurnReply:
        result = await self.engine.process(Utterance(text=text), context)

        if isinstance(result, UnderstandingFailed):
            logger.warning(f"Understanding failed ({result.error_type.value}): {result.message}")
            return TurnReply(reply=apology(result.message), source=ReplySource.APOLOGY)

        category = category_for(result.intent)
        handler = self.registry.find(category)

        if handler is None:
            logger.debug(f"No handler for {category.value}; answering with engine reply")
            return TurnReply(
                reply=result.reply,
                source=ReplySource.ENGINE,
                intent=result.intent,
                category=category,
                confidence=result.confidence,
                data=result.action_data,
            )

        logger.info(f"Routing {result.intent.value} ({category.value}) to {handler.name}")
        try:
            outcome = await handler.handle(text, context)
        except Exception as e:
            logger.exception(f"Handler {handler.name} raised: {e}")
            return TurnReply(
                reply=apology(HANDLER_CRASHED),
                source=ReplySource.APOLOGY,
                intent=result.intent,
                category=category,
                confidence=result.confidence,
                handler=handler.name,
            )

        return TurnReply(
            reply=outcome.message,
            source=ReplySource.HANDLER,
            intent=result.intent,
            category=category,
            confidence=result.confidence,
            data=outcome.data if isinstance(outcome, HandlerSuccess) else None,
            handler=handler.name,
        )

    def _commit(self, sequence: int, text: str, reply: TurnReply) -> bool:
        if sequence <= self._committed:
            logger.info(
                f"Turn {sequence} finished after turn {self._committed} committed; "
                f"context left unchanged"
            )
            return False

        turn = ConversationTurn(input=text, response=reply.reply, intent=reply.intent)
        self._context = self._context.with_turn(turn)
        self._committed = sequence
        return True

