"""
Handler Registry — capability sets mapped onto coarse routing categories.

Each handler declares a finite set of CoarseCategory values it accepts.
The registry turns those declarations into a routing table at registration
time, so dispatch is a table lookup rather than a scan of predicates.

Behavioral Contract:
- Registration order is preserved
- The first handler to claim a category keeps it (first-match-wins)
- A later claim on a taken category is logged and ignored for routing,
  or rejected with HandlerConflictError when the registry is strict
- Populated at startup; not mutated during dispatch
"""

from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Protocol

from loguru import logger

from cos_kernel.errors import HandlerConflictError
from cos_kernel.models.conversation import ConversationContext
from cos_kernel.models.intent import CoarseCategory
from cos_kernel.models.result import HandlerResult


class Handler(Protocol):
    """A capability handler. Free to do platform I/O inside ``handle``."""

    name: str
    capabilities: FrozenSet[CoarseCategory]

    def accepts(self, category: CoarseCategory) -> bool: ...

    async def handle(self, text: str, context: ConversationContext) -> HandlerResult: ...


class BaseHandler:
    """Convenience base: ``accepts`` is membership in ``capabilities``."""

    name: str = "handler"
    capabilities: FrozenSet[CoarseCategory] = frozenset()

    def accepts(self, category: CoarseCategory) -> bool:
        return category in self.capabilities

    async def handle(self, text: str, context: ConversationContext) -> HandlerResult:
        raise NotImplementedError


class HandlerRegistry:
    """Ordered handler list plus the derived category → handler table."""

    def __init__(self, strict: bool = False):
        self.strict = strict
        self._handlers: List[Handler] = []
        self._routes: Dict[CoarseCategory, Handler] = {}

    def register(self, handler: Handler) -> None:
        """Register a handler and claim its still-unclaimed categories."""
        claims = [c for c in CoarseCategory if handler.accepts(c)]
        conflicts = [c for c in claims if c in self._routes]

        if conflicts and self.strict:
            owners = ", ".join(
                f"{c.value} (owned by {self._routes[c].name})" for c in conflicts
            )
            raise HandlerConflictError(
                f"Handler {handler.name} claims categories already routed: {owners}"
            )

        self._handlers.append(handler)
        for category in claims:
            if category in self._routes:
                logger.warning(
                    f"Handler {handler.name} also claims {category.value}; "
                    f"keeping {self._routes[category].name} (registered first)"
                )
                continue
            self._routes[category] = handler

        logger.debug(
            f"Registered handler {handler.name} for "
            f"{sorted(c.value for c in claims) or 'no categories'}"
        )

    def register_all(self, handlers: Iterable[Handler]) -> None:
        for handler in handlers:
            self.register(handler)

    def find(self, category: CoarseCategory) -> Optional[Handler]:
        return self._routes.get(category)

    def handlers(self) -> List[Handler]:
        return list(self._handlers)

    def routes(self) -> Dict[CoarseCategory, Handler]:
        return dict(self._routes)

    def describe(self) -> List[Dict[str, Any]]:
        """Serializable view of the registry for the API."""
        return [
            {
                "name": h.name,
                "capabilities": sorted(
                    c.value for c in CoarseCategory if h.accepts(c)
                ),
                "routes": sorted(
                    c.value for c, owner in self._routes.items() if owner is h
                ),
            }
            for h in self._handlers
        ]

    def __len__(self) -> int:
        return len(self._handlers)
