"""
Generative backend boundary — one text-completion method behind a Protocol.

The Understanding Engine only ever sees this interface. Concrete backends:
  - LiteLLMBackend: provider-agnostic completion (Ollama, OpenAI, Claude, ...)
  - StaticBackend: canned completions for tests and offline demos
"""

from typing import Callable, Iterable, List, Optional, Protocol, Union

from loguru import logger

from cos_kernel.errors import BackendError, BackendUnavailableError


class GenerativeBackend(Protocol):
    """Protocol for the completion runtime. Pluggable backend."""

    def is_available(self) -> bool: ...

    def initialize(self) -> bool: ...

    def complete(self, prompt: str) -> str: ...

    def close(self) -> None: ...


class LiteLLMBackend:
    """
    Completion via litellm.

    ``complete`` is a blocking call; the engine runs it through
    ``asyncio.to_thread``. litellm is imported on the first completion.
    """

    def __init__(
        self,
        model: str,
        max_tokens: int = 1024,
        temperature: float = 0.8,
        api_base: Optional[str] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.api_base = api_base
        self._ready = False

    def is_available(self) -> bool:
        return bool(self.model)

    def initialize(self) -> bool:
        if not self.is_available():
            return False
        self._ready = True
        logger.debug(f"litellm backend ready for {self.model}")
        return True

    def complete(self, prompt: str) -> str:
        if not self._ready:
            raise BackendUnavailableError(f"Backend for {self.model} not initialized")

        from litellm import completion  # deferred import

        kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = completion(**kwargs)
        except Exception as e:
            raise BackendError(f"Completion failed for {self.model}: {e}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise BackendError(f"Malformed completion from {self.model}") from e
        if content is None:
            raise BackendError(f"Empty completion from {self.model}")
        return content

    def close(self) -> None:
        self._ready = False


Responder = Callable[[str], str]


class StaticBackend:
    """
    Returns canned completions.

    ``responses`` is either a single callable (prompt -> completion) or a
    sequence of completions handed out in order; the last one repeats.
    """

    def __init__(
        self,
        responses: Union[Responder, Iterable[str]] = (),
        available: bool = True,
    ):
        if callable(responses):
            self._responder: Optional[Responder] = responses
            self._queue: List[str] = []
        else:
            self._responder = None
            self._queue = list(responses)
        self._available = available
        self.prompts: List[str] = []
        self.closed = False

    def is_available(self) -> bool:
        return self._available

    def initialize(self) -> bool:
        self.closed = False
        return self._available

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self._responder is not None:
            return self._responder(prompt)
        if not self._queue:
            raise BackendError("No canned completion left")
        if len(self._queue) == 1:
            return self._queue[0]
        return self._queue.pop(0)

    def close(self) -> None:
        self.closed = True
