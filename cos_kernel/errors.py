"""Exceptions raised inside the kernel. None of them cross the turn boundary."""


class CosKernelError(Exception):
    """Base class for kernel errors."""
    pass


class BackendUnavailableError(CosKernelError):
    """Raised when the generative backend is not ready to accept completions."""
    pass


class BackendError(CosKernelError):
    """Raised when a completion call fails or returns malformed data."""
    pass


class HandlerConflictError(CosKernelError):
    """Raised by a strict registry when two handlers claim the same category."""
    pass
