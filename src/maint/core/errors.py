"""
Custom exceptions for the maintenance automation engine.

Errors raised while processing a single work item are scoped to that item:
the run controller catches them and records an ``error`` outcome instead of
aborting the run. Some errors are transient; they carry ``retryable = True``
so the retry helper knows to try again before giving up.

Exception Hierarchy:
    MaintError (base)
    ├── UnknownCategoryError (category not in the rule book)
    ├── InvalidTransitionError (status change not allowed)
    ├── AssignmentConflictError (item already assigned elsewhere)
    ├── ClassificationFailure (retryable, classifier unavailable)
    ├── CallTimeoutError (retryable, bounded call timed out)
    ├── RunInProgressError (run-level lock already held)
    └── SourceError (work-order source failures)
        └── AdapterUnavailableError (retryable, network/5xx)

Example:
    >>> from maint.core.errors import AdapterUnavailableError
    >>> try:
    ...     raise AdapterUnavailableError("external", "Connection refused")
    ... except AdapterUnavailableError as e:
    ...     print(f"{e.source}: {e} (retryable={e.retryable})")
"""


class MaintError(Exception):
    """
    Base exception for all engine errors.

    Attributes:
        message: Human-readable error message
        context: Additional context as keyword arguments
        retryable: Whether the failed operation may succeed if tried again
    """

    retryable = False

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class UnknownCategoryError(MaintError):
    """Raised when a category is not a key in the configured rule book."""

    def __init__(self, category: str, known: list[str] | None = None) -> None:
        known = known or []
        message = f"Unknown category '{category}'"
        if known:
            message += f" (known: {', '.join(known)})"
        super().__init__(message, category=category, known=known)
        self.category = category


class InvalidTransitionError(MaintError):
    """Raised when a work item status change is not allowed."""

    def __init__(self, work_item_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Work item {work_item_id}: cannot transition from {current} to {target}",
            work_item_id=work_item_id,
            current=current,
            target=target,
        )
        self.work_item_id = work_item_id
        self.current = current
        self.target = target


class AssignmentConflictError(MaintError):
    """Raised when assigning a contractor to an item that already has another one."""

    def __init__(self, work_item_id: str, current_contractor: str, new_contractor: str) -> None:
        super().__init__(
            f"Work item {work_item_id} is already assigned to {current_contractor}; "
            f"clear the assignment before assigning {new_contractor}",
            work_item_id=work_item_id,
            current_contractor=current_contractor,
            new_contractor=new_contractor,
        )
        self.work_item_id = work_item_id


class ClassificationFailure(MaintError):
    """
    Raised when the natural-language classifier fails or returns bad output.

    The engine degrades to keyword classification when the retry budget
    for the classifier is exhausted.
    """

    retryable = True


class CallTimeoutError(MaintError):
    """Raised when a bounded external call does not finish in time."""

    retryable = True

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        super().__init__(
            f"{operation} timed out after {timeout_seconds:g}s",
            operation=operation,
            timeout_seconds=timeout_seconds,
        )
        self.operation = operation
        self.timeout_seconds = timeout_seconds


class RunInProgressError(MaintError):
    """Raised when another automation run already holds the run lock."""


class SourceError(MaintError):
    """
    Base exception for work-order source errors.

    Raised for failures that will not go away on retry, such as an unknown
    work item id or a request rejected by the remote system.

    Attributes:
        source: Name of the source that failed (e.g. "native", "external")
    """

    def __init__(self, source: str, message: str, **context: object) -> None:
        super().__init__(message, source=source, **context)
        self.source = source


class AdapterUnavailableError(SourceError):
    """Raised when a source cannot be reached (network error, timeout, 5xx)."""

    retryable = True


__all__ = [
    "MaintError",
    "UnknownCategoryError",
    "InvalidTransitionError",
    "AssignmentConflictError",
    "ClassificationFailure",
    "CallTimeoutError",
    "RunInProgressError",
    "SourceError",
    "AdapterUnavailableError",
]
