"""
Exceptions raised while building or driving an iterator.
"""


class IterateError(Exception):
    """Base class for all iteratez errors."""
    pass


class ComparatorRequiredError(IterateError):
    """Raised when an ordering is needed but no comparator is available."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"{operation} requires a comparator: pass one or configure the "
            f"iterator with with_comparator(), numbers(), strings() or dates()"
        )


class UnsupportedActionError(IterateError):
    """
    Raised in strict mode when a source cannot honour a remove or replace.

    Non-strict sources drop the request instead.
    """

    def __init__(self, action, source: str, reason: str = ""):
        self.action = action
        self.source = source
        message = f"{source} does not support {action.value}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ResetNotSupportedError(IterateError):
    """Raised when reset() is called on an iterator that cannot be reset."""
    pass
