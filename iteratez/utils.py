"""
Utility functions for iteratez

Logging setup and the helpers that let user callbacks declare only the
arguments they care about.
"""

import inspect
import logging
import sys
from typing import Any, Callable, Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s'


def setup_logging(level: int = logging.INFO, stream=None) -> logging.Logger:
    """Attach a stream handler to the iteratez logger hierarchy"""
    root = logging.getLogger('iteratez')
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)
    return root


def positional_arity(fn: Callable) -> Optional[int]:
    """
    Count the required positional parameters of ``fn``.

    Returns None when ``fn`` accepts ``*args`` and so takes anything offered.
    Parameters with defaults are not counted: ``lambda x, n=n: ...`` has an
    arity of one. A function whose positional parameters all have defaults
    (``bool``, ``lambda x=0: ...``) still receives the value.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        # builtins without introspection data
        return 1

    required = 0
    optional = 0
    for param in signature.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return None
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            if param.default is param.empty:
                required += 1
            else:
                optional += 1
    if required == 0 and optional:
        return 1
    return required


def adapt(fn: Callable, offered: int) -> Callable:
    """Wrap ``fn`` so it can be called with ``offered`` positional arguments"""
    arity = positional_arity(fn)
    if arity is None or arity >= offered:
        return fn
    if arity == 0:
        return lambda *args: fn()
    return lambda *args: fn(*args[:arity])


def deliver(iterator: Any, result: Any, set_result: Optional[Callable]) -> Any:
    """Return ``result``, or pass it to ``set_result`` and return the iterator"""
    if set_result is not None:
        set_result(result)
        return iterator
    return result
