"""
iteratez - chainable lazy iterators that can stop, remove and replace values
in the structure they walk.
"""

from iteratez.dispatch import DetectorRegistry, func, iterate, register_detector, registry
from iteratez.errors import (
    ComparatorRequiredError,
    IterateError,
    ResetNotSupportedError,
    UnsupportedActionError,
)
from iteratez.factories import (
    empty,
    join,
    linked,
    of_dict,
    of_entries,
    of_has_entries,
    of_iterable,
    of_list,
    of_object,
    of_set,
    tree,
    zipped,
)
from iteratez.lazy import Iterate, SplitViews, UnzipViews
from iteratez.models import IterateAction, IterateLogic
from iteratez.sources import Source
from iteratez.utils import setup_logging

__version__ = "0.1.0"

__all__ = [
    "ComparatorRequiredError",
    "DetectorRegistry",
    "Iterate",
    "IterateAction",
    "IterateError",
    "IterateLogic",
    "ResetNotSupportedError",
    "Source",
    "SplitViews",
    "UnsupportedActionError",
    "UnzipViews",
    "empty",
    "func",
    "iterate",
    "join",
    "linked",
    "of_dict",
    "of_entries",
    "of_has_entries",
    "of_iterable",
    "of_list",
    "of_object",
    "of_set",
    "register_detector",
    "registry",
    "setup_logging",
    "tree",
    "zipped",
]
