"""
iteratez - Dispatch

``iterate(anything)`` walks an ordered list of detectors and returns the
Iterate built by the first one that recognises the value. Detectors can be
registered at startup to teach ``iterate`` about custom structures.
"""

import logging
from collections.abc import Iterable, Mapping, MutableMapping, MutableSequence, MutableSet
from typing import Any, Callable, List, Optional

from iteratez.factories import (
    empty,
    of_dict,
    of_has_entries,
    of_iterable,
    of_list,
    of_object,
    of_set,
)
from iteratez.lazy import Iterate
from iteratez.sources import Source

logger = logging.getLogger(__name__)

Detector = Callable[[Any], Optional[Iterate]]


def detect_iterate(source: Any) -> Optional[Iterate]:
    return source if isinstance(source, Iterate) else None


def detect_list(source: Any) -> Optional[Iterate]:
    return of_list(source) if isinstance(source, MutableSequence) else None


def detect_set(source: Any) -> Optional[Iterate]:
    return of_set(source) if isinstance(source, MutableSet) else None


def detect_mapping(source: Any) -> Optional[Iterate]:
    """Mutable mappings support remove and replace; other mappings are read-only"""
    if isinstance(source, MutableMapping):
        return of_dict(source)
    if isinstance(source, Mapping):
        return of_has_entries(source)
    return None


def detect_iterable(source: Any) -> Optional[Iterate]:
    return of_iterable(source) if isinstance(source, Iterable) else None


def detect_has_entries(source: Any) -> Optional[Iterate]:
    for name in ('entries', 'items'):
        if callable(getattr(source, name, None)):
            return of_has_entries(source)
    return None


def detect_none(source: Any) -> Optional[Iterate]:
    return empty() if source is None else None


def detect_object(source: Any) -> Optional[Iterate]:
    if not callable(source) and hasattr(source, '__dict__'):
        return of_object(source)
    return None


def single_value(source: Any) -> Iterate:
    """Anything else is iterated as a list holding just that value"""
    return of_list([source])


DEFAULT_DETECTORS: List[Detector] = [
    detect_iterate,
    detect_list,
    detect_set,
    detect_mapping,
    detect_iterable,
    detect_has_entries,
    detect_none,
    detect_object,
]


class DetectorRegistry:
    """
    Ordered detectors consulted by ``iterate``.

    Registration is not thread-safe and is meant to happen at startup.
    """

    def __init__(self, detectors: Optional[List[Detector]] = None,
                 fallback: Callable[[Any], Iterate] = single_value):
        self._defaults = list(DEFAULT_DETECTORS if detectors is None else detectors)
        self._detectors = list(self._defaults)
        self._fallback = fallback

    def register(self, detector: Detector, first: bool = True) -> Detector:
        """
        Add a detector ahead of (``first``) or after the existing ones. The
        fallback always runs last.
        """
        if first:
            self._detectors.insert(0, detector)
        else:
            self._detectors.append(detector)
        logger.info(f"Registered detector {getattr(detector, '__name__', detector)!s} (first={first})")
        return detector

    def unregister(self, detector: Detector) -> bool:
        """Remove a detector; returns False if it was not registered"""
        if detector not in self._detectors:
            return False
        self._detectors.remove(detector)
        logger.info(f"Unregistered detector {getattr(detector, '__name__', detector)!s}")
        return True

    def reset(self) -> None:
        """Restore the detectors the registry was created with"""
        self._detectors = list(self._defaults)
        logger.info(f"Detector registry reset to {len(self._detectors)} detectors")

    def detect(self, source: Any) -> Iterate:
        for detector in self._detectors:
            found = detector(source)
            if found is not None:
                return found
        return self._fallback(source)

    def __iter__(self):
        return iter(list(self._detectors))

    def __len__(self) -> int:
        return len(self._detectors)


registry = DetectorRegistry()


def register_detector(detector: Detector, first: bool = True) -> Detector:
    """Register a detector on the global registry; usable as a decorator"""
    return registry.register(detector, first)


def iterate(source: Any = None, strict: bool = True) -> Iterate:
    """
    An Iterate over ``source``.

    Lists, sets and dicts can be mutated through the iterator; other
    iterables are read-only. Plain objects are walked by attribute, None is
    empty, and any other value is iterated as a single element.

    With ``strict=False`` the new iterator drops remove and replace requests
    its source cannot honour instead of raising. An Iterate passed in is
    returned unchanged.
    """
    found = registry.detect(source)
    if not strict and found is not source and isinstance(found.source, Source):
        found.source.strict = False
    return found


def func(execute: Callable) -> Callable:
    """
    Turn a pipeline into a reusable function.

    ``execute(iterator, set_result, *args)`` receives a fresh iterator over
    the source each time the returned function runs; the last value passed
    to ``set_result`` is returned.

        count_positive = func(lambda it, set_result: it.numbers().gt(0).count(set_result=set_result))
    """
    def run(source: Any, *args: Any) -> Any:
        result = None

        def set_result(value):
            nonlocal result
            result = value

        execute(iterate(source), set_result, *args)
        return result

    return run
