"""
iteratez - Sources

A source knows how to walk one kind of backing structure. For every element
it calls ``iterator.act(value, key)`` and then applies the action the
consumer asked for: STOP ends the walk, REMOVE takes the element out of the
structure and REPLACE writes ``iterator.replace_with`` in its place.

After a REMOVE the walk continues at the next remaining element, without
skipping or repeating anything.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, List, Optional

from iteratez.errors import ResetNotSupportedError, UnsupportedActionError
from iteratez.models import IterateAction

logger = logging.getLogger(__name__)


class Source(ABC):
    """
    Base class for all sources.

    Subclasses implement ``drive``. Sources that can swap their backing
    structure set ``supports_reset`` and override ``reset``.

    When ``strict`` is True a REMOVE or REPLACE the structure cannot honour
    raises UnsupportedActionError; otherwise the request is dropped.
    """

    supports_reset = False

    def __init__(self, strict: bool = True):
        self.strict = strict

    @abstractmethod
    def drive(self, iterator) -> None:
        """Offer every element to ``iterator`` and apply the requested actions"""
        pass

    def reset(self, source) -> None:
        raise ResetNotSupportedError(f"{type(self).__name__} does not support reset")

    def unsupported(self, action: IterateAction, reason: str = "") -> None:
        """Reject or drop an action this source cannot perform"""
        if self.strict:
            raise UnsupportedActionError(action, type(self).__name__, reason)
        logger.debug(f"{type(self).__name__} ignored {action.value} (non-strict)")

    def __call__(self, iterator) -> None:
        self.drive(iterator)


class EmptySource(Source):
    """A source with no elements"""

    def drive(self, iterator) -> None:
        return None


class ListSource(Source):
    """Elements of a mutable sequence, keyed by their current index"""

    supports_reset = True

    def __init__(self, values: Optional[List[Any]] = None, strict: bool = True):
        super().__init__(strict)
        self.values = [] if values is None else values

    def reset(self, source) -> None:
        self.values = source

    def drive(self, iterator) -> None:
        values = self.values
        index = 0

        while index < len(values):
            action = iterator.act(values[index], index)

            if action is IterateAction.STOP:
                return
            if action is IterateAction.REMOVE:
                del values[index]
                continue
            if action is IterateAction.REPLACE:
                values[index] = iterator.replace_with
            index += 1


class EntriesSource(Source):
    """A list of ``(key, value)`` pairs"""

    supports_reset = True

    def __init__(self, pairs: Optional[List[Any]] = None, strict: bool = True):
        super().__init__(strict)
        self.pairs = [] if pairs is None else pairs

    def reset(self, source) -> None:
        self.pairs = source

    def drive(self, iterator) -> None:
        pairs = self.pairs
        index = 0

        while index < len(pairs):
            key, value = pairs[index]
            action = iterator.act(value, key)

            if action is IterateAction.STOP:
                return
            if action is IterateAction.REMOVE:
                del pairs[index]
                continue
            if action is IterateAction.REPLACE:
                pairs[index] = (key, iterator.replace_with)
            index += 1


def default_entries(target) -> List[Any]:
    """Entries of anything exposing ``entries()`` or ``items()``"""
    entries = getattr(target, 'entries', None)
    if not callable(entries):
        entries = target.items
    return list(entries())


class HasEntriesSource(Source):
    """
    Any structure that can list ``(key, value)`` entries.

    Removal and replacement go through the optional hooks
    ``on_remove(target, key, value)`` and
    ``on_replace(target, key, value, new_value)``. The entries are
    snapshotted when a traversal starts; when ``contains(target, key)`` is
    given, entries no longer present by the time they are reached are
    skipped.
    """

    supports_reset = True

    def __init__(self, target, get_entries: Callable = default_entries,
                 on_remove: Optional[Callable] = None,
                 on_replace: Optional[Callable] = None,
                 contains: Optional[Callable] = None,
                 strict: bool = True):
        super().__init__(strict)
        self.target = target
        self.get_entries = get_entries
        self.on_remove = on_remove
        self.on_replace = on_replace
        self.contains = contains

    def reset(self, source) -> None:
        self.target = source

    def drive(self, iterator) -> None:
        target = self.target

        for key, value in self.get_entries(target):
            if self.contains is not None and not self.contains(target, key):
                continue

            action = iterator.act(value, key)

            if action is IterateAction.STOP:
                return
            if action is IterateAction.REMOVE:
                if self.on_remove is not None:
                    self.on_remove(target, key, value)
                else:
                    self.unsupported(action, "no remove hook was given")
            elif action is IterateAction.REPLACE:
                if self.on_replace is not None:
                    self.on_replace(target, key, value, iterator.replace_with)
                else:
                    self.unsupported(action, "no replace hook was given")


class ObjectSource(Source):
    """
    Attributes of a plain object, keyed by attribute name.

    With ``own_only`` only the instance ``__dict__`` is walked; otherwise
    public, non-callable class attributes follow. Class attributes can be
    replaced (the instance shadows them) but not removed.
    """

    supports_reset = True

    def __init__(self, target, own_only: bool = True, strict: bool = True):
        super().__init__(strict)
        self.target = target
        self.own_only = own_only

    def reset(self, source) -> None:
        self.target = source

    def _entries(self):
        own = list(vars(self.target).items())
        if self.own_only:
            return own

        seen = {name for name, _ in own}
        inherited = []
        for name in dir(type(self.target)):
            if name.startswith('_') or name in seen:
                continue
            value = getattr(self.target, name)
            if not callable(value):
                inherited.append((name, value))
        return own + inherited

    def drive(self, iterator) -> None:
        target = self.target

        for key, value in self._entries():
            action = iterator.act(value, key)

            if action is IterateAction.STOP:
                return
            if action is IterateAction.REMOVE:
                if key in vars(target):
                    delattr(target, key)
                else:
                    self.unsupported(action, f"'{key}' is not an instance attribute")
            elif action is IterateAction.REPLACE:
                setattr(target, key, iterator.replace_with)


class IterableSource(Source):
    """Any iterable, keyed by position. Read-only."""

    supports_reset = True

    def __init__(self, values, strict: bool = True):
        super().__init__(strict)
        self.values = values

    def reset(self, source) -> None:
        self.values = source

    def drive(self, iterator) -> None:
        for index, value in enumerate(self.values):
            action = iterator.act(value, index)

            if action is IterateAction.STOP:
                return
            if action is not IterateAction.CONTINUE:
                self.unsupported(action, "plain iterables are read-only")


class LinkedSource(Source):
    """
    A singly-linked list.

    The walk starts at ``start``, or at ``get_next(previous)`` when only the
    previous node is known, and ends at ``None`` or when it comes back to
    ``previous`` (circular lists). ``remove(node, prev)`` must unlink
    ``node``; ``prev`` is None when the first node was reached without a
    previous handle.
    """

    supports_reset = True

    def __init__(self, start, previous, get_value: Callable, get_next: Callable,
                 get_key: Callable, remove: Optional[Callable] = None,
                 replace_value: Optional[Callable] = None, strict: bool = True):
        super().__init__(strict)
        self.start = start
        self.previous = previous
        self.get_value = get_value
        self.get_next = get_next
        self.get_key = get_key
        self.remove = remove
        self.replace_value = replace_value

    def reset(self, source) -> None:
        if self.start is None and self.previous is not None:
            self.previous = source
        else:
            self.start = source

    def drive(self, iterator) -> None:
        previous = self.previous
        prev = previous
        curr = self.start
        if curr is None and previous is not None:
            curr = self.get_next(previous)

        while curr is not None and (previous is None or curr is not previous):
            following = self.get_next(curr)
            removed = False

            action = iterator.act(self.get_value(curr), self.get_key(curr))

            if action is IterateAction.STOP:
                return
            if action is IterateAction.REMOVE:
                if self.remove is not None:
                    self.remove(curr, prev)
                    removed = True
                else:
                    self.unsupported(action, "remove is required for linked list iteration")
            elif action is IterateAction.REPLACE:
                if self.replace_value is not None:
                    self.replace_value(curr, iterator.replace_with)
                else:
                    self.unsupported(action, "replace_value is required for linked list iteration")

            if not removed:
                prev = curr
            curr = following


class TreeSource(Source):
    """
    A tree walked depth-first (pre-order) or breadth-first (level order).

    Depth-first removal is delegated to the iterator walking the parent's
    children, which takes the child out of that collection. Breadth-first
    traversal keeps no parent and cannot remove.
    """

    supports_reset = True

    def __init__(self, start, get_value: Callable, get_children: Callable,
                 get_key: Callable, replace_value: Optional[Callable] = None,
                 depth_first: bool = True, strict: bool = True):
        super().__init__(strict)
        self.start = start
        self.get_value = get_value
        self.get_children = get_children
        self.get_key = get_key
        self.replace_value = replace_value
        self.depth_first = depth_first

    def reset(self, source) -> None:
        self.start = source

    def drive(self, iterator) -> None:
        if self.start is None:
            return
        if self.depth_first:
            self._depth_first(self.start, iterator, None)
        else:
            self._breadth_first(iterator)

    def _children(self, node):
        from iteratez.dispatch import iterate

        return iterate(self.get_children(node), strict=self.strict)

    def _handle(self, node, iterator, parent) -> bool:
        """Offer ``node``; returns False when iteration must stop"""
        action = iterator.act(self.get_value(node), self.get_key(node))

        if action is IterateAction.STOP:
            if parent is not None:
                parent.stop()
            return False

        if action is IterateAction.REPLACE:
            if self.replace_value is not None:
                self.replace_value(node, iterator.replace_with)
            else:
                self.unsupported(action, "replace_value is required when replacing a value in a tree")
        elif action is IterateAction.REMOVE:
            if parent is not None:
                parent.remove()
            elif self.depth_first:
                self.unsupported(action, "the starting node has no parent to be removed from")
            else:
                self.unsupported(action, "remove is not supported for breadth-first iteration")

        return True

    def _depth_first(self, node, iterator, parent) -> bool:
        if not self._handle(node, iterator, parent):
            return False

        stopped = False

        # a subtree that stopped may have left a pending remove on its
        # siblings' iterator, so the stop is applied when the next sibling
        # is offered
        def visit(child, key, siblings):
            nonlocal stopped
            if stopped:
                siblings.stop()
            elif not self._depth_first(child, iterator, siblings):
                stopped = True

        self._children(node).each(visit)
        return not stopped

    def _breadth_first(self, iterator) -> None:
        queue = deque([self.start])

        while queue:
            node = queue.popleft()

            if not self._handle(node, iterator, None):
                break

            self._children(node).to_list(queue)


class JoinSource(Source):
    """Several iterators walked one after another"""

    def __init__(self, iterators: List[Any], strict: bool = True):
        super().__init__(strict)
        self.iterators = iterators

    def drive(self, iterator) -> None:
        def forward(value, key, child):
            action = iterator.act(value, key)

            if action is IterateAction.STOP:
                child.stop()
            elif action is IterateAction.REMOVE:
                child.remove()
            elif action is IterateAction.REPLACE:
                child.replace(iterator.replace_with)

        for child in self.iterators:
            if child.each(forward).is_stopped():
                return


class ZipSource(Source):
    """
    Keys taken from one iterator and values from another.

    Removing an element removes it from both iterators; replacing replaces
    the value. Pairs stop at the shorter of the two.
    """

    supports_reset = True

    def __init__(self, keys, values, strict: bool = True):
        super().__init__(strict)
        self.keys = keys
        self.values = values

    def reset(self, source) -> None:
        from iteratez.dispatch import iterate

        keys, values = source
        self.keys = iterate(keys, self.strict)
        self.values = iterate(values, self.strict)

    def drive(self, iterator) -> None:
        keys = self.keys.to_list()
        remove_at = deque()
        index = 0

        def forward(value, ignored, values):
            nonlocal index
            if index >= len(keys):
                values.stop()
                return

            action = iterator.act(value, keys[index])

            if action is IterateAction.STOP:
                values.stop()
            elif action is IterateAction.REMOVE:
                values.remove()
                remove_at.append(index)
            elif action is IterateAction.REPLACE:
                values.replace(iterator.replace_with)
            index += 1

        self.values.each(forward)

        if not remove_at:
            return

        position = 0

        def prune(key, ignored, keys_iterator):
            nonlocal position
            if not remove_at:
                keys_iterator.stop()
                return
            if position == remove_at[0]:
                keys_iterator.remove()
                remove_at.popleft()
            position += 1

        self.keys.each(prune)
