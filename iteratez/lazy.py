"""
iteratez - Lazy iterator

An Iterate wraps a source and can walk it any number of times. There are
three kinds of methods:

- Operations produce a result from the values (count, first, to_list, ...).
- Views return a new Iterate over a subset or rearrangement of the values
  (where, sorted, take, ...). Building a view never touches the source.
- Mutations remove or replace values in the source (delete, overwrite, ...).

Every operation, mutation and view funnels through ``each``: the source
offers one element at a time through ``act`` and reads back the action the
consumer requested (continue, stop, remove or replace).
"""

import logging
import random
from datetime import timedelta
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from iteratez.compare import (
    date_comparator,
    date_equality,
    default_equality,
    number_comparator,
    string_comparator,
)
from iteratez.errors import ComparatorRequiredError, ResetNotSupportedError
from iteratez.models import (
    Comparator,
    Equality,
    IterateAction,
    IterateLogic,
    ShuffleOptions,
)
from iteratez.sources import EmptySource, EntriesSource, JoinSource, Source
from iteratez.utils import adapt, deliver

logger = logging.getLogger(__name__)

_MISSING = object()

DEFAULT_LOGIC = IterateLogic()


class SplitViews(NamedTuple):
    """Views of the values that passed and failed a condition"""
    passed: "Iterate"
    failed: "Iterate"


class UnzipViews(NamedTuple):
    """Views of the keys and the values of an iterator"""
    keys: "Iterate"
    values: "Iterate"


class Iterate:
    """
    A chainable, lazy iterator over any source.

    ``result``, ``action`` and ``replace_with`` describe the state of the
    current traversal; ``callback`` is only set while one is running. A
    single Iterate must not be driven by two traversals at once: use
    ``clone()`` for nested loops over the same source.
    """

    def __init__(self, source: Callable[["Iterate"], Any], parent: Optional["Iterate"] = None):
        self.result = None
        self.action = IterateAction.CONTINUE
        self.replace_with = None
        self.callback = None
        self._source = source
        self._logic = parent._logic if parent is not None else DEFAULT_LOGIC
        self._handle_reset = None
        self._history = None

        if isinstance(source, Source) and source.supports_reset:
            self._handle_reset = source.reset

    # --------- traversal ----------
    def act(self, value: Any, key: Any = None) -> IterateAction:
        """
        Offer one element to the current callback and return the action it
        requested. Sources call this once per element.
        """
        self.action = IterateAction.CONTINUE
        self.replace_with = None

        self.callback(value, key, self)

        return self.action

    def each(self, callback: Callable) -> "Iterate":
        """
        Invoke ``callback(value, key, iterator)`` for each value. The callback
        may call ``stop``, ``remove`` or ``replace`` on the iterator; it may
        also declare fewer parameters.
        """
        return self._each(adapt(callback, 3))

    def _each(self, callback: Callable) -> "Iterate":
        self.result = None
        self.callback = callback
        self.action = IterateAction.CONTINUE
        try:
            self._source(self)
        finally:
            self.callback = None

        return self

    def stop(self, result: Any = None) -> "Iterate":
        """Stop iteration, optionally keeping a result"""
        self.result = result
        self.action = IterateAction.STOP
        return self

    def is_stopped(self) -> bool:
        return self.action is IterateAction.STOP

    def remove(self) -> "Iterate":
        """Ask the source to remove the current value"""
        self.action = IterateAction.REMOVE
        return self

    def replace(self, replace_with: Any) -> "Iterate":
        """Ask the source to replace the current value"""
        self.replace_with = replace_with
        self.action = IterateAction.REPLACE
        return self

    def with_result(self, get_result: Callable[[Any], Any]) -> "Iterate":
        """Pass the result given to ``stop`` to ``get_result``, if there was one"""
        if self.result is not None:
            get_result(self.result)
        return self

    def __iter__(self):
        return iter(self.to_list())

    @property
    def source(self) -> Callable[["Iterate"], Any]:
        """The source this iterator drives"""
        return self._source

    # --------- reset & clone ----------
    def on_reset(self, handle_reset: Optional[Callable[[Any], Any]]) -> "Iterate":
        self._handle_reset = handle_reset
        return self

    def can_reset(self) -> bool:
        return self._handle_reset is not None

    def reset(self, source: Any, strict: bool = True) -> "Iterate":
        """
        Swap the structure iterated by the underlying source. Raises
        ResetNotSupportedError when that is not possible and ``strict``.
        """
        if self._handle_reset is not None:
            self._handle_reset(source)
            logger.debug(f"Iterator reset to new source of type {type(source).__name__}")
        elif strict:
            raise ResetNotSupportedError("This iterator does not support reset.")
        return self

    def clone(self) -> "Iterate":
        """An independent iterator over the same source, for nested traversals"""
        return Iterate(self._source, self).on_reset(self._handle_reset)

    def _derive(self, source: Callable[["Iterate"], Any]) -> "Iterate":
        return Iterate(source, self).on_reset(self._handle_reset)

    # --------- comparison logic ----------
    def with_equality(self, equality: Equality) -> "Iterate":
        self._logic = self._logic.with_equality(equality)
        return self

    def with_comparator(self, comparator: Comparator) -> "Iterate":
        """Set the comparator; equality is derived from it when not already set"""
        self._logic = self._logic.with_comparator(comparator)
        return self

    def numbers(self, ascending: bool = True, nulls_first: bool = False) -> "Iterate":
        self._logic = self._logic.with_logic(number_comparator(ascending, nulls_first))
        return self

    def strings(self, sensitive: bool = True, ascending: bool = True,
                nulls_first: bool = False) -> "Iterate":
        self._logic = self._logic.with_logic(string_comparator(sensitive, ascending, nulls_first))
        return self

    def dates(self, equality_timespan: timedelta = timedelta(milliseconds=1), utc: bool = True,
              ascending: bool = True, nulls_first: bool = False) -> "Iterate":
        """
        Date ordering, with equality decided by ``equality_timespan``: pass
        ``timedelta(days=1)`` to treat datetimes on the same day as equal.
        """
        self._logic = self._logic.with_logic(
            date_comparator(ascending, nulls_first),
            date_equality(equality_timespan, utc)
        )
        return self

    def desc(self, comparator: Optional[Comparator] = None) -> "Iterate":
        """Reverse the given or current comparator; no effect without one"""
        self._logic = self._logic.descending(comparator)
        return self

    def get_equality(self, equality: Optional[Equality] = None) -> Equality:
        return equality or self._logic.equality or default_equality

    def get_comparator(self, comparator: Optional[Comparator] = None,
                       operation: str = "comparison") -> Comparator:
        return self._require_comparator(self._logic, comparator, operation)

    @staticmethod
    def _require_comparator(logic: IterateLogic, comparator: Optional[Comparator],
                            operation: str) -> Comparator:
        compare = comparator or logic.comparator
        if compare is None:
            raise ComparatorRequiredError(operation)
        return compare

    # --------- operations ----------
    def empty(self, set_result: Optional[Callable] = None):
        """Whether there are no values"""
        result = not self._each(lambda value, key, it: it.stop()).is_stopped()
        return deliver(self, result, set_result)

    def has(self, set_result: Optional[Callable] = None):
        """Whether there is at least one value"""
        result = self._each(lambda value, key, it: it.stop()).is_stopped()
        return deliver(self, result, set_result)

    def contains(self, value: Any, set_result: Optional[Callable] = None):
        equality = self.get_equality()
        result = self.where(lambda other: equality(other, value)).has()
        return deliver(self, result, set_result)

    def count(self, set_result: Optional[Callable] = None):
        counted = 0

        def increment(value, key, it):
            nonlocal counted
            counted += 1

        self._each(increment)
        return deliver(self, counted, set_result)

    def first(self, set_result: Optional[Callable] = None):
        """The first value, or None"""
        result = self._each(lambda value, key, it: it.stop(value)).result
        return deliver(self, result, set_result)

    def last(self, set_result: Optional[Callable] = None):
        """The last value, or None"""
        result = None

        def remember(value, key, it):
            nonlocal result
            result = value

        self._each(remember)
        return deliver(self, result, set_result)

    def to_list(self, out: Optional[List[Any]] = None, set_result: Optional[Callable] = None):
        """Values appended to ``out`` (a new list by default)"""
        result = [] if out is None else out
        self._each(lambda value, key, it: result.append(value))
        return deliver(self, result, set_result)

    def entries(self, out: Optional[List[Any]] = None, set_result: Optional[Callable] = None):
        """``(key, value)`` pairs appended to ``out``"""
        result = [] if out is None else out
        self._each(lambda value, key, it: result.append((key, value)))
        return deliver(self, result, set_result)

    def to_set(self, out: Optional[set] = None, set_result: Optional[Callable] = None):
        result = set() if out is None else out
        self._each(lambda value, key, it: result.add(value))
        return deliver(self, result, set_result)

    def to_dict(self, out: Optional[Dict[Any, Any]] = None, set_result: Optional[Callable] = None):
        """Values keyed by their keys"""
        result = {} if out is None else out

        def store(value, key, it):
            result[key] = value

        self._each(store)
        return deliver(self, result, set_result)

    def to_object(self, get_key: Callable, out: Optional[Dict[Any, Any]] = None,
                  set_result: Optional[Callable] = None):
        """Values keyed by ``get_key(value, key)``"""
        get_key = adapt(get_key, 2)
        result = {} if out is None else out

        def store(value, key, it):
            result[get_key(value, key)] = value

        self._each(store)
        return deliver(self, result, set_result)

    def group_by(self, by: Callable, out: Optional[Dict[Any, List[Any]]] = None,
                 set_result: Optional[Callable] = None):
        """Lists of values keyed by ``by(value, key)``"""
        by = adapt(by, 2)
        result = {} if out is None else out

        def store(value, key, it):
            group = by(value, key)
            if group in result:
                result[group].append(value)
            else:
                result[group] = [value]

        self._each(store)
        return deliver(self, result, set_result)

    def reduce(self, initial: Any, reducer: Callable[[Any, Any], Any],
               set_result: Optional[Callable] = None):
        """Fold the values from the left with ``reducer(reduced, value)``"""
        reduced = initial

        def fold(value, key, it):
            nonlocal reduced
            reduced = reducer(reduced, value)

        self._each(fold)
        return deliver(self, reduced, set_result)

    def min(self, comparator: Optional[Comparator] = None, set_result: Optional[Callable] = None):
        """The smallest value, or None when empty"""
        compare = self.get_comparator(comparator, "min")
        result = self.reduce(
            _MISSING,
            lambda smallest, value: value if smallest is _MISSING or compare(value, smallest) < 0 else smallest
        )
        return deliver(self, None if result is _MISSING else result, set_result)

    def max(self, comparator: Optional[Comparator] = None, set_result: Optional[Callable] = None):
        """The largest value, or None when empty"""
        compare = self.get_comparator(comparator, "max")
        result = self.reduce(
            _MISSING,
            lambda largest, value: value if largest is _MISSING or compare(value, largest) > 0 else largest
        )
        return deliver(self, None if result is _MISSING else result, set_result)

    def changes(self, on_add: Callable, on_remove: Callable, on_present: Callable,
                get_identifier: Optional[Callable] = None) -> "Iterate":
        """
        Report what changed since the last call on this same iterator.

        ``on_add`` receives values not seen last time, ``on_present`` values
        seen before, and ``on_remove`` (called after the traversal) values
        that are gone. The first call reports everything as added. Values
        are tracked by ``get_identifier(value, key, iterator)`` when given,
        otherwise by the value itself; identifiers must be hashable.
        """
        on_add = adapt(on_add, 3)
        on_remove = adapt(on_remove, 3)
        on_present = adapt(on_present, 3)
        get_identifier = adapt(get_identifier, 3) if get_identifier else None

        if self._history is None:
            self._history = {}

        history = self._history
        not_removed = dict(history)

        def track(value, key, it):
            identifier = get_identifier(value, key, it) if get_identifier else value

            if identifier in history:
                on_present(value, key, it)
            else:
                on_add(value, key, it)

                if it.action is not IterateAction.REMOVE:
                    history[identifier] = (key, value)

            not_removed.pop(identifier, None)

        self._each(track)

        for identifier, (key, value) in not_removed.items():
            del history[identifier]
            on_remove(value, key, self)

        return self

    # --------- mutations ----------
    def delete(self) -> "Iterate":
        """Remove every value in this view from the source"""
        return self._each(lambda value, key, it: it.remove())

    def extract(self, set_result: Optional[Callable] = None):
        """Remove every value in this view and return an iterator over them"""
        extracted = []

        def take_out(value, key, it):
            extracted.append((key, value))
            it.remove()

        self._each(take_out)
        result = Iterate(EntriesSource(extracted), self)
        return deliver(self, result, set_result)

    def overwrite(self, replacement: Any) -> "Iterate":
        """Replace every value in this view with ``replacement``"""
        return self._each(lambda value, key, it: it.replace(replacement))

    def update(self, updater: Callable) -> "Iterate":
        """Replace every value in this view with ``updater(value, key)``"""
        updater = adapt(updater, 2)
        return self._each(lambda value, key, it: it.replace(updater(value, key)))

    # --------- composition ----------
    def fork(self, forker: Callable[["Iterate"], Any]) -> "Iterate":
        """
        Run ``forker(self)`` and return self. Forks run one after another, so
        a fork sees the mutations of the forks before it.
        """
        forker(self)
        return self

    sub = fork

    def split(self, by: Callable, handle: Optional[Callable] = None):
        """
        Views of the values passing and failing ``by``. With ``handle`` the
        views are passed to it and self is returned.
        """
        passed = self.where(by)
        failed = self.not_(by)

        if handle is not None:
            handle(passed, failed)
            return self

        return SplitViews(passed, failed)

    def unzip(self, handle: Optional[Callable] = None):
        """Views of the keys and the values; see ``split`` for ``handle``"""
        keys = self.keys()
        values = self.values()

        if handle is not None:
            handle(keys, values)
            return self

        return UnzipViews(keys, values)

    # --------- views ----------
    def view(self, get_data: Callable[[], Any],
             should_act: Callable[[Any, Any, Any], Any],
             after_act: Optional[Callable[[Any, Any, Any, "Iterate"], Any]] = None,
             after_skip: Optional[Callable[[Any, Any, Any, "Iterate"], Any]] = None) -> "Iterate":
        """
        Build a filtering view.

        ``get_data()`` is called once per traversal. Values for which
        ``should_act(data, value, key)`` holds are forwarded, and the action
        the consumer requests is applied to this iterator. ``after_act`` and
        ``after_skip`` run after a value was forwarded or skipped.
        """
        def source(next_iterator):
            data = get_data()

            def forward(value, key, prev):
                if should_act(data, value, key):
                    action = next_iterator.act(value, key)

                    if action is IterateAction.STOP:
                        prev.stop()
                    elif action is IterateAction.REMOVE:
                        prev.remove()
                    elif action is IterateAction.REPLACE:
                        prev.replace(next_iterator.replace_with)

                    if after_act is not None:
                        after_act(data, value, key, prev)
                elif after_skip is not None:
                    after_skip(data, value, key, prev)

            self._each(forward)

        return self._derive(source)

    def where(self, where: Callable) -> "Iterate":
        """Values for which ``where(value, key)`` is truthy"""
        where = adapt(where, 2)
        return self.view(lambda: None, lambda data, value, key: where(value, key))

    filter = where

    def not_(self, not_: Callable) -> "Iterate":
        """Values for which ``not_(value, key)`` is falsy"""
        not_ = adapt(not_, 2)
        return self.view(lambda: None, lambda data, value, key: not not_(value, key))

    def _threshold(self, threshold: Any, comparator: Optional[Comparator],
                   test: Callable[[float], bool], operation: str) -> "Iterate":
        logic = self._logic
        return self.view(
            lambda: self._require_comparator(logic, comparator, operation),
            lambda compare, value, key: test(compare(value, threshold))
        )

    def gt(self, threshold: Any, comparator: Optional[Comparator] = None) -> "Iterate":
        return self._threshold(threshold, comparator, lambda c: c > 0, "gt")

    def gte(self, threshold: Any, comparator: Optional[Comparator] = None) -> "Iterate":
        return self._threshold(threshold, comparator, lambda c: c >= 0, "gte")

    def lt(self, threshold: Any, comparator: Optional[Comparator] = None) -> "Iterate":
        return self._threshold(threshold, comparator, lambda c: c < 0, "lt")

    def lte(self, threshold: Any, comparator: Optional[Comparator] = None) -> "Iterate":
        return self._threshold(threshold, comparator, lambda c: c <= 0, "lte")

    def _membership(self, source: Any, equality: Optional[Equality]):
        from iteratez.dispatch import iterate

        logic = self._logic

        def get_data():
            others = iterate(source).to_list()
            return others, equality or logic.equality or default_equality

        return get_data

    def exclude(self, source: Any, equality: Optional[Equality] = None) -> "Iterate":
        """Values not found in ``source``"""
        return self.view(
            self._membership(source, equality),
            lambda data, value, key: not any(data[1](other, value) for other in data[0])
        )

    def intersect(self, source: Any, equality: Optional[Equality] = None) -> "Iterate":
        """Values also found in ``source``"""
        return self.view(
            self._membership(source, equality),
            lambda data, value, key: any(data[1](other, value) for other in data[0])
        )

    def unique(self, equality: Optional[Equality] = None) -> "Iterate":
        """The first occurrence of every value"""
        logic = self._logic

        def get_data():
            return {"seen": [], "equals": equality or logic.equality or default_equality}

        def should_act(data, value, key):
            equals = data["equals"]
            return not any(equals(existing, value) for existing in data["seen"])

        return self.view(
            get_data,
            should_act,
            lambda data, value, key, prev: data["seen"].append(value)
        )

    def duplicates(self, only_once: bool = False, equality: Optional[Equality] = None) -> "Iterate":
        """
        Values already seen earlier in the traversal. With ``only_once`` a
        value is forwarded on its second occurrence only.
        """
        logic = self._logic

        def get_data():
            return {"seen": [], "repeated": [], "equals": equality or logic.equality or default_equality}

        def should_act(data, value, key):
            seen, repeated, equals = data["seen"], data["repeated"], data["equals"]

            for index, existing in enumerate(seen):
                if equals(existing, value):
                    act = not (repeated[index] and only_once)
                    repeated[index] = True
                    return act

            seen.append(value)
            repeated.append(False)
            return False

        return self.view(get_data, should_act)

    def take(self, amount: int) -> "Iterate":
        """At most ``amount`` values"""
        amount = int(amount)
        if amount <= 0:
            return self._derive(EmptySource())

        def after_act(data, value, key, prev):
            data["left"] -= 1
            # a pending remove/replace must reach the source, so stop on the next value instead
            if data["left"] == 0 and prev.action is IterateAction.CONTINUE:
                prev.stop()

        return self.view(
            lambda: {"left": amount},
            lambda data, value, key: data["left"] > 0,
            after_act,
            lambda data, value, key, prev: prev.stop()
        )

    def skip(self, amount: int) -> "Iterate":
        """All but the first ``amount`` values"""
        amount = int(amount)

        def count(data, value, key, prev):
            data["skipped"] += 1

        return self.view(
            lambda: {"skipped": 0},
            lambda data, value, key: data["skipped"] >= amount,
            count,
            count
        )

    def drop(self, amount: int) -> "Iterate":
        """All but the last ``amount`` values"""
        return self.reverse().skip(amount).reverse()

    def append(self, *sources: Any) -> "Iterate":
        """These values followed by the values of each source"""
        from iteratez.dispatch import iterate

        return self._derive(JoinSource([self] + [iterate(source) for source in sources]))

    def prepend(self, *sources: Any) -> "Iterate":
        """The values of each source followed by these values"""
        from iteratez.dispatch import iterate

        return self._derive(JoinSource([iterate(source) for source in sources] + [self]))

    def readonly(self) -> "Iterate":
        """A view that ignores remove and replace requests"""
        def source(next_iterator):
            def forward(value, key, prev):
                if next_iterator.act(value, key) is IterateAction.STOP:
                    prev.stop()

            self._each(forward)

        return self._derive(source)

    def keys(self) -> "Iterate":
        """
        The keys as values, keyed by position. Removing a key removes its
        value from the source; replacing a key is ignored.
        """
        def source(next_iterator):
            index = 0

            def forward(value, key, prev):
                nonlocal index
                action = next_iterator.act(key, index)
                index += 1

                if action is IterateAction.STOP:
                    prev.stop()
                elif action is IterateAction.REMOVE:
                    prev.remove()

            self._each(forward)

        return self._derive(source)

    def values(self) -> "Iterate":
        """The values keyed by position"""
        def source(next_iterator):
            index = 0

            def forward(value, key, prev):
                nonlocal index
                action = next_iterator.act(value, index)
                index += 1

                if action is IterateAction.STOP:
                    prev.stop()
                elif action is IterateAction.REMOVE:
                    prev.remove()
                elif action is IterateAction.REPLACE:
                    prev.replace(next_iterator.replace_with)

            self._each(forward)

        return self._derive(source)

    def transform(self, transformer: Callable, untransformer: Optional[Callable] = None) -> "Iterate":
        """
        Values converted by ``transformer(value, key, iterator)``. A None
        result skips the value. Replacements are converted back with
        ``untransformer(replace_with, current, value, key)``; without one they
        are ignored.
        """
        transformer = adapt(transformer, 3)
        untransformer = adapt(untransformer, 4) if untransformer else None

        def source(next_iterator):
            def forward(value, key, prev):
                mapped = transformer(value, key, prev)
                if mapped is None:
                    return

                action = next_iterator.act(mapped, key)

                if action is IterateAction.STOP:
                    prev.stop()
                elif action is IterateAction.REMOVE:
                    prev.remove()
                elif action is IterateAction.REPLACE and untransformer is not None:
                    prev.replace(untransformer(next_iterator.replace_with, mapped, value, key))

            self._each(forward)

        return self._derive(source)

    map = transform

    def copy(self) -> "Iterate":
        """An iterator over a snapshot of these values, independent of the source"""
        return Iterate(EntriesSource(self.entries()), self)

    def view_resolved(self, on_resolve: Callable[[List[Any], Callable], Any]) -> "Iterate":
        """
        Build a view that needs every value before it can produce any.

        ``on_resolve(pairs, handle_act)`` receives the ``(key, value)`` pairs
        and calls ``handle_act(value, key, index)`` in the order it wants,
        where ``index`` is the position of the pair. Removes and replaces are
        applied afterwards by walking this iterator again and matching
        positions, since sources only act on the element they are offering.
        """
        def source(next_iterator):
            pairs = self.entries()
            pending = {}

            def handle_act(value, key, index):
                action = next_iterator.act(value, key)

                if action is IterateAction.REMOVE or action is IterateAction.REPLACE:
                    pending[index] = (action, value, next_iterator.replace_with)

                return action

            on_resolve(pairs, handle_act)

            if not pending:
                return

            logger.debug(f"Applying {len(pending)} pending actions from a resolved view of {len(pairs)} values")
            last = max(pending)
            position = 0

            def apply(value, key, prev):
                nonlocal position
                index = position
                position += 1

                if index > last:
                    prev.stop()
                    return

                if index not in pending:
                    return

                action, original, replacement = pending[index]
                if value is original or value == original:
                    if action is IterateAction.REMOVE:
                        prev.remove()
                    else:
                        prev.replace(replacement)

            self._each(apply)

        return self._derive(source)

    def sorted(self, comparator: Optional[Comparator] = None) -> "Iterate":
        """The values in a stable order given by the comparator"""
        logic = self._logic

        def resolve(pairs, handle_act):
            compare = self._require_comparator(logic, comparator, "sorted")
            ordered = sorted(range(len(pairs)), key=cmp_to_key(lambda a, b: compare(pairs[a][1], pairs[b][1])))

            for index in ordered:
                key, value = pairs[index]
                if handle_act(value, key, index) is IterateAction.STOP:
                    return

        return self.view_resolved(resolve)

    def shuffle(self, passes: int = 1, rng: Optional[random.Random] = None) -> "Iterate":
        """The values in random order; pass ``rng`` for a reproducible order"""
        options = ShuffleOptions(passes=passes)
        generator = rng or random

        def resolve(pairs, handle_act):
            size = len(pairs)
            order = list(range(size))

            for _ in range(options.passes):
                for k in range(size):
                    j = generator.randrange(size)
                    order[j], order[k] = order[k], order[j]

            for index in order:
                key, value = pairs[index]
                if handle_act(value, key, index) is IterateAction.STOP:
                    return

        return self.view_resolved(resolve)

    def reverse(self) -> "Iterate":
        def resolve(pairs, handle_act):
            for index in range(len(pairs) - 1, -1, -1):
                key, value = pairs[index]
                if handle_act(value, key, index) is IterateAction.STOP:
                    return

        return self.view_resolved(resolve)
