"""
iteratez - Factories

Functions building an Iterate over a specific kind of structure. Most code
should call ``iterate()`` which picks one of these automatically.
"""

from typing import Any, Callable, List, Optional

from iteratez.lazy import Iterate
from iteratez.sources import (
    EmptySource,
    EntriesSource,
    HasEntriesSource,
    IterableSource,
    JoinSource,
    LinkedSource,
    ListSource,
    ObjectSource,
    TreeSource,
    ZipSource,
)


def _identity(value):
    return value


def empty() -> Iterate:
    """An iterator with no values"""
    return Iterate(EmptySource())


def of_list(values: Optional[List[Any]] = None, strict: bool = True) -> Iterate:
    """Values of a mutable sequence, keyed by index"""
    return Iterate(ListSource(values, strict))


def of_entries(pairs: Optional[List[Any]] = None, strict: bool = True) -> Iterate:
    """A list of ``(key, value)`` pairs"""
    return Iterate(EntriesSource(pairs, strict))


def of_object(target, own_only: bool = True, strict: bool = True) -> Iterate:
    """Attribute values of a plain object, keyed by attribute name"""
    return Iterate(ObjectSource(target, own_only, strict))


def _dict_remove(target, key, value):
    del target[key]


def _dict_replace(target, key, value, new_value):
    target[key] = new_value


def of_dict(mapping, strict: bool = True) -> Iterate:
    """Values of a mutable mapping, keyed by their keys"""
    return Iterate(HasEntriesSource(
        mapping,
        get_entries=lambda target: list(target.items()),
        on_remove=_dict_remove,
        on_replace=_dict_replace,
        contains=lambda target, key: key in target,
        strict=strict
    ))


def _set_remove(target, key, value):
    target.discard(value)


def _set_replace(target, key, value, new_value):
    target.discard(value)
    target.add(new_value)


def of_set(values, strict: bool = True) -> Iterate:
    """Values of a mutable set, each keyed by itself"""
    return Iterate(HasEntriesSource(
        values,
        get_entries=lambda target: [(value, value) for value in target],
        on_remove=_set_remove,
        on_replace=_set_replace,
        contains=lambda target, key: key in target,
        strict=strict
    ))


def of_iterable(values, strict: bool = True) -> Iterate:
    """
    Any iterable, keyed by position. Remove and replace are unsupported:
    they raise, or are dropped when ``strict`` is False.
    """
    return Iterate(IterableSource(values, strict))


def of_has_entries(target, on_remove: Optional[Callable] = None,
                   on_replace: Optional[Callable] = None, strict: bool = True) -> Iterate:
    """
    Anything with an ``entries()`` or ``items()`` method returning
    ``(key, value)`` pairs. Without hooks it is read-only.
    """
    return Iterate(HasEntriesSource(target, on_remove=on_remove, on_replace=on_replace, strict=strict))


def linked(get_value: Callable = None, get_next: Callable = None,
           remove: Optional[Callable] = None, replace_value: Optional[Callable] = None,
           get_key: Callable = None) -> Callable[..., Iterate]:
    """
    Describe a linked list once and get a function building iterators over it.

    ``get_value(node)`` defaults to ``node.value`` and ``get_next(node)`` to
    ``node.next``. ``remove(node, prev)`` must unlink ``node``;
    ``replace_value(node, value)`` stores a new value. Keys default to the
    values.

        nodes = linked(remove=lambda node, prev: setattr(prev, 'next', node.next))
        nodes(previous=head).where(lambda x: x < 0).delete()
    """
    get_value = get_value or (lambda node: node.value)
    get_next = get_next or (lambda node: node.next)
    get_key = get_key or _identity

    def linked_iterator(start=None, previous=None, strict: bool = True) -> Iterate:
        return Iterate(LinkedSource(
            start, previous,
            get_value=get_value,
            get_next=get_next,
            get_key=lambda node: get_key(get_value(node)),
            remove=remove,
            replace_value=replace_value,
            strict=strict
        ))

    return linked_iterator


def tree(get_value: Callable, get_children: Callable,
         replace_value: Optional[Callable] = None,
         get_key: Callable = None) -> Callable[..., Iterate]:
    """
    Describe a tree once and get a function building iterators over it.

    ``get_children(node)`` may return a list, an Iterate, any iterable or
    None. Removing nodes needs a depth-first traversal and children held in
    a removable collection such as a list.
    """
    get_key = get_key or _identity

    def tree_iterator(start=None, depth_first: bool = True, strict: bool = True) -> Iterate:
        return Iterate(TreeSource(
            start,
            get_value=get_value,
            get_children=get_children,
            get_key=lambda node: get_key(get_value(node)),
            replace_value=replace_value,
            depth_first=depth_first,
            strict=strict
        ))

    return tree_iterator


def join(*sources: Any, strict: bool = True) -> Iterate:
    """
    The values of every source, one source after another. ``strict`` applies
    to the sources built here, not to Iterates passed in.
    """
    from iteratez.dispatch import iterate

    return Iterate(JoinSource([iterate(source, strict) for source in sources], strict))


def zipped(keys: Any, values: Any, strict: bool = True) -> Iterate:
    """The values of ``values`` keyed by the values of ``keys``"""
    from iteratez.dispatch import iterate

    return Iterate(ZipSource(iterate(keys, strict), iterate(values, strict), strict))
