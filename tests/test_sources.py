import pytest
from iteratez import (
    UnsupportedActionError,
    empty,
    iterate,
    join,
    of_entries,
    of_has_entries,
    of_iterable,
    of_object,
    tree,
    zipped,
)
from conftest import Node


DEPTH_FIRST = ['Harry', 'Michael', 'Robert', 'Philip', 'Mackenzie', 'Mason', 'Joseph', 'Miles', 'Katlyn', 'Alyssa', 'Donald']
BREADTH_FIRST = ['Harry', 'Michael', 'Donald', 'Robert', 'Philip', 'Joseph', 'Katlyn', 'Alyssa', 'Mackenzie', 'Mason', 'Miles']


class Registry:
    """A structure exposing entries() with removal support"""

    def __init__(self, **values):
        self.values = dict(values)

    def entries(self):
        return list(self.values.items())


class TestSources:
    """Test traversal and mutation of each kind of source"""

    def test_tree_depth_first(self, family_tree, tree_iterator):
        """Test pre-order traversal"""
        result = tree_iterator(family_tree, True).to_list()
        assert result == DEPTH_FIRST, f"Unexpected order {result}"

    def test_tree_breadth_first(self, family_tree, tree_iterator):
        """Test level-order traversal"""
        result = tree_iterator(family_tree, False).to_list()
        assert result == BREADTH_FIRST, f"Unexpected order {result}"

    def test_tree_purge(self, family_tree, tree_iterator):
        """Test removing subtrees through a depth-first filter"""
        tree_iterator(family_tree).where(lambda name: 'e' in name).delete()

        result = tree_iterator(family_tree).to_list()
        assert result == ['Harry', 'Donald'], f"Unexpected tree {result}"

    def test_tree_replace(self, family_tree, tree_iterator):
        """Test replacing every value in the tree"""
        tree_iterator(family_tree).update(lambda name: name.lower())

        result = tree_iterator(family_tree).to_list()
        assert result == [name.lower() for name in DEPTH_FIRST], f"Unexpected tree {result}"

    def test_tree_stop_from_deep_node(self, family_tree, tree_iterator):
        """Test that stopping inside a subtree ends the whole traversal"""
        visited = []

        def visit(name, key, it):
            visited.append(name)
            if name == 'Mackenzie':
                it.stop()

        tree_iterator(family_tree).each(visit)
        assert visited == DEPTH_FIRST[:5], f"Expected traversal to end at Mackenzie, got {visited}"

    def test_tree_remove_kept_when_subtree_stops(self, family_tree, tree_iterator):
        """Test that a removed node stays removed when a stop happens below it"""
        visited = []

        def visit(name, key, it):
            visited.append(name)
            if name == 'Philip':
                it.remove()
            elif name == 'Mackenzie':
                it.stop()

        tree_iterator(family_tree).each(visit)
        assert visited == DEPTH_FIRST[:5], f"Expected traversal to end at Mackenzie, got {visited}"

        result = tree_iterator(family_tree).to_list()
        expected = [name for name in DEPTH_FIRST if name not in ('Philip', 'Mackenzie', 'Mason')]
        assert result == expected, f"Expected Philip's subtree to be gone, got {result}"

    def test_tree_strictness_reaches_children(self):
        """Test that a non-strict tree drops removes its children cannot honour"""
        root = {'value': 1, 'children': ({'value': 2}, {'value': 3})}
        numbers = tree(lambda node: node['value'], lambda node: node.get('children'))

        numbers(root, True, False).where(lambda value: value == 2).delete()
        assert numbers(root).to_list() == [1, 2, 3]

        with pytest.raises(UnsupportedActionError):
            numbers(root).where(lambda value: value == 2).delete()

    def test_tree_first_match(self, family_tree, tree_iterator):
        """Test first() over a filtered tree"""
        assert tree_iterator(family_tree).where(lambda name: name.startswith('M')).first() == 'Michael'
        assert tree_iterator(family_tree, False).where(lambda name: name.startswith('Ma')).first() == 'Mackenzie'

    def test_tree_reset(self, family_tree, tree_iterator):
        """Test resetting a tree iterator to a subtree"""
        it = tree_iterator(family_tree)
        it.reset(family_tree['children'][1])

        assert it.to_list() == ['Donald']

    def test_linked_remove_and_replace(self, linked_list, linked_iterator, read_linked):
        """Test removing and replacing nodes of a linked list"""
        head = linked_list([1, 2, 3, 4, 5])

        linked_iterator(previous=head).where(lambda x: x % 2 == 0).delete()
        assert read_linked(head) == [1, 3, 5]

        linked_iterator(previous=head).update(lambda x: x * 10)
        assert read_linked(head) == [10, 30, 50]

    def test_linked_remove_consecutive(self, linked_list, linked_iterator, read_linked):
        """Test that prev only advances past nodes that were kept"""
        head = linked_list([1, 2, 2, 3, 2])
        linked_iterator(previous=head).where(lambda x: x == 2).delete()

        assert read_linked(head) == [1, 3], f"Unexpected list {read_linked(head)}"

    def test_linked_from_start(self, linked_list, linked_iterator):
        """Test iterating from a start node"""
        head = linked_list([1, 2, 3])
        assert linked_iterator(head.next.next).to_list() == [2, 3]

    def test_linked_circular(self):
        """Test that a circular list ends when it reaches the previous node"""
        first = Node(1)
        second = Node(2, Node(3, first))
        first.next = second

        from iteratez import linked
        nodes = linked()
        assert nodes(previous=first).to_list() == [2, 3]

    def test_join_forwards_mutations(self):
        """Test that removals reach the source owning the value"""
        a = [1, 2, 3]
        b = [4, 5, 6]
        join(a, b).where(lambda x: x % 2 == 0).delete()

        assert a == [1, 3] and b == [5], f"Unexpected lists {a} {b}"

    def test_zip(self):
        """Test pairing keys and values, including removal"""
        keys = ['a', 'b', 'c']
        values = [1, 2, 3, 4]

        assert zipped(keys, values).to_dict() == {'a': 1, 'b': 2, 'c': 3}

        zipped(keys, values).where(lambda v, k: k == 'b').delete()
        assert keys == ['a', 'c'] and values == [1, 3, 4], f"Unexpected {keys} {values}"

        zipped(keys, values).where(lambda v, k: k == 'c').overwrite(30)
        assert values == [1, 30, 4], f"Unexpected {values}"

    def test_zip_stop(self):
        """Test that stopping a zip stops the values"""
        assert zipped(['a', 'b', 'c'], [1, 2, 3]).take(2).to_list() == [1, 2]

    def test_entries_source(self):
        """Test a list of key/value pairs"""
        pairs = [('a', 1), ('b', 2)]
        of_entries(pairs).where(lambda v: v == 2).overwrite(20)

        assert pairs == [('a', 1), ('b', 20)], f"Unexpected pairs {pairs}"

    def test_has_entries_hooks(self):
        """Test entries()-based structures with remove and replace hooks"""
        registry = Registry(a=1, b=2, c=3)

        def remove(target, key, value):
            del target.values[key]

        def replace(target, key, value, new_value):
            target.values[key] = new_value

        of_has_entries(registry, remove, replace).where(lambda v: v == 1).delete()
        of_has_entries(registry, remove, replace).where(lambda v: v == 3).overwrite(9)

        assert registry.values == {'b': 2, 'c': 9}, f"Unexpected values {registry.values}"

    def test_object_attributes(self):
        """Test walking, replacing and removing object attributes"""
        class Settings:
            debug = False

            def __init__(self):
                self.name = 'app'
                self.port = 80

            def describe(self):
                return self.name

        settings = Settings()
        assert of_object(settings).to_dict() == {'name': 'app', 'port': 80}
        assert of_object(settings, own_only=False).to_dict() == {'name': 'app', 'port': 80, 'debug': False}

        of_object(settings).where(lambda v, k: k == 'port').overwrite(8080)
        of_object(settings).where(lambda v, k: k == 'name').delete()

        assert vars(settings) == {'port': 8080}, f"Unexpected attributes {vars(settings)}"

    def test_iterable_sources(self):
        """Test iterating tuples, ranges and generators"""
        assert of_iterable((1, 2, 3)).to_list() == [1, 2, 3]
        assert iterate(range(3)).to_list() == [0, 1, 2]
        assert iterate(x * x for x in range(4)).to_list() == [0, 1, 4, 9]
        assert iterate('ab').to_list() == ['a', 'b']

    def test_empty(self):
        """Test the empty source"""
        assert empty().to_list() == []
        assert empty().has() is False
        assert empty().duplicates().has() is False
