"""
Configuration for pytest: import path setup and shared structures to iterate.
"""

import sys
from pathlib import Path

import pytest


# Add the project root to the Python path so iteratez imports without install
parent_dir = Path(__file__).parent.parent
sys.path.insert(0, str(parent_dir))

# Import after path setup
from iteratez import linked, tree


class Node:
    """Singly-linked list node"""

    def __init__(self, value=None, next=None):
        self.value = value
        self.next = next


def build_linked(values):
    """A sentinel head followed by one node per value"""
    head = Node()
    tail = head
    for value in values:
        tail.next = Node(value)
        tail = tail.next
    return head


def linked_values(head):
    values = []
    node = head.next
    while node is not None:
        values.append(node.value)
        node = node.next
    return values


def unlink(node, prev):
    prev.next = node.next


def set_value(node, value):
    node.value = value


@pytest.fixture
def linked_list():
    """Factory for linked lists with a sentinel head"""
    return build_linked


@pytest.fixture
def linked_iterator():
    """Linked list iterator builder supporting remove and replace"""
    return linked(
        get_value=lambda node: node.value,
        get_next=lambda node: node.next,
        remove=unlink,
        replace_value=set_value
    )


@pytest.fixture
def read_linked():
    return linked_values


@pytest.fixture
def family_tree():
    """Three generations of a family, as nested dicts"""
    return {
        'value': 'Harry',
        'children': [{
            'value': 'Michael',
            'children': [
                {'value': 'Robert'},
                {'value': 'Philip', 'children': [{'value': 'Mackenzie'}, {'value': 'Mason'}]},
                {'value': 'Joseph', 'children': [{'value': 'Miles'}]},
                {'value': 'Katlyn'},
                {'value': 'Alyssa'},
            ]
        }, {
            'value': 'Donald'
        }]
    }


@pytest.fixture
def tree_iterator():
    """Tree iterator builder over the family tree nodes"""
    def replace_value(node, value):
        node['value'] = value

    return tree(
        get_value=lambda node: node['value'],
        get_children=lambda node: node.get('children'),
        replace_value=replace_value
    )
