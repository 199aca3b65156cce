"""Tests for thread reconstruction."""

from dataclasses import dataclass

import pytest

from logbook.services.thread_tree import assemble_thread


@dataclass
class Row:
    id: int
    parent_log_id: int


def _shape(node):
    return (node.log.id, [_shape(child) for child in node.children])


def test_tree_shape_and_order():
    rows = [Row(4, 2), Row(1, 1), Row(3, 2), Row(6, 1), Row(2, 1)]

    tree = assemble_thread(rows, root_log_id=1)

    assert _shape(tree) == (1, [(2, [(3, []), (4, [])]), (6, [])])


def test_any_input_order_gives_same_tree():
    rows = [Row(1, 1), Row(2, 1), Row(3, 2), Row(4, 3), Row(5, 1)]

    assert _shape(assemble_thread(rows, 1)) == _shape(assemble_thread(list(reversed(rows)), 1))


def test_orphans_hang_under_root():
    rows = [Row(1, 1), Row(7, 5)]

    assert _shape(assemble_thread(rows, 1)) == (1, [(7, [])])


def test_walk_is_pre_order():
    rows = [Row(1, 1), Row(2, 1), Row(3, 2), Row(4, 1)]

    assert [n.log.id for n in assemble_thread(rows, 1).walk()] == [1, 2, 3, 4]


def test_missing_root_raises():
    with pytest.raises(ValueError):
        assemble_thread([Row(2, 1)], 1)
