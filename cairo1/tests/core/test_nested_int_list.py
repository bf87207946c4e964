# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from cairo1.casmc.core.nested_int_list import Leaf, Node, leaves, nested_from_json, nested_to_json, total_length


def test_total_length_sums_every_leaf():
	lst = Node((Leaf(3), Node((Leaf(2), Leaf(0))), Leaf(4)))

	assert total_length(lst) == 9
	assert leaves(lst) == [3, 2, 0, 4]


def test_json_form_is_untagged():
	lst = Node((Leaf(3), Node((Leaf(2), Leaf(1)))))

	assert nested_to_json(lst) == [3, [2, 1]]
	assert nested_to_json(Leaf(0)) == 0
	assert nested_from_json([3, [2, 1]]) == lst


def test_empty_node_has_zero_length():
	assert total_length(Node(())) == 0


def test_negative_leaf_is_rejected():
	with pytest.raises(ValueError, match="non-negative"):
		Leaf(-1)


@pytest.mark.parametrize("obj", [True, "3", {"a": 1}, [1, None]])
def test_invalid_json_elements_are_rejected(obj):
	with pytest.raises(ValueError, match="invalid nested int list"):
		nested_from_json(obj)
