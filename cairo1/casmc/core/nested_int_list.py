# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Nested length lists for bytecode segmentation.

A NestedIntList is either a Leaf (a flat run length) or a Node holding child
lists. The JSON form is untagged: a leaf is an int, a node is a list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple, Union


@dataclass(frozen=True)
class Leaf:
	length: int

	def __post_init__(self) -> None:
		if self.length < 0:
			raise ValueError(f"segment length must be non-negative, got {self.length}")


@dataclass(frozen=True)
class Node:
	children: Tuple["NestedIntList", ...]


NestedIntList = Union[Leaf, Node]


def total_length(lst: NestedIntList) -> int:
	"""Sum of every leaf reachable from `lst`."""
	if isinstance(lst, Leaf):
		return lst.length
	return sum(total_length(c) for c in lst.children)


def leaves(lst: NestedIntList) -> list[int]:
	"""Leaf lengths in depth-first order."""
	if isinstance(lst, Leaf):
		return [lst.length]
	out: list[int] = []
	for c in lst.children:
		out.extend(leaves(c))
	return out


def nested_to_json(lst: NestedIntList) -> Any:
	if isinstance(lst, Leaf):
		return lst.length
	return [nested_to_json(c) for c in lst.children]


def nested_from_json(obj: Any) -> NestedIntList:
	if isinstance(obj, bool):
		raise ValueError(f"invalid nested int list element {obj!r}")
	if isinstance(obj, int):
		return Leaf(obj)
	if isinstance(obj, list):
		return Node(tuple(nested_from_json(c) for c in obj))
	raise ValueError(f"invalid nested int list element {obj!r}")


__all__ = ["Leaf", "Node", "NestedIntList", "total_length", "leaves", "nested_to_json", "nested_from_json"]
