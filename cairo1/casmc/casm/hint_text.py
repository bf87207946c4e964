# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Deterministic textual rendering of hints.

The rendering is for tooling and golden comparisons; it is not an executable
translation of the hint. Operands are rendered in the order the compiler
emitted them, with CASM operand shapes spelled the way CASM prints them:

  {"register": "AP", "offset": -1}                -> [ap + -1]
  {"Deref": cell}                                 -> [ap + -1]
  {"DoubleDeref": [cell, 2]}                      -> [[ap + -1] + 2]
  {"Immediate": "0x10"}                           -> 16
  {"BinOp": {"op": "Add", "a": cell, "b": imm}}   -> [fp + 0] + 3

so `{"AllocSegment": {"dst": {"register": "AP", "offset": 0}}}` renders as
`AllocSegment { dst: [ap + 0] }`.
"""

from __future__ import annotations

from typing import Any

from cairo1.casmc.core.felt import parse_int
from .program import Hint

_BIN_OPS = {"Add": "+", "Mul": "*", "Sub": "-", "Div": "/"}


def _is_cell_ref(obj: Any) -> bool:
	return isinstance(obj, dict) and set(obj.keys()) == {"register", "offset"}


def _render_cell_ref(obj: dict) -> str:
	return f"[{str(obj['register']).lower()} + {obj['offset']}]"


def _render_int(raw: Any) -> str:
	try:
		return str(parse_int(raw))
	except ValueError:
		return str(raw)


def render_operand(obj: Any) -> str:
	"""Render a single hint operand."""
	if _is_cell_ref(obj):
		return _render_cell_ref(obj)
	if isinstance(obj, dict) and len(obj) == 1:
		tag, val = next(iter(obj.items()))
		if tag == "Deref":
			return render_operand(val)
		if tag == "DoubleDeref" and isinstance(val, list) and len(val) == 2:
			return f"[{render_operand(val[0])} + {val[1]}]"
		if tag == "Immediate":
			return _render_int(val)
		if tag == "BinOp" and isinstance(val, dict) and {"op", "a", "b"} <= set(val):
			op = _BIN_OPS.get(str(val["op"]), str(val["op"]))
			return f"{render_operand(val['a'])} {op} {render_operand(val['b'])}"
	if isinstance(obj, dict):
		inner = ", ".join(f"{k}: {render_operand(v)}" for k, v in obj.items())
		return "{ " + inner + " }" if inner else "{}"
	if isinstance(obj, list):
		return "[" + ", ".join(render_operand(v) for v in obj) + "]"
	if obj is None:
		return "none"
	if isinstance(obj, bool):
		return "true" if obj else "false"
	return str(obj)


def render_hint(hint: Hint) -> str:
	"""Render a hint as `Name { field: value, ... }` (or just `Name`)."""
	if not hint.operands:
		return hint.name
	fields = ", ".join(f"{k}: {render_operand(v)}" for k, v in hint.operands.items())
	return f"{hint.name} {{ {fields} }}"


__all__ = ["render_operand", "render_hint"]
