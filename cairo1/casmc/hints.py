# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Project per-instruction hints onto program counters.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from cairo1.casmc.casm.hint_text import render_hint
from cairo1.casmc.casm.program import Hint, Instruction


def build_hints_dict(instructions: Iterable[Instruction]) -> Dict[int, List[Hint]]:
	"""
	Map pc -> hints attached at that pc.

	The pc starts at 0 and advances by each instruction's op_size; instructions
	without hints leave no entry.
	"""
	program_hints: Dict[int, List[Hint]] = {}
	hint_offset = 0
	for inst in instructions:
		if inst.hints:
			program_hints[hint_offset] = list(inst.hints)
		hint_offset += inst.op_size
	return program_hints


def hints_by_pc(hints: Mapping[int, Sequence[Hint]]) -> Tuple[Tuple[int, Tuple[Hint, ...]], ...]:
	return tuple((pc, tuple(hints[pc])) for pc in sorted(hints))


def pythonic_hints(hints: Mapping[int, Sequence[Hint]]) -> Tuple[Tuple[int, Tuple[str, ...]], ...]:
	"""Textual form of every hint, ordered by pc."""
	return tuple((pc, tuple(render_hint(h) for h in hints[pc])) for pc in sorted(hints))


def build_hint_params(hints: Mapping[int, Sequence[Hint]]) -> Dict[str, List[Dict[str, Any]]]:
	"""Hint records in the plain VM program shape (keyed by the pc as a string)."""
	out: Dict[str, List[Dict[str, Any]]] = {}
	for pc in sorted(hints):
		out[str(pc)] = [
			{
				"code": render_hint(h),
				"accessible_scopes": [],
				"flow_tracking_data": {
					"ap_tracking": {"group": 0, "offset": 0},
					"reference_ids": {},
				},
			}
			for h in hints[pc]
		]
	return out


__all__ = ["build_hints_dict", "hints_by_pc", "pythonic_hints", "build_hint_params"]
