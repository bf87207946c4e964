# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Bytecode segment lengths.

The bytecode is split at function entry points so a verifier that only needs
some functions can skip the rest by length. Layout of the result:

  Node([Leaf(fn_0), ..., Leaf(fn_k)])                      # no constants
  Node([Leaf(fn_0), ..., Leaf(fn_k), Node([Leaf(c_0), ...])])

where `fn_i` are the code lengths of the functions in entry point order and
`c_j` the lengths of the const segments appended after the code. Leaves always
sum to the bytecode length.

Failures raise SegmentationError; callers treat segmentation as optional.
"""

from __future__ import annotations

from typing import List, Sequence

from cairo1.casmc.core.errors import SegmentationError
from cairo1.casmc.core.nested_int_list import Leaf, NestedIntList, Node, total_length
from cairo1.casmc.casm.program import CairoProgram
from cairo1.casmc.sierra.program import Program


def find_function_segment_starts(program: Program) -> List[int]:
	"""Sorted distinct entry point statements; the first must be statement 0."""
	starts = sorted({f.entry_point for f in program.funcs})
	if not starts:
		raise SegmentationError("program has no functions")
	if starts[0] != 0:
		raise SegmentationError(f"the first function must start at statement 0, got statement #{starts[0]}")
	return starts


def get_segment_lengths(segment_starts: Sequence[int], end: int) -> List[int]:
	"""Lengths of the runs `[start_i, start_{i+1})` with `end` closing the last run."""
	if not segment_starts or segment_starts[0] != 0:
		raise SegmentationError("the first segment must start at offset 0")
	lengths: List[int] = []
	bounds = list(segment_starts) + [end]
	for start, stop in zip(bounds, bounds[1:]):
		if stop < start:
			raise SegmentationError(f"segment offsets are not increasing ({start} > {stop})")
		lengths.append(stop - start)
	return lengths


def compute_bytecode_segment_lengths(program: Program, cairo_program: CairoProgram, bytecode_len: int) -> NestedIntList:
	if bytecode_len == 0:
		return Leaf(0)
	statement_info = cairo_program.debug_info.sierra_statement_info
	offsets: List[int] = []
	for idx in find_function_segment_starts(program):
		if idx >= len(statement_info):
			raise SegmentationError(f"missing debug info for function entry statement #{idx}")
		offsets.append(statement_info[idx].start_offset)

	code_size = cairo_program.code_size
	if offsets[-1] > code_size:
		raise SegmentationError(f"function offset {offsets[-1]} is past the end of the code ({code_size})")
	children: List[NestedIntList] = [Leaf(n) for n in get_segment_lengths(offsets, code_size)]
	if cairo_program.const_segments:
		children.append(Node(tuple(Leaf(len(seg.values)) for seg in cairo_program.const_segments)))

	result = Node(tuple(children))
	if total_length(result) != bytecode_len:
		raise SegmentationError(
			f"segment lengths sum to {total_length(result)} but the bytecode has {bytecode_len} words"
		)
	return result


__all__ = ["find_function_segment_starts", "get_segment_lengths", "compute_bytecode_segment_lengths"]
