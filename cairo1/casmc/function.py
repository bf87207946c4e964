# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from cairo1.casmc.core.errors import FunctionNotFound
from cairo1.casmc.sierra.program import Function, Program


def find_function(program: Program, name_suffix: str) -> Function:
	"""Return the single function whose debug name ends with `name_suffix`."""
	matches = [f for f in program.funcs if f.id.debug_name is not None and f.id.debug_name.endswith(name_suffix)]
	if not matches:
		raise FunctionNotFound(name_suffix)
	if len(matches) > 1:
		raise FunctionNotFound(name_suffix, candidates=[f.name for f in matches])
	return matches[0]


__all__ = ["find_function"]
