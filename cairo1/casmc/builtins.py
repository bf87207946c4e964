# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Entry point calling conventions.

Two conventions are supported and produce different output shapes:

Contract convention (`derive_entry_point`): the signature must end with
`(GasBuiltin, System)`; every parameter before that is a builtin resource, and
the return type must be `Result<(Span<felt252>,), E>`. The result is the
entry offset plus the ordered builtin names.

Plain program convention (`get_function_builtins`): builtins are detected by
debug name anywhere in the parameter list; no ordering or return type rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from cairo1.casmc.core.errors import InvalidEntryPointSignature, SignatureErrorKind
from cairo1.casmc.core.sierra_ids import (
	BITWISE,
	EC_OP,
	GAS_BUILTIN,
	PEDERSEN,
	POSEIDON,
	RANGE_CHECK,
	SEGMENT_ARENA,
	SYSTEM,
	ConcreteTypeId,
	GenericTypeId,
)
from cairo1.casmc.casm.program import CairoProgramDebugInfo
from cairo1.casmc.sierra.program import Function, FunctionSignature
from cairo1.casmc.type_resolver import ReturnTypeViolation, TypeResolver


class BuiltinName(Enum):
	RANGE_CHECK = "range_check"
	BITWISE = "bitwise"
	PEDERSEN = "pedersen"
	EC_OP = "ec_op"
	POSEIDON = "poseidon"
	SEGMENT_ARENA = "segment_arena"


ENTRY_POINT_BUILTINS: Dict[GenericTypeId, BuiltinName] = {
	RANGE_CHECK: BuiltinName.RANGE_CHECK,
	BITWISE: BuiltinName.BITWISE,
	PEDERSEN: BuiltinName.PEDERSEN,
	EC_OP: BuiltinName.EC_OP,
	POSEIDON: BuiltinName.POSEIDON,
	SEGMENT_ARENA: BuiltinName.SEGMENT_ARENA,
}

# Plain program convention: scan order and debug names.
PROGRAM_BUILTINS: Tuple[Tuple[str, BuiltinName, GenericTypeId], ...] = (
	("Poseidon", BuiltinName.POSEIDON, POSEIDON),
	("EcOp", BuiltinName.EC_OP, EC_OP),
	("Bitwise", BuiltinName.BITWISE, BITWISE),
	("RangeCheck", BuiltinName.RANGE_CHECK, RANGE_CHECK),
	("Pedersen", BuiltinName.PEDERSEN, PEDERSEN),
)
PROGRAM_BUILTIN_BASE_OFFSET = 3

_RETURN_VIOLATION_KINDS = {
	ReturnTypeViolation.NOT_A_RESULT: (
		SignatureErrorKind.NOT_A_RESULT,
		"return type must be a Result (an enum with exactly two variants)",
	),
	ReturnTypeViolation.INVALID_OK_TYPE: (
		SignatureErrorKind.INVALID_OK_TYPE,
		"Result ok variant must be a one-field tuple of Span<felt252>",
	),
	ReturnTypeViolation.INVALID_ERR_TYPE: (
		SignatureErrorKind.INVALID_ERR_TYPE,
		"Result err variant must be Array<felt252> or a (panic, felt252 data) tuple",
	),
}


@dataclass(frozen=True)
class EntryPoint:
	"""Calling convention of the main entry point."""

	offset: int
	builtins: Tuple[str, ...]


def _type_label(resolver: TypeResolver, ty: ConcreteTypeId) -> str:
	return ty.debug_name or str(resolver.get_long_id(ty))


def get_entry_point_builtins(
	resolver: TypeResolver,
	param_types: Sequence[ConcreteTypeId],
	*,
	enforce_known_builtins: bool = True,
	function: Optional[str] = None,
) -> List[str]:
	"""
	Derive the ordered builtin list from a contract-convention parameter list.

	The last two params must be `GasBuiltin, System`. The remaining params are
	peeled right to left and prepended, so the result keeps declaration order.
	With `enforce_known_builtins=False` unrecognized params are skipped instead
	of rejected.
	"""
	if len(param_types) < 2:
		raise InvalidEntryPointSignature(
			SignatureErrorKind.MISSING_ARGS,
			f"expected at least 2 params (GasBuiltin, System), got {len(param_types)}",
			function=function,
		)
	leading, (gas_ty, system_ty) = param_types[:-2], param_types[-2:]
	gas_id = resolver.get_generic_id(gas_ty)
	system_id = resolver.get_generic_id(system_ty)
	if gas_id != GAS_BUILTIN or system_id != SYSTEM:
		raise InvalidEntryPointSignature(
			SignatureErrorKind.WRONG_BUILTIN_ORDER,
			f"last two params must be (GasBuiltin, System), got ({gas_id}, {system_id})",
			function=function,
		)

	builtins: List[str] = []
	for idx in range(len(leading) - 1, -1, -1):
		ty = leading[idx]
		generic_id = resolver.get_generic_id(ty)
		if generic_id in (GAS_BUILTIN, SYSTEM):
			raise InvalidEntryPointSignature(
				SignatureErrorKind.WRONG_BUILTIN_ORDER,
				f"param #{idx} ({generic_id}) must only appear in the trailing (GasBuiltin, System) pair",
				function=function,
			)
		builtin = ENTRY_POINT_BUILTINS.get(generic_id)
		if builtin is None:
			if enforce_known_builtins:
				raise InvalidEntryPointSignature(
					SignatureErrorKind.UNKNOWN_BUILTIN,
					f"param #{idx} has unsupported builtin type {_type_label(resolver, ty)}",
					function=function,
				)
			continue
		builtins.insert(0, builtin.value)
	return builtins


def validate_entry_point_return_types(
	resolver: TypeResolver,
	ret_types: Sequence[ConcreteTypeId],
	*,
	array_panic_data: bool = False,
	function: Optional[str] = None,
) -> None:
	"""The last return type carries the Result; earlier ones are the returned builtins."""
	if not ret_types:
		raise InvalidEntryPointSignature(
			SignatureErrorKind.NO_RETURN_TYPE,
			"entry point must return a Result",
			function=function,
		)
	ret_ty = ret_types[-1]
	violation = resolver.entry_point_return_type_violation(ret_ty, array_panic_data=array_panic_data)
	if violation is None:
		return
	kind, detail = _RETURN_VIOLATION_KINDS[violation]
	raise InvalidEntryPointSignature(kind, f"{detail}; got {_type_label(resolver, ret_ty)}", function=function)


def derive_entry_point(
	resolver: TypeResolver,
	func: Function,
	debug_info: CairoProgramDebugInfo,
	*,
	enforce_known_builtins: bool = True,
	array_panic_data: bool = False,
) -> EntryPoint:
	"""Validate `func` against the contract convention and locate its code offset."""
	builtins = derive_builtins(
		resolver,
		func.signature,
		enforce_known_builtins=enforce_known_builtins,
		array_panic_data=array_panic_data,
		function=func.name,
	)
	return EntryPoint(offset=debug_info.code_offset(func.entry_point), builtins=tuple(builtins))


def derive_builtins(
	resolver: TypeResolver,
	signature: FunctionSignature,
	*,
	enforce_known_builtins: bool = True,
	array_panic_data: bool = False,
	function: Optional[str] = None,
) -> List[str]:
	builtins = get_entry_point_builtins(
		resolver,
		signature.param_types,
		enforce_known_builtins=enforce_known_builtins,
		function=function,
	)
	validate_entry_point_return_types(
		resolver,
		signature.ret_types,
		array_panic_data=array_panic_data,
		function=function,
	)
	return builtins


def get_function_builtins(
	param_types: Sequence[ConcreteTypeId],
) -> Tuple[List[BuiltinName], Dict[GenericTypeId, int]]:
	"""
	Plain program convention.

	Returns the builtin list in runner order (the reverse of the scan order) and
	the stack offset assigned to each builtin's generic id, counting up from 3
	in scan order.
	"""
	builtins: List[BuiltinName] = []
	offsets: Dict[GenericTypeId, int] = {}
	current_offset = PROGRAM_BUILTIN_BASE_OFFSET
	names = {ty.debug_name for ty in param_types if ty.debug_name is not None}
	for debug_name, builtin, generic_id in PROGRAM_BUILTINS:
		if debug_name in names:
			builtins.append(builtin)
			offsets[generic_id] = current_offset
			current_offset += 1
	builtins.reverse()
	return builtins, offsets


__all__ = [
	"BuiltinName",
	"ENTRY_POINT_BUILTINS",
	"PROGRAM_BUILTINS",
	"PROGRAM_BUILTIN_BASE_OFFSET",
	"EntryPoint",
	"get_entry_point_builtins",
	"validate_entry_point_return_types",
	"derive_entry_point",
	"derive_builtins",
	"get_function_builtins",
]
