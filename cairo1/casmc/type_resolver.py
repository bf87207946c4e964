# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Structural queries over a Sierra type declaration table.

There is no typed front-end at this stage: all we have is the flat table of
`ConcreteTypeLongId`s indexed by `ConcreteTypeId`. The resolver pattern-matches
generic ids and argument shapes to recover the few facts the entry point
calling convention needs (felt252 arrays/spans, Result-shaped enums, tuples).

Predicates return False/None on structural mismatch. Only an id outside the
table is an error (`TypeIdOutOfRange`): the table is assumed consistent with
every id referenced elsewhere in the program.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence, Tuple

from cairo1.casmc.core.errors import TypeIdOutOfRange
from cairo1.casmc.core.sierra_ids import (
	ARRAY,
	ENUM,
	FELT252,
	SNAPSHOT,
	STRUCT,
	ConcreteTypeId,
	GenericTypeId,
	TypeArg,
	UserTypeArg,
	match_generic_args,
)
from cairo1.casmc.sierra.program import ConcreteTypeLongId, TypeDeclaration


class ReturnTypeViolation(Enum):
	"""Which part of the entry point return type convention failed."""

	NOT_A_RESULT = "not_a_result"
	INVALID_OK_TYPE = "invalid_ok_type"
	INVALID_ERR_TYPE = "invalid_err_type"


class TypeResolver:
	"""Read-only lookup over a type declaration table."""

	def __init__(self, type_declarations: Sequence[TypeDeclaration]) -> None:
		self.type_declarations = type_declarations

	def get_long_id(self, ty: ConcreteTypeId) -> ConcreteTypeLongId:
		idx = ty.id
		if idx < 0 or idx >= len(self.type_declarations):
			raise TypeIdOutOfRange(idx, len(self.type_declarations))
		return self.type_declarations[idx].long_id

	def get_generic_id(self, ty: ConcreteTypeId) -> GenericTypeId:
		return self.get_long_id(ty).generic_id

	def is_felt252_array(self, ty: ConcreteTypeId) -> bool:
		"""`Array<felt252>`."""
		long_id = self.get_long_id(ty)
		if long_id.generic_id != ARRAY:
			return False
		args = match_generic_args(long_id.generic_args, TypeArg)
		if args is None:
			return False
		return self.get_generic_id(args[0].ty) == FELT252

	def is_felt252_array_snapshot(self, ty: ConcreteTypeId) -> bool:
		"""`@Array<felt252>`."""
		long_id = self.get_long_id(ty)
		if long_id.generic_id != SNAPSHOT:
			return False
		args = match_generic_args(long_id.generic_args, TypeArg)
		if args is None:
			return False
		return self.is_felt252_array(args[0].ty)

	def is_felt252_span(self, ty: ConcreteTypeId) -> bool:
		"""`Span<felt252>`: a one-field struct wrapping `@Array<felt252>`."""
		inner = self.extract_struct1(ty)
		if inner is None:
			return False
		return self.is_felt252_array_snapshot(inner)

	def extract_result_ty(self, ty: ConcreteTypeId) -> Optional[Tuple[ConcreteTypeId, ConcreteTypeId]]:
		"""Extract `(TOk, TErr)` from an enum shaped like `Result<TOk, TErr>`."""
		long_id = self.get_long_id(ty)
		if long_id.generic_id != ENUM:
			return None
		args = match_generic_args(long_id.generic_args, UserTypeArg, TypeArg, TypeArg)
		if args is None:
			return None
		return args[1].ty, args[2].ty

	def extract_struct1(self, ty: ConcreteTypeId) -> Optional[ConcreteTypeId]:
		"""Extract `T` from the tuple type `(T,)`."""
		long_id = self.get_long_id(ty)
		if long_id.generic_id != STRUCT:
			return None
		args = match_generic_args(long_id.generic_args, UserTypeArg, TypeArg)
		if args is None:
			return None
		return args[1].ty

	def extract_struct2(self, ty: ConcreteTypeId) -> Optional[Tuple[ConcreteTypeId, ConcreteTypeId]]:
		"""Extract `(T0, T1)` from the tuple type `(T0, T1)`."""
		long_id = self.get_long_id(ty)
		if long_id.generic_id != STRUCT:
			return None
		args = match_generic_args(long_id.generic_args, UserTypeArg, TypeArg, TypeArg)
		if args is None:
			return None
		return args[1].ty, args[2].ty

	def entry_point_return_type_violation(
		self,
		ty: ConcreteTypeId,
		*,
		array_panic_data: bool = False,
	) -> Optional[ReturnTypeViolation]:
		"""
		Check the entry point return convention and report the first failing part.

		Expected: `Result<(Span<felt252>,), E>` where `E` is either `Array<felt252>`
		(legacy panic) or `(Panic, Span<felt252>)`. With `array_panic_data` the
		panic tuple carries `Array<felt252>` instead, as `PanicResult` lowers it.
		"""
		result = self.extract_result_ty(ty)
		if result is None:
			return ReturnTypeViolation.NOT_A_RESULT
		ok_ty, err_ty = result

		ok_inner = self.extract_struct1(ok_ty)
		if ok_inner is None or not self.is_felt252_span(ok_inner):
			return ReturnTypeViolation.INVALID_OK_TYPE

		if self.is_felt252_array(err_ty):
			return None
		err_fields = self.extract_struct2(err_ty)
		if err_fields is None:
			return ReturnTypeViolation.INVALID_ERR_TYPE
		panic_data = err_fields[1]
		if array_panic_data:
			valid_data = self.is_felt252_array(panic_data)
		else:
			valid_data = self.is_felt252_span(panic_data)
		if not valid_data:
			return ReturnTypeViolation.INVALID_ERR_TYPE
		return None

	def is_valid_entry_point_return_type(self, ty: ConcreteTypeId, *, array_panic_data: bool = False) -> bool:
		return self.entry_point_return_type_violation(ty, array_panic_data=array_panic_data) is None


__all__ = ["ReturnTypeViolation", "TypeResolver"]
