# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Sierra id handles and generic arguments.

ConcreteTypeIds are opaque ints indexing into the program's type declaration
table. Debug names ride along for diagnostics and for the plain-program
builtin convention but never take part in equality.

GenericArg is a closed union; code that inspects args dispatches over the five
variants below and treats anything else as an internal error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Type, Union


GenericTypeId = str  # generic type name, e.g. "Array" or "felt252"
GenericLibfuncId = str

# Well-known generic type ids.
FELT252 = "felt252"
ARRAY = "Array"
SNAPSHOT = "Snapshot"
STRUCT = "Struct"
ENUM = "Enum"
GAS_BUILTIN = "GasBuiltin"
SYSTEM = "System"
RANGE_CHECK = "RangeCheck"
BITWISE = "Bitwise"
PEDERSEN = "Pedersen"
EC_OP = "EcOp"
POSEIDON = "Poseidon"
SEGMENT_ARENA = "SegmentArena"


@dataclass(frozen=True)
class ConcreteTypeId:
	"""Handle of a row in the type declaration table."""

	id: int
	debug_name: Optional[str] = field(default=None, compare=False)

	def __str__(self) -> str:
		return self.debug_name or f"[{self.id}]"


@dataclass(frozen=True)
class ConcreteLibfuncId:
	id: int
	debug_name: Optional[str] = field(default=None, compare=False)

	def __str__(self) -> str:
		return self.debug_name or f"[{self.id}]"


@dataclass(frozen=True)
class FunctionId:
	id: int
	debug_name: Optional[str] = field(default=None, compare=False)

	def __str__(self) -> str:
		return self.debug_name or f"[{self.id}]"


@dataclass(frozen=True)
class UserTypeId:
	"""Opaque user type identity (a hash in compiled programs)."""

	id: int
	debug_name: Optional[str] = field(default=None, compare=False)

	def __str__(self) -> str:
		return f"ut@{self.debug_name}" if self.debug_name else f"ut@{self.id:#x}"


@dataclass(frozen=True)
class TypeArg:
	ty: ConcreteTypeId


@dataclass(frozen=True)
class UserTypeArg:
	user_type: UserTypeId


@dataclass(frozen=True)
class ValueArg:
	value: int


@dataclass(frozen=True)
class UserFuncArg:
	function: FunctionId


@dataclass(frozen=True)
class LibfuncArg:
	libfunc: ConcreteLibfuncId


GenericArg = Union[TypeArg, UserTypeArg, ValueArg, UserFuncArg, LibfuncArg]
GENERIC_ARG_VARIANTS: Tuple[Type, ...] = (TypeArg, UserTypeArg, ValueArg, UserFuncArg, LibfuncArg)


def match_generic_args(args: Tuple[GenericArg, ...], *shape: Type) -> Optional[Tuple[GenericArg, ...]]:
	"""
	Return `args` when it has exactly the variants listed in `shape`, else None.

	`match_generic_args(args, UserTypeArg, TypeArg)` accepts `[UserType(_), Type(_)]`
	and nothing longer or shorter.
	"""
	if len(args) != len(shape):
		return None
	for arg, variant in zip(args, shape):
		if type(arg) is not variant:
			return None
	return args


def generic_arg_str(arg: GenericArg) -> str:
	"""Render a generic arg the way textual Sierra writes it."""
	if isinstance(arg, TypeArg):
		return str(arg.ty)
	if isinstance(arg, UserTypeArg):
		return str(arg.user_type)
	if isinstance(arg, ValueArg):
		return str(arg.value)
	if isinstance(arg, UserFuncArg):
		return f"user@{arg.function}"
	if isinstance(arg, LibfuncArg):
		return f"lib@{arg.libfunc}"
	raise AssertionError(f"unexpected generic arg {arg!r}")


def long_id_str(generic_id: str, args: Tuple[GenericArg, ...]) -> str:
	if not args:
		return generic_id
	return f"{generic_id}<{', '.join(generic_arg_str(a) for a in args)}>"


__all__ = [
	"GenericTypeId",
	"GenericLibfuncId",
	"FELT252",
	"ARRAY",
	"SNAPSHOT",
	"STRUCT",
	"ENUM",
	"GAS_BUILTIN",
	"SYSTEM",
	"RANGE_CHECK",
	"BITWISE",
	"PEDERSEN",
	"EC_OP",
	"POSEIDON",
	"SEGMENT_ARENA",
	"ConcreteTypeId",
	"ConcreteLibfuncId",
	"FunctionId",
	"UserTypeId",
	"TypeArg",
	"UserTypeArg",
	"ValueArg",
	"UserFuncArg",
	"LibfuncArg",
	"GenericArg",
	"GENERIC_ARG_VARIANTS",
	"match_generic_args",
	"generic_arg_str",
	"long_id_str",
]
