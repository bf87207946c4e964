# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Sierra program model.

Only the parts casmc reads are modelled in detail (type declarations and
function signatures). Libfunc declarations and statements are carried so the
program can be handed to the external compiler and written back to JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from cairo1.casmc.core.errors import MalformedInputError
from cairo1.casmc.core.sierra_ids import (
	ConcreteLibfuncId,
	ConcreteTypeId,
	FunctionId,
	GenericArg,
	GenericLibfuncId,
	GenericTypeId,
	long_id_str,
)


@dataclass(frozen=True)
class ConcreteTypeLongId:
	generic_id: GenericTypeId
	generic_args: Tuple[GenericArg, ...] = ()

	def __str__(self) -> str:
		return long_id_str(self.generic_id, self.generic_args)


@dataclass(frozen=True)
class TypeDeclaration:
	id: ConcreteTypeId
	long_id: ConcreteTypeLongId
	# Opaque `declared_type_info` record (storable/droppable/...); passed through.
	declared_type_info: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class ConcreteLibfuncLongId:
	generic_id: GenericLibfuncId
	generic_args: Tuple[GenericArg, ...] = ()

	def __str__(self) -> str:
		return long_id_str(self.generic_id, self.generic_args)


@dataclass(frozen=True)
class LibfuncDeclaration:
	id: ConcreteLibfuncId
	long_id: ConcreteLibfuncLongId


@dataclass(frozen=True)
class BranchInfo:
	"""One branch of an invocation; `target` None means fallthrough."""

	target: Optional[int]
	results: Tuple[int, ...] = ()


@dataclass(frozen=True)
class Invocation:
	libfunc_id: ConcreteLibfuncId
	args: Tuple[int, ...]
	branches: Tuple[BranchInfo, ...]


@dataclass(frozen=True)
class Return:
	vars: Tuple[int, ...]


Statement = Union[Invocation, Return]


@dataclass(frozen=True)
class FunctionSignature:
	param_types: Tuple[ConcreteTypeId, ...]
	ret_types: Tuple[ConcreteTypeId, ...]


@dataclass(frozen=True)
class Param:
	id: int  # variable id
	ty: ConcreteTypeId


@dataclass(frozen=True)
class Function:
	id: FunctionId
	signature: FunctionSignature
	params: Tuple[Param, ...]
	entry_point: int  # statement index

	@property
	def name(self) -> str:
		return str(self.id)


@dataclass(frozen=True)
class Program:
	type_declarations: Tuple[TypeDeclaration, ...]
	libfunc_declarations: Tuple[LibfuncDeclaration, ...]
	statements: Tuple[Statement, ...]
	funcs: Tuple[Function, ...]


def check_dense_type_ids(type_declarations: Tuple[TypeDeclaration, ...]) -> None:
	"""
	Ensure row `i` of the table declares type id `i`.

	The resolver indexes the table directly, so a sparse or shuffled table would
	silently resolve ids to the wrong declaration.
	"""
	for idx, decl in enumerate(type_declarations):
		if decl.id.id != idx:
			raise MalformedInputError(
				f"type declaration #{idx} declares id [{decl.id.id}]; type ids must be dense and in order"
			)


__all__ = [
	"ConcreteTypeLongId",
	"TypeDeclaration",
	"ConcreteLibfuncLongId",
	"LibfuncDeclaration",
	"BranchInfo",
	"Invocation",
	"Return",
	"Statement",
	"FunctionSignature",
	"Param",
	"Function",
	"Program",
	"check_dense_type_ids",
]
