# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
casmc error taxonomy.

Every user-facing failure is a `CasmcError` (a ValueError) with a pinned
`phase`; the CLI turns it into a diagnostic instead of a traceback. Internal
invariant breaks stay AssertionErrors.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class CasmcError(ValueError):
	"""Base class for casmc failures that are reported as diagnostics."""

	phase = "compile"

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message


class MalformedInputError(CasmcError):
	"""The Sierra program, type table or compiler output is inconsistent."""

	phase = "input"


class TypeIdOutOfRange(MalformedInputError):
	def __init__(self, type_id: int, table_len: int) -> None:
		super().__init__(f"type id [{type_id}] is out of range (type table has {table_len} declarations)")
		self.type_id = type_id


class FunctionNotFound(MalformedInputError):
	def __init__(self, suffix: str, *, candidates: Optional[list[str]] = None) -> None:
		if candidates:
			msg = f"function with suffix '{suffix}' is ambiguous: {', '.join(candidates)}"
		else:
			msg = f"function with suffix '{suffix}' not found"
		super().__init__(msg)
		self.suffix = suffix
		self.candidates = list(candidates or [])


class MissingDebugOffset(MalformedInputError):
	def __init__(self, statement_idx: int) -> None:
		super().__init__(f"no code offset recorded for sierra statement #{statement_idx}")
		self.statement_idx = statement_idx


class SierraParseError(MalformedInputError):
	"""Textual or JSON Sierra input could not be decoded."""

	def __init__(self, message: str, *, line: Optional[int] = None, column: Optional[int] = None) -> None:
		super().__init__(message)
		self.line = line
		self.column = column


class CasmFormatError(MalformedInputError):
	"""The compiler output (CASM dump) could not be decoded."""


class SignatureErrorKind(Enum):
	MISSING_ARGS = "missing_args"
	WRONG_BUILTIN_ORDER = "wrong_builtin_order"
	UNKNOWN_BUILTIN = "unknown_builtin"
	NO_RETURN_TYPE = "no_return_type"
	NOT_A_RESULT = "not_a_result"
	INVALID_OK_TYPE = "invalid_ok_type"
	INVALID_ERR_TYPE = "invalid_err_type"


class InvalidEntryPointSignature(CasmcError):
	"""The entry point does not follow the builtin/return-type calling convention."""

	phase = "entry-point"

	def __init__(self, kind: SignatureErrorKind, message: str, *, function: Optional[str] = None) -> None:
		if function:
			message = f"invalid entry point signature for '{function}': {message}"
		else:
			message = f"invalid entry point signature: {message}"
		super().__init__(message)
		self.kind = kind
		self.function = function


class SegmentationError(CasmcError):
	"""Bytecode segment lengths could not be derived; callers degrade to no segmentation."""

	phase = "segmentation"


class ExternalCompilerError(CasmcError):
	"""Failure reported by the external compiler, tagged with its stage."""

	def __init__(self, stage: str, message: str) -> None:
		super().__init__(f"{stage}: {message}")
		self.stage = stage
		self.phase = stage


__all__ = [
	"CasmcError",
	"MalformedInputError",
	"TypeIdOutOfRange",
	"FunctionNotFound",
	"MissingDebugOffset",
	"SierraParseError",
	"CasmFormatError",
	"SignatureErrorKind",
	"InvalidEntryPointSignature",
	"SegmentationError",
	"ExternalCompilerError",
]
