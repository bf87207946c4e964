# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CASM program model (the external compiler's output).

The compiler hands back an ordered instruction list, each instruction carrying
its assembled words and the hints attached at its pc, plus per-statement debug
info mapping Sierra statement indices to code offsets. Constant segments are
appended after the code when the program uses them.

JSON dump shape:

  {"compiler_version": "2.6.0",
   "instructions": [{"encoded": ["0x480680017fff8000", 5], "hints": [...], "op_size": 2}],
   "debug_info": {"sierra_statement_info": [{"start_offset": 0, "end_offset": 2}]},
   "const_segments": [{"segment_id": 0, "values": [1, 2]}]}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from cairo1.casmc.core.errors import CasmFormatError, MissingDebugOffset
from cairo1.casmc.core.felt import parse_int


@dataclass(frozen=True)
class Hint:
	"""
	A hint as emitted by the compiler.

	Hints are opaque to casmc: `name` is the externally tagged variant name and
	`operands` its payload (None for unit variants).
	"""

	name: str
	operands: Optional[Mapping[str, Any]] = field(default=None, hash=False)

	def to_json(self) -> Any:
		if self.operands is None:
			return self.name
		return {self.name: _copy_json(self.operands)}

	@classmethod
	def from_json(cls, obj: Any) -> "Hint":
		if isinstance(obj, str):
			return cls(obj)
		if isinstance(obj, dict) and len(obj) == 1:
			name, payload = next(iter(obj.items()))
			if not isinstance(payload, dict):
				raise CasmFormatError(f"hint '{name}' payload must be an object")
			return cls(name, _copy_json(payload))
		raise CasmFormatError(f"invalid hint {obj!r}")


def _copy_json(obj: Any) -> Any:
	# Deep copy through JSON types only so hints never alias caller data.
	if isinstance(obj, dict):
		return {str(k): _copy_json(v) for k, v in obj.items()}
	if isinstance(obj, (list, tuple)):
		return [_copy_json(v) for v in obj]
	return obj


@dataclass(frozen=True)
class Instruction:
	encoded: Tuple[int, ...]
	hints: Tuple[Hint, ...] = ()
	op_size: int = -1  # defaults to len(encoded)

	def __post_init__(self) -> None:
		if self.op_size == -1:
			object.__setattr__(self, "op_size", len(self.encoded))
		if self.op_size != len(self.encoded):
			raise CasmFormatError(f"instruction op_size {self.op_size} does not match {len(self.encoded)} encoded words")
		if self.op_size <= 0:
			raise CasmFormatError("instruction must encode at least one word")


@dataclass(frozen=True)
class StatementDebugInfo:
	start_offset: int
	end_offset: Optional[int] = None


@dataclass(frozen=True)
class CairoProgramDebugInfo:
	sierra_statement_info: Tuple[StatementDebugInfo, ...] = ()

	def code_offset(self, statement_idx: int) -> int:
		"""Code offset of a Sierra statement; missing entries are malformed debug info."""
		if statement_idx < 0 or statement_idx >= len(self.sierra_statement_info):
			raise MissingDebugOffset(statement_idx)
		return self.sierra_statement_info[statement_idx].start_offset


@dataclass(frozen=True)
class ConstSegment:
	segment_id: int
	values: Tuple[int, ...]


@dataclass(frozen=True)
class AssembledCairoProgram:
	bytecode: Tuple[int, ...]  # signed, not yet reduced into the field


@dataclass(frozen=True)
class CairoProgram:
	instructions: Tuple[Instruction, ...]
	debug_info: CairoProgramDebugInfo = field(default_factory=CairoProgramDebugInfo)
	const_segments: Tuple[ConstSegment, ...] = ()
	compiler_version: Optional[str] = None

	@property
	def code_size(self) -> int:
		return sum(inst.op_size for inst in self.instructions)

	def assemble(self) -> AssembledCairoProgram:
		"""Flatten instructions (then const segments) into words; hints are projected separately."""
		bytecode: list[int] = []
		for inst in self.instructions:
			bytecode.extend(inst.encoded)
		for seg in self.const_segments:
			bytecode.extend(seg.values)
		return AssembledCairoProgram(bytecode=tuple(bytecode))


def _words(raw: Any, what: str) -> Tuple[int, ...]:
	if not isinstance(raw, list):
		raise CasmFormatError(f"{what} must be an array")
	try:
		return tuple(parse_int(w) for w in raw)
	except ValueError as err:
		raise CasmFormatError(f"{what}: {err}") from None


def _nonneg(raw: Any, what: str) -> int:
	try:
		val = parse_int(raw)
	except ValueError as err:
		raise CasmFormatError(f"{what}: {err}") from None
	if val < 0:
		raise CasmFormatError(f"{what} must be non-negative, got {val}")
	return val


def cairo_program_from_json(obj: Any) -> CairoProgram:
	"""Decode a CASM dump produced by the external compiler."""
	if not isinstance(obj, dict):
		raise CasmFormatError("CASM dump must be a JSON object")
	raw_insts = obj.get("instructions")
	if not isinstance(raw_insts, list):
		raise CasmFormatError("CASM dump missing 'instructions' array")
	instructions: list[Instruction] = []
	for idx, raw in enumerate(raw_insts):
		if not isinstance(raw, dict):
			raise CasmFormatError(f"instruction #{idx} must be an object")
		encoded = _words(raw.get("encoded"), f"instruction #{idx} encoded")
		hints = raw.get("hints", [])
		if not isinstance(hints, list):
			raise CasmFormatError(f"instruction #{idx} hints must be an array")
		op_size = _nonneg(raw["op_size"], f"instruction #{idx} op_size") if "op_size" in raw else -1
		instructions.append(Instruction(encoded=encoded, hints=tuple(Hint.from_json(h) for h in hints), op_size=op_size))

	debug = obj.get("debug_info") or {}
	if not isinstance(debug, dict):
		raise CasmFormatError("debug_info must be an object")
	stmt_infos: list[StatementDebugInfo] = []
	for idx, raw in enumerate(debug.get("sierra_statement_info", []) or []):
		if not isinstance(raw, dict) or "start_offset" not in raw:
			raise CasmFormatError(f"sierra_statement_info #{idx} missing start_offset")
		end = raw.get("end_offset")
		stmt_infos.append(
			StatementDebugInfo(
				start_offset=_nonneg(raw["start_offset"], f"statement #{idx} start_offset"),
				end_offset=None if end is None else _nonneg(end, f"statement #{idx} end_offset"),
			)
		)

	segments: list[ConstSegment] = []
	for idx, raw in enumerate(obj.get("const_segments", []) or []):
		if not isinstance(raw, dict):
			raise CasmFormatError(f"const segment #{idx} must be an object")
		segments.append(
			ConstSegment(
				segment_id=_nonneg(raw.get("segment_id", idx), f"const segment #{idx} segment_id"),
				values=_words(raw.get("values"), f"const segment #{idx} values"),
			)
		)

	version = obj.get("compiler_version")
	if version is not None and not isinstance(version, str):
		raise CasmFormatError("compiler_version must be a string")
	return CairoProgram(
		instructions=tuple(instructions),
		debug_info=CairoProgramDebugInfo(tuple(stmt_infos)),
		const_segments=tuple(segments),
		compiler_version=version,
	)


def load_cairo_program_json(text: str | bytes) -> CairoProgram:
	try:
		obj = json.loads(text)
	except json.JSONDecodeError as err:
		raise CasmFormatError(f"invalid CASM JSON at line {err.lineno}: {err.msg}") from None
	return cairo_program_from_json(obj)


def cairo_program_to_json(program: CairoProgram) -> dict[str, Any]:
	out: dict[str, Any] = {
		"instructions": [
			{"encoded": list(inst.encoded), "hints": [h.to_json() for h in inst.hints], "op_size": inst.op_size}
			for inst in program.instructions
		],
		"debug_info": {
			"sierra_statement_info": [
				{"start_offset": s.start_offset, "end_offset": s.end_offset}
				for s in program.debug_info.sierra_statement_info
			],
		},
		"const_segments": [{"segment_id": s.segment_id, "values": list(s.values)} for s in program.const_segments],
	}
	if program.compiler_version is not None:
		out["compiler_version"] = program.compiler_version
	return out


__all__ = [
	"Hint",
	"Instruction",
	"StatementDebugInfo",
	"CairoProgramDebugInfo",
	"ConstSegment",
	"AssembledCairoProgram",
	"CairoProgram",
	"cairo_program_from_json",
	"load_cairo_program_json",
	"cairo_program_to_json",
]
