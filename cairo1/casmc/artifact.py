# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Artifact records and their JSON form.

Two output shapes are produced:

- `CasmProgramClass`: the contract-style artifact (reduced bytecode, segment
  lengths, pc-keyed hints and the main entry point's calling convention).
- `VmProgram`: the plain single-entry program a Cairo VM loads directly.

Field elements are written as `0x`-prefixed lowercase hex strings. Optional
fields are omitted from the JSON when absent rather than written as null.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from cairo1.casmc.builtins import EntryPoint
from cairo1.casmc.casm.program import Hint
from cairo1.casmc.core.errors import CasmFormatError
from cairo1.casmc.core.felt import parse_int, to_hex
from cairo1.casmc.core.nested_int_list import NestedIntList, nested_from_json, nested_to_json


def _felt(raw: Any, what: str) -> int:
	try:
		val = parse_int(raw)
	except ValueError as err:
		raise CasmFormatError(f"{what}: {err}") from None
	if val < 0:
		raise CasmFormatError(f"{what} must be a field element, got {val}")
	return val


@dataclass(frozen=True)
class CasmProgramClass:
	prime: int
	compiler_version: str
	bytecode: Tuple[int, ...]
	hints: Tuple[Tuple[int, Tuple[Hint, ...]], ...]
	main_entry: EntryPoint
	bytecode_segment_lengths: Optional[NestedIntList] = None
	pythonic_hints: Optional[Tuple[Tuple[int, Tuple[str, ...]], ...]] = None

	def __post_init__(self) -> None:
		for idx, word in enumerate(self.bytecode):
			if not 0 <= word < self.prime:
				raise CasmFormatError(f"bytecode word #{idx} is not reduced modulo prime")

	def to_json(self) -> Dict[str, Any]:
		out: Dict[str, Any] = {
			"prime": to_hex(self.prime),
			"compiler_version": self.compiler_version,
			"bytecode": [to_hex(w) for w in self.bytecode],
			"hints": [[pc, [h.to_json() for h in hs]] for pc, hs in self.hints],
			"main_entry_point": {
				"offset": self.main_entry.offset,
				"builtins": list(self.main_entry.builtins),
			},
		}
		if self.bytecode_segment_lengths is not None:
			out["bytecode_segment_lengths"] = nested_to_json(self.bytecode_segment_lengths)
		if self.pythonic_hints is not None:
			out["pythonic_hints"] = [[pc, list(texts)] for pc, texts in self.pythonic_hints]
		return out

	@classmethod
	def from_json(cls, obj: Any) -> "CasmProgramClass":
		if not isinstance(obj, dict):
			raise CasmFormatError("artifact must be a JSON object")
		for key in ("prime", "compiler_version", "bytecode", "hints", "main_entry_point"):
			if key not in obj:
				raise CasmFormatError(f"artifact missing '{key}'")
		prime = _felt(obj["prime"], "prime")
		if not isinstance(obj["bytecode"], list):
			raise CasmFormatError("bytecode must be an array")
		bytecode = tuple(_felt(w, f"bytecode word #{i}") for i, w in enumerate(obj["bytecode"]))
		if any(w >= prime for w in bytecode):
			raise CasmFormatError("bytecode word is not reduced modulo prime")

		if not isinstance(obj["hints"], list):
			raise CasmFormatError("hints must be an array")
		hints: List[Tuple[int, Tuple[Hint, ...]]] = []
		for entry in obj["hints"]:
			if not isinstance(entry, list) or len(entry) != 2 or not isinstance(entry[1], list):
				raise CasmFormatError(f"invalid hints entry {entry!r}")
			hints.append((_felt(entry[0], "hint pc"), tuple(Hint.from_json(h) for h in entry[1])))

		main = obj["main_entry_point"]
		if not isinstance(main, dict) or not isinstance(main.get("builtins"), list):
			raise CasmFormatError("main_entry_point must have 'offset' and 'builtins'")
		entry = EntryPoint(offset=_felt(main.get("offset"), "main entry offset"), builtins=tuple(str(b) for b in main["builtins"]))

		segments = None
		if "bytecode_segment_lengths" in obj:
			try:
				segments = nested_from_json(obj["bytecode_segment_lengths"])
			except ValueError as err:
				raise CasmFormatError(f"bytecode_segment_lengths: {err}") from None

		pythonic = None
		if "pythonic_hints" in obj:
			if not isinstance(obj["pythonic_hints"], list):
				raise CasmFormatError("pythonic_hints must be an array")
			pythonic_entries: List[Tuple[int, Tuple[str, ...]]] = []
			for item in obj["pythonic_hints"]:
				if not isinstance(item, list) or len(item) != 2 or not isinstance(item[1], list):
					raise CasmFormatError(f"invalid pythonic_hints entry {item!r}")
				pythonic_entries.append((_felt(item[0], "hint pc"), tuple(str(t) for t in item[1])))
			pythonic = tuple(pythonic_entries)

		version = obj["compiler_version"]
		if not isinstance(version, str):
			raise CasmFormatError("compiler_version must be a string")
		return cls(
			prime=prime,
			compiler_version=version,
			bytecode=bytecode,
			hints=tuple(hints),
			main_entry=entry,
			bytecode_segment_lengths=segments,
			pythonic_hints=pythonic,
		)


@dataclass(frozen=True)
class VmProgram:
	"""Plain program with a single entry at pc 0."""

	prime: int
	compiler_version: str
	data: Tuple[int, ...]
	builtins: Tuple[str, ...]
	hints: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict, hash=False)
	main: int = 0

	def to_json(self) -> Dict[str, Any]:
		return {
			"attributes": [],
			"builtins": list(self.builtins),
			"compiler_version": self.compiler_version,
			"data": [to_hex(w) for w in self.data],
			"debug_info": None,
			"hints": self.hints,
			"identifiers": {
				"__main__.main": {"decorators": [], "pc": self.main, "type": "function"},
			},
			"main": self.main,
			"main_scope": "__main__",
			"prime": to_hex(self.prime),
			"reference_manager": {"references": []},
		}


def dump_artifact_json(artifact: CasmProgramClass | VmProgram, *, indent: Optional[int] = None) -> str:
	"""Deterministic JSON text (sorted keys; compact unless `indent` is given)."""
	obj = artifact.to_json()
	if indent is None:
		return json.dumps(obj, sort_keys=True, separators=(",", ":"))
	return json.dumps(obj, sort_keys=True, indent=indent) + "\n"


def load_artifact_json(text: str | bytes) -> CasmProgramClass:
	try:
		obj = json.loads(text)
	except json.JSONDecodeError as err:
		raise CasmFormatError(f"invalid artifact JSON at line {err.lineno}: {err.msg}") from None
	return CasmProgramClass.from_json(obj)


__all__ = ["CasmProgramClass", "VmProgram", "dump_artifact_json", "load_artifact_json"]
