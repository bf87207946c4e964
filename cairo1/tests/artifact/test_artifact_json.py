# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json

import pytest

from cairo1.casmc.artifact import CasmProgramClass, VmProgram, dump_artifact_json, load_artifact_json
from cairo1.casmc.builtins import EntryPoint
from cairo1.casmc.casm.program import Hint
from cairo1.casmc.core.errors import CasmFormatError
from cairo1.casmc.core.felt import PRIME
from cairo1.casmc.core.nested_int_list import Leaf, Node


def _artifact(**overrides) -> CasmProgramClass:
	fields = dict(
		prime=PRIME,
		compiler_version="2.6.0",
		bytecode=(0x480680017FFF8000, PRIME - 1, 0),
		hints=((1, (Hint("AllocSegment", {"dst": {"register": "AP", "offset": 0}}),)),),
		main_entry=EntryPoint(offset=0, builtins=("range_check", "pedersen")),
		bytecode_segment_lengths=Node((Leaf(3),)),
		pythonic_hints=((1, ("AllocSegment { dst: [ap + 0] }",)),),
	)
	fields.update(overrides)
	return CasmProgramClass(**fields)


def test_json_round_trip_preserves_bytecode_entry_and_builtins():
	artifact = _artifact()

	loaded = load_artifact_json(dump_artifact_json(artifact))

	assert loaded == artifact
	assert loaded.bytecode == artifact.bytecode
	assert loaded.main_entry.offset == 0
	assert loaded.main_entry.builtins == ("range_check", "pedersen")


def test_field_elements_are_lowercase_hex():
	obj = _artifact().to_json()

	assert obj["prime"] == "0x800000000000011000000000000000000000000000000000000000000000001"
	assert obj["bytecode"][0] == "0x480680017fff8000"
	assert obj["bytecode"][2] == "0x0"
	assert obj["bytecode_segment_lengths"] == [3]


def test_absent_optional_fields_are_omitted():
	obj = _artifact(bytecode_segment_lengths=None, pythonic_hints=None).to_json()

	assert "bytecode_segment_lengths" not in obj
	assert "pythonic_hints" not in obj
	assert CasmProgramClass.from_json(obj).bytecode_segment_lengths is None


def test_dump_is_deterministic_and_sorted():
	text = dump_artifact_json(_artifact())

	assert text == dump_artifact_json(_artifact())
	assert list(json.loads(text)) == sorted(json.loads(text))
	assert "\n" not in text
	assert dump_artifact_json(_artifact(), indent=2).endswith("}\n")


def test_unreduced_bytecode_is_rejected_on_load():
	obj = _artifact().to_json()
	obj["bytecode"][0] = hex(PRIME)

	with pytest.raises(CasmFormatError, match="not reduced"):
		CasmProgramClass.from_json(obj)


@pytest.mark.parametrize("key", ["prime", "bytecode", "main_entry_point"])
def test_missing_required_keys_are_rejected(key):
	obj = _artifact().to_json()
	del obj[key]

	with pytest.raises(CasmFormatError, match=key):
		CasmProgramClass.from_json(obj)


def test_vm_program_shape():
	program = VmProgram(
		prime=PRIME,
		compiler_version="2.6.0",
		data=(1, PRIME - 2),
		builtins=("pedersen", "range_check"),
		hints={"0": [{"code": "DebugMarker"}]},
	)
	obj = program.to_json()

	assert obj["data"] == ["0x1", hex(PRIME - 2)]
	assert obj["builtins"] == ["pedersen", "range_check"]
	assert obj["main"] == 0
	assert obj["identifiers"]["__main__.main"]["pc"] == 0
	assert obj["hints"] == {"0": [{"code": "DebugMarker"}]}
	assert obj["debug_info"] is None


def test_unreduced_bytecode_is_rejected_on_construction():
	with pytest.raises(CasmFormatError, match="bytecode word #1 is not reduced"):
		_artifact(bytecode=(0, PRIME))


@pytest.mark.parametrize("key", ["hints", "pythonic_hints"])
def test_hint_tables_must_be_arrays(key):
	obj = _artifact().to_json()
	obj[key] = {"1": []}

	with pytest.raises(CasmFormatError, match=f"{key} must be an array"):
		CasmProgramClass.from_json(obj)
