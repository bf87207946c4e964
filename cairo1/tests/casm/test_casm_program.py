# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json

import pytest

from cairo1.casmc.casm.program import (
	CairoProgramDebugInfo,
	Hint,
	Instruction,
	StatementDebugInfo,
	cairo_program_from_json,
	cairo_program_to_json,
	load_cairo_program_json,
)
from cairo1.casmc.core.errors import CasmFormatError, MissingDebugOffset
from cairo1.casmc.test_helpers import make_cairo_program

DUMP = {
	"compiler_version": "2.6.0",
	"instructions": [
		{"encoded": ["0x480680017fff8000", 5], "hints": [], "op_size": 2},
		{"encoded": [-1], "hints": [{"AllocSegment": {"dst": {"register": "AP", "offset": 0}}}]},
		{"encoded": ["0x208b7fff7fff7ffe"], "hints": ["DebugMarker"]},
	],
	"debug_info": {"sierra_statement_info": [{"start_offset": 0, "end_offset": 2}, {"start_offset": 2}]},
	"const_segments": [{"segment_id": 0, "values": [1, "0x2"]}],
}


def test_dump_is_decoded():
	program = cairo_program_from_json(DUMP)

	assert program.compiler_version == "2.6.0"
	assert program.instructions[0].encoded == (0x480680017FFF8000, 5)
	assert program.instructions[1].op_size == 1
	assert program.instructions[1].hints == (Hint("AllocSegment", {"dst": {"register": "AP", "offset": 0}}),)
	assert program.instructions[2].hints == (Hint("DebugMarker"),)
	assert program.debug_info.sierra_statement_info[1] == StatementDebugInfo(2, None)
	assert program.const_segments[0].values == (1, 2)
	assert program.code_size == 4


def test_assemble_appends_const_segments_after_the_code():
	assembled = cairo_program_from_json(DUMP).assemble()

	assert assembled.bytecode == (0x480680017FFF8000, 5, -1, 0x208B7FFF7FFF7FFE, 1, 2)


def test_dump_round_trips():
	program = cairo_program_from_json(DUMP)

	assert cairo_program_from_json(json.loads(json.dumps(cairo_program_to_json(program)))) == program


def test_op_size_must_match_the_encoding():
	with pytest.raises(CasmFormatError, match="op_size 3"):
		Instruction(encoded=(1, 2), op_size=3)


def test_empty_instruction_is_rejected():
	with pytest.raises(CasmFormatError, match="at least one word"):
		Instruction(encoded=())


def test_code_offset_of_unknown_statement_is_missing():
	debug = CairoProgramDebugInfo((StatementDebugInfo(0, 1),))

	assert debug.code_offset(0) == 0
	with pytest.raises(MissingDebugOffset):
		debug.code_offset(1)


@pytest.mark.parametrize(
	"mutate, message",
	[
		(lambda d: d.pop("instructions"), "instructions"),
		(lambda d: d["instructions"][0].update(encoded="0x1"), "must be an array"),
		(lambda d: d["instructions"][0].update(encoded=["bogus"]), "expected integer"),
		(lambda d: d["instructions"][1].update(hints=[{"A": 1, "B": 2}]), "invalid hint"),
		(lambda d: d["debug_info"]["sierra_statement_info"].append({"end_offset": 3}), "start_offset"),
		(lambda d: d["debug_info"]["sierra_statement_info"][0].update(start_offset=-2), "non-negative"),
		(lambda d: d.update(compiler_version=2), "compiler_version"),
	],
)
def test_malformed_dumps_are_rejected(mutate, message):
	data = json.loads(json.dumps(DUMP))
	mutate(data)

	with pytest.raises(CasmFormatError, match=message):
		cairo_program_from_json(data)


def test_invalid_dump_json_is_a_format_error():
	with pytest.raises(CasmFormatError, match="invalid CASM JSON"):
		load_cairo_program_json("{not json")


def test_builder_places_hints_by_instruction_index():
	program = make_cairo_program([[1], [2, 3]], hints={1: [Hint("DebugMarker")]})

	assert program.instructions[1].hints == (Hint("DebugMarker"),)
	assert program.instructions[0].hints == ()
