# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from cairo1.casmc.core.diagnostics import Diagnostic, diagnostic_from_error, diagnostic_to_json, diagnostic_to_text
from cairo1.casmc.core.errors import (
	ExternalCompilerError,
	FunctionNotFound,
	InvalidEntryPointSignature,
	SierraParseError,
	SignatureErrorKind,
)


def test_signature_errors_carry_their_kind_as_code():
	err = InvalidEntryPointSignature(SignatureErrorKind.WRONG_BUILTIN_ORDER, "bad order", function="test::main")
	diag = diagnostic_from_error(err)

	assert diag.code == "wrong_builtin_order"
	assert diag.phase == "entry-point"
	assert diag.severity == "error"
	assert diag.message == "invalid entry point signature for 'test::main': bad order"


def test_parse_errors_keep_their_location():
	diag = diagnostic_from_error(SierraParseError("unexpected token", line=3, column=7))

	assert (diag.phase, diag.line, diag.column) == ("input", 3, 7)
	assert diagnostic_to_text(diag, file="prog.sierra") == "prog.sierra:3:7: error: unexpected token"


def test_external_compiler_errors_use_the_stage_as_phase():
	diag = diagnostic_from_error(ExternalCompilerError("sierra-to-casm", "compiler failed: boom"))

	assert diag.phase == "sierra-to-casm"
	assert diag.message == "sierra-to-casm: compiler failed: boom"


def test_ambiguous_function_lookup_lists_candidates():
	err = FunctionNotFound("::main", candidates=["a::main", "b::main"])

	assert "ambiguous" in err.message
	assert err.candidates == ["a::main", "b::main"]


def test_json_rendering_includes_file_and_notes():
	diag = Diagnostic(message="segment lengths omitted", phase="segmentation", severity="warning", notes=["see debug info"])

	assert diagnostic_to_json(diag, file="p.json") == {
		"phase": "segmentation",
		"code": None,
		"message": "segment lengths omitted",
		"severity": "warning",
		"file": "p.json",
		"line": None,
		"column": None,
		"notes": ["see debug info"],
	}
	assert diagnostic_to_text(diag, file=None) == "<input>:?:?: warning: segment lengths omitted\n  note: see debug info"
