# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
import shlex
import sys
from pathlib import Path

from cairo1.casmc.casm.program import Hint, cairo_program_to_json
from cairo1.casmc.casmc import COMPILER_ENV_VAR, main
from cairo1.casmc.core.felt import PRIME
from cairo1.casmc.test_helpers import make_cairo_program

SIERRA = """
type [0] = felt252;
type [1] = Array<[0]>;
type [2] = Snapshot<[1]>;
type [3] = Struct<ut@core::array::Span::<core::felt252>, [2]>;
type [4] = GasBuiltin;
type [5] = System;
type [6] = RangeCheck;
type [7] = Struct<ut@Tuple, [3]>;
type [8] = Struct<ut@core::panics::Panic>;
type [9] = Struct<ut@Tuple, [8], [3]>;
type [10] = Enum<ut@core::panics::PanicResult::<((core::array::Span::<core::felt252>,),)>, [7], [9]>;

return();

test::main@0([0]: [6], [1]: [4], [2]: [5]) -> ([6], [4], [5], [10]);
"""


def _write_inputs(tmp_path: Path, *, statement_offsets=(0,)) -> tuple[Path, Path]:
	sierra = tmp_path / "prog.sierra"
	sierra.write_text(SIERRA, encoding="utf-8")
	casm = tmp_path / "prog.casm.json"
	compiled = make_cairo_program(
		[[0x480680017FFF8000, -3], [0x208B7FFF7FFF7FFE]],
		hints={0: [Hint("AllocSegment", {"dst": {"register": "AP", "offset": 0}})]},
		statement_offsets=statement_offsets,
		compiler_version="2.6.0",
	)
	casm.write_text(json.dumps(cairo_program_to_json(compiled)), encoding="utf-8")
	return sierra, casm


def test_cli_writes_the_contract_artifact(tmp_path: Path, capsys):
	sierra, casm = _write_inputs(tmp_path)
	out = tmp_path / "prog.json"

	exit_code = main([str(sierra), str(out), "--casm", str(casm)])

	assert exit_code == 0
	assert capsys.readouterr().err == ""
	artifact = json.loads(out.read_text(encoding="utf-8"))
	assert artifact["bytecode"] == ["0x480680017fff8000", hex(PRIME - 3), "0x208b7fff7fff7ffe"]
	assert artifact["bytecode_segment_lengths"] == [3]
	assert artifact["main_entry_point"] == {"offset": 0, "builtins": ["range_check"]}
	assert artifact["hints"] == [[0, [{"AllocSegment": {"dst": {"register": "AP", "offset": 0}}}]]]
	assert artifact["pythonic_hints"] == [[0, ["AllocSegment { dst: [ap + 0] }"]]]
	assert artifact["compiler_version"] == "2.6.0"


def test_cli_program_format(tmp_path: Path):
	sierra, casm = _write_inputs(tmp_path)
	out = tmp_path / "prog.json"

	assert main([str(sierra), str(out), "--casm", str(casm), "--format", "program", "--indent", "2"]) == 0
	program = json.loads(out.read_text(encoding="utf-8"))
	assert program["builtins"] == ["range_check"]
	assert program["main"] == 0
	assert program["hints"]["0"][0]["code"] == "AllocSegment { dst: [ap + 0] }"


def test_cli_no_pythonic_hints(tmp_path: Path):
	sierra, casm = _write_inputs(tmp_path)
	out = tmp_path / "prog.json"

	assert main([str(sierra), str(out), "--casm", str(casm), "--no-pythonic-hints"]) == 0
	assert "pythonic_hints" not in json.loads(out.read_text(encoding="utf-8"))


def test_cli_json_reports_entry_point_errors(tmp_path: Path, capsys):
	sierra, casm = _write_inputs(tmp_path)
	sierra.write_text(SIERRA.replace("([0]: [6], [1]: [4], [2]: [5])", "([0]: [6], [1]: [5], [2]: [4])"), encoding="utf-8")
	out = tmp_path / "prog.json"

	exit_code = main([str(sierra), str(out), "--casm", str(casm), "--json"])

	assert exit_code == 1
	assert not out.exists()
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 1
	(diag,) = payload["diagnostics"]
	assert diag["phase"] == "entry-point"
	assert diag["code"] == "wrong_builtin_order"
	assert diag["file"] == str(sierra)


def test_cli_text_diagnostics_go_to_stderr(tmp_path: Path, capsys):
	sierra, casm = _write_inputs(tmp_path)
	sierra.write_text("type [0] = = felt252;\n", encoding="utf-8")

	exit_code = main([str(sierra), str(tmp_path / "prog.json"), "--casm", str(casm)])

	assert exit_code == 1
	err = capsys.readouterr().err
	assert err.startswith(f"{sierra}:1:")
	assert ": error: invalid sierra text" in err


def test_cli_segmentation_warning_keeps_exit_code_zero(tmp_path: Path, capsys):
	sierra, casm = _write_inputs(tmp_path, statement_offsets=(1,))
	out = tmp_path / "prog.json"

	exit_code = main([str(sierra), str(out), "--casm", str(casm), "--json"])

	assert exit_code == 0
	payload = json.loads(capsys.readouterr().out)
	assert [d["severity"] for d in payload["diagnostics"]] == ["warning"]
	artifact = json.loads(out.read_text(encoding="utf-8"))
	assert "bytecode_segment_lengths" not in artifact
	assert artifact["main_entry_point"]["offset"] == 1


def test_cli_without_a_compiler_fails(tmp_path: Path, capsys, monkeypatch):
	monkeypatch.delenv(COMPILER_ENV_VAR, raising=False)
	sierra, _casm = _write_inputs(tmp_path)

	assert main([str(sierra), str(tmp_path / "prog.json")]) == 1
	assert "no compiler configured" in capsys.readouterr().err


def test_cli_uses_the_compiler_from_the_environment(tmp_path: Path, monkeypatch):
	sierra, casm = _write_inputs(tmp_path)
	script = tmp_path / "fake_compiler.py"
	script.write_text(
		"import sys\nsys.stdin.read()\nsys.stdout.write(open(sys.argv[1]).read())\n",
		encoding="utf-8",
	)
	monkeypatch.setenv(COMPILER_ENV_VAR, shlex.join([sys.executable, str(script), str(casm)]))
	out = tmp_path / "prog.json"

	assert main([str(sierra), str(out)]) == 0
	assert json.loads(out.read_text(encoding="utf-8"))["main_entry_point"]["builtins"] == ["range_check"]


def test_cli_missing_input_file(tmp_path: Path, capsys):
	assert main([str(tmp_path / "nope.sierra"), str(tmp_path / "out.json"), "--json"]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["diagnostics"][0]["phase"] == "input"


def test_cli_rejects_a_sierra_file_that_is_not_utf8(tmp_path: Path, capsys):
	sierra, casm = _write_inputs(tmp_path)
	sierra.write_bytes(b"type [0] = felt252;\xff\xfe\n")
	out = tmp_path / "prog.json"

	exit_code = main([str(sierra), str(out), "--casm", str(casm), "--json"])

	assert exit_code == 1
	assert not out.exists()
	(diag,) = json.loads(capsys.readouterr().out)["diagnostics"]
	assert diag["phase"] == "input"
	assert "not valid UTF-8 (byte offset 19)" in diag["message"]


def test_cli_rejects_a_casm_dump_that_is_not_utf8(tmp_path: Path, capsys):
	sierra, casm = _write_inputs(tmp_path)
	casm.write_bytes(b'{"instructions": "\xff"}')

	exit_code = main([str(sierra), str(tmp_path / "prog.json"), "--casm", str(casm), "--json"])

	assert exit_code == 1
	(diag,) = json.loads(capsys.readouterr().out)["diagnostics"]
	assert diag["phase"] == "input"
	assert "is not valid UTF-8" in diag["message"]


def test_cli_array_panic_data_flag(tmp_path: Path, capsys):
	sierra, casm = _write_inputs(tmp_path)
	array_err = SIERRA.replace(
		"type [9] = Struct<ut@Tuple, [8], [3]>;",
		"type [9] = Struct<ut@Tuple, [8], [1]>;",
	)
	sierra.write_text(array_err, encoding="utf-8")
	out = tmp_path / "prog.json"

	assert main([str(sierra), str(out), "--casm", str(casm), "--json"]) == 1
	(diag,) = json.loads(capsys.readouterr().out)["diagnostics"]
	assert diag["code"] == "invalid_err_type"

	assert main([str(sierra), str(out), "--casm", str(casm), "--array-panic-data"]) == 0
	assert json.loads(out.read_text(encoding="utf-8"))["main_entry_point"]["builtins"] == ["range_check"]
