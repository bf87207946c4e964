#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
casmc driver: Sierra program + compiler output -> artifact.

Pipeline:
  compile (external) -> assemble -> reduce bytecode -> segment lengths (soft)
  -> main entry point lookup -> builtins/offset -> hints -> artifact

`cairo_compile` builds the contract-style `CasmProgramClass`,
`cairo_compile_program` the plain `VmProgram`. Both are pure given the
compiler collaborator; `main` is the CLI wrapper and the only place that
touches files or prints.
"""

from __future__ import annotations

import argparse
import json
import os
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from cairo1.casmc import CASMC_VERSION
from cairo1.casmc.artifact import CasmProgramClass, VmProgram, dump_artifact_json
from cairo1.casmc.builtins import derive_entry_point, get_function_builtins
from cairo1.casmc.casm.compiler import (
	COMPILE_STAGE,
	PrecompiledCasm,
	SierraToCasmCompiler,
	SierraToCasmConfig,
	SubprocessSierraCompiler,
)
from cairo1.casmc.casm.program import CairoProgram, load_cairo_program_json
from cairo1.casmc.core.diagnostics import (
	Diagnostic,
	diagnostic_from_error,
	diagnostic_to_json,
	diagnostic_to_text,
)
from cairo1.casmc.core.errors import CasmcError, CasmFormatError, ExternalCompilerError, SegmentationError
from cairo1.casmc.core.felt import PRIME, reduce_bytecode
from cairo1.casmc.core.nested_int_list import NestedIntList
from cairo1.casmc.function import find_function
from cairo1.casmc.hints import build_hint_params, build_hints_dict, hints_by_pc, pythonic_hints
from cairo1.casmc.segment import compute_bytecode_segment_lengths
from cairo1.casmc.sierra.json_io import load_program_json
from cairo1.casmc.sierra.parser import parse_sierra
from cairo1.casmc.sierra.program import Program
from cairo1.casmc.type_resolver import TypeResolver

COMPILER_ENV_VAR = "CASMC_SIERRA_COMPILER"


@dataclass(frozen=True)
class CompileOptions:
	entry_suffix: str = "::main"
	gas_usage_check: bool = False
	max_bytecode_size: Optional[int] = None
	add_pythonic_hints: bool = True
	enforce_known_builtins: bool = True
	array_panic_data: bool = False

	def compiler_config(self) -> SierraToCasmConfig:
		return SierraToCasmConfig(gas_usage_check=self.gas_usage_check, max_bytecode_size=self.max_bytecode_size)


@dataclass
class CompileResult:
	"""Artifact plus the warnings collected while building it."""

	artifact: CasmProgramClass | VmProgram
	diagnostics: List[Diagnostic] = field(default_factory=list)


def _segment_lengths(
	program: Program,
	cairo_program: CairoProgram,
	bytecode_len: int,
	diagnostics: List[Diagnostic],
) -> Optional[NestedIntList]:
	try:
		return compute_bytecode_segment_lengths(program, cairo_program, bytecode_len)
	except SegmentationError as err:
		diagnostics.append(
			Diagnostic(
				message=f"bytecode segment lengths omitted: {err.message}",
				phase=err.phase,
				severity="warning",
			)
		)
		return None


def cairo_compile(
	program: Program,
	compiler: SierraToCasmCompiler,
	options: CompileOptions | None = None,
) -> CompileResult:
	"""
	Build the contract-style artifact for `program`.

	Errors from the compiler, the main function lookup and the entry point
	convention propagate; only segmentation failures are downgraded to warnings.
	"""
	options = options or CompileOptions()
	diagnostics: List[Diagnostic] = []
	cairo_program = compiler.compile(program, options.compiler_config())
	assembled = cairo_program.assemble()
	bytecode = reduce_bytecode(assembled.bytecode)

	segments = _segment_lengths(program, cairo_program, len(bytecode), diagnostics)

	main_func = find_function(program, options.entry_suffix)
	resolver = TypeResolver(program.type_declarations)
	entry = derive_entry_point(
		resolver,
		main_func,
		cairo_program.debug_info,
		enforce_known_builtins=options.enforce_known_builtins,
		array_panic_data=options.array_panic_data,
	)

	hints = build_hints_dict(cairo_program.instructions)
	artifact = CasmProgramClass(
		prime=PRIME,
		compiler_version=cairo_program.compiler_version or CASMC_VERSION,
		bytecode=tuple(bytecode),
		hints=hints_by_pc(hints),
		main_entry=entry,
		bytecode_segment_lengths=segments,
		pythonic_hints=pythonic_hints(hints) if options.add_pythonic_hints else None,
	)
	return CompileResult(artifact=artifact, diagnostics=diagnostics)


def cairo_compile_program(
	program: Program,
	compiler: SierraToCasmCompiler,
	options: CompileOptions | None = None,
) -> CompileResult:
	"""
	Build the plain VM program for `program`.

	Builtins are detected by debug name on the main function's params; there is
	no calling convention to validate.
	"""
	options = options or CompileOptions()
	cairo_program = compiler.compile(program, options.compiler_config())
	assembled = cairo_program.assemble()
	main_func = find_function(program, options.entry_suffix)
	builtins, _offsets = get_function_builtins(main_func.signature.param_types)
	artifact = VmProgram(
		prime=PRIME,
		compiler_version=cairo_program.compiler_version or CASMC_VERSION,
		data=tuple(reduce_bytecode(assembled.bytecode)),
		builtins=tuple(b.value for b in builtins),
		hints=build_hint_params(build_hints_dict(cairo_program.instructions)),
		main=cairo_program.debug_info.code_offset(main_func.entry_point),
	)
	return CompileResult(artifact=artifact)


def load_sierra(text: str) -> Program:
	"""Sierra JSON when the input looks like JSON, textual Sierra otherwise."""
	if text.lstrip().startswith("{"):
		return load_program_json(text)
	return parse_sierra(text)


def _make_compiler(args: argparse.Namespace) -> SierraToCasmCompiler:
	if args.casm is not None:
		try:
			text = args.casm.read_text(encoding="utf-8")
		except OSError as err:
			raise ExternalCompilerError(COMPILE_STAGE, f"cannot read CASM dump {args.casm}: {err.strerror}") from None
		except UnicodeDecodeError as err:
			raise CasmFormatError(f"CASM dump {args.casm} is not valid UTF-8 (byte offset {err.start})") from None
		return PrecompiledCasm(load_cairo_program_json(text))
	command = args.compiler or os.environ.get(COMPILER_ENV_VAR)
	if not command:
		raise ExternalCompilerError(
			COMPILE_STAGE,
			f"no compiler configured (pass --casm, --compiler or set {COMPILER_ENV_VAR})",
		)
	return SubprocessSierraCompiler(command=tuple(shlex.split(command)))


def _emit(diagnostics: Sequence[Diagnostic], *, exit_code: int, as_json: bool, source: Path) -> int:
	if as_json:
		payload = {
			"exit_code": exit_code,
			"diagnostics": [diagnostic_to_json(d, file=str(source)) for d in diagnostics],
		}
		print(json.dumps(payload))
	else:
		for d in diagnostics:
			print(diagnostic_to_text(d, file=str(source)), file=sys.stderr)
	return exit_code


def main(argv: list[str] | None = None) -> int:
	"""
	Compile a Sierra program into a CASM artifact.

	With --json, prints structured diagnostics (phase/code/message/severity/file)
	and an exit_code; otherwise prints human-readable messages to stderr.
	"""
	parser = argparse.ArgumentParser(prog="casmc", description="Package Sierra compiler output as a CASM artifact")
	parser.add_argument("sierra_file", type=Path, help="Sierra program (JSON or textual form)")
	parser.add_argument("outfile", type=Path, help="Path to write the artifact JSON to")
	source = parser.add_mutually_exclusive_group()
	source.add_argument("--casm", type=Path, help="CASM dump produced by an earlier compiler run")
	source.add_argument(
		"--compiler",
		type=str,
		help=f"Sierra-to-CASM compiler command (default: ${COMPILER_ENV_VAR})",
	)
	parser.add_argument(
		"--format",
		choices=("class", "program"),
		default="class",
		help="Artifact shape: contract-style class (default) or plain VM program",
	)
	parser.add_argument("--entry", default="::main", help="Debug name suffix of the main function (default: ::main)")
	parser.add_argument(
		"--no-pythonic-hints",
		dest="pythonic_hints",
		action="store_false",
		default=True,
		help="Omit the textual hint listing from the artifact",
	)
	parser.add_argument(
		"--permissive-builtins",
		action="store_true",
		help="Skip unrecognized entry point params instead of rejecting them",
	)
	parser.add_argument(
		"--array-panic-data",
		action="store_true",
		help="Expect the entry point panic data as Array<felt252> instead of Span<felt252>",
	)
	parser.add_argument("--gas-usage-check", action="store_true", help="Ask the compiler to check gas usage")
	parser.add_argument("--max-bytecode-size", type=int, default=None, help="Reject programs with more code words than this")
	parser.add_argument("--indent", type=int, default=None, help="Indent the artifact JSON (default: compact)")
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/code/message/severity/file)",
	)
	args = parser.parse_args(argv)

	source_path: Path = args.sierra_file
	options = CompileOptions(
		entry_suffix=args.entry,
		gas_usage_check=args.gas_usage_check,
		max_bytecode_size=args.max_bytecode_size,
		add_pythonic_hints=args.pythonic_hints,
		enforce_known_builtins=not args.permissive_builtins,
		array_panic_data=args.array_panic_data,
	)

	try:
		text = source_path.read_text(encoding="utf-8")
	except OSError as err:
		diag = Diagnostic(message=f"cannot read {source_path}: {err.strerror}", phase="input")
		return _emit([diag], exit_code=1, as_json=args.json, source=source_path)
	except UnicodeDecodeError as err:
		diag = Diagnostic(message=f"{source_path} is not valid UTF-8 (byte offset {err.start})", phase="input")
		return _emit([diag], exit_code=1, as_json=args.json, source=source_path)

	try:
		program = load_sierra(text)
		compiler = _make_compiler(args)
		if args.format == "program":
			result = cairo_compile_program(program, compiler, options)
		else:
			result = cairo_compile(program, compiler, options)
	except CasmcError as err:
		return _emit([diagnostic_from_error(err)], exit_code=1, as_json=args.json, source=source_path)

	try:
		args.outfile.write_text(dump_artifact_json(result.artifact, indent=args.indent), encoding="utf-8")
	except OSError as err:
		diag = Diagnostic(message=f"cannot write {args.outfile}: {err.strerror}", phase="output")
		return _emit(result.diagnostics + [diag], exit_code=1, as_json=args.json, source=source_path)

	return _emit(result.diagnostics, exit_code=0, as_json=args.json, source=source_path)


__all__ = [
	"COMPILER_ENV_VAR",
	"CompileOptions",
	"CompileResult",
	"cairo_compile",
	"cairo_compile_program",
	"load_sierra",
	"main",
]


if __name__ == "__main__":
	sys.exit(main())
