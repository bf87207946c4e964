# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Sierra-to-CASM compiler collaborator.

casmc never compiles Sierra itself. It talks to a compiler through the
`SierraToCasmCompiler` protocol; two implementations ship here:

- `PrecompiledCasm` wraps a CASM dump produced by an earlier compiler run,
- `SubprocessSierraCompiler` pipes the Sierra JSON into an external command and
  reads the CASM dump from its stdout.

Compiler failures are raised as `ExternalCompilerError` tagged with the stage
that failed and are never retried.
"""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from cairo1.casmc.core.errors import CasmFormatError, ExternalCompilerError
from cairo1.casmc.sierra.json_io import program_to_json
from cairo1.casmc.sierra.program import Program
from .program import CairoProgram, load_cairo_program_json

COMPILE_STAGE = "sierra-to-casm"


@dataclass(frozen=True)
class SierraToCasmConfig:
	"""Metadata/config record handed to the compiler."""

	gas_usage_check: bool = False
	max_bytecode_size: Optional[int] = None  # None: unlimited


class SierraToCasmCompiler(Protocol):
	def compile(self, program: Program, config: SierraToCasmConfig) -> CairoProgram:
		"""Compile `program`; raise ExternalCompilerError on failure."""
		...


def check_bytecode_size(cairo_program: CairoProgram, config: SierraToCasmConfig) -> None:
	if config.max_bytecode_size is None:
		return
	size = cairo_program.code_size
	if size > config.max_bytecode_size:
		raise ExternalCompilerError(
			COMPILE_STAGE,
			f"code size limit exceeded: {size} > {config.max_bytecode_size}",
		)


@dataclass(frozen=True)
class PrecompiledCasm:
	"""Compiler stand-in that returns an already compiled program."""

	cairo_program: CairoProgram

	def compile(self, program: Program, config: SierraToCasmConfig) -> CairoProgram:
		check_bytecode_size(self.cairo_program, config)
		return self.cairo_program


@dataclass(frozen=True)
class SubprocessSierraCompiler:
	"""
	Run an external compiler command.

	The Sierra program JSON is written to stdin; the command must print a CASM
	dump (see `casm.program`) on stdout and exit 0. Config is forwarded as
	`--gas-usage-check` and `--max-bytecode-size N`.
	"""

	command: Sequence[str]
	timeout: Optional[float] = None

	def argv(self, config: SierraToCasmConfig) -> list[str]:
		argv = list(self.command)
		if config.gas_usage_check:
			argv.append("--gas-usage-check")
		if config.max_bytecode_size is not None:
			argv.extend(["--max-bytecode-size", str(config.max_bytecode_size)])
		return argv

	def compile(self, program: Program, config: SierraToCasmConfig) -> CairoProgram:
		argv = self.argv(config)
		if not argv:
			raise ExternalCompilerError(COMPILE_STAGE, "no compiler command configured")
		payload = json.dumps(program_to_json(program), separators=(",", ":"))
		try:
			res = subprocess.run(argv, input=payload.encode("utf-8"), capture_output=True, timeout=self.timeout)
		except FileNotFoundError:
			raise ExternalCompilerError(COMPILE_STAGE, f"compiler not found: {argv[0]}") from None
		except subprocess.TimeoutExpired:
			raise ExternalCompilerError(COMPILE_STAGE, f"compiler timed out after {self.timeout}s") from None
		except OSError as err:
			raise ExternalCompilerError(COMPILE_STAGE, f"cannot run compiler {argv[0]}: {err.strerror or err}") from None
		if res.returncode != 0:
			msg = res.stderr.decode("utf-8", errors="replace").strip() or f"exit status {res.returncode}"
			raise ExternalCompilerError(COMPILE_STAGE, f"compiler failed: {msg}")
		try:
			stdout = res.stdout.decode("utf-8")
		except UnicodeDecodeError as err:
			raise ExternalCompilerError(
				COMPILE_STAGE, f"unreadable compiler output: not valid UTF-8 (byte offset {err.start})"
			) from None
		try:
			cairo_program = load_cairo_program_json(stdout)
		except CasmFormatError as err:
			raise ExternalCompilerError(COMPILE_STAGE, f"unreadable compiler output: {err.message}") from None
		check_bytecode_size(cairo_program, config)
		return cairo_program


__all__ = [
	"COMPILE_STAGE",
	"SierraToCasmConfig",
	"SierraToCasmCompiler",
	"check_bytecode_size",
	"PrecompiledCasm",
	"SubprocessSierraCompiler",
]
