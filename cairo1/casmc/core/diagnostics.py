"""
Common diagnostic structure for casmc passes and the CLI.

Passes never print; they raise CasmcError for fatal problems and hand back
warning diagnostics for degraded results. The CLI renders both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import CasmcError, SierraParseError


@dataclass
class Diagnostic:
	"""Represents a casmc diagnostic (error/warning)."""

	message: str
	code: str | None = None
	phase: str | None = None
	severity: str = "error"
	line: Optional[int] = None
	column: Optional[int] = None
	notes: list[str] = field(default_factory=list)


def diagnostic_from_error(err: CasmcError) -> Diagnostic:
	"""Convert a raised CasmcError into an error diagnostic."""
	code = None
	kind = getattr(err, "kind", None)
	if kind is not None:
		code = kind.value
	line = column = None
	if isinstance(err, SierraParseError):
		line, column = err.line, err.column
	return Diagnostic(message=err.message, code=code, phase=err.phase, severity="error", line=line, column=column)


def diagnostic_to_json(diag: Diagnostic, *, file: str | None) -> dict[str, Any]:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	return {
		"phase": diag.phase,
		"code": diag.code,
		"message": diag.message,
		"severity": diag.severity,
		"file": file,
		"line": diag.line,
		"column": diag.column,
		"notes": list(diag.notes),
	}


def diagnostic_to_text(diag: Diagnostic, *, file: str | None) -> str:
	line = "?" if diag.line is None else str(diag.line)
	column = "?" if diag.column is None else str(diag.column)
	text = f"{file or '<input>'}:{line}:{column}: {diag.severity}: {diag.message}"
	for note in diag.notes:
		text += f"\n  note: {note}"
	return text


__all__ = ["Diagnostic", "diagnostic_from_error", "diagnostic_to_json", "diagnostic_to_text"]
