# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Field helpers for CASM bytecode.

The assembler hands back signed big integers; artifacts store them reduced into
[0, PRIME). Hex rendering matches the `0x`-prefixed lowercase form used by
Starknet artifacts.
"""

from __future__ import annotations

from typing import Any, Iterable, List


PRIME = 2**251 + 17 * 2**192 + 1


def reduce_felt(value: int, prime: int = PRIME) -> int:
	"""Reduce a signed integer into the field; negatives wrap to `prime - (|v| mod prime)`."""
	remainder = abs(value) % prime
	if value < 0 and remainder:
		return prime - remainder
	return remainder


def reduce_bytecode(words: Iterable[int], prime: int = PRIME) -> List[int]:
	return [reduce_felt(w, prime) for w in words]


def to_hex(value: int) -> str:
	if value < 0:
		raise ValueError(f"cannot hex-encode negative value {value}")
	return f"{value:#x}"


def parse_int(raw: Any) -> int:
	"""
	Parse a JSON integer field.

	Accepts ints and decimal or `0x`-prefixed hex strings, optionally negative.
	Booleans are rejected even though they are ints in Python.
	"""
	if isinstance(raw, bool):
		raise ValueError(f"expected integer, got {raw!r}")
	if isinstance(raw, int):
		return raw
	if isinstance(raw, str):
		text = raw.strip()
		neg = text.startswith("-")
		if neg:
			text = text[1:]
		try:
			val = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
		except ValueError:
			raise ValueError(f"expected integer, got {raw!r}") from None
		return -val if neg else val
	raise ValueError(f"expected integer, got {raw!r}")


__all__ = ["PRIME", "reduce_felt", "reduce_bytecode", "to_hex", "parse_int"]
