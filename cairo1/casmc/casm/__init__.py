"""
CASM side of casmc: compiler output model, assembler and compiler collaborator.
"""

from __future__ import annotations

__all__ = [
	"program",
	"hint_text",
	"compiler",
]
