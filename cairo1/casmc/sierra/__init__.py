"""
Sierra program model and readers (JSON and textual).
"""

from __future__ import annotations

__all__ = [
	"program",
	"json_io",
	"parser",
]
