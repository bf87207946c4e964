# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
cairo1 package: tooling around Cairo 1 compiler output.

Packages:
  casmc: finalize Sierra-to-CASM compiler output into CASM artifacts
"""

__all__ = ["casmc"]
