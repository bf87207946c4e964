# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CASM artifact packager (`casmc`).

The Sierra-to-CASM compiler is an external collaborator; this package takes its
output and builds the final artifact (reduced bytecode, entry point calling
convention, pc-keyed hints, bytecode segment lengths). The CLI entrypoint is
`cairo1.casmc.casmc:main`.
"""

CASMC_VERSION = "0.1.0"

__all__ = ["CASMC_VERSION"]
