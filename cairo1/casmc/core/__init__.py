"""
cairo1.casmc.core: shared ids/errors/diagnostics used across casmc modules.

Modules:
  - sierra_ids: Sierra id handles, generic args and well-known generic type ids
  - felt: field prime and bytecode reduction
  - nested_int_list: Leaf/Node length trees
  - errors: casmc exception taxonomy
  - diagnostics: Diagnostic records rendered by the CLI
"""

__all__ = [
	"sierra_ids",
	"felt",
	"nested_int_list",
	"errors",
	"diagnostics",
]
