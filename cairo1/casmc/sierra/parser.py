# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Textual Sierra parser.

Parses the numeric-id textual form printed by the Sierra compiler (see
`grammar.lark`) into the same `Program` model the JSON reader produces.
Debug names that the text does not spell out are rebuilt from the long ids
(`[1] = Array<[0]>` gets the debug name `Array<felt252>`), so the plain-program
builtin convention works on textual input too.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Dict, List, Optional

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from cairo1.casmc.core.errors import SierraParseError
from cairo1.casmc.core.sierra_ids import (
	ConcreteLibfuncId,
	ConcreteTypeId,
	FunctionId,
	GenericArg,
	LibfuncArg,
	TypeArg,
	UserFuncArg,
	UserTypeArg,
	UserTypeId,
	ValueArg,
	generic_arg_str,
)
from .program import (
	BranchInfo,
	ConcreteLibfuncLongId,
	ConcreteTypeLongId,
	Function,
	FunctionSignature,
	Invocation,
	LibfuncDeclaration,
	Param,
	Program,
	Return,
	Statement,
	TypeDeclaration,
	check_dense_type_ids,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)


def _name(tree: Tree) -> str:
	return tree.data if isinstance(tree.data, str) else tree.data.value


def _subtrees(tree: Tree, kind: Optional[str] = None) -> List[Tree]:
	return [c for c in tree.children if isinstance(c, Tree) and (kind is None or _name(c) == kind)]


def _first(tree: Tree, kind: str) -> Optional[Tree]:
	found = _subtrees(tree, kind)
	return found[0] if found else None


def _int_child(tree: Tree) -> int:
	tok = next(c for c in tree.children if isinstance(c, Token) and c.type == "INT")
	return int(tok.value)


def _user_type_id(name: str) -> int:
	# Stable id for a user type known only by its debug name.
	return int.from_bytes(hashlib.sha256(name.encode("utf-8")).digest()[:8], "big")


def _render_user_type(node: object) -> str:
	if isinstance(node, Token):
		return node.value
	assert isinstance(node, Tree)
	kind = _name(node)
	if kind == "user_type_path":
		return "::".join(_render_user_type(c) for c in node.children)
	if kind == "ut_generics":
		return "<" + ", ".join(_render_user_type(c) for c in node.children) + ">"
	if kind == "ut_tuple":
		parts = [_render_user_type(c) for c in node.children]
		if len(parts) == 1:
			return f"({parts[0]},)"
		return "(" + ", ".join(parts) + ")"
	if kind == "ut_snapshot":
		return "@" + _render_user_type(node.children[0])
	raise AssertionError(f"unexpected user type node {kind}")


class _ProgramBuilder:
	"""Two-pass builder: ids and names first, declarations and statements second."""

	def __init__(self, tree: Tree) -> None:
		self._tree = tree
		self._type_long_ids: Dict[int, Tree] = {}
		self._type_debug: Dict[int, str] = {}
		self._func_ids: Dict[str, int] = {}
		self._func_names: Dict[int, Optional[str]] = {}
		self._libfunc_ids: Dict[str, int] = {}
		self._libfunc_names: Dict[int, Optional[str]] = {}

	def build(self) -> Program:
		items = _subtrees(self._tree)
		self._collect_ids(items)
		types: List[TypeDeclaration] = []
		libfuncs: List[LibfuncDeclaration] = []
		statements: List[Statement] = []
		funcs: List[Function] = []
		for item in items:
			kind = _name(item)
			if kind == "type_decl":
				types.append(self._type_decl(item))
			elif kind == "libfunc_decl":
				libfuncs.append(self._libfunc_decl(item))
			elif kind == "func_decl":
				funcs.append(self._func_decl(item))
			elif kind == "invocation":
				statements.append(self._invocation(item))
			elif kind == "return_stmt":
				statements.append(Return(self._vars(_first(item, "var_list"))))
			else:
				raise AssertionError(f"unexpected sierra item {kind}")
		types.sort(key=lambda t: t.id.id)
		type_decls = tuple(types)
		check_dense_type_ids(type_decls)
		return Program(
			type_declarations=type_decls,
			libfunc_declarations=tuple(libfuncs),
			statements=tuple(statements),
			funcs=tuple(funcs),
		)

	def _collect_ids(self, items: List[Tree]) -> None:
		for item in items:
			kind = _name(item)
			if kind == "type_decl":
				type_id = _int_child(_subtrees(item, "type_ref")[0])
				if type_id in self._type_long_ids:
					raise self._error(item, f"type [{type_id}] declared twice")
				self._type_long_ids[type_id] = _subtrees(item, "long_id")[0]
			elif kind == "libfunc_decl":
				self._declare_symbol(item, self._libfunc_ids, self._libfunc_names, "libfunc")
			elif kind == "func_decl":
				self._declare_symbol(item, self._func_ids, self._func_names, "function")

	def _declare_symbol(self, item: Tree, ids: Dict[str, int], names: Dict[int, Optional[str]], what: str) -> None:
		sym = item.children[0]
		assert isinstance(sym, Tree)
		if _name(sym) == "numeric_symbol":
			sym_id = _int_child(sym)
			name = None
		else:
			name = "::".join(t.value for t in sym.children if isinstance(t, Token))
			sym_id = len(names)
			if name in ids:
				raise self._error(item, f"{what} '{name}' declared twice")
			ids[name] = sym_id
		if sym_id in names:
			raise self._error(item, f"{what} [{sym_id}] declared twice")
		names[sym_id] = name

	def _error(self, tree: Tree, message: str) -> SierraParseError:
		meta = getattr(tree, "meta", None)
		line = getattr(meta, "line", None) if meta is not None and not meta.empty else None
		column = getattr(meta, "column", None) if meta is not None and not meta.empty else None
		return SierraParseError(message, line=line, column=column)

	def _type_debug_name(self, type_id: int, visiting: frozenset[int] = frozenset()) -> str:
		cached = self._type_debug.get(type_id)
		if cached is not None:
			return cached
		long_id = self._type_long_ids.get(type_id)
		if long_id is None or type_id in visiting:
			return f"[{type_id}]"
		generic = long_id.children[0]
		assert isinstance(generic, Token)
		args_tree = _first(long_id, "generic_args")
		if args_tree is None:
			name = generic.value
		else:
			parts = [self._arg_debug(a, visiting | {type_id}) for a in _subtrees(args_tree)]
			name = f"{generic.value}<{', '.join(parts)}>"
		self._type_debug[type_id] = name
		return name

	def _arg_debug(self, arg: Tree, visiting: frozenset[int]) -> str:
		kind = _name(arg)
		if kind == "type_arg":
			return self._type_debug_name(_int_child(arg.children[0]), visiting)
		if kind == "user_type_arg":
			return "ut@" + _render_user_type(arg.children[0])
		if kind == "value_arg":
			return str(self._value(arg))
		return generic_arg_str(self._generic_arg(arg))

	def _type_ref(self, tree: Tree) -> ConcreteTypeId:
		type_id = _int_child(tree)
		return ConcreteTypeId(type_id, self._type_debug_name(type_id) if type_id in self._type_long_ids else None)

	def _symbol(self, tree: Tree, ids: Dict[str, int], names: Dict[int, Optional[str]], what: str) -> tuple[int, Optional[str]]:
		if _name(tree) == "numeric_symbol":
			sym_id = _int_child(tree)
			return sym_id, names.get(sym_id)
		name = "::".join(t.value for t in tree.children if isinstance(t, Token))
		if name not in ids:
			raise self._error(tree, f"unknown {what} '{name}'")
		return ids[name], name

	def _function_id(self, tree: Tree) -> FunctionId:
		return FunctionId(*self._symbol(tree, self._func_ids, self._func_names, "function"))

	def _libfunc_id(self, tree: Tree) -> ConcreteLibfuncId:
		return ConcreteLibfuncId(*self._symbol(tree, self._libfunc_ids, self._libfunc_names, "libfunc"))

	def _value(self, arg: Tree) -> int:
		inner = arg.children[0]
		assert isinstance(inner, Tree)
		val = _int_child(inner)
		return -val if _name(inner) == "neg_int_value" else val

	def _generic_arg(self, arg: Tree) -> GenericArg:
		kind = _name(arg)
		if kind == "type_arg":
			return TypeArg(self._type_ref(arg.children[0]))
		if kind == "user_type_arg":
			name = _render_user_type(arg.children[0])
			return UserTypeArg(UserTypeId(_user_type_id(name), name))
		if kind == "value_arg":
			return ValueArg(self._value(arg))
		if kind == "user_func_arg":
			return UserFuncArg(self._function_id(arg.children[0]))
		if kind == "libfunc_arg":
			return LibfuncArg(self._libfunc_id(arg.children[0]))
		raise AssertionError(f"unexpected generic arg node {kind}")

	def _long_id(self, tree: Tree) -> tuple[str, tuple[GenericArg, ...]]:
		generic = tree.children[0]
		assert isinstance(generic, Token)
		args_tree = _first(tree, "generic_args")
		args = tuple(self._generic_arg(a) for a in _subtrees(args_tree)) if args_tree is not None else ()
		return generic.value, args

	def _type_decl(self, item: Tree) -> TypeDeclaration:
		generic_id, args = self._long_id(_subtrees(item, "long_id")[0])
		info_tree = _first(item, "type_info")
		info = None
		if info_tree is not None:
			info = {}
			for attr in _subtrees(info_tree, "type_attr"):
				key, val = (t.value for t in attr.children if isinstance(t, Token))
				info[key] = {"true": True, "false": False}.get(val, val)
		return TypeDeclaration(
			id=self._type_ref(_subtrees(item, "type_ref")[0]),
			long_id=ConcreteTypeLongId(generic_id, args),
			declared_type_info=info,
		)

	def _libfunc_decl(self, item: Tree) -> LibfuncDeclaration:
		generic_id, args = self._long_id(_subtrees(item, "long_id")[0])
		long_id = ConcreteLibfuncLongId(generic_id, args)
		lib_id = self._libfunc_id(item.children[0])
		if lib_id.debug_name is None:
			lib_id = ConcreteLibfuncId(lib_id.id, str(long_id))
			self._libfunc_names[lib_id.id] = lib_id.debug_name
		return LibfuncDeclaration(id=lib_id, long_id=long_id)

	def _func_decl(self, item: Tree) -> Function:
		entry_tok = next(c for c in item.children if isinstance(c, Token) and c.type == "INT")
		params: List[Param] = []
		param_list = _first(item, "param_list")
		if param_list is not None:
			for p in _subtrees(param_list, "param"):
				var_tree, ty_tree = _subtrees(p)
				params.append(Param(id=_int_child(var_tree), ty=self._type_ref(ty_tree)))
		type_list = _first(item, "type_list")
		ret_types = tuple(self._type_ref(t) for t in _subtrees(type_list, "type_ref")) if type_list is not None else ()
		return Function(
			id=self._function_id(item.children[0]),
			signature=FunctionSignature(param_types=tuple(p.ty for p in params), ret_types=ret_types),
			params=tuple(params),
			entry_point=int(entry_tok.value),
		)

	def _vars(self, var_list: Optional[Tree]) -> tuple[int, ...]:
		if var_list is None:
			return ()
		return tuple(_int_child(v) for v in _subtrees(var_list, "var"))

	def _invocation(self, item: Tree) -> Invocation:
		lib_id = self._libfunc_id(item.children[0])
		args = self._vars(_first(item, "var_list"))
		results = _first(item, "results")
		if results is not None:
			branches = (BranchInfo(target=None, results=self._vars(_first(results, "var_list"))),)
		else:
			block = _first(item, "branch_block")
			assert block is not None
			out: List[BranchInfo] = []
			for br in _subtrees(block, "branch"):
				target = br.children[0]
				assert isinstance(target, Tree)
				target_idx = None if _name(target) == "fallthrough_target" else _int_child(target)
				out.append(BranchInfo(target=target_idx, results=self._vars(_first(br, "var_list"))))
			branches = tuple(out)
		return Invocation(libfunc_id=lib_id, args=args, branches=branches)


def parse_sierra(source: str) -> Program:
	"""Parse textual Sierra into a Program; syntax errors become SierraParseError."""
	try:
		tree = _PARSER.parse(source)
	except UnexpectedInput as err:
		line = getattr(err, "line", None)
		column = getattr(err, "column", None)
		if isinstance(line, int) and line < 0:
			line = column = None
		raise SierraParseError(f"invalid sierra text: {err.__class__.__name__}", line=line, column=column) from None
	return _ProgramBuilder(tree).build()


__all__ = ["parse_sierra"]
