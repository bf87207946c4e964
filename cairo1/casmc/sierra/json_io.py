# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Sierra JSON reader/writer.

The JSON shape follows the serde encoding of compiled Sierra programs:

  {"type_declarations": [{"id": {"id": 0, "debug_name": "felt252"},
                          "long_id": {"generic_id": "felt252", "generic_args": []},
                          "declared_type_info": null}, ...],
   "libfunc_declarations": [...],
   "statements": [{"Invocation": {...}} | {"Return": [...]}, ...],
   "funcs": [{"id": {...}, "signature": {"param_types": [...], "ret_types": [...]},
              "params": [{"id": {"id": 0}, "ty": {"id": 1}}], "entry_point": 0}]}

Generic args are externally tagged (`{"Type": {...}}`, `{"UserType": {...}}`,
`{"Value": 5}`, `{"UserFunc": {...}}`, `{"Libfunc": {...}}`). A versioned
wrapper (`{"program": {...}}` or a single-key object around it) is unwrapped.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, TypeVar

from cairo1.casmc.core.errors import SierraParseError
from cairo1.casmc.core.felt import parse_int
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

_IdT = TypeVar("_IdT")


def _expect_dict(obj: Any, what: str) -> Mapping[str, Any]:
	if not isinstance(obj, dict):
		raise SierraParseError(f"expected object for {what}, got {type(obj).__name__}")
	return obj


def _expect_list(obj: Any, what: str) -> list[Any]:
	if not isinstance(obj, list):
		raise SierraParseError(f"expected array for {what}, got {type(obj).__name__}")
	return obj


def _int(raw: Any, what: str) -> int:
	try:
		return parse_int(raw)
	except ValueError as err:
		raise SierraParseError(f"{what}: {err}") from None


def _id(obj: Any, ctor: Callable[..., _IdT], what: str) -> _IdT:
	data = _expect_dict(obj, what)
	if "id" not in data:
		raise SierraParseError(f"{what} missing 'id'")
	debug_name = data.get("debug_name")
	if debug_name is not None and not isinstance(debug_name, str):
		raise SierraParseError(f"{what} debug_name must be a string")
	return ctor(_int(data["id"], what), debug_name)


def _generic_arg(obj: Any) -> GenericArg:
	data = _expect_dict(obj, "generic arg")
	if len(data) != 1:
		raise SierraParseError(f"generic arg must have exactly one tag, got {sorted(data)}")
	tag, val = next(iter(data.items()))
	if tag == "Type":
		return TypeArg(_id(val, ConcreteTypeId, "generic arg Type"))
	if tag == "UserType":
		return UserTypeArg(_id(val, UserTypeId, "generic arg UserType"))
	if tag == "Value":
		return ValueArg(_int(val, "generic arg Value"))
	if tag == "UserFunc":
		return UserFuncArg(_id(val, FunctionId, "generic arg UserFunc"))
	if tag == "Libfunc":
		return LibfuncArg(_id(val, ConcreteLibfuncId, "generic arg Libfunc"))
	raise SierraParseError(f"unsupported generic arg kind '{tag}'")


def _long_id(obj: Any, what: str) -> tuple[str, tuple[GenericArg, ...]]:
	data = _expect_dict(obj, what)
	generic_id = data.get("generic_id")
	if not isinstance(generic_id, str):
		raise SierraParseError(f"{what} missing generic_id")
	args = tuple(_generic_arg(a) for a in _expect_list(data.get("generic_args", []), f"{what} generic_args"))
	return generic_id, args


def _type_declaration(obj: Any) -> TypeDeclaration:
	data = _expect_dict(obj, "type declaration")
	generic_id, args = _long_id(data.get("long_id"), "type long_id")
	info = data.get("declared_type_info")
	if info is not None and not isinstance(info, dict):
		raise SierraParseError("declared_type_info must be an object or null")
	return TypeDeclaration(
		id=_id(data.get("id"), ConcreteTypeId, "type id"),
		long_id=ConcreteTypeLongId(generic_id, args),
		declared_type_info=info,
	)


def _libfunc_declaration(obj: Any) -> LibfuncDeclaration:
	data = _expect_dict(obj, "libfunc declaration")
	generic_id, args = _long_id(data.get("long_id"), "libfunc long_id")
	return LibfuncDeclaration(
		id=_id(data.get("id"), ConcreteLibfuncId, "libfunc id"),
		long_id=ConcreteLibfuncLongId(generic_id, args),
	)


def _var_ids(obj: Any, what: str) -> tuple[int, ...]:
	return tuple(_id(v, lambda i, _name: i, what) for v in _expect_list(obj, what))


def _statement(obj: Any) -> Statement:
	data = _expect_dict(obj, "statement")
	if "Return" in data:
		return Return(_var_ids(data["Return"], "return vars"))
	if "Invocation" in data:
		inv = _expect_dict(data["Invocation"], "invocation")
		branches: list[BranchInfo] = []
		for raw in _expect_list(inv.get("branches", []), "branches"):
			br = _expect_dict(raw, "branch")
			target = br.get("target")
			if target == "Fallthrough":
				target_idx = None
			else:
				target_idx = _int(_expect_dict(target, "branch target").get("Statement"), "branch target")
			branches.append(BranchInfo(target=target_idx, results=_var_ids(br.get("results", []), "branch results")))
		return Invocation(
			libfunc_id=_id(inv.get("libfunc_id"), ConcreteLibfuncId, "libfunc_id"),
			args=_var_ids(inv.get("args", []), "invocation args"),
			branches=tuple(branches),
		)
	raise SierraParseError(f"unknown statement kind {sorted(data)}")


def _function(obj: Any) -> Function:
	data = _expect_dict(obj, "function")
	sig = _expect_dict(data.get("signature"), "function signature")
	params = []
	for raw in _expect_list(data.get("params", []), "function params"):
		p = _expect_dict(raw, "function param")
		params.append(Param(id=_id(p.get("id"), lambda i, _name: i, "param id"), ty=_id(p.get("ty"), ConcreteTypeId, "param type")))
	return Function(
		id=_id(data.get("id"), FunctionId, "function id"),
		signature=FunctionSignature(
			param_types=tuple(_id(t, ConcreteTypeId, "param type") for t in _expect_list(sig.get("param_types", []), "param_types")),
			ret_types=tuple(_id(t, ConcreteTypeId, "ret type") for t in _expect_list(sig.get("ret_types", []), "ret_types")),
		),
		params=tuple(params),
		entry_point=_int(data.get("entry_point"), "entry_point"),
	)


def _unwrap_versioned(obj: Mapping[str, Any]) -> Mapping[str, Any]:
	# {"program": {...}} or {"V1": {"program": {...}}} style wrappers.
	cur: Any = obj
	for _ in range(3):
		if isinstance(cur, dict) and "type_declarations" in cur:
			return cur
		if isinstance(cur, dict) and "program" in cur:
			cur = cur["program"]
			continue
		if isinstance(cur, dict) and len(cur) == 1:
			cur = next(iter(cur.values()))
			continue
		break
	return _expect_dict(cur, "sierra program")


def program_from_json(obj: Any) -> Program:
	"""Decode a Sierra program from its JSON object form."""
	data = _unwrap_versioned(_expect_dict(obj, "sierra program"))
	if "type_declarations" not in data or "funcs" not in data:
		raise SierraParseError("sierra program must contain 'type_declarations' and 'funcs'")
	type_decls = tuple(_type_declaration(t) for t in _expect_list(data["type_declarations"], "type_declarations"))
	check_dense_type_ids(type_decls)
	return Program(
		type_declarations=type_decls,
		libfunc_declarations=tuple(
			_libfunc_declaration(l) for l in _expect_list(data.get("libfunc_declarations", []), "libfunc_declarations")
		),
		statements=tuple(_statement(s) for s in _expect_list(data.get("statements", []), "statements")),
		funcs=tuple(_function(f) for f in _expect_list(data["funcs"], "funcs")),
	)


def load_program_json(text: str | bytes) -> Program:
	try:
		obj = json.loads(text)
	except json.JSONDecodeError as err:
		raise SierraParseError(f"invalid sierra JSON: {err.msg}", line=err.lineno, column=err.colno) from None
	return program_from_json(obj)


def _id_json(id_obj: Any) -> dict[str, Any]:
	out: dict[str, Any] = {"id": id_obj.id}
	if id_obj.debug_name is not None:
		out["debug_name"] = id_obj.debug_name
	return out


def _var_json(var: int) -> dict[str, Any]:
	return {"id": var}


def _generic_arg_json(arg: GenericArg) -> dict[str, Any]:
	if isinstance(arg, TypeArg):
		return {"Type": _id_json(arg.ty)}
	if isinstance(arg, UserTypeArg):
		return {"UserType": _id_json(arg.user_type)}
	if isinstance(arg, ValueArg):
		return {"Value": arg.value}
	if isinstance(arg, UserFuncArg):
		return {"UserFunc": _id_json(arg.function)}
	if isinstance(arg, LibfuncArg):
		return {"Libfunc": _id_json(arg.libfunc)}
	raise AssertionError(f"unexpected generic arg {arg!r}")


def _statement_json(stmt: Statement) -> dict[str, Any]:
	if isinstance(stmt, Return):
		return {"Return": [_var_json(v) for v in stmt.vars]}
	return {
		"Invocation": {
			"libfunc_id": _id_json(stmt.libfunc_id),
			"args": [_var_json(v) for v in stmt.args],
			"branches": [
				{
					"target": "Fallthrough" if br.target is None else {"Statement": br.target},
					"results": [_var_json(v) for v in br.results],
				}
				for br in stmt.branches
			],
		}
	}


def program_to_json(program: Program) -> dict[str, Any]:
	"""Encode a program back into the serde JSON shape read by `program_from_json`."""
	return {
		"type_declarations": [
			{
				"id": _id_json(t.id),
				"long_id": {
					"generic_id": t.long_id.generic_id,
					"generic_args": [_generic_arg_json(a) for a in t.long_id.generic_args],
				},
				"declared_type_info": t.declared_type_info,
			}
			for t in program.type_declarations
		],
		"libfunc_declarations": [
			{
				"id": _id_json(l.id),
				"long_id": {
					"generic_id": l.long_id.generic_id,
					"generic_args": [_generic_arg_json(a) for a in l.long_id.generic_args],
				},
			}
			for l in program.libfunc_declarations
		],
		"statements": [_statement_json(s) for s in program.statements],
		"funcs": [
			{
				"id": _id_json(f.id),
				"signature": {
					"param_types": [_id_json(t) for t in f.signature.param_types],
					"ret_types": [_id_json(t) for t in f.signature.ret_types],
				},
				"params": [{"id": _var_json(p.id), "ty": _id_json(p.ty)} for p in f.params],
				"entry_point": f.entry_point,
			}
			for f in program.funcs
		],
	}


__all__ = ["program_from_json", "load_program_json", "program_to_json"]
