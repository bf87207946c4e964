# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from cairo1.casmc.core.errors import MalformedInputError, SierraParseError
from cairo1.casmc.core.sierra_ids import LibfuncArg, TypeArg, UserFuncArg, UserTypeArg, ValueArg
from cairo1.casmc.sierra.json_io import program_from_json, program_to_json
from cairo1.casmc.sierra.parser import parse_sierra
from cairo1.casmc.sierra.program import BranchInfo, Invocation, Return
from cairo1.casmc.type_resolver import TypeResolver

SOURCE = """
// Entry point returning a felt252 span.
type [0] = felt252 [storable: true, drop: true, dup: true, zero_sized: false];
type [1] = Array<[0]>;
type [2] = Snapshot<[1]>;
type [3] = Struct<ut@core::array::Span::<core::felt252>, [2]>;
type [4] = GasBuiltin;
type [5] = System;
type [6] = RangeCheck;
type [7] = Struct<ut@Tuple, [3]>;
type [8] = Struct<ut@core::panics::Panic>;
type [9] = Struct<ut@Tuple, [8], [3]>;
type [10] = Enum<ut@core::panics::PanicResult::<((core::array::Span::<core::felt252>,),)>, [7], [9]>;

libfunc [0] = felt252_const<-5>;
libfunc store_temp = store_temp<[0]>;
libfunc [2] = function_call<user@test::main>;

[0]() -> ([3]);
store_temp([3]) -> ([3]);
[0]([3]) { fallthrough() 4([4]) };
return([3]);
return();

test::main@0([0]: [6], [1]: [4], [2]: [5]) -> ([6], [4], [5], [10]);
test::helper@4() -> ();
"""


def test_parse_builds_dense_type_table_with_debug_names():
	program = parse_sierra(SOURCE)

	assert [t.id.id for t in program.type_declarations] == list(range(11))
	assert program.type_declarations[1].id.debug_name == "Array<felt252>"
	assert program.type_declarations[2].id.debug_name == "Snapshot<Array<felt252>>"
	assert program.type_declarations[0].declared_type_info == {
		"storable": True,
		"drop": True,
		"dup": True,
		"zero_sized": False,
	}


def test_parse_decodes_generic_args():
	program = parse_sierra(SOURCE)

	span_args = program.type_declarations[3].long_id.generic_args
	assert isinstance(span_args[0], UserTypeArg)
	assert span_args[0].user_type.debug_name == "core::array::Span::<core::felt252>"
	assert isinstance(span_args[1], TypeArg) and span_args[1].ty.id == 2

	result_args = program.type_declarations[10].long_id.generic_args
	assert result_args[0].user_type.debug_name == "core::panics::PanicResult::<((core::array::Span::<core::felt252>,),)>"

	const, store, call = program.libfunc_declarations
	assert const.long_id.generic_args == (ValueArg(-5),)
	assert const.id.debug_name == "felt252_const<-5>"
	assert store.id.debug_name == "store_temp"
	(fn_arg,) = call.long_id.generic_args
	assert isinstance(fn_arg, UserFuncArg) and fn_arg.function.debug_name == "test::main"


def test_user_type_ids_are_stable_hashes():
	first = parse_sierra(SOURCE).type_declarations[7].long_id.generic_args[0]
	again = parse_sierra(SOURCE).type_declarations[9].long_id.generic_args[0]

	assert first == again
	assert first.user_type.debug_name == "Tuple"


def test_parse_decodes_statements():
	program = parse_sierra(SOURCE)

	const, store, branch, ret, empty_ret = program.statements
	assert const.args == () and const.branches == (BranchInfo(None, (3,)),)
	assert store.libfunc_id.id == 1 and store.libfunc_id.debug_name == "store_temp"
	assert isinstance(branch, Invocation)
	assert branch.branches == (BranchInfo(None, ()), BranchInfo(4, (4,)))
	assert ret == Return((3,))
	assert empty_ret == Return(())


def test_parse_decodes_functions():
	program = parse_sierra(SOURCE)

	main, helper = program.funcs
	assert main.name == "test::main"
	assert main.entry_point == 0
	assert [p.id for p in main.params] == [0, 1, 2]
	assert [t.debug_name for t in main.signature.param_types] == ["RangeCheck", "GasBuiltin", "System"]
	assert helper.entry_point == 4
	assert helper.signature.param_types == ()


def test_parsed_entry_point_satisfies_the_return_convention():
	program = parse_sierra(SOURCE)
	resolver = TypeResolver(program.type_declarations)

	assert resolver.is_valid_entry_point_return_type(program.funcs[0].signature.ret_types[-1])


def test_parsed_program_survives_the_json_form():
	program = parse_sierra(SOURCE)

	assert program_from_json(program_to_json(program)) == program


def test_libfunc_args_reference_declared_libfuncs():
	program = parse_sierra("libfunc [0] = felt252_add;\nlibfunc [1] = wrap<lib@[0]>;\n")

	(arg,) = program.libfunc_declarations[1].long_id.generic_args
	assert isinstance(arg, LibfuncArg) and arg.libfunc.id == 0


def test_syntax_errors_carry_a_location():
	with pytest.raises(SierraParseError) as excinfo:
		parse_sierra("type [0] = felt252;\ntype [1] = = Array<[0]>;\n")
	assert excinfo.value.line == 2


def test_unknown_named_libfunc_is_rejected():
	with pytest.raises(SierraParseError, match="unknown libfunc 'missing'"):
		parse_sierra("missing() -> ();")


def test_duplicate_type_ids_are_rejected():
	with pytest.raises(SierraParseError, match="declared twice"):
		parse_sierra("type [0] = felt252;\ntype [0] = u8;\n")


def test_gaps_in_type_ids_are_rejected():
	with pytest.raises(MalformedInputError, match="dense"):
		parse_sierra("type [0] = felt252;\ntype [2] = u8;\n")
