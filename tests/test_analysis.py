import pytest

from sigilc.analysis import (
    collect_reads,
    collect_writes,
    detect_reduction_fn,
    estimate_iterations,
    has_cross_iteration_dependency,
    has_non_uniform_work,
    writes_are_loop_partitioned,
)
from sigilc.syntax import (
    Assign,
    BeginEnd,
    Block,
    Call,
    Comprehension,
    For,
    Ident,
    If,
    IntLit,
    Let,
    While,
)


def ident(name):
    return Ident(name=name)


def call(name, *args):
    return Call(name=name, args=list(args))


def test_collect_writes_assign():
    body = Block(stmts=[Assign(name="x", value=ident("y"))])
    assert collect_writes(body) == ["x"]


def test_collect_writes_follows_get_chain():
    target = call("get", call("get", ident("dist"), ident("i")), ident("j"))
    node = call("set", target, ident("k"), ident("v"))
    assert collect_writes(node) == ["dist"]


def test_collect_writes_unwraps_single_stmt_group():
    target = BeginEnd(stmts=[call("get", ident("m"), ident("i"))])
    node = call("set", target, ident("k"), ident("v"))
    assert collect_writes(node) == ["m"]


def test_collect_writes_ignores_short_set():
    assert collect_writes(call("set", ident("a"), ident("b"))) == []


def test_collect_writes_in_nested_control_flow():
    node = Block(stmts=[
        If(condition=ident("c"),
           then_body=Block(stmts=[Assign(name="a")]),
           elifs=[(ident("d"), Block(stmts=[Assign(name="b")]))],
           else_body=Block(stmts=[Assign(name="c")])),
        While(condition=ident("w"), body=Block(stmts=[Assign(name="d")])),
        For(var_name="i", iterable=ident("xs"), body=Block(stmts=[Assign(name="e")])),
    ])
    assert sorted(collect_writes(node)) == ["a", "b", "c", "d", "e"]


def test_collect_reads_excludes_loop_var():
    node = Block(stmts=[Assign(name="s", value=call("add", ident("s"), ident("i")))])
    assert collect_reads(node, "i") == ["s"]
    assert collect_reads(node) == ["s", "i"]


def test_collect_reads_covers_conditions_and_bindings():
    node = Block(stmts=[
        If(condition=ident("c"), then_body=Block(stmts=[Let(name="x", value=ident("y"))])),
        While(condition=ident("w"), body=None),
    ])
    assert set(collect_reads(node)) == {"c", "y", "w"}


def test_partitioned_when_indexed_by_loop_var():
    body = Block(stmts=[call("set", call("get", ident("a"), ident("i")), ident("j"), ident("v"))])
    assert writes_are_loop_partitioned(body, "a", "i") is True
    assert writes_are_loop_partitioned(body, "a", "j") is False


def test_partitioned_for_unrelated_variable():
    body = Block(stmts=[call("set", ident("a"), ident("k"), ident("v"))])
    assert writes_are_loop_partitioned(body, "b", "i") is True
    assert writes_are_loop_partitioned(body, "a", "i") is False


def test_partitioned_none_body():
    assert writes_are_loop_partitioned(None, "a", "i") is True


def test_no_dependency_for_partitioned_writes():
    write = call("set", call("get", ident("a"), ident("i")), IntLit(value=0),
                 call("get", ident("a"), ident("i")))
    loop = For(var_name="i", iterable=ident("xs"), body=Block(stmts=[write]))
    assert has_cross_iteration_dependency(loop) is False


def test_no_dependency_when_written_var_not_read():
    loop = For(var_name="i", iterable=ident("xs"),
               body=Block(stmts=[Assign(name="t", value=call("add", ident("i"), ident("u")))]))
    assert has_cross_iteration_dependency(loop) is False


def test_detect_reduction_from_assign():
    body = Block(stmts=[Assign(name="s", value=call("add", ident("s"), ident("x")))])
    assert detect_reduction_fn(body) == "add"


def test_detect_reduction_from_compare_pattern():
    body = Block(stmts=[If(condition=call("greater", ident("x"), ident("m")),
                           then_body=Block(stmts=[Assign(name="m", value=ident("x"))]))])
    assert detect_reduction_fn(body) == "greater"


def test_detect_reduction_absent():
    assert detect_reduction_fn(Block(stmts=[Assign(name="s", value=ident("x"))])) is None
    assert detect_reduction_fn(ident("x")) is None


@pytest.mark.parametrize("lo,hi", [(2, 2), (5, 1)])
def test_estimate_iterations_never_negative(lo, hi):
    assert estimate_iterations(call("range", IntLit(value=lo), IntLit(value=hi))) == 0


def test_estimate_iterations_literal_range():
    result = estimate_iterations(call("range", IntLit(value=3), IntLit(value=40)))
    assert result == 40 - 3


def test_estimate_iterations_unwraps_group():
    wrapped = BeginEnd(stmts=[call("range", IntLit(value=0), IntLit(value=7))])
    assert estimate_iterations(wrapped) == 7


def test_estimate_iterations_unknown():
    assert estimate_iterations(call("range", IntLit(value=0), ident("n"))) is None
    assert estimate_iterations(ident("xs")) is None


def test_non_uniform_work():
    inner = For(var_name="j", iterable=ident("ys"), body=Block())
    assert has_non_uniform_work(Block(stmts=[inner])) is True
    filtered = Comprehension(var_name="x", iterable=ident("xs"), filter=ident("p"))
    assert has_non_uniform_work(Block(stmts=[filtered])) is True
    plain = Comprehension(var_name="x", iterable=ident("xs"))
    assert has_non_uniform_work(Block(stmts=[plain, Assign(name="a")])) is False
    assert has_non_uniform_work(None) is False