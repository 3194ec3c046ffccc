"""Loop analyses behind parallel strategy selection."""

from __future__ import annotations

from sigilc.syntax import (
    Assign,
    BeginEnd,
    Block,
    Call,
    Chain,
    Comprehension,
    For,
    Ident,
    If,
    IntLit,
    Let,
    Node,
    Return,
    Var,
    While,
)


def _if_parts(node: If) -> list[Node | None]:
    """Conditions and bodies of the ``elif`` branches, in order."""
    return [part for pair in node.elifs for part in pair]


def _single_stmt(node: Node) -> Node | None:
    """The only statement of a ``do ... end`` group, if it has exactly one."""
    if isinstance(node, BeginEnd) and len(node.stmts) == 1:
        return node.stmts[0]
    return None


def _set_target_root(call: Call, min_get_args: int) -> tuple[str | None, str | None]:
    """Follow ``get`` chains from a ``set`` target to its root variable.

    Returns the root variable name and the first index identifier met on the way.
    """
    target: Node | None = call.args[0]
    first_index: str | None = None
    while target is not None:
        if isinstance(target, Ident):
            return target.name, first_index
        inner = _single_stmt(target)
        if inner is not None:
            target = inner
            continue
        if isinstance(target, Call) and target.name == "get" and len(target.args) >= min_get_args:
            if len(target.args) >= 2 and first_index is None and isinstance(target.args[1], Ident):
                first_index = target.args[1].name
            target = target.args[0]
            continue
        break
    return None, first_index


def _is_set_call(node: Node) -> bool:
    return isinstance(node, Call) and node.name == "set" and len(node.args) >= 3


def collect_writes(node: Node | None) -> list[str]:
    """Names of variables assigned or ``set`` within a subtree, in order met."""
    writes: list[str] = []
    _collect_writes(node, writes)
    return writes


def _collect_writes(node: Node | None, writes: list[str]) -> None:
    if node is None:
        return
    if isinstance(node, Assign):
        writes.append(node.name)
    elif isinstance(node, Call):
        if _is_set_call(node):
            root, _ = _set_target_root(node, 1)
            if root is not None:
                writes.append(root)
        for arg in node.args:
            _collect_writes(arg, writes)
    elif isinstance(node, Block):
        for stmt in node.stmts:
            _collect_writes(stmt, writes)
    elif isinstance(node, If):
        _collect_writes(node.then_body, writes)
        _collect_writes(node.else_body, writes)
        for part in _if_parts(node):
            _collect_writes(part, writes)
    elif isinstance(node, (For, While)):
        _collect_writes(node.body, writes)


def collect_reads(node: Node | None, exclude: str | None = None) -> list[str]:
    """Names of identifiers read within a subtree, leaving out ``exclude``."""
    reads: list[str] = []
    _collect_reads(node, reads, exclude)
    return reads


def _collect_reads(node: Node | None, reads: list[str], exclude: str | None) -> None:
    if node is None:
        return
    if isinstance(node, Ident):
        if node.name != exclude:
            reads.append(node.name)
    elif isinstance(node, Call):
        for arg in node.args:
            _collect_reads(arg, reads, exclude)
    elif isinstance(node, Block):
        for stmt in node.stmts:
            _collect_reads(stmt, reads, exclude)
    elif isinstance(node, If):
        _collect_reads(node.condition, reads, exclude)
        _collect_reads(node.then_body, reads, exclude)
        _collect_reads(node.else_body, reads, exclude)
        for part in _if_parts(node):
            _collect_reads(part, reads, exclude)
    elif isinstance(node, For):
        _collect_reads(node.iterable, reads, exclude)
        _collect_reads(node.body, reads, exclude)
    elif isinstance(node, While):
        _collect_reads(node.condition, reads, exclude)
        _collect_reads(node.body, reads, exclude)
    elif isinstance(node, (Assign, Let, Var, Return)):
        _collect_reads(node.value, reads, exclude)
    elif isinstance(node, Chain):
        for operand in node.operands:
            _collect_reads(operand, reads, exclude)


def writes_are_loop_partitioned(body: Node | None, var_name: str, loop_var: str) -> bool:
    """True if every ``set`` on ``var_name`` is indexed first by ``loop_var``.

    Such writes touch a different slot on each iteration and cannot conflict.
    """
    if body is None:
        return True
    if isinstance(body, Call):
        if _is_set_call(body):
            root, first_index = _set_target_root(body, 2)
            if root == var_name and first_index != loop_var:
                return False
        return all(writes_are_loop_partitioned(arg, var_name, loop_var) for arg in body.args)
    if isinstance(body, Block):
        return all(writes_are_loop_partitioned(s, var_name, loop_var) for s in body.stmts)
    if isinstance(body, If):
        parts = [body.then_body, body.else_body, *_if_parts(body)]
        return all(writes_are_loop_partitioned(p, var_name, loop_var) for p in parts)
    if isinstance(body, (For, While)):
        return writes_are_loop_partitioned(body.body, var_name, loop_var)
    return True


def has_cross_iteration_dependency(for_node: For) -> bool:
    """True if a variable written in the loop is also read and not partitioned."""
    writes = collect_writes(for_node.body)
    reads = set(collect_reads(for_node.body, for_node.var_name))
    return any(
        name in reads
        and not writes_are_loop_partitioned(for_node.body, name, for_node.var_name)
        for name in writes
    )


def detect_reduction_fn(body: Node | None) -> str | None:
    """The combining function of an accumulator pattern in a loop body, if any.

    Recognises ``assign acc f(...)`` and the min/max form
    ``if cmp(...) begin assign acc ... end``, where ``cmp`` is reported.
    """
    if not isinstance(body, Block):
        return None
    for stmt in body.stmts:
        if isinstance(stmt, Assign) and isinstance(stmt.value, Call):
            return stmt.value.name
        if isinstance(stmt, If) and isinstance(stmt.then_body, Block):
            assigns = any(isinstance(s, Assign) for s in stmt.then_body.stmts)
            if assigns and isinstance(stmt.condition, Call):
                return stmt.condition.name
    return None


def estimate_iterations(iterable: Node | None) -> int | None:
    """Iteration count of ``range lo hi`` with literal bounds; None if unknown."""
    if iterable is None:
        return None
    inner = _single_stmt(iterable) or iterable
    if isinstance(inner, Call) and inner.name == "range" and len(inner.args) >= 2:
        lo, hi = inner.args[0], inner.args[1]
        if isinstance(lo, IntLit) and isinstance(hi, IntLit):
            return max(hi.value - lo.value, 0)
    return None


def has_non_uniform_work(body: Node | None) -> bool:
    """True if iterations may do differing amounts of work."""
    if not isinstance(body, Block):
        return False
    return any(
        isinstance(s, For) or (isinstance(s, Comprehension) and s.filter is not None)
        for s in body.stmts
    )