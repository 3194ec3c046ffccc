from sigilc.algebra import AlgebraRegistry
from sigilc.desugarer import Desugarer, has_sigils
from sigilc.errors import ErrorKind, ErrorList
from sigilc.syntax import (
    AlgebraDecl,
    AliasDecl,
    BeginEnd,
    Block,
    Call,
    Fixity,
    FnDecl,
    Ident,
    If,
    IntLit,
    Let,
    PatElem,
    PatKind,
    PrecedenceDecl,
    Program,
    Return,
    SigilExpr,
    Token,
    TokenKind,
    TypeKind,
    TypeRef,
    UseBlock,
)

INT = TypeRef(TypeKind.INT)


def param(name):
    return PatElem(PatKind.PARAM, param_name=name, type=INT)


def sigil(text):
    return PatElem(PatKind.SIGIL, sigil=text)


def infix(name, op):
    return FnDecl(name=name, pattern=[param("a"), sigil(op), param("b")],
                  return_type=INT, fixity=Fixity.INFIX)


def arithmetic_decl(extra=()):
    return AlgebraDecl(name="StandardArithmetic", declarations=[
        infix("add", "+"), infix("times", "*"), PrecedenceDecl(sigils=["+", "*"]), *extra,
    ])


def toks(*items):
    return [Token(kind, text) for kind, text in items]


def test_standard_arithmetic_precedence():
    reg = AlgebraRegistry()
    alg = reg.add("StandardArithmetic")
    alg.register_declarations(arithmetic_decl())
    assert len(alg.bindings) >= 2
    assert len(alg.precedence) == 2

    d = Desugarer(reg)
    d.current_algebra = alg
    result = d.desugar_expression(toks(
        (TokenKind.IDENT, "a"), (TokenKind.SIGIL, "+"), (TokenKind.IDENT, "b"),
        (TokenKind.SIGIL, "*"), (TokenKind.IDENT, "c"),
    ))
    assert isinstance(result, Call)
    assert result.name == "add"
    assert len(result.args) == 2
    rhs = result.args[1]
    assert isinstance(rhs, Call) and rhs.name == "times"
    assert [a.name for a in rhs.args] == ["b", "c"]


def test_prefix_desugar():
    reg = AlgebraRegistry()
    alg = reg.add("Test")
    negate = FnDecl(name="negate", pattern=[sigil("-"), param("a")],
                    return_type=INT, fixity=Fixity.PREFIX)
    alg.register_declarations(AlgebraDecl(name="Test", declarations=[
        negate, PrecedenceDecl(sigils=["-"])]))
    d = Desugarer(reg)
    d.current_algebra = alg
    result = d.desugar_expression(toks((TokenKind.SIGIL, "-"), (TokenKind.IDENT, "x")))
    assert isinstance(result, Call)
    assert result.name == "negate"
    assert len(result.args) == 1


def test_has_sigils():
    assert has_sigils(SigilExpr(sigil="+"))
    assert has_sigils(Block(stmts=[Let(name="x", value=Call(name="f", args=[SigilExpr(sigil="+")]))]))
    assert not has_sigils(Call(name="add", args=[Ident(name="a"), IntLit(value=1)]))
    assert not has_sigils(None)


def test_flatten_statements():
    d = Desugarer(AlgebraRegistry())
    tokens = d.flatten(Let(name="x", value=Call(name="add", args=[IntLit(value=3), Ident(name="y")])))
    assert [(t.kind, t.text) for t in tokens] == [
        (TokenKind.KEYWORD, "let"), (TokenKind.IDENT, "x"),
        (TokenKind.KEYWORD, "add"), (TokenKind.INT_LIT, "0"), (TokenKind.IDENT, "y"),
    ]
    assert tokens[3].int_val == 3


def test_flatten_blocks_and_if():
    d = Desugarer(AlgebraRegistry())
    node = If(condition=Ident(name="c"), then_body=Block(stmts=[Return(value=Ident(name="a"))]),
              elifs=[(Ident(name="e"), BeginEnd(stmts=[]))], else_body=Block())
    texts = [t.text for t in d.flatten(node)]
    assert texts == ["if", "c", "begin", "return", "a", "end",
                     "elif", "e", "do", "end", "else", "begin", "end"]


def test_use_block_reparsed():
    body = Block(stmts=[Let(name="x", value=Call(
        name="a", args=[SigilExpr(sigil="+"), Ident(name="b")]))])
    program = Program(top_level=[arithmetic_decl(),
                                 UseBlock(algebra_name="StandardArithmetic", body=body)])
    reg = AlgebraRegistry()
    d = Desugarer(reg)
    d.desugar(program)
    assert reg.find("StandardArithmetic") is not None
    new_body = program.top_level[1].body
    assert isinstance(new_body, Block)
    let = new_body.stmts[0]
    assert isinstance(let, Let) and let.name == "x"
    assert isinstance(let.value, Call) and let.value.name == "add"
    assert [a.name for a in let.value.args] == ["a", "b"]
    assert d.current_algebra is None


def test_use_block_applies_aliases():
    decl = arithmetic_decl(extra=[AliasDecl(alias_from="mul", alias_to="*")])
    body = Block(stmts=[Let(name="y", value=Call(name="a", args=[
        SigilExpr(sigil="+"), Ident(name="b"), Ident(name="mul"), Ident(name="c")]))])
    program = Program(top_level=[decl, UseBlock(algebra_name="StandardArithmetic", body=body)])
    Desugarer(AlgebraRegistry()).desugar(program)
    value = program.top_level[1].body.stmts[0].value
    assert value.name == "add"
    assert value.args[1].name == "times"
    assert [a.name for a in value.args[1].args] == ["b", "c"]


def test_use_block_without_sigils_unchanged():
    body = Block(stmts=[Call(name="add", args=[Ident(name="a"), Ident(name="b")])])
    program = Program(top_level=[arithmetic_decl(),
                                 UseBlock(algebra_name="StandardArithmetic", body=body)])
    Desugarer(AlgebraRegistry()).desugar(program)
    assert program.top_level[1].body is body


def test_unknown_algebra_reports_error():
    errors = ErrorList()
    d = Desugarer(AlgebraRegistry(), errors=errors)
    d.desugar(Program(top_level=[UseBlock(algebra_name="Missing", body=Block())]))
    reported = list(errors)
    assert len(reported) == 1
    assert reported[0].kind is ErrorKind.DESUGAR
    assert reported[0].message == "unknown algebra 'Missing'"


def test_sigil_expr_in_algebra_becomes_call():
    fn = FnDecl(name="double", pattern=[param("x")], body=Block(stmts=[
        Return(value=SigilExpr(sigil="+", operands=[Ident(name="x"), Ident(name="x")]))]))
    decl = arithmetic_decl(extra=[fn])
    Desugarer(AlgebraRegistry()).desugar(Program(top_level=[decl]))
    ret = fn.body.stmts[0]
    assert isinstance(ret.value, Call)
    assert ret.value.name == "add"
    assert [a.name for a in ret.value.args] == ["x", "x"]


def test_sigil_expr_outside_algebra_kept():
    node = SigilExpr(sigil="+")
    assert Desugarer(AlgebraRegistry()).desugar(node) is node