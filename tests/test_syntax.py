from sigilc.errors import SrcLoc
from sigilc.syntax import (
    DEFAULT_VOCABULARY,
    BeginEnd,
    Block,
    Call,
    Fixity,
    FnDecl,
    Ident,
    Let,
    PatElem,
    PatKind,
    Program,
    Token,
    TokenKind,
    TypeKind,
    TypeRef,
    Var,
    Vocabulary,
)


def test_default_vocabulary_from_tokenizer_cases():
    # keywords asserted by the tokenizer tests
    for word in ("fn", "add", "int", "returns"):
        assert DEFAULT_VOCABULARY.is_keyword(word)
    assert not DEFAULT_VOCABULARY.is_keyword("a")


def test_vocabulary_classification():
    vocab = Vocabulary(structural=frozenset({"if"}), primitive=frozenset({"add"}))
    assert vocab.is_keyword("if") and vocab.is_keyword("add")
    assert vocab.is_structural("if") and not vocab.is_structural("add")
    assert vocab.is_primitive("add") and not vocab.is_primitive("if")
    assert not vocab.is_keyword("x")


def _getelem():
    int_t = TypeRef(TypeKind.INT)
    return FnDecl(
        name="getelem",
        fixity=Fixity.BRACKETED,
        pattern=[
            PatElem(PatKind.PARAM, param_name="m", type=TypeRef(TypeKind.NAMED, "mat")),
            PatElem(PatKind.SIGIL, sigil="["),
            PatElem(PatKind.PARAM, param_name="i", type=int_t),
            PatElem(PatKind.SIGIL, sigil=","),
            PatElem(PatKind.PARAM, param_name="j", type=int_t),
            PatElem(PatKind.SIGIL, sigil="]"),
        ],
    )


def test_fn_params_and_sigils():
    fn = _getelem()
    assert fn.sigils() == ["[", ",", "]"]
    assert [p.param_name for p in fn.params()] == ["m", "i", "j"]


def test_fn_without_pattern():
    fn = FnDecl(name="map")
    assert fn.sigils() == []
    assert fn.params() == []


def test_begin_end_is_a_block():
    inner = BeginEnd(stmts=[Ident("x")])
    assert isinstance(inner, Block)
    assert inner.stmts[0].name == "x"


def test_node_lists_are_independent():
    a, b = Program(), Program()
    a.top_level.append(Call("add"))
    assert b.top_level == []


def test_let_and_var_are_distinct():
    assert not isinstance(Var("y"), Let)
    assert Let("x", Ident("a")).value == Ident("a")


def test_parallel_annotation_ignored_in_equality():
    a = Ident("x", parallel="one")
    b = Ident("x", parallel="two")
    assert a == b


def test_token_is_mutable_and_keeps_location():
    loc = SrcLoc("f", 2, 3)
    tok = Token(TokenKind.IDENT, "mul", loc)
    tok.text = "multiply"
    tok.kind = TokenKind.KEYWORD
    assert (tok.kind, tok.text, tok.loc) == (TokenKind.KEYWORD, "multiply", loc)