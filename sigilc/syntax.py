"""Tokens, vocabulary and syntax tree nodes of the Sigil language."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from sigilc.errors import SrcLoc


class TokenKind(Enum):
    IDENT = auto()
    KEYWORD = auto()
    SIGIL = auto()
    INT_LIT = auto()
    FLOAT_LIT = auto()
    STRING_LIT = auto()
    BEGIN = auto()
    END = auto()
    DO = auto()
    NEWLINE = auto()
    EOF = auto()


@dataclass
class Token:
    """A lexical token; kind and text may be rewritten by aliasing."""

    kind: TokenKind
    text: str
    loc: SrcLoc = SrcLoc()
    int_val: int = 0
    float_val: float = 0.0


@dataclass(frozen=True)
class Vocabulary:
    """Reserved words, split into structural keywords and primitive operations."""

    structural: frozenset[str]
    primitive: frozenset[str]

    def is_keyword(self, text: str) -> bool:
        return text in self.structural or text in self.primitive

    def is_primitive(self, text: str) -> bool:
        return text in self.primitive

    def is_structural(self, text: str) -> bool:
        return text in self.structural


DEFAULT_VOCABULARY = Vocabulary(
    structural=frozenset({
        "algebra", "library", "use", "import", "alias", "fn", "returns",
        "precedence", "trait", "implement", "export", "type", "pure",
        "distributive", "let", "var", "assign", "return", "if", "elif",
        "else", "while", "for", "in", "match", "case", "default", "as",
        "break", "continue", "int", "float", "bool", "string", "void",
    }),
    primitive=frozenset({
        "add", "subtract", "multiply", "times", "get", "set", "not",
        "equal", "less", "greater", "mapnew", "true", "false",
    }),
)


class Fixity(Enum):
    NONE = auto()
    PREFIX = auto()
    INFIX = auto()
    POSTFIX = auto()
    BRACKETED = auto()
    NULLARY = auto()


class PatKind(Enum):
    PARAM = auto()
    SIGIL = auto()
    REPEATS = auto()


class TypeKind(Enum):
    INT = auto()
    FLOAT = auto()
    BOOL = auto()
    STRING = auto()
    VOID = auto()
    NAMED = auto()


@dataclass(frozen=True)
class TypeRef:
    kind: TypeKind
    name: str | None = None


@dataclass
class PatElem:
    """One element of a function's sigil pattern."""

    kind: PatKind
    sigil: str | None = None
    param_name: str | None = None
    type: TypeRef | None = None
    is_mutable: bool = False


class ExportVisibility(Enum):
    REQUIRED = auto()
    OPTIONAL = auto()
    PRIVATE = auto()


@dataclass
class Node:
    """Base of all syntax tree nodes."""

    loc: SrcLoc = field(default=SrcLoc(), kw_only=True)
    parallel: Any = field(default=None, kw_only=True, compare=False)


@dataclass
class Program(Node):
    top_level: list[Node] = field(default_factory=list)


@dataclass
class AlgebraDecl(Node):
    """An ``algebra`` or ``library`` block."""

    name: str = ""
    declarations: list[Node] = field(default_factory=list)
    is_pure: bool = False
    is_library: bool = False


@dataclass
class UseBlock(Node):
    algebra_name: str = ""
    body: Node | None = None


@dataclass
class ImportDecl(Node):
    path: str = ""
    declarations: list[Node] = field(default_factory=list)


@dataclass
class FnDecl(Node):
    name: str = ""
    pattern: list[PatElem] = field(default_factory=list)
    return_type: TypeRef | None = None
    body: Node | None = None
    fixity: Fixity = Fixity.NONE
    is_primitive: bool = False

    def params(self) -> list[PatElem]:
        """Parameter elements of the pattern, in order."""
        return [p for p in self.pattern if p.kind is PatKind.PARAM]

    def sigils(self) -> list[str]:
        """Sigils of the pattern, in order."""
        return [p.sigil for p in self.pattern if p.kind is PatKind.SIGIL and p.sigil is not None]


@dataclass
class Block(Node):
    stmts: list[Node] = field(default_factory=list)


@dataclass
class BeginEnd(Block):
    """A ``do ... end`` group, or a body re-parsed from one."""


@dataclass
class If(Node):
    condition: Node | None = None
    then_body: Node | None = None
    elifs: list[tuple[Node | None, Node | None]] = field(default_factory=list)
    else_body: Node | None = None


@dataclass
class While(Node):
    condition: Node | None = None
    body: Node | None = None


@dataclass
class For(Node):
    var_name: str = ""
    iterable: Node | None = None
    body: Node | None = None


@dataclass
class Match(Node):
    value: Node | None = None
    cases: list[Node] = field(default_factory=list)


@dataclass
class Case(Node):
    pattern: Node | None = None
    body: Node | None = None


@dataclass
class Default(Node):
    body: Node | None = None


@dataclass
class _Binding(Node):
    name: str = ""
    value: Node | None = None


@dataclass
class Let(_Binding):
    pass


@dataclass
class Var(_Binding):
    pass


@dataclass
class Assign(Node):
    name: str = ""
    value: Node | None = None


@dataclass
class Return(Node):
    value: Node | None = None


@dataclass
class Call(Node):
    name: str = ""
    args: list[Node] = field(default_factory=list)


@dataclass
class Chain(Node):
    """A flat application of an associative function."""

    fn_name: str = ""
    operands: list[Node] = field(default_factory=list)


@dataclass
class SigilExpr(Node):
    sigil: str = ""
    operands: list[Node] = field(default_factory=list)
    fixity: Fixity = Fixity.NONE


@dataclass
class Ident(Node):
    name: str = ""


@dataclass
class IntLit(Node):
    value: int = 0


@dataclass
class FloatLit(Node):
    value: float = 0.0


@dataclass
class BoolLit(Node):
    value: bool = False


@dataclass
class StringLit(Node):
    value: str = ""


@dataclass
class AsExpr(Node):
    source: Node | None = None
    target_algebra: str = ""


@dataclass
class Comprehension(Node):
    var_name: str = ""
    iterable: Node | None = None
    transform: Node | None = None
    filter: Node | None = None


@dataclass
class Lambda(Node):
    params: list[str] = field(default_factory=list)
    body: Node | None = None


@dataclass
class Implement(Node):
    trait_name: str = ""
    concrete_type: str = ""
    methods: list[Node] = field(default_factory=list)


@dataclass
class TraitDecl(Node):
    name: str = ""
    type_var: str | None = None
    methods: list[Node] = field(default_factory=list)
    requires: list[str] = field(default_factory=list)


@dataclass
class PrecedenceDecl(Node):
    """Sigils from lowest to highest precedence."""

    sigils: list[str] = field(default_factory=list)


@dataclass
class AliasDecl(Node):
    alias_from: str = ""
    alias_to: str = ""


@dataclass
class ExportDecl(Node):
    visibility: ExportVisibility = ExportVisibility.REQUIRED
    trait_name: str = ""
    for_name: str = ""


@dataclass
class TypeDecl(Node):
    type_name: str = ""
    base_type: TypeRef | None = None


@dataclass
class PureDecl(Node):
    pass


@dataclass
class DistributiveDecl(Node):
    outer_fn: str = ""
    inner_fn: str = ""