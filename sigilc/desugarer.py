"""Rewriting sigil expressions into keyword-prefix calls."""

from __future__ import annotations

from typing import Sequence

from sigilc.algebra import AlgebraEntry, AlgebraRegistry
from sigilc.errors import ErrorKind, ErrorList
from sigilc.exprparser import ExprParser
from sigilc.syntax import (
    DEFAULT_VOCABULARY,
    AlgebraDecl,
    AsExpr,
    Assign,
    BeginEnd,
    Block,
    BoolLit,
    Call,
    Case,
    Chain,
    Default,
    FloatLit,
    FnDecl,
    For,
    Ident,
    If,
    ImportDecl,
    IntLit,
    Let,
    Match,
    Node,
    Program,
    Return,
    SigilExpr,
    StringLit,
    Token,
    TokenKind,
    Var,
    Vocabulary,
    While,
    UseBlock,
)
from sigilc.traits import TraitRegistry


def has_sigils(node: Node | None) -> bool:
    """True if an unresolved sigil expression occurs where re-parsing can reach it."""
    if node is None:
        return False
    if isinstance(node, SigilExpr):
        return True
    if isinstance(node, Call):
        return any(has_sigils(arg) for arg in node.args)
    if isinstance(node, Chain):
        return any(has_sigils(op) for op in node.operands)
    if isinstance(node, Block):
        return any(has_sigils(stmt) for stmt in node.stmts)
    if isinstance(node, (Let, Var, Assign, Return)):
        return has_sigils(node.value)
    if isinstance(node, If):
        return has_sigils(node.condition) or has_sigils(node.then_body)
    return False


class Desugarer:
    """Registers algebras and turns sigil syntax into plain function calls."""

    def __init__(self, registry: AlgebraRegistry,
                 trait_registry: TraitRegistry | None = None,
                 errors: ErrorList | None = None,
                 vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> None:
        self.registry = registry
        self.trait_registry = trait_registry
        self.errors = errors if errors is not None else ErrorList()
        self.vocabulary = vocabulary
        self.current_algebra: AlgebraEntry | None = None

    # ── flattening ────────────────────────────────────────────────

    def flatten(self, node: Node | None) -> list[Token]:
        """Turn a subtree back into the token stream it would have come from."""
        out: list[Token] = []
        self._flatten_into(node, out)
        return out

    def _flatten_into(self, node: Node | None, out: list[Token]) -> None:
        if node is None:
            return
        loc = node.loc

        def emit(kind: TokenKind, text: str, **extra) -> None:
            out.append(Token(kind, text, loc, **extra))

        if isinstance(node, Ident):
            emit(TokenKind.IDENT, node.name)
        elif isinstance(node, IntLit):
            emit(TokenKind.INT_LIT, "0", int_val=node.value)
        elif isinstance(node, FloatLit):
            emit(TokenKind.FLOAT_LIT, "0", float_val=node.value)
        elif isinstance(node, BoolLit):
            emit(TokenKind.KEYWORD, "true" if node.value else "false")
        elif isinstance(node, StringLit):
            emit(TokenKind.STRING_LIT, node.value)
        elif isinstance(node, SigilExpr):
            emit(TokenKind.SIGIL, node.sigil)
        elif isinstance(node, Call):
            kind = TokenKind.KEYWORD if self.vocabulary.is_keyword(node.name) else TokenKind.IDENT
            emit(kind, node.name)
            for arg in node.args:
                self._flatten_into(arg, out)
        elif isinstance(node, Block):
            if isinstance(node, BeginEnd):
                emit(TokenKind.DO, "do")
            else:
                emit(TokenKind.BEGIN, "begin")
            for stmt in node.stmts:
                self._flatten_into(stmt, out)
            emit(TokenKind.END, "end")
        elif isinstance(node, (Let, Var)):
            emit(TokenKind.KEYWORD, "var" if isinstance(node, Var) else "let")
            emit(TokenKind.IDENT, node.name)
            self._flatten_into(node.value, out)
        elif isinstance(node, Assign):
            emit(TokenKind.KEYWORD, "assign")
            emit(TokenKind.IDENT, node.name)
            self._flatten_into(node.value, out)
        elif isinstance(node, Return):
            emit(TokenKind.KEYWORD, "return")
            self._flatten_into(node.value, out)
        elif isinstance(node, If):
            emit(TokenKind.KEYWORD, "if")
            self._flatten_into(node.condition, out)
            self._flatten_into(node.then_body, out)
            for cond, body in node.elifs:
                emit(TokenKind.KEYWORD, "elif")
                self._flatten_into(cond, out)
                self._flatten_into(body, out)
            if node.else_body is not None:
                emit(TokenKind.KEYWORD, "else")
                self._flatten_into(node.else_body, out)
        elif isinstance(node, While):
            emit(TokenKind.KEYWORD, "while")
            self._flatten_into(node.condition, out)
            self._flatten_into(node.body, out)
        elif isinstance(node, For):
            emit(TokenKind.KEYWORD, "for")
            emit(TokenKind.IDENT, node.var_name)
            emit(TokenKind.KEYWORD, "in")
            self._flatten_into(node.iterable, out)
            self._flatten_into(node.body, out)
        elif isinstance(node, AsExpr):
            self._flatten_into(node.source, out)
            emit(TokenKind.KEYWORD, "as")
            emit(TokenKind.IDENT, node.target_algebra)

    # ── expression parsing ────────────────────────────────────────

    def _parser(self, tokens: Sequence[Token]) -> ExprParser:
        return ExprParser(tokens, self.current_algebra, self.trait_registry, self.vocabulary)

    def desugar_expression(self, tokens: Sequence[Token]) -> Node | None:
        """Parse a sigil expression under the current algebra into calls."""
        return self._parser(tokens).parse_expression(0)

    def _reparse_use_body(self, body: Node | None) -> Node | None:
        if body is None or not has_sigils(body):
            return body
        if isinstance(body, Block):
            tokens = [tok for stmt in body.stmts for tok in self.flatten(stmt)]
        else:
            tokens = self.flatten(body)
        if not tokens:
            return body
        if self.current_algebra is not None:
            for token in tokens:
                self.current_algebra.apply_alias(token)
        return Block(stmts=self._parser(tokens).parse_statements(), loc=body.loc)

    # ── tree walk ─────────────────────────────────────────────────

    def _desugar_list(self, nodes: list[Node]) -> list[Node]:
        return [self.desugar(n) for n in nodes]

    def desugar(self, node: Node | None) -> Node | None:
        """Desugar a tree in place where possible; returns the replacement node."""
        if node is None:
            return None

        if isinstance(node, Program):
            node.top_level = self._desugar_list(node.top_level)
        elif isinstance(node, AlgebraDecl):
            algebra = self.registry.find(node.name)
            if algebra is None:
                algebra = self.registry.add(node.name)
                algebra.register_declarations(node)
            previous = self.current_algebra
            self.current_algebra = algebra
            try:
                node.declarations = self._desugar_list(node.declarations)
            finally:
                self.current_algebra = previous
        elif isinstance(node, UseBlock):
            algebra = self.registry.find(node.algebra_name)
            if algebra is None:
                self.errors.add(ErrorKind.DESUGAR, node.loc,
                                f"unknown algebra '{node.algebra_name}'")
            else:
                previous = self.current_algebra
                self.current_algebra = algebra
                try:
                    node.body = self._reparse_use_body(node.body)
                finally:
                    self.current_algebra = previous
        elif isinstance(node, ImportDecl):
            node.declarations = self._desugar_list(node.declarations)
        elif isinstance(node, FnDecl):
            node.body = self.desugar(node.body)
        elif isinstance(node, Block):
            node.stmts = self._desugar_list(node.stmts)
        elif isinstance(node, If):
            node.condition = self.desugar(node.condition)
            node.then_body = self.desugar(node.then_body)
            node.elifs = [(self.desugar(c), self.desugar(b)) for c, b in node.elifs]
            node.else_body = self.desugar(node.else_body)
        elif isinstance(node, While):
            node.condition = self.desugar(node.condition)
            node.body = self.desugar(node.body)
        elif isinstance(node, For):
            node.iterable = self.desugar(node.iterable)
            node.body = self.desugar(node.body)
        elif isinstance(node, Match):
            node.value = self.desugar(node.value)
            node.cases = self._desugar_list(node.cases)
        elif isinstance(node, Case):
            node.pattern = self.desugar(node.pattern)
            node.body = self.desugar(node.body)
        elif isinstance(node, Default):
            node.body = self.desugar(node.body)
        elif isinstance(node, (Let, Var, Assign, Return)):
            node.value = self.desugar(node.value)
        elif isinstance(node, Call):
            node.args = self._desugar_list(node.args)
        elif isinstance(node, Chain):
            node.operands = self._desugar_list(node.operands)
        elif isinstance(node, SigilExpr):
            if self.current_algebra is not None:
                binding = self.current_algebra.find_sigil(node.sigil)
                if binding is not None:
                    return Call(name=binding.fn_name,
                                args=self._desugar_list(node.operands), loc=node.loc)
        elif isinstance(node, AsExpr):
            node.source = self.desugar(node.source)
        return node