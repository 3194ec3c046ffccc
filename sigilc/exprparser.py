"""Sigil-aware parser for expressions and statements inside ``use`` blocks."""

from __future__ import annotations

from typing import Sequence

from sigilc.algebra import AlgebraEntry, SigilBinding
from sigilc.errors import SrcLoc
from sigilc.syntax import (
    DEFAULT_VOCABULARY,
    AsExpr,
    Assign,
    BeginEnd,
    BoolLit,
    Call,
    Chain,
    Fixity,
    FloatLit,
    For,
    Ident,
    If,
    IntLit,
    Let,
    Node,
    PatKind,
    Return,
    SigilExpr,
    Token,
    TokenKind,
    TypeKind,
    Var,
    Vocabulary,
    While,
)
from sigilc.traits import TraitRegistry

_NULLARY_PRIMITIVES = frozenset({"mapnew", "true", "false"})


def _has_pre_bracket_param(binding: SigilBinding) -> bool:
    """True if a parameter comes before the first sigil of the pattern."""
    for elem in binding.pattern:
        if elem.kind is PatKind.SIGIL:
            return False
        if elem.kind is PatKind.PARAM:
            return True
    return False


def _first_pattern_sigil(binding: SigilBinding) -> str | None:
    return next((e.sigil for e in binding.pattern if e.kind is PatKind.SIGIL), None)


def _close_sigil(binding: SigilBinding) -> str:
    """The bracket closer: the last sigil not followed by a trailing parameter."""
    pattern = binding.pattern
    for i in range(len(pattern) - 1, -1, -1):
        if pattern[i].kind is not PatKind.SIGIL:
            continue
        has_trailing_param = False
        for later in pattern[i + 1:]:
            if later.kind is PatKind.PARAM:
                has_trailing_param = True
                break
            if later.kind is PatKind.SIGIL:
                break
        if not has_trailing_param and pattern[i].sigil is not None:
            return pattern[i].sigil
    return binding.all_sigils[-1]


def _separator_sigil(binding: SigilBinding, open_sigil: str, close_sigil: str) -> str | None:
    """The last sigil between the opening and closing brackets, if any."""
    separator = None
    found_open = False
    for elem in binding.pattern:
        if elem.kind is PatKind.SIGIL and elem.sigil == open_sigil:
            found_open = True
            continue
        if not found_open:
            continue
        if elem.kind is PatKind.SIGIL and elem.sigil == close_sigil:
            break
        if elem.kind is PatKind.SIGIL:
            separator = elem.sigil
    return separator


class ExprParser:
    """Precedence-climbing parser over a token list, guided by the active algebra."""

    def __init__(self, tokens: Sequence[Token], algebra: AlgebraEntry | None = None,
                 trait_registry: TraitRegistry | None = None,
                 vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> None:
        self.tokens = list(tokens)
        self.algebra = algebra
        self.trait_registry = trait_registry
        self.vocabulary = vocabulary
        self.pos = 0

    # ── token access ──────────────────────────────────────────────

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def _current(self) -> Token | None:
        return None if self.at_end() else self.tokens[self.pos]

    def _eat(self) -> Token | None:
        token = self._current()
        if token is not None:
            self.pos += 1
        return token

    def _at_text(self, text: str) -> bool:
        token = self._current()
        return token is not None and token.text == text

    def _at_kind(self, kind: TokenKind) -> bool:
        token = self._current()
        return token is not None and token.kind is kind

    def _at_arg_stop(self) -> bool:
        token = self._current()
        if token is None or token.kind in (TokenKind.END, TokenKind.BEGIN):
            return True
        return token.kind is TokenKind.KEYWORD and (
            self.vocabulary.is_structural(token.text) or self.vocabulary.is_primitive(token.text)
        )

    # ── groups and calls ──────────────────────────────────────────

    def _parse_group(self) -> BeginEnd:
        """Parse ``begin ... end`` or ``do ... end`` into a statement group."""
        opener = self._eat()
        block = BeginEnd(loc=opener.loc if opener is not None else SrcLoc())
        while not self.at_end() and not self._at_kind(TokenKind.END):
            stmt = self.parse_statement()
            if stmt is None:
                break
            block.stmts.append(stmt)
        if self._at_kind(TokenKind.END):
            self._eat()
        return block

    def _collect_args(self, call: Call) -> Call:
        while not self._at_arg_stop():
            if self._at_kind(TokenKind.DO):
                call.args.append(self._parse_group())
                continue
            arg = self.parse_atom()
            if arg is None:
                break
            call.args.append(arg)
        return call

    def _parse_kw_call(self, name: str, loc: SrcLoc) -> Call:
        return self._collect_args(Call(name=name, loc=loc))

    def _maybe_wrap_as(self, node: Node | None) -> Node | None:
        if node is None or self.at_end():
            return node
        token = self._current()
        if token is None or token.kind is not TokenKind.KEYWORD or token.text != "as":
            return node
        self._eat()
        if self.at_end():
            return node
        target = self._eat()
        return AsExpr(source=node, target_algebra=target.text, loc=node.loc)

    # ── bracketed patterns ────────────────────────────────────────

    def _try_bracketed(self, left: Node | None) -> Node | None:
        """Match the longest bracketed binding at the current sigil, or None."""
        token = self._current()
        if token is None or token.kind is not TokenKind.SIGIL or self.algebra is None:
            return None

        best: Call | None = None
        best_end = -1
        best_count = -1

        for binding in self.algebra.bindings:
            if binding.fixity is not Fixity.BRACKETED or len(binding.all_sigils) < 2:
                continue
            if _has_pre_bracket_param(binding):
                if left is None:
                    continue
                open_sigil = _first_pattern_sigil(binding)
            else:
                if left is not None:
                    continue
                open_sigil = binding.all_sigils[0]
            if open_sigil is None or open_sigil != token.text:
                continue

            saved = self.pos
            self._eat()
            call = Call(name=binding.fn_name, loc=token.loc)
            if left is not None:
                call.args.append(left)

            close_sigil = _close_sigil(binding)
            separator = _separator_sigil(binding, open_sigil, close_sigil)

            if self._parse_bracket_args(call, close_sigil, separator) and \
                    self._parse_trailing(call, binding, close_sigil):
                if len(binding.all_sigils) > best_count:
                    best, best_end, best_count = call, self.pos, len(binding.all_sigils)
            self.pos = saved

        if best is None:
            return None
        self.pos = best_end
        return best

    def _parse_bracket_args(self, call: Call, close_sigil: str, separator: str | None) -> bool:
        first = True
        while not self.at_end():
            current = self._current()
            if current.kind is TokenKind.SIGIL and current.text == close_sigil:
                self._eat()
                break
            if not first:
                if current.kind is TokenKind.SIGIL and separator is not None \
                        and current.text == separator:
                    self._eat()
                else:
                    return False
            first = False
            arg = self.parse_expression(0)
            if arg is None:
                return False
            call.args.append(arg)
        return True

    def _parse_trailing(self, call: Call, binding: SigilBinding, close_sigil: str) -> bool:
        past_close = False
        for elem in binding.pattern:
            if elem.kind is PatKind.SIGIL and elem.sigil == close_sigil:
                past_close = True
                continue
            if not past_close:
                continue
            if elem.kind is PatKind.SIGIL:
                current = self._current()
                if current is not None and current.kind is TokenKind.SIGIL \
                        and current.text == elem.sigil:
                    self._eat()
                else:
                    return False
            elif elem.kind is PatKind.PARAM:
                arg = self.parse_expression(0)
                if arg is None:
                    return False
                call.args.append(arg)
        return True

    # ── expressions ───────────────────────────────────────────────

    def parse_atom(self) -> Node | None:
        """Parse a literal, identifier, group, keyword call or sigil operand."""
        token = self._current()
        if token is None:
            return None

        if token.kind is TokenKind.INT_LIT:
            self._eat()
            return IntLit(value=token.int_val, loc=token.loc)
        if token.kind is TokenKind.FLOAT_LIT:
            self._eat()
            return FloatLit(value=token.float_val, loc=token.loc)
        if token.kind is TokenKind.KEYWORD and token.text in ("true", "false"):
            self._eat()
            return BoolLit(value=token.text == "true", loc=token.loc)
        if token.kind is TokenKind.DO:
            return self._parse_group()
        if token.kind is TokenKind.KEYWORD and self.vocabulary.is_primitive(token.text):
            self._eat()
            if token.text in _NULLARY_PRIMITIVES:
                return Call(name=token.text, loc=token.loc)
            return self._parse_kw_call(token.text, token.loc)
        if token.kind is TokenKind.IDENT:
            self._eat()
            return Ident(name=token.text, loc=token.loc)

        if token.kind is TokenKind.SIGIL and self.algebra is not None:
            standalone = self._try_bracketed(None)
            if standalone is not None:
                return standalone

            prefix = self.algebra.find_sigil(token.text, Fixity.PREFIX)
            if prefix is not None:
                self._eat()
                call = Call(name=prefix.fn_name, loc=token.loc)
                operand = self.parse_atom()
                if operand is not None:
                    call.args.append(operand)
                return call

            nullary = self.algebra.find_sigil(token.text, Fixity.NULLARY)
            if nullary is not None:
                self._eat()
                return Call(name=nullary.fn_name, loc=token.loc)

        if token.kind is TokenKind.SIGIL:
            self._eat()
            return SigilExpr(sigil=token.text, fixity=Fixity.NULLARY, loc=token.loc)

        return None

    def _grouping_type_name(self, binding: SigilBinding) -> str | None:
        if not binding.param_types or binding.param_types[0] is None:
            return None
        param_type = binding.param_types[0]
        if param_type.kind is TypeKind.NAMED:
            return param_type.name
        if param_type.kind is TypeKind.INT:
            return "int"
        if param_type.kind is TypeKind.FLOAT:
            return "float"
        return None

    def parse_expression(self, min_prec: int = 0) -> Node | None:
        """Parse operators of precedence at least ``min_prec``."""
        left = self.parse_atom()
        if left is None:
            return None

        while not self.at_end():
            token = self._current()
            if token.kind is TokenKind.END:
                break

            if token.kind is TokenKind.SIGIL and self.algebra is not None:
                bracketed = self._try_bracketed(left)
                if bracketed is not None:
                    left = bracketed
                    continue

            if token.kind is not TokenKind.SIGIL or self.algebra is None:
                break
            prec = self.algebra.precedence_of(token.text)
            if prec is None or prec < min_prec:
                break

            binding = self.algebra.find_sigil(token.text, Fixity.INFIX)
            if binding is None:
                postfix = self.algebra.find_sigil(token.text, Fixity.POSTFIX)
                if postfix is None:
                    break
                self._eat()
                left = Call(name=postfix.fn_name, args=[left], loc=token.loc)
                continue

            self._eat()
            next_min = prec + 1  # left-associative by default

            if self._at_kind(TokenKind.SIGIL) and self.trait_registry is not None:
                type_name = self._grouping_type_name(binding)
                if type_name is not None:
                    registry = self.trait_registry
                    assoc = registry.find_impl("Associative", type_name)
                    left_g = registry.find_impl("LeftGrouped", type_name)
                    right_g = registry.find_impl("RightGrouped", type_name)
                    if assoc is not None and left_g is None and right_g is None:
                        right = self.parse_expression(prec + 1)
                        chain = Chain(fn_name=binding.fn_name, loc=token.loc)
                        for part in (left, right):
                            if part is None:
                                continue
                            if isinstance(part, Chain) and part.fn_name == binding.fn_name:
                                chain.operands.extend(part.operands)
                            else:
                                chain.operands.append(part)
                        left = chain
                        continue
                    if right_g is not None and left_g is None:
                        next_min = prec

            right = self.parse_expression(next_min)
            call = Call(name=binding.fn_name, args=[left], loc=token.loc)
            if right is not None:
                call.args.append(right)
            left = call

        return left

    # ── statements ────────────────────────────────────────────────

    def parse_condition(self) -> Node | None:
        """Parse a condition or iterable, stopping before a ``begin`` body."""
        token = self._current()
        if token is None:
            return None

        if token.kind is TokenKind.KEYWORD and self.vocabulary.is_primitive(token.text):
            self._eat()
            return self._parse_kw_call(token.text, token.loc)

        if token.kind is TokenKind.IDENT:
            self._eat()
            nxt = self._current()
            if nxt is None or nxt.kind in (TokenKind.END, TokenKind.BEGIN) or (
                    nxt.kind is TokenKind.KEYWORD and self.vocabulary.is_structural(nxt.text)):
                return Ident(name=token.text, loc=token.loc)
            return self._parse_kw_call(token.text, token.loc)

        if token.kind is TokenKind.DO:
            return self._parse_group()
        return self.parse_expression(0)

    def _parse_body(self) -> Node | None:
        return self._parse_group() if self._at_kind(TokenKind.BEGIN) else None

    def _parse_name(self) -> str:
        token = self._current()
        if token is None:
            return ""
        self._eat()
        return token.text

    def parse_statement(self) -> Node | None:
        """Parse one statement; None at the end of input or at ``end``."""
        token = self._current()
        if token is None or token.kind is TokenKind.END:
            return None
        keyword = token.text if token.kind is TokenKind.KEYWORD else None

        if keyword in ("let", "var"):
            self._eat()
            name = self._parse_name()
            value = self._maybe_wrap_as(self.parse_expression(0))
            node_type = Var if keyword == "var" else Let
            return node_type(name=name, value=value, loc=token.loc)

        if keyword == "assign":
            self._eat()
            name = self._parse_name()
            return Assign(name=name, value=self._maybe_wrap_as(self.parse_expression(0)),
                          loc=token.loc)

        if keyword == "return":
            self._eat()
            value = None
            if not self.at_end() and not self._at_kind(TokenKind.END):
                value = self._maybe_wrap_as(self.parse_expression(0))
            return Return(value=value, loc=token.loc)

        if keyword == "for":
            self._eat()
            var_name = self._parse_name()
            if self._at_text("in"):
                self._eat()
            iterable = self.parse_condition()
            return For(var_name=var_name, iterable=iterable, body=self._parse_body(),
                       loc=token.loc)

        if keyword == "if":
            self._eat()
            node = If(loc=token.loc)
            node.condition = self.parse_condition()
            node.then_body = self._parse_body()
            while self._at_text("elif"):
                self._eat()
                cond = self.parse_condition()
                node.elifs.append((cond, self._parse_body()))
            if self._at_text("else"):
                self._eat()
                node.else_body = self._parse_body()
            return node

        if keyword == "while":
            self._eat()
            condition = self.parse_condition()
            return While(condition=condition, body=self._parse_body(), loc=token.loc)

        if keyword is not None and self.vocabulary.is_primitive(keyword):
            self._eat()
            return self._parse_kw_call(keyword, token.loc)

        return self._maybe_wrap_as(self.parse_expression(0))

    def parse_statements(self) -> list[Node]:
        """Parse statements until the input runs out or one cannot be parsed."""
        stmts: list[Node] = []
        while not self.at_end():
            stmt = self.parse_statement()
            if stmt is None:
                break
            stmts.append(stmt)
        return stmts