"""Algebras: sigil bindings, precedence, aliases, exports and casts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence

from sigilc.errors import ErrorKind, ErrorList, SrcLoc
from sigilc.syntax import (
    DEFAULT_VOCABULARY,
    AlgebraDecl,
    AliasDecl,
    DistributiveDecl,
    ExportDecl,
    ExportVisibility,
    Fixity,
    FnDecl,
    Implement,
    PatElem,
    PrecedenceDecl,
    PureDecl,
    Token,
    TokenKind,
    TraitDecl,
    TypeDecl,
    TypeRef,
    Vocabulary,
)


def alias_target_kind(text: str, vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> TokenKind:
    """The token kind an alias rewrites to, judged from its target text."""
    if text == "begin":
        return TokenKind.BEGIN
    if text == "end":
        return TokenKind.END
    if text == "do":
        return TokenKind.DO
    if vocabulary.is_keyword(text):
        return TokenKind.KEYWORD
    if text and not any((c.isascii() and c.isalnum()) or c == "_" for c in text):
        return TokenKind.SIGIL
    return TokenKind.IDENT


@dataclass
class SigilBinding:
    """A function bound to a sigil pattern."""

    fn_name: str
    sigil: str
    fixity: Fixity
    param_types: tuple[TypeRef | None, ...]
    return_type: TypeRef | None
    all_sigils: list[str]
    pattern: list[PatElem]
    fn_node: FnDecl

    @property
    def param_count(self) -> int:
        return len(self.param_types)


@dataclass(frozen=True)
class AliasEntry:
    from_text: str
    to_text: str
    to_kind: TokenKind


@dataclass(frozen=True)
class ExportEntry:
    visibility: ExportVisibility
    trait_name: str
    for_name: str


@dataclass(frozen=True)
class AlgTypeEntry:
    type_name: str
    base_type: TypeRef | None


@dataclass(frozen=True)
class DistributiveEntry:
    """``outer_fn`` distributes over ``inner_fn``."""

    outer_fn: str
    inner_fn: str


@dataclass
class AlgebraEntry:
    """Everything an algebra declares."""

    name: str
    vocabulary: Vocabulary = field(default=DEFAULT_VOCABULARY, repr=False)
    bindings: list[SigilBinding] = field(default_factory=list)
    precedence: list[str] = field(default_factory=list)
    trait_decls: list[TraitDecl] = field(default_factory=list)
    implement_blocks: list[Implement] = field(default_factory=list)
    aliases: list[AliasEntry] = field(default_factory=list)
    exports: list[ExportEntry] = field(default_factory=list)
    types: list[AlgTypeEntry] = field(default_factory=list)
    is_pure: bool = False
    distributives: list[DistributiveEntry] = field(default_factory=list)

    def _register_fn(self, fn: FnDecl) -> None:
        sigils = fn.sigils()
        if not sigils:
            return  # keyword-only function
        self.bindings.append(SigilBinding(
            fn_name=fn.name,
            sigil=sigils[0],
            fixity=fn.fixity,
            param_types=tuple(p.type for p in fn.params()),
            return_type=fn.return_type,
            all_sigils=sigils,
            pattern=fn.pattern,
            fn_node=fn,
        ))

    def register_declarations(self, algebra_node: AlgebraDecl) -> None:
        """Record the declarations of a parsed algebra block."""
        for decl in algebra_node.declarations:
            if isinstance(decl, FnDecl):
                self._register_fn(decl)
            elif isinstance(decl, PrecedenceDecl):
                self.precedence = list(decl.sigils)
            elif isinstance(decl, TraitDecl):
                self.trait_decls.append(decl)
            elif isinstance(decl, Implement):
                self.implement_blocks.append(decl)
            elif isinstance(decl, AliasDecl):
                self.aliases.append(AliasEntry(
                    decl.alias_from, decl.alias_to,
                    alias_target_kind(decl.alias_to, self.vocabulary),
                ))
            elif isinstance(decl, ExportDecl):
                self.exports.append(ExportEntry(decl.visibility, decl.trait_name, decl.for_name))
            elif isinstance(decl, TypeDecl):
                self.types.append(AlgTypeEntry(decl.type_name, decl.base_type))
            elif isinstance(decl, PureDecl):
                self.is_pure = True
                algebra_node.is_pure = True
            elif isinstance(decl, DistributiveDecl):
                self.distributives.append(DistributiveEntry(decl.outer_fn, decl.inner_fn))

    def find_sigil(self, sigil: str, fixity: Fixity = Fixity.NONE) -> SigilBinding | None:
        """First binding of ``sigil``; ``Fixity.NONE`` matches any fixity."""
        return next(
            (b for b in self.bindings
             if b.sigil == sigil and (fixity is Fixity.NONE or b.fixity is fixity)),
            None,
        )

    def precedence_of(self, sigil: str) -> int | None:
        """Precedence level (0 is lowest), or None if the sigil is not listed."""
        try:
            return self.precedence.index(sigil)
        except ValueError:
            return None

    def check_collisions(self, errors: ErrorList) -> bool:
        """Report bindings sharing sigil, fixity and parameter types."""
        ok = True
        for i, a in enumerate(self.bindings):
            for b in self.bindings[i + 1:]:
                if a.sigil == b.sigil and a.fixity is b.fixity and a.param_types == b.param_types:
                    errors.add(
                        ErrorKind.RESOLVE, SrcLoc(),
                        f"collision in algebra '{self.name}': sigil '{a.sigil}' with same fixity "
                        f"and parameter types declared in both '{a.fn_name}' and '{b.fn_name}'",
                    )
                    ok = False
        return ok

    def match_compound(self, sigils: Sequence[str]) -> SigilBinding | None:
        """First compound binding whose sigils include all the given ones."""
        if len(sigils) < 2:
            return None
        for b in self.bindings:
            if len(b.all_sigils) >= 2 and all(s in b.all_sigils for s in sigils):
                return b
        return None

    def find_alias(self, text: str) -> AliasEntry | None:
        return next((a for a in self.aliases if a.from_text == text), None)

    def apply_alias(self, token: Token) -> bool:
        """Rewrite ``token`` in place if an alias matches; report whether it did."""
        alias = self.find_alias(token.text)
        if alias is None:
            return False
        token.text = alias.to_text
        token.kind = alias.to_kind
        return True


class AlgebraRegistry:
    """All algebras known to a compilation."""

    def __init__(self, vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> None:
        self.vocabulary = vocabulary
        self.algebras: list[AlgebraEntry] = []

    def add(self, name: str) -> AlgebraEntry:
        entry = AlgebraEntry(name, self.vocabulary)
        self.algebras.append(entry)
        return entry

    def find(self, name: str) -> AlgebraEntry | None:
        return next((a for a in self.algebras if a.name == name), None)

    def __iter__(self) -> Iterator[AlgebraEntry]:
        return iter(self.algebras)

    def __len__(self) -> int:
        return len(self.algebras)

    def check_cast(self, src_name: str, tgt_name: str, base_type: TypeRef | None,
                   errors: ErrorList) -> bool:
        """Check layout compatibility and required exports for a cast."""
        src = self.find(src_name)
        tgt = self.find(tgt_name)
        if tgt is None:
            errors.add(ErrorKind.TRAIT, SrcLoc(), f"cast to unknown algebra '{tgt_name}'")
            return False

        ok = True
        if base_type is not None and tgt.types:
            if not any(t.base_type is not None and t.base_type.kind is base_type.kind
                       for t in tgt.types):
                errors.add(ErrorKind.TRAIT, SrcLoc(),
                           f"cast to algebra '{tgt_name}': incompatible base type layout")
                ok = False

        for required in tgt.exports:
            if required.visibility is not ExportVisibility.REQUIRED:
                continue
            found = src is not None and any(
                e.visibility is not ExportVisibility.PRIVATE
                and e.trait_name == required.trait_name
                and e.for_name == required.for_name
                for e in src.exports
            )
            if not found:
                errors.add(
                    ErrorKind.TRAIT, SrcLoc(),
                    f"cast from algebra '{src_name}' to '{tgt_name}': source does not export "
                    f"required trait '{required.trait_name}' for '{required.for_name}'",
                )
                ok = False
        return ok