"""Trait definitions, implementations and the built-in trait set."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from sigilc.errors import ErrorList
from sigilc.syntax import FnDecl, Node

BUILTIN_SOURCE = "__builtin__"


@dataclass
class IdentityEntry:
    """The identity element a function has for a concrete type."""

    fn_name: str
    value: Node | None = None


@dataclass
class TraitDef:
    """A declared trait: required methods, prerequisite traits and identities."""

    name: str
    type_var: str | None = None
    source_algebra: str | None = None
    method_sigs: list[FnDecl] = field(default_factory=list)
    requires: list[str] = field(default_factory=list)
    required_identities: list[str] = field(default_factory=list)

    @property
    def is_builtin(self) -> bool:
        return self.source_algebra == BUILTIN_SOURCE

    @property
    def is_marker(self) -> bool:
        """True for a trait with no methods and no prerequisites."""
        return not self.method_sigs and not self.requires


@dataclass
class TraitImpl:
    """An implementation of a trait for a concrete type."""

    trait_name: str
    concrete_type: str
    source_algebra: str | None = None
    methods: list[Node] = field(default_factory=list)
    identities: list[IdentityEntry] = field(default_factory=list)


class TraitRegistry:
    """Every trait definition and implementation known to a compilation."""

    def __init__(self, errors: ErrorList | None = None) -> None:
        self.errors = errors if errors is not None else ErrorList()
        self.defs: list[TraitDef] = []
        self.impls: list[TraitImpl] = []

    def find_def(self, name: str) -> TraitDef | None:
        """The first trait definition called ``name``."""
        return next((d for d in self.defs if d.name == name), None)

    def find_impl(self, trait_name: str, concrete_type: str) -> TraitImpl | None:
        """The first implementation of ``trait_name`` for ``concrete_type``."""
        return next(
            (i for i in self.impls
             if i.trait_name == trait_name and i.concrete_type == concrete_type),
            None,
        )

    def __iter__(self) -> Iterator[TraitDef]:
        return iter(self.defs)


def _method_sig(name: str) -> FnDecl:
    # Only the name matters: completeness checking matches on it.
    return FnDecl(name=name)


def register_builtin_traits(registry: TraitRegistry) -> None:
    """Add Functor, Applicative, Monad and the marker traits Bind, Unit, Map.

    They come from ``__builtin__``, so any algebra may implement them.
    """
    registry.defs.append(TraitDef(
        name="Functor", type_var="F", source_algebra=BUILTIN_SOURCE,
        method_sigs=[_method_sig("map")],
    ))
    registry.defs.append(TraitDef(
        name="Applicative", type_var="F", source_algebra=BUILTIN_SOURCE,
        method_sigs=[_method_sig("ap")], requires=["Functor"],
    ))
    registry.defs.append(TraitDef(
        name="Monad", type_var="M", source_algebra=BUILTIN_SOURCE,
        method_sigs=[_method_sig("bind")], requires=["Applicative"],
    ))
    for marker in ("Bind", "Unit", "Map"):
        registry.defs.append(TraitDef(name=marker, source_algebra=BUILTIN_SOURCE))