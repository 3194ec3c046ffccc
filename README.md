# sigilc

`sigilc` holds middle passes of a compiler for Sigil, a language in which
operators ("sigils") are not fixed by the language but declared by
*algebras*. An algebra binds sigils such as `+`, `*`, `-` or `[ , ]` to
named functions and gives them a precedence order. It may also declare
aliases, exported traits, types, purity and distributive laws. Code inside
a `use <Algebra>` block is written with those sigils, and `sigilc` turns it
back into plain keyword-prefix calls.

The package needs only the standard library. It requires Python 3.10 or
later.

## What it does

- **Syntax** (`sigilc.syntax`): token kinds and `Token`, the keyword
  `Vocabulary` (`DEFAULT_VOCABULARY` splits structural keywords from
  primitive operations), pattern elements, type references, and the
  syntax tree node dataclasses (`Program`, `AlgebraDecl`, `UseBlock`,
  `FnDecl`, `Call`, `Chain`, `SigilExpr`, `For`, `Comprehension` and the
  rest).
- **Algebra registry** (`sigilc.algebra`): `AlgebraRegistry` holds one
  `AlgebraEntry` per algebra. `AlgebraEntry.register_declarations`
  collects the sigil bindings, precedence table, traits, implementations,
  aliases, exports, types, purity and distributive declarations of an
  `AlgebraDecl`. An entry can:
  - find a binding by sigil and fixity (`find_sigil`);
  - give a sigil's precedence level (`precedence_of`, `None` if the sigil
    is unlisted);
  - match compound sigils (`match_compound`);
  - look up and apply aliases (`find_alias`, `apply_alias`);
  - report collisions, meaning the same sigil, fixity and parameter types
    declared twice (`check_collisions`).

  `AlgebraRegistry.check_cast` checks whether a value may be cast from one
  algebra to another. It compares base-type layout and requires that every
  required export of the target is exported by the source.
- **Alias rewriting** (`sigilc.aliases`): `rewrite_aliases(tokens,
  file_path)` runs before parsing. It collects aliases declared in
  algebra blocks, both in the token list itself and in files named by
  `import "..."` (resolved relative to `file_path`). It then rewrites, in
  place, the tokens inside each matching `use` region, for example turning
  `{` into `begin`. It returns the number of tokens rewritten.
  `prescan_aliases(source, file_path)` does the collection step on raw
  source text and returns a table of aliases per algebra.
- **Traits** (`sigilc.traits`): `TraitRegistry` holds trait definitions
  and implementations, with `find_def` and `find_impl`.
  `register_builtin_traits` adds `Functor`, `Applicative` and `Monad`,
  plus the marker traits `Bind`, `Unit` and `Map`.
- **Sigil-aware expression parser** (`sigilc.exprparser`): `ExprParser`
  parses a token list by precedence climbing over prefix, infix, postfix,
  nullary and bracketed sigils of the active algebra.
  - If the first parameter type of an infix operator implements
    `Associative` (and neither `LeftGrouped` nor `RightGrouped`), its
    operands are collected into a flat `Chain`.
  - `RightGrouped` makes the operator right-associative.
  - Otherwise operators are left-associative.

  It also parses `let`, `var`, `assign`, `return`, `if`/`elif`/`else`,
  `while` and `for` statements, keyword calls, and `as` casts.
- **Desugarer** (`sigilc.desugarer`): `Desugarer.desugar` walks a tree and
  registers each algebra as it meets it. It re-parses the body of every
  `use` block that contains sigil expressions, so that `a + b * c` becomes
  a call of `add` whose second argument is a call of `times`. A `use` of
  an unknown algebra is recorded as a `desugar` error.
  `Desugarer.desugar_expression` parses one token list, and
  `Desugarer.flatten` turns a subtree back into tokens.
- **Loop analysis** (`sigilc.analysis`): functions that inspect a `For`
  loop body:
  - `collect_writes` and `collect_reads` list the variables written and
    read;
  - `writes_are_loop_partitioned` and `has_cross_iteration_dependency`
    check whether writes and reads conflict across iterations;
  - `detect_reduction_fn` finds an accumulator's combining function;
  - `estimate_iterations` gives the iteration count of `range lo hi` with
    literal bounds, or `None`;
  - `has_non_uniform_work` tells whether iterations may do different
    amounts of work.

## Errors

Problems are collected rather than raised. Each pass adds `SigilError`
entries to an `ErrorList`, tagged with an `ErrorKind` and a `SrcLoc`.
`ErrorList.has_errors()` tells whether anything was reported, and
`ErrorList.format_all()` renders every entry as

```
file:line:col: <kind> error: <message>
```

with `<input>` in place of the file name when none is known.
`ErrorList.print_all(stream)` writes the same lines to `stream` (standard
error by default).

## Example

```python
from sigilc.algebra import AlgebraRegistry
from sigilc.desugarer import Desugarer
from sigilc.syntax import (
    AlgebraDecl, FnDecl, PatElem, PatKind, PrecedenceDecl,
    Token, TokenKind, Fixity, TypeRef, TypeKind,
)

INT = TypeRef(TypeKind.INT)

def infix(name, sigil):
    return FnDecl(name=name, fixity=Fixity.INFIX, return_type=INT, pattern=[
        PatElem(PatKind.PARAM, param_name="a", type=INT),
        PatElem(PatKind.SIGIL, sigil=sigil),
        PatElem(PatKind.PARAM, param_name="b", type=INT),
    ])

decl = AlgebraDecl(name="StandardArithmetic", declarations=[
    infix("add", "+"), infix("times", "*"), PrecedenceDecl(sigils=["+", "*"]),
])
registry = AlgebraRegistry()
registry.add("StandardArithmetic").register_declarations(decl)

d = Desugarer(registry)
d.current_algebra = registry.find("StandardArithmetic")
tokens = [Token(TokenKind.IDENT, "a"), Token(TokenKind.SIGIL, "+"),
          Token(TokenKind.IDENT, "b"), Token(TokenKind.SIGIL, "*"),
          Token(TokenKind.IDENT, "c")]
tree = d.desugar_expression(tokens)
# tree is Call(name="add", args=[Ident("a"), Call(name="times", args=[Ident("b"), Ident("c")])])
```

In this example `*` binds tighter than `+` because it comes later in the
precedence list.

## What it does not do

`sigilc` is a set of library passes, not a complete compiler:

- It has no command-line program.
- It has no tokenizer or parser for Sigil source text. You supply `Token`
  lists and syntax trees built from the `sigilc.syntax` classes.
- It does no type checking, name resolution or code generation.
- The loop analyses report facts about a loop. They do not choose how the
  loop is run, and they do not annotate the tree.

## Modules

| Module              | Contents                                              |
|---------------------|-------------------------------------------------------|
| `sigilc.errors`     | `ErrorKind`, `SrcLoc`, `SigilError`, `ErrorList`      |
| `sigilc.syntax`     | tokens, keyword vocabulary, syntax tree node classes  |
| `sigilc.algebra`    | `AlgebraRegistry`, `AlgebraEntry`, `SigilBinding`     |
| `sigilc.traits`     | `TraitRegistry`, `register_builtin_traits`            |
| `sigilc.aliases`    | `prescan_aliases`, `rewrite_aliases`                  |
| `sigilc.exprparser` | `ExprParser`                                          |
| `sigilc.desugarer`  | `Desugarer`, `has_sigils`                             |
| `sigilc.analysis`   | dependency, reduction and iteration-count analysis    |