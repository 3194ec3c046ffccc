"""Alias rewriting applied to the token stream before parsing."""

from __future__ import annotations

import os
from typing import MutableSequence

from sigilc.algebra import AliasEntry, alias_target_kind
from sigilc.syntax import DEFAULT_VOCABULARY, Token, TokenKind, Vocabulary

MAX_PRE_ALGEBRAS = 64

AliasTable = dict[str, list[AliasEntry]]

_BLOCK_STARTERS = frozenset({"algebra", "library", "use", "import"})
_USE_STOPPERS = frozenset({"algebra", "library", "import", "use"})


def _entries_for(table: AliasTable, name: str) -> list[AliasEntry] | None:
    """The alias list of an algebra, created on demand within the table limit."""
    entries = table.get(name)
    if entries is None:
        if len(table) >= MAX_PRE_ALGEBRAS:
            return None
        entries = table[name] = []
    return entries


def _add_alias(entries: list[AliasEntry], source: str, target: str,
               vocabulary: Vocabulary) -> None:
    entries.append(AliasEntry(source, target, alias_target_kind(target, vocabulary)))


def _resolve_import(raw_path: str, file_path: str | None) -> str | None:
    if raw_path.startswith("/"):
        candidate = raw_path
    elif file_path:
        candidate = os.path.join(os.path.dirname(file_path) or ".", raw_path)
    else:
        return None
    if not os.path.exists(candidate):
        return None
    return os.path.realpath(candidate)


def _read_text(path: str) -> str | None:
    try:
        with open(path, "rb") as handle:
            return handle.read().decode("utf-8", errors="replace")
    except OSError:
        return None


def _after_keyword(line: str, keyword: str) -> str | None:
    """The rest of ``line`` after ``keyword`` and blanks, if it starts with it."""
    size = len(keyword)
    if line.startswith(keyword) and len(line) > size and line[size] in " \t":
        return line[size:].lstrip(" \t")
    return None


def _leading_word(text: str, stops: str) -> str:
    for index, char in enumerate(text):
        if char in stops:
            return text[:index]
    return text


def _prescan_into(source: str, file_path: str | None, table: AliasTable,
                  vocabulary: Vocabulary, visited: set[str]) -> None:
    current_algebra: str | None = None
    for raw_line in source.split("\n"):
        line = raw_line.lstrip(" \t\r")
        if not line:
            continue

        rest = _after_keyword(line, "import")
        if rest is not None and rest.startswith('"'):
            closing = rest.find('"', 1)
            if closing >= 0:
                resolved = _resolve_import(rest[1:closing], file_path)
                if resolved is not None and resolved not in visited:
                    visited.add(resolved)
                    imported = _read_text(resolved)
                    if imported is not None:
                        _prescan_into(imported, resolved, table, vocabulary, visited)

        rest = _after_keyword(line, "algebra")
        if rest is not None:
            name = _leading_word(rest, " \t\r")
            if name:
                current_algebra = name

        rest = _after_keyword(line, "alias")
        if current_algebra is not None and rest is not None:
            source_text = _leading_word(rest, " \t")
            if source_text:
                remainder = rest[len(source_text):].lstrip(" \t")
                target_text = _leading_word(remainder, " \t")
                if target_text:
                    entries = _entries_for(table, current_algebra)
                    if entries is not None:
                        _add_alias(entries, source_text, target_text, vocabulary)

        if _after_keyword(line, "use") is not None or _after_keyword(line, "library") is not None:
            current_algebra = None


def prescan_aliases(source: str, file_path: str | None = None,
                    vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> AliasTable:
    """Collect alias declarations per algebra from raw source text and its imports."""
    table: AliasTable = {}
    visited = {os.path.realpath(file_path)} if file_path else set()
    _prescan_into(source, file_path, table, vocabulary, visited)
    return table


def _next_significant(tokens: MutableSequence[Token], start: int) -> int:
    index = start
    while index < len(tokens) and tokens[index].kind is TokenKind.NEWLINE:
        index += 1
    return index


def _is_keyword(token: Token, words: frozenset[str] | set[str]) -> bool:
    return token.kind is TokenKind.KEYWORD and token.text in words


def _collect_from_tokens(tokens: MutableSequence[Token], table: AliasTable,
                         vocabulary: Vocabulary) -> None:
    count = len(tokens)
    for i, token in enumerate(tokens):
        if not _is_keyword(token, {"algebra"}):
            continue
        j = _next_significant(tokens, i + 1)
        if j >= count or tokens[j].kind is not TokenKind.IDENT:
            continue
        entries = _entries_for(table, tokens[j].text)
        if entries is None:
            continue
        for k in range(j + 1, count):
            current = tokens[k]
            if current.kind is TokenKind.NEWLINE:
                continue
            if _is_keyword(current, _BLOCK_STARTERS):
                break
            if _is_keyword(current, {"alias"}):
                f = _next_significant(tokens, k + 1)
                if f >= count:
                    continue
                g = _next_significant(tokens, f + 1)
                if g >= count:
                    continue
                _add_alias(entries, tokens[f].text, tokens[g].text, vocabulary)


def rewrite_aliases(tokens: MutableSequence[Token], file_path: str | None = None,
                    vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> int:
    """Apply algebra aliases to the tokens of each ``use`` region, in place.

    Aliases come from algebra blocks in ``tokens`` and from imported files.
    Returns the number of tokens rewritten.
    """
    table: AliasTable = {}
    _collect_from_tokens(tokens, table, vocabulary)

    count = len(tokens)
    visited = {os.path.realpath(file_path)} if file_path else set()
    for i, token in enumerate(tokens):
        if not _is_keyword(token, {"import"}):
            continue
        j = _next_significant(tokens, i + 1)
        if j >= count or tokens[j].kind is not TokenKind.STRING_LIT:
            continue
        resolved = _resolve_import(tokens[j].text, file_path)
        if resolved is None or resolved in visited:
            continue
        visited.add(resolved)
        imported = _read_text(resolved)
        if imported is not None:
            _prescan_into(imported, resolved, table, vocabulary, visited)

    if not table:
        return 0

    rewritten = 0
    for i, token in enumerate(tokens):
        if not _is_keyword(token, {"use"}):
            continue
        j = _next_significant(tokens, i + 1)
        if j >= count or tokens[j].kind is not TokenKind.IDENT:
            continue
        entries = table.get(tokens[j].text)
        if not entries:
            continue
        for k in range(j + 1, count):
            current = tokens[k]
            if current.kind is TokenKind.NEWLINE:
                continue
            if _is_keyword(current, _USE_STOPPERS):
                break
            alias = next((a for a in entries if a.from_text == current.text), None)
            if alias is not None:
                current.text = alias.to_text
                current.kind = alias.to_kind
                rewritten += 1
    return rewritten