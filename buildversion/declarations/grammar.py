"""Structural matching of version declarations in ``.var`` source text.

Two shapes are recognized:

* a typed variable declaration ``Name : TypeName [:= <initializer>] ;``;
* the generated block, which is a header comment naming the generator and the
  generation date, followed by such a declaration whose initializer holds
  exactly the members ``Script``, ``Git`` and ``Project`` in that order.

Matches are reported as character spans into the original text so callers can
replace payloads without touching anything else.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

HEADER_PATTERN = re.compile(
    r"\(\*This file was automatically generated by (?P<generator>[^\r\n]*?)"
    r" on (?P<date>[^\r\n*]*?)\.\*\)"
)
# Bytes that are not valid UTF-8 (hand-edited cp1252 comments) survive a
# read-modify-write cycle unchanged.
SOURCE_ERRORS = "surrogateescape"
MEMBER_NAMES: Tuple[str, ...] = ("Script", "Git", "Project")


@dataclass(frozen=True)
class Span:
    """Half-open ``[start, end)`` range of characters."""

    start: int
    end: int

    def of(self, text: str) -> str:
        return text[self.start : self.end]


@dataclass(frozen=True)
class Declaration:
    """A ``Name : Type [:= init];`` declaration located in source text."""

    identifier: str
    span: Span
    initializer: Optional[Span]


@dataclass(frozen=True)
class BlockMatch:
    """Spans of the generated block's mutable payloads."""

    generator: Span
    date: Span
    declaration: Declaration
    members: Dict[str, Span]

    @property
    def script(self) -> Span:
        return self.members["Script"]

    @property
    def git(self) -> Span:
        return self.members["Git"]

    @property
    def project(self) -> Span:
        return self.members["Project"]


def skip_trivia(text: str, pos: int) -> int:
    """Advance past whitespace and ``(* *)`` comments."""
    length = len(text)
    while pos < length:
        if text[pos].isspace():
            pos += 1
        elif text.startswith("(*", pos):
            close = text.find("*)", pos + 2)
            if close == -1:
                return length
            pos = close + 2
        else:
            break
    return pos


def scan_group(text: str, pos: int) -> Optional[int]:
    """Return the index just past the ``)`` closing the group opened at ``pos``.

    Quoted strings (with ``$`` escapes) and comments may contain parentheses
    and are skipped as a whole.
    """
    if pos >= len(text) or text[pos] != "(" or text.startswith("(*", pos):
        return None
    depth = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if text.startswith("(*", pos):
            close = text.find("*)", pos + 2)
            if close == -1:
                return None
            pos = close + 2
            continue
        if char in "'\"":
            pos = _skip_string(text, pos)
            if pos is None:
                return None
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return pos + 1
        pos += 1
    return None


def _skip_string(text: str, pos: int) -> Optional[int]:
    quote = text[pos]
    pos += 1
    length = len(text)
    while pos < length:
        char = text[pos]
        if char == "$":
            pos += 2
            continue
        if char == quote:
            return pos + 1
        pos += 1
    return None


def _scan_scalar(text: str, pos: int) -> Optional[int]:
    """Return the index of the ``;`` that terminates a non-composite initializer."""
    length = len(text)
    while pos < length:
        char = text[pos]
        if char in "'\"":
            next_pos = _skip_string(text, pos)
            if next_pos is None:
                return None
            pos = next_pos
            continue
        if char == ";":
            return pos
        pos += 1
    return None


def opaque_spans(text: str) -> List[Span]:
    """Return the spans of comments and quoted strings, scanned left to right.

    A ``(*`` inside a string does not open a comment, and a quote inside a
    comment does not open a string. Unterminated tokens run to the end of text.
    """
    spans: List[Span] = []
    length = len(text)
    pos = 0
    while pos < length:
        if text.startswith("(*", pos):
            close = text.find("*)", pos + 2)
            end = length if close == -1 else close + 2
        elif text[pos] in "'\"":
            end = _skip_string(text, pos) or length
        else:
            pos += 1
            continue
        spans.append(Span(pos, end))
        pos = end
    return spans


def _inside(position: int, spans: Sequence[Span]) -> bool:
    return any(span.start <= position < span.end for span in spans)


def find_declaration(text: str, type_name: str, start: int = 0) -> Optional[Declaration]:
    """Locate the first declaration of a variable typed ``type_name``."""
    pattern = re.compile(
        r"(?<![\w.])(?P<ident>[A-Za-z_]\w*)\s*:\s*" + re.escape(type_name) + r"(?!\w)",
        re.IGNORECASE,
    )
    opaque = opaque_spans(text)
    for match in pattern.finditer(text, start):
        if _inside(match.start(), opaque):
            continue
        declaration = _complete_declaration(text, match)
        if declaration is not None:
            return declaration
    return None


def _complete_declaration(text: str, match: "re.Match[str]") -> Optional[Declaration]:
    pos = skip_trivia(text, match.end())
    initializer: Optional[Span] = None
    if text.startswith(":=", pos):
        pos = skip_trivia(text, pos + 2)
        if text.startswith("(", pos) and not text.startswith("(*", pos):
            end = scan_group(text, pos)
        else:
            end = _scan_scalar(text, pos)
            if end is not None:
                end = len(text[:end].rstrip())
        if end is None or end <= pos:
            return None
        initializer = Span(pos, end)
        pos = skip_trivia(text, end)
    if not text.startswith(";", pos):
        return None
    return Declaration(
        identifier=match.group("ident"),
        span=Span(match.start(), pos + 1),
        initializer=initializer,
    )


def _match_members(text: str, initializer: Span) -> Optional[Dict[str, Span]]:
    if text[initializer.start] != "(":
        return None
    pos = initializer.start + 1
    members: Dict[str, Span] = {}
    for index, name in enumerate(MEMBER_NAMES):
        pos = skip_trivia(text, pos)
        candidate = text[pos : pos + len(name)]
        after = text[pos + len(name) : pos + len(name) + 1]
        if candidate.lower() != name.lower() or (after and (after.isalnum() or after == "_")):
            return None
        pos = skip_trivia(text, pos + len(name))
        if not text.startswith(":=", pos):
            return None
        pos = skip_trivia(text, pos + 2)
        end = scan_group(text, pos)
        if end is None:
            return None
        members[name] = Span(pos, end)
        pos = skip_trivia(text, end)
        if index < len(MEMBER_NAMES) - 1:
            if not text.startswith(",", pos):
                return None
            pos += 1
    if pos != initializer.end - 1:
        return None
    return members


class BlockMatcher:
    """Recognizes a previously generated version block."""

    def __init__(self, type_name: str = "BuildVersionType") -> None:
        self.type_name = type_name

    def match(self, text: str) -> Optional[BlockMatch]:
        header = HEADER_PATTERN.search(text)
        if header is None:
            return None
        declaration = find_declaration(text, self.type_name, start=header.end())
        if declaration is None or declaration.initializer is None:
            return None
        members = _match_members(text, declaration.initializer)
        if members is None:
            return None
        return BlockMatch(
            generator=Span(header.start("generator"), header.end("generator")),
            date=Span(header.start("date"), header.end("date")),
            declaration=declaration,
            members=members,
        )


def replace_spans(text: str, replacements: Sequence[Tuple[Span, str]]) -> str:
    """Apply non-overlapping span replacements, rightmost first."""
    result = text
    for span, value in sorted(replacements, key=lambda item: item[0].start, reverse=True):
        result = result[: span.start] + value + result[span.end :]
    return result


__all__ = [
    "BlockMatch",
    "BlockMatcher",
    "Declaration",
    "HEADER_PATTERN",
    "MEMBER_NAMES",
    "Span",
    "SOURCE_ERRORS",
    "find_declaration",
    "opaque_spans",
    "replace_spans",
    "scan_group",
    "skip_trivia",
]
