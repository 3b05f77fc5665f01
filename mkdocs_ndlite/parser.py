"""
Source parser for NaturalDocs-style and PHPDoc comments.

Handles two input shapes:
  - plain documentation files, where "Keyword: value" lines start blocks
  - source code with embedded comments (block, POD and line comments)

Every recognized comment becomes a Symbol; the first one is the document
introduction.  PHPDoc blocks (``/** ... @param ... */``) are translated into
the same heading/body line shape so both dialects share one renderer.
"""

from __future__ import annotations

import html
import logging
import os
import re
from dataclasses import dataclass
from enum import Enum

log = logging.getLogger("mkdocs.plugins.ndlite")


class Category(Enum):
    GROUP = "group"
    CHILD = "child"
    GENERIC = "generic"

    @property
    def heading_level(self):
        return 2 if self is Category.GROUP else 3

    @property
    def shows_code(self):
        return self is not Category.GROUP


# Keyword vocabulary.  Class-like words also reset the enclosing class.
CLASS_KEYWORDS = frozenset(
    {"class", "structure", "struct", "package", "namespace", "interface", "object"}
)
GROUP_KEYWORDS = frozenset({"title", "group", "section", "file"}) | CLASS_KEYWORDS
CHILD_KEYWORDS = frozenset({"property", "method", "callback", "constructor", "destructor"})
GENERIC_KEYWORDS = frozenset(
    {
        "function",
        "procedure",
        "routine",
        "subroutine",
        "constant",
        "type",
        "typedef",
        "macro",
        "define",
        "variable",
        "var",
        "array",
        "hash",
        "string",
        "handle",
        "pointer",
        "reference",
        "topic",
        "subtitle",
    }
)
KEYWORDS = GROUP_KEYWORDS | CHILD_KEYWORDS | GENERIC_KEYWORDS

PHPDOC_SENTINEL = "PHPDoc"


@dataclass(frozen=True)
class RawBlock:
    comment: str
    code: str = ""
    # Blocks cut from plain text files carry no comment syntax
    plain: bool = False


@dataclass(frozen=True)
class Symbol:
    keyword: str
    category: Category
    identifier: str
    parent_identifier: str = ""
    body_lines: tuple[str, ...] = ()
    code_fragment: str = ""
    private: bool = False

    @property
    def anchor(self):
        return f"{self.parent_identifier}_{self.identifier}"


@dataclass(frozen=True)
class Document:
    intro: Symbol | None = None
    symbols: tuple[Symbol, ...] = ()
    source_path: str = ""

    @property
    def source_dir(self):
        return os.path.dirname(self.source_path) if self.source_path else ""


def _trim_blank(lines):
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return list(lines[start:end])


# -- source scanning --

_KEYWORD_ALT = "|".join(sorted(KEYWORDS, key=len, reverse=True))

# A heading line as it must appear at the start of a line in plain text files
_STARTER_RE = re.compile(
    rf"^[ \t]*(?:private[ \t]+)?(?:{_KEYWORD_ALT}):[ \t][^\r\n]+",
    re.IGNORECASE | re.MULTILINE,
)

# Comment + following code grabber:
#   /* ... */
#   =begin nd|naturaldocs|natural docs ... =end|=cut
#   consecutive // or # lines, the first one holding a "key: value" colon
#   (no '$' before it, to skip version control keywords)
# Code runs up to the next ';', '{', '/' or '#'.
_GRABBER_RE = re.compile(
    r"(?P<comment>/\*.*?\*/"
    r"|=begin (?:nd|natural ?docs)\r?\n.*?=(?:end|cut)[^\r\n]*\r?\n"
    r"|(?://|#)[^\r\n:$]*:[^\r\n:]*\r?\n(?:[ \t]*(?://|#)[^\r\n]*\r?\n)*)"
    r"(?P<code>[^;{/#]+)",
    re.DOTALL | re.IGNORECASE,
)

_BLOCK_COMMENT_RE = re.compile(
    r"/\*.*?\*/|=begin (?:nd|natural ?docs)\r?\n.*?=(?:end|cut)[^\r\n]*(?:\r?\n|$)",
    re.DOTALL | re.IGNORECASE,
)

_NEWLINE_RE = re.compile(r"\r?\n")


def is_text_document(text):
    """True when a heading line starts some line outside of block comments."""
    return bool(_STARTER_RE.search(_BLOCK_COMMENT_RE.sub("", text)))


def _scan_text(text):
    blocks = []
    current = []

    def _flush():
        lines = _trim_blank(current)
        if lines:
            blocks.append(RawBlock("\n".join(lines), "", plain=True))

    for line in _NEWLINE_RE.split(text):
        if _STARTER_RE.match(line):
            _flush()
            current = [line]
        else:
            current.append(line)
    _flush()
    return blocks


def scan_source(text):
    if not text:
        return []
    if is_text_document(text):
        return _scan_text(text)
    return [RawBlock(m.group("comment"), m.group("code")) for m in _GRABBER_RE.finditer(text)]


# -- comment normalization --

_POD_BEGIN_RE = re.compile(r"^=begin ", re.IGNORECASE)
_POD_END_RE = re.compile(r"^=(?:end|cut)", re.IGNORECASE)
_MARKER_RE = re.compile(r"^[ \t]*[*#/]+[ \t]?")
_PHPDOC_OPEN_RE = re.compile(r"^[ \t]*/\*\*")


def _strip_markers(comment):
    text = comment
    if text.lstrip().startswith("/*"):
        text = text.lstrip()[2:]
        if text.endswith("*/"):
            text = text[:-2]
    return [_MARKER_RE.sub("", line).rstrip() for line in _NEWLINE_RE.split(text)]


def normalize_comment(comment):
    """Turn one raw comment into content lines, or None to discard it."""
    if _POD_BEGIN_RE.match(comment):
        lines = [ln for ln in _NEWLINE_RE.split(comment)[1:] if not _POD_END_RE.match(ln)]
    else:
        lines = _strip_markers(comment)

    lines = _trim_blank(lines)
    if lines and lines[0].find(":") < 1:
        if _PHPDOC_OPEN_RE.match(comment):
            lines.insert(0, PHPDOC_SENTINEL)
        else:
            return None
    return lines


# -- PHPDoc translation --

_PHPDOC_CLASS_RE = re.compile(r"^(?:abstract[ \t]+)?class[ \t]+([a-zA-Z0-9_]+)", re.IGNORECASE)
_PHPDOC_IDENT_RE = re.compile(r"[^({]*(?:var|function)[ \t]+(\$?[a-zA-Z_]+)", re.IGNORECASE)
_PHPDOC_PRIVATE_RE = re.compile(r"^(?:private|protected)[ \t]+", re.IGNORECASE)
_PHPDOC_TAG_RE = re.compile(r"^[ \t]*@([a-z]+)[ \t]+(.*)$")
_PHPDOC_PARAM_RE = re.compile(r"^[ \t]*([a-zA-Z|\\\[\]]+)[ \t]+(?:(&?\$[a-zA-Z0-9_]+)[ \t]*)?(.*)$")


def phpdoc_lines(lines):
    """Translate PHPDoc tag lines into heading-style body lines."""
    out = []
    in_params = False
    for line in lines:
        m = _PHPDOC_TAG_RE.match(line)
        if not m:
            out.append(line)
            continue
        tag, value = m.group(1), m.group(2).strip()
        if tag == "return":
            out += ["", "Returns:", value]
        elif tag == "param":
            if not in_params:
                if out and out[-1].strip():
                    out.append("")
                out.append("Parameters:")
                in_params = True
            p = _PHPDOC_PARAM_RE.match(value)
            if not p:
                out.append(value)
            elif p.group(2):
                out.append(f"{p.group(2)} - _{p.group(1)}_ - {p.group(3)}".rstrip())
            else:
                out.append(f"_{p.group(1)}_ - {p.group(3)}".rstrip())
        elif tag == "link":
            out += ["", f"Link: <{value}>"]
        else:
            out += ["", f"{tag.capitalize()}: {value}"]
    return _trim_blank(out)


def _phpdoc_symbol(lines, code, last_class):
    private = bool(_PHPDOC_PRIVATE_RE.match(code))
    m = _PHPDOC_CLASS_RE.match(code)
    if m:
        ident = m.group(1)
        return (
            Symbol(
                keyword=PHPDOC_SENTINEL,
                category=Category.GROUP,
                identifier=ident,
                body_lines=tuple(phpdoc_lines(lines)),
                code_fragment=code,
                private=private,
            ),
            ident,
        )

    ident = "unknown"
    m = _PHPDOC_IDENT_RE.match(code)
    if m:
        ident = m.group(1)
    return (
        Symbol(
            keyword=PHPDOC_SENTINEL,
            category=Category.GENERIC,
            identifier=ident,
            parent_identifier=last_class,
            body_lines=tuple(phpdoc_lines(lines)),
            code_fragment=code,
            private=private,
        ),
        last_class,
    )


# -- block classification --

_HEADING_RE = re.compile(r"[ \t]*(?:(private)[ \t]?)?([^ :]+):[ \t]*([^ \t].*)", re.IGNORECASE)


def classify_keyword(keyword):
    """Map a heading keyword to (category, starts_class), or None if unknown."""
    kw = keyword.lower()
    if kw in CLASS_KEYWORDS:
        return Category.GROUP, True
    if kw in GROUP_KEYWORDS:
        return Category.GROUP, False
    if kw in CHILD_KEYWORDS:
        return Category.CHILD, False
    if kw in GENERIC_KEYWORDS:
        return Category.GENERIC, False
    return None


def classify_block(lines, code, last_class):
    """Build the Symbol for one normalized block.

    Returns ``(symbol_or_None, last_class)``; the class context is threaded
    through explicitly so a whole parse is a fold over the raw blocks.
    """
    heading, body = lines[0], _trim_blank(lines[1:])
    code = code.strip()

    m = _HEADING_RE.search(heading)
    kind = classify_keyword(m.group(2)) if m else None
    if kind is None:
        if heading == PHPDOC_SENTINEL:
            return _phpdoc_symbol(body, code, last_class)
        log.debug("ndlite: dropping comment block %r", heading)
        return None, last_class

    category, starts_class = kind
    identifier = html.escape(m.group(3).rstrip())
    parent = ""
    if starts_class:
        last_class = identifier
    else:
        parent = last_class
    symbol = Symbol(
        keyword=m.group(2),
        category=category,
        identifier=identifier,
        parent_identifier=parent,
        body_lines=tuple(body),
        code_fragment=code,
        private=m.group(1) is not None,
    )
    return symbol, last_class


def parse(text, source_path=""):
    symbols = []
    last_class = ""
    for block in scan_source(text or ""):
        lines = block.comment.split("\n") if block.plain else normalize_comment(block.comment)
        if not lines:
            continue
        symbol, last_class = classify_block(lines, block.code, last_class)
        if symbol is not None:
            symbols.append(symbol)

    intro = symbols.pop(0) if symbols else None
    return Document(intro=intro, symbols=tuple(symbols), source_path=source_path)


def parse_file(filepath):
    try:
        with open(filepath, "r", encoding="utf-8", errors="replace") as f:
            source = f.read()
    except OSError as exc:
        log.warning("ndlite: cannot read %s: %s", filepath, exc)
        return Document(source_path=filepath)
    return parse(source, source_path=filepath)


def guess_title(doc, fallback=None):
    if doc.intro is not None and doc.intro.category is Category.GROUP:
        return doc.intro.identifier
    for sym in doc.symbols:
        if sym.category is Category.GROUP:
            return sym.identifier
    return fallback
