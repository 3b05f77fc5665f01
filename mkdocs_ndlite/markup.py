"""
Block and inline markup for doc comment bodies.

MarkupEngine walks body lines through a small state machine producing
paragraphs, headers, definition lists, bullet lists and code blocks.  Text
spans go through InlineFormatter for quotes, bold, emphasis and links.
"""

from __future__ import annotations

import html
import re
from enum import Enum, auto

from .resolver import ReferenceResolver

# -- inline formatting --

_REF_RE = re.compile(r"<([^>]+)>")
# Bare links, never right after markup (attribute values, link text)
_AUTOLINK_RE = re.compile(
    r"(?<![\w\"'=>/:.@&;-])"
    r"((?:https?|ftp)://[^\s<>\"]+|www\.[^\s<>\"]+|[\w.+-]+@[\w-]+\.[\w.-]*\w)"
)
_AUTOLINK_TRAIL = ".,;:!?)'"
_QUOTE_RE = re.compile(r'(?<![="])"([^"<>]+)"(?!>)')
_BOLD_RE = re.compile(r"(?<![^\s;'\"(])\*([^*]{1,40})\*(?=[\s.,;:!'\"?)]|$)")
_EM_RE = re.compile(r"(?<![^\s;'\"(])[_/](\S{1,40})[_/](?=[\s.,;:!'\"?)]|$)")


class InlineFormatter:
    """Typographic substitutions and link resolution over one line of text.

    Text is not escaped here; ``<...>`` is reserved for references.
    """

    def __init__(self, resolver=None):
        self.resolver = resolver or ReferenceResolver()

    def format(self, text, scope=""):
        text = _REF_RE.sub(lambda m: self.resolver.resolve(m.group(1), scope), text)
        text = self._autolink(text, scope)
        text = _sub_outside_tags(_QUOTE_RE, lambda m: f"&ldquo;{m.group(1)}&rdquo;", text)
        text = _sub_outside_tags(_BOLD_RE, lambda m: f"<strong>{m.group(1)}</strong>", text)
        text = _sub_outside_tags(
            _EM_RE, lambda m: f"<em>{m.group(1).replace('_', ' ')}</em>", text
        )
        return text

    def _autolink(self, text, scope):
        out = []
        last = 0
        for m in _AUTOLINK_RE.finditer(text):
            ref = m.group(1)
            stripped = ref.rstrip(_AUTOLINK_TRAIL)
            if not stripped or _inside_tag(text, m.start()):
                continue
            out.append(text[last : m.start()])
            out.append(self.resolver.resolve(stripped, scope))
            last = m.start() + len(stripped)
        out.append(text[last:])
        return "".join(out)


def _inside_tag(text, pos):
    """True if pos sits inside an HTML tag or the text of a link."""
    if text.rfind("<", 0, pos) > text.rfind(">", 0, pos):
        return True
    return text.rfind("<a ", 0, pos) > text.rfind("</a>", 0, pos)


def _sub_outside_tags(pattern, repl, text):
    """pattern.sub that leaves generated markup and link text untouched."""

    def _sub(m):
        if _inside_tag(m.string, m.start()):
            return m.group(0)
        return repl(m)

    return pattern.sub(_sub, text)


# -- block markup --


class State(Enum):
    NEUTRAL = auto()
    PARAGRAPH = auto()
    DEFINITION_LIST = auto()
    BULLET_LIST = auto()
    CODE_DELIMITED = auto()
    CODE_PREFIXED = auto()


_DTDD_RE = re.compile(r"^[ \t]*((?:[^ \t]+[ \t]+){1,2})-[ \t]+(.*)$")
_ULLI_RE = re.compile(r"^[ \t]*[-*o+][ \t]+(.*)$")
_CODE_LINE_RE = re.compile(r"^[ \t]*[>|:](?:[ \t](.*))?$")
_CODE_KINDS = r"(?:\s+(?:code|sample|example|diagram|table))?"
_CODE_BEGIN_RE = re.compile(rf"^\((?:start|begin){_CODE_KINDS}\)$", re.IGNORECASE)
_CODE_END_RE = re.compile(rf"^\((?:end|finish|done|stop){_CODE_KINDS}\)$", re.IGNORECASE)

HEADER_MAX_LEN = 40


def is_header(text):
    """Short lines ending in ':' with no '.' past the first character."""
    return len(text) < HEADER_MAX_LEN and text.endswith(":") and text.find(".") < 1


def _esc(text):
    return html.escape(text, quote=False)


class MarkupEngine:
    """Line-by-line state machine turning body lines into HTML."""

    def __init__(self, formatter=None):
        self.formatter = formatter or InlineFormatter()
        self.state = State.NEUTRAL
        self._scope = ""
        self._out = []
        self._buf = ""

    def render(self, lines, scope=""):
        self._scope = scope
        self._out = []
        self._buf = ""
        self.state = State.NEUTRAL
        handlers = {
            State.NEUTRAL: self._neutral,
            State.PARAGRAPH: self._paragraph,
            State.DEFINITION_LIST: self._definition_list,
            State.BULLET_LIST: self._bullet_list,
            State.CODE_DELIMITED: self._code_delimited,
            State.CODE_PREFIXED: self._code_prefixed,
        }
        for raw in lines:
            handlers[self.state](raw, raw.strip())
        # close anything left open as if a blank line followed
        if self.state is not State.CODE_DELIMITED:
            handlers[self.state]("", "")
        else:
            self._out.append("</pre>\n")
            self.state = State.NEUTRAL
        return "".join(self._out)

    def _inline(self, text):
        return self.formatter.format(text, self._scope)

    def _header(self, text):
        self._out.append(f"\n<h4>{_esc(text[:-1])}</h4>\n")

    # -- state handlers --

    def _neutral(self, raw, line):
        if not line:
            return
        m = _DTDD_RE.match(line)
        if m:
            self._out.append(f"<dl>\n\t<dt>{self._inline(m.group(1).rstrip())}</dt>\n\t<dd>")
            self._buf = m.group(2)
            self.state = State.DEFINITION_LIST
            return
        m = _ULLI_RE.match(line)
        if m:
            self._out.append("<ul>\n\t<li>")
            self._buf = m.group(1)
            self.state = State.BULLET_LIST
            return
        m = _CODE_LINE_RE.match(line)
        if m:
            self._out.append(f"<pre>{_esc(m.group(1) or '')}\n")
            self.state = State.CODE_PREFIXED
            return
        if _CODE_BEGIN_RE.match(line):
            self._out.append("<pre>")
            self.state = State.CODE_DELIMITED
            return
        if is_header(line):
            self._header(line)
            return
        self._buf = line
        self.state = State.PARAGRAPH

    def _paragraph(self, raw, line):
        if line:
            self._buf += " " + line
            return
        text = self._buf.rstrip()
        if is_header(text):
            self._header(text)
        elif text:
            self._out.append(f"<p>{self._inline(text)}</p>\n")
        self._buf = ""
        self.state = State.NEUTRAL

    def _definition_list(self, raw, line):
        if not line:
            self._out.append(f"{self._inline(self._buf)}</dd>\n\n</dl>\n")
            self._buf = ""
            self.state = State.NEUTRAL
            return
        m = _DTDD_RE.match(line)
        if m:
            term = self._inline(m.group(1).rstrip())
            self._out.append(f"{self._inline(self._buf)}</dd>\n\n\t<dt>{term}</dt>\n\t<dd>")
            self._buf = m.group(2)
        else:
            self._buf += " " + line

    def _bullet_list(self, raw, line):
        if not line:
            self._out.append(f"{self._inline(self._buf)}</li>\n</ul>\n")
            self._buf = ""
            self.state = State.NEUTRAL
            return
        m = _ULLI_RE.match(line)
        if m:
            self._out.append(f"{self._inline(self._buf)}</li>\n\t<li>")
            self._buf = m.group(1)
        else:
            self._buf += " " + line

    def _code_delimited(self, raw, line):
        if _CODE_END_RE.match(line):
            self._out.append("</pre>\n")
            self.state = State.NEUTRAL
        else:
            self._out.append(_esc(raw) + "\n")

    def _code_prefixed(self, raw, line):
        if not line:
            self._out.append("</pre>\n")
            self.state = State.NEUTRAL
            return
        m = _CODE_LINE_RE.match(line)
        if m:
            self._out.append(_esc(m.group(1) or "") + "\n")
        else:
            # not a prefixed line; still treated as code
            self._out.append(_esc(raw) + "\n")


def render_lines(lines, scope="", resolver=None):
    return MarkupEngine(InlineFormatter(resolver)).render(lines, scope)
