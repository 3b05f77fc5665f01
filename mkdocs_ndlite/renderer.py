"""
HTML renderer for parsed documents.

Takes a Document from the parser and turns it into an HTML fragment: the
introduction, an optional summary (table of contents with one-line
abstracts), then one section per symbol with anchor IDs that references
can point at.
"""

from __future__ import annotations

import html
import re

from .markup import InlineFormatter, MarkupEngine
from .parser import Category
from .resolver import ReferenceResolver


class RenderConfig:
    def __init__(
        self,
        *,
        include_private=False,
        include_summary=True,
        document_root="",
        base_url="",
        include_extension=True,
        link_suffix="",
    ):
        self.include_private = include_private
        self.include_summary = include_summary
        self.document_root = document_root
        self.base_url = base_url
        self.include_extension = include_extension
        self.link_suffix = link_suffix


def anchor_id(sym):
    return sym.anchor


def make_resolver(doc, cfg):
    return ReferenceResolver(
        doc.symbols,
        document_root=cfg.document_root,
        base_url=cfg.base_url,
        include_extension=cfg.include_extension,
        link_suffix=cfg.link_suffix,
        current_dir=doc.source_dir,
    )


_SENTENCE_RE = re.compile(r"^(.*?[.;!?]+)(?:[ \t]|$)")


def abstract(lines, formatter, scope=""):
    """First sentence of the first paragraph, inline formatted."""
    text = ""
    for line in lines:
        if not line.strip():
            break
        m = _SENTENCE_RE.match(line)
        if m:
            text += m.group(1)
            break
        text += line + " "
    return formatter.format(text.rstrip(), scope)


def _visible(sym, cfg):
    return cfg.include_private or not sym.private


def _summary_entry(sym, formatter, css=""):
    cls = f' class="{css}"' if css else ""
    summary = abstract(sym.body_lines, formatter, sym.parent_identifier)
    return (
        f'<li{cls}><a href="#{anchor_id(sym)}">{sym.identifier}</a> '
        f'<span class="nd-abstract">{summary}</span>'
    )


def render_summary(doc, cfg, formatter):
    parts = ["\n<h2>Summary</h2>\n\n<ul class=\"nd-summary\">\n"]
    in_group = False
    odd = True
    for sym in doc.symbols:
        if not _visible(sym, cfg):
            continue
        if sym.category is Category.GROUP:
            if in_group:
                parts.append("\t\t</ul>\n\t</li>\n")
            in_group = True
            odd = True
            parts.append(f"\t{_summary_entry(sym, formatter, 'nd-group')}\n\t\t<ul>\n")
        else:
            indent = "\t\t" if in_group else "\t"
            parts.append(f"{indent}{_summary_entry(sym, formatter, 'odd' if odd else '')}</li>\n")
            odd = not odd
    if in_group:
        parts.append("\t\t</ul>\n\t</li>\n")
    parts.append("</ul>\n")
    return "".join(parts)


def render_symbol(sym, engine):
    level = sym.category.heading_level
    parts = [f'\n<h{level}><a id="{anchor_id(sym)}"></a>{sym.identifier}</h{level}>\n\n']
    if sym.category.shows_code and sym.code_fragment:
        parts.append(f"<code>{html.escape(sym.code_fragment, quote=False)}</code>\n\n")
    parts.append(engine.render(sym.body_lines, sym.parent_identifier))
    return "".join(parts)


def render(doc, cfg=None):
    if cfg is None:
        cfg = RenderConfig()

    formatter = InlineFormatter(make_resolver(doc, cfg))
    engine = MarkupEngine(formatter)

    parts = []
    if doc.intro is not None:
        parts.append(engine.render(doc.intro.body_lines, doc.intro.parent_identifier))
    if cfg.include_summary:
        parts.append(render_summary(doc, cfg, formatter))
    for sym in doc.symbols:
        if _visible(sym, cfg):
            parts.append(render_symbol(sym, engine))
    return "".join(parts)


def find_symbol(doc, name):
    """Look a symbol up by identifier, ``Parent.name`` or anchor."""
    scope, _, ident = name.rpartition(".")
    candidates = doc.symbols if doc.intro is None else (doc.intro,) + doc.symbols
    for sym in candidates:
        if name in (sym.identifier, sym.anchor):
            return sym
        if scope and sym.parent_identifier == scope and sym.identifier == ident:
            return sym
    return None


def render_single(doc, name, cfg=None):
    if cfg is None:
        cfg = RenderConfig()
    sym = find_symbol(doc, name)
    if sym is None:
        return f"<!-- ndlite: symbol not found: {html.escape(name)} -->"
    engine = MarkupEngine(InlineFormatter(make_resolver(doc, cfg)))
    return render_symbol(sym, engine)
