"""
Reference resolution for ``<...>`` links inside doc comments.

References are matched against the symbols of the current document with a
plain linear scan, so that ties are broken by source order.  Unknown names
can fall back to a sibling source file found on disk.
"""

from __future__ import annotations

import html
import logging
import os
import re

log = logging.getLogger("mkdocs.plugins.ndlite")

_EMAIL_RE = re.compile(r"@")
_URL_RE = re.compile(r"^[^\s:]+:/", re.IGNORECASE)
_WWW_RE = re.compile(r"^www\.", re.IGNORECASE)
_QUALIFIED_RE = re.compile(r"^([^:/]+)(?:::|[/.])([^(]+)(?:\(\))?$")
_BARE_RE = re.compile(r"^([^()]+)(?:\(\))?$")


def _link(href, text):
    return f'<a href="{html.escape(href)}">{html.escape(text, quote=False)}</a>'


def literal(ref):
    return f"&lt;{html.escape(ref, quote=False)}&gt;"


class ReferenceResolver:
    """Turn reference strings into hyperlinks.

    Cross-file links are only attempted when both ``document_root`` and
    ``base_url`` are set.  ``current_dir`` is probed before the root.
    """

    def __init__(
        self,
        symbols=(),
        *,
        document_root=None,
        base_url=None,
        include_extension=True,
        link_suffix="",
        current_dir=None,
    ):
        self.symbols = tuple(symbols)
        self.document_root = document_root or ""
        self.base_url = base_url or ""
        self.include_extension = include_extension
        self.link_suffix = link_suffix or ""
        self.current_dir = current_dir or ""

    @property
    def cross_file(self):
        return bool(self.document_root and self.base_url)

    def target(self, ref, scope=""):
        """Return the href for ``ref``, or None when it cannot be resolved."""
        if _EMAIL_RE.search(ref):
            return f"mailto:{ref}"
        if _URL_RE.match(ref):
            return ref
        if _WWW_RE.match(ref):
            return f"http://{ref}"

        m = _QUALIFIED_RE.match(ref)
        if m:
            return self._qualified(m.group(1), m.group(2))

        m = _BARE_RE.match(ref)
        if m:
            return self._bare(m.group(1), scope)
        return None

    def resolve(self, ref, scope=""):
        href = self.target(ref, scope)
        if href is None:
            return literal(ref)
        return _link(href, ref)

    # -- in-document lookups --

    def _qualified(self, scope, name):
        best = None
        for sym in self.symbols:
            if sym.parent_identifier != scope:
                continue
            if sym.identifier == name:
                best = f"#{scope}_{name}"
                break
            # plural forms, unless an exact match turns up later
            if best is None and sym.identifier + "s" == name:
                best = f"#{scope}_{sym.identifier}"
        if best is None:
            hit = self._probe(scope)
            if hit is not None:
                best = f"{hit}#{scope}_{name}"
        return best

    def _bare(self, name, scope):
        best = None
        for sym in self.symbols:
            if sym.identifier == name:
                if sym.parent_identifier == scope:
                    best = f"#{scope}_{name}"
                    break
                best = f"#{sym.parent_identifier}_{name}"
            if sym.identifier + "s" == name:
                if sym.parent_identifier == scope:
                    best = f"#{scope}_{sym.identifier}"
                    break
                best = f"#{sym.parent_identifier}_{sym.identifier}"
        if best is None:
            best = self._probe(name)
        return best

    # -- cross-file lookups --

    def _find_file(self, directory, stem):
        try:
            names = sorted(os.listdir(directory))
        except OSError as exc:
            log.debug("ndlite: cannot list %s: %s", directory, exc)
            return None
        for fn in names:
            if os.path.splitext(fn)[0] != stem:
                continue
            path = os.path.join(directory, fn)
            if os.path.isfile(path):
                return path
        return None

    def _probe(self, stem):
        if not self.cross_file or not stem or os.sep in stem:
            return None
        for directory in (self.current_dir, self.document_root):
            if not directory:
                continue
            path = self._find_file(directory, stem)
            if path is not None:
                return self._file_url(path)
        return None

    def _file_url(self, path):
        rel = os.path.relpath(path, self.document_root).replace(os.sep, "/")
        if not self.include_extension:
            rel = os.path.splitext(rel)[0]
        base = self.base_url if self.base_url.endswith("/") else self.base_url + "/"
        return f"{base}{rel}{self.link_suffix}"
