"""
MkDocs plugin for generating documentation pages from NaturalDocs-style
and PHPDoc source comments.

This is the main plugin module. It hooks into MkDocs' build lifecycle to
discover source files, parse their doc comments, and render one page per
file plus an overview index.  Cross-file references resolve to the
generated pages of sibling source files.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from dataclasses import dataclass, field
from mkdocs.config import config_options
from mkdocs.config.base import Config as MkDocsConfig
from mkdocs.plugins import BasePlugin
from mkdocs.structure.files import File

from .parser import Document, guess_title, parse_file
from .renderer import RenderConfig, render, render_single

log = logging.getLogger("mkdocs.plugins.ndlite")

_DIRECTIVE_RE = re.compile(
    r"^(?P<indent>[ \t]*):::[ \t]+nd:(?P<directive>autodoc|autosymbol)\s*\n"
    r"(?P<body>(?:(?P=indent)[ \t]+:\w+:.*\n)*)",
    re.MULTILINE,
)
_OPTION_RE = re.compile(r"^\s+:(\w+):\s*(.+)$", re.MULTILINE)

_DEFAULT_EXTENSIONS = [".php", ".inc", ".js", ".c", ".h", ".pl", ".pm", ".sh", ".txt"]


def _flag(value):
    return str(value).strip().lower() in ("true", "yes", "1")


@dataclass
class SourceGroup:
    root: str
    nav_title: str = "Documentation"
    output_dir: str = "docs_reference"
    extensions: list[str] = field(default_factory=lambda: list(_DEFAULT_EXTENSIONS))
    exclude: list[str] = field(default_factory=list)
    generate_index: bool = True
    pages: list[dict] = field(default_factory=list)
    # Runtime state
    discovered: list[str] = field(default_factory=list)
    generated_pages: dict[str, str] = field(default_factory=dict)


class NdliteConfig(MkDocsConfig):
    source_root = config_options.Type(str, default="")
    sources = config_options.Type(list, default=[])
    include_private = config_options.Type(bool, default=False)
    include_summary = config_options.Type(bool, default=True)
    autodoc = config_options.Type(bool, default=True)
    autodoc_output_dir = config_options.Type(str, default="docs_reference")
    autodoc_nav_title = config_options.Type(str, default="Documentation")
    autodoc_extensions = config_options.Type(list, default=list(_DEFAULT_EXTENSIONS))
    autodoc_exclude = config_options.Type(list, default=[])
    autodoc_index = config_options.Type(bool, default=True)
    autodoc_pages = config_options.Type(list, default=[])


def _discover_sources(root, extensions, exclude):
    out = []
    exts = [e if e.startswith(".") else f".{e}" for e in extensions]
    for dirpath, _, fnames in os.walk(root):
        for fn in sorted(fnames):
            _, ext = os.path.splitext(fn)
            if ext.lower() not in exts:
                continue
            rel = os.path.relpath(os.path.join(dirpath, fn), root)
            if any(fnmatch.fnmatch(fn, p) or fnmatch.fnmatch(rel, p) for p in exclude):
                continue
            out.append(rel)
    return sorted(out)


def _source_rel_to_md_uri(rel, output_dir):
    return f"{output_dir}/{rel.replace(os.sep, '/')}.md"


def _served_dir(uri, use_directory_urls=True):
    """Directory a page's HTML is served from, relative to the site root."""
    stem = os.path.splitext(uri)[0]
    if use_directory_urls and os.path.basename(stem) != "index":
        return stem
    return os.path.dirname(stem)


def _base_url(page_uri, output_dir, use_directory_urls=True):
    rel = os.path.relpath(output_dir, _served_dir(page_uri, use_directory_urls) or ".")
    return rel.replace(os.sep, "/") + "/"


class NdlitePlugin(BasePlugin[NdliteConfig]):

    def __init__(self):
        super().__init__()
        self._cache = {}
        self._groups = []
        self._pages = {}
        self._tmpfiles = []
        self._use_dir_urls = True

    # ── Source group configuration ──

    def _build_groups(self, config_dir):
        raw = self.config.get("sources", [])
        if not raw:
            root = self.config.get("source_root", "") or "."
            if not os.path.isabs(root):
                root = os.path.normpath(os.path.join(config_dir, root))
            return [
                SourceGroup(
                    root=root,
                    nav_title=self.config["autodoc_nav_title"],
                    output_dir=self.config["autodoc_output_dir"],
                    extensions=self.config["autodoc_extensions"],
                    exclude=self.config["autodoc_exclude"],
                    generate_index=self.config["autodoc_index"],
                    pages=list(self.config.get("autodoc_pages", [])),
                )
            ]

        groups = []
        for i, entry in enumerate(raw):
            if isinstance(entry, str):
                entry = {"root": entry}
            if not isinstance(entry, dict) or "root" not in entry:
                log.error("ndlite: bad sources[%d], skipping", i)
                continue
            root = entry["root"]
            if not os.path.isabs(root):
                root = os.path.normpath(os.path.join(config_dir, root))
            basename = os.path.basename(root.rstrip("/").rstrip(os.sep)) or "src"
            groups.append(
                SourceGroup(
                    root=root,
                    nav_title=entry.get("nav_title", f"Docs ({basename})"),
                    output_dir=entry.get("output_dir", f"docs_reference/{basename}"),
                    extensions=entry.get("extensions", self.config["autodoc_extensions"]),
                    exclude=entry.get("exclude", self.config["autodoc_exclude"]),
                    generate_index=entry.get("index", self.config["autodoc_index"]),
                    pages=list(entry.get("pages", [])),
                )
            )
        return groups

    def _discover_and_register(self, group):
        group.discovered = []
        group.generated_pages = {}
        if not os.path.isdir(group.root):
            log.error("ndlite: source root missing: %s", group.root)
            return
        group.discovered = _discover_sources(group.root, group.extensions, group.exclude)
        log.info("ndlite: [%s] %d files in %s", group.nav_title, len(group.discovered), group.root)

        for rel in group.discovered:
            uri = _source_rel_to_md_uri(rel, group.output_dir)
            abspath = os.path.normpath(os.path.join(group.root, rel))
            group.generated_pages[uri] = abspath
            self._pages[uri] = (abspath, group)

        if group.generate_index and group.discovered:
            idx = f"{group.output_dir}/index.md"
            group.generated_pages[idx] = "__INDEX__"
            self._pages[idx] = ("__INDEX__", group)

    def _build_nav_tree(self, group):
        nav = []
        if group.generate_index:
            nav.append({"Overview": f"{group.output_dir}/index.md"})
        for page_entry in group.pages:
            if isinstance(page_entry, (dict, str)):
                nav.append(page_entry)
        return nav

    def _inject_nav(self, config):
        top_title = self.config["autodoc_nav_title"]

        if len(self._groups) == 1:
            g = self._groups[0]
            if not g.discovered:
                return
            section = {top_title: self._build_nav_tree(g)}
        else:
            children = [
                {g.nav_title: self._build_nav_tree(g)} for g in self._groups if g.discovered
            ]
            if not children:
                return
            section = {top_title: children}

        nav = config.get("nav")
        if nav is None:
            config["nav"] = [section]
            return
        for i, item in enumerate(nav):
            if isinstance(item, dict) and top_title in item:
                nav[i] = section
                return
        nav.append(section)

    # ── MkDocs lifecycle hooks ──

    def on_config(self, config, **kwargs):
        config_dir = os.path.dirname(config.get("config_file_path", "") or "") or os.getcwd()

        self._cache.clear()
        self._pages.clear()
        self._tmpfiles.clear()
        self._groups = self._build_groups(config_dir)
        self._use_dir_urls = config.get("use_directory_urls", True)

        if not self.config["autodoc"]:
            return config

        for g in self._groups:
            self._discover_and_register(g)
        self._inject_nav(config)

        npages = sum(len(g.discovered) for g in self._groups)
        if npages:
            log.info("ndlite: %d source pages scheduled", npages)
        return config

    def on_files(self, files, *, config, **kwargs):
        for uri in sorted(self._pages):
            try:
                f = File.generated(config, uri, content="")
            except (AttributeError, TypeError):
                f = File(
                    uri,
                    config["docs_dir"],
                    config["site_dir"],
                    config.get("use_directory_urls", True),
                )
                dest = os.path.join(config["docs_dir"], uri)
                os.makedirs(os.path.dirname(dest), exist_ok=True)
                open(dest, "w").close()
                self._tmpfiles.append(dest)
            f.edit_uri = None
            files.append(f)
        return files

    def on_page_markdown(self, markdown, *, page, config, files, **kwargs):
        src_uri = getattr(page.file, "src_uri", None) or page.file.src_path

        if src_uri in self._pages:
            target, group = self._pages[src_uri]
            if target == "__INDEX__":
                return self._mk_index(group)
            return self._mk_page(target, group, src_uri)

        return _DIRECTIVE_RE.sub(lambda m: self._handle_directive(m, src_uri), markdown)

    def on_post_build(self, *, config, **kwargs):
        docs_dir = config["docs_dir"]
        for p in self._tmpfiles:
            try:
                os.remove(p)
            except OSError:
                pass
            d = os.path.dirname(p)
            while d != docs_dir:
                try:
                    os.rmdir(d)
                except OSError:
                    break
                d = os.path.dirname(d)

    # ── Page rendering ──

    def _rcfg(self, page_uri=None, group=None):
        cfg = RenderConfig(
            include_private=self.config["include_private"],
            include_summary=self.config["include_summary"],
        )
        if page_uri and group is not None:
            cfg.document_root = group.root
            cfg.base_url = _base_url(page_uri, group.output_dir, self._use_dir_urls)
            cfg.link_suffix = "/" if self._use_dir_urls else ".html"
        return cfg

    def _mk_page(self, abspath, group, page_uri):
        rel = os.path.relpath(abspath, group.root)
        doc = self._parse(abspath)
        title = guess_title(doc, fallback=os.path.basename(rel))

        header = f"# {title}\n\nSource file: `{rel.replace(os.sep, '/')}`\n\n"
        if doc.intro is None:
            return header + "_No documentation found in this file._"
        body = render(doc, self._rcfg(page_uri, group))
        return header + f'<div class="nd-doc">\n{body}\n</div>\n'

    def _mk_index(self, group):
        lines = [f"# {group.nav_title}", ""]
        nfiles = len(group.discovered)
        nsym = 0
        rows = {}
        for rel in sorted(group.discovered):
            abspath = os.path.normpath(os.path.join(group.root, rel))
            doc = self._parse(abspath)
            count = len(doc.symbols) + (1 if doc.intro is not None else 0)
            nsym += count
            d = os.path.dirname(rel).replace(os.sep, "/")
            title = guess_title(doc, fallback=os.path.basename(rel))
            rows.setdefault(d, []).append((rel, title, count))

        lines += [f"{nfiles} source files, {nsym} documented blocks.", ""]
        lines += ["## Source Files", ""]
        for d in sorted(rows):
            if d:
                lines += [f"### {d}/", ""]
            lines.append("| File | Title | Blocks |")
            lines.append("|------|-------|--------|")
            for rel, title, count in rows[d]:
                uri = _source_rel_to_md_uri(rel, group.output_dir)
                link = uri[len(group.output_dir) + 1 :]
                lines.append(f"| [{os.path.basename(rel)}]({link}) | {title} | {count} |")
            lines.append("")
        return "\n".join(lines)

    def _parse(self, filepath):
        abspath = os.path.normpath(filepath)
        if abspath in self._cache:
            return self._cache[abspath]
        if not os.path.isfile(abspath):
            log.error("ndlite: file not found: %s", abspath)
            return Document(source_path=abspath)
        doc = parse_file(abspath)
        self._cache[abspath] = doc
        return doc

    def _resolve_file(self, path):
        if os.path.isabs(path):
            return path
        for g in self._groups:
            full = os.path.normpath(os.path.join(g.root, path))
            if os.path.isfile(full):
                return full
        if self._groups:
            return os.path.normpath(os.path.join(self._groups[0].root, path))
        return os.path.normpath(path)

    def _group_for(self, abspath):
        for g in self._groups:
            root = os.path.normpath(g.root) + os.sep
            if abspath.startswith(root):
                return g
        return None

    def _handle_directive(self, match, page_uri):
        directive = match.group("directive")
        opts = {}
        for m in _OPTION_RE.finditer(match.group("body")):
            opts[m.group(1)] = m.group(2).strip()
        fpath = opts.get("file", "")
        if not fpath:
            return f"<!-- ndlite: missing :file: for nd:{directive} -->\n"

        abspath = self._resolve_file(fpath)
        doc = self._parse(abspath)
        cfg = self._rcfg(page_uri, self._group_for(abspath))
        if "private" in opts:
            cfg.include_private = _flag(opts["private"])
        if "summary" in opts:
            cfg.include_summary = _flag(opts["summary"])

        if directive == "autodoc":
            return f'<div class="nd-doc">\n{render(doc, cfg)}\n</div>\n'
        name = opts.get("name", "")
        if not name:
            return f"<!-- ndlite: missing :name: for nd:{directive} -->\n"
        return f'<div class="nd-doc">\n{render_single(doc, name, cfg)}\n</div>\n'
