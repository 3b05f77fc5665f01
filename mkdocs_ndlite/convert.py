#!/usr/bin/env python3
"""
Render documented source files to standalone HTML pages.

Usage:
    python -m mkdocs_ndlite.convert src/
    python -m mkdocs_ndlite.convert src/lib.php --out build/ --private
    python -m mkdocs_ndlite.convert src/ --ext .php .inc --dry-run
"""

import argparse
import html
import os
import sys

from .parser import guess_title, parse_file
from .renderer import RenderConfig, render

STYLESHEET = """\
/* Make links less intrusive in text flow */
.nd-doc a { text-decoration: none; }
.nd-doc a:hover { text-decoration: underline; }

/* Titles */
.nd-doc h2 { border-bottom: 2px solid black; font-variant: small-caps; padding-left: 1em; }
.nd-doc h3 { border-bottom: 1px solid #808080; padding-left: 2em; }

/* Code blocks */
.nd-doc pre {
\tmargin: 0 1em 0 2em;
\tpadding: 1em;
\tborder: 1px solid #c0c0c0;
\tborder-left: 6px solid #c0c0c0;
\tcolor: #606060;
}

/* Definition lists */
.nd-doc dt { color: #606060; font-family: monospace; }
.nd-doc dd { margin-bottom: 1em; }

/* Prototype code */
.nd-doc code {
\tdisplay: block;
\tfont-family: monospace;
\tborder: 1px solid #c0c0c0;
\tbackground-color: #f8f8f8;
\tmargin: 0.5em 4em 1em 4em;
\tpadding: 0.5em 1em 0.5em 1em;
}

/* Summary */
.nd-doc .nd-summary {
\tpadding: 1em 1em 0.5em 2em;
\tmargin: 0 4em 0 4em;
\tbackground-color: #f8f8f8;
\tborder: 1px solid #c0c0c0;
}
.nd-doc .nd-summary ul { margin-left: 0; padding-left: 2em; }
.nd-doc .nd-summary li { list-style-type: none; margin-left: 0; padding-left: 0; clear: both; }
.nd-doc .nd-summary li.nd-group ul { margin: 0.5em 0 1em 0; }
.nd-doc .nd-summary a { display: block; float: left; width: 20em; }
.nd-doc .nd-summary .nd-abstract a { width: auto; display: inline; float: none; }
.nd-doc .nd-summary li.nd-group a { font-weight: bold; font-variant: small-caps; width: 18em; }
.nd-doc .nd-summary li.nd-group li a { font-weight: normal; font-variant: normal; width: 16em; }
.nd-doc .nd-summary li.odd { background-color: #eaeaea; }
"""

_PAGE = """\
<html>
\t<head>
\t\t<title>{title}</title>
<style>
{css}</style>
\t</head>
\t<body>
\t\t<div class="nd-doc">
\t\t\t<h1>{title}</h1>
{body}
\t\t</div>
\t</body>
</html>
"""


def render_page(path, cfg, fallback_title=None):
    doc = parse_file(path)
    title = guess_title(doc, fallback=fallback_title or os.path.basename(path))
    return _PAGE.format(title=title, css=STYLESHEET, body=render(doc, cfg))


def convert_file(path, root, out_dir, *, include_private=False, include_summary=True,
                 ext_links=True, dry_run=False):
    """Render one source file below ``root`` into ``out_dir``.

    Returns the path of the page written (or that would be written).
    """
    rel = os.path.relpath(path, root)
    dest = os.path.join(out_dir, rel + ".html")

    cfg = RenderConfig(include_private=include_private, include_summary=include_summary)
    if ext_links:
        base = os.path.relpath(out_dir, os.path.dirname(dest)).replace(os.sep, "/")
        cfg.document_root = root
        cfg.base_url = base + "/"
        cfg.link_suffix = ".html"

    page = render_page(path, cfg, fallback_title=html.escape(rel))
    if dry_run:
        return dest

    os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
    with open(dest, "w", encoding="utf-8") as f:
        f.write(page)
    return dest


def main(argv=None):
    p = argparse.ArgumentParser(description="Render NaturalDocs/PHPDoc comments to HTML pages")
    p.add_argument("path", help="File or directory to render")
    p.add_argument("--out", default="ndlite-html", help="Output directory (default: ndlite-html)")
    p.add_argument(
        "--ext",
        nargs="+",
        default=[".php", ".inc", ".js", ".c", ".h", ".pl", ".pm", ".sh", ".txt"],
        help="File extensions to process when rendering a directory",
    )
    p.add_argument("--private", action="store_true", help="Include private symbols")
    p.add_argument("--no-summary", action="store_true", help="Omit the summary section")
    p.add_argument(
        "--no-ext-links", action="store_true", help="Do not link references to other files"
    )
    p.add_argument(
        "--dry-run", action="store_true", help="Show what would be written without writing"
    )
    args = p.parse_args(argv)

    target = args.path
    exts = set(e if e.startswith(".") else f".{e}" for e in args.ext)

    files = []
    if os.path.isfile(target):
        root = os.path.dirname(os.path.abspath(target))
        files.append(os.path.abspath(target))
    elif os.path.isdir(target):
        root = os.path.abspath(target)
        for dirpath, _, fnames in os.walk(root):
            for fn in sorted(fnames):
                _, ext = os.path.splitext(fn)
                if ext.lower() in exts:
                    files.append(os.path.join(dirpath, fn))
    else:
        print(f"error: {target} not found", file=sys.stderr)
        sys.exit(1)

    for fpath in sorted(files):
        dest = convert_file(
            fpath,
            root,
            args.out,
            include_private=args.private,
            include_summary=not args.no_summary,
            ext_links=not args.no_ext_links,
            dry_run=args.dry_run,
        )
        tag = "[dry-run] " if args.dry_run else ""
        print(f"{tag}rendered: {fpath} -> {dest}")

    print(f"\n{len(files)} files {'would be ' if args.dry_run else ''}rendered")


if __name__ == "__main__":
    main()
