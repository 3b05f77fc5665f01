"""
mkdocs-ndlite — NaturalDocs-style source documentation for MkDocs.

Extracts NaturalDocs and PHPDoc comments from source files and plain
documentation files and renders them as browsable HTML pages in MkDocs,
with summaries, anchors and cross-file references.
"""

__version__ = "1.0.0"
