import pytest

from mkdocs_ndlite.parser import Category, Symbol
from mkdocs_ndlite.resolver import ReferenceResolver, literal


def _sym(name, parent="", category=Category.CHILD):
    return Symbol("Method", category, name, parent)


# -- external targets --


class TestExternalTargets:
    def test_email(self):
        assert ReferenceResolver().target("me@example.com") == "mailto:me@example.com"

    def test_url(self):
        assert ReferenceResolver().target("ftp://host/file") == "ftp://host/file"

    def test_www(self):
        assert ReferenceResolver().target("www.example.com") == "http://www.example.com"

    def test_link_markup(self):
        out = ReferenceResolver().resolve("http://a.org/?x=1&y=2")
        assert out == '<a href="http://a.org/?x=1&amp;y=2">http://a.org/?x=1&amp;y=2</a>'


# -- symbol lookups --


class TestInDocument:
    def test_same_scope(self):
        r = ReferenceResolver([_sym("push", "Stack")])
        assert r.target("push", "Stack") == "#Stack_push"

    def test_call_parens(self):
        r = ReferenceResolver([_sym("push", "Stack")])
        assert r.resolve("push()", "Stack") == '<a href="#Stack_push">push()</a>'

    def test_plural(self):
        r = ReferenceResolver([_sym("item", "")])
        assert r.target("items") == "#_item"

    def test_qualified_dot(self):
        r = ReferenceResolver([_sym("push", "Stack")])
        assert r.target("Stack.push") == "#Stack_push"

    def test_qualified_colons(self):
        r = ReferenceResolver([_sym("push", "Stack")])
        assert r.target("Stack::push()") == "#Stack_push"

    def test_qualified_wrong_scope(self):
        r = ReferenceResolver([_sym("push", "Stack")])
        assert r.target("Queue.push") is None

    def test_qualified_plural(self):
        r = ReferenceResolver([_sym("item", "List")])
        assert r.target("List.items") == "#List_item"

    def test_qualified_exact_beats_earlier_plural(self):
        r = ReferenceResolver([_sym("item", "List"), _sym("items", "List")])
        assert r.target("List.items") == "#List_items"

    def test_same_scope_breaks_scan(self):
        r = ReferenceResolver([_sym("name", "A"), _sym("name", "B")])
        assert r.target("name", "A") == "#A_name"

    def test_same_scope_found_later(self):
        r = ReferenceResolver([_sym("name", "A"), _sym("name", "B")])
        assert r.target("name", "B") == "#B_name"

    def test_other_scope_last_candidate_wins(self):
        # characterization: each out-of-scope match overwrites the previous one
        r = ReferenceResolver([_sym("name", "A"), _sym("name", "B")])
        assert r.target("name", "C") == "#B_name"

    def test_same_scope_plural_breaks_scan(self):
        r = ReferenceResolver([_sym("item", "A"), _sym("item", "B")])
        assert r.target("items", "A") == "#A_item"
        assert r.target("items", "B") == "#B_item"

    def test_other_scope_plural_last_candidate_wins(self):
        r = ReferenceResolver([_sym("item", "A"), _sym("item", "B")])
        assert r.target("items", "C") == "#B_item"

    def test_top_level_from_member_scope(self):
        r = ReferenceResolver([_sym("helper", "", Category.GENERIC)])
        assert r.target("helper", "Stack") == "#_helper"

    def test_unresolved_is_literal(self):
        r = ReferenceResolver([_sym("push", "Stack")])
        assert r.resolve("Nonexistent") == "&lt;Nonexistent&gt;"

    def test_literal_escapes(self):
        assert literal("a&b") == "&lt;a&amp;b&gt;"


# -- cross-file lookups --


class TestCrossFile:
    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        self.root = tmp_path
        (tmp_path / "Stack.php").write_text("")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "Queue.inc").write_text("")
        (tmp_path / "sub" / "Stack.txt").write_text("")

    def _r(self, **kw):
        kw.setdefault("document_root", str(self.root))
        kw.setdefault("base_url", "../")
        return ReferenceResolver(**kw)

    def test_disabled_without_base_url(self):
        r = ReferenceResolver(document_root=str(self.root))
        assert not r.cross_file
        assert r.target("Stack") is None

    def test_bare_file(self):
        assert self._r(link_suffix="/").target("Stack") == "../Stack.php/"

    def test_qualified_file(self):
        assert self._r().target("Stack.push") == "../Stack.php#Stack_push"

    def test_without_extension(self):
        assert self._r(include_extension=False, link_suffix=".html").target("Stack") == "../Stack.html"

    def test_base_url_slash_added(self):
        assert self._r(base_url="/docs").target("Stack") == "/docs/Stack.php"

    def test_current_dir_first(self):
        r = self._r(current_dir=str(self.root / "sub"))
        assert r.target("Stack") == "../sub/Stack.txt"

    def test_falls_back_to_root(self):
        r = self._r(current_dir=str(self.root / "sub"))
        assert r.target("Queue") == "../sub/Queue.inc"
        assert self._r().target("Queue") is None

    def test_symbol_wins_over_file(self):
        r = self._r(symbols=[_sym("Stack", "", Category.GROUP)])
        assert r.target("Stack") == "#_Stack"

    def test_missing_directory(self):
        r = self._r(current_dir=str(self.root / "gone"))
        assert r.target("Stack") == "../Stack.php"
