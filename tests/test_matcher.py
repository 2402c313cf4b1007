"""Tests for include filter compilation and the blacklist/hidden rules."""

import pytest

from scomp.errors import InvalidIncludeFilter
from scomp.matcher import (
    BLACKLIST,
    PathMatcher,
    compile_filter,
    extension_of,
    is_blacklisted,
    is_hidden,
    normalize_filter,
)


class TestNormalizeFilter:
    def test_bare_relative_is_anchored(self):
        assert normalize_filter("*.txt") == "./*.txt"
        assert normalize_filter("static/**/*.js") == "./static/**/*.js"

    def test_explicit_relative_untouched(self):
        assert normalize_filter("./a/*.css") == "./a/*.css"
        assert normalize_filter("../a/*.css") == "../a/*.css"

    def test_absolute_untouched(self):
        assert normalize_filter("/srv/www/*.html") == "/srv/www/*.html"


class TestCompileFilter:
    def test_star_does_not_cross_directories(self):
        rx = compile_filter("./*.txt")
        assert rx.fullmatch("./a.txt")
        assert not rx.fullmatch("./sub/a.txt")

    def test_double_star_matches_any_depth(self):
        rx = compile_filter("./**/*.txt")
        assert rx.fullmatch("./a.txt")
        assert rx.fullmatch("./x/y/z/a.txt")
        assert not rx.fullmatch("./x/a.css")

    def test_question_mark_is_one_character(self):
        rx = compile_filter("./?.js")
        assert rx.fullmatch("./a.js")
        assert not rx.fullmatch("./ab.js")
        assert not rx.fullmatch(".//.js")

    def test_character_class_and_negation(self):
        assert compile_filter("./[ab].txt").fullmatch("./a.txt")
        assert not compile_filter("./[ab].txt").fullmatch("./c.txt")
        assert compile_filter("./[!ab].txt").fullmatch("./c.txt")
        assert not compile_filter("./[!ab].txt").fullmatch("./a.txt")

    def test_brace_alternation(self):
        rx = compile_filter("./*.{css,js}")
        assert rx.fullmatch("./site.css")
        assert rx.fullmatch("./app.js")
        assert not rx.fullmatch("./index.html")

    def test_dots_are_literal(self):
        assert not compile_filter("./a.txt").fullmatch("./abtxt")

    def test_case_insensitive(self):
        assert not compile_filter("./*.txt").fullmatch("./A.TXT")
        assert compile_filter("./*.txt", case_sensitive=False).fullmatch("./A.TXT")

    @pytest.mark.parametrize("bad", ["./[abc.txt", "./{a,b.txt", "./a}.txt", "./[z-a].txt"])
    def test_malformed_filter_raises(self, bad):
        with pytest.raises(InvalidIncludeFilter):
            compile_filter(bad)


class TestBlacklist:
    def test_blacklist_is_sorted(self):
        assert list(BLACKLIST) == sorted(BLACKLIST)

    def test_known_extensions_rejected_any_case(self):
        assert is_blacklisted("./a.gz")
        assert is_blacklisted("./a.BR")
        assert is_blacklisted("./img/photo.WebP")

    def test_plain_files_accepted(self):
        assert not is_blacklisted("./a.txt")
        assert not is_blacklisted("./Makefile")

    def test_extra_extensions(self):
        assert is_blacklisted("./a.foo", extra=("foo",))

    def test_extension_of_ignores_directory_dots(self):
        assert extension_of("./v1.2/README") == ""
        assert extension_of("./a.tar.gz") == "gz"


class TestHidden:
    def test_hidden_file(self):
        assert is_hidden("./.hidden.txt")

    def test_hidden_directory(self):
        assert is_hidden("./.git/config.txt")

    def test_navigation_components_are_not_hidden(self):
        assert not is_hidden("./a.txt")
        assert not is_hidden("../site/a.txt")


class TestPathMatcher:
    def test_accepts_matching_file(self):
        m = PathMatcher(["*.txt"])
        assert m.accepts("./a.txt")

    def test_rejects_hidden_even_if_glob_matches(self):
        m = PathMatcher(["*.txt"])
        assert m.matches("./.hidden.txt")
        assert not m.accepts("./.hidden.txt")

    def test_rejects_blacklisted_even_if_glob_matches(self):
        m = PathMatcher(["*"])
        assert m.matches("./a.gz")
        assert not m.accepts("./a.gz")

    def test_any_of_several_filters(self):
        m = PathMatcher(["*.css", "js/*.js"])
        assert m.accepts("./a.css")
        assert m.accepts("./js/app.js")
        assert not m.accepts("./app.js")

    def test_bad_filter_fails_at_construction(self):
        with pytest.raises(InvalidIncludeFilter):
            PathMatcher(["*.txt", "[oops"])
