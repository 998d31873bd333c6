"""Tests for utils/hashing.py and utils/text.py."""

from hypothesis import given
from hypothesis import strategies as st

from teamwerx.utils.hashing import fingerprint, sha256_hex
from teamwerx.utils.text import kebab_case


class TestSha256Hex:
    def test_known_digest(self):
        assert sha256_hex("hello") == (
            "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        )

    def test_unicode_encoded_as_utf8(self):
        assert sha256_hex("é") == sha256_hex("é")
        assert len(sha256_hex("日本語")) == 64


class TestFingerprint:
    def test_default_length(self):
        assert fingerprint("hello") == "2cf24dba5fb0a30e"

    def test_custom_size(self):
        assert fingerprint("hello", size=4) == "2cf24dba"
        assert len(fingerprint("hello", size=32)) == 64

    def test_empty_content(self):
        assert fingerprint("") == ""

    def test_whitespace_only_content(self):
        assert fingerprint("  \n\t\n ") == ""

    def test_trims_surrounding_whitespace(self):
        assert fingerprint("\n\n  hello  \n") == fingerprint("hello")

    def test_inner_whitespace_matters(self):
        assert fingerprint("a b") != fingerprint("a  b")

    def test_deterministic(self):
        assert fingerprint("### Requirement: X\n") == fingerprint("### Requirement: X\n")

    @given(st.text())
    def test_whitespace_insensitive_suffix(self, s):
        assert fingerprint(s) == fingerprint(s + "\n\n  ")

    @given(st.text(min_size=1).filter(lambda s: s.strip()))
    def test_non_blank_is_hex(self, s):
        fp = fingerprint(s)
        assert len(fp) == 16
        int(fp, 16)


class TestKebabCase:
    def test_spaces(self):
        assert kebab_case("Password Reset") == "password-reset"

    def test_camel_case(self):
        assert kebab_case("userLoginID") == "user-login-id"

    def test_acronym_prefix(self):
        assert kebab_case("HTMLParser") == "html-parser"

    def test_punctuation_runs_collapse(self):
        assert kebab_case("  some_value+wow ") == "some-value-wow"
        assert kebab_case("Login / Logout!!") == "login-logout"

    def test_digits_kept(self):
        assert kebab_case("OAuth 2 Flow") == "o-auth-2-flow"

    def test_empty_and_symbols(self):
        assert kebab_case("") == ""
        assert kebab_case("   ") == ""
        assert kebab_case("!!!") == ""

    def test_already_kebab(self):
        assert kebab_case("new-feature") == "new-feature"

    @given(st.text())
    def test_output_alphabet(self, s):
        out = kebab_case(s)
        assert out == out.lower()
        assert not out.startswith("-")
        assert not out.endswith("-")
        assert "--" not in out
