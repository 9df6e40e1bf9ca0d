"""Tests for hostname normalization, base-domain splitting and matching rules."""

from types import SimpleNamespace

from credvault.vault import domains


def _entry(domain, username="alice"):
    return SimpleNamespace(domain=domain, username=username)


class TestNormalize:

    def test_lowercases_and_trims(self):
        assert domains.normalize("  EXAMPLE.com ") == "example.com"

    def test_leaves_inner_structure(self):
        assert domains.normalize("Sub.Example.COM") == "sub.example.com"


class TestSplitBase:

    def test_deep_subdomain(self):
        assert domains.split_base("a.b.example.com") == ("a.b", "example.com")

    def test_two_labels(self):
        assert domains.split_base("example.com") == ("", "example.com")

    def test_single_label(self):
        assert domains.split_base("localhost") == ("", "localhost")

    def test_country_code_second_level_is_misclassified(self):
        # Naive two-label rule, no public suffix list
        assert domains.split_base("shop.example.co.uk") == ("shop.example", "co.uk")

    def test_accessors(self):
        assert domains.get_subdomain("www.example.com") == "www"
        assert domains.get_base_domain("www.example.com") == "example.com"


class TestMatchRules:

    def test_exact(self):
        assert domains.matches_exact("Example.com", " example.COM ")
        assert not domains.matches_exact("example.com", "example.org")

    def test_strict_match_normalizes(self):
        assert domains.matches_domain("example.com", "EXAMPLE.com ")

    def test_strict_match_does_not_widen_to_subdomains(self):
        assert not domains.matches_domain("example.com", "sub.example.com")
        assert not domains.matches_domain("sub.example.com", "example.com")

    def test_loose_match_accepts_same_base(self):
        assert domains.matches_domain_loose("example.com", "sub.example.com")
        assert domains.matches_domain_loose("login.example.com", "www.example.com")

    def test_loose_match_rejects_other_base(self):
        assert not domains.matches_domain_loose("example.com", "example.org")

    def test_stored_domain_not_mutated(self):
        entry = _entry(" Example.COM ")
        domains.filter_by_domain([entry], "example.com")
        assert entry.domain == " Example.COM "


class TestFilters:

    def test_filter_by_domain(self):
        a, b = _entry("example.com"), _entry("other.com", "bob")
        assert domains.filter_by_domain([a, b], "example.com") == [a]
        assert domains.filter_by_domain([a, b], "sub.example.com") == []

    def test_first_by_domain_and_username(self):
        a = _entry("example.com", "alice")
        b = _entry("www.example.com", "bob")
        assert domains.first_by_domain_and_username([a, b], "login.example.com", "bob") is b
        assert domains.first_by_domain_and_username([a, b], "example.com", "carol") is None

    def test_first_by_domain_and_username_exact_username(self):
        a = _entry("example.com", "Alice")
        assert domains.first_by_domain_and_username([a], "example.com", "alice") is None


class TestUrlHelpers:

    def test_extract_domain(self):
        assert domains.extract_domain("https://Sub.Example.com:8443/login?x=1") == "sub.example.com"

    def test_extract_domain_invalid(self):
        assert domains.extract_domain("not a url") == ""
        assert domains.extract_domain("") == ""

    def test_extract_full_url_drops_query_and_fragment(self):
        assert domains.extract_full_url("https://example.com/login?next=/home#top") == (
            "https://example.com/login"
        )

    def test_extract_full_url_root(self):
        assert domains.extract_full_url("https://example.com") == "https://example.com/"

    def test_extract_full_url_keeps_port(self):
        assert domains.extract_full_url("http://localhost:8080/a") == "http://localhost:8080/a"

    def test_extract_full_url_invalid(self):
        assert domains.extract_full_url("example.com/login") == ""

    def test_is_same_domain(self):
        assert domains.is_same_domain("https://a.example.com/x", "http://a.example.com/y")
        assert not domains.is_same_domain("https://a.example.com", "https://b.example.com")

    def test_is_valid_domain(self):
        assert domains.is_valid_domain("example.com")
        assert domains.is_valid_domain("sub.example-site.com")
        assert not domains.is_valid_domain("not a domain")
        assert not domains.is_valid_domain("-bad.com")
        assert not domains.is_valid_domain("example.com\n")

    def test_domain_key(self):
        assert domains.domain_key("example.com", "alice") == "example.com:alice"
