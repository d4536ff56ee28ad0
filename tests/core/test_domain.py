"""Tests for hostname reduction."""

import pytest

from cookie_keeper.core.domain import (
    heuristic_suffix_rule,
    hostname_from_url,
    normalize_hostname,
    public_suffix_rule,
    reduce_hostname,
)
from cookie_keeper.core.psl_loader import clear_cache


class TestNormalizeHostname:
    """Tests for hostname normalization."""

    def test_lowercase(self):
        """Hostnames are lower-cased."""
        assert normalize_hostname("WWW.Apple.COM") == "www.apple.com"

    def test_strips_one_leading_dot(self):
        """Exactly one leading dot is removed."""
        assert normalize_hostname(".example.com") == "example.com"
        assert normalize_hostname("..example.com") == ".example.com"

    def test_strips_trailing_root_dot(self):
        """Fully qualified form loses its root dot."""
        assert normalize_hostname("example.com.") == "example.com"

    def test_strips_whitespace(self):
        """Surrounding whitespace is removed."""
        assert normalize_hostname("  example.com\n") == "example.com"


class TestReduceHostname:
    """Tests for reduce_hostname with the default heuristic."""

    @pytest.mark.parametrize(
        "hostname, expected",
        [
            ("www.apple.com", "apple.com"),
            ("careers.bbc.co.uk", "bbc.co.uk"),
            ("a.b.c.example.org", "example.org"),
            ("sub.example.com", "example.com"),
            ("www.example.com.au", "example.com.au"),
            ("blog.example.co.uk", "example.co.uk"),
            ("news.bbc.co.uk", "bbc.co.uk"),
            ("app.service.co.jp", "service.co.jp"),
        ],
    )
    def test_known_reductions(self, hostname, expected):
        """Common hostnames reduce to their meaningful domain."""
        assert reduce_hostname(hostname) == expected

    def test_two_labels_unchanged(self):
        """Hostnames with two labels come back as they are."""
        assert reduce_hostname("apple.com") == "apple.com"

    def test_single_label_unchanged(self):
        """Single-label hosts come back as they are."""
        assert reduce_hostname("localhost") == "localhost"

    def test_empty_hostname(self):
        """Empty input reduces to empty output."""
        assert reduce_hostname("") == ""
        assert reduce_hostname(".") == ""

    def test_leading_dot_cookie_domain(self):
        """Cookie domains with a leading dot reduce like plain hosts."""
        assert reduce_hostname(".ads.tracker.net") == "tracker.net"
        assert reduce_hostname(".bbc.co.uk") == "bbc.co.uk"

    def test_case_insensitive(self):
        """Upper-case input reduces to lower-case output."""
        assert reduce_hostname("WWW.Apple.COM") == "apple.com"

    def test_unrecognized_prefix_kept_under_cctld(self):
        """Only well-known prefixes are stripped under a ccTLD + SLD."""
        assert reduce_hostname("shop.example.co.uk") == "shop.example.co.uk"

    def test_nested_known_prefixes(self):
        """Stacked well-known prefixes are all stripped."""
        assert reduce_hostname("careers.news.bbc.co.uk") == "bbc.co.uk"
        assert reduce_hostname("www.www.bbc.co.uk") == "bbc.co.uk"

    def test_prefix_alone_over_cctld(self):
        """A known prefix directly above the suffix leaves the suffix."""
        assert reduce_hostname("www.co.uk") == "co.uk"

    def test_long_tld_is_not_cctld(self):
        """A three-letter last label is not treated as a ccTLD."""
        assert reduce_hostname("shop.example.com") == "example.com"

    def test_long_sld_is_not_generic(self):
        """A second-to-last label longer than three characters keeps two labels."""
        assert reduce_hostname("a.b.google.de") == "google.de"

    def test_ip_literal_not_special_cased(self):
        """IP literals go through the same label heuristic."""
        # "1.10" looks like an SLD + ccTLD pair and "192" is no known prefix
        assert reduce_hostname("192.168.1.10") == "192.168.1.10"
        assert reduce_hostname("10.20.30.400") == "30.400"

    @pytest.mark.parametrize(
        "hostname",
        [
            "www.apple.com",
            "careers.bbc.co.uk",
            "careers.news.bbc.co.uk",
            "a.b.c.example.org",
            ".ads.tracker.net",
            "..weird..co.uk",
            "www..uk",
            "x.com..",
            "shop.example.co.uk",
            "192.168.1.10",
            "localhost",
            " .Mixed.Case.Example.COM. ",
            "",
        ],
    )
    def test_idempotent(self, hostname):
        """Reducing twice gives the same result as reducing once."""
        once = reduce_hostname(hostname)
        assert reduce_hostname(once) == once

    def test_deterministic(self):
        """The same input always yields the same output."""
        results = {reduce_hostname("careers.bbc.co.uk") for _ in range(10)}
        assert results == {"bbc.co.uk"}


class TestHeuristicSuffixRule:
    """Tests for the label-length heuristic."""

    def test_plain_tld_strips_to_two(self):
        """Everything but the last two labels is stripped."""
        assert heuristic_suffix_rule(["a", "b", "example", "org"]) == 2

    def test_cctld_with_known_prefix(self):
        """A known first label is stripped under a ccTLD + SLD."""
        assert heuristic_suffix_rule(["careers", "bbc", "co", "uk"]) == 1

    def test_cctld_without_known_prefix(self):
        """Unknown first labels are kept under a ccTLD + SLD."""
        assert heuristic_suffix_rule(["bbc", "co", "uk"]) == 0

    def test_short_host(self):
        """Nothing is stripped from two-label hosts."""
        assert heuristic_suffix_rule(["apple", "com"]) == 0


class TestPublicSuffixRule:
    """Tests for swapping in the Public Suffix List rule."""

    @pytest.fixture(autouse=True)
    def clear_psl_cache(self):
        """Clear PSL cache before and after each test."""
        clear_cache()
        yield
        clear_cache()

    def test_reduces_unknown_prefix_under_cctld(self):
        """The PSL rule reduces hosts the heuristic leaves alone."""
        assert reduce_hostname("shop.example.co.uk", public_suffix_rule) == "example.co.uk"

    def test_reduces_plain_tld(self):
        """Plain TLD hosts keep suffix plus one label."""
        assert reduce_hostname("a.b.example.org", public_suffix_rule) == "example.org"

    def test_platform_suffix(self):
        """Hosting platform suffixes keep the user's label."""
        assert reduce_hostname("docs.someone.github.io", public_suffix_rule) == "someone.github.io"

    def test_suffix_itself(self):
        """A bare public suffix is returned unchanged."""
        assert reduce_hostname("co.uk", public_suffix_rule) == "co.uk"

    def test_unknown_tld_falls_back_to_two_labels(self):
        """Hosts with no known suffix keep their last two labels."""
        assert reduce_hostname("a.b.example.zzz", public_suffix_rule) == "example.zzz"

    @pytest.mark.parametrize(
        "hostname",
        ["shop.example.co.uk", "docs.someone.github.io", "a.b.example.zzz", "co.uk"],
    )
    def test_idempotent(self, hostname):
        """The PSL rule is idempotent too."""
        once = reduce_hostname(hostname, public_suffix_rule)
        assert reduce_hostname(once, public_suffix_rule) == once


class TestHostnameFromUrl:
    """Tests for extracting the current site from a tab URL."""

    def test_https_url(self):
        """Hostname of a web URL is returned."""
        assert hostname_from_url("https://www.apple.com/mac/") == "www.apple.com"

    def test_port_is_dropped(self):
        """Ports are not part of the hostname."""
        assert hostname_from_url("http://example.com:8080/") == "example.com"

    def test_missing_url(self):
        """No URL means no hostname."""
        assert hostname_from_url(None) is None
        assert hostname_from_url("") is None

    def test_non_web_scheme(self):
        """Browser-internal pages have no site."""
        assert hostname_from_url("chrome://extensions") is None
        assert hostname_from_url("file:///tmp/index.html") is None

    def test_malformed_url(self):
        """Malformed URLs are swallowed, not raised."""
        assert hostname_from_url("http://[::1") is None
        assert hostname_from_url("not a url") is None
