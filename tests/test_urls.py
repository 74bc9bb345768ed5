from __future__ import annotations

import pytest

from app.core.errors import AnalysisStage, InvalidURLError
from app.services.analysis.urls import host_tag, normalize_url, placeholder_image_url


class TestNormalizeUrl:
    def test_bare_domain_gets_https(self):
        assert normalize_url("example.com") == "https://example.com"

    def test_whitespace_is_stripped(self):
        assert normalize_url("  https://example.com/path?q=1  ") == "https://example.com/path?q=1"

    def test_http_is_kept(self):
        assert normalize_url("http://example.com") == "http://example.com"

    def test_protocol_relative(self):
        assert normalize_url("//example.com/x") == "https://example.com/x"

    def test_idn_host(self):
        assert normalize_url("bücher.de") == "https://bücher.de"

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("https://intranet/wiki", "https://intranet/wiki"),
            ("docs_site.example.com", "https://docs_site.example.com"),
        ],
    )
    def test_single_label_and_underscore_hosts(self, raw, expected):
        assert normalize_url(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        ["", "   ", "not a url", "ftp://example.com", "https://", "https://exa mple.com",
         "example.com:abc"],
    )
    def test_invalid(self, raw):
        with pytest.raises(InvalidURLError) as exc_info:
            normalize_url(raw)
        assert exc_info.value.stage is AnalysisStage.VALIDATING_URL

    @pytest.mark.parametrize(
        "raw",
        ["localhost:8000", "http://127.0.0.1/", "http://10.0.0.5", "http://192.168.1.1",
         "http://169.254.169.254/latest/meta-data", "http://[::1]/", "printer.local"],
    )
    def test_private_hosts_blocked(self, raw):
        with pytest.raises(InvalidURLError):
            normalize_url(raw)

    def test_private_hosts_allowed_when_configured(self):
        assert normalize_url("localhost:8000", allow_private=True) == "https://localhost:8000"
        assert normalize_url("http://10.0.0.5", allow_private=True) == "http://10.0.0.5"

    def test_public_ip_allowed(self):
        assert normalize_url("http://93.184.216.34/") == "http://93.184.216.34/"


class TestPlaceholders:
    def test_placeholder_is_deterministic(self):
        first = placeholder_image_url("https://example.com")
        assert first == placeholder_image_url("https://example.com")
        assert first != placeholder_image_url("https://example.org")
        assert first.startswith("https://picsum.photos/seed/")
        assert first.endswith("/600/400")

    def test_placeholder_base(self):
        assert placeholder_image_url("https://a.example", "https://img.example/seed/").startswith(
            "https://img.example/seed/"
        )

    def test_host_tag_strips_www(self):
        assert host_tag("https://WWW.Example.com/page") == "example.com"
