import pytest

from routeprobe import InvalidHostError, check_host_name, normalize_host, unmap_ipv4, wildcard_host


class TestNormalizeHost:
    @pytest.mark.parametrize(
        "raw",
        [
            "www.Example.com/path",
            '"www.Example.com/path"',
            "'www.example.com/path'",
            "https://www.example.com/a?b=c",
            "http://example.com:8080/",
            "example.com",
            "  example.com  ",
        ],
    )
    def test_canonical_hostname(self, raw):
        assert normalize_host(raw) == "example.com"

    def test_wildcard(self):
        assert wildcard_host('"www.Example.com/path"') == "*.example.com"

    def test_keeps_other_subdomains(self):
        assert wildcard_host("https://cdn.www.example.com") == "*.cdn.www.example.com"

    def test_ip_literal(self):
        assert normalize_host("http://203.0.113.7/x") == "203.0.113.7"

    @pytest.mark.parametrize("raw", ["not a url", "", '""', "http://", "http://bad host/"])
    def test_invalid(self, raw):
        with pytest.raises(InvalidHostError) as exc:
            normalize_host(raw)
        assert exc.value.value == raw

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            wildcard_host("not a url")

    def test_unbalanced_quote_not_stripped(self):
        with pytest.raises(InvalidHostError):
            normalize_host('"example.com')


class TestCheckHostName:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("example.com", "dns"),
            ("c.test", "dns"),
            ("localhost", "dns"),
            ("_dmarc.example.com", "dns"),
            ("example.com.", "dns"),
            ("10.0.0.9", "ipv4"),
            ("2001:db8::1", "ipv6"),
            ("[2001:db8::1]", "ipv6"),
            ("", "unknown"),
            ("bad host", "unknown"),
            ("-bad.example", "unknown"),
            ("bad-.example", "unknown"),
            ("a..b", "unknown"),
            ("a" * 64 + ".com", "unknown"),
            ("<unknown>", "unknown"),
        ],
    )
    def test_classification(self, name, expected):
        assert check_host_name(name) == expected


class TestUnmapIPv4:
    def test_mapped(self):
        assert unmap_ipv4("::ffff:192.0.2.5") == "192.0.2.5"

    def test_mapped_uppercase_hex_form(self):
        assert unmap_ipv4("::FFFF:c000:0205") == "192.0.2.5"

    @pytest.mark.parametrize("value", ["192.0.2.5", "2001:db8::1", "example.com", ""])
    def test_unchanged(self, value):
        assert unmap_ipv4(value) == value
