"""Tests for postman_core.url_builder.

Tests cover:
- Form-style percent-encoding (unreserved set, space as '+', UTF-8 bytes)
- Raw URL precedence over structured parts
- Structured assembly: protocol default, host labels, path, query
"""

import pytest

from postman_core.errors import MissingHostError, MissingUrlError
from postman_core.models import QueryParam, Url
from postman_core.url_builder import build_query_string, build_url, percent_encode


class TestPercentEncode:
    def test_unreserved_characters_unchanged(self) -> None:
        text = "AZaz09-_.~"
        assert percent_encode(text) == text

    def test_space_becomes_plus(self) -> None:
        assert percent_encode("a b") == "a+b"

    def test_reserved_characters_encoded_uppercase(self) -> None:
        assert percent_encode("c&d") == "c%26d"
        assert percent_encode("/?=#") == "%2F%3F%3D%23"

    def test_plus_is_encoded(self) -> None:
        """A literal '+' must not be confused with an encoded space."""
        assert percent_encode("1+1") == "1%2B1"

    def test_non_ascii_encoded_per_utf8_byte(self) -> None:
        assert percent_encode("é") == "%C3%A9"
        assert percent_encode("日") == "%E6%97%A5"

    def test_empty_string(self) -> None:
        assert percent_encode("") == ""


class TestBuildUrlRaw:
    def test_missing_url(self) -> None:
        with pytest.raises(MissingUrlError, match="URL is required"):
            build_url(None)

    def test_raw_returned_verbatim(self) -> None:
        assert build_url(Url(raw="https://api.example.com/v1?q=a b")) == "https://api.example.com/v1?q=a b"

    def test_raw_wins_over_structured_parts(self) -> None:
        url = Url(
            raw="https://raw.example.com/x",
            protocol="ftp",
            host=["other", "example", "com"],
            path=["ignored"],
            query=[QueryParam(key="k", value="v")],
        )
        assert build_url(url) == "https://raw.example.com/x"

    def test_raw_is_not_validated(self) -> None:
        assert build_url(Url(raw="not a url")) == "not a url"

    def test_empty_raw_falls_back_to_structured(self) -> None:
        url = Url(raw="", host=["example", "com"])
        assert build_url(url) == "http://example.com"


class TestBuildUrlStructured:
    def test_missing_host(self) -> None:
        with pytest.raises(MissingHostError, match="Host is required"):
            build_url(Url(path=["users"]))

    def test_default_protocol_and_host_labels(self) -> None:
        assert build_url(Url(host=["api", "example", "com"])) == "http://api.example.com"

    def test_explicit_protocol(self) -> None:
        assert build_url(Url(protocol="https", host=["example", "com"])) == "https://example.com"

    def test_path_segments_joined(self) -> None:
        url = Url(host=["example", "com"], path=["v1", "users", "42"])
        assert build_url(url) == "http://example.com/v1/users/42"

    def test_empty_path_list_adds_nothing(self) -> None:
        assert build_url(Url(host=["example", "com"], path=[])) == "http://example.com"

    def test_path_of_empty_segment_adds_nothing(self) -> None:
        assert build_url(Url(host=["example", "com"], path=[""])) == "http://example.com"

    def test_trailing_empty_segment_keeps_trailing_slash(self) -> None:
        url = Url(host=["example", "com"], path=["users", ""])
        assert build_url(url) == "http://example.com/users/"

    def test_query_encoded_and_prefixed(self) -> None:
        url = Url(
            host=["example", "com"],
            path=["search"],
            query=[QueryParam(key="a b", value="c&d")],
        )
        assert build_url(url) == "http://example.com/search?a+b=c%26d"

    def test_query_order_and_duplicates_preserved(self) -> None:
        url = Url(
            host=["example", "com"],
            query=[
                QueryParam(key="z", value="1"),
                QueryParam(key="a", value="2"),
                QueryParam(key="z", value="3"),
            ],
        )
        assert build_url(url) == "http://example.com?z=1&a=2&z=3"

    def test_disabled_and_valueless_params_skipped(self) -> None:
        url = Url(
            host=["example", "com"],
            query=[
                QueryParam(key="off", value="1", disabled=True),
                QueryParam(key="novalue"),
                QueryParam(key="on", value="2", disabled=False),
            ],
        )
        assert build_url(url) == "http://example.com?on=2"

    def test_all_params_skipped_means_no_question_mark(self) -> None:
        url = Url(
            host=["example", "com"],
            query=[QueryParam(key="off", value="1", disabled=True), QueryParam(key="none")],
        )
        assert build_url(url) == "http://example.com"

    def test_empty_value_is_kept(self) -> None:
        url = Url(host=["example", "com"], query=[QueryParam(key="flag", value="")])
        assert build_url(url) == "http://example.com?flag="


class TestBuildQueryString:
    def test_none(self) -> None:
        assert build_query_string(None) == ""

    def test_mixed_enabled_disabled(self) -> None:
        query = [
            QueryParam(key="a", value="1"),
            QueryParam(key="b", value="2", disabled=True),
            QueryParam(key="c", value="x y"),
        ]
        assert build_query_string(query) == "a=1&c=x+y"
