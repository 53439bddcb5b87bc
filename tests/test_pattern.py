"""Tests for switchyard.routing.pattern — segment-aware mount paths."""

import pytest

from switchyard.errors import ConfigurationError
from switchyard.routing.pattern import PathPattern, parse_path


class TestParsePath:
    def test_static(self) -> None:
        segments = parse_path("/users")
        assert len(segments) == 1
        assert segments[0].value == "users"
        assert segments[0].is_param is False

    def test_multi_static(self) -> None:
        segments = parse_path("/api/v2/users")
        assert [s.value for s in segments] == ["api", "v2", "users"]

    def test_typed_param(self) -> None:
        segments = parse_path("/users/{id:int}")
        assert segments[1].is_param is True
        assert segments[1].param_name == "id"
        assert segments[1].param_type == "int"

    def test_root(self) -> None:
        assert parse_path("/") == []
        assert parse_path("") == []

    def test_rejects_colon_style_param(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            parse_path("/user/:id")
        assert "{param}" in str(exc_info.value)

    def test_rejects_angle_style_param(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_path("/share/<slug>")

    def test_rejects_unknown_converter(self) -> None:
        with pytest.raises(ConfigurationError, match="uuid"):
            parse_path("/items/{id:uuid}")


class TestPrefixMatching:
    def test_exact_equality_matches(self) -> None:
        m = PathPattern("/admin").match("/admin")
        assert m is not None
        assert m.matched == "/admin"
        assert m.residual == "/"

    def test_child_path_matches(self) -> None:
        m = PathPattern("/admin").match("/admin/x")
        assert m is not None
        assert m.residual == "/x"

    def test_segment_boundary_enforced(self) -> None:
        assert PathPattern("/admin").match("/administrator") is None

    def test_trailing_slash_on_request(self) -> None:
        m = PathPattern("/admin").match("/admin/")
        assert m is not None
        assert m.residual == "/"

    def test_trailing_slash_on_template(self) -> None:
        assert PathPattern("/admin/").match("/admin/users") is not None

    def test_empty_prefix_matches_everything(self) -> None:
        pattern = PathPattern("")
        assert pattern.is_catch_all
        m = pattern.match("/anything/at/all")
        assert m is not None
        assert m.matched == ""
        assert m.residual == "/anything/at/all"

    def test_root_prefix_matches_everything(self) -> None:
        assert PathPattern("/").match("/x") is not None

    def test_nested_prefix(self) -> None:
        m = PathPattern("/api/v1").match("/api/v1/users/7")
        assert m is not None
        assert m.matched == "/api/v1"
        assert m.residual == "/users/7"

    def test_param_in_prefix(self) -> None:
        m = PathPattern("/orgs/{org}").match("/orgs/acme/members")
        assert m is not None
        assert m.params == {"org": "acme"}
        assert m.residual == "/members"

    def test_case_sensitive(self) -> None:
        assert PathPattern("/Admin").match("/admin") is None

    def test_template_must_start_with_slash(self) -> None:
        with pytest.raises(ConfigurationError):
            PathPattern("admin")


class TestExactMatching:
    def test_exact_match(self) -> None:
        assert PathPattern("/users", exact=True).match("/users") is not None

    def test_exact_rejects_children(self) -> None:
        assert PathPattern("/users", exact=True).match("/users/1") is None

    def test_exact_allows_trailing_slash(self) -> None:
        m = PathPattern("/users", exact=True).match("/users/")
        assert m is not None
        assert m.matched == "/users"

    def test_exact_root(self) -> None:
        pattern = PathPattern("/", exact=True)
        assert pattern.match("/") is not None
        assert pattern.match("/x") is None

    def test_typed_param_converted(self) -> None:
        m = PathPattern("/users/{id:int}", exact=True).match("/users/42")
        assert m is not None
        assert m.params == {"id": 42}

    def test_typed_param_rejects_non_numeric(self) -> None:
        assert PathPattern("/users/{id:int}", exact=True).match("/users/abc") is None

    def test_multiple_params(self) -> None:
        m = PathPattern("/data/{date}/{month}/{year:int}", exact=True).match("/data/1/jan/2024")
        assert m is not None
        assert m.params == {"date": "1", "month": "jan", "year": 2024}

    def test_path_converter_consumes_rest(self) -> None:
        m = PathPattern("/files/{rest:path}", exact=True).match("/files/a/b/c.txt")
        assert m is not None
        assert m.params == {"rest": "a/b/c.txt"}

    def test_duplicate_param_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate"):
            PathPattern("/{id}/{id}")
