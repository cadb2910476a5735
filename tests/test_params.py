"""Tests for per-file parameter resolution."""

from pys3sync.sync.params import SKIP, ParamResolver, resolve_params
from pys3sync.sync.target import ParamRule


class TestResolveParams:
    """Tests for resolve_params function."""

    def test_no_rules(self):
        assert resolve_params("index.html", [], None) == {}

    def test_no_matching_rule(self):
        rules = [ParamRule("*.css", {"CacheControl": "max-age=60"})]
        assert resolve_params("index.html", rules, None) == {}

    def test_later_rule_wins(self):
        rules = [
            ParamRule("*.html", {"ContentType": "text/html", "CacheControl": "a"}),
            ParamRule("*", {"CacheControl": "b"}),
        ]
        assert resolve_params("index.html", rules, None) == {
            "ContentType": "text/html",
            "CacheControl": "b",
        }

    def test_shallow_merge_replaces_nested_values(self):
        rules = [
            ParamRule("*", {"Metadata": {"a": "1"}}),
            ParamRule("*", {"Metadata": {"b": "2"}}),
        ]
        assert resolve_params("x.txt", rules, None) == {"Metadata": {"b": "2"}}

    def test_only_for_env_mismatch_skips(self):
        rules = [ParamRule("*.map", {"CacheControl": "no-cache"}, only_for_env="dev")]
        assert resolve_params("app.js.map", rules, "prod") is SKIP

    def test_only_for_env_without_active_env_skips(self):
        rules = [ParamRule("*.map", only_for_env="dev")]
        assert resolve_params("app.js.map", rules, None) is SKIP

    def test_only_for_env_match_uploads(self):
        rules = [ParamRule("*.map", {"CacheControl": "no-cache"}, only_for_env="dev")]
        assert resolve_params("app.js.map", rules, "dev") == {
            "CacheControl": "no-cache"
        }

    def test_last_matching_env_decides(self):
        rules = [
            ParamRule("*", only_for_env="dev"),
            ParamRule("*.js", only_for_env="prod"),
        ]
        assert resolve_params("app.js", rules, "prod") == {}
        assert resolve_params("app.js", rules, "dev") is SKIP
        assert resolve_params("app.css", rules, "dev") == {}

    def test_result_never_contains_only_for_env(self):
        rules = [ParamRule("*", {"OnlyForEnv": "dev", "ACL": "public-read"})]
        assert resolve_params("a.txt", rules, "dev") == {"ACL": "public-read"}

    def test_rules_are_not_mutated(self):
        rule = ParamRule("*", {"CacheControl": "a"})
        result = resolve_params("a.txt", [rule], None)
        result["CacheControl"] = "changed"
        assert rule.params == {"CacheControl": "a"}


class TestParamResolver:
    """Tests for ParamResolver anchored at a directory."""

    def test_resolves_absolute_paths(self, temp_dir):
        resolver = ParamResolver(
            [ParamRule("css/*.css", {"CacheControl": "max-age=3600"})], temp_dir
        )
        assert resolver.resolve(temp_dir / "css" / "main.css") == {
            "CacheControl": "max-age=3600"
        }
        assert resolver.resolve(temp_dir / "main.css") == {}

    def test_env_gate(self, temp_dir):
        resolver = ParamResolver(
            [ParamRule("*.map", only_for_env="dev")], temp_dir, active_env="prod"
        )
        assert resolver.resolve(temp_dir / "app.js.map") is SKIP
        assert resolver.resolve(temp_dir / "app.js") == {}

    def test_no_rules_returns_empty(self, temp_dir):
        assert ParamResolver([], temp_dir).resolve(temp_dir / "a.txt") == {}
