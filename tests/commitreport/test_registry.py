"""Tests for RepositoryRegistry configuration loading."""

from __future__ import annotations

import json

from factories import API, WEB

from commitreport.engines.commit_fetcher import Repository
from commitreport.services.registry import RepositoryRegistry


class TestFromConfig:
    def test_json_list(self):
        raw = json.dumps([{"name": "api", "url": "https://github.com/acme/api"}])
        registry = RepositoryRegistry.from_config(raw)
        assert registry.list_configured() == [API]

    def test_json_values_are_trimmed(self):
        raw = json.dumps([{"name": " api ", "url": " https://github.com/acme/api "}])
        assert RepositoryRegistry.from_config(raw).list_configured() == [API]

    def test_invalid_json_falls_back_to_csv(self):
        registry = RepositoryRegistry.from_config(
            "{not json",
            "https://github.com/acme/api, https://github.com/acme/web",
            "api, web",
        )
        assert registry.list_configured() == [API, WEB]

    def test_json_object_instead_of_list_falls_back(self):
        registry = RepositoryRegistry.from_config(
            '{"name": "api"}', "https://github.com/acme/web", "web"
        )
        assert registry.list_configured() == [WEB]

    def test_json_item_missing_url_falls_back(self):
        registry = RepositoryRegistry.from_config('[{"name": "api"}]', None, None)
        assert len(registry) == 0

    def test_csv_pairs_in_order(self):
        registry = RepositoryRegistry.from_config(
            None, "https://github.com/acme/web,https://github.com/acme/api", "web,api"
        )
        assert [r.name for r in registry.list_configured()] == ["web", "api"]

    def test_csv_length_mismatch_is_empty(self):
        registry = RepositoryRegistry.from_config(
            None, "https://github.com/acme/api,https://github.com/acme/web", "api"
        )
        assert len(registry) == 0

    def test_nothing_configured(self):
        assert len(RepositoryRegistry.from_config()) == 0

    def test_empty_strings(self):
        assert len(RepositoryRegistry.from_config("", "", "")) == 0


class TestResolve:
    def test_none_uses_configured(self):
        registry = RepositoryRegistry([API, WEB])
        assert registry.resolve(None) == [API, WEB]

    def test_override_replaces_configured(self):
        other = Repository(name="cli", url="https://github.com/acme/cli")
        assert RepositoryRegistry([API]).resolve([other]) == [other]

    def test_empty_override_is_respected(self):
        assert RepositoryRegistry([API]).resolve([]) == []

    def test_list_configured_is_a_copy(self):
        registry = RepositoryRegistry([API])
        registry.list_configured().append(WEB)
        assert registry.list_configured() == [API]
