"""Tests for configuration loading and DOI normalization helpers."""

import pytest

from sbtmint.config import Config, get_config, reload_config
from sbtmint.utils import normalize_doi


class TestConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SBTMINT_WALLET_MODE", raising=False)
        cfg = Config(_env_file=None)
        assert cfg.openalex_base_url == "https://api.openalex.org/works/"
        assert cfg.doi_resolver_base == "https://doi.org/"
        assert cfg.contract_address == "0xc3c76fD097FBEa31B213660543f8E6166538Bb42"
        assert cfg.wallet_mode == "node"
        assert cfg.lookup_timeout_seconds > 0
        assert (cfg.submit_rate_limit, cfg.read_rate_limit, cfg.doi_submit_limit) == (10, 60, 5)
        assert cfg.rate_limit_window_seconds == 60.0

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SBTMINT_LOOKUP_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("SBTMINT_REGISTRY_BACKEND", "sqlite")
        cfg = Config()
        assert cfg.lookup_timeout_seconds == 2.5
        assert cfg.registry_backend == "sqlite"

    def test_zero_rate_limit_rejected(self):
        with pytest.raises(ValueError):
            Config(submit_rate_limit=0)

    def test_invalid_wallet_mode_rejected(self):
        with pytest.raises(ValueError):
            Config(wallet_mode="metamask")

    def test_cors_origins_list(self):
        cfg = Config(cors_origins="http://a.test, http://b.test,")
        assert cfg.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("registry_backend: sqlite\nregistry_db: /tmp/x.db\n")
        cfg = Config.from_yaml(path)
        assert cfg.registry_backend == "sqlite"
        assert cfg.registry_db == "/tmp/x.db"

    def test_from_missing_yaml_uses_defaults(self, tmp_path):
        cfg = Config.from_yaml(tmp_path / "absent.yaml")
        assert cfg.registry_backend == "memory"

    def test_get_config_is_cached_until_reload(self):
        first = get_config()
        assert get_config() is first
        assert reload_config() is not first


class TestNormalizeDoi:
    @pytest.mark.parametrize("raw, expected", [
        ("10.1/abc", "10.1/abc"),
        ("  10.1/abc  ", "10.1/abc"),
        ("doi:10.1/abc", "10.1/abc"),
        ("DOI: 10.1/abc", "10.1/abc"),
        ("https://doi.org/10.1/abc", "10.1/abc"),
        ("http://dx.doi.org/10.1/ABC", "10.1/ABC"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_doi(raw) == expected
