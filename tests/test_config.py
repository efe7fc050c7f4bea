"""Tests for configuration loading."""

from pathlib import Path
from unittest.mock import patch

import pytest
from cosmos_rest.config import AccountConfig, Config, HttpConfig


class TestConfigLoad:
    """Tests for Config.load()."""

    def test__explicit_path__loads_config(self, tmp_path: Path) -> None:
        """Load config from explicit path."""
        config_file = tmp_path / "cosmos.toml"
        config_file.write_text("""
[account]
endpoint = "https://acct.documents.azure.com:443/"
master_key = "a2V5"
api_version = "2020-07-15"
token_version = "2.0"

[http]
timeout = 5
""")

        config = Config.load(config_file)

        assert config.account == AccountConfig(
            endpoint="https://acct.documents.azure.com:443/",
            master_key="a2V5",
            api_version="2020-07-15",
            token_version="2.0",
        )
        assert config.http == HttpConfig(timeout=5.0)
        assert config.config_path == config_file

    def test__minimal_account__uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "cosmos.toml"
        config_file.write_text('[account]\nendpoint = "https://x"\nmaster_key = "a2V5"\n')

        config = Config.load(config_file)

        assert config.account is not None
        assert config.account.api_version == "2018-12-31"
        assert config.account.token_version == "1.0"
        assert config.http.timeout == 30.0

    def test__empty_file__no_account(self, tmp_path: Path) -> None:
        config_file = tmp_path / "cosmos.toml"
        config_file.write_text("")

        config = Config.load(config_file)

        assert config.account is None
        assert config.http.timeout == 30.0

    def test__missing_explicit_path__raises_error(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            Config.load(tmp_path / "nonexistent.toml")

    def test__no_path_no_discovery__returns_defaults(self) -> None:
        with patch.object(Config, "_discover_config", return_value=None):
            config = Config.load()

        assert config.account is None
        assert config.config_path is None


class TestConfigDiscovery:
    """Tests for config file discovery."""

    def test__config_in_parent_dir__found(self, tmp_path: Path) -> None:
        config_file = tmp_path / "cosmos.toml"
        config_file.write_text("")
        subdir = tmp_path / "project" / "src"
        subdir.mkdir(parents=True)

        with patch("pathlib.Path.cwd", return_value=subdir):
            discovered = Config._discover_config()

        assert discovered == config_file

    def test__no_config__returns_none(self, tmp_path: Path) -> None:
        with patch("pathlib.Path.cwd", return_value=tmp_path):
            discovered = Config._discover_config()

        assert discovered is None


class TestAccountParsing:
    """Tests for account section validation."""

    def test__master_key_from_env__used(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("COSMOS_MASTER_KEY", "ZW52")
        config_file = tmp_path / "cosmos.toml"
        config_file.write_text('[account]\nendpoint = "https://x"\n')

        config = Config.load(config_file)

        assert config.account is not None
        assert config.account.master_key == "ZW52"

    def test__missing_master_key__raises(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("COSMOS_MASTER_KEY", raising=False)
        config_file = tmp_path / "cosmos.toml"
        config_file.write_text('[account]\nendpoint = "https://x"\n')

        with pytest.raises(ValueError, match="account.master_key"):
            Config.load(config_file)

    def test__non_string_endpoint__raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "cosmos.toml"
        config_file.write_text('[account]\nendpoint = 42\nmaster_key = "a2V5"\n')

        with pytest.raises(ValueError, match="account.endpoint must be a string"):
            Config.load(config_file)

    @pytest.mark.parametrize("value", ['"fast"', "0", "true"])
    def test__invalid_timeout__raises(self, tmp_path: Path, value: str) -> None:
        config_file = tmp_path / "cosmos.toml"
        config_file.write_text(f"[http]\ntimeout = {value}\n")

        with pytest.raises(ValueError, match="http.timeout"):
            Config.load(config_file)


class TestWithOverrides:
    """Tests for Config.with_overrides()."""

    def test__overrides__applied_immutably(self) -> None:
        original = Config(account=AccountConfig(endpoint="https://a", master_key="k1"))

        updated = original.with_overrides(master_key="k2", timeout=3.0)

        assert updated.account is not None
        assert updated.account.master_key == "k2"
        assert updated.account.endpoint == "https://a"
        assert updated.http.timeout == 3.0
        assert original.account is not None
        assert original.account.master_key == "k1"

    def test__no_account__both_values_create_one(self) -> None:
        updated = Config(account=None).with_overrides(endpoint="https://a", master_key="k")

        assert updated.account == AccountConfig(endpoint="https://a", master_key="k")

    def test__no_account__partial_override_raises(self) -> None:
        with pytest.raises(ValueError, match="both required"):
            Config(account=None).with_overrides(endpoint="https://a")
