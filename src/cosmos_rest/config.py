"""Configuration management for cosmos-rest.

Supports TOML configuration format with auto-discovery.
"""

import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from cosmos_rest.headers import DEFAULT_API_VERSION, DEFAULT_TOKEN_VERSION

CONFIG_FILENAME = "cosmos.toml"
MASTER_KEY_ENV = "COSMOS_MASTER_KEY"


@dataclass
class AccountConfig:
    """Cosmos account configuration."""

    endpoint: str
    master_key: str
    api_version: str = DEFAULT_API_VERSION
    token_version: str = DEFAULT_TOKEN_VERSION


@dataclass
class HttpConfig:
    """HTTP transport configuration."""

    timeout: float = 30.0


@dataclass
class Config:
    """Application configuration."""

    account: AccountConfig | None
    http: HttpConfig = field(default_factory=HttpConfig)
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for cosmos.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls(account=None)

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        with path.open("rb") as f:
            data = tomllib.load(f)

        return cls(
            account=cls._parse_account(data.get("account")),
            http=cls._parse_http(data.get("http")),
            config_path=path,
        )

    @classmethod
    def _parse_account(cls, data: object) -> AccountConfig | None:
        """Parse account configuration section.

        The master key may come from the COSMOS_MASTER_KEY environment
        variable instead of the file.

        Args:
            data: Raw account section data

        Returns:
            AccountConfig instance or None if section not present
        """
        if data is None:
            return None

        if not isinstance(data, dict):
            raise ValueError("account section must be a dictionary")

        endpoint = data.get("endpoint")
        if not isinstance(endpoint, str):
            raise ValueError("account.endpoint must be a string")

        master_key = data.get("master_key", os.environ.get(MASTER_KEY_ENV))
        if not isinstance(master_key, str):
            raise ValueError(
                f"account.master_key must be a string (or set {MASTER_KEY_ENV})"
            )

        api_version = data.get("api_version", DEFAULT_API_VERSION)
        if not isinstance(api_version, str):
            raise ValueError("account.api_version must be a string")

        token_version = data.get("token_version", DEFAULT_TOKEN_VERSION)
        if not isinstance(token_version, str):
            raise ValueError("account.token_version must be a string")

        return AccountConfig(
            endpoint=endpoint,
            master_key=master_key,
            api_version=api_version,
            token_version=token_version,
        )

    @classmethod
    def _parse_http(cls, data: object) -> HttpConfig:
        if data is None:
            return HttpConfig()

        if not isinstance(data, dict):
            raise ValueError("http section must be a dictionary")

        timeout = data.get("timeout", 30.0)
        if isinstance(timeout, bool) or not isinstance(timeout, int | float):
            raise ValueError("http.timeout must be a number")
        if timeout <= 0:
            raise ValueError("http.timeout must be positive")

        return HttpConfig(timeout=float(timeout))

    def with_overrides(
        self,
        *,
        endpoint: str | None = None,
        master_key: str | None = None,
        timeout: float | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            endpoint: Override account.endpoint
            master_key: Override account.master_key
            timeout: Override http.timeout

        Returns:
            New Config instance with overrides applied

        Raises:
            ValueError: If overrides leave the account half-configured
        """
        account = self.account
        if endpoint is not None or master_key is not None:
            if account is None:
                if endpoint is None or master_key is None:
                    raise ValueError(
                        "endpoint and master_key are both required without an [account] section"
                    )
                account = AccountConfig(endpoint=endpoint, master_key=master_key)
            else:
                account = replace(
                    account,
                    endpoint=endpoint if endpoint is not None else account.endpoint,
                    master_key=master_key if master_key is not None else account.master_key,
                )

        http = self.http
        if timeout is not None:
            http = replace(self.http, timeout=timeout)

        return replace(self, account=account, http=http)
