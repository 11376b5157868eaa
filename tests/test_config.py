"""
tests/test_config.py

Environment-driven settings, range parsing and validation.
"""

from __future__ import annotations

import pytest

from updater.config import (
    ConfigurationError,
    IndexRange,
    UpdaterSettings,
    get_updater_settings,
    load_updater_settings,
    parse_index_range,
    validate_settings,
    with_overrides,
)

_ENV_NAMES = (
    "RPC_URL",
    "NETWORK",
    "WALLET_KEYPAIR_PATH",
    "MANIFEST_PATH",
    "BATCH_SIZE",
    "BATCH_DELAY_SECONDS",
    "RECORD_DELAY_SECONDS",
    "DRY_RUN",
    "SKIP_CONFIRM",
    "RECORD_RANGE",
    "MAX_RETRIES",
    "RETRY_DELAY_SECONDS",
    "CHECKPOINT_INTERVAL",
    "RESUME_FROM_CHECKPOINT",
    "LOG_LEVEL",
    "LOG_DIR",
    "RPC_TIMEOUT_SECONDS",
    "RPC_RATE_LIMIT_PER_SECOND",
    "RPC_COMMITMENT",
    "CONFIRM_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    get_updater_settings.cache_clear()
    yield
    get_updater_settings.cache_clear()


class TestLoadSettings:
    def test_defaults(self) -> None:
        settings = load_updater_settings()
        assert settings.dry_run is True
        assert settings.network == "devnet"
        assert settings.batch_size == 25
        assert settings.record_range is None
        assert settings.checkpoint_interval == 100

    def test_reads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("BATCH_SIZE", "10")
        monkeypatch.setenv("DRY_RUN", "false")
        monkeypatch.setenv("RECORD_RANGE", "5-9")
        monkeypatch.setenv("NETWORK", "Mainnet-Beta")
        monkeypatch.setenv("BATCH_DELAY_SECONDS", "2.5")
        monkeypatch.setenv("LOG_DIR", "/tmp/run-logs")

        settings = load_updater_settings()
        assert settings.batch_size == 10
        assert settings.dry_run is False
        assert settings.record_range == IndexRange(start=5, end=9)
        assert settings.network == "mainnet-beta"
        assert settings.batch_delay_seconds == pytest.approx(2.5)
        assert str(settings.checkpoint_path) == "/tmp/run-logs/checkpoint.json"

    def test_blank_values_fall_back_to_defaults(self, monkeypatch) -> None:
        monkeypatch.setenv("BATCH_SIZE", "  ")
        assert load_updater_settings().batch_size == 25

    @pytest.mark.parametrize(
        "name, value",
        [("BATCH_SIZE", "ten"), ("DRY_RUN", "maybe"), ("BATCH_DELAY_SECONDS", "fast"), ("RECORD_RANGE", "1-x")],
    )
    def test_invalid_values_raise(self, monkeypatch, name: str, value: str) -> None:
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError):
            load_updater_settings()

    def test_cached_accessor(self) -> None:
        assert get_updater_settings() is get_updater_settings()


class TestParseIndexRange:
    def test_blank_means_no_filter(self) -> None:
        assert parse_index_range(None) is None
        assert parse_index_range("  ") is None

    def test_inclusive_range(self) -> None:
        index_range = parse_index_range("0-100")
        assert index_range == IndexRange(start=0, end=100)
        assert str(index_range) == "0-100"

    @pytest.mark.parametrize("raw", ["5", "1-2-3", "a-b", "10-2"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ConfigurationError):
            parse_index_range(raw)


class TestValidateSettings:
    def test_valid_defaults_without_files(self) -> None:
        validate_settings(UpdaterSettings(), require_files=False)

    def test_collects_every_problem(self) -> None:
        settings = UpdaterSettings(
            network="testnet",
            batch_size=0,
            max_retries=-1,
            checkpoint_interval=0,
            rpc_url="ftp://node",
        )
        with pytest.raises(ConfigurationError) as excinfo:
            validate_settings(settings, require_files=False)

        message = str(excinfo.value)
        for fragment in ("NETWORK", "BATCH_SIZE", "MAX_RETRIES", "CHECKPOINT_INTERVAL", "RPC_URL"):
            assert fragment in message

    def test_missing_files(self, tmp_path) -> None:
        settings = UpdaterSettings(
            wallet_keypair_path=str(tmp_path / "wallet.json"),
            manifest_path=str(tmp_path / "manifest.csv"),
        )
        with pytest.raises(ConfigurationError, match="Wallet keypair file not found"):
            validate_settings(settings)


class TestOverrides:
    def test_none_values_are_ignored(self) -> None:
        base = UpdaterSettings()
        assert with_overrides(base, batch_size=None) is base

    def test_overrides_apply(self) -> None:
        settings = with_overrides(UpdaterSettings(), batch_size=5, dry_run=False)
        assert settings.batch_size == 5
        assert settings.dry_run is False

    def test_unknown_setting(self) -> None:
        with pytest.raises(ConfigurationError):
            with_overrides(UpdaterSettings(), colour="blue")
