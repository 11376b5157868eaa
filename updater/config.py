"""
updater/config.py

Environment-driven runtime settings for the metadata updater.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path

_ALLOWED_NETWORKS = {"mainnet-beta", "devnet"}
_ALLOWED_COMMITMENTS = {"processed", "confirmed", "finalized"}
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigurationError(ValueError):
    """
    Raised for invalid or missing configuration; fatal before any network I/O.
    """


def _project_root() -> Path:
    return Path(__file__).resolve().parents[1]


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    for filename in (".env", ".env.local"):
        env_path = _project_root() / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def _get_bool_env(name: str, default: bool) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean (true/false), got '{raw_value}'.")


def _get_int_env(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got '{raw_value}'.") from exc


def _get_float_env(name: str, default: float) -> float:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return float(raw_value.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got '{raw_value}'.") from exc


def _get_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class IndexRange:
    """
    Inclusive manifest index window ``start..end``.
    """

    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def parse_index_range(raw: str | None) -> IndexRange | None:
    """
    Parse ``"START-END"`` (inclusive both ends); blank input means no filter.
    """

    if raw is None or not raw.strip():
        return None

    parts = raw.strip().split("-")
    if len(parts) != 2:
        raise ConfigurationError("Invalid range format. Use: START-END (e.g., 0-100).")
    try:
        start = int(parts[0])
        end = int(parts[1])
    except ValueError as exc:
        raise ConfigurationError("Invalid range values. Both start and end must be numbers.") from exc
    if start > end:
        raise ConfigurationError("Range start must be less than or equal to end.")
    return IndexRange(start=start, end=end)


@dataclass(frozen=True)
class UpdaterSettings:
    """
    Runtime settings for one metadata update run.
    """

    rpc_url: str = "https://api.devnet.solana.com"
    network: str = "devnet"
    wallet_keypair_path: str = "./wallet.json"
    manifest_path: str = "./nft_metadata.csv"
    batch_size: int = 25
    batch_delay_seconds: float = 0.5
    record_delay_seconds: float = 0.1
    dry_run: bool = True
    skip_confirm: bool = False
    record_range: IndexRange | None = None
    max_retries: int = 3
    retry_delay_seconds: float = 1.0
    checkpoint_interval: int = 100
    resume_from_checkpoint: bool = False
    log_level: str = "INFO"
    log_dir: str = "./logs"
    rpc_timeout_seconds: float = 30.0
    rpc_rate_limit_per_second: float = 10.0
    rpc_commitment: str = "confirmed"
    confirm_timeout_seconds: float = 60.0

    @property
    def checkpoint_path(self) -> Path:
        return Path(self.log_dir) / "checkpoint.json"


def load_updater_settings() -> UpdaterSettings:
    """
    Build settings from the environment (and `.env` files) without caching.
    """

    load_env_files()
    return UpdaterSettings(
        rpc_url=_get_str_env("RPC_URL", "https://api.devnet.solana.com"),
        network=_get_str_env("NETWORK", "devnet").lower(),
        wallet_keypair_path=_get_str_env("WALLET_KEYPAIR_PATH", "./wallet.json"),
        manifest_path=_get_str_env("MANIFEST_PATH", "./nft_metadata.csv"),
        batch_size=_get_int_env("BATCH_SIZE", 25),
        batch_delay_seconds=_get_float_env("BATCH_DELAY_SECONDS", 0.5),
        record_delay_seconds=_get_float_env("RECORD_DELAY_SECONDS", 0.1),
        dry_run=_get_bool_env("DRY_RUN", True),
        skip_confirm=_get_bool_env("SKIP_CONFIRM", False),
        record_range=parse_index_range(os.getenv("RECORD_RANGE")),
        max_retries=_get_int_env("MAX_RETRIES", 3),
        retry_delay_seconds=_get_float_env("RETRY_DELAY_SECONDS", 1.0),
        checkpoint_interval=_get_int_env("CHECKPOINT_INTERVAL", 100),
        resume_from_checkpoint=_get_bool_env("RESUME_FROM_CHECKPOINT", False),
        log_level=_get_str_env("LOG_LEVEL", "INFO").upper(),
        log_dir=_get_str_env("LOG_DIR", "./logs"),
        rpc_timeout_seconds=_get_float_env("RPC_TIMEOUT_SECONDS", 30.0),
        rpc_rate_limit_per_second=_get_float_env("RPC_RATE_LIMIT_PER_SECOND", 10.0),
        rpc_commitment=_get_str_env("RPC_COMMITMENT", "confirmed").lower(),
        confirm_timeout_seconds=_get_float_env("CONFIRM_TIMEOUT_SECONDS", 60.0),
    )


@lru_cache(maxsize=1)
def get_updater_settings() -> UpdaterSettings:
    """
    Return cached settings from environment variables.
    """

    return load_updater_settings()


def validate_settings(settings: UpdaterSettings, *, require_files: bool = True) -> None:
    """
    Check every setting and raise one ConfigurationError listing all problems.
    """

    errors: list[str] = []

    if settings.network not in _ALLOWED_NETWORKS:
        errors.append(f"NETWORK must be one of {sorted(_ALLOWED_NETWORKS)}, got '{settings.network}'.")
    if settings.rpc_commitment not in _ALLOWED_COMMITMENTS:
        errors.append(
            f"RPC_COMMITMENT must be one of {sorted(_ALLOWED_COMMITMENTS)}, got '{settings.rpc_commitment}'."
        )
    if not settings.rpc_url.startswith(("http://", "https://")):
        errors.append(f"RPC_URL must be an http(s) URL, got '{settings.rpc_url}'.")

    if settings.batch_size <= 0:
        errors.append("BATCH_SIZE must be greater than 0.")
    if settings.batch_delay_seconds < 0:
        errors.append("BATCH_DELAY_SECONDS must be non-negative.")
    if settings.record_delay_seconds < 0:
        errors.append("RECORD_DELAY_SECONDS must be non-negative.")
    if settings.max_retries < 0:
        errors.append("MAX_RETRIES must be non-negative.")
    if settings.retry_delay_seconds < 0:
        errors.append("RETRY_DELAY_SECONDS must be non-negative.")
    if settings.checkpoint_interval <= 0:
        errors.append("CHECKPOINT_INTERVAL must be greater than 0.")
    if settings.rpc_timeout_seconds <= 0:
        errors.append("RPC_TIMEOUT_SECONDS must be greater than 0.")
    if settings.rpc_rate_limit_per_second < 0:
        errors.append("RPC_RATE_LIMIT_PER_SECOND must be non-negative.")
    if settings.confirm_timeout_seconds <= 0:
        errors.append("CONFIRM_TIMEOUT_SECONDS must be greater than 0.")
    if settings.record_range is not None and settings.record_range.start < 0:
        errors.append("Range values must be non-negative.")

    if require_files:
        if not Path(settings.wallet_keypair_path).is_file():
            errors.append(f"Wallet keypair file not found: {settings.wallet_keypair_path}")
        if not Path(settings.manifest_path).is_file():
            errors.append(f"Manifest file not found: {settings.manifest_path}")

    if errors:
        raise ConfigurationError(
            "Configuration validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
        )


def with_overrides(settings: UpdaterSettings, **overrides: object) -> UpdaterSettings:
    """
    Return ``settings`` with every non-None override applied (CLI flags win over env).
    """

    known = {item.name for item in fields(UpdaterSettings)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigurationError(f"Unknown setting(s): {', '.join(unknown)}")
    changes = {name: value for name, value in overrides.items() if value is not None}
    return replace(settings, **changes) if changes else settings
