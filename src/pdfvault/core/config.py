from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from pdfvault.core.errors import ConfigurationError
from pdfvault.core.files import ensure_directory


@dataclass(frozen=True)
class AppPaths:
    project_root: Path
    data_dir: Path
    db_path: Path
    archive_dir: Path
    secret_path: Path


DEFAULT_DATA_DIRNAME = ".pdfvault"
DEFAULT_TOKEN_TTL_SECONDS = 900
DEFAULT_STREAM_CHUNK_BYTES = 256 * 1024
TOKEN_SECRET_ENV = "PDFVAULT_TOKEN_SECRET"


def load_paths(project_root: Path | None = None) -> AppPaths:
    root = (project_root or Path.cwd()).expanduser().resolve()

    home_raw = os.getenv("PDFVAULT_HOME")
    if home_raw:
        data_dir = Path(home_raw).expanduser().resolve()
    else:
        data_dir = root / DEFAULT_DATA_DIRNAME

    return AppPaths(
        project_root=root,
        data_dir=data_dir,
        db_path=data_dir / "pdfvault.db",
        archive_dir=data_dir / "archive",
        secret_path=data_dir / "token.secret",
    )


def read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def read_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class ServeSettings:
    token_secret: bytes
    token_ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS
    stream_chunk_bytes: int = DEFAULT_STREAM_CHUNK_BYTES


def load_token_secret(paths: AppPaths) -> bytes:
    """Return the HMAC secret: env override first, else the persisted secret file."""
    env_secret = os.getenv(TOKEN_SECRET_ENV)
    if env_secret:
        return env_secret.encode("utf-8")

    if paths.secret_path.exists():
        value = paths.secret_path.read_text(encoding="utf-8").strip()
        if value:
            return value.encode("utf-8")

    ensure_directory(paths.secret_path.parent)
    value = secrets.token_urlsafe(48)
    fd = os.open(paths.secret_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(value)
    return value.encode("utf-8")


def load_serve_settings(paths: AppPaths) -> ServeSettings:
    return ServeSettings(
        token_secret=load_token_secret(paths),
        token_ttl_seconds=read_int_env("PDFVAULT_TOKEN_TTL_SECONDS", DEFAULT_TOKEN_TTL_SECONDS),
        stream_chunk_bytes=read_int_env("PDFVAULT_STREAM_CHUNK_BYTES", DEFAULT_STREAM_CHUNK_BYTES),
    )


@dataclass(frozen=True)
class ViewerConfig:
    max_cache_size: int = 10
    preload_depth: int = 2
    max_retries: int = 3
    zoom_step: float = 0.25
    zoom_range: tuple[float, float] = (0.5, 3.0)
    progressive_rendering: bool = True
    initial_scale: float = 1.2
    low_fidelity_factor: float = 0.5
    retry_backoff_seconds: float = 1.0
    fullscreen_settle_seconds: float = 0.1
    swipe_min_distance: float = 50.0

    def __post_init__(self) -> None:
        low, high = self.zoom_range
        if not 0 < low <= high:
            raise ConfigurationError(f"zoom_range must satisfy 0 < min <= max, got {self.zoom_range!r}")
        if self.max_cache_size < 1:
            raise ConfigurationError("max_cache_size must be at least 1")
        if self.preload_depth < 0 or self.max_retries < 0:
            raise ConfigurationError("preload_depth and max_retries must be non-negative")
        if self.zoom_step <= 0:
            raise ConfigurationError("zoom_step must be positive")
        if not 0 < self.low_fidelity_factor <= 1:
            raise ConfigurationError("low_fidelity_factor must be within (0, 1]")

    @property
    def min_scale(self) -> float:
        return self.zoom_range[0]

    @property
    def max_scale(self) -> float:
        return self.zoom_range[1]

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "ViewerConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigurationError(f"Unrecognized viewer options: {', '.join(unknown)}")
        values = dict(options)
        if "zoom_range" in values:
            low, high = values["zoom_range"]
            values["zoom_range"] = (float(low), float(high))
        return cls(**values)
