"""Configuration helpers for the batch image generator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class ConfigurationError(RuntimeError):
    """Raised when a precondition for running a batch is not met."""


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    num_images: int = 100
    rate_limit_cooldown: float = 60.0
    retry_delay: float = 5.0
    image_delay: float = 2.0
    max_retries: int = 5
    max_total_attempts: Optional[int] = None
    request_timeout: Optional[float] = None
    output_dir: Path = Path("generated")
    prompt_path: Path = Path("prompt.txt")
    log_dir: Path = Path("logs")
    log_level: str = "INFO"

    def require_api(self) -> None:
        """Fail fast when the endpoint or key were never supplied."""
        missing = [
            name
            for name, value in (("IMAGE_API_ENDPOINT", self.endpoint), ("IMAGE_API_KEY", self.api_key))
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing required setting(s): {', '.join(missing)}")


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _env_int(name: str, default: Optional[int], minimum: int = 0) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    defaults = AppConfig()
    return AppConfig(
        endpoint=os.getenv("IMAGE_API_ENDPOINT") or None,
        api_key=os.getenv("IMAGE_API_KEY") or None,
        num_images=_env_int("NUM_IMAGES", defaults.num_images),
        rate_limit_cooldown=_env_float("RETRY_DELAY", defaults.rate_limit_cooldown),
        retry_delay=_env_float("RETRY_PAUSE", defaults.retry_delay),
        image_delay=_env_float("IMAGE_DELAY", defaults.image_delay),
        max_retries=_env_int("MAX_RETRIES", defaults.max_retries, minimum=1),
        max_total_attempts=_env_int("MAX_TOTAL_ATTEMPTS", None, minimum=1),
        request_timeout=_env_float("REQUEST_TIMEOUT", None),
        output_dir=Path(os.getenv("OUTPUT_DIR", str(defaults.output_dir))),
        prompt_path=Path(os.getenv("PROMPT_FILE", str(defaults.prompt_path))),
        log_dir=Path(os.getenv("LOG_DIR", str(defaults.log_dir))),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
    )


def load_prompt(path: Path) -> str:
    """Read the prompt file once; only trailing newlines are dropped."""
    if not path.is_file():
        raise ConfigurationError(f"{path} file not found!")
    return path.read_text(encoding="utf-8").rstrip("\n")
