"""Pipeline configuration loaded from YAML, with a process-wide singleton."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

import yaml
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

T = TypeVar("T")

# Config directory at the repository root
CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "configs"

CONFIG_ENV_VAR = "WGR_CONFIG"

DEFAULT_TITLE_FILTER = (
    r"^(File|Talk|Special|Wikipedia|Wiktionary|User|User Talk|Category|Portal"
    r"|Template|Mediawiki|Help|Draft):"
)

_POSITIVE_FIELDS = (
    "node_queue_size",
    "page_queue_size",
    "write_queue_size",
    "progress_interval",
    "max_line_length",
)
_INT_FIELDS = _POSITIVE_FIELDS + ("preview_size", "log_sample_limit")


def _coerce(name: str, value: object, kind: type) -> Any:
    """Convert a config value to kind, rejecting bools and lossy conversions."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid {name}: {value!r}. Must be a number")
    try:
        converted = kind(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid {name}: {value!r}. Must be a number") from exc
    if kind is int and isinstance(value, float) and converted != value:
        raise ValueError(f"Invalid {name}: {value!r}. Must be a whole number")
    return converted


@dataclass
class PipelineConfig:
    """Tuning knobs shared by every stage."""

    walk_probability: float = 0.85
    convergence: float = 1e-6
    max_iterations: int | None = None

    # Bounded queue capacities
    node_queue_size: int = 20000
    page_queue_size: int = 1000
    write_queue_size: int = 1000

    # Diagnostics
    preview_size: int = 50
    log_sample_limit: int = 10
    progress_interval: int = 100000

    # Raw dump scanning
    max_line_length: int = 25000
    title_filter: str = DEFAULT_TITLE_FILTER

    def __post_init__(self) -> None:
        # YAML reads 1e-6 (no dot) as a string
        self.walk_probability = _coerce("walk_probability", self.walk_probability, float)
        self.convergence = _coerce("convergence", self.convergence, float)
        if self.max_iterations is not None:
            self.max_iterations = _coerce("max_iterations", self.max_iterations, int)
        for name in _INT_FIELDS:
            setattr(self, name, _coerce(name, getattr(self, name), int))
        if not isinstance(self.title_filter, str):
            raise ValueError(f"Invalid title_filter: {self.title_filter!r}. Must be a string")

        if not 0.0 < self.walk_probability <= 1.0:
            raise ValueError(
                f"Invalid walk_probability: {self.walk_probability}. Must be in (0, 1]"
            )
        if self.convergence <= 0.0:
            raise ValueError(f"Invalid convergence: {self.convergence}. Must be positive")
        if self.max_iterations is not None and self.max_iterations < 1:
            raise ValueError(
                f"Invalid max_iterations: {self.max_iterations}. Must be positive or unset"
            )

        for name in _POSITIVE_FIELDS:
            if getattr(self, name) < 1:
                raise ValueError(f"Invalid {name}: {getattr(self, name)}. Must be positive")

        if self.preview_size < 0 or self.log_sample_limit < 0:
            raise ValueError("preview_size and log_sample_limit must not be negative")

        try:
            re.compile(self.title_filter)
        except re.error as exc:
            raise ValueError(f"Invalid title_filter: {self.title_filter!r} ({exc})") from exc

    @property
    def title_pattern(self) -> re.Pattern[str]:
        return re.compile(self.title_filter)


def find_config_path(
    config_name: str | None,
    config_dir: Path = CONFIG_DIR,
    env_var: str | None = CONFIG_ENV_VAR,
) -> Path | None:
    """Find config file path, checking the environment when no name is given.

    Args:
        config_name: Config name (without .yaml), a path to a YAML file, or None
        config_dir: Directory containing named config files
        env_var: Environment variable consulted when config_name is None

    Returns:
        Path to the config file, or None when nothing was requested

    Raises:
        FileNotFoundError: If the requested config file doesn't exist
    """
    if config_name is None and env_var:
        config_name = os.environ.get(env_var) or None
    if config_name is None:
        return None

    if "/" in config_name or config_name.endswith((".yaml", ".yml")):
        config_path = Path(config_name)
    else:
        config_path = config_dir / f"{config_name}.yaml"

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    return config_path


def load_yaml(path: Path) -> dict:
    """Load YAML file and return dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_config(name: str | None = None) -> PipelineConfig:
    """Load pipeline config by name (e.g. 'default') or path.

    Unknown keys are rejected so typos don't silently fall back to defaults.
    """
    config_path = find_config_path(name)
    if config_path is None:
        return PipelineConfig()

    try:
        data = load_yaml(config_path)
    except yaml.YAMLError as exc:
        raise ValueError(f"Malformed YAML in {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config {config_path} must be a mapping of settings")
    known = {f.name for f in fields(PipelineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {config_path}: {', '.join(unknown)}")

    return PipelineConfig(**data)


class ConfigSingleton(Generic[T]):
    """Generic config singleton manager.

    Provides get/set/reset pattern for managing a global config instance.
    """

    def __init__(self, loader: Callable[[], T] | None = None):
        self._config: T | None = None
        self._loader = loader

    def get(self) -> T:
        """Get the config, loading it lazily if needed."""
        if self._config is None:
            if self._loader is None:
                raise RuntimeError("No config loaded and no loader set")
            self._config = self._loader()
        return self._config

    def set(self, config: T) -> None:
        """Set the config directly."""
        self._config = config

    def reset(self) -> None:
        """Reset the config, forcing reload on next get()."""
        self._config = None


_manager: ConfigSingleton[PipelineConfig] = ConfigSingleton(load_config)
get_config = _manager.get
set_config = _manager.set
reset_config = _manager.reset
