"""YAML loader for named score policy presets.

Presets live in score_policies.yaml next to this module. Each preset is
converted to a frozen ScorePolicy and validated at load time, so a bad
preset file fails fast instead of at the first scoring call.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Final

import yaml

from motionlab.scoring.exceptions import PolicyError
from motionlab.scoring.policy import ScorePolicy

DEFAULT_POLICY_CONFIG_PATH: Final[Path] = Path(__file__).parent / "score_policies.yaml"

logger = logging.getLogger(__name__)


class PolicyConfigError(Exception):
    """Base exception for policy configuration errors."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.path:
            return f"Policy config error in '{self.path}': {self.message}"
        return f"Policy config error: {self.message}"


class PolicyConfigValidationError(PolicyConfigError):
    """Raised when the policy configuration fails validation."""

    pass


class PolicyConfigLoadError(PolicyConfigError):
    """Raised when the policy configuration fails to load."""

    pass


class PolicyConfigNotFoundError(PolicyConfigError):
    """Raised when the policy configuration file is not found."""

    pass


class PolicyConfigLoader:
    """Loads and serves named ScorePolicy presets from a YAML file.

    Example:
        >>> loader = PolicyConfigLoader()
        >>> strict = loader.get_policy("strict")
        >>> strict.missing_key_behavior
        'error'
    """

    def __init__(self, config_path: Path | str | None = None) -> None:
        """Initialize the loader and load the presets.

        Args:
            config_path: Path to the YAML file. Defaults to DEFAULT_POLICY_CONFIG_PATH.

        Raises:
            PolicyConfigNotFoundError: If the file doesn't exist.
        """
        self._config_path = Path(config_path) if config_path else DEFAULT_POLICY_CONFIG_PATH
        self._policies: dict[str, ScorePolicy] = {}
        self._version: str = ""
        self._lock = threading.RLock()

        if not self._config_path.exists():
            raise PolicyConfigNotFoundError(
                f"Policy configuration file not found: {self._config_path}",
                path=str(self._config_path),
            )

        self.load_config()

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def version(self) -> str:
        return self._version

    def load_config(self) -> dict[str, ScorePolicy]:
        """Load presets from the YAML file.

        Returns:
            dict: Preset name to ScorePolicy.

        Raises:
            PolicyConfigLoadError: If the file cannot be read or parsed.
            PolicyConfigValidationError: If a preset is invalid.
        """
        with self._lock:
            logger.info(f"Loading score policies from {self._config_path}")
            raw_config = self._load_yaml_file()
            policies = self._convert_policies(raw_config)

            self._policies = policies
            self._version = str((raw_config.get("metadata") or {}).get("version", ""))
            logger.info(f"Loaded {len(policies)} score policies (version {self._version})")
            return dict(policies)

    def get_policy(self, name: str) -> ScorePolicy:
        """Get a preset by name.

        Raises:
            PolicyConfigValidationError: If no preset has that name.
        """
        with self._lock:
            try:
                return self._policies[name]
            except KeyError:
                raise PolicyConfigValidationError(
                    f"Unknown score policy '{name}'. "
                    f"Available: {', '.join(sorted(self._policies))}",
                    path=str(self._config_path),
                ) from None

    def policy_names(self) -> list[str]:
        with self._lock:
            return sorted(self._policies)

    def _load_yaml_file(self) -> dict[str, Any]:
        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise PolicyConfigNotFoundError(
                f"Policy configuration file not found: {self._config_path}",
                path=str(self._config_path),
            ) from e
        except yaml.YAMLError as e:
            raise PolicyConfigLoadError(
                f"Failed to parse YAML: {e}", path=str(self._config_path)
            ) from e
        except OSError as e:
            raise PolicyConfigLoadError(
                f"Failed to read file: {e}", path=str(self._config_path)
            ) from e

        if not isinstance(raw, dict):
            raise PolicyConfigValidationError(
                "Top-level YAML document must be a mapping", path=str(self._config_path)
            )
        return raw

    def _convert_policies(self, raw_config: dict[str, Any]) -> dict[str, ScorePolicy]:
        raw_policies = raw_config.get("policies")
        if not isinstance(raw_policies, dict) or not raw_policies:
            raise PolicyConfigValidationError(
                "At least one policy must be defined under 'policies'",
                path=str(self._config_path),
            )

        policies: dict[str, ScorePolicy] = {}
        for name, values in raw_policies.items():
            if not isinstance(values, dict):
                raise PolicyConfigValidationError(
                    f"Policy '{name}' must be a mapping", path=str(self._config_path)
                )
            try:
                policies[name] = ScorePolicy().merged(values)
            except PolicyError as e:
                raise PolicyConfigValidationError(
                    f"Invalid policy '{name}': {e}", path=str(self._config_path)
                ) from e
        return policies


_default_loader: PolicyConfigLoader | None = None
_loader_lock = threading.Lock()


def get_policy_loader(config_path: Path | str | None = None) -> PolicyConfigLoader:
    """Get or create the shared policy loader.

    The loader is reused while callers ask for the same file. Asking for a
    different file replaces it with a loader for that file.

    Args:
        config_path: Path to the YAML file. Defaults to DEFAULT_POLICY_CONFIG_PATH.
    """
    global _default_loader
    path = Path(config_path) if config_path else DEFAULT_POLICY_CONFIG_PATH
    with _loader_lock:
        if _default_loader is None or _default_loader.config_path != path:
            if _default_loader is not None:
                logger.info(
                    f"Switching score policy file from {_default_loader.config_path} to {path}"
                )
            _default_loader = PolicyConfigLoader(config_path=path)
        return _default_loader
