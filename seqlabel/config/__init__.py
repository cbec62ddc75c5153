"""
Configuration Management for seqlabel

Training runs are configured from YAML files whose ``training`` section
holds trainer options, optionally nested per task:

    training:
      Iterations: 100
      Threads: ${SEQLABEL_THREADS}
      ner:
        Cutoff: 3

``${VAR}`` references are replaced from the environment when the file is
loaded; unknown variables are left as written.
"""

from typing import Dict, Any, Optional, Union
import os
import re
import yaml
from pathlib import Path

from ..errors import ConfigurationError


_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")
_MISSING = object()


class Config:
    """Parsed configuration tree with dotted-path lookups."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Value at a dotted path such as ``"training.ner.Cutoff"``."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def to_dict(self) -> Dict[str, Any]:
        return self._data

    def __repr__(self) -> str:
        return f"Config({self._data})"


def load_yaml(path: Union[str, Path]) -> Config:
    """
    Load a YAML config file.

    Args:
        path: Path to YAML file

    Returns:
        Config object

    Raises:
        ConfigurationError: If the file is not valid YAML or its top level
            is not a mapping
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Cannot parse YAML config: {e}", config_file=str(path), cause=e
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            "Top level of a config file must be a mapping", config_file=str(path)
        )
    return Config(_interpolate_env_vars(data))


def _interpolate_env_vars(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _interpolate_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_interpolate_env_vars(item) for item in data]
    if isinstance(data, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), data)
    return data


# =============================================================================
# TRAINING PARAMETERS
# =============================================================================


class TrainingParameters:
    """
    Recognized options for the maximum entropy trainer.

    Keys are stored as strings the way they appear in configuration files.
    A key may be namespaced (``"ner.Iterations"``); lookups made with a
    namespace fall back to the global key.

    Recognized keys:
    - Algorithm: ``MAXENT``
    - Iterations: number of GIS iterations (default 100)
    - Cutoff: minimum predicate count (default 5)
    - Threads: number of training workers (default 1)
    - Smoothing: ``none``, ``simple`` or ``gaussian``
    - SmoothingObservation: pseudo-count for unseen pairs (default 0.1)
    - GaussianSigma: prior width for gaussian smoothing (default 2.0)
    """

    ALGORITHM_PARAM = "Algorithm"
    ITERATIONS_PARAM = "Iterations"
    CUTOFF_PARAM = "Cutoff"
    THREADS_PARAM = "Threads"
    SMOOTHING_PARAM = "Smoothing"
    SMOOTHING_OBSERVATION_PARAM = "SmoothingObservation"
    GAUSSIAN_SIGMA_PARAM = "GaussianSigma"

    MAXENT_VALUE = "MAXENT"

    ITERATIONS_DEFAULT = 100
    CUTOFF_DEFAULT = 5
    THREADS_DEFAULT = 1
    SMOOTHING_OBSERVATION_DEFAULT = 0.1
    GAUSSIAN_SIGMA_DEFAULT = 2.0

    ALGORITHMS = (MAXENT_VALUE,)
    SMOOTHING_MODES = ("none", "simple", "gaussian")

    def __init__(self, settings: Optional[Dict[str, Any]] = None):
        self._settings: Dict[str, str] = {}
        for key, value in (settings or {}).items():
            self.put(key, value)

    @classmethod
    def defaults(cls) -> "TrainingParameters":
        """Parameters with every recognized key set to its default."""
        return cls(
            {
                cls.ALGORITHM_PARAM: cls.MAXENT_VALUE,
                cls.ITERATIONS_PARAM: cls.ITERATIONS_DEFAULT,
                cls.CUTOFF_PARAM: cls.CUTOFF_DEFAULT,
                cls.THREADS_PARAM: cls.THREADS_DEFAULT,
                cls.SMOOTHING_PARAM: "none",
            }
        )

    @classmethod
    def create(cls, iterations: int, cutoff: int) -> "TrainingParameters":
        params = cls.defaults()
        params.put(cls.ITERATIONS_PARAM, iterations)
        params.put(cls.CUTOFF_PARAM, cutoff)
        return params

    @classmethod
    def from_config(cls, config: Config, section: str = "training") -> "TrainingParameters":
        """Build parameters from a section of a loaded config."""
        data = config.get(section, {}) if section else config.to_dict()
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config section '{section}' must be a mapping", config_key=section
            )
        return cls(_flatten(data))

    @classmethod
    def from_yaml(cls, path: Union[str, Path], section: str = "training") -> "TrainingParameters":
        return cls.from_config(load_yaml(path), section)

    def put(self, key: str, value: Any, namespace: Optional[str] = None) -> None:
        if namespace:
            key = f"{namespace}.{key}"
        self._settings[key] = str(value)

    def get(self, key: str, namespace: Optional[str] = None) -> Optional[str]:
        if namespace:
            value = self._settings.get(f"{namespace}.{key}")
            if value is not None:
                return value
        return self._settings.get(key)

    def settings(self, namespace: Optional[str] = None) -> Dict[str, str]:
        """Settings visible under ``namespace`` with the prefix stripped."""
        if namespace is None:
            return {k: v for k, v in self._settings.items() if "." not in k}
        prefix = f"{namespace}."
        merged = {k: v for k, v in self._settings.items() if "." not in k}
        for key, value in self._settings.items():
            if key.startswith(prefix):
                merged[key[len(prefix):]] = value
        return merged

    # typed accessors

    def get_int(self, key: str, default: int, namespace: Optional[str] = None) -> int:
        value = self.get(key, namespace)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(
                f"{key} must be an integer, got {value!r}", config_key=key, cause=e
            ) from e

    def get_float(self, key: str, default: float, namespace: Optional[str] = None) -> float:
        value = self.get(key, namespace)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError as e:
            raise ConfigurationError(
                f"{key} must be a number, got {value!r}", config_key=key, cause=e
            ) from e

    def algorithm(self, namespace: Optional[str] = None) -> str:
        return (self.get(self.ALGORITHM_PARAM, namespace) or self.MAXENT_VALUE).upper()

    def iterations(self, namespace: Optional[str] = None) -> int:
        return self.get_int(self.ITERATIONS_PARAM, self.ITERATIONS_DEFAULT, namespace)

    def cutoff(self, namespace: Optional[str] = None) -> int:
        return self.get_int(self.CUTOFF_PARAM, self.CUTOFF_DEFAULT, namespace)

    def threads(self, namespace: Optional[str] = None) -> int:
        return self.get_int(self.THREADS_PARAM, self.THREADS_DEFAULT, namespace)

    def smoothing(self, namespace: Optional[str] = None) -> str:
        value = self.get(self.SMOOTHING_PARAM, namespace)
        if value is None:
            return "none"
        value = value.lower()
        # "true"/"false" as written by older configs
        if value == "true":
            return "simple"
        if value == "false":
            return "none"
        return value

    def smoothing_observation(self, namespace: Optional[str] = None) -> float:
        return self.get_float(
            self.SMOOTHING_OBSERVATION_PARAM, self.SMOOTHING_OBSERVATION_DEFAULT, namespace
        )

    def gaussian_sigma(self, namespace: Optional[str] = None) -> float:
        return self.get_float(self.GAUSSIAN_SIGMA_PARAM, self.GAUSSIAN_SIGMA_DEFAULT, namespace)

    def validate(self, namespace: Optional[str] = None) -> None:
        """Raise ConfigurationError on the first unusable setting."""
        algorithm = self.algorithm(namespace)
        if algorithm not in self.ALGORITHMS:
            raise ConfigurationError(
                f"Unsupported algorithm: {algorithm}", config_key=self.ALGORITHM_PARAM
            )
        if self.iterations(namespace) < 1:
            raise ConfigurationError(
                "Iterations must be at least 1", config_key=self.ITERATIONS_PARAM
            )
        if self.cutoff(namespace) < 0:
            raise ConfigurationError("Cutoff must not be negative", config_key=self.CUTOFF_PARAM)
        if self.threads(namespace) < 1:
            raise ConfigurationError("Threads must be at least 1", config_key=self.THREADS_PARAM)
        smoothing = self.smoothing(namespace)
        if smoothing not in self.SMOOTHING_MODES:
            raise ConfigurationError(
                f"Unknown smoothing mode: {smoothing}", config_key=self.SMOOTHING_PARAM
            )
        if self.smoothing_observation(namespace) <= 0:
            raise ConfigurationError(
                "SmoothingObservation must be positive",
                config_key=self.SMOOTHING_OBSERVATION_PARAM,
            )
        if smoothing == "gaussian" and self.gaussian_sigma(namespace) <= 0:
            raise ConfigurationError(
                "GaussianSigma must be positive", config_key=self.GAUSSIAN_SIGMA_PARAM
            )

    def is_valid(self, namespace: Optional[str] = None) -> bool:
        try:
            self.validate(namespace)
        except ConfigurationError:
            return False
        return True

    def __repr__(self) -> str:
        return f"TrainingParameters({self._settings})"


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


# Default training configuration
DEFAULT_TRAINING_CONFIG = """
training:
  Algorithm: MAXENT
  Iterations: 100
  Cutoff: 5
  Threads: 1
  Smoothing: none

  ner:
    Cutoff: 3

  postag:
    Iterations: 150
"""


def create_default_config(output_path: str = "training.yaml") -> None:
    """Create default configuration file."""
    with open(output_path, "w") as f:
        f.write(DEFAULT_TRAINING_CONFIG)


__all__ = [
    "Config",
    "load_yaml",
    "TrainingParameters",
    "DEFAULT_TRAINING_CONFIG",
    "create_default_config",
]
