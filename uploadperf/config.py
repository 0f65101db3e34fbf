"""
Harness configuration.

A run is described by one immutable HarnessConfig value, built once before
the test starts and handed explicitly to the coordinator and its workers.

Values are resolved in this order (last wins):
  1) built-in defaults
  2) a YAML configuration file (optional)
  3) ACCESS_KEY / SECRET_KEY from the environment
  4) options given on the command line
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from uploadperf.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_RANDOM_SEED = 42

# Minimum worker running time, in seconds
DEFAULT_MIN_DURATION = 15 * 60

# Minimum per worker upload count
DEFAULT_MIN_UPLOAD_COUNT = 10

ACCESS_KEY_ENV = "ACCESS_KEY"
SECRET_KEY_ENV = "SECRET_KEY"


def _require(name: str, value: Any, kind: type) -> None:
    """Raise ConfigError unless ``value`` is of ``kind``; bools never pass as numbers"""
    if kind is bool:
        ok = isinstance(value, bool)
    elif kind is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    elif kind is float:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    else:
        ok = isinstance(value, kind)
    if not ok:
        raise ConfigError(
            f"{name} must be of type {kind.__name__}, got {type(value).__name__} {value!r}"
        )


@dataclass(frozen=True)
class TerminationPolicy:
    """
    When a worker may stop on its own.

    A worker stops gracefully only once it has been running for at least
    ``min_duration`` seconds AND has completed ``min_upload_count``
    uploads. Failures and cancellation stop it regardless.
    """

    min_duration: float = DEFAULT_MIN_DURATION
    min_upload_count: int = DEFAULT_MIN_UPLOAD_COUNT

    def __post_init__(self):
        _require("min_duration", self.min_duration, float)
        _require("min_upload_count", self.min_upload_count, int)

    def satisfied(self, elapsed: float, upload_count: int) -> bool:
        return elapsed >= self.min_duration and upload_count >= self.min_upload_count


@dataclass(frozen=True)
class HarnessConfig:
    """Everything a test run needs, fixed for the lifetime of the run"""

    endpoint: str = "localhost:9000"
    secure: bool = False
    bucket: str = "bucket"
    region: str = "us-east-1"
    verify_ssl: bool = True
    concurrency: int = 1
    seed: int = DEFAULT_RANDOM_SEED
    output_file: str = "output.csv"
    object_size: int = 0
    policy: TerminationPolicy = field(default_factory=TerminationPolicy)
    access_key: str = field(default="", repr=False)
    secret_key: str = field(default="", repr=False)

    def __post_init__(self):
        # annotations are plain classes: str, bool, int, TerminationPolicy
        for f in fields(self):
            _require(f.name, getattr(self, f.name), f.type)
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be at least 1, got {self.concurrency}")
        if self.object_size < 0:
            raise ConfigError(f"object size must not be negative, got {self.object_size}")
        if self.policy.min_duration < 0 or self.policy.min_upload_count < 0:
            raise ConfigError(f"invalid termination policy: {self.policy}")

    @property
    def endpoint_url(self) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.endpoint}"


# Keys accepted in a YAML file that map onto the policy instead of the config
_POLICY_KEYS = {"min_duration", "min_upload_count"}


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """
    Load harness settings from a YAML file, e.g.:

        endpoint: minio.local:9000
        bucket: perf
        concurrency: 8
        min_duration: 60

    Unknown keys are rejected so typos do not silently fall back to defaults.
    """
    if not path:
        return {}
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"malformed config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping at top-level")

    known = {f.name for f in fields(HarnessConfig)} | _POLICY_KEYS
    unknown = sorted(set(data) - known - {"policy"})
    if unknown:
        raise ConfigError(f"unknown keys in config file {path}: {', '.join(unknown)}")
    return data


def read_env_credentials(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return credentials found in the environment, skipping unset ones"""
    environ = os.environ if environ is None else environ
    creds = {}
    for key, env_name in (("access_key", ACCESS_KEY_ENV), ("secret_key", SECRET_KEY_ENV)):
        value = environ.get(env_name, "")
        if value:
            creds[key] = value
    return creds


def build_config(
    options: Optional[Mapping[str, Any]] = None,
    file_values: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> HarnessConfig:
    """
    Merge defaults, file values, environment credentials and explicit
    options into one HarnessConfig. Options whose value is None are treated
    as not given.
    """
    merged: Dict[str, Any] = {}
    sources = []
    for name, layer in (
        ("file", file_values or {}),
        ("env", read_env_credentials(environ)),
        ("options", options or {}),
    ):
        applied = {k: v for k, v in layer.items() if v is not None}
        if applied:
            sources.append(name)
        nested_policy = applied.pop("policy", None)
        if isinstance(nested_policy, Mapping):
            merged.update(nested_policy)
        merged.update(applied)

    policy_values = {k: merged.pop(k) for k in list(merged) if k in _POLICY_KEYS}
    logger.debug("Configuration resolved from: %s", ", ".join(["defaults"] + sources))

    try:
        policy = TerminationPolicy(**policy_values)
        return HarnessConfig(policy=policy, **merged)
    except TypeError as e:
        raise ConfigError(f"invalid configuration: {e}") from e
