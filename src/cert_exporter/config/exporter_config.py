"""cert-exporter configuration loader.

Lifecycle::

    # CLI builds the config once, at startup
    config = ExporterConfig(config_file="/etc/cert-exporter/config.yaml")
    config.settings.certificates.glob      # typed access
    config.get("metrics.namespace")        # dynamic dot-path

Command-line flags are merged on top of the file through ``overrides``;
the file itself is optional as long as the merged data is valid.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from cert_exporter.config.settings import ExporterSettings, build_settings
from cert_exporter.cycle.discovery import InvalidGlobError, validate_glob_pattern

_SCHEMA_PATH = Path(__file__).parent / "schema.json"

_ENV_RE = re.compile(
    r"^\$\{([^}:]+?)(?::-(.*))?\}$",
    re.DOTALL,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation error collector
# ---------------------------------------------------------------------------


class ConfigValidationError(Exception):
    """Raised when loading or validation finds one or more problems."""

    def __init__(self, errors: list[str]) -> None:
        """Store *errors* and build a human-readable message."""
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Configuration validation failed:\n{body}")


# ---------------------------------------------------------------------------
# Environment variable resolution
# ---------------------------------------------------------------------------


def _resolve_value(value: str, path: str) -> str:
    """Replace ``${VAR}`` or ``${VAR:-default}`` with env var value."""
    match = _ENV_RE.match(value)
    if match is None:
        return value
    var_name = match.group(1)
    fallback = match.group(2)
    resolved = os.environ.get(var_name)
    if resolved is not None:
        return resolved
    if fallback is not None:
        return fallback
    raise ConfigValidationError(
        [
            f"Environment variable '${{{var_name}}}' referenced "
            f"at '{path}' is not set and has no default",
        ],
    )


def _resolve_env_vars(
    data: Any,  # noqa: ANN401
    path: str = "",
) -> None:
    """Walk *data* in-place and resolve ``${VAR}``/``${VAR:-default}`` strings."""
    if isinstance(data, dict):
        for key in data:
            child_path = f"{path}.{key}" if path else key
            if isinstance(data[key], str):
                data[key] = _resolve_value(data[key], child_path)
            elif isinstance(data[key], (dict, list)):
                _resolve_env_vars(data[key], child_path)
    elif isinstance(data, list):
        for idx, item in enumerate(data):
            child_path = f"{path}[{idx}]"
            if isinstance(item, str):
                data[idx] = _resolve_value(item, child_path)
            elif isinstance(item, (dict, list)):
                _resolve_env_vars(item, child_path)


def _merge(base: dict, overrides: dict) -> dict:
    """Recursively merge *overrides* into a copy of *base*."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _read_file(config_file: Path) -> dict:
    try:
        with config_file.open(encoding="utf-8") as f:
            if config_file.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as exc:
        raise ConfigValidationError([f"can not read {config_file}: {exc}"]) from exc
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigValidationError([f"can not parse {config_file}: {exc}"]) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            [f"{config_file} must contain a mapping at the top level"],
        )
    return data


# ---------------------------------------------------------------------------
# Config class
# ---------------------------------------------------------------------------


class ExporterConfig:
    """Central configuration for the exporter.

    The JSON schema is bundled at ``config/schema.json``.  After
    construction the typed settings tree is available at
    :pyattr:`settings` and the raw dict via :pyattr:`data` /
    :pymeth:`get`.
    """

    def __init__(
        self,
        *,
        config_file: str | Path | None = None,
        overrides: dict | None = None,
    ) -> None:
        """Load, validate and materialise the configuration.

        Parameters
        ----------
        config_file:
            Optional path to a YAML/JSON configuration file.
        overrides:
            Nested mapping merged on top of the file, typically built
            from command-line flags.

        """
        self._data = self._load(config_file, overrides or {})
        self._validate_schema()
        self.additional_checks()
        self._settings: ExporterSettings = build_settings(self._data)

    # -- lifecycle ----------------------------------------------------------

    @staticmethod
    def _load(config_file: str | Path | None, overrides: dict) -> dict:
        """Load config file, merge overrides, then resolve ``${VAR}`` references.

        Runs env-var resolution **before** schema validation so that
        substituted values are checked against the schema.
        """
        data: dict = {}
        if config_file is not None:
            data = _read_file(Path(config_file))
            data["_source"] = str(config_file)

        data = _merge(data, overrides)
        _resolve_env_vars(data)

        level = (data.get("logging") or {}).get("level")
        if isinstance(level, str):
            data["logging"]["level"] = level.upper()
        return data

    def _validate_schema(self) -> None:
        schema = json.loads(_SCHEMA_PATH.read_text(encoding="utf-8"))
        validator = Draft202012Validator(schema)
        found = sorted(validator.iter_errors(self._data), key=lambda e: [str(p) for p in e.path])
        errors = [
            f"{'.'.join(str(p) for p in err.absolute_path) or '<root>'}: {err.message}"
            for err in found
        ]
        if errors:
            raise ConfigValidationError(errors)

    # -- typed access -------------------------------------------------------

    @property
    def data(self) -> dict:
        """Raw, env-resolved configuration mapping."""
        return self._data

    @property
    def settings(self) -> ExporterSettings:
        """Fully-typed, frozen settings tree."""
        return self._settings

    def get(self, path: str, default: Any = None) -> Any:  # noqa: ANN401
        """Return the value at dotted *path*, or *default* when missing."""
        node: Any = self._data
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    # -- cross-field validation ---------------------------------------------

    def additional_checks(self) -> None:
        """Semantic validation run after the schema passes."""
        errors: list[str] = []

        certificates = self._data.get("certificates") or {}
        try:
            validate_glob_pattern(certificates.get("glob", ""))
        except InvalidGlobError as exc:
            errors.append(f"certificates.glob: {exc}")

        metrics = self._data.get("metrics") or {}
        if metrics.get("path") in ("/healthz",):
            errors.append("metrics.path must not collide with the /healthz endpoint")

        if errors:
            raise ConfigValidationError(errors)

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        source = self._data.get("_source", "<flags>")
        return f"<ExporterConfig config_file={source}>"
