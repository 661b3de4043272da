"""Configuration for eGuard.

The configuration is an immutable snapshot built once per process and shared
by every concurrent caller of the guard. Changing it means constructing a new
EGuard; there is no reload.

Two ways in:
  1. ``EGuardConfig(...)`` / ``EGuardConfig.from_dict(raw)`` — hosts that own
     their configuration (framework settings, secrets manager, tests).
  2. ``load_config()`` — reads YAML from the first existing path in:
       1. ``config_path`` argument (if provided)
       2. ``EGUARD_CONFIG`` environment variable (if set)
       3. ``.eguard/config.yaml`` (working directory — for development)
       4. ``~/.eguard/config.yaml`` (home directory — for deployments)
     then applies environment overrides.

Environment variable overrides (applied after the file, before validation):
  EGUARD_API_BASE_URL    — overrides api_base_url
  EGUARD_API_KEY         — overrides api_key (keeps the secret out of the file)
  EGUARD_MIN_TRUST_SCORE — overrides min_trust_score (float)
  EGUARD_TIMEOUT_MS      — overrides timeout_ms (positive integer)

Every validation failure raises ConfigError naming the offending field.
The api_key is excluded from repr() and never logged.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import yaml

from eguard.constants import DEFAULT_TIMEOUT_MS
from eguard.errors import ConfigError
from eguard.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

DEFAULT_CONFIG_PATHS = [
    ".eguard/config.yaml",
    os.path.expanduser("~/.eguard/config.yaml"),
]

_REQUIRED_FIELDS = ("api_base_url", "api_key", "min_trust_score")


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SecureRoute:
    """A path pattern (google-re2 syntax) plus an optional method restriction.

    methods=None means every method. Methods are uppercased when the route is
    compiled, so ``["get"]`` and ``["GET"]`` are equivalent.
    """

    path_pattern: str
    methods: Optional[frozenset[str]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.path_pattern, str):
            raise ConfigError(
                f"path_pattern must be a string, got {type(self.path_pattern).__name__}",
                field="path_pattern",
            )
        if self.methods is not None:
            if isinstance(self.methods, str):
                raise ConfigError(
                    "methods must be a list of HTTP verbs, not a single string",
                    field="methods",
                )
            methods = list(self.methods)
            for method in methods:
                if not isinstance(method, str):
                    raise ConfigError(
                        f"methods entries must be strings, got {type(method).__name__}",
                        field="methods",
                    )
            object.__setattr__(self, "methods", frozenset(methods))


@dataclass(frozen=True)
class SessionExtraction:
    """Where to look for the session id.

    cookie_name:   Cookie key to read (case-sensitive). Checked first.
    header_name:   Header to read (case-insensitive). Checked when the cookie
                   yields nothing.
    header_bearer: Strip a leading ``"Bearer "`` from the header value.

    With neither name set, extraction always yields None.
    """

    cookie_name: Optional[str] = None
    header_name: Optional[str] = None
    header_bearer: bool = False

    def __post_init__(self) -> None:
        for name in ("cookie_name", "header_name"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ConfigError(
                    f"session_extraction.{name} must be a string",
                    field=f"session_extraction.{name}",
                )
        if not isinstance(self.header_bearer, bool):
            raise ConfigError(
                "session_extraction.header_bearer must be true or false",
                field="session_extraction.header_bearer",
            )


@dataclass(frozen=True)
class EGuardConfig:
    """Root configuration object. Immutable after construction."""

    api_base_url: str
    api_key: str = field(repr=False)
    min_trust_score: float
    secure_routes: tuple[SecureRoute, ...] = ()
    session_extraction: SessionExtraction = field(default_factory=SessionExtraction)
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if not isinstance(self.api_base_url, str) or not self.api_base_url.strip():
            raise ConfigError("api_base_url must be a non-empty string", field="api_base_url")
        if not isinstance(self.api_key, str) or not self.api_key:
            raise ConfigError("api_key must be a non-empty string", field="api_key")

        score = self.min_trust_score
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ConfigError(
                f"min_trust_score must be a number, got {type(score).__name__}",
                field="min_trust_score",
            )
        object.__setattr__(self, "min_trust_score", float(score))

        timeout = self.timeout_ms
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
            raise ConfigError(
                f"timeout_ms must be a positive integer, got {timeout!r}",
                field="timeout_ms",
            )

        routes = tuple(self.secure_routes)
        for i, route in enumerate(routes):
            if not isinstance(route, SecureRoute):
                raise ConfigError(
                    f"secure_routes[{i}] must be a SecureRoute",
                    field=f"secure_routes[{i}]",
                )
        object.__setattr__(self, "secure_routes", routes)

        if not isinstance(self.session_extraction, SessionExtraction):
            raise ConfigError(
                "session_extraction must be a SessionExtraction",
                field="session_extraction",
            )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "EGuardConfig":
        """Construct EGuardConfig from a parsed mapping (YAML, JSON, settings).

        Unknown keys are ignored. ``timeout_ms`` defaults to 1500 when omitted.

        Raises:
            ConfigError: On a missing required field, wrong type, or
                         unsupported ``version``.
        """
        if not isinstance(raw, Mapping):
            raise ConfigError(
                f"configuration must be a mapping, got {type(raw).__name__}"
            )

        version = raw.get("version", SUPPORTED_CONFIG_VERSION)
        if version not in SUPPORTED_VERSIONS:
            raise ConfigError(
                f"Unsupported config version: {version}. "
                f"Supported versions: {sorted(SUPPORTED_VERSIONS)}.",
                field="version",
            )

        missing = [name for name in _REQUIRED_FIELDS if raw.get(name) is None]
        if missing:
            raise ConfigError(
                f"missing required field(s): {', '.join(missing)}",
                field=missing[0],
            )

        # ── Secure routes ─────────────────────────────────────────────────────
        routes_raw = raw.get("secure_routes") or []
        if not isinstance(routes_raw, list):
            raise ConfigError("secure_routes must be a list", field="secure_routes")
        routes = tuple(_parse_route(i, item) for i, item in enumerate(routes_raw))

        # ── Session extraction ────────────────────────────────────────────────
        extraction_raw = raw.get("session_extraction") or {}
        if not isinstance(extraction_raw, Mapping):
            raise ConfigError(
                "session_extraction must be a mapping", field="session_extraction"
            )
        extraction = SessionExtraction(
            cookie_name=extraction_raw.get("cookie_name"),
            header_name=extraction_raw.get("header_name"),
            header_bearer=extraction_raw.get("header_bearer", False),
        )

        return cls(
            api_base_url=raw["api_base_url"],
            api_key=raw["api_key"],
            min_trust_score=raw["min_trust_score"],
            secure_routes=routes,
            session_extraction=extraction,
            timeout_ms=raw.get("timeout_ms", DEFAULT_TIMEOUT_MS),
        )


def _parse_route(index: int, item: Any) -> SecureRoute:
    if not isinstance(item, Mapping):
        raise ConfigError(
            f"secure_routes[{index}] must be a mapping, got {type(item).__name__}",
            field=f"secure_routes[{index}]",
        )
    pattern = item.get("path_pattern")
    if not isinstance(pattern, str):
        raise ConfigError(
            f"secure_routes[{index}].path_pattern must be a string",
            field=f"secure_routes[{index}].path_pattern",
        )
    methods = item.get("methods")
    if methods is not None and not isinstance(methods, list):
        raise ConfigError(
            f"secure_routes[{index}].methods must be a list",
            field=f"secure_routes[{index}].methods",
        )
    try:
        return SecureRoute(path_pattern=pattern, methods=methods)
    except ConfigError as exc:
        raise ConfigError(
            f"secure_routes[{index}]: {exc.message}",
            field=f"secure_routes[{index}].{exc.field}",
        ) from exc


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> EGuardConfig:
    """Load and validate eGuard configuration from YAML and the environment.

    If no file is found the configuration is built from environment overrides
    alone (which then must supply every required field).

    Raises:
        ConfigError: On YAML parse error, unreadable file, non-mapping root,
                     invalid override, or any field validation failure.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("EGUARD_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    raw: dict[str, Any]
    if found_path is None:
        logger.info("No config file found, using environment only", searched=search_paths)
        raw = {}
    else:
        logger.info("Loading config", path=found_path)
        raw = _read_yaml(found_path)

    raw = _apply_env_overrides(raw)
    config = EGuardConfig.from_dict(raw)

    logger.info(
        "Config loaded",
        path=found_path,
        api_base_url=config.api_base_url,
        secure_routes=len(config.secure_routes),
        min_trust_score=config.min_trust_score,
        timeout_ms=config.timeout_ms,
    )
    return config


def _read_yaml(path: str) -> dict[str, Any]:
    try:
        with open(path) as fh:
            loaded = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(
            f"{path} is not a valid YAML mapping. "
            "The config file must be a YAML dictionary at the top level."
        )
    return loaded


def _apply_env_overrides(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``raw`` with EGUARD_* environment overrides applied.

    Raises:
        ConfigError: If a numeric override cannot be parsed.
    """
    merged = dict(raw)

    for env_name, key in (
        ("EGUARD_API_BASE_URL", "api_base_url"),
        ("EGUARD_API_KEY", "api_key"),
    ):
        value = os.environ.get(env_name)
        if value:
            merged[key] = value

    env_score = os.environ.get("EGUARD_MIN_TRUST_SCORE")
    if env_score is not None:
        try:
            merged["min_trust_score"] = float(env_score)
        except ValueError:
            raise ConfigError(
                f"EGUARD_MIN_TRUST_SCORE environment variable is not a valid "
                f"number: '{env_score}'",
                field="min_trust_score",
            ) from None

    env_timeout = os.environ.get("EGUARD_TIMEOUT_MS")
    if env_timeout is not None:
        try:
            merged["timeout_ms"] = int(env_timeout)
        except ValueError:
            raise ConfigError(
                f"EGUARD_TIMEOUT_MS environment variable is not a valid "
                f"integer: '{env_timeout}'",
                field="timeout_ms",
            ) from None

    return merged
