"""Configuration loading for uastcov (.uastcov.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import AuditError

CONFIG_FILENAME = ".uastcov.yml"

DEFAULT_CLONE_ROOT = "./drivers/"
DEFAULT_CONCURRENCY = 3
DEFAULT_BRANCH = "master"
DEFAULT_REGISTRY_URL = "https://api.github.com"
DEFAULT_ORGANIZATION = "bblfsh"
DEFAULT_TOPIC = "babelfish-driver"
DEFAULT_FIXTURE_PATTERNS = ("fixtures/*.sem.uast",)
DEFAULT_CODE_PATTERNS = ("driver/normalizer/*.go",)
DEFAULT_UAST_PACKAGE = "github.com/bblfsh/sdk/v3/uast"

ENV_TOKEN_KEYS = ("UASTCOV_GITHUB_TOKEN", "GITHUB_TOKEN")


class ConfigError(AuditError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class SyncConfig:
    """Repository synchronization settings."""

    concurrency: int = DEFAULT_CONCURRENCY
    branch: str = DEFAULT_BRANCH
    timeout: Optional[float] = None


@dataclass
class RegistryConfig:
    """Where and how drivers are discovered."""

    url: str = DEFAULT_REGISTRY_URL
    organization: str = DEFAULT_ORGANIZATION
    topic: str = DEFAULT_TOPIC
    timeout: Optional[float] = 30.0
    token: Optional[str] = None


@dataclass
class StaticDriver:
    """Driver declared directly in the configuration file."""

    language: str
    url: str


@dataclass
class ScanConfig:
    """Glob patterns (relative to a driver checkout) feeding a scanner."""

    patterns: List[str] = field(default_factory=list)
    package: Optional[str] = None


@dataclass
class ReportConfig:
    show_status: bool = False


@dataclass
class PprofConfig:
    host: str = "localhost"
    port: int = 6060


@dataclass
class AuditConfig:
    """Represents the settings defined in .uastcov.yml."""

    root: Path
    clone_root: Path
    sync: SyncConfig = field(default_factory=SyncConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    drivers: List[StaticDriver] = field(default_factory=list)
    catalog: List[str] = field(default_factory=list)
    fixtures: ScanConfig = field(
        default_factory=lambda: ScanConfig(patterns=list(DEFAULT_FIXTURE_PATTERNS))
    )
    code: ScanConfig = field(
        default_factory=lambda: ScanConfig(
            patterns=list(DEFAULT_CODE_PATTERNS), package=DEFAULT_UAST_PACKAGE
        )
    )
    report: ReportConfig = field(default_factory=ReportConfig)
    pprof: PprofConfig = field(default_factory=PprofConfig)


def load_config(config_path: Path) -> AuditConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return _with_env_token(AuditConfig(root=root, clone_root=root / DEFAULT_CLONE_ROOT))

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    clone_root_str = _as_str(data.get("clone_root")) or DEFAULT_CLONE_ROOT
    clone_root = Path(clone_root_str).expanduser()
    if not clone_root.is_absolute():
        clone_root = root / clone_root

    sync = SyncConfig()
    sync_data = _as_dict(data.get("sync"))
    if sync_data:
        if sync_data.get("concurrency") is not None:
            concurrency = _as_int(sync_data["concurrency"])
            if concurrency is None or concurrency < 1:
                raise ConfigError("sync.concurrency must be an integer of at least 1")
            sync.concurrency = concurrency
        sync.branch = _as_str(sync_data.get("branch")) or DEFAULT_BRANCH
        if sync_data.get("timeout") is not None:
            timeout = _as_float(sync_data["timeout"])
            if timeout is None or timeout <= 0:
                raise ConfigError("sync.timeout must be a positive number of seconds")
            sync.timeout = timeout

    registry = RegistryConfig()
    registry_data = _as_dict(data.get("registry"))
    if registry_data:
        registry.url = (_as_str(registry_data.get("url")) or DEFAULT_REGISTRY_URL).rstrip("/")
        registry.organization = _as_str(registry_data.get("organization")) or DEFAULT_ORGANIZATION
        registry.topic = _as_str(registry_data.get("topic")) or DEFAULT_TOPIC
        if "timeout" in registry_data:
            registry.timeout = _as_float(registry_data.get("timeout"))
        registry.token = _as_str(registry_data.get("token"))

    drivers = _parse_drivers(data.get("drivers"))
    catalog = _as_str_list(data.get("catalog"))

    fixtures_data = _as_dict(data.get("fixtures"))
    fixtures = ScanConfig(
        patterns=_as_str_list(fixtures_data.get("patterns")) or list(DEFAULT_FIXTURE_PATTERNS)
    )

    code_data = _as_dict(data.get("code"))
    code = ScanConfig(
        patterns=_as_str_list(code_data.get("patterns")) or list(DEFAULT_CODE_PATTERNS),
        package=_as_str(code_data.get("package")) or DEFAULT_UAST_PACKAGE,
    )

    report_data = _as_dict(data.get("report"))
    report = ReportConfig(show_status=_as_bool(report_data.get("show_status")) or False)

    pprof = PprofConfig()
    pprof_data = _as_dict(data.get("pprof"))
    if pprof_data:
        pprof.host = _as_str(pprof_data.get("host")) or pprof.host
        if pprof_data.get("port") is not None:
            port = _as_int(pprof_data["port"])
            if port is None or not 0 < port < 65536:
                raise ConfigError("pprof.port must be an integer between 1 and 65535")
            pprof.port = port

    config = AuditConfig(
        root=root,
        clone_root=clone_root,
        sync=sync,
        registry=registry,
        drivers=drivers,
        catalog=catalog,
        fixtures=fixtures,
        code=code,
        report=report,
        pprof=pprof,
    )
    return _with_env_token(config)


def _with_env_token(config: AuditConfig) -> AuditConfig:
    if config.registry.token:
        return config
    for key in ENV_TOKEN_KEYS:
        value = os.getenv(key)
        if value:
            config.registry.token = value
            break
    return config


def _parse_drivers(value: Any) -> List[StaticDriver]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError("drivers must be a list of {language, url} entries")
    drivers: List[StaticDriver] = []
    for index, entry in enumerate(value):
        entry_data = _as_dict(entry)
        language = _as_str(entry_data.get("language"))
        url = _as_str(entry_data.get("url"))
        if not language or not url:
            raise ConfigError(f"drivers[{index}] requires both 'language' and 'url'")
        drivers.append(StaticDriver(language=language, url=url))
    return drivers


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
