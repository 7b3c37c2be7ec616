from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .classifier import DEFAULT_CLUSTERS, DEFAULT_LABEL
from .models import Credentials


DEFAULT_CREDENTIALS_FILE = "~/.ica_credentials"
DEFAULT_OUTPUT_DIR = "~/Documents/icpenses/data"

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            return os.getenv(match.group(1), "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on"}


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _default_config_from_env() -> dict:
    """
    Env-only defaults, so most users only need `.env` (or nothing at all).
    """
    return {
        "portal": {
            "base_url": os.getenv("ICA_BASE_URL", "https://www.icabanken.se"),
            "headless": not _env_bool("ICA_HEADFUL", default=False),
            "timeout_ms": int(os.getenv("ICA_TIMEOUT_MS", "30000") or 30000),
            "slow_mo_ms": int(os.getenv("ICA_SLOWMO_MS", "0") or 0),
            "debug_dir": os.getenv("ICA_DEBUG_DIR", "data/debug"),
        },
        "credentials": {
            "file": os.getenv("ICA_CREDENTIALS_FILE", DEFAULT_CREDENTIALS_FILE),
            "pnr": os.getenv("ICA_PNR", ""),
            "pin": os.getenv("ICA_PIN", ""),
        },
        "export": {
            "output_dir": os.getenv("ICA_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", ""),
        },
    }


class PortalConfig(BaseModel):
    base_url: str = "https://www.icabanken.se"
    headless: bool = True
    timeout_ms: int = Field(default=30_000, gt=0)
    slow_mo_ms: int = Field(default=0, ge=0)
    debug_dir: str = "data/debug"

    @field_validator("base_url")
    @classmethod
    def _normalize_base_url(cls, v: str) -> str:
        base_url = (v or "").strip().rstrip("/")
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("portal.base_url must be a full URL like 'https://www.icabanken.se'")
        return base_url


class CredentialsConfig(BaseModel):
    file: str = DEFAULT_CREDENTIALS_FILE
    pnr: str = ""
    pin: str = Field(default="", repr=False)


class ExportConfig(BaseModel):
    output_dir: str = DEFAULT_OUTPUT_DIR


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = ""


class ClusterRule(BaseModel):
    pattern: str
    label: str

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid cluster pattern {v!r}: {e}") from e
        return v


class ReportConfig(BaseModel):
    clusters: list[ClusterRule] = Field(
        default_factory=lambda: [ClusterRule(pattern=p, label=label) for p, label in DEFAULT_CLUSTERS]
    )
    default_label: str = DEFAULT_LABEL

    def rules(self) -> list[tuple[str, str]]:
        return [(c.pattern, c.label) for c in self.clusters]


class AppConfig(BaseModel):
    portal: PortalConfig = PortalConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    export: ExportConfig = ExportConfig()
    logging: LoggingConfig = LoggingConfig()
    report: ReportConfig = Field(default_factory=ReportConfig)

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_sections(cls, data: object) -> object:
        # `portal:` with no body in YAML loads as None.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path).expanduser()
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)


def read_credentials_file(path: Union[str, Path]) -> Optional[Credentials]:
    """
    Read "<personnummer> <PIN>" (whitespace separated) from a plain-text file.
    """
    p = Path(path).expanduser()
    if not p.is_file():
        return None
    parts = p.read_text(encoding="utf-8").split()
    if len(parts) < 2:
        return None
    return Credentials(pnr=parts[0], pin=parts[1])


def resolve_credentials(
    *,
    pnr: Optional[str] = None,
    pin: Optional[str] = None,
    credentials_file: Optional[str] = None,
    cfg: Optional[CredentialsConfig] = None,
) -> Optional[Credentials]:
    """
    Explicit flags win, then the credentials file (given path, then the default path), then config/env.
    """
    if pnr and pin:
        return Credentials(pnr=pnr, pin=pin)

    candidates = [credentials_file, cfg.file if cfg else None, DEFAULT_CREDENTIALS_FILE]
    for candidate in dict.fromkeys(c for c in candidates if c):
        creds = read_credentials_file(candidate)
        if creds is not None:
            return creds

    if cfg and cfg.pnr and cfg.pin:
        return Credentials(pnr=cfg.pnr, pin=cfg.pin)
    return None
