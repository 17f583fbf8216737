# tierguard/settings.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file if it exists (from project root or current directory)
load_dotenv()

LogLevel = Literal["critical", "error", "warning", "info", "debug"]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name, "").strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


class MonitorSettings(BaseModel):
    """
    Tunables of the compliance monitor.

    Environment variables (TIERGUARD_*) seed the defaults; a YAML file passed
    to ``load`` overrides them field by field.
    """
    catalog_path: str = Field(default="catalog.yaml")
    refresh_interval_s: float = Field(default=30.0, gt=0)
    auto_refresh: bool = Field(default=True)
    probe_timeout_s: float = Field(default=5.0, gt=0)

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8790, ge=1, le=65535)
    log_level: LogLevel = Field(default="info")

    @classmethod
    def default_from_env(cls) -> "MonitorSettings":
        data: Dict[str, Any] = {
            "auto_refresh": _env_bool("TIERGUARD_AUTO_REFRESH", True),
        }
        env_map = {
            "catalog_path": "TIERGUARD_CATALOG",
            "refresh_interval_s": "TIERGUARD_REFRESH_INTERVAL",
            "probe_timeout_s": "TIERGUARD_PROBE_TIMEOUT",
            "host": "TIERGUARD_HOST",
            "port": "TIERGUARD_PORT",
            "log_level": "TIERGUARD_LOG_LEVEL",
        }
        for field, var in env_map.items():
            value = os.getenv(var, "").strip()
            if value:
                data[field] = value.lower() if field == "log_level" else value
        return cls(**data)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "MonitorSettings":
        base = cls.default_from_env()
        if path is None:
            return base
        data = yaml.safe_load(Path(path).read_text("utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"settings file {path} must contain a mapping")
        return cls(**{**base.model_dump(), **data})


def get_settings(path: Optional[Union[str, Path]] = None) -> MonitorSettings:
    return MonitorSettings.load(path or os.getenv("TIERGUARD_CONFIG") or None)
