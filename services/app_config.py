from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, asdict
from typing import Any

from loguru import logger

from services.date_range import DISPLAY_DATE_FORMAT, ViewMode, ViewModeError, parse_view_mode

DEFAULT_CONFIG_PATH = "config/app_config.json"


def get_config_path() -> str:
    """
    Canonical config path resolver.

    Priority:
      1) APP_CONFIG_PATH env override (absolute or relative)
      2) config/app_config.json
    """
    return os.environ.get("APP_CONFIG_PATH") or DEFAULT_CONFIG_PATH


# ------------------------------------------------------------------ Config models

@dataclass
class UiConfig:
    title: str = "Time Logs"
    dark_mode: bool = True
    primary_color: str = "#a3e635"
    language: str = "en"


@dataclass
class PickerConfig:
    default_view: ViewMode = ViewMode.MONTH
    display_format: str = DISPLAY_DATE_FORMAT


@dataclass
class TimeLogsApiConfig:
    base_url: str = "http://localhost:3001/api/v1"
    headers: dict[str, str] = field(default_factory=dict)
    timeout_s: float = 10.0
    verify_ssl: bool = True


@dataclass
class AppConfig:
    ui: UiConfig = field(default_factory=UiConfig)
    picker: PickerConfig = field(default_factory=PickerConfig)
    time_logs_api: TimeLogsApiConfig = field(default_factory=TimeLogsApiConfig)


_APP_CONFIG: AppConfig | None = None


def clear_app_config_cache() -> None:
    global _APP_CONFIG
    _APP_CONFIG = None


def get_app_config() -> AppConfig:
    global _APP_CONFIG
    if _APP_CONFIG is None:
        _APP_CONFIG = load_app_config()
    return _APP_CONFIG


def load_app_config(path: str | None = None) -> AppConfig:
    config_path = path or get_config_path()
    log = logger.bind(component="AppConfig", path=config_path)

    if not os.path.exists(config_path):
        log.warning("Config not found. Writing defaults.")
        cfg = AppConfig()
        save_app_config(cfg, config_path)
        return cfg

    with open(config_path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        log.warning("Config root is not an object. Using defaults.")
        return AppConfig()
    return _from_dict(raw)


def save_app_config(cfg: AppConfig, path: str | None = None) -> None:
    global _APP_CONFIG
    config_path = path or get_config_path()
    folder = os.path.dirname(config_path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(_to_dict(cfg), f, indent=2, sort_keys=True)

    # Keep cache in sync
    _APP_CONFIG = cfg


def _to_dict(cfg: AppConfig) -> dict[str, Any]:
    data = asdict(cfg)
    data["picker"]["default_view"] = str(cfg.picker.default_view.value)
    return data


# ------------------------------------------------------------------ Parsing

def _from_dict(data: dict[str, Any]) -> AppConfig:
    ui_cfg = UiConfig(**data.get("ui", {}))

    picker_raw = dict(data.get("picker", {}))
    try:
        default_view = parse_view_mode(picker_raw.get("default_view", ViewMode.MONTH))
    except ViewModeError as ex:
        logger.warning(f"[_from_dict] - invalid_default_view - {ex}; falling back to {ViewMode.MONTH}")
        default_view = ViewMode.MONTH
    picker = PickerConfig(
        default_view=default_view,
        display_format=str(picker_raw.get("display_format") or DISPLAY_DATE_FORMAT),
    )

    api_raw = data.get("time_logs_api", {})
    api = TimeLogsApiConfig(
        base_url=str(api_raw.get("base_url", TimeLogsApiConfig().base_url)),
        headers=_normalize_headers(api_raw.get("headers")),
        timeout_s=float(api_raw.get("timeout_s", TimeLogsApiConfig().timeout_s)),
        verify_ssl=bool(api_raw.get("verify_ssl", True)),
    )

    return AppConfig(ui=ui_cfg, picker=picker, time_logs_api=api)


def _normalize_headers(raw: Any) -> dict[str, str]:
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    return {}
