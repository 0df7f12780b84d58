from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

import yaml


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ApiConfig:
    base_url: str
    timeout_ms: int
    user_agent: str


@dataclass(frozen=True)
class SiteConfig:
    url: str
    static_article_limit: int


@dataclass(frozen=True)
class Config:
    api: ApiConfig
    site: SiteConfig


DEFAULT_CONFIG: dict[str, Any] = {
    "api": {
        "base_url": "https://api.newshelp.org",
        "timeout_ms": 30000,
        "user_agent": "newshelp-site/0.1",
    },
    "site": {
        "url": "https://newshelp.org",
        "static_article_limit": 100,
    },
}

CONFIG_PATH_ENV = "NH_CONFIG"

# env var -> (section, key, type)
ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "NEWS_API_BASE_URL": ("api", "base_url", str),
    "NEWS_API_TIMEOUT": ("api", "timeout_ms", int),
    "SITE_URL": ("site", "url", str),
    "NEWS_STATIC_ARTICLE_LIMIT": ("site", "static_article_limit", int),
}


def load_config(path: str | None = None, environ: dict[str, str] | None = None) -> Config:
    env = os.environ if environ is None else environ
    path = path or env.get(CONFIG_PATH_ENV) or None
    cfg = _deep_copy(DEFAULT_CONFIG)
    if path:
        _merge(cfg, _read_config_file(path))
    _apply_env_overrides(cfg, env)
    errors = validate_config(cfg)
    if errors:
        raise ConfigError("Invalid config: " + "; ".join(errors))
    return _build_config(cfg)


def config_from_dict(raw: dict[str, Any]) -> Config:
    cfg = _deep_copy(DEFAULT_CONFIG)
    _merge(cfg, raw)
    errors = validate_config(cfg)
    if errors:
        raise ConfigError("Invalid config: " + "; ".join(errors))
    return _build_config(cfg)


def _read_config_file(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML: {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


def _merge(target: dict[str, Any], overrides: dict[str, Any]) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


def _apply_env_overrides(cfg: dict[str, Any], env) -> None:
    for name, (section, key, kind) in ENV_OVERRIDES.items():
        raw = env.get(name)
        if raw is None or raw == "":
            continue
        if kind is int:
            try:
                value: Any = int(raw)
            except ValueError as exc:
                raise ConfigError(f"{name} must be an integer") from exc
        else:
            value = raw
        section_cfg = cfg.get(section)
        if isinstance(section_cfg, dict):
            section_cfg[key] = value


def validate_config(cfg: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    _validate_dict(cfg, DEFAULT_CONFIG, "config", errors)
    if errors:
        return errors
    if not cfg["api"]["base_url"].strip():
        errors.append("config.api.base_url must not be empty")
    if cfg["api"]["timeout_ms"] <= 0:
        errors.append("config.api.timeout_ms must be positive")
    if cfg["site"]["static_article_limit"] < 0:
        errors.append("config.site.static_article_limit must not be negative")
    return errors


def _validate_dict(value: dict[str, Any], schema: dict[str, Any], path: str, errors: list[str]) -> None:
    if not isinstance(value, dict):
        errors.append(f"{path} must be an object")
        return
    for key in schema.keys():
        if key not in value:
            errors.append(f"missing {path}.{key}")
    for key in value.keys():
        if key not in schema:
            errors.append(f"unknown {path}.{key}")
    for key, default in schema.items():
        if key not in value:
            continue
        _validate_value(value[key], default, f"{path}.{key}", errors)


def _validate_value(value: Any, default: Any, path: str, errors: list[str]) -> None:
    if isinstance(default, dict):
        if not isinstance(value, dict):
            errors.append(f"{path} must be an object")
            return
        _validate_dict(value, default, path, errors)
        return
    if isinstance(default, bool):
        if not isinstance(value, bool):
            errors.append(f"{path} must be a boolean")
        return
    if isinstance(default, int):
        if not isinstance(value, int) or isinstance(value, bool):
            errors.append(f"{path} must be an integer")
        return
    if isinstance(default, str):
        if not isinstance(value, str):
            errors.append(f"{path} must be a string")
        return


def _build_config(cfg: dict[str, Any]) -> Config:
    api_cfg = cfg.get("api") or {}
    site_cfg = cfg.get("site") or {}

    api = ApiConfig(
        base_url=str(api_cfg.get("base_url")).rstrip("/"),
        timeout_ms=int(api_cfg.get("timeout_ms")),
        user_agent=str(api_cfg.get("user_agent")),
    )
    site = SiteConfig(
        url=str(site_cfg.get("url")).rstrip("/"),
        static_article_limit=int(site_cfg.get("static_article_limit")),
    )
    return Config(api=api, site=site)


def _deep_copy(value: dict[str, Any]) -> dict[str, Any]:
    return json.loads(json.dumps(value))
