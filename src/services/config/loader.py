# -*- coding: utf-8 -*-
"""
Configuration Loader
====================

Loads YAML configuration from ``<project_root>/config``.

``main.yaml`` carries shared defaults (paths, logging); every module file
(e.g. ``question_config.yaml``) is deep-merged on top of it so modules only
declare what differs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

PROJECT_ROOT = Path(__file__).resolve().parents[3]
MAIN_CONFIG = "main.yaml"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_yaml(path: Path) -> dict[str, Any]:
    """Load one YAML file; a missing file yields an empty dict."""
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at top level")
    return data


def load_config_with_main(config_file: str, project_root: Path | None = None) -> dict[str, Any]:
    """
    Load ``config/main.yaml`` merged with ``config/<config_file>``.

    Args:
        config_file: Module config file name (e.g. "question_config.yaml")
        project_root: Repository root; defaults to this checkout

    Returns:
        Merged configuration dictionary
    """
    root = project_root or PROJECT_ROOT
    config_dir = root / "config"

    main_cfg = load_yaml(config_dir / MAIN_CONFIG)
    if config_file == MAIN_CONFIG:
        return main_cfg

    module_cfg = load_yaml(config_dir / config_file)
    return _deep_merge(main_cfg, module_cfg)


__all__ = ["PROJECT_ROOT", "load_config_with_main", "load_yaml"]
