"""
Configuration services.

Usage:
    from src.services.config import load_config_with_main

    config = load_config_with_main("question_config.yaml")
"""

from .loader import PROJECT_ROOT, load_config_with_main, load_yaml

__all__ = ["PROJECT_ROOT", "load_config_with_main", "load_yaml"]
