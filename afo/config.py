"""Centralized config loading — config.yaml over built-in defaults, read once at import time.

AFO_CONFIG in the environment (or .env) points at an alternative config file.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Load .env from project root (parent of afo/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

_DEFAULTS = {
    "default_model": "gemini-2.0-flash",
    "default_temperature": 0.9,
    "llm_max_retries": 0,
    "min_screens": 2,
    "max_screens": 5,
    "default_variant": "fo-07",
    "default_implementation": "default",
    "kv_seeds_path": "seeds.yaml",
    "output_path": "./output/collection.md",
}

CONFIG_PATH = Path(os.getenv("AFO_CONFIG") or Path(__file__).resolve().parent / "config.yaml")


def _load_config(path: Path) -> dict:
    loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    config = {**_DEFAULTS, **loaded}
    if config["min_screens"] > config["max_screens"]:
        raise ValueError("min_screens must not exceed max_screens")
    return config


_config = _load_config(CONFIG_PATH)


def get_config() -> dict:
    """Return the loaded config dictionary."""
    return _config
