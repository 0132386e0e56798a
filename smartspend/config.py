from __future__ import annotations

import copy
from pathlib import Path
from typing import Dict

import yaml

from smartspend.core.categorizer import CATEGORY_POLICIES
from smartspend.core.models import CATEGORIES
from smartspend.store import STORAGE_KEY

DEFAULT_CONFIG: Dict[str, object] = {
    "loaders": {
        "csv": "smartspend.loaders.csv_statement.CSVStatementLoader",
    },
    "categories": list(CATEGORIES),
    "category_policy": "accept",
    "insights_limit": 50,
    "surface_categorize_failures": False,
    "db_path": "smartspend.db",
    "storage_key": STORAGE_KEY,
    "models": {
        "categorize": None,
        "insights": None,
        "chat": None,
    },
}

CONFIG_PATH = Path("smartspend.yaml")


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def load_config(path: Path | str | None = None) -> Dict[str, object]:
    target = Path(path) if path else CONFIG_PATH
    if not target.exists():
        config = copy.deepcopy(DEFAULT_CONFIG)
    else:
        with target.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        config = _merge_defaults(data, DEFAULT_CONFIG)
    validate_config(config)
    return config


def validate_config(config: Dict[str, object]) -> None:
    policy = config.get("category_policy")
    if policy not in CATEGORY_POLICIES:
        raise ValueError(
            f"category_policy must be one of {', '.join(CATEGORY_POLICIES)}, got {policy!r}"
        )
    limit = config.get("insights_limit")
    if not isinstance(limit, int) or limit <= 0:
        raise ValueError(f"insights_limit must be a positive integer, got {limit!r}")


def save_config(config: Dict[str, object], path: Path | str | None = None) -> None:
    target = Path(path) if path else CONFIG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fp:
        yaml.safe_dump(config, fp, sort_keys=False)
