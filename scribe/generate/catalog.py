from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict, List

import yaml

CATALOG_PATH = os.path.join(os.path.dirname(__file__), "models.yaml")


@lru_cache(maxsize=4)
def load_catalog(path: str = CATALOG_PATH) -> List[Dict[str, Any]]:
    if not os.path.exists(path):
        return []
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    return list(cfg.get("models", []))
