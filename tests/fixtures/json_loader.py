"""
Records from test_data.json, looked up by the keys tests use
("admin", "acme", "signup").
"""

import copy
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

DATA_FILE = Path(__file__).parent / "test_data.json"


@lru_cache(maxsize=None)
def _load() -> Dict[str, Any]:
    with open(DATA_FILE) as f:
        return json.load(f)


class FixtureData:
    """Every accessor returns a fresh copy, so tests may mutate what they get"""

    @staticmethod
    def section(name: str) -> Any:
        return copy.deepcopy(_load()[name])

    @classmethod
    def user(cls, key: str) -> Dict[str, Any]:
        return cls.section("users")[key]

    @classmethod
    def company(cls, key: str) -> Dict[str, Any]:
        return cls.section("companies")[key]

    @classmethod
    def credentials(cls, key: str) -> Dict[str, str]:
        """Sign in payload for a seeded user"""
        user = cls.user(key)
        return {"email": user["email"], "password": user["password"]}
