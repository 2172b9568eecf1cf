from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ReadResult:
    data: Dict[str, Any] = field(default_factory=dict)
    missing: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.missing and self.error is None


def read_json_file(path: str) -> ReadResult:
    """Read one config object. Editors that save with a BOM are tolerated."""
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            obj = json.load(f)
    except FileNotFoundError:
        return ReadResult(missing=True)
    except json.JSONDecodeError as e:
        return ReadResult(error=f"corrupt_json:{e}")
    except (OSError, UnicodeDecodeError) as e:
        return ReadResult(error=f"unreadable:{e}")
    if not isinstance(obj, dict):
        return ReadResult(error="not_object")
    return ReadResult(data=obj)


def atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    parent = os.path.dirname(path) or "."
    os.makedirs(parent, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
            f.write("\n")
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
