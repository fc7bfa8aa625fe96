from __future__ import annotations
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[2]


def data_root() -> Path:
    # read at call time so a .env loaded by the entrypoint is honored
    return Path(os.getenv("BGM_DATA_DIR") or ROOT / "data")


def raw_dir() -> Path:
    return data_root() / "raw"


def normalized_dir() -> Path:
    return data_root() / "normalized"


def save_json(obj: Any, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, ensure_ascii=False, indent=2), encoding="utf-8")


def timestamp() -> str:
    # microseconds keep two snapshots taken in the same second apart
    return datetime.now().strftime("%Y%m%d-%H%M%S-%f")
