"""Utility helpers for source IO, JSON dumps and warnings."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from .models import CompilerConfig

PathLike = Union[str, Path]


def stable_json_dumps(obj: object, *, sort_keys: bool = True) -> str:
    """Serialize JSON in a stable, human-readable way with a trailing newline.

    Pass ``sort_keys=False`` where key order carries meaning (directive props).
    """
    return json.dumps(obj, ensure_ascii=False, sort_keys=sort_keys, indent=2) + "\n"


def read_source(path: PathLike) -> str:
    """Read an MDX source file, raising SystemExit when it does not exist."""

    source_path = Path(path)
    if not source_path.is_file():
        raise SystemExit(f"Input file not found: {source_path}")
    return source_path.read_text(encoding="utf-8")


def write_text(path: PathLike, content: str, *, encoding: str = "utf-8") -> Path:
    """Write text content to a file, creating parent directories as needed."""

    file_path = Path(path)
    if file_path.parent != Path(""):
        file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding=encoding)
    return file_path


def load_config(path: PathLike) -> CompilerConfig:
    """Load and validate compiler options from a YAML file."""

    config_path = Path(path)
    if not config_path.is_file():
        raise SystemExit(f"Config file not found: {config_path}")
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise SystemExit(f"{config_path} must contain a mapping of compiler options.")
    try:
        return CompilerConfig.model_validate(data)
    except ValidationError as exc:
        raise SystemExit(f"Invalid compiler config in {config_path}: {exc}") from exc


def warn(msg: str) -> None:
    print(msg, file=sys.stderr)


__all__ = ["PathLike", "load_config", "read_source", "stable_json_dumps", "warn", "write_text"]
