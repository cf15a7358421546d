"""Seed the process environment from a local ``.env`` file.

Why this exists:
- Pipelines inject TEST_USERNAME, TEST_PASSWORD and the BrowserStack keys as real
  environment variables.
- Developers running the suite locally keep them in a git-ignored ``.env`` at the
  repository root instead.

Values already present in the environment always win.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, MutableMapping, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]


def parse_env_file(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}

    values: Dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
            value = value[1:-1]
        values[key.strip()] = value
    return values


def load_env_file(
    path: Optional[Path] = None,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """Copy variables from ``path`` into ``environ`` without overriding.

    Returns the variables that were actually applied.
    """
    target = os.environ if environ is None else environ
    env_file = path if path is not None else REPO_ROOT / ".env"

    applied: Dict[str, str] = {}
    for key, value in parse_env_file(env_file).items():
        if key in target:
            continue
        target[key] = value
        applied[key] = value
    return applied
