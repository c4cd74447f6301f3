"""Utility to load the project level .env file exactly once."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_PATH = PROJECT_ROOT / ".env"
ENV_TEMPLATE = PROJECT_ROOT / ".env.template"


@lru_cache(maxsize=1)
def load_project_dotenv() -> Optional[Path]:
    """Load the repository-wide .env file if present.

    Variables already set in the process environment win over the file.
    """
    target = ENV_PATH if ENV_PATH.exists() else ENV_TEMPLATE if ENV_TEMPLATE.exists() else None
    if not target:
        return None
    load_dotenv(target, override=False)
    return target
