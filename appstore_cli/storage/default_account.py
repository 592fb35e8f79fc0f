"""
One-time, environment-seeded default account.

The seed is written once from ``DEFAULT_APPLE_EMAIL`` and
``DEFAULT_APPLE_PASSWORD`` and never overwritten afterwards.
"""

import json
import logging
import os
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

log = logging.getLogger(__name__)

FILE_NAME = "default-account.json"


class DefaultAccount(BaseModel):
    email: str
    password: str
    created_at: int = 0

    def __repr__(self) -> str:
        return f"DefaultAccount(email={self.email!r}, created_at={self.created_at})"


def get_default_account_path(data_dir: Path) -> Path:
    return data_dir / FILE_NAME


def seed_default_account_from_env(
    data_dir: Path, environ: Optional[Mapping[str, str]] = None
) -> bool:
    """
    Writes the default account file from the environment if it does not exist.

    Returns:
        True if a new seed file was written.
    """
    environ = os.environ if environ is None else environ
    email = (environ.get("DEFAULT_APPLE_EMAIL") or "").strip()
    password = environ.get("DEFAULT_APPLE_PASSWORD") or ""
    if not email or not password:
        return False

    file_path = get_default_account_path(data_dir)
    if file_path.exists():
        return False

    file_path.parent.mkdir(parents=True, exist_ok=True)
    seed = DefaultAccount(
        email=email, password=password, created_at=int(time.time() * 1000)
    )
    file_path.write_text(json.dumps(seed.model_dump(), indent=2), encoding="utf-8")
    log.info(f"Default account saved: {email}")
    return True


def read_default_account(data_dir: Path) -> Optional[DefaultAccount]:
    """Returns the seeded account, or None if the file is missing or malformed."""
    file_path = get_default_account_path(data_dir)
    if not file_path.is_file():
        return None
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        log.debug(f"Could not read default account file: {e}")
        return None
    if (
        not isinstance(raw, dict)
        or not isinstance(raw.get("email"), str)
        or not isinstance(raw.get("password"), str)
    ):
        return None
    created_at = raw.get("created_at")
    return DefaultAccount(
        email=raw["email"],
        password=raw["password"],
        created_at=created_at if isinstance(created_at, int) else 0,
    )
