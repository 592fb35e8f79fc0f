"""
JSON file store of account snapshots, keyed by email.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Optional

import aiofiles
from pydantic import ValidationError

from appstore_cli.exceptions import AccountNotFoundError, ConfigurationError
from appstore_cli.models.account import Account

log = logging.getLogger(__name__)


class AccountStore:
    """
    Persists whole account records in ``accounts.json``.

    Writes are serialized through a lock and land atomically via a temporary
    file, so a single store instance is a safe single writer for concurrent
    flows.
    """

    FILE_NAME = "accounts.json"

    def __init__(self, data_dir: Path):
        self.path = data_dir / self.FILE_NAME
        self._lock = asyncio.Lock()

    async def _load(self) -> dict[str, dict]:
        if not self.path.is_file():
            return {}
        try:
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                raw = json.loads(await f.read())
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigurationError(
                f"Account store '{self.path}' is unreadable: {e}"
            ) from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Account store '{self.path}' is malformed.")
        return raw

    async def _save(self, records: dict[str, dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(records, indent=2))
        os.replace(temp_path, self.path)

    async def read_all(self) -> list[Account]:
        records = await self._load()
        accounts = []
        for email, record in records.items():
            try:
                accounts.append(Account.model_validate(record))
            except ValidationError as e:
                log.warning(f"Skipping invalid stored account '{email}': {e}")
        return accounts

    async def read(self, email: str) -> Account:
        records = await self._load()
        record = records.get(email)
        if record is None:
            raise AccountNotFoundError(f"No stored account for '{email}'.")
        return Account.model_validate(record)

    async def find(self, email: str) -> Optional[Account]:
        try:
            return await self.read(email)
        except AccountNotFoundError:
            return None

    async def upsert(self, account: Account) -> None:
        async with self._lock:
            records = await self._load()
            records[account.email] = account.model_dump(mode="json")
            await self._save(records)
        log.debug(f"Stored account '{account.email}'")

    async def delete(self, email: str) -> bool:
        async with self._lock:
            records = await self._load()
            if records.pop(email, None) is None:
                return False
            await self._save(records)
        log.debug(f"Removed account '{email}'")
        return True
