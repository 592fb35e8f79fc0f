"""Tests for the JSON account store."""

import asyncio
import json

import pytest

from appstore_cli.exceptions import AccountNotFoundError, ConfigurationError
from appstore_cli.models.account import Account
from appstore_cli.storage.accounts import AccountStore


@pytest.fixture
def store(tmp_path) -> AccountStore:
    return AccountStore(tmp_path)


async def test_empty_store(store: AccountStore) -> None:
    assert await store.read_all() == []
    assert await store.find("user@example.com") is None


async def test_upsert_then_read(store: AccountStore, account: Account) -> None:
    await store.upsert(account)

    stored = await store.read(account.email)

    assert stored == account
    assert stored.cookies == account.cookies
    assert not store.path.with_suffix(".tmp").exists()


async def test_upsert_replaces_whole_record(store: AccountStore, account: Account) -> None:
    await store.upsert(account)
    await store.upsert(account.with_cookies({"fresh": "1"}))

    stored = await store.read(account.email)

    assert stored.cookies == {"fresh": "1"}
    assert len(await store.read_all()) == 1


async def test_read_missing_account(store: AccountStore) -> None:
    with pytest.raises(AccountNotFoundError):
        await store.read("nobody@example.com")


async def test_delete(store: AccountStore, account: Account) -> None:
    await store.upsert(account)

    assert await store.delete(account.email) is True
    assert await store.delete(account.email) is False
    assert await store.find(account.email) is None


async def test_concurrent_upserts_are_all_kept(store: AccountStore, account: Account) -> None:
    accounts = [
        account.model_copy(update={"email": f"user{n}@example.com"}) for n in range(5)
    ]

    await asyncio.gather(*(store.upsert(a) for a in accounts))

    stored = {a.email for a in await store.read_all()}
    assert stored == {a.email for a in accounts}


async def test_invalid_records_are_skipped(store: AccountStore, account: Account) -> None:
    await store.upsert(account)
    records = json.loads(store.path.read_text())
    records["broken"] = {"email": "no-at-sign"}
    store.path.write_text(json.dumps(records))

    stored = await store.read_all()

    assert [a.email for a in stored] == [account.email]


async def test_corrupt_file_raises(store: AccountStore) -> None:
    store.path.write_text("{not json")

    with pytest.raises(ConfigurationError):
        await store.read_all()
