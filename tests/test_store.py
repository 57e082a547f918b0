"""Entity stores and repositories."""

from decimal import Decimal
from pathlib import Path

import pytest

from yearn_ledger.entities import Strategy, StrategyReportResult, Vault
from yearn_ledger.errors import EntityNotFound
from yearn_ledger.store import InMemoryEntityStore, Repository, SQLiteEntityStore

VAULT = "0xef0210eb96c7eb36af8ed1c20306462764935607"


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path: Path):
    if request.param == "memory":
        yield InMemoryEntityStore()
    else:
        store = SQLiteEntityStore(tmp_path / "entities.sqlite")
        yield store
        store.close()


def make_vault(**kwargs) -> Vault:
    return Vault(id=VAULT, registry=None, api_version="0.4.2", classification="Experimental", **kwargs)


def test_load_missing(any_store):
    assert any_store.load("Vault", VAULT) is None
    assert not any_store.exists("Vault", VAULT)


def test_save_and_load(any_store):
    any_store.save(make_vault(name="USDC yVault", tags=["stable"]))

    vault = any_store.load("Vault", VAULT.upper().replace("0X", "0x"))
    assert vault.name == "USDC yVault"
    assert vault.tags == ["stable"]
    assert any_store.count("Vault") == 1
    assert any_store.count("Strategy") == 0


def test_load_returns_copy(any_store):
    """Changes are not visible before save."""
    any_store.save(make_vault())
    vault = any_store.load("Vault", VAULT)
    vault.balance_tokens = 100
    assert any_store.load("Vault", VAULT).balance_tokens == 0


def test_decimal_round_trip(any_store):
    result = StrategyReportResult(
        id="0xab-1",
        previous_report="0xaa-1",
        current_report="0xab-1",
        start_timestamp=0,
        end_timestamp=3_600_000,
        duration=3_600_000,
        duration_pr=Decimal("0.01"),
        apr=Decimal("87.59999999999999999999999999"),
        timestamp=3_600,
        block_number=1,
        transaction="0xab-1",
    )
    any_store.save(result)

    loaded = any_store.load("StrategyReportResult", "0xab-1")
    assert loaded.apr == result.apr
    assert isinstance(loaded.duration_pr, Decimal)


def test_sqlite_persists(tmp_path: Path):
    path = tmp_path / "entities.sqlite"
    store = SQLiteEntityStore(path)
    store.save(make_vault(symbol="yvUSDC"))
    store.close()

    store = SQLiteEntityStore(path)
    assert store.load("Vault", VAULT).symbol == "yvUSDC"
    store.close()


def test_repository_get_missing(store):
    vaults = Repository(store, Vault, lambda a: a.lower())
    with pytest.raises(EntityNotFound) as exc_info:
        vaults.get(VAULT)
    assert exc_info.value.kind == "Vault"
    assert vaults.load(None) is None


def test_repository_get_or_create(store):
    vaults = Repository(store, Vault, lambda a: a.lower())
    vault_id = vaults.build_id(VAULT.upper().replace("0X", "0x"))

    vault, created = vaults.get_or_create(vault_id, lambda: make_vault())
    assert created
    vault, created = vaults.get_or_create(vault_id, lambda: make_vault(name="Other"))
    assert not created
    assert vault.name == ""
    assert len(vaults.all()) == 1


def test_repository_rejects_wrong_type(store):
    strategies = Repository(store, Strategy)
    with pytest.raises(AssertionError):
        strategies.save(make_vault())


def test_sqlite_kinds_do_not_mix(tmp_path: Path):
    """Each kind lists only its own keys, and closing twice is harmless."""
    store = SQLiteEntityStore(tmp_path / "entities.sqlite")
    store.save(make_vault())
    store.save(Strategy(id="0x1111111111111111111111111111111111111111", vault=None, name="TBD", debt_limit=0, rate_limit=0, min_debt_per_harvest=0, max_debt_per_harvest=0, performance_fee_bps=0))

    assert list(store.iterkeys(prefix="Vault:")) == [f"Vault:{VAULT}"]
    assert [s.vault for s in store.iterate("Strategy")] == [None]
    assert store.get("Vault:0x0000000000000000000000000000000000000000") is None
    assert "Vault:0x0000000000000000000000000000000000000000" not in store

    store.close()
    store.close()
