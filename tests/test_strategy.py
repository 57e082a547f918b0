"""Strategy lifecycle."""

import pytest

from yearn_ledger.constants import STRATEGY_TEMPLATE, UNKNOWN_STRATEGY_NAME
from yearn_ledger.strategy import StrategyManager

VAULT = "0xef0210eb96c7eb36af8ed1c20306462764935607"
STRATEGY = "0x1111111111111111111111111111111111111111"
NEW_STRATEGY = "0x2222222222222222222222222222222222222222"
HEALTH_CHECK = "0x3333333333333333333333333333333333333333"


@pytest.fixture()
def manager(context) -> StrategyManager:
    return StrategyManager(context)


def create(manager: StrategyManager, tx, address: str = STRATEGY, debt_limit: int = 5_000):
    return manager.create_and_get(
        address,
        VAULT,
        debt_limit=debt_limit,
        rate_limit=10,
        min_debt_per_harvest=1,
        max_debt_per_harvest=2,
        performance_fee_bps=1_000,
        cloned_from=None,
        tx=tx,
    )


def test_create_reads_contract(manager, chain, data_sources, make_tx):
    chain.set(STRATEGY, name="StrategyLenderYieldOptimiser", healthCheck="0x3333333333333333333333333333333333333333", doHealthCheck=True)

    strategy = create(manager, make_tx(block_number=123, timestamp=10))

    assert strategy.name == "StrategyLenderYieldOptimiser"
    assert strategy.health_check == HEALTH_CHECK
    assert strategy.do_health_check is True
    assert strategy.vault == VAULT
    assert strategy.in_queue
    assert strategy.timestamp == 10_000
    assert data_sources.get_addresses(STRATEGY_TEMPLATE) == [STRATEGY]
    # Reads pinned to the event block
    assert all(block == 123 for _, _, block in chain.reads)


def test_create_reverted_reads(manager, make_tx):
    strategy = create(manager, make_tx())

    assert strategy.name == UNKNOWN_STRATEGY_NAME
    assert strategy.health_check is None
    assert strategy.do_health_check is False


def test_create_once(manager, context, data_sources, make_tx):
    """A second create with different parameters returns the first strategy unchanged."""
    first = create(manager, make_tx(block_number=1), debt_limit=5_000)
    second = create(manager, make_tx(block_number=2), debt_limit=9_999)

    assert second.debt_limit == 5_000
    assert second.block_number == first.block_number
    assert context.strategies.count() == 1
    assert len(data_sources.sources) == 1


def test_create_checksummed_address(manager, context, make_tx):
    create(manager, make_tx(), address="0xAbCdEf0000000000000000000000000000000001")
    assert context.strategies.exists("0xabcdef0000000000000000000000000000000001")


def test_migrate(manager, context, make_tx):
    create(manager, make_tx(block_number=1))

    new = manager.migrate(STRATEGY, NEW_STRATEGY, VAULT, make_tx(block_number=2, tx_hash="0x" + "bb" * 32))

    assert new.id == NEW_STRATEGY
    assert new.debt_limit == 5_000
    assert new.rate_limit == 10
    assert new.performance_fee_bps == 1_000
    assert new.cloned_from == STRATEGY
    assert context.strategies.get(STRATEGY).in_queue is False


def test_migrate_unknown_old(manager, context, make_tx):
    assert manager.migrate(STRATEGY, NEW_STRATEGY, VAULT, make_tx()) is None
    assert context.strategies.count() == 0


def test_migrate_new_exists(manager, context, make_tx):
    create(manager, make_tx(block_number=1))
    create(manager, make_tx(block_number=1), address=NEW_STRATEGY, debt_limit=1)

    assert manager.migrate(STRATEGY, NEW_STRATEGY, VAULT, make_tx(block_number=2)) is None
    assert context.strategies.get(NEW_STRATEGY).debt_limit == 1
    assert context.strategies.get(STRATEGY).in_queue is True


def test_clone(manager, chain, make_tx):
    create(manager, make_tx(block_number=1))
    chain.set(NEW_STRATEGY, vault=VAULT.upper().replace("0X", "0x"))

    clone = manager.clone(NEW_STRATEGY, STRATEGY, make_tx(block_number=2))

    assert clone.vault == VAULT
    assert clone.cloned_from == STRATEGY
    assert clone.debt_limit == 0


def test_clone_vault_read_reverts(manager, make_tx):
    """Vault falls back to the original strategy's vault."""
    create(manager, make_tx(block_number=1))
    clone = manager.clone(NEW_STRATEGY, STRATEGY, make_tx(block_number=2))
    assert clone.vault == VAULT


def test_clone_unknown_original_vault_read_reverts(manager, context, make_tx):
    """No vault read and no original to fall back on."""
    clone = manager.clone(NEW_STRATEGY, STRATEGY, make_tx(block_number=2))

    assert clone.vault is None
    assert clone.cloned_from is None
    assert context.strategies.get(NEW_STRATEGY).vault is None


def test_health_check(manager, make_tx):
    create(manager, make_tx())

    strategy = manager.set_health_check(STRATEGY, HEALTH_CHECK.upper().replace("0X", "0x"), make_tx())
    assert strategy.health_check == HEALTH_CHECK

    strategy = manager.set_do_health_check(STRATEGY, True, make_tx())
    assert strategy.do_health_check is True


def test_health_check_unknown_strategy(manager, make_tx):
    assert manager.set_health_check(STRATEGY, HEALTH_CHECK, make_tx()) is None
    assert manager.set_do_health_check(STRATEGY, True, make_tx()) is None


def test_queue(manager, context, make_tx):
    create(manager, make_tx())

    manager.remove_from_queue(STRATEGY, make_tx())
    assert context.strategies.get(STRATEGY).in_queue is False

    manager.add_to_queue(STRATEGY, make_tx())
    assert context.strategies.get(STRATEGY).in_queue is True

    assert manager.add_to_queue(NEW_STRATEGY, make_tx()) is None
