"""Strategy lifecycle.

- Strategies are created once per address, see :py:meth:`StrategyManager.create_and_get`
- A migration creates the successor strategy and takes the old one out of the queue
- Queue and health check events are plain field updates
"""

import logging

from yearn_ledger.constants import STRATEGY_TEMPLATE, UNKNOWN_STRATEGY_NAME
from yearn_ledger.context import LedgerContext
from yearn_ledger.contracts import read_or_log
from yearn_ledger.entities import Strategy, Transaction

logger = logging.getLogger(__name__)


class StrategyManager:
    """Create, migrate and update strategies."""

    def __init__(self, context: LedgerContext):
        self.context = context
        self.strategies = context.strategies

    def create_and_get(
        self,
        strategy_address: str,
        vault_address: str | None,
        debt_limit: int,
        rate_limit: int,
        min_debt_per_harvest: int,
        max_debt_per_harvest: int,
        performance_fee_bps: int,
        cloned_from: str | None,
        tx: Transaction,
    ) -> Strategy:
        """Load a strategy, or create it on first sight.

        Create-once: if the strategy exists, it is returned unchanged
        and all the other arguments are ignored.
        Use :py:meth:`migrate` to move parameters to a new strategy.

        On creation we read ``name()``, ``healthCheck()`` and ``doHealthCheck()`` from
        the strategy contract, substituting ``"TBD"``, ``None`` and ``False`` for reverted reads,
        and ask the ingestion layer to start delivering events from the strategy.
        """
        strategy_id = self.strategies.build_id(strategy_address)
        logger.info("Create and get strategy %s in vault %s, tx %s", strategy_id, vault_address, tx.hash)

        strategy = self.strategies.load(strategy_id)
        if strategy is not None:
            return strategy

        logger.info("Creating new strategy %s in vault %s, tx %s", strategy_id, vault_address, tx.hash)
        reader = self.context.readers.strategy(strategy_id, block_identifier=tx.block_number)
        strategy = Strategy(
            id=strategy_id,
            vault=vault_address.lower() if vault_address else None,
            name=read_or_log(reader.try_name(), UNKNOWN_STRATEGY_NAME, "name", strategy_id),
            debt_limit=debt_limit,
            rate_limit=rate_limit,
            min_debt_per_harvest=min_debt_per_harvest,
            max_debt_per_harvest=max_debt_per_harvest,
            performance_fee_bps=performance_fee_bps,
            in_queue=True,
            health_check=read_or_log(reader.try_health_check(), None, "healthCheck", strategy_id),
            do_health_check=read_or_log(reader.try_do_health_check(), False, "doHealthCheck", strategy_id),
            cloned_from=cloned_from.lower() if cloned_from else None,
            timestamp=tx.timestamp_ms,
            block_number=tx.block_number,
            transaction=tx.id,
        )
        self.strategies.save(strategy)
        self.context.data_sources.create(STRATEGY_TEMPLATE, strategy_id)
        return strategy

    def migrate(self, old_address: str, new_address: str, vault_address: str, tx: Transaction) -> Strategy | None:
        """Replace a strategy with its successor.

        - Unknown old strategy: nothing happens, we missed its creation
        - New strategy already exists: nothing happens, duplicate migration

        :return:
            The new strategy, or ``None`` if nothing was done
        """
        logger.info("Migrating strategy %s to %s, tx %s", old_address, new_address, tx.hash)
        old_strategy = self.strategies.load(old_address)
        if old_strategy is None:
            logger.warning("Migrating from unknown strategy %s to %s, tx %s", old_address, new_address, tx.hash)
            return None

        if self.strategies.exists(new_address):
            logger.warning("Migrating to strategy %s but it has already been created, tx %s", new_address, tx.hash)
            return None

        new_strategy = self.create_and_get(
            new_address,
            vault_address,
            debt_limit=old_strategy.debt_limit,
            rate_limit=old_strategy.rate_limit,
            min_debt_per_harvest=old_strategy.min_debt_per_harvest,
            max_debt_per_harvest=old_strategy.max_debt_per_harvest,
            performance_fee_bps=old_strategy.performance_fee_bps,
            cloned_from=old_strategy.id,
            tx=tx,
        )
        self.remove_from_queue(old_strategy.id, tx)
        return new_strategy

    def clone(self, clone_address: str, original_address: str, tx: Transaction) -> Strategy:
        """Track a strategy cloned from another strategy.

        The vault comes from the clone's ``vault()``. Debt parameters are unknown at clone time and start at zero.
        If the read reverts and the original strategy is unknown, the vault is left as ``None``.
        """
        logger.info("Strategy %s cloned from %s, tx %s", clone_address, original_address, tx.hash)
        original = self.strategies.load(original_address)
        reader = self.context.readers.strategy(clone_address, block_identifier=tx.block_number)
        fallback_vault = original.vault if original else None
        vault_address = read_or_log(reader.try_vault(), fallback_vault, "vault", clone_address)
        return self.create_and_get(
            clone_address,
            vault_address,
            debt_limit=0,
            rate_limit=0,
            min_debt_per_harvest=0,
            max_debt_per_harvest=0,
            performance_fee_bps=0,
            cloned_from=original.id if original else None,
            tx=tx,
        )

    def set_health_check(self, strategy_address: str, health_check: str, tx: Transaction) -> Strategy | None:
        strategy = self.strategies.load(strategy_address)
        if strategy is None:
            logger.warning("SetHealthCheck %s: strategy %s not found, tx %s", health_check, strategy_address, tx.hash)
            return None
        strategy.health_check = health_check.lower()
        self.strategies.save(strategy)
        return strategy

    def set_do_health_check(self, strategy_address: str, do_health_check: bool, tx: Transaction) -> Strategy | None:
        strategy = self.strategies.load(strategy_address)
        if strategy is None:
            logger.warning("SetDoHealthCheck %s: strategy %s not found, tx %s", do_health_check, strategy_address, tx.hash)
            return None
        strategy.do_health_check = do_health_check
        self.strategies.save(strategy)
        return strategy

    def add_to_queue(self, strategy_address: str, tx: Transaction) -> Strategy | None:
        return self._set_in_queue(strategy_address, True, tx)

    def remove_from_queue(self, strategy_address: str, tx: Transaction) -> Strategy | None:
        return self._set_in_queue(strategy_address, False, tx)

    def _set_in_queue(self, strategy_address: str, in_queue: bool, tx: Transaction) -> Strategy | None:
        strategy = self.strategies.load(strategy_address)
        if strategy is None:
            logger.warning("Queue change %s: strategy %s not found, tx %s", in_queue, strategy_address, tx.hash)
            return None
        strategy.in_queue = in_queue
        self.strategies.save(strategy)
        return strategy
