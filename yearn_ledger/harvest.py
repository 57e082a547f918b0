"""Per-harvest profit and loss log.

Independent of the report chain: a harvest is stored as it happened,
without comparing it to anything.
"""

import logging

from yearn_ledger.context import LedgerContext
from yearn_ledger.contracts import read_or_log
from yearn_ledger.entities import Harvest, Transaction

logger = logging.getLogger(__name__)


class HarvestRecorder:
    def __init__(self, context: LedgerContext):
        self.context = context
        self.harvests = context.harvests

    def harvest(
        self,
        harvester: str,
        strategy_address: str,
        timestamp: int,
        block_number: int,
        tx_hash: str,
        tx_index: int,
        profit: int,
        loss: int,
        debt_payment: int,
        debt_outstanding: int,
        tx: Transaction,
    ) -> Harvest:
        """Record a harvest.

        Idempotent by ``(strategy, tx hash, tx index)``: a redelivered harvest
        returns the stored record.

        The vault is read from the strategy's ``vault()``. If that reverts,
        the vault stored on the strategy entity is used.
        """
        harvest_id = self.harvests.build_id(strategy_address, tx_hash, tx_index)
        logger.info("Harvest strategy %s, id %s", strategy_address, harvest_id)

        harvest = self.harvests.load(harvest_id)
        if harvest is not None:
            logger.warning("Harvest %s already recorded for strategy %s, tx %s", harvest_id, strategy_address, tx.hash)
            return harvest

        strategy = self.context.strategies.load(strategy_address)
        fallback_vault = strategy.vault if strategy else None
        reader = self.context.readers.strategy(strategy_address, block_identifier=block_number)
        vault = read_or_log(reader.try_vault(), fallback_vault, "vault", strategy_address)

        harvest = Harvest(
            id=harvest_id,
            vault=vault,
            strategy=strategy_address.lower(),
            harvester=harvester.lower(),
            profit=profit,
            loss=loss,
            debt_payment=debt_payment,
            debt_outstanding=debt_outstanding,
            timestamp=timestamp,
            block_number=block_number,
            transaction=tx.id,
        )
        self.harvests.save(harvest)
        return harvest
