"""Route raw events and calls into the ledger components.

- :py:class:`VaultEventProcessor` handles one vault deployment, or all registry-created vaults
- :py:class:`StrategyEventProcessor` handles events emitted by strategy contracts
- :py:class:`RegistryEventProcessor` handles registry announcements
- :py:class:`LedgerProcessor` picks the right one by the emitting or called address

Inputs must be fed in chain order: block number, transaction index, then log or call index.
Each handler finishes its loads and saves before the next input is processed.

Example:

.. code-block:: python

    config = read_ledger_config()
    context = LedgerContext(
        store=SQLiteEntityStore(),
        readers=Web3ContractReaderFactory(web3),
        data_sources=InMemoryDataSourceRegistry(),
    )
    processor = LedgerProcessor(context, config)
    for raw_event in events:
        processor.process_event(raw_event)
"""

import logging
from typing import Callable

from yearn_ledger import adapters
from yearn_ledger.block_range import is_event_block_number_lt
from yearn_ledger.config import LedgerConfig, VaultDeployment
from yearn_ledger.context import LedgerContext
from yearn_ledger.entities import Transaction
from yearn_ledger.events import RawCall, RawEvent
from yearn_ledger.harvest import HarvestRecorder
from yearn_ledger.registry import RegistryTracker
from yearn_ledger.report import ReportChainBuilder
from yearn_ledger.strategy import StrategyManager
from yearn_ledger.transaction import transaction_from_call, transaction_from_event
from yearn_ledger.vault import VaultLedger

logger = logging.getLogger(__name__)


class VaultEventProcessor:
    """Vault events and calls.

    :param deployment:
        Custom deployment with a cutover block and on-demand vault creation.
        ``None`` for vaults created through the registry, which need neither.
    """

    def __init__(self, context: LedgerContext, deployment: VaultDeployment | None = None):
        self.context = context
        self.deployment = deployment
        self.ledger = VaultLedger(context)
        self.strategies = StrategyManager(context)
        self.reports = ReportChainBuilder(context)

    @property
    def name(self) -> str:
        return self.deployment.name if self.deployment else "Vault"

    def is_active(self, label: str, block_number: int) -> bool:
        end_block = self.deployment.end_block if self.deployment else None
        return is_event_block_number_lt(f"{self.name}_{label}", block_number, end_block)

    def create_vault_if_needed(self, vault_address: str, tx: Transaction):
        if self.deployment is None:
            return
        self.ledger.get_or_create_vault(
            vault_address,
            self.deployment.registry,
            self.deployment.classification,
            self.deployment.api_version,
            tx,
            create_template=self.deployment.create_template,
        )

    def handle_deposit(self, call: RawCall):
        """Deposit call.

        The minimal proxy check sees only vaults known before this call,
        so it runs before the deployment vault is created.
        """
        if not self.is_active(call["signature"], call["blockNumber"]):
            return None
        event = adapters.adapt_deposit(call)
        if self._is_minimal_proxy_call(call):
            return None
        tx = transaction_from_call(call, f"{self.name}_vault.{call['signature']}")
        self.create_vault_if_needed(event.vault, tx)
        return self.ledger.record_deposit(event, tx)

    def handle_withdraw(self, call: RawCall):
        if not self.is_active(call["signature"], call["blockNumber"]):
            return None
        event = adapters.adapt_withdraw(call)
        if self._is_minimal_proxy_call(call):
            return None
        tx = transaction_from_call(call, f"{self.name}_vault.{call['signature']}")
        self.create_vault_if_needed(event.vault, tx)
        return self.ledger.record_withdraw(event, tx)

    def _is_minimal_proxy_call(self, call: RawCall) -> bool:
        if self.ledger.is_minimal_proxy_call(call["from"], call["to"]):
            logger.warning("%s %s tx %s: call from %s to %s are vaults (minimal proxy), not processing", self.name, call["signature"], call["transactionHash"], call["from"], call["to"])
            return True
        return False

    def handle_add_strategy(self, call: RawCall):
        event = adapters.adapt_add_strategy_call(call)
        if self._is_minimal_proxy_call(call):
            return None
        if not self.is_active("AddStrategyCall", call["blockNumber"]):
            return None
        tx = transaction_from_call(call, f"{self.name}_AddStrategyCall")
        return self._add_strategy(event, tx)

    def handle_strategy_added(self, raw: RawEvent):
        if not self.is_active("StrategyAdded", raw["blockNumber"]):
            return None
        event = adapters.adapt_strategy_added(raw)
        tx = transaction_from_event(raw, f"{self.name}_StrategyAdded")
        return self._add_strategy(event, tx)

    def _add_strategy(self, event, tx: Transaction):
        return self.strategies.create_and_get(
            event.strategy,
            event.vault,
            debt_limit=event.debt_ratio,
            rate_limit=event.rate_limit,
            min_debt_per_harvest=event.min_debt_per_harvest,
            max_debt_per_harvest=event.max_debt_per_harvest,
            performance_fee_bps=event.performance_fee,
            cloned_from=None,
            tx=tx,
        )

    def handle_strategy_reported(self, raw: RawEvent):
        if not self.is_active("StrategyReported", raw["blockNumber"]):
            return None
        event = adapters.adapt_strategy_reported(raw)
        tx = transaction_from_event(raw, f"{self.name}_StrategyReported")
        report = self.reports.create_report(
            tx,
            event.strategy,
            gain=event.gain,
            loss=event.loss,
            total_gain=event.total_gain,
            total_loss=event.total_loss,
            total_debt=event.total_debt,
            debt_added=event.debt_added,
            debt_ratio=event.debt_ratio,
            debt_paid=event.debt_paid,
        )
        self.ledger.strategy_reported(event.vault, tx)
        return report

    def handle_strategy_migrated(self, raw: RawEvent):
        if not self.is_active("StrategyMigrated", raw["blockNumber"]):
            return None
        event = adapters.adapt_strategy_migrated(raw)
        tx = transaction_from_event(raw, f"{self.name}_StrategyMigrated")
        return self.strategies.migrate(event.old_address, event.new_address, event.vault, tx)

    def handle_transfer(self, raw: RawEvent):
        if not self.is_active("Transfer", raw["blockNumber"]):
            return None
        event = adapters.adapt_transfer(raw)
        tx = transaction_from_event(raw, f"{self.name}_vault.transfer(address,uint256)")
        self.create_vault_if_needed(event.vault, tx)
        return self.ledger.transfer(event.vault, event.sender, event.receiver, event.share_delta, tx)

    def handle_update_performance_fee(self, raw: RawEvent):
        if not self.is_active("UpdatePerformanceFee", raw["blockNumber"]):
            return None
        event = adapters.adapt_performance_fee(raw)
        tx = transaction_from_event(raw, f"{self.name}_UpdatePerformanceFee")
        self.create_vault_if_needed(event.vault, tx)
        return self.ledger.performance_fee_updated(event.vault, event.fee, tx)

    def handle_update_management_fee(self, raw: RawEvent):
        if not self.is_active("UpdateManagementFee", raw["blockNumber"]):
            return None
        event = adapters.adapt_management_fee(raw)
        tx = transaction_from_event(raw, f"{self.name}_UpdateManagementFee")
        self.create_vault_if_needed(event.vault, tx)
        return self.ledger.management_fee_updated(event.vault, event.fee, tx)

    def handle_update_rewards(self, raw: RawEvent):
        if not self.is_active("UpdateRewards", raw["blockNumber"]):
            return None
        event = adapters.adapt_update_rewards(raw)
        tx = transaction_from_event(raw, f"{self.name}_UpdateRewards")
        self.create_vault_if_needed(event.vault, tx)
        return self.ledger.rewards_updated(event.vault, event.rewards, tx)

    def handle_strategy_added_to_queue(self, raw: RawEvent):
        if not self.is_active("StrategyAddedToQueue", raw["blockNumber"]):
            return None
        event = adapters.adapt_strategy_queue(raw)
        tx = transaction_from_event(raw, f"{self.name}_StrategyAddedToQueue")
        return self.strategies.add_to_queue(event.strategy, tx)

    def handle_strategy_removed_from_queue(self, raw: RawEvent):
        if not self.is_active("StrategyRemovedFromQueue", raw["blockNumber"]):
            return None
        event = adapters.adapt_strategy_queue(raw)
        tx = transaction_from_event(raw, f"{self.name}_StrategyRemovedFromQueue")
        return self.strategies.remove_from_queue(event.strategy, tx)

    def get_event_handlers(self) -> dict[str, Callable[[RawEvent], object]]:
        return {
            "StrategyAdded": self.handle_strategy_added,
            "StrategyReported": self.handle_strategy_reported,
            "StrategyMigrated": self.handle_strategy_migrated,
            "Transfer": self.handle_transfer,
            "UpdatePerformanceFee": self.handle_update_performance_fee,
            "UpdateManagementFee": self.handle_update_management_fee,
            "UpdateRewards": self.handle_update_rewards,
            "StrategyAddedToQueue": self.handle_strategy_added_to_queue,
            "StrategyRemovedFromQueue": self.handle_strategy_removed_from_queue,
        }

    def get_call_handlers(self) -> dict[str, Callable[[RawCall], object]]:
        """Function name -> handler, all overloads share a handler."""
        return {
            "deposit": self.handle_deposit,
            "withdraw": self.handle_withdraw,
            "addStrategy": self.handle_add_strategy,
        }


class StrategyEventProcessor:
    """Events emitted by strategy contracts."""

    def __init__(self, context: LedgerContext):
        self.context = context
        self.strategies = StrategyManager(context)
        self.harvests = HarvestRecorder(context)

    def handle_harvested(self, raw: RawEvent):
        event = adapters.adapt_harvested(raw)
        tx = transaction_from_event(raw, "Strategy_Harvested")
        return self.harvests.harvest(
            event.harvester,
            event.strategy,
            timestamp=raw["timestamp"],
            block_number=raw["blockNumber"],
            tx_hash=tx.hash,
            tx_index=tx.index,
            profit=event.profit,
            loss=event.loss,
            debt_payment=event.debt_payment,
            debt_outstanding=event.debt_outstanding,
            tx=tx,
        )

    def handle_cloned(self, raw: RawEvent):
        event = adapters.adapt_cloned(raw)
        tx = transaction_from_event(raw, "Strategy_Cloned")
        return self.strategies.clone(event.clone, event.original, tx)

    def handle_set_health_check(self, raw: RawEvent):
        event = adapters.adapt_set_health_check(raw)
        tx = transaction_from_event(raw, "Strategy_SetHealthCheck")
        return self.strategies.set_health_check(event.strategy, event.health_check, tx)

    def handle_set_do_health_check(self, raw: RawEvent):
        event = adapters.adapt_set_do_health_check(raw)
        tx = transaction_from_event(raw, "Strategy_SetDoHealthCheck")
        return self.strategies.set_do_health_check(event.strategy, event.do_health_check, tx)

    def get_event_handlers(self) -> dict[str, Callable[[RawEvent], object]]:
        return {
            "Harvested": self.handle_harvested,
            "Cloned": self.handle_cloned,
            "SetHealthCheck": self.handle_set_health_check,
            "SetDoHealthCheck": self.handle_set_do_health_check,
        }


class RegistryEventProcessor:
    """Events emitted by the Yearn registry."""

    def __init__(self, context: LedgerContext):
        self.tracker = RegistryTracker(context)

    def handle_new_release(self, raw: RawEvent):
        event = adapters.adapt_new_release(raw)
        tx = transaction_from_event(raw, "Registry_NewRelease")
        return self.tracker.new_release(event.registry, event.template, event.api_version, event.release_id, tx)

    def handle_new_vault(self, raw: RawEvent):
        event = adapters.adapt_new_vault(raw)
        tx = transaction_from_event(raw, f"Registry_{raw['event']}")
        return self.tracker.new_vault(event.registry, event.vault, event.api_version, event.classification, tx)

    def handle_vault_tagged(self, raw: RawEvent):
        event = adapters.adapt_vault_tagged(raw)
        return self.tracker.vault_tagged(event.vault, event.tag)

    def get_event_handlers(self) -> dict[str, Callable[[RawEvent], object]]:
        return {
            "NewRelease": self.handle_new_release,
            "NewVault": self.handle_new_vault,
            "NewExperimentalVault": self.handle_new_vault,
            "VaultTagged": self.handle_vault_tagged,
        }


class LedgerProcessor:
    """Dispatch every raw input to exactly one handler."""

    def __init__(self, context: LedgerContext, config: LedgerConfig):
        self.context = context
        self.config = config
        self.registry_processor = RegistryEventProcessor(context)
        self.strategy_processor = StrategyEventProcessor(context)
        self.vault_processor = VaultEventProcessor(context)
        self.deployment_processors = {d.address: VaultEventProcessor(context, d) for d in config.deployments}

    def get_vault_processor(self, address: str) -> VaultEventProcessor:
        return self.deployment_processors.get(address.lower(), self.vault_processor)

    def process_event(self, raw: RawEvent):
        """Handle one decoded log.

        :return:
            Whatever the handler created or updated, ``None`` if the event was skipped
        """
        address = raw["address"].lower()
        name = raw["event"]

        if address in self.config.registries:
            handlers = self.registry_processor.get_event_handlers()
        elif self.context.strategies.exists(address):
            handlers = self.strategy_processor.get_event_handlers()
        else:
            handlers = self.get_vault_processor(address).get_event_handlers()

        handler = handlers.get(name)
        if handler is None:
            logger.debug("No handler for %s at %s", name, address)
            return None
        return handler(raw)

    def process_call(self, raw: RawCall):
        """Handle one decoded vault call."""
        function_name = raw["signature"].split("(")[0]
        handler = self.get_vault_processor(raw["to"]).get_call_handlers().get(function_name)
        if handler is None:
            logger.debug("No handler for call %s to %s", raw["signature"], raw["to"])
            return None
        return handler(raw)
