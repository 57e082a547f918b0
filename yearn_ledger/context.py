"""Collaborators shared by the ledger components."""

from dataclasses import dataclass, field

from yearn_ledger.contracts import ContractReaderFactory
from yearn_ledger.entities import (
    AccountVaultPosition,
    Deposit,
    Harvest,
    Registry,
    Release,
    Strategy,
    StrategyReport,
    StrategyReportResult,
    Transfer,
    Vault,
    VaultUpdate,
    Withdrawal,
)
from yearn_ledger.store import EntityStore, Repository
from yearn_ledger.subscriptions import DataSourceRegistry


def build_address_id(address: str) -> str:
    """Vaults, strategies and registries are identified by their contract address."""
    return address.lower()


def build_harvest_id(strategy_address: str, tx_hash: str, tx_index: int) -> str:
    return f"{strategy_address.lower()}-{tx_hash.lower()}-{tx_index}"


def build_position_id(account: str, vault: str) -> str:
    return f"{account.lower()}-{vault.lower()}"


def build_release_id(registry: str, release_id: int) -> str:
    return f"{registry.lower()}-{release_id}"


@dataclass
class LedgerContext:
    """Store, contract readers and data source hook.

    Handed to every component at construction. Repositories are created here
    so all components see the same id functions.
    """

    store: EntityStore

    readers: ContractReaderFactory

    data_sources: DataSourceRegistry

    registries: Repository[Registry] = field(init=False)
    releases: Repository[Release] = field(init=False)
    vaults: Repository[Vault] = field(init=False)
    vault_updates: Repository[VaultUpdate] = field(init=False)
    strategies: Repository[Strategy] = field(init=False)
    reports: Repository[StrategyReport] = field(init=False)
    report_results: Repository[StrategyReportResult] = field(init=False)
    harvests: Repository[Harvest] = field(init=False)
    positions: Repository[AccountVaultPosition] = field(init=False)
    deposits: Repository[Deposit] = field(init=False)
    withdrawals: Repository[Withdrawal] = field(init=False)
    transfers: Repository[Transfer] = field(init=False)

    def __post_init__(self):
        self.registries = Repository(self.store, Registry, build_address_id)
        self.releases = Repository(self.store, Release, build_release_id)
        self.vaults = Repository(self.store, Vault, build_address_id)
        self.vault_updates = Repository(self.store, VaultUpdate)
        self.strategies = Repository(self.store, Strategy, build_address_id)
        self.reports = Repository(self.store, StrategyReport)
        self.report_results = Repository(self.store, StrategyReportResult)
        self.harvests = Repository(self.store, Harvest, build_harvest_id)
        self.positions = Repository(self.store, AccountVaultPosition, build_position_id)
        self.deposits = Repository(self.store, Deposit)
        self.withdrawals = Repository(self.store, Withdrawal)
        self.transfers = Repository(self.store, Transfer)
