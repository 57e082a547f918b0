"""Entities materialised from vault and strategy events.

- :py:class:`Vault` and :py:class:`Strategy` are long-lived aggregates
- Reports, results, harvests and ledger movements are append-only facts
  pointing to the aggregates by id

Entities reference each other only by id. The store is the only way
to walk from one entity to another.

All addresses are lowercased hex strings. Token and share amounts are raw ``uint256`` integers.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar


@dataclass(slots=True)
class Transaction:
    """The transaction, and the log or call within it, that triggered a handler.

    Built by :py:mod:`yearn_ledger.transaction` from the raw input.
    The core reads it but never stores changes to it.
    """

    kind: ClassVar[str] = "Transaction"

    #: ``<tx hash>-<log index>`` or ``<tx hash>-call-<call index>``
    id: str

    #: Transaction hash
    hash: str

    #: Transaction index within the block
    index: int

    #: Transaction sender
    from_address: str

    #: Called contract, or the emitting contract for events
    to_address: str | None

    #: UNIX timestamp of the block, seconds
    timestamp: int

    block_number: int

    #: Handler label, for diagnostics
    event: str = ""

    @property
    def timestamp_ms(self) -> int:
        """Block timestamp in milliseconds, as stored on reports."""
        return self.timestamp * 1000


@dataclass(slots=True)
class Registry:
    kind: ClassVar[str] = "Registry"

    #: Registry contract address
    id: str

    timestamp: int
    block_number: int
    transaction: str


@dataclass(slots=True)
class Release:
    """A vault template released in a registry."""

    kind: ClassVar[str] = "Release"

    #: ``<registry>-<release id>``
    id: str

    registry: str
    release_id: int
    api_version: str

    #: Template vault address
    vault: str

    timestamp: int
    block_number: int
    transaction: str


@dataclass(slots=True)
class Vault:
    """Yearn vault."""

    kind: ClassVar[str] = "Vault"

    #: Vault contract address
    id: str

    #: Registry address, ``None`` for deployments without a registry
    registry: str | None

    api_version: str

    #: ``Endorsed`` or ``Experimental``
    classification: str

    #: Underlying asset address. ``None`` if the read reverted.
    token: str | None = None

    name: str = ""
    symbol: str = ""
    decimals: int = 18

    tags: list[str] = field(default_factory=list)

    performance_fee_bps: int = 0
    management_fee_bps: int = 0

    #: Fee recipient
    rewards: str | None = None

    #: Net assets deposited through the ledger
    balance_tokens: int = 0

    #: Net shares minted through the ledger
    shares_supply: int = 0

    #: Id of the last :py:class:`VaultUpdate`
    latest_update: str | None = None

    timestamp: int = 0
    block_number: int = 0
    transaction: str | None = None


@dataclass(slots=True)
class VaultUpdate:
    """Vault state after a deposit, withdrawal or strategy report."""

    kind: ClassVar[str] = "VaultUpdate"

    #: Triggering transaction id
    id: str

    vault: str
    timestamp: int
    block_number: int
    transaction: str

    tokens_deposited: int = 0
    tokens_withdrawn: int = 0
    shares_minted: int = 0
    shares_burnt: int = 0

    #: Raw ``pricePerShare()``. ``None`` if the read reverted.
    price_per_share: int | None = None

    #: Ledger totals after this update
    balance_tokens: int = 0
    shares_supply: int = 0


@dataclass(slots=True)
class Strategy:
    """Strategy attached to a vault.

    Core fields are written once, at creation.
    """

    kind: ClassVar[str] = "Strategy"

    #: Strategy contract address
    id: str

    #: ``None`` for a clone whose vault could not be read or inferred
    vault: str | None
    name: str

    #: Debt ratio for 0.3.2+ vaults, absolute debt limit for older
    debt_limit: int
    rate_limit: int
    min_debt_per_harvest: int
    max_debt_per_harvest: int
    performance_fee_bps: int

    in_queue: bool = True
    health_check: str | None = None
    do_health_check: bool = False

    #: Strategy this one was migrated or cloned from
    cloned_from: str | None = None

    #: Id of the newest :py:class:`StrategyReport`
    latest_report: str | None = None

    timestamp: int = 0
    block_number: int = 0
    transaction: str | None = None


@dataclass(slots=True)
class StrategyReport:
    """Strategy accounting snapshot. Immutable."""

    kind: ClassVar[str] = "StrategyReport"

    #: Triggering transaction id
    id: str

    strategy: str
    gain: int
    loss: int
    total_gain: int
    total_loss: int
    total_debt: int
    debt_added: int

    #: ``debtLimit`` in 0.3.0 and 0.3.1 vaults
    debt_ratio: int

    #: Zero for 0.3.0 and 0.3.1 vaults
    debt_paid: int

    #: Milliseconds
    timestamp: int
    block_number: int
    transaction: str


@dataclass(slots=True)
class StrategyReportResult:
    """Performance between two consecutive reports of a strategy."""

    kind: ClassVar[str] = "StrategyReportResult"

    #: Triggering transaction id
    id: str

    previous_report: str
    current_report: str

    #: Previous report timestamp, ms
    start_timestamp: int

    #: Current report timestamp, ms
    end_timestamp: int

    #: ms
    duration: int

    #: Profit over previous total debt for the period
    duration_pr: Decimal

    #: ``duration_pr`` linearly annualised
    apr: Decimal

    #: Block timestamp, seconds
    timestamp: int
    block_number: int
    transaction: str


@dataclass(slots=True)
class Harvest:
    kind: ClassVar[str] = "Harvest"

    #: ``<strategy>-<tx hash>-<tx index>``
    id: str

    vault: str | None
    strategy: str
    harvester: str
    profit: int
    loss: int
    debt_payment: int
    debt_outstanding: int
    timestamp: int
    block_number: int
    transaction: str


@dataclass(slots=True)
class AccountVaultPosition:
    """Running balance of one account in one vault."""

    kind: ClassVar[str] = "AccountVaultPosition"

    #: ``<account>-<vault>``
    id: str

    account: str
    vault: str

    balance_shares: int = 0

    tokens_deposited: int = 0
    tokens_withdrawn: int = 0
    tokens_sent: int = 0
    tokens_received: int = 0
    shares_minted: int = 0
    shares_burnt: int = 0
    shares_sent: int = 0
    shares_received: int = 0

    @property
    def balance_tokens(self) -> int:
        """Net asset-equivalent amount the account has moved into the vault."""
        return self.tokens_deposited + self.tokens_received - self.tokens_withdrawn - self.tokens_sent


@dataclass(slots=True)
class Deposit:
    kind: ClassVar[str] = "Deposit"

    #: Triggering transaction id
    id: str

    vault: str
    account: str
    token_amount: int
    shares_minted: int
    timestamp: int
    block_number: int
    transaction: str


@dataclass(slots=True)
class Withdrawal:
    kind: ClassVar[str] = "Withdrawal"

    #: Triggering transaction id
    id: str

    vault: str
    account: str
    token_amount: int
    shares_burnt: int
    timestamp: int
    block_number: int
    transaction: str


@dataclass(slots=True)
class Transfer:
    kind: ClassVar[str] = "Transfer"

    #: Triggering transaction id
    id: str

    vault: str
    sender: str
    receiver: str

    #: Asset-equivalent of the shares at the live share price
    token_amount: int
    share_amount: int

    #: Underlying asset address. ``None`` if the read reverted.
    token: str | None
    timestamp: int
    block_number: int
    transaction: str


#: Every stored entity type by its kind name
ENTITY_TYPES: dict[str, type] = {
    cls.kind: cls
    for cls in (
        Transaction,
        Registry,
        Release,
        Vault,
        VaultUpdate,
        Strategy,
        StrategyReport,
        StrategyReportResult,
        Harvest,
        AccountVaultPosition,
        Deposit,
        Withdrawal,
        Transfer,
    )
}
