"""Raw and normalised ledger inputs.

The ingestion layer hands us two kinds of raw data:

- :py:class:`RawEvent`: a decoded log, with the block timestamp attached
- :py:data:`RawCall`: a decoded contract call trace with inputs and outputs

Vault contracts changed their ABI several times, so the same action can
arrive in several shapes. :py:mod:`yearn_ledger.adapters` turns every known
shape into one of the normalised dataclasses in this module. The ledger
components only ever see the normalised form.
"""

from dataclasses import dataclass
from typing import TypedDict

#: One decoded contract call.
#:
#: Example (vault ``deposit(uint256)``):
#:
#: .. code-block:: text
#:
#:     {
#:         'from': '0x7a16ff8270133f063aab6c9977183d9e72835428',
#:         'to': '0xef0210eb96c7eb36af8ed1c20306462764935607',
#:         'signature': 'deposit(uint256)',
#:         'inputs': {'_amount': 1000000},
#:         'outputs': {'value0': 987654},
#:         'blockNumber': 36123456,
#:         'timestamp': 1650000000,
#:         'transactionHash': '0x5f4c...',
#:         'transactionIndex': 3,
#:         'callIndex': 0,
#:     }
#:
RawCall = TypedDict(
    "RawCall",
    {
        "from": str,
        "to": str,
        "signature": str,
        "inputs": dict,
        "outputs": dict,
        "blockNumber": int,
        "timestamp": int,
        "transactionHash": str,
        "transactionIndex": int,
        "callIndex": int,
    },
)


class RawEvent(TypedDict):
    """One decoded Solidity event.

    Same keys as web3.py ``EventData`` plus ``timestamp`` and the transaction sender.
    """

    #: Event name, e.g. ``StrategyReported``
    event: str

    #: Decoded event arguments by ABI name
    args: dict

    #: Emitting contract
    address: str

    blockNumber: int

    #: UNIX timestamp of the block, seconds
    timestamp: int

    transactionHash: str
    transactionIndex: int
    logIndex: int

    #: Transaction sender, if known
    sender: str | None


@dataclass(slots=True, frozen=True)
class DepositEvent:
    vault: str

    #: Caller of ``deposit()``
    depositor: str

    #: Share receiver if the call named one
    recipient: str | None

    #: Deposited assets. ``None`` for the zero-argument ``deposit()`` where only the minted shares are known.
    amount: int | None

    shares_out: int

    #: Block timestamp, seconds
    timestamp: int

    @property
    def account(self) -> str:
        """Whose position the deposit is credited to."""
        return self.recipient or self.depositor


@dataclass(slots=True, frozen=True)
class WithdrawEvent:
    vault: str
    withdrawer: str

    #: Withdrawn assets
    amount: int

    #: Burnt shares. ``None`` for the zero-argument ``withdraw()``.
    shares: int | None

    timestamp: int


@dataclass(slots=True, frozen=True)
class TransferEvent:
    vault: str
    sender: str
    receiver: str
    share_delta: int


@dataclass(slots=True, frozen=True)
class StrategyReportedEvent:
    vault: str
    strategy: str
    gain: int
    loss: int
    total_gain: int
    total_loss: int
    total_debt: int
    debt_added: int

    #: ``debtLimit`` before vault 0.3.2
    debt_ratio: int

    #: Zero before vault 0.3.2
    debt_paid: int


@dataclass(slots=True, frozen=True)
class StrategyAddedEvent:
    vault: str
    strategy: str

    #: ``debtLimit`` before vault 0.3.2
    debt_ratio: int

    #: Zero from vault 0.3.2 on
    rate_limit: int

    #: Zero before vault 0.3.2
    min_debt_per_harvest: int

    #: Zero before vault 0.3.2
    max_debt_per_harvest: int

    performance_fee: int

    #: Set when the strategy was added through an ``addStrategy()`` call
    caller: str | None = None


@dataclass(slots=True, frozen=True)
class StrategyMigratedEvent:
    vault: str
    old_address: str
    new_address: str


@dataclass(slots=True, frozen=True)
class HarvestedEvent:
    strategy: str
    harvester: str
    profit: int
    loss: int
    debt_payment: int
    debt_outstanding: int


@dataclass(slots=True, frozen=True)
class StrategyClonedEvent:
    clone: str
    original: str


@dataclass(slots=True, frozen=True)
class StrategyQueueEvent:
    """``StrategyAddedToQueue`` or ``StrategyRemovedFromQueue``"""

    vault: str
    strategy: str


@dataclass(slots=True, frozen=True)
class HealthCheckEvent:
    """``SetHealthCheck`` or ``SetDoHealthCheck``"""

    strategy: str
    health_check: str | None = None
    do_health_check: bool | None = None


@dataclass(slots=True, frozen=True)
class FeeUpdatedEvent:
    """``UpdatePerformanceFee`` or ``UpdateManagementFee``"""

    vault: str
    fee: int


@dataclass(slots=True, frozen=True)
class RewardsUpdatedEvent:
    vault: str
    rewards: str


@dataclass(slots=True, frozen=True)
class NewReleaseEvent:
    registry: str
    template: str
    api_version: str
    release_id: int


@dataclass(slots=True, frozen=True)
class NewVaultEvent:
    """``NewVault`` or ``NewExperimentalVault``"""

    registry: str
    vault: str
    api_version: str
    classification: str


@dataclass(slots=True, frozen=True)
class VaultTaggedEvent:
    vault: str
    tag: str
