"""Normalise historical vault ABI shapes.

Yearn v2 vaults changed event and function signatures between releases.
Each adapter here recognises every shape we have seen for one action
and returns the single normalised form from :py:mod:`yearn_ledger.events`.

Known shapes:

- ``StrategyReported``: 0.3.0 and 0.3.1 carry ``debtLimit`` and no ``debtPaid``,
  0.3.2 and later carry ``debtRatio`` and ``debtPaid``
- ``deposit()``, ``deposit(uint256)``, ``deposit(uint256,address)``
- ``withdraw()``, ``withdraw(uint256)``, ``withdraw(uint256,address)``, ``withdraw(uint256,address,uint256)``
- ``addStrategy`` and ``StrategyAdded``: pre-0.3.2 ``debtLimit``/``rateLimit``,
  0.3.2 and later ``debtRatio``/``minDebtPerHarvest``/``maxDebtPerHarvest``
"""

import enum
import logging

from yearn_ledger.constants import ENDORSED, EXPERIMENTAL
from yearn_ledger.errors import UnsupportedShape
from yearn_ledger.events import (
    DepositEvent,
    FeeUpdatedEvent,
    HarvestedEvent,
    HealthCheckEvent,
    NewReleaseEvent,
    NewVaultEvent,
    RawCall,
    RawEvent,
    RewardsUpdatedEvent,
    StrategyAddedEvent,
    StrategyClonedEvent,
    StrategyMigratedEvent,
    StrategyQueueEvent,
    StrategyReportedEvent,
    TransferEvent,
    VaultTaggedEvent,
    WithdrawEvent,
)

logger = logging.getLogger(__name__)


class StrategyReportedShape(enum.Enum):
    """``StrategyReported`` event layouts."""

    #: Vault 0.3.0 and 0.3.1
    debt_limit = "debt_limit"

    #: Vault 0.3.2 and later
    debt_ratio_with_debt_paid = "debt_ratio_with_debt_paid"


class DepositShape(enum.Enum):
    """``deposit`` function overloads."""

    no_args = "deposit()"
    amount = "deposit(uint256)"
    amount_recipient = "deposit(uint256,address)"


class WithdrawShape(enum.Enum):
    """``withdraw`` function overloads."""

    no_args = "withdraw()"
    shares = "withdraw(uint256)"
    shares_recipient = "withdraw(uint256,address)"
    shares_recipient_max_loss = "withdraw(uint256,address,uint256)"


class AddStrategyShape(enum.Enum):
    """``addStrategy`` function and ``StrategyAdded`` event layouts."""

    #: Before vault 0.3.2
    debt_limit = "debt_limit"

    #: Vault 0.3.2 and later
    debt_ratio = "debt_ratio"


def _arg(args: dict, *names: str):
    """Read the first of the candidate argument names."""
    for name in names:
        if name in args:
            return args[name]
    raise UnsupportedShape(f"None of {names} in {sorted(args.keys())}")


def _address(value) -> str:
    assert isinstance(value, str), f"Expected address string, got {type(value)}"
    return value.lower()


def _output(call: RawCall) -> int:
    return _arg(call["outputs"], "value0", "")


def detect_strategy_reported_shape(args: dict) -> StrategyReportedShape:
    if "debtPaid" in args and "debtRatio" in args:
        return StrategyReportedShape.debt_ratio_with_debt_paid
    if "debtLimit" in args:
        return StrategyReportedShape.debt_limit
    raise UnsupportedShape(f"Unknown StrategyReported layout: {sorted(args.keys())}")


def adapt_strategy_reported(event: RawEvent) -> StrategyReportedEvent:
    args = event["args"]
    shape = detect_strategy_reported_shape(args)
    if shape == StrategyReportedShape.debt_limit:
        debt_ratio = args["debtLimit"]
        debt_paid = 0
    else:
        debt_ratio = args["debtRatio"]
        debt_paid = args["debtPaid"]
    return StrategyReportedEvent(
        vault=_address(event["address"]),
        strategy=_address(args["strategy"]),
        gain=args["gain"],
        loss=args["loss"],
        total_gain=args["totalGain"],
        total_loss=args["totalLoss"],
        total_debt=args["totalDebt"],
        debt_added=args["debtAdded"],
        debt_ratio=debt_ratio,
        debt_paid=debt_paid,
    )


def detect_deposit_shape(call: RawCall) -> DepositShape:
    try:
        return DepositShape(call["signature"])
    except ValueError as e:
        raise UnsupportedShape(f"Unknown deposit signature: {call['signature']}") from e


def adapt_deposit(call: RawCall) -> DepositEvent:
    shape = detect_deposit_shape(call)
    inputs = call["inputs"]
    match shape:
        case DepositShape.no_args:
            amount = None
            recipient = None
        case DepositShape.amount:
            amount = _arg(inputs, "_amount", "amount")
            recipient = None
        case DepositShape.amount_recipient:
            amount = _arg(inputs, "_amount", "amount")
            recipient = _address(_arg(inputs, "_recipient", "recipient"))
    return DepositEvent(
        vault=_address(call["to"]),
        depositor=_address(call["from"]),
        recipient=recipient,
        amount=amount,
        shares_out=_output(call),
        timestamp=call["timestamp"],
    )


def detect_withdraw_shape(call: RawCall) -> WithdrawShape:
    try:
        return WithdrawShape(call["signature"])
    except ValueError as e:
        raise UnsupportedShape(f"Unknown withdraw signature: {call['signature']}") from e


def adapt_withdraw(call: RawCall) -> WithdrawEvent:
    shape = detect_withdraw_shape(call)
    if shape == WithdrawShape.no_args:
        shares = None
    else:
        shares = _arg(call["inputs"], "_shares", "maxShares", "shares")
    return WithdrawEvent(
        vault=_address(call["to"]),
        withdrawer=_address(call["from"]),
        amount=_output(call),
        shares=shares,
        timestamp=call["timestamp"],
    )


def adapt_transfer(event: RawEvent) -> TransferEvent:
    args = event["args"]
    return TransferEvent(
        vault=_address(event["address"]),
        sender=_address(_arg(args, "sender", "from")),
        receiver=_address(_arg(args, "receiver", "to")),
        share_delta=_arg(args, "value", "amount"),
    )


def detect_add_strategy_shape(args: dict) -> AddStrategyShape:
    if "debtRatio" in args:
        return AddStrategyShape.debt_ratio
    if "debtLimit" in args or "_debtLimit" in args:
        return AddStrategyShape.debt_limit
    raise UnsupportedShape(f"Unknown addStrategy layout: {sorted(args.keys())}")


def _adapt_add_strategy_args(vault: str, args: dict, caller: str | None) -> StrategyAddedEvent:
    shape = detect_add_strategy_shape(args)
    strategy = _address(_arg(args, "strategy", "_strategy"))
    performance_fee = _arg(args, "performanceFee", "_performanceFee")
    if shape == AddStrategyShape.debt_limit:
        return StrategyAddedEvent(
            vault=vault,
            strategy=strategy,
            debt_ratio=_arg(args, "debtLimit", "_debtLimit"),
            rate_limit=_arg(args, "rateLimit", "_rateLimit"),
            min_debt_per_harvest=0,
            max_debt_per_harvest=0,
            performance_fee=performance_fee,
            caller=caller,
        )
    return StrategyAddedEvent(
        vault=vault,
        strategy=strategy,
        debt_ratio=args["debtRatio"],
        rate_limit=0,
        min_debt_per_harvest=_arg(args, "minDebtPerHarvest"),
        max_debt_per_harvest=_arg(args, "maxDebtPerHarvest"),
        performance_fee=performance_fee,
        caller=caller,
    )


def adapt_strategy_added(event: RawEvent) -> StrategyAddedEvent:
    """``StrategyAdded`` event, both layouts."""
    return _adapt_add_strategy_args(_address(event["address"]), event["args"], caller=None)


def adapt_add_strategy_call(call: RawCall) -> StrategyAddedEvent:
    """``addStrategy()`` call, both layouts."""
    return _adapt_add_strategy_args(_address(call["to"]), call["inputs"], caller=_address(call["from"]))


def adapt_strategy_migrated(event: RawEvent) -> StrategyMigratedEvent:
    args = event["args"]
    return StrategyMigratedEvent(
        vault=_address(event["address"]),
        old_address=_address(args["oldVersion"]),
        new_address=_address(args["newVersion"]),
    )


def adapt_harvested(event: RawEvent) -> HarvestedEvent:
    args = event["args"]
    harvester = event.get("sender")
    return HarvestedEvent(
        strategy=_address(event["address"]),
        harvester=harvester.lower() if harvester else "",
        profit=args["profit"],
        loss=args["loss"],
        debt_payment=args["debtPayment"],
        debt_outstanding=args["debtOutstanding"],
    )


def adapt_cloned(event: RawEvent) -> StrategyClonedEvent:
    return StrategyClonedEvent(
        clone=_address(_arg(event["args"], "clone")),
        original=_address(event["address"]),
    )


def adapt_strategy_queue(event: RawEvent) -> StrategyQueueEvent:
    return StrategyQueueEvent(
        vault=_address(event["address"]),
        strategy=_address(event["args"]["strategy"]),
    )


def adapt_set_health_check(event: RawEvent) -> HealthCheckEvent:
    return HealthCheckEvent(
        strategy=_address(event["address"]),
        health_check=_address(_arg(event["args"], "healthCheck", "_healthCheck", "")),
    )


def adapt_set_do_health_check(event: RawEvent) -> HealthCheckEvent:
    return HealthCheckEvent(
        strategy=_address(event["address"]),
        do_health_check=bool(_arg(event["args"], "doHealthCheck", "_doHealthCheck", "")),
    )


def adapt_performance_fee(event: RawEvent) -> FeeUpdatedEvent:
    return FeeUpdatedEvent(vault=_address(event["address"]), fee=event["args"]["performanceFee"])


def adapt_management_fee(event: RawEvent) -> FeeUpdatedEvent:
    return FeeUpdatedEvent(vault=_address(event["address"]), fee=event["args"]["managementFee"])


def adapt_update_rewards(event: RawEvent) -> RewardsUpdatedEvent:
    return RewardsUpdatedEvent(vault=_address(event["address"]), rewards=_address(event["args"]["rewards"]))


def adapt_new_release(event: RawEvent) -> NewReleaseEvent:
    args = event["args"]
    return NewReleaseEvent(
        registry=_address(event["address"]),
        template=_address(args["template"]),
        api_version=args["api_version"],
        release_id=args["release_id"],
    )


def adapt_new_vault(event: RawEvent) -> NewVaultEvent:
    """``NewVault`` and ``NewExperimentalVault``."""
    args = event["args"]
    match event["event"]:
        case "NewVault":
            classification = ENDORSED
        case "NewExperimentalVault":
            classification = EXPERIMENTAL
        case _:
            raise UnsupportedShape(f"Not a vault announcement: {event['event']}")
    return NewVaultEvent(
        registry=_address(event["address"]),
        vault=_address(args["vault"]),
        api_version=args["api_version"],
        classification=classification,
    )


def adapt_vault_tagged(event: RawEvent) -> VaultTaggedEvent:
    args = event["args"]
    return VaultTaggedEvent(vault=_address(args["vault"]), tag=args["tag"])
