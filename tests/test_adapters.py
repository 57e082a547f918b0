"""Normalising vault ABI versions."""

import pytest

from yearn_ledger.adapters import (
    DepositShape,
    StrategyReportedShape,
    WithdrawShape,
    adapt_add_strategy_call,
    adapt_cloned,
    adapt_deposit,
    adapt_harvested,
    adapt_new_vault,
    adapt_strategy_added,
    adapt_strategy_reported,
    adapt_transfer,
    adapt_withdraw,
    detect_deposit_shape,
    detect_strategy_reported_shape,
    detect_withdraw_shape,
)
from yearn_ledger.constants import ENDORSED, EXPERIMENTAL
from yearn_ledger.errors import UnsupportedShape

VAULT = "0xEF0210eb96c7EB36AF8ed1c20306462764935607"
STRATEGY = "0x1111111111111111111111111111111111111111"
ALICE = "0x7a16ff8270133f063aab6c9977183d9e72835428"


def make_event(name: str, args: dict, address: str = VAULT, sender: str | None = ALICE) -> dict:
    return {
        "event": name,
        "args": args,
        "address": address,
        "blockNumber": 100,
        "timestamp": 1_650_000_000,
        "transactionHash": "0x" + "aa" * 32,
        "transactionIndex": 1,
        "logIndex": 2,
        "sender": sender,
    }


def make_call(signature: str, inputs: dict, outputs: dict) -> dict:
    return {
        "from": ALICE,
        "to": VAULT,
        "signature": signature,
        "inputs": inputs,
        "outputs": outputs,
        "blockNumber": 100,
        "timestamp": 1_650_000_000,
        "transactionHash": "0x" + "aa" * 32,
        "transactionIndex": 1,
        "callIndex": 0,
    }


REPORT_ARGS = {"strategy": STRATEGY, "gain": 10, "loss": 1, "totalGain": 100, "totalLoss": 5, "totalDebt": 1_000, "debtAdded": 50}


def test_strategy_reported_0_3_1():
    args = REPORT_ARGS | {"debtLimit": 7_000}
    assert detect_strategy_reported_shape(args) == StrategyReportedShape.debt_limit

    event = adapt_strategy_reported(make_event("StrategyReported", args))

    assert event.vault == VAULT.lower()
    assert event.debt_ratio == 7_000
    assert event.debt_paid == 0
    assert event.total_gain == 100


def test_strategy_reported_0_3_2():
    args = REPORT_ARGS | {"debtRatio": 3_000, "debtPaid": 25}
    assert detect_strategy_reported_shape(args) == StrategyReportedShape.debt_ratio_with_debt_paid

    event = adapt_strategy_reported(make_event("StrategyReported", args))

    assert event.debt_ratio == 3_000
    assert event.debt_paid == 25


def test_strategy_reported_unknown_layout():
    with pytest.raises(UnsupportedShape):
        adapt_strategy_reported(make_event("StrategyReported", REPORT_ARGS))


def test_deposit_shapes():
    no_args = adapt_deposit(make_call("deposit()", {}, {"value0": 99}))
    assert detect_deposit_shape(make_call("deposit()", {}, {})) == DepositShape.no_args
    assert no_args.amount is None
    assert no_args.shares_out == 99
    assert no_args.account == ALICE

    amount = adapt_deposit(make_call("deposit(uint256)", {"_amount": 100}, {"value0": 99}))
    assert amount.amount == 100
    assert amount.account == ALICE

    recipient = "0x5555555555555555555555555555555555555555"
    with_recipient = adapt_deposit(make_call("deposit(uint256,address)", {"_amount": 100, "_recipient": recipient}, {"value0": 99}))
    assert with_recipient.account == recipient
    assert with_recipient.depositor == ALICE


def test_deposit_unknown_signature():
    with pytest.raises(UnsupportedShape):
        adapt_deposit(make_call("deposit(uint256,address,bytes)", {}, {}))


@pytest.mark.parametrize(
    "signature,inputs,shape",
    [
        ("withdraw(uint256)", {"_shares": 40}, WithdrawShape.shares),
        ("withdraw(uint256,address)", {"_shares": 40, "recipient": ALICE}, WithdrawShape.shares_recipient),
        ("withdraw(uint256,address,uint256)", {"maxShares": 40, "recipient": ALICE, "maxLoss": 1}, WithdrawShape.shares_recipient_max_loss),
    ],
)
def test_withdraw_with_shares(signature, inputs, shape):
    call = make_call(signature, inputs, {"value0": 44})
    assert detect_withdraw_shape(call) == shape
    event = adapt_withdraw(call)
    assert event.shares == 40
    assert event.amount == 44


def test_withdraw_all():
    event = adapt_withdraw(make_call("withdraw()", {}, {"value0": 44}))
    assert event.shares is None
    assert event.amount == 44


def test_transfer_arg_names():
    event = adapt_transfer(make_event("Transfer", {"sender": ALICE, "receiver": STRATEGY, "value": 5}))
    assert event.sender == ALICE
    assert event.receiver == STRATEGY
    assert event.share_delta == 5

    event = adapt_transfer(make_event("Transfer", {"from": ALICE, "to": STRATEGY, "value": 5}))
    assert event.receiver == STRATEGY


def test_strategy_added_layouts():
    old = adapt_strategy_added(make_event("StrategyAdded", {"strategy": STRATEGY, "debtLimit": 1_000, "rateLimit": 5, "performanceFee": 1_000}))
    assert old.debt_ratio == 1_000
    assert old.rate_limit == 5
    assert old.min_debt_per_harvest == 0

    new = adapt_strategy_added(
        make_event("StrategyAdded", {"strategy": STRATEGY, "debtRatio": 2_000, "minDebtPerHarvest": 1, "maxDebtPerHarvest": 9, "performanceFee": 500})
    )
    assert new.debt_ratio == 2_000
    assert new.rate_limit == 0
    assert new.max_debt_per_harvest == 9
    assert new.caller is None


def test_add_strategy_call():
    call = make_call(
        "addStrategy(address,uint256,uint256,uint256,uint256)",
        {"_strategy": STRATEGY, "_debtLimit": 1_000, "_rateLimit": 5, "_performanceFee": 1_000},
        {},
    )
    event = adapt_add_strategy_call(call)
    assert event.caller == ALICE
    assert event.vault == VAULT.lower()
    assert event.strategy == STRATEGY


def test_harvested_and_cloned():
    harvested = adapt_harvested(make_event("Harvested", {"profit": 1, "loss": 2, "debtPayment": 3, "debtOutstanding": 4}, address=STRATEGY))
    assert harvested.strategy == STRATEGY
    assert harvested.harvester == ALICE
    assert harvested.debt_outstanding == 4

    clone = "0x6666666666666666666666666666666666666666"
    cloned = adapt_cloned(make_event("Cloned", {"clone": clone}, address=STRATEGY))
    assert cloned.clone == clone
    assert cloned.original == STRATEGY


def test_new_vault_classification():
    args = {"token": ALICE, "deployment_id": 0, "vault": VAULT, "api_version": "0.4.3"}
    assert adapt_new_vault(make_event("NewVault", args)).classification == ENDORSED
    assert adapt_new_vault(make_event("NewExperimentalVault", args)).classification == EXPERIMENTAL
    with pytest.raises(UnsupportedShape):
        adapt_new_vault(make_event("VaultTagged", args))
