"""Fallible contract reads."""

from unittest.mock import Mock

from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from yearn_ledger.contracts import CallResult, VaultReader, Web3ContractReaderFactory, read_or_log

VAULT = "0xef0210eb96c7eb36af8ed1c20306462764935607"


def test_call_result_default():
    assert CallResult(value=5, reverted=False).value_or(0) == 5
    assert CallResult(value=None, reverted=True).value_or(0) == 0
    assert read_or_log(CallResult(value=None, reverted=True), "TBD", "name", VAULT) == "TBD"


def test_reader_pins_block():
    contract = Mock()
    contract.functions.totalAssets.return_value.call.return_value = 1_234

    reader = VaultReader(contract, block_identifier=99)

    assert reader.try_total_assets() == CallResult(value=1_234, reverted=False)
    contract.functions.totalAssets.return_value.call.assert_called_once_with(block_identifier=99)


def test_reader_revert():
    contract = Mock()
    contract.functions.totalSupply.return_value.call.side_effect = ContractLogicError("execution reverted")
    contract.functions.token.return_value.call.side_effect = BadFunctionCallOutput("Could not decode")

    reader = VaultReader(contract)

    assert reader.try_total_supply().reverted
    assert reader.try_token().reverted


def test_web3_factory_binds_checksum_address():
    web3 = Mock()
    readers = Web3ContractReaderFactory(web3)

    reader = readers.strategy(VAULT, block_identifier=10)

    assert reader.block_identifier == 10
    kwargs = web3.eth.contract.call_args.kwargs
    assert kwargs["address"] == Web3.to_checksum_address(VAULT)
    assert {f["name"] for f in kwargs["abi"]} == {"name", "vault", "healthCheck", "doHealthCheck"}
