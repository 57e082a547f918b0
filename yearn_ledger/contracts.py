"""Fallible contract reads against vaults and strategies.

- Every read is a ``try_*`` method returning :py:class:`CallResult`
- A reverted or undecodable call never raises, the caller picks a default with :py:meth:`CallResult.value_or`
- Reads are pinned to the block of the event or call being handled

Only the view functions the ledger needs are in the minimal ABIs below.
"""

import abc
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from eth_typing import BlockIdentifier, HexAddress
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

logger = logging.getLogger(__name__)


T = TypeVar("T")


def _view(name: str, output_type: str) -> dict:
    return {"inputs": [], "name": name, "outputs": [{"type": output_type}], "stateMutability": "view", "type": "function"}


#: Minimal ABI for Yearn v2 vault functions we read
YEARN_VAULT_ABI = [
    _view("totalAssets", "uint256"),
    _view("totalSupply", "uint256"),
    _view("pricePerShare", "uint256"),
    _view("token", "address"),
    _view("name", "string"),
    _view("symbol", "string"),
    _view("decimals", "uint256"),
]

#: Minimal ABI for Yearn v2 strategy functions we read
YEARN_STRATEGY_ABI = [
    _view("name", "string"),
    _view("vault", "address"),
    _view("healthCheck", "address"),
    _view("doHealthCheck", "bool"),
]


@dataclass(slots=True, frozen=True)
class CallResult(Generic[T]):
    """Outcome of a fallible contract read."""

    #: Decoded return value, ``None`` if reverted
    value: T | None

    #: Did the call revert or fail to decode
    reverted: bool

    def value_or(self, default: T) -> T:
        """Return the value, or ``default`` if the call reverted."""
        if self.reverted:
            return default
        return self.value


class ContractReader:
    """Read view functions of one contract without raising on reverts."""

    def __init__(self, contract: Contract, block_identifier: BlockIdentifier = "latest"):
        self.contract = contract
        self.block_identifier = block_identifier

    @property
    def address(self) -> HexAddress:
        return self.contract.address

    def try_call(self, function_name: str, *args) -> CallResult:
        func = getattr(self.contract.functions, function_name)
        try:
            value = func(*args).call(block_identifier=self.block_identifier)
        except (ValueError, BadFunctionCallOutput, ContractLogicError) as e:
            logger.debug("Call %s.%s() at %s reverted: %s", self.address, function_name, self.block_identifier, e)
            return CallResult(value=None, reverted=True)
        return CallResult(value=value, reverted=False)


class VaultReader(ContractReader):
    """Yearn vault view functions."""

    def try_total_assets(self) -> CallResult[int]:
        return self.try_call("totalAssets")

    def try_total_supply(self) -> CallResult[int]:
        return self.try_call("totalSupply")

    def try_price_per_share(self) -> CallResult[int]:
        return self.try_call("pricePerShare")

    def try_token(self) -> CallResult[str]:
        return _lowercase_address(self.try_call("token"))

    def try_name(self) -> CallResult[str]:
        return self.try_call("name")

    def try_symbol(self) -> CallResult[str]:
        return self.try_call("symbol")

    def try_decimals(self) -> CallResult[int]:
        return self.try_call("decimals")


class StrategyReader(ContractReader):
    """Yearn strategy view functions."""

    def try_name(self) -> CallResult[str]:
        return self.try_call("name")

    def try_vault(self) -> CallResult[str]:
        return _lowercase_address(self.try_call("vault"))

    def try_health_check(self) -> CallResult[str]:
        return _lowercase_address(self.try_call("healthCheck"))

    def try_do_health_check(self) -> CallResult[bool]:
        return self.try_call("doHealthCheck")


def _lowercase_address(result: CallResult) -> CallResult:
    if result.reverted or result.value is None:
        return result
    return CallResult(value=result.value.lower(), reverted=False)


class ContractReaderFactory(abc.ABC):
    """Bind readers to addresses."""

    @abc.abstractmethod
    def vault(self, address: str, block_identifier: BlockIdentifier = "latest") -> VaultReader:
        """Reader for a vault contract."""

    @abc.abstractmethod
    def strategy(self, address: str, block_identifier: BlockIdentifier = "latest") -> StrategyReader:
        """Reader for a strategy contract."""


class Web3ContractReaderFactory(ContractReaderFactory):
    """Bind readers to contracts on a live JSON-RPC connection.

    Example:

    .. code-block:: python

        web3 = Web3(HTTPProvider(os.environ["JSON_RPC_URL"]))
        readers = Web3ContractReaderFactory(web3)
        vault = readers.vault("0x...", block_identifier=event["blockNumber"])
        total_assets = vault.try_total_assets().value_or(0)
    """

    def __init__(self, web3: Web3):
        self.web3 = web3

    def _bind(self, address: str, abi: list[dict]) -> Contract:
        return self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def vault(self, address: str, block_identifier: BlockIdentifier = "latest") -> VaultReader:
        return VaultReader(self._bind(address, YEARN_VAULT_ABI), block_identifier)

    def strategy(self, address: str, block_identifier: BlockIdentifier = "latest") -> StrategyReader:
        return StrategyReader(self._bind(address, YEARN_STRATEGY_ABI), block_identifier)


def read_or_log(result: CallResult[T], default: T, what: str, address: Any) -> T:
    """Substitute a default for a reverted read, with a log line."""
    if result.reverted:
        logger.info("Could not read %s from %s, using %s", what, address, default)
    return result.value_or(default)
