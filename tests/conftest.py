"""Shared fixtures.

Contract reads are served by :py:class:`FakeChain` instead of a node,
so the tests run without Anvil or an RPC connection.
"""

import pytest
from web3.exceptions import ContractLogicError

from yearn_ledger.context import LedgerContext
from yearn_ledger.contracts import ContractReaderFactory, StrategyReader, VaultReader
from yearn_ledger.entities import Transaction
from yearn_ledger.store import InMemoryEntityStore
from yearn_ledger.subscriptions import InMemoryDataSourceRegistry
from yearn_ledger.transaction import build_transaction_id


class FakeFunction:
    def __init__(self, chain: "FakeChain", address: str, name: str):
        self.chain = chain
        self.address = address
        self.name = name

    def __call__(self, *args):
        return self

    def call(self, block_identifier="latest"):
        self.chain.reads.append((self.address, self.name, block_identifier))
        key = (self.address, self.name)
        if key not in self.chain.values:
            raise ContractLogicError("execution reverted")
        return self.chain.values[key]


class FakeFunctions:
    def __init__(self, chain: "FakeChain", address: str):
        self.chain = chain
        self.address = address

    def __getattr__(self, name):
        return FakeFunction(self.chain, self.address, name)


class FakeContract:
    def __init__(self, chain: "FakeChain", address: str):
        self.address = address
        self.functions = FakeFunctions(chain, address)


class FakeChain(ContractReaderFactory):
    """View function return values by contract address.

    A function with no value set reverts.
    """

    def __init__(self):
        #: (address, function name) -> return value
        self.values = {}

        #: (address, function name, block identifier) of every read
        self.reads = []

    def set(self, address: str, **values):
        for name, value in values.items():
            self.values[(address.lower(), name)] = value

    def unset(self, address: str, name: str):
        self.values.pop((address.lower(), name), None)

    def vault(self, address: str, block_identifier="latest") -> VaultReader:
        return VaultReader(FakeContract(self, address.lower()), block_identifier)

    def strategy(self, address: str, block_identifier="latest") -> StrategyReader:
        return StrategyReader(FakeContract(self, address.lower()), block_identifier)


@pytest.fixture()
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture()
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture()
def data_sources() -> InMemoryDataSourceRegistry:
    return InMemoryDataSourceRegistry()


@pytest.fixture()
def context(store, chain, data_sources) -> LedgerContext:
    return LedgerContext(store=store, readers=chain, data_sources=data_sources)


@pytest.fixture()
def make_tx():
    """Build a transaction for direct component calls.

    Timestamps are seconds, as in block headers.
    """

    def _make_tx(
        block_number: int = 100,
        timestamp: int = 1_650_000_000,
        index: int = 0,
        tx_hash: str = "0x" + "aa" * 32,
        from_address: str = "0x7a16ff8270133f063aab6c9977183d9e72835428",
        to_address: str | None = None,
    ) -> Transaction:
        return Transaction(
            id=build_transaction_id(tx_hash, index),
            hash=tx_hash,
            index=index,
            from_address=from_address,
            to_address=to_address,
            timestamp=timestamp,
            block_number=block_number,
        )

    return _make_tx
