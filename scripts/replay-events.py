"""Replay decoded vault, strategy and registry inputs into the ledger.

Input is a JSON lines file, one decoded log or call per line, already sorted in chain order.
Each line has ``"kind": "event"`` or ``"kind": "call"`` and the fields of
:py:class:`yearn_ledger.events.RawEvent` or :py:class:`yearn_ledger.events.RawCall`.

Usage:

.. code-block:: shell

    export YEARN_LEDGER_CONFIG=~/yearn/fantom.json
    export JSON_RPC_URL=https://rpc.ftm.tools
    export INPUT_FILE=~/yearn/fantom-inputs.jsonl
    python scripts/replay-events.py

Entities are written to ``~/.cache/yearn-ledger/entities.sqlite`` or ``DB_FILE``.
"""

import json
import os
from pathlib import Path

from web3 import HTTPProvider, Web3

from yearn_ledger.config import read_ledger_config
from yearn_ledger.context import LedgerContext
from yearn_ledger.contracts import Web3ContractReaderFactory
from yearn_ledger.processor import LedgerProcessor
from yearn_ledger.store import SQLiteEntityStore
from yearn_ledger.subscriptions import InMemoryDataSourceRegistry
from yearn_ledger.utils import setup_console_logging


def main():
    setup_console_logging(default_log_level="info")

    config = read_ledger_config()
    assert config.json_rpc_url, "Set JSON_RPC_URL or json_rpc_url in the config file"

    input_file = Path(os.environ["INPUT_FILE"]).expanduser()
    db_file = Path(os.environ.get("DB_FILE", SQLiteEntityStore.DEFAULT_PATH))

    web3 = Web3(HTTPProvider(config.json_rpc_url))
    assert web3.eth.chain_id == config.chain_id, f"Config is for chain {config.chain_id}, node is {web3.eth.chain_id}"

    store = SQLiteEntityStore(db_file)
    data_sources = InMemoryDataSourceRegistry()
    context = LedgerContext(store=store, readers=Web3ContractReaderFactory(web3), data_sources=data_sources)
    processor = LedgerProcessor(context, config)

    events = calls = 0
    with input_file.open("rt", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            raw = json.loads(line)
            match raw.pop("kind"):
                case "event":
                    processor.process_event(raw)
                    events += 1
                case "call":
                    processor.process_call(raw)
                    calls += 1
                case other:
                    raise ValueError(f"Unknown input kind {other}")

    print(f"Processed {events:,} events and {calls:,} calls from {input_file}")
    print(f"Vaults: {context.vaults.count():,}")
    print(f"Strategies: {context.strategies.count():,}")
    print(f"Report results: {context.report_results.count():,}")
    print(f"New data sources discovered: {len(data_sources.sources):,}")

    store.close()


if __name__ == "__main__":
    main()
