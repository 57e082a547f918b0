"""Build :py:class:`~yearn_ledger.entities.Transaction` from raw inputs.

Ids are ``<tx hash>-<log index>`` for events and ``<tx hash>-call-<call index>`` for calls.
The transaction id is the idempotency key of everything a handler creates:
the same log or call delivered twice, for example on a reorganisation replay,
maps to the same id and loads the existing record.
"""

from hexbytes import HexBytes

from yearn_ledger.entities import Transaction
from yearn_ledger.events import RawCall, RawEvent

#: Separates call ids from log ids of the same transaction
CALL_ID_PREFIX = "call-"


def _hex(value: str | bytes) -> str:
    if isinstance(value, (bytes, bytearray)):
        # HexBytes.hex() dropped the 0x prefix in hexbytes 1.0
        return "0x" + HexBytes(value).hex().removeprefix("0x")
    return value.lower()


def build_transaction_id(tx_hash: str | bytes, index: int, prefix: str = "") -> str:
    """Deterministic id for a log or call.

    Log and call indexes are counted separately within a transaction,
    so call ids carry a ``call-`` prefix to keep them apart from log ids.

    :param index:
        Log index for events, call index for calls

    :param prefix:
        ``""`` for logs, ``CALL_ID_PREFIX`` for calls
    """
    assert type(index) == int, f"Got {type(index)}"
    return f"{_hex(tx_hash)}-{prefix}{index}"


def transaction_from_event(event: RawEvent, label: str = "") -> Transaction:
    tx_hash = _hex(event["transactionHash"])
    sender = event.get("sender")
    return Transaction(
        id=build_transaction_id(tx_hash, event["logIndex"]),
        hash=tx_hash,
        index=event["transactionIndex"],
        from_address=sender.lower() if sender else "",
        to_address=event["address"].lower(),
        timestamp=event["timestamp"],
        block_number=event["blockNumber"],
        event=label or event["event"],
    )


def transaction_from_call(call: RawCall, label: str = "") -> Transaction:
    tx_hash = _hex(call["transactionHash"])
    return Transaction(
        id=build_transaction_id(tx_hash, call["callIndex"], CALL_ID_PREFIX),
        hash=tx_hash,
        index=call["transactionIndex"],
        from_address=call["from"].lower(),
        to_address=call["to"].lower(),
        timestamp=call["timestamp"],
        block_number=call["blockNumber"],
        event=label or call["signature"],
    )
