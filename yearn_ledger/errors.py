"""Ledger exceptions.

Most failure modes in the ledger are not exceptions at all:

- A missing strategy or vault is logged and the handler returns ``None``
- A duplicate create is logged and the stored record is returned
- A reverted contract read is a :py:class:`yearn_ledger.contracts.CallResult` with ``reverted`` set
- Zero divisors are guarded in :py:mod:`yearn_ledger.conversion`

The exceptions below are for callers that want strict behaviour.
"""


class EntityNotFound(LookupError):
    """Entity with the given id is not in the store.

    Raised by :py:meth:`yearn_ledger.store.Repository.get`.
    """

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")


class UnsupportedShape(ValueError):
    """Raw event or call does not match any vault ABI version we know."""
