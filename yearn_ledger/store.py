"""Entity store and repositories.

The ledger only needs three things from its persistence layer:
load by id, check existence and save. See :py:class:`EntityStore`.

- :py:class:`InMemoryEntityStore` for tests and one-off replays
- :py:class:`SQLiteEntityStore` for persistent runs

On top of a store, :py:class:`Repository` gives the load-or-create pattern
for one entity kind with a deterministic id function.

Example:

.. code-block:: python

    store = InMemoryEntityStore()
    strategies = Repository(store, Strategy)
    strategy = strategies.load("0x...")
    if strategy is None:
        ...
"""

import abc
import copy
import dataclasses
import json
import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Generic, Iterable, TypeVar

from yearn_ledger.entities import ENTITY_TYPES
from yearn_ledger.errors import EntityNotFound
from yearn_ledger.lower_case_dict import LowercaseDict
from yearn_ledger.sqlite_cache import PersistentKeyValueStore

logger = logging.getLogger(__name__)


#: Any dataclass from :py:mod:`yearn_ledger.entities`
EntityType = TypeVar("EntityType")


class EntityStore(abc.ABC):
    """Key-addressable entity persistence.

    Entities are addressed by ``(kind, id)``.
    Loads return copies: changes are visible only after :py:meth:`save`.
    """

    @abc.abstractmethod
    def load(self, kind: str, entity_id: str) -> Any | None:
        """Load an entity or ``None`` if it does not exist."""

    @abc.abstractmethod
    def save(self, entity: Any):
        """Create or update an entity."""

    @abc.abstractmethod
    def iterate(self, kind: str) -> Iterable[Any]:
        """Iterate over all stored entities of a kind."""

    def exists(self, kind: str, entity_id: str) -> bool:
        return self.load(kind, entity_id) is not None

    def count(self, kind: str) -> int:
        return sum(1 for _ in self.iterate(kind))


class InMemoryEntityStore(EntityStore):
    """Keep entities in process memory."""

    def __init__(self):
        #: Kind -> id -> entity
        self.tables: dict[str, LowercaseDict] = {}

    def load(self, kind: str, entity_id: str) -> Any | None:
        table = self.tables.get(kind)
        if table is None:
            return None
        entity = table.get(entity_id)
        return copy.deepcopy(entity) if entity is not None else None

    def save(self, entity: Any):
        table = self.tables.setdefault(entity.kind, LowercaseDict())
        table[entity.id] = copy.deepcopy(entity)

    def iterate(self, kind: str) -> Iterable[Any]:
        for entity in self.tables.get(kind, {}).values():
            yield copy.deepcopy(entity)


def _encode_json_value(o: Any) -> Any:
    if isinstance(o, Decimal):
        return {"__decimal__": str(o)}
    raise TypeError(f"Cannot serialise {type(o)}")


def _decode_json_object(d: dict) -> Any:
    if "__decimal__" in d:
        return Decimal(d["__decimal__"])
    return d


class SQLiteEntityStore(PersistentKeyValueStore, EntityStore):
    """Store entities as JSON blobs in a SQLite database.

    - Keys are ``<kind>:<lowercased id>``
    - Every save is committed, so a handler's writes are durable before the next handler runs
    """

    DEFAULT_PATH = Path("~/.cache/yearn-ledger/entities.sqlite")

    def __init__(self, filename: Path = DEFAULT_PATH):
        assert isinstance(filename, Path), f"We got {filename}"
        filename = filename.expanduser()
        os.makedirs(filename.parent, exist_ok=True)
        super().__init__(filename, autocommit=True)

    def encode_value(self, value: Any) -> str:
        data = dataclasses.asdict(value)
        return json.dumps({"kind": value.kind, "data": data}, default=_encode_json_value)

    def decode_value(self, value: str) -> Any:
        decoded = json.loads(value, object_hook=_decode_json_object)
        cls = ENTITY_TYPES[decoded["kind"]]
        return cls(**decoded["data"])

    @staticmethod
    def make_key(kind: str, entity_id: str) -> str:
        return f"{kind}:{entity_id.lower()}"

    def load(self, kind: str, entity_id: str) -> Any | None:
        return self.get(self.make_key(kind, entity_id))

    def save(self, entity: Any):
        self[self.make_key(entity.kind, entity.id)] = entity

    def iterate(self, kind: str) -> Iterable[Any]:
        for key in self.iterkeys(prefix=f"{kind}:"):
            yield self[key]


class Repository(Generic[EntityType]):
    """Load-or-create access to one entity kind.

    :param store:
        Where entities live

    :param entity_class:
        Dataclass from :py:mod:`yearn_ledger.entities`

    :param id_function:
        Optional function building the deterministic id from :py:meth:`build_id` arguments
    """

    def __init__(
        self,
        store: EntityStore,
        entity_class: type[EntityType],
        id_function: Callable[..., str] | None = None,
    ):
        self.store = store
        self.entity_class = entity_class
        self.kind = entity_class.kind
        self.id_function = id_function

    def build_id(self, *args) -> str:
        assert self.id_function is not None, f"No id function for {self.kind}"
        return self.id_function(*args)

    def load(self, entity_id: str | None) -> EntityType | None:
        if entity_id is None:
            return None
        return self.store.load(self.kind, entity_id)

    def get(self, entity_id: str) -> EntityType:
        """Load an entity that must exist.

        :raise EntityNotFound:
            If there is no such entity
        """
        entity = self.load(entity_id)
        if entity is None:
            raise EntityNotFound(self.kind, entity_id)
        return entity

    def exists(self, entity_id: str) -> bool:
        return self.store.exists(self.kind, entity_id)

    def get_or_create(self, entity_id: str, factory: Callable[[], EntityType]) -> tuple[EntityType, bool]:
        """Load an entity, or create and save it.

        :param factory:
            Called only if the entity does not exist

        :return:
            Tuple (entity, was it created)
        """
        entity = self.load(entity_id)
        if entity is not None:
            return entity, False
        entity = factory()
        assert entity.id == entity_id, f"Factory built {entity.id}, expected {entity_id}"
        self.save(entity)
        return entity, True

    def save(self, entity: EntityType):
        assert isinstance(entity, self.entity_class), f"Expected {self.entity_class}, got {type(entity)}"
        self.store.save(entity)

    def all(self) -> list[EntityType]:
        return list(self.store.iterate(self.kind))

    def count(self) -> int:
        return self.store.count(self.kind)
