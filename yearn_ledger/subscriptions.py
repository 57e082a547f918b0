"""Dynamic event source registration.

When the ledger discovers a new vault or strategy, the ingestion layer
must start delivering events from that address too.
The ledger only announces the address, it never waits for the result.
"""

import abc
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class DataSourceRegistry(abc.ABC):
    """Ingestion layer hook for new contract addresses."""

    @abc.abstractmethod
    def create(self, template_name: str, address: str):
        """Start delivering events of ``template_name`` contract at ``address``.

        Fire-and-forget.
        """


@dataclass(slots=True, frozen=True)
class DataSource:
    template_name: str
    address: str


class InMemoryDataSourceRegistry(DataSourceRegistry):
    """Collect requested data sources.

    The ingestion loop polls :py:attr:`sources` to widen its log filter.
    """

    def __init__(self):
        self.sources: list[DataSource] = []

    def create(self, template_name: str, address: str):
        source = DataSource(template_name, address.lower())
        if source in self.sources:
            logger.debug("Data source %s already registered", source)
            return
        logger.info("Registering %s data source at %s", template_name, address)
        self.sources.append(source)

    def get_addresses(self, template_name: str) -> list[str]:
        return [s.address for s in self.sources if s.template_name == template_name]
