"""Yearn registry bookkeeping.

The registry announces vault templates (releases) and new endorsed
or experimental vaults. Announced vaults get their own data source.
"""

import logging

from yearn_ledger.constants import ENDORSED, EXPERIMENTAL
from yearn_ledger.context import LedgerContext
from yearn_ledger.entities import Registry, Release, Transaction, Vault
from yearn_ledger.vault import VaultLedger

logger = logging.getLogger(__name__)


class RegistryTracker:
    def __init__(self, context: LedgerContext, ledger: VaultLedger | None = None):
        self.context = context
        self.registries = context.registries
        self.releases = context.releases
        self.ledger = ledger or VaultLedger(context)

    def get_or_create_registry(self, registry_address: str, tx: Transaction) -> Registry:
        registry_id = self.registries.build_id(registry_address)
        registry, created = self.registries.get_or_create(
            registry_id,
            lambda: Registry(id=registry_id, timestamp=tx.timestamp_ms, block_number=tx.block_number, transaction=tx.id),
        )
        if created:
            logger.info("Registry %s first seen, tx %s", registry_id, tx.hash)
        return registry

    def new_release(self, registry_address: str, template: str, api_version: str, release_id: int, tx: Transaction) -> Release:
        """Record a vault template release.

        The template is a vault too, but it never receives deposits so it gets no data source.
        """
        logger.info("Registry %s new release %d, api %s, template %s, tx %s", registry_address, release_id, api_version, template, tx.hash)
        registry = self.get_or_create_registry(registry_address, tx)
        release_key = self.releases.build_id(registry.id, release_id)
        release, created = self.releases.get_or_create(
            release_key,
            lambda: Release(
                id=release_key,
                registry=registry.id,
                release_id=release_id,
                api_version=api_version,
                vault=template.lower(),
                timestamp=tx.timestamp_ms,
                block_number=tx.block_number,
                transaction=tx.id,
            ),
        )
        if not created:
            logger.warning("Release %s already recorded", release_key)
        self.ledger.get_or_create_vault(template, registry.id, ENDORSED, api_version, tx, create_template=False)
        return release

    def new_vault(self, registry_address: str, vault_address: str, api_version: str, classification: str, tx: Transaction) -> Vault:
        """Endorsed or experimental vault announced by the registry."""
        assert classification in (ENDORSED, EXPERIMENTAL), f"Unknown classification {classification}"
        logger.info("Registry %s new %s vault %s, api %s, tx %s", registry_address, classification, vault_address, api_version, tx.hash)
        registry = self.get_or_create_registry(registry_address, tx)
        return self.ledger.get_or_create_vault(vault_address, registry.id, classification, api_version, tx, create_template=True)

    def vault_tagged(self, vault_address: str, tag: str) -> Vault | None:
        logger.info("Vault %s tagged %s", vault_address, tag)
        return self.ledger.tag(vault_address, tag)
