"""Constants shared by the ledger components."""

from decimal import Decimal

#: Ethereum 0x0000000000000000000000000000000000000000 address.
#:
#: Mints and burns of vault shares are emitted as transfers from/to this address.
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

#: Milliseconds in a day.
#:
#: Report timestamps are stored in milliseconds.
MS_PER_DAY = Decimal(86_400_000)

#: Linear annualisation factor for APR.
DAYS_PER_YEAR = Decimal(365)

#: Vault classification for vaults announced with ``NewVault``
ENDORSED = "Endorsed"

#: Vault classification for vaults announced with ``NewExperimentalVault``
EXPERIMENTAL = "Experimental"

#: Data source template names passed to :py:class:`yearn_ledger.subscriptions.DataSourceRegistry`
VAULT_TEMPLATE = "Vault"
STRATEGY_TEMPLATE = "Strategy"

#: Name substituted when a strategy ``name()`` call reverts
UNKNOWN_STRATEGY_NAME = "TBD"
