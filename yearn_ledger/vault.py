"""Vault balance ledger.

Turns deposits, withdrawals and share transfers into asset-denominated
balance movements per account and vault.

- The vault contract share price floats: shares are converted to assets with the
  live ``totalAssets() / totalSupply()`` ratio at the block of the movement
- Mints and burns show up as transfers from and to the zero address. Those are
  already counted by the deposit and withdraw calls and are skipped
- When a vault calls another vault (minimal proxy plumbing), the call is not a user movement
  and is skipped, see :py:meth:`VaultLedger.is_minimal_proxy_call`
- Every movement is stored as a :py:class:`~yearn_ledger.entities.Deposit`,
  :py:class:`~yearn_ledger.entities.Withdrawal` or :py:class:`~yearn_ledger.entities.Transfer`
  keyed by the transaction id, so redelivery does not double count

Vault records themselves are also managed here: creation, tags, fees and rewards.
"""

import logging

from yearn_ledger.constants import ZERO_ADDRESS, VAULT_TEMPLATE
from yearn_ledger.context import LedgerContext
from yearn_ledger.contracts import VaultReader, read_or_log
from yearn_ledger.conversion import convert_assets_to_shares, convert_shares_to_assets
from yearn_ledger.entities import AccountVaultPosition, Deposit, Transaction, Transfer, Vault, VaultUpdate, Withdrawal
from yearn_ledger.events import DepositEvent, WithdrawEvent

logger = logging.getLogger(__name__)


class VaultLedger:
    """Vault records and account balances."""

    def __init__(self, context: LedgerContext):
        self.context = context
        self.vaults = context.vaults
        self.positions = context.positions

    def is_vault(self, address: str | None) -> bool:
        """Have we seen a vault at this address."""
        if not address:
            return False
        return self.vaults.exists(address)

    def is_minimal_proxy_call(self, caller: str | None, callee: str | None) -> bool:
        """Is this a vault calling another vault.

        Such calls are internal delegation, not user deposits or withdrawals.
        """
        return self.is_vault(callee) and self.is_vault(caller)

    def get_or_create_vault(
        self,
        vault_address: str,
        registry: str | None,
        classification: str,
        api_version: str,
        tx: Transaction,
        create_template: bool,
    ) -> Vault:
        """Load a vault, or create it on first sight.

        :param create_template:
            Ask the ingestion layer to start delivering this vault's events.
            Deployments with their own custom handlers already get them.
        """
        vault_id = self.vaults.build_id(vault_address)
        vault = self.vaults.load(vault_id)
        if vault is not None:
            return vault

        logger.info("Creating vault %s, registry %s, %s, api %s, tx %s", vault_id, registry, classification, api_version, tx.hash)
        reader = self._reader(vault_id, tx)
        vault = Vault(
            id=vault_id,
            registry=registry.lower() if registry else None,
            api_version=api_version,
            classification=classification,
            token=read_or_log(reader.try_token(), None, "token", vault_id),
            name=read_or_log(reader.try_name(), "", "name", vault_id),
            symbol=read_or_log(reader.try_symbol(), "", "symbol", vault_id),
            decimals=read_or_log(reader.try_decimals(), 18, "decimals", vault_id),
            timestamp=tx.timestamp_ms,
            block_number=tx.block_number,
            transaction=tx.id,
        )
        self.vaults.save(vault)
        if create_template:
            self.context.data_sources.create(VAULT_TEMPLATE, vault_id)
        return vault

    def tag(self, vault_address: str, tag: str) -> Vault | None:
        vault = self.vaults.load(vault_address)
        if vault is None:
            logger.warning("Tagging unknown vault %s with %s", vault_address, tag)
            return None
        if tag not in vault.tags:
            vault.tags.append(tag)
        self.vaults.save(vault)
        return vault

    def handle_deposit(self, event: DepositEvent, tx: Transaction) -> Deposit | None:
        """Process a normalised ``deposit`` call.

        Skipped when a vault calls another vault, see :py:meth:`record_deposit` for the rest.
        """
        if self.is_minimal_proxy_call(event.depositor, event.vault):
            logger.warning("Deposit tx %s: call from %s to %s are vaults (minimal proxy), not processing", tx.hash, event.depositor, event.vault)
            return None
        return self.record_deposit(event, tx)

    def record_deposit(self, event: DepositEvent, tx: Transaction) -> Deposit | None:
        """Credit a normalised ``deposit`` call without the minimal proxy check.

        For the zero-argument ``deposit()`` only the minted shares are known and the
        asset amount is computed from the live share price. With no shares minted yet
        the price is undefined and the amount is taken as zero.
        """
        amount = event.amount
        if amount is None:
            total_assets, total_supply = self._read_totals(event.vault, tx)
            amount = convert_shares_to_assets(event.shares_out, total_assets, total_supply)
            logger.info("Deposit of %d shares: total assets %d, total supply %d, amount %d", event.shares_out, total_assets, total_supply, amount)

        return self.deposit(event.vault, tx, event.account, amount, event.shares_out, event.timestamp)

    def deposit(self, vault_address: str, tx: Transaction, depositor: str, amount: int, shares: int, timestamp: int) -> Deposit | None:
        """Credit a deposit to the depositor's position."""
        vault = self.vaults.load(vault_address)
        if vault is None:
            logger.warning("Deposit to unknown vault %s, tx %s", vault_address, tx.hash)
            return None

        if self.context.deposits.exists(tx.id):
            logger.warning("Deposit %s already recorded", tx.id)
            return self.context.deposits.load(tx.id)

        deposit = Deposit(
            id=tx.id,
            vault=vault.id,
            account=depositor.lower(),
            token_amount=amount,
            shares_minted=shares,
            timestamp=timestamp,
            block_number=tx.block_number,
            transaction=tx.id,
        )
        self.context.deposits.save(deposit)

        position = self._get_or_create_position(deposit.account, vault.id)
        position.balance_shares += shares
        position.tokens_deposited += amount
        position.shares_minted += shares
        self.positions.save(position)

        vault.balance_tokens += amount
        vault.shares_supply += shares
        self._update_vault(vault, tx, tokens_deposited=amount, shares_minted=shares)
        return deposit

    def handle_withdraw(self, event: WithdrawEvent, tx: Transaction) -> Withdrawal | None:
        """Process a normalised ``withdraw`` call.

        Skipped when a vault calls another vault, see :py:meth:`record_withdraw` for the rest.
        """
        if self.is_minimal_proxy_call(event.withdrawer, event.vault):
            logger.warning("Withdraw tx %s: call from %s to %s are vaults (minimal proxy), not processing", tx.hash, event.withdrawer, event.vault)
            return None
        return self.record_withdraw(event, tx)

    def record_withdraw(self, event: WithdrawEvent, tx: Transaction) -> Withdrawal | None:
        """Debit a normalised ``withdraw`` call without the minimal proxy check.

        For the zero-argument ``withdraw()`` only the withdrawn assets are known and the
        burnt shares are computed from the live share price. A vault holding no assets
        makes the shares equal to the amount.
        """
        shares = event.shares
        if shares is None:
            total_assets, total_supply = self._read_totals(event.vault, tx)
            shares = convert_assets_to_shares(event.amount, total_assets, total_supply)
            logger.info("Withdraw of %d: total assets %d, total supply %d, shares %d", event.amount, total_assets, total_supply, shares)

        return self.withdraw(event.vault, event.withdrawer, event.amount, shares, tx, event.timestamp)

    def withdraw(self, vault_address: str, withdrawer: str, amount: int, shares: int, tx: Transaction, timestamp: int) -> Withdrawal | None:
        """Debit a withdrawal from the withdrawer's position."""
        vault = self.vaults.load(vault_address)
        if vault is None:
            logger.warning("Withdraw from unknown vault %s, tx %s", vault_address, tx.hash)
            return None

        if self.context.withdrawals.exists(tx.id):
            logger.warning("Withdrawal %s already recorded", tx.id)
            return self.context.withdrawals.load(tx.id)

        withdrawal = Withdrawal(
            id=tx.id,
            vault=vault.id,
            account=withdrawer.lower(),
            token_amount=amount,
            shares_burnt=shares,
            timestamp=timestamp,
            block_number=tx.block_number,
            transaction=tx.id,
        )
        self.context.withdrawals.save(withdrawal)

        position = self._get_or_create_position(withdrawal.account, vault.id)
        position.balance_shares -= shares
        position.tokens_withdrawn += amount
        position.shares_burnt += shares
        self.positions.save(position)

        vault.balance_tokens -= amount
        vault.shares_supply -= shares
        self._update_vault(vault, tx, tokens_withdrawn=amount, shares_burnt=shares)
        return withdrawal

    def transfer(self, vault_address: str, sender: str, receiver: str, share_delta: int, tx: Transaction) -> Transfer | None:
        """Move shares between two accounts.

        Mint and burn transfers, from or to the zero address, are skipped.
        """
        sender = sender.lower()
        receiver = receiver.lower()
        if sender == ZERO_ADDRESS or receiver == ZERO_ADDRESS:
            logger.info("Not processing transfer from %s to %s, tx %s", sender, receiver, tx.hash)
            return None

        vault = self.vaults.load(vault_address)
        if vault is None:
            logger.warning("Transfer in unknown vault %s, tx %s", vault_address, tx.hash)
            return None

        if self.context.transfers.exists(tx.id):
            logger.warning("Transfer %s already recorded", tx.id)
            return self.context.transfers.load(tx.id)

        reader = self._reader(vault.id, tx)
        total_assets, total_supply = self._read_totals(vault.id, tx, reader)
        amount = convert_shares_to_assets(share_delta, total_assets, total_supply)
        logger.info("Transfer of %d shares (%d assets) from %s to %s, tx %s", share_delta, amount, sender, receiver, tx.hash)

        transfer = Transfer(
            id=tx.id,
            vault=vault.id,
            sender=sender,
            receiver=receiver,
            token_amount=amount,
            share_amount=share_delta,
            token=read_or_log(reader.try_token(), vault.token, "token", vault.id),
            timestamp=tx.timestamp,
            block_number=tx.block_number,
            transaction=tx.id,
        )
        self.context.transfers.save(transfer)

        sender_position = self._get_or_create_position(sender, vault.id)
        sender_position.balance_shares -= share_delta
        sender_position.shares_sent += share_delta
        sender_position.tokens_sent += amount
        self.positions.save(sender_position)

        receiver_position = self._get_or_create_position(receiver, vault.id)
        receiver_position.balance_shares += share_delta
        receiver_position.shares_received += share_delta
        receiver_position.tokens_received += amount
        self.positions.save(receiver_position)
        return transfer

    def strategy_reported(self, vault_address: str, tx: Transaction) -> VaultUpdate | None:
        """Snapshot the share price after a strategy report moved it."""
        vault = self.vaults.load(vault_address)
        if vault is None:
            logger.warning("Strategy reported in unknown vault %s, tx %s", vault_address, tx.hash)
            return None
        return self._update_vault(vault, tx)

    def performance_fee_updated(self, vault_address: str, performance_fee: int, tx: Transaction) -> Vault | None:
        return self._set_vault_field(vault_address, "performance_fee_bps", performance_fee, tx)

    def management_fee_updated(self, vault_address: str, management_fee: int, tx: Transaction) -> Vault | None:
        return self._set_vault_field(vault_address, "management_fee_bps", management_fee, tx)

    def rewards_updated(self, vault_address: str, rewards: str, tx: Transaction) -> Vault | None:
        return self._set_vault_field(vault_address, "rewards", rewards.lower(), tx)

    def _set_vault_field(self, vault_address: str, name: str, value, tx: Transaction) -> Vault | None:
        vault = self.vaults.load(vault_address)
        if vault is None:
            logger.warning("Cannot set %s on unknown vault %s, tx %s", name, vault_address, tx.hash)
            return None
        logger.info("Vault %s %s set to %s, tx %s", vault.id, name, value, tx.hash)
        setattr(vault, name, value)
        self.vaults.save(vault)
        return vault

    def _reader(self, vault_address: str, tx: Transaction) -> VaultReader:
        return self.context.readers.vault(vault_address, block_identifier=tx.block_number)

    def _read_totals(self, vault_address: str, tx: Transaction, reader: VaultReader | None = None) -> tuple[int, int]:
        """Live ``totalAssets()`` and ``totalSupply()``, zero if the read reverts."""
        reader = reader or self._reader(vault_address, tx)
        total_assets = read_or_log(reader.try_total_assets(), 0, "totalAssets", vault_address)
        total_supply = read_or_log(reader.try_total_supply(), 0, "totalSupply", vault_address)
        return total_assets, total_supply

    def _get_or_create_position(self, account: str, vault_id: str) -> AccountVaultPosition:
        position_id = self.positions.build_id(account, vault_id)
        position, _ = self.positions.get_or_create(
            position_id,
            lambda: AccountVaultPosition(id=position_id, account=account, vault=vault_id),
        )
        return position

    def _update_vault(
        self,
        vault: Vault,
        tx: Transaction,
        tokens_deposited: int = 0,
        tokens_withdrawn: int = 0,
        shares_minted: int = 0,
        shares_burnt: int = 0,
    ) -> VaultUpdate:
        reader = self._reader(vault.id, tx)
        update = VaultUpdate(
            id=tx.id,
            vault=vault.id,
            timestamp=tx.timestamp_ms,
            block_number=tx.block_number,
            transaction=tx.id,
            tokens_deposited=tokens_deposited,
            tokens_withdrawn=tokens_withdrawn,
            shares_minted=shares_minted,
            shares_burnt=shares_burnt,
            price_per_share=read_or_log(reader.try_price_per_share(), None, "pricePerShare", vault.id),
            balance_tokens=vault.balance_tokens,
            shares_supply=vault.shares_supply,
        )
        self.context.vault_updates.save(update)
        vault.latest_update = update.id
        self.vaults.save(vault)
        return update
