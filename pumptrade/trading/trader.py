# pumptrade/trading/trader.py

from typing import List, Optional, Sequence

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from pumptrade.config import TraderSettings
from pumptrade.core.account_cache import AccountStateCache
from pumptrade.core.client import SolanaClient
from pumptrade.core.constants import DEFAULT_JITO_TIP_LAMPORTS, DEFAULT_SLIPPAGE_BPS
from pumptrade.core.curve import (
    BondingCurveState,
    GlobalAccountState,
    decode_bonding_curve_account,
    decode_global_account,
)
from pumptrade.core.exceptions import InsufficientBalanceError, InvalidInputError, MissingRelayClientError
from pumptrade.core.wallet import Wallet
from pumptrade.jito.client import JitoClient
from pumptrade.trading.assembler import TransactionAssembler
from pumptrade.trading.base import PriorityFee, TokenMetadata
from pumptrade.utils.logger import get_logger

logger = get_logger(__name__)


class PumpTrader:
    """
    Entry point for trading: owns the RPC client, the optional Jito client and
    the account caches, and routes assembled transactions to the right sink.

    Direct paths return a transaction signature, Jito paths a bundle id. Neither
    waits for the bundle to land.
    """

    def __init__(
            self,
            client: SolanaClient,
            wallet: Wallet,
            jito_client: Optional[JitoClient] = None,
            slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
            priority_fee: Optional[PriorityFee] = None,
            tip_lamports: int = DEFAULT_JITO_TIP_LAMPORTS,
    ):
        self.client = client
        self.wallet = wallet
        self.jito_client = jito_client
        self.slippage_bps = slippage_bps
        self.priority_fee = priority_fee or PriorityFee()
        self.tip_lamports = tip_lamports

        # Owned by this instance only; a clone starts cold
        self.global_cache: AccountStateCache[GlobalAccountState] = AccountStateCache(
            client.get_account_data, decode_global_account, name="global")
        self.curve_cache: AccountStateCache[BondingCurveState] = AccountStateCache(
            client.get_account_data, decode_bonding_curve_account, name="bonding_curve")

        self.assembler = TransactionAssembler(
            client=self.client,
            global_cache=self.global_cache,
            curve_cache=self.curve_cache,
            jito_client=self.jito_client,
            default_slippage_bps=self.slippage_bps,
            default_priority_fee=self.priority_fee,
            default_tip_lamports=self.tip_lamports,
        )
        logger.info(f"Initializing PumpTrader for wallet {self.wallet.pubkey} "
                    f"(jito={'on' if self.jito_client else 'off'})")

    @classmethod
    def from_settings(cls, settings: TraderSettings, wallet: Optional[Wallet] = None) -> "PumpTrader":
        if wallet is None:
            if not settings.private_key:
                raise ValueError("Missing required config var: SOLANA_PRIVATE_KEY")
            wallet = Wallet(settings.private_key)

        client = SolanaClient(settings.rpc_endpoint, commitment=settings.commitment)
        jito_client = None
        if settings.jito_url:
            jito_client = JitoClient(
                settings.jito_url, auth_token=settings.jito_auth_token, timeout=settings.relay_timeout_seconds)

        return cls(
            client=client,
            wallet=wallet,
            jito_client=jito_client,
            slippage_bps=settings.slippage_bps,
            priority_fee=PriorityFee(limit=settings.compute_unit_limit, price=settings.compute_unit_price),
            tip_lamports=settings.jito_tip_lamports,
        )

    def clone(self) -> "PumpTrader":
        """Same wallet and settings on fresh connections, with empty caches and tip set."""
        return PumpTrader(
            client=self.client.clone(),
            wallet=self.wallet,
            jito_client=self.jito_client.clone() if self.jito_client else None,
            slippage_bps=self.slippage_bps,
            priority_fee=self.priority_fee,
            tip_lamports=self.tip_lamports,
        )

    def __copy__(self) -> "PumpTrader":
        return self.clone()

    async def close(self) -> None:
        await self.client.close()
        if self.jito_client:
            await self.jito_client.close()

    async def __aenter__(self) -> "PumpTrader":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _require_relay(self) -> JitoClient:
        if self.jito_client is None:
            raise MissingRelayClientError("Jito client not configured; set JITO_BLOCK_ENGINE_URL")
        return self.jito_client

    @property
    def payer(self) -> Keypair:
        return self.wallet.keypair

    # --- direct RPC ---

    async def create(self, mint_keypair: Keypair, metadata: TokenMetadata,
                     priority_fee: Optional[PriorityFee] = None) -> str:
        tx = await self.assembler.build_create_transaction(self.payer, mint_keypair, metadata, priority_fee)
        return await self.client.send_and_confirm_transaction(tx)

    async def create_and_buy(self, mint_keypair: Keypair, metadata: TokenMetadata, amount_sol: int,
                             slippage_bps: Optional[int] = None,
                             priority_fee: Optional[PriorityFee] = None) -> str:
        tx = await self.assembler.build_create_and_buy_transaction(
            self.payer, mint_keypair, metadata, amount_sol, slippage_bps, priority_fee)
        return await self.client.send_and_confirm_transaction(tx)

    async def buy(self, mint: Pubkey, amount_sol: int, slippage_bps: Optional[int] = None,
                  priority_fee: Optional[PriorityFee] = None) -> str:
        tx = await self.assembler.build_buy_transaction(self.payer, mint, amount_sol, slippage_bps, priority_fee)
        return await self.client.send_transaction(tx)

    async def sell(self, mint: Pubkey, token_amount: Optional[int] = None, slippage_bps: Optional[int] = None,
                   priority_fee: Optional[PriorityFee] = None) -> str:
        tx = await self.assembler.build_sell_transaction(self.payer, mint, token_amount, slippage_bps, priority_fee)
        return await self.client.send_transaction(tx)

    async def sell_by_percent(self, mint: Pubkey, percent: int, slippage_bps: Optional[int] = None,
                              priority_fee: Optional[PriorityFee] = None) -> str:
        tx = await self.assembler.build_sell_by_percent_transaction(
            self.payer, mint, percent, slippage_bps, priority_fee)
        return await self.client.send_transaction(tx)

    # --- Jito bundles ---

    async def buy_with_jito(self, mint: Pubkey, amount_sol: int, slippage_bps: Optional[int] = None,
                            priority_fee: Optional[PriorityFee] = None,
                            tip_lamports: Optional[int] = None) -> str:
        jito = self._require_relay()
        tx = await self.assembler.build_buy_transaction(
            self.payer, mint, amount_sol, slippage_bps, priority_fee, relay=True, tip_lamports=tip_lamports)
        return await jito.send_transaction(tx)

    async def sell_with_jito(self, mint: Pubkey, token_amount: Optional[int] = None,
                             slippage_bps: Optional[int] = None, priority_fee: Optional[PriorityFee] = None,
                             tip_lamports: Optional[int] = None) -> str:
        jito = self._require_relay()
        tx = await self.assembler.build_sell_transaction(
            self.payer, mint, token_amount, slippage_bps, priority_fee, relay=True, tip_lamports=tip_lamports)
        return await jito.send_transaction(tx)

    async def sell_by_percent_with_jito(self, mint: Pubkey, percent: int, slippage_bps: Optional[int] = None,
                                        priority_fee: Optional[PriorityFee] = None,
                                        tip_lamports: Optional[int] = None) -> str:
        jito = self._require_relay()
        tx = await self.assembler.build_sell_by_percent_transaction(
            self.payer, mint, percent, slippage_bps, priority_fee, relay=True, tip_lamports=tip_lamports)
        return await jito.send_transaction(tx)

    async def create_and_buy_with_jito(self, mint_keypair: Keypair, metadata: TokenMetadata,
                                       amounts: Sequence[int], payers: Optional[Sequence[Keypair]] = None,
                                       slippage_bps: Optional[int] = None,
                                       priority_fee: Optional[PriorityFee] = None,
                                       tip_lamports: Optional[int] = None) -> str:
        """
        Creates the token and buys from one or more wallets in a single bundle.
        `payers` defaults to this trader's wallet alone; payers[0] pays for the create.
        """
        jito = self._require_relay()
        signers: List[Keypair] = list(payers) if payers else [self.payer]
        transactions = await self.assembler.build_atomic_create_and_buy(
            signers, mint_keypair, metadata, amounts, slippage_bps, priority_fee, tip_lamports)
        return await jito.send_bundle(transactions)

    # --- wallet ---

    async def get_sol_balance(self, owner: Optional[Pubkey] = None) -> int:
        return await self.client.get_balance(owner or self.wallet.pubkey)

    async def get_token_balance(self, mint: Pubkey, owner: Optional[Pubkey] = None) -> int:
        return await self.assembler.get_token_balance(owner or self.wallet.pubkey, mint)

    async def transfer_sol(self, receiver: Pubkey, lamports: int) -> str:
        if isinstance(lamports, bool) or not isinstance(lamports, int) or lamports <= 0:
            raise InvalidInputError(f"Transfer amount must be a positive integer, got {lamports!r}")
        balance = await self.get_sol_balance()
        if balance < lamports:
            raise InsufficientBalanceError(lamports, balance)
        tx = await self.assembler.build_transfer_transaction(self.payer, receiver, lamports)
        signature = await self.client.send_and_confirm_transaction(tx)
        logger.info(f"Transferred {lamports} lamports to {receiver}: {signature}")
        return signature
