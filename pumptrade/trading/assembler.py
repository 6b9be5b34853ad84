# pumptrade/trading/assembler.py
"""
Builds signed pump.fun transactions.

Every public builder validates its arguments before the first await, so bad
input never costs a network round trip. Instruction order inside a transaction
is always: compute budget, create, ATA creation, trade, close, tip.
"""

from typing import List, Optional, Sequence, Tuple, Union

from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from pumptrade.core.account_cache import AccountStateCache
from pumptrade.core.client import SolanaClient
from pumptrade.core.constants import (
    DEFAULT_JITO_TIP_LAMPORTS,
    DEFAULT_SLIPPAGE_BPS,
    MAX_BUNDLE_TRANSACTIONS,
)
from pumptrade.core.curve import BondingCurveState, GlobalAccountState
from pumptrade.core.exceptions import (
    CurveCompleteError,
    InsufficientBalanceError,
    InvalidInputError,
    MissingRelayClientError,
)
from pumptrade.core.instruction_builder import InstructionBuilder
from pumptrade.core.pricing import (
    calculate_with_slippage_buy,
    calculate_with_slippage_sell,
    get_buy_price,
    get_sell_price,
    project_after_buy,
)
from pumptrade.core.pubkeys import PumpAddresses, find_bonding_curve_pda, find_user_ata
from pumptrade.jito.client import JitoClient
from pumptrade.trading.base import PriorityFee, TokenMetadata, TradeKind
from pumptrade.utils.logger import get_logger

logger = get_logger(__name__)


def _require_positive(value, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInputError(f"{label} must be a positive integer, got {value!r}")


def _require_bps(value: Optional[int]) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidInputError(f"Slippage basis points must be a non-negative integer, got {value!r}")


def _require_metadata(metadata: TokenMetadata) -> None:
    if metadata is None or not metadata.name or not metadata.symbol or not metadata.uri:
        raise InvalidInputError("Token metadata needs a name, a symbol and an uploaded metadata URI")


def sign_transaction(payer: Keypair, instructions: List[Instruction],
                     blockhash: Hash, extra_signers: Sequence[Keypair] = ()) -> VersionedTransaction:
    """Compiles a v0 message paid by `payer` and signs it with every required keypair."""
    message = MessageV0.try_compile(payer.pubkey(), instructions, [], blockhash)
    return VersionedTransaction(message, [payer, *extra_signers])


class TransactionAssembler:
    def __init__(
            self,
            client: SolanaClient,
            global_cache: AccountStateCache[GlobalAccountState],
            curve_cache: AccountStateCache[BondingCurveState],
            jito_client: Optional[JitoClient] = None,
            default_slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
            default_priority_fee: Optional[PriorityFee] = None,
            default_tip_lamports: int = DEFAULT_JITO_TIP_LAMPORTS,
    ):
        self.client = client
        self.global_cache = global_cache
        self.curve_cache = curve_cache
        self.jito_client = jito_client
        self.default_slippage_bps = default_slippage_bps
        self.default_priority_fee = default_priority_fee or PriorityFee()
        self.default_tip_lamports = default_tip_lamports

    # --- state lookups ---

    async def get_global_account(self) -> GlobalAccountState:
        return await self.global_cache.get(PumpAddresses.GLOBAL_STATE)

    async def get_bonding_curve(self, mint: Pubkey) -> BondingCurveState:
        return await self.curve_cache.get(find_bonding_curve_pda(mint))

    async def get_token_balance(self, owner: Pubkey, mint: Pubkey) -> int:
        """Raw token balance of the owner's ATA; 0 when the ATA does not exist."""
        ata = find_user_ata(owner, mint)
        if not await self.client.account_exists(ata):
            return 0
        return await self.client.get_token_account_balance(ata)

    # --- helpers ---

    def _slippage(self, slippage_bps: Optional[int]) -> int:
        return self.default_slippage_bps if slippage_bps is None else slippage_bps

    def _resolve_tip(self, relay: bool, tip_lamports: Optional[int]) -> Optional[int]:
        if not relay:
            return None
        if self.jito_client is None:
            raise MissingRelayClientError("Relay-routed trade requested but no Jito client is configured")
        lamports = self.default_tip_lamports if tip_lamports is None else tip_lamports
        _require_positive(lamports, "Tip amount")
        return lamports

    async def _tip_instruction(self, payer: Pubkey, lamports: int) -> Instruction:
        tip_account = await self.jito_client.get_tip_account()
        logger.debug(f"Tipping {lamports} lamports to {tip_account}")
        return InstructionBuilder.transfer_sol(payer, tip_account, lamports)

    async def _sign_with_fresh_blockhash(self, payer: Keypair, instructions: List[Instruction],
                                         extra_signers: Sequence[Keypair] = ()) -> VersionedTransaction:
        blockhash = await self.client.get_latest_blockhash()
        return sign_transaction(payer, instructions, blockhash, extra_signers)

    @staticmethod
    def _check_tradeable(curve: BondingCurveState, mint: Pubkey) -> None:
        if curve.complete:
            raise CurveCompleteError(f"Bonding curve for {mint} is complete; trade it on the AMM instead")

    def _buy_instructions(self, payer: Pubkey, mint: Pubkey, fee_recipient: Pubkey,
                          curve: BondingCurveState, amount_sol: int, slippage_bps: int,
                          create_ata: bool) -> Tuple[List[Instruction], int]:
        token_amount = get_buy_price(amount_sol, curve)
        if token_amount <= 0:
            raise InvalidInputError(f"Buying with {amount_sol} lamports yields no tokens for {mint}")
        max_sol_cost = calculate_with_slippage_buy(amount_sol, slippage_bps)
        logger.debug(f"Buy {mint}: {amount_sol} lamports -> {token_amount} tokens, max cost {max_sol_cost}")

        instructions: List[Instruction] = []
        if create_ata:
            instructions.append(InstructionBuilder.get_create_ata_instruction(payer, payer, mint))
        instructions.append(InstructionBuilder.build_buy_instruction(
            user_wallet_pubkey=payer,
            mint_pubkey=mint,
            fee_recipient=fee_recipient,
            token_amount=token_amount,
            max_sol_cost=max_sol_cost,
        ))
        return instructions, token_amount

    # --- builders ---

    async def build_trade(
            self,
            kind: TradeKind,
            payer: Keypair,
            asset: Union[Pubkey, Keypair],
            amount: Optional[int] = None,
            metadata: Optional[TokenMetadata] = None,
            slippage_bps: Optional[int] = None,
            priority_fee: Optional[PriorityFee] = None,
            relay: bool = False,
            tip_lamports: Optional[int] = None,
    ) -> VersionedTransaction:
        """Single entry point for create, buy and sell. `asset` is the mint keypair for CREATE."""
        if kind is TradeKind.CREATE:
            if not isinstance(asset, Keypair):
                raise InvalidInputError("Creating a token requires the mint keypair")
            return await self.build_create_transaction(
                payer, asset, metadata, priority_fee, relay=relay, tip_lamports=tip_lamports)

        mint = asset.pubkey() if isinstance(asset, Keypair) else asset
        if kind is TradeKind.BUY:
            return await self.build_buy_transaction(
                payer, mint, amount, slippage_bps, priority_fee, relay=relay, tip_lamports=tip_lamports)
        if kind is TradeKind.SELL:
            return await self.build_sell_transaction(
                payer, mint, amount, slippage_bps, priority_fee, relay=relay, tip_lamports=tip_lamports)
        raise InvalidInputError(f"Unsupported trade kind: {kind!r}")

    async def build_create_transaction(
            self,
            payer: Keypair,
            mint_keypair: Keypair,
            metadata: TokenMetadata,
            priority_fee: Optional[PriorityFee] = None,
            relay: bool = False,
            tip_lamports: Optional[int] = None,
    ) -> VersionedTransaction:
        _require_metadata(metadata)
        tip = self._resolve_tip(relay, tip_lamports)
        fee = priority_fee or self.default_priority_fee
        instructions = fee.instructions()
        instructions.append(InstructionBuilder.build_create_instruction(
            payer.pubkey(), mint_keypair.pubkey(), metadata.name, metadata.symbol, metadata.uri))
        if tip is not None:
            instructions.append(await self._tip_instruction(payer.pubkey(), tip))
        logger.info(f"Assembled create for {metadata.symbol} ({mint_keypair.pubkey()})")
        return await self._sign_with_fresh_blockhash(payer, instructions, [mint_keypair])

    async def build_buy_transaction(
            self,
            payer: Keypair,
            mint: Pubkey,
            amount_sol: int,
            slippage_bps: Optional[int] = None,
            priority_fee: Optional[PriorityFee] = None,
            relay: bool = False,
            tip_lamports: Optional[int] = None,
    ) -> VersionedTransaction:
        _require_positive(amount_sol, "Buy amount")
        _require_bps(slippage_bps)
        tip = self._resolve_tip(relay, tip_lamports)

        global_state = await self.get_global_account()
        curve = await self.get_bonding_curve(mint)
        self._check_tradeable(curve, mint)

        owner = payer.pubkey()
        ata_missing = not await self.client.account_exists(find_user_ata(owner, mint))

        instructions = priority_fee.instructions() if priority_fee else []
        buy_ixs, _ = self._buy_instructions(
            owner, mint, global_state.fee_recipient, curve, amount_sol,
            self._slippage(slippage_bps), create_ata=ata_missing)
        instructions.extend(buy_ixs)
        if tip is not None:
            instructions.append(await self._tip_instruction(owner, tip))
        return await self._sign_with_fresh_blockhash(payer, instructions)

    async def build_sell_transaction(
            self,
            payer: Keypair,
            mint: Pubkey,
            token_amount: Optional[int] = None,
            slippage_bps: Optional[int] = None,
            priority_fee: Optional[PriorityFee] = None,
            relay: bool = False,
            tip_lamports: Optional[int] = None,
            close_account: Optional[bool] = None,
    ) -> VersionedTransaction:
        """
        Sells `token_amount` raw tokens, or the whole balance when it is None.

        The ATA is closed (rent back to the payer) when the whole balance is sold,
        unless `close_account` says otherwise.
        """
        if token_amount is not None:
            _require_positive(token_amount, "Sell amount")
        _require_bps(slippage_bps)
        tip = self._resolve_tip(relay, tip_lamports)

        balance = await self.get_token_balance(payer.pubkey(), mint)
        return await self._assemble_sell(
            payer, mint, token_amount, balance, slippage_bps, priority_fee, tip, close_account)

    async def build_sell_by_percent_transaction(
            self,
            payer: Keypair,
            mint: Pubkey,
            percent: int,
            slippage_bps: Optional[int] = None,
            priority_fee: Optional[PriorityFee] = None,
            relay: bool = False,
            tip_lamports: Optional[int] = None,
    ) -> VersionedTransaction:
        if isinstance(percent, bool) or not isinstance(percent, int) or not 0 < percent <= 100:
            raise InvalidInputError(f"Percent must be an integer in 1..100, got {percent!r}")
        _require_bps(slippage_bps)
        tip = self._resolve_tip(relay, tip_lamports)

        balance = await self.get_token_balance(payer.pubkey(), mint)
        amount = balance * percent // 100
        if amount <= 0:
            raise InvalidInputError(f"{percent}% of balance {balance} is nothing to sell")
        return await self._assemble_sell(payer, mint, amount, balance, slippage_bps, priority_fee, tip, None)

    async def _assemble_sell(self, payer: Keypair, mint: Pubkey, token_amount: Optional[int], balance: int,
                             slippage_bps: Optional[int], priority_fee: Optional[PriorityFee],
                             tip: Optional[int], close_account: Optional[bool]) -> VersionedTransaction:
        if balance <= 0:
            raise InvalidInputError(f"No {mint} tokens to sell")
        amount = balance if token_amount is None else token_amount
        if amount > balance:
            raise InsufficientBalanceError(amount, balance)

        global_state = await self.get_global_account()
        curve = await self.get_bonding_curve(mint)
        self._check_tradeable(curve, mint)

        sol_out = get_sell_price(amount, curve, global_state.fee_basis_points)
        min_sol_output = calculate_with_slippage_sell(sol_out, self._slippage(slippage_bps))
        logger.debug(f"Sell {mint}: {amount} tokens -> ~{sol_out} lamports, min {min_sol_output}")

        owner = payer.pubkey()
        instructions = priority_fee.instructions() if priority_fee else []
        instructions.append(InstructionBuilder.build_sell_instruction(
            user_wallet_pubkey=owner,
            mint_pubkey=mint,
            fee_recipient=global_state.fee_recipient,
            token_amount=amount,
            min_sol_output=min_sol_output,
        ))
        close = (amount == balance) if close_account is None else close_account
        if close:
            instructions.append(InstructionBuilder.close_account_instruction(
                find_user_ata(owner, mint), owner, owner))
        if tip is not None:
            instructions.append(await self._tip_instruction(owner, tip))
        return await self._sign_with_fresh_blockhash(payer, instructions)

    def _create_and_buy_instructions(self, payer: Pubkey, mint: Pubkey, metadata: TokenMetadata,
                                     global_state: GlobalAccountState, curve: BondingCurveState,
                                     amount_sol: int, slippage_bps: int,
                                     priority_fee: PriorityFee) -> Tuple[List[Instruction], int]:
        instructions = priority_fee.instructions()
        instructions.append(InstructionBuilder.build_create_instruction(
            payer, mint, metadata.name, metadata.symbol, metadata.uri))
        # The mint is born in this transaction, so the payer's ATA cannot exist yet
        buy_ixs, tokens = self._buy_instructions(
            payer, mint, global_state.fee_recipient, curve, amount_sol, slippage_bps, create_ata=True)
        instructions.extend(buy_ixs)
        return instructions, tokens

    async def build_create_and_buy_transaction(
            self,
            payer: Keypair,
            mint_keypair: Keypair,
            metadata: TokenMetadata,
            amount_sol: int,
            slippage_bps: Optional[int] = None,
            priority_fee: Optional[PriorityFee] = None,
            relay: bool = False,
            tip_lamports: Optional[int] = None,
    ) -> VersionedTransaction:
        """Create + first buy in one transaction, priced from the protocol's initial reserves."""
        _require_metadata(metadata)
        _require_positive(amount_sol, "Buy amount")
        _require_bps(slippage_bps)
        tip = self._resolve_tip(relay, tip_lamports)

        global_state = await self.get_global_account()
        owner = payer.pubkey()
        instructions, _ = self._create_and_buy_instructions(
            owner, mint_keypair.pubkey(), metadata, global_state, global_state.initial_curve(),
            amount_sol, self._slippage(slippage_bps), priority_fee or self.default_priority_fee)
        if tip is not None:
            instructions.append(await self._tip_instruction(owner, tip))
        return await self._sign_with_fresh_blockhash(payer, instructions, [mint_keypair])

    async def build_atomic_create_and_buy(
            self,
            payers: Sequence[Keypair],
            mint_keypair: Keypair,
            metadata: TokenMetadata,
            amounts: Sequence[int],
            slippage_bps: Optional[int] = None,
            priority_fee: Optional[PriorityFee] = None,
            tip_lamports: Optional[int] = None,
    ) -> List[VersionedTransaction]:
        """
        One bundle: payers[0] creates the mint and buys, every other payer buys.

        Transaction 0 carries the create, the first buy and the relay tip. Each
        later buy is priced against the curve as the earlier buys leave it. All
        transactions share one blockhash and are returned in bundle order.
        """
        if not payers:
            raise InvalidInputError("At least one payer is required")
        if len(payers) != len(amounts):
            raise InvalidInputError(f"Got {len(payers)} payers but {len(amounts)} amounts")
        if len(payers) > MAX_BUNDLE_TRANSACTIONS:
            raise InvalidInputError(
                f"{len(payers)} payers exceed the bundle limit of {MAX_BUNDLE_TRANSACTIONS} transactions")
        for amount in amounts:
            _require_positive(amount, "Buy amount")
        _require_metadata(metadata)
        _require_bps(slippage_bps)
        tip = self._resolve_tip(True, tip_lamports)

        global_state = await self.get_global_account()
        creator = payers[0].pubkey()
        tip_ix = await self._tip_instruction(creator, tip)
        blockhash = await self.client.get_latest_blockhash()

        mint = mint_keypair.pubkey()
        slippage = self._slippage(slippage_bps)
        curve = global_state.initial_curve()

        instructions, tokens = self._create_and_buy_instructions(
            creator, mint, metadata, global_state, curve, amounts[0], slippage,
            priority_fee or self.default_priority_fee)
        instructions.append(tip_ix)
        transactions = [sign_transaction(payers[0], instructions, blockhash, [mint_keypair])]
        curve = project_after_buy(curve, amounts[0], tokens)

        for payer, amount in zip(payers[1:], amounts[1:]):
            instructions = priority_fee.instructions() if priority_fee else []
            buy_ixs, tokens = self._buy_instructions(
                payer.pubkey(), mint, global_state.fee_recipient, curve, amount, slippage, create_ata=True)
            instructions.extend(buy_ixs)
            transactions.append(sign_transaction(payer, instructions, blockhash))
            curve = project_after_buy(curve, amount, tokens)

        logger.info(f"Assembled atomic create-and-buy bundle for {mint}: {len(transactions)} txs")
        return transactions

    async def build_transfer_transaction(self, payer: Keypair, receiver: Pubkey, lamports: int) -> VersionedTransaction:
        _require_positive(lamports, "Transfer amount")
        return await self._sign_with_fresh_blockhash(
            payer, [InstructionBuilder.transfer_sol(payer.pubkey(), receiver, lamports)])
