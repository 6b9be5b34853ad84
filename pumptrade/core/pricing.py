# pumptrade/core/pricing.py
"""
Bonding curve pricing.

Pure integer math mirroring the on-chain program. Python ints do not overflow,
so the u128 intermediate products of the program need no special handling.
Nothing here performs I/O or logging.
"""

from typing import Optional

from .constants import (
    BPS_DENOMINATOR,
    DEFAULT_SLIPPAGE_BPS,
    DEFAULT_TOKEN_DECIMALS,
    SOL_DECIMALS,
)
from .curve import BondingCurveState, GlobalAccountState


def _constant_product_out(amount_in: int, virtual_sol: int, virtual_token: int, real_token: int) -> int:
    if amount_in <= 0:
        return 0
    product = virtual_sol * virtual_token
    new_sol = virtual_sol + amount_in
    tokens_out = virtual_token - (product // new_sol + 1)
    return max(0, min(tokens_out, real_token))


def get_buy_price(amount_in: int, curve: BondingCurveState) -> int:
    """Tokens received for `amount_in` lamports, capped at the real token reserves."""
    return _constant_product_out(
        amount_in,
        curve.virtual_sol_reserves,
        curve.virtual_token_reserves,
        curve.real_token_reserves,
    )


def get_initial_buy_price(amount_in: int, global_state: GlobalAccountState) -> int:
    """Buy price against a brand-new curve (the protocol's initial reserves)."""
    return _constant_product_out(
        amount_in,
        global_state.initial_virtual_sol_reserves,
        global_state.initial_virtual_token_reserves,
        global_state.initial_real_token_reserves,
    )


def get_sell_price(amount_tokens: int, curve: BondingCurveState, fee_basis_points: int = 0) -> int:
    """Lamports received for selling `amount_tokens`, net of the protocol fee."""
    if amount_tokens <= 0:
        return 0
    denominator = curve.virtual_token_reserves + amount_tokens
    sol_out = (amount_tokens * curve.virtual_sol_reserves) // denominator
    fee = (sol_out * fee_basis_points) // BPS_DENOMINATOR
    return sol_out - fee


def calculate_with_slippage_buy(amount: int, basis_points: int) -> int:
    """Upper bound on cost: amount + amount * bps / 10000."""
    return amount + (amount * basis_points) // BPS_DENOMINATOR


def calculate_with_slippage_sell(amount: int, basis_points: int) -> int:
    """Lower bound on proceeds: amount - amount * bps / 10000, never below zero."""
    return max(0, amount - (amount * basis_points) // BPS_DENOMINATOR)


def get_buy_amount_with_slippage(amount_sol: int, slippage_basis_points: Optional[int] = None) -> int:
    slippage = DEFAULT_SLIPPAGE_BPS if slippage_basis_points is None else slippage_basis_points
    return calculate_with_slippage_buy(amount_sol, slippage)


def get_token_price(
        virtual_sol_reserves: int,
        virtual_token_reserves: int,
        sol_decimals: int = SOL_DECIMALS,
        token_decimals: int = DEFAULT_TOKEN_DECIMALS,
) -> float:
    """Spot price in SOL per whole token."""
    if virtual_token_reserves == 0:
        return 0.0
    v_sol = virtual_sol_reserves / (10 ** sol_decimals)
    v_tokens = virtual_token_reserves / (10 ** token_decimals)
    return v_sol / v_tokens


def project_after_buy(curve: BondingCurveState, sol_in: int, tokens_out: int) -> BondingCurveState:
    """Curve snapshot after a buy of `tokens_out` for `sol_in` lamports lands."""
    return curve.with_reserves(
        virtual_sol_reserves=curve.virtual_sol_reserves + sol_in,
        virtual_token_reserves=curve.virtual_token_reserves - tokens_out,
        real_sol_reserves=curve.real_sol_reserves + sol_in,
        real_token_reserves=curve.real_token_reserves - tokens_out,
    )
