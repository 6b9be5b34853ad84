# pumptrade/core/curve.py

import hashlib
from dataclasses import dataclass, replace

from borsh_construct import CStruct, U64, Bool
from construct import Bytes, ConstructError
from solders.pubkey import Pubkey

from .constants import DEFAULT_TOKEN_DECIMALS, SOL_DECIMALS
from .exceptions import DeserializationError

DISCRIMINATOR_SIZE = 8


def account_discriminator(account_name: str) -> bytes:
    """Anchor account discriminator: first 8 bytes of sha256("account:<Name>")."""
    return hashlib.sha256(f"account:{account_name}".encode()).digest()[:DISCRIMINATOR_SIZE]


BONDING_CURVE_DISCRIMINATOR = account_discriminator("BondingCurve")
GLOBAL_DISCRIMINATOR = account_discriminator("Global")

# --- Bonding Curve Layout ---
# Newer program versions append fields (e.g. creator); only this prefix is read.
BONDING_CURVE_LAYOUT = CStruct(
    "virtual_token_reserves" / U64,
    "virtual_sol_reserves" / U64,
    "real_token_reserves" / U64,
    "real_sol_reserves" / U64,
    "token_total_supply" / U64,
    "complete" / Bool,
)

# --- Global Account Layout ---
GLOBAL_LAYOUT = CStruct(
    "initialized" / Bool,
    "authority" / Bytes(32),
    "fee_recipient" / Bytes(32),
    "initial_virtual_token_reserves" / U64,
    "initial_virtual_sol_reserves" / U64,
    "initial_real_token_reserves" / U64,
    "token_total_supply" / U64,
    "fee_basis_points" / U64,
)


@dataclass(frozen=True)
class BondingCurveState:
    """Point-in-time snapshot of a bonding curve account."""
    virtual_token_reserves: int
    virtual_sol_reserves: int
    real_token_reserves: int
    real_sol_reserves: int
    token_total_supply: int
    complete: bool = False

    def __post_init__(self):
        for name in ("virtual_token_reserves", "virtual_sol_reserves",
                     "real_token_reserves", "real_sol_reserves", "token_total_supply"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    def calculate_price(self, decimals: int = DEFAULT_TOKEN_DECIMALS) -> float:
        """Current instantaneous price in SOL per UI token."""
        from .pricing import get_token_price
        return get_token_price(self.virtual_sol_reserves, self.virtual_token_reserves,
                               sol_decimals=SOL_DECIMALS, token_decimals=decimals)

    def with_reserves(self, **changes) -> "BondingCurveState":
        return replace(self, **changes)


@dataclass(frozen=True)
class GlobalAccountState:
    """Protocol-wide parameters stored in the pump.fun global account."""
    initialized: bool
    authority: Pubkey
    fee_recipient: Pubkey
    initial_virtual_token_reserves: int
    initial_virtual_sol_reserves: int
    initial_real_token_reserves: int
    token_total_supply: int
    fee_basis_points: int

    def initial_curve(self) -> BondingCurveState:
        """The curve every freshly created mint starts from."""
        return BondingCurveState(
            virtual_token_reserves=self.initial_virtual_token_reserves,
            virtual_sol_reserves=self.initial_virtual_sol_reserves,
            real_token_reserves=self.initial_real_token_reserves,
            real_sol_reserves=0,
            token_total_supply=self.token_total_supply,
            complete=False,
        )


def _strip_discriminator(raw_data: bytes, expected: bytes, label: str) -> bytes:
    if raw_data is None or len(raw_data) < DISCRIMINATOR_SIZE:
        raise DeserializationError(f"{label} account data too short: {0 if raw_data is None else len(raw_data)} bytes")
    if raw_data[:DISCRIMINATOR_SIZE] != expected:
        raise DeserializationError(
            f"{label} discriminator mismatch: got {raw_data[:DISCRIMINATOR_SIZE].hex()}, expected {expected.hex()}")
    return raw_data[DISCRIMINATOR_SIZE:]


def decode_bonding_curve_account(raw_data: bytes) -> BondingCurveState:
    """Decodes raw bonding curve account bytes (discriminator included)."""
    body = _strip_discriminator(raw_data, BONDING_CURVE_DISCRIMINATOR, "Bonding curve")
    try:
        parsed = BONDING_CURVE_LAYOUT.parse(body)
    except ConstructError as e:
        raise DeserializationError(f"Borsh error decoding bonding curve ({len(body)} bytes): {e}") from e
    return BondingCurveState(
        virtual_token_reserves=parsed.virtual_token_reserves,
        virtual_sol_reserves=parsed.virtual_sol_reserves,
        real_token_reserves=parsed.real_token_reserves,
        real_sol_reserves=parsed.real_sol_reserves,
        token_total_supply=parsed.token_total_supply,
        complete=bool(parsed.complete),
    )


def decode_global_account(raw_data: bytes) -> GlobalAccountState:
    """Decodes raw pump.fun global account bytes (discriminator included)."""
    body = _strip_discriminator(raw_data, GLOBAL_DISCRIMINATOR, "Global")
    try:
        parsed = GLOBAL_LAYOUT.parse(body)
    except ConstructError as e:
        raise DeserializationError(f"Borsh error decoding global account ({len(body)} bytes): {e}") from e
    return GlobalAccountState(
        initialized=bool(parsed.initialized),
        authority=Pubkey.from_bytes(bytes(parsed.authority)),
        fee_recipient=Pubkey.from_bytes(bytes(parsed.fee_recipient)),
        initial_virtual_token_reserves=parsed.initial_virtual_token_reserves,
        initial_virtual_sol_reserves=parsed.initial_virtual_sol_reserves,
        initial_real_token_reserves=parsed.initial_real_token_reserves,
        token_total_supply=parsed.token_total_supply,
        fee_basis_points=parsed.fee_basis_points,
    )


def encode_bonding_curve_account(state: BondingCurveState) -> bytes:
    """Inverse of decode_bonding_curve_account; used by fixtures and simulations."""
    return BONDING_CURVE_DISCRIMINATOR + BONDING_CURVE_LAYOUT.build({
        "virtual_token_reserves": state.virtual_token_reserves,
        "virtual_sol_reserves": state.virtual_sol_reserves,
        "real_token_reserves": state.real_token_reserves,
        "real_sol_reserves": state.real_sol_reserves,
        "token_total_supply": state.token_total_supply,
        "complete": state.complete,
    })


def encode_global_account(state: GlobalAccountState) -> bytes:
    return GLOBAL_DISCRIMINATOR + GLOBAL_LAYOUT.build({
        "initialized": state.initialized,
        "authority": bytes(state.authority),
        "fee_recipient": bytes(state.fee_recipient),
        "initial_virtual_token_reserves": state.initial_virtual_token_reserves,
        "initial_virtual_sol_reserves": state.initial_virtual_sol_reserves,
        "initial_real_token_reserves": state.initial_real_token_reserves,
        "token_total_supply": state.token_total_supply,
        "fee_basis_points": state.fee_basis_points,
    })
