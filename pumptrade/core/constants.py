# pumptrade/core/constants.py

# Solana-wide units
LAMPORTS_PER_SOL = 1_000_000_000
SOL_DECIMALS = 9

# pump.fun mints are created with 6 decimals
DEFAULT_TOKEN_DECIMALS = 6

# --- Trade defaults ---
DEFAULT_SLIPPAGE_BPS = 1000  # 10%
DEFAULT_COMPUTE_UNIT_LIMIT = 68_000
DEFAULT_COMPUTE_UNIT_PRICE = 400_000  # Microlamports per CU

# --- Jito ---
DEFAULT_JITO_TIP_LAMPORTS = 100_000  # 0.0001 SOL
JITO_BUNDLES_PATH = "/api/v1/bundles"
MAX_BUNDLE_TRANSACTIONS = 5

BPS_DENOMINATOR = 10_000
