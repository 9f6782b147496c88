"""
Project-wide immutable parameters for the raffle.

These values define the public rules of every round.
Changing them changes payouts and MUST be publicly announced.
"""

# SOL uses 9 decimals (lamports)
LAMPORT_DECIMALS = 9

# Default entry fee per slot (raw units)
DEFAULT_ENTRY_FEE = 1 * (10**LAMPORT_DECIMALS)  # 1 SOL

# Default round length in seconds
DEFAULT_ROUND_DURATION = 24 * 60 * 60

# Minimum raw slot count (refunded slots included) before a draw
MIN_SLOTS_TO_DRAW = 4

# Pot split, integer percentages; truncation remainder stays in the ledger
PRIZE_POOL_PERCENT = 80
FEE_PERCENT = 20

# Fee accumulator is an unsigned 64-bit counter
FEE_ACCUMULATOR_MAX = 2**64 - 1

# Rarity rolls are taken mod 100
RARITY_ROLL_MODULUS = 100
