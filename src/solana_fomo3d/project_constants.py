"""
Project-wide immutable parameters for the FoMo3D round economy.

These values define the public rules of the game.
Changing them changes payouts and MUST be publicly announced.
"""

# Program id the record addresses are derived from
PROGRAM_ID = "Fomo3D1111111111111111111111111111111111111"

# Native SOL uses 9 decimals
LAMPORTS_PER_SOL = 10**9
CURRENCY_MINT = "So11111111111111111111111111111111111111112"

# Round timers (seconds)
ROUND_INIT_TIME = 1 * 60 * 60  # initial countdown after a round starts
ROUND_INC_TIME = 30  # added by every purchase
ROUND_MAX_TIME = 24 * 60 * 60  # end_time never passes start_time + this

# While the pot is below this, each player may add at most PLAYER_EARLY_CAP
EARLY_POT_THRESHOLD = 100 * LAMPORTS_PER_SOL
PLAYER_EARLY_CAP = 1 * LAMPORTS_PER_SOL

# Purchase fee split (percent / divisor of the contribution)
COMMUNITY_DIVISOR = 50  # 2%
AIRDROP_DIVISOR = 100  # 1%
NEXT_ROUND_DIVISOR = 100  # 1%
AFFILIATE_DIVISOR = 10  # 10%
FEE_POT_BASE_PERCENT = 86  # pot floor = 86 - team dividend percentages

# Settlement split of the prize pool
POT_BASE_PERCENT = 50  # next round = 50 - team dividend percentages
GRAND_PRIZE_MIN_PERCENT = 48

# Airdrop lottery
AIRDROP_TICKET_RANGE = 1000
AIRDROP_MIN_CONTRIBUTION = LAMPORTS_PER_SOL // 10  # strictly above 0.1 SOL
AIRDROP_MID_TIER = 1 * LAMPORTS_PER_SOL
AIRDROP_TOP_TIER = 10 * LAMPORTS_PER_SOL

# Record seeds
GAME_STATE_SEED = "game"
ROUND_STATE_SEED = "round"
POT_SEED = "pot"
PLAYER_ROUND_STATE_SEED = "pr"
