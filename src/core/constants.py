from enum import Enum

from web3 import Web3

from core.config import settings


class EvolutionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class NftLockFailure(str, Enum):
    ALREADY_USED = "already_used"
    ERROR = "error"
    UNEXPECTED_ERROR = "unexpected_error"


PRIMOS_NFT_ADDRESS = Web3.to_checksum_address(settings.PRIMOS_NFT_CONTRACT)
EVOLUTION_STONE_ADDRESS = Web3.to_checksum_address(settings.EVOLUTION_STONE_CONTRACT)

BURN_ADDRESS = Web3.to_checksum_address("0x000000000000000000000000000000000000dEaD")

# (minimum streak, multiplier), highest tier first
STREAK_MULTIPLIER_TIERS = [
    (29, 3.0),
    (22, 2.5),
    (15, 2.0),
    (8, 1.5),
]
DEFAULT_MULTIPLIER = 1.0

RARITY_ATTRIBUTE = "Rarity"
FULL_SET_ATTRIBUTE = "Full Set"
FULL_SET_BONUS_POINTS = 2

# rarity -> (bonus points, is shiny, is Z)
RARITY_BONUS_POINTS = {
    "unique": (30, False, False),
    "shiny Z": (13, True, True),
    "shiny": (7, True, False),
    "original Z": (4, False, True),
    "original": (1, False, False),
}

EVOLUTION_DURATION_HOURS = 48
EVOLUTION_BURN_AMOUNT = 1

# tokens whose metadata endpoint is known to be broken
EVOLUTION_SKIPPED_TOKEN_IDS = {1903}

EVOLUTION_STONES = {
    "PRIMAL": {
        "name": "PRIMAL EvoZtone",
        "contract_address": EVOLUTION_STONE_ADDRESS,
        "token_id": 1,
        "compatible_with": ["original"],
    },
    "MOUNT_X": {
        "name": "MOUNT-X EvoZtone",
        "contract_address": EVOLUTION_STONE_ADDRESS,
        "token_id": 2,
        "compatible_with": ["shiny"],
    },
    "MOUNT_Y": {
        "name": "MOUNT-Y EvoZtone",
        "contract_address": EVOLUTION_STONE_ADDRESS,
        "token_id": 3,
        "compatible_with": ["shiny"],
    },
}

CHECK_IN_HISTORY_LIMIT = 30
LEADERBOARD_DEFAULT_LIMIT = 100
