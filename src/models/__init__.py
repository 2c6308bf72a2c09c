from sqlmodel import Field, Relationship, SQLModel
from .user import User
from .check_in import CheckIn
from .nft_usage_tracking import NFTUsageTracking
from .nft import NFT
from .evolution import Evolution
from .leaderboard import Leaderboard
