from .check_in import *
from .nft import *
from .evolution import *
from .leaderboard import *
