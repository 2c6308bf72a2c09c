from fastapi import APIRouter

from api.api_v1.endpoints import (
    check_in,
    evolutions,
    healthz,
    leaderboard,
    nft_check,
    nfts,
    users,
)

api_router = APIRouter()

# Group routes by adding tags parameter
api_router.include_router(check_in.router, prefix="/check-in", tags=["Check-in"])
api_router.include_router(nft_check.router, prefix="/nft-check", tags=["NFTs"])
api_router.include_router(nfts.router, prefix="/nfts", tags=["NFTs"])
api_router.include_router(evolutions.router, prefix="/evolutions", tags=["Evolutions"])
api_router.include_router(leaderboard.router, prefix="/leaderboard", tags=["Leaderboard"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(healthz.router, prefix="/healthz", tags=["Others"])
