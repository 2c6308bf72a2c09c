from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union
import uuid

from pydantic import BaseModel


class NFTResponse(BaseModel):
    token_id: int
    contract_address: str
    wallet_address: str
    rarity: str
    is_shiny: bool
    is_z: bool
    is_full_set: bool
    bonus_points: int
    metadata: Dict[str, Any] = {}
    updated_at: Optional[datetime] = None


class WalletNFTsResponse(BaseModel):
    count: int
    nfts: List[NFTResponse]
    total_bonus_points: int


class NFTCheckRequest(BaseModel):
    token_id: Optional[Union[int, str]] = None
    contract_address: Optional[str] = None


class NFTUsageRecord(BaseModel):
    id: uuid.UUID
    token_id: int
    contract_address: str
    check_in_id: uuid.UUID
    usage_date: date
    wallet_address: str
    created_at: datetime


class NFTUsageResponse(BaseModel):
    is_used: bool
    message: str
    usage_data: List[NFTUsageRecord] = []


class RefreshNFTsRequest(BaseModel):
    wallet_address: str


class RefreshNFTsResponse(BaseModel):
    success: bool = True
    nfts: List[NFTResponse]
    total_bonus_points: int


class EvolutionCandidate(BaseModel):
    token_id: int
    metadata: Optional[Dict[str, Any]] = None
    rarity: str
    is_shiny: bool
    is_full_set: bool
    bonus_points: int = 0
