from datetime import datetime
from typing import Any, Dict, List, Optional, Union
import uuid

from pydantic import BaseModel


class EvolutionRequest(BaseModel):
    wallet_address: str
    primo_token_id: Union[int, str]
    stone_type: str
    stone_token_id: Union[int, str]
    transaction_hash: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class BurnTransactionRequest(BaseModel):
    wallet_address: str
    primo_token_id: Union[int, str]
    stone_type: str
    metadata: Dict[str, Any] = {}


class EvolutionRecord(BaseModel):
    id: uuid.UUID
    wallet_address: str
    primo_token_id: int
    stone_type: str
    stone_token_id: int
    status: str
    transaction_hash: Optional[str] = None
    metadata: Dict[str, Any] = {}
    estimated_completion: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class EvolutionResponse(BaseModel):
    success: bool = True
    evolution: EvolutionRecord
    message: str


class EvolutionListResponse(BaseModel):
    evolutions: List[EvolutionRecord]


class EvolutionStone(BaseModel):
    type: str
    name: str
    token_id: int
    balance: int
    metadata: Optional[Dict[str, Any]] = None
    image_url: str = ""


class BurnTransaction(BaseModel):
    to: str
    data: str
    chain_id: int
    from_address: str
    value: int = 0
    stone_type: str
    stone_token_id: int
    amount: int
