"""
Pydantic request/response schemas
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import RoomStatus


# ============ Rooms / players ============

class RoomCreate(BaseModel):
    player_name: str
    max_rounds: Optional[int] = Field(default=None, ge=1)


class RoomCreateResponse(BaseModel):
    room_id: str
    room_code: str
    player_id: str
    session_token: str


class PlayerJoin(BaseModel):
    player_name: str


class PlayerJoinResponse(BaseModel):
    room_id: str
    player_id: str
    session_token: str


class ItemResponse(BaseModel):
    id: str
    name: str
    description: str
    price: int
    category: str
    emoji: str


class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    player_name: str
    capital: int
    is_eliminated: bool
    is_ai: bool


class RoomStateResponse(BaseModel):
    room_id: str
    room_code: str
    status: RoomStatus
    current_round: int
    max_rounds: int
    current_item: Optional[ItemResponse] = None
    host_player_id: Optional[str] = None
    state_version: int
    players: List[PlayerResponse]


class StatusResponse(BaseModel):
    status: str


# ============ Bids / rounds ============

class BidSubmit(BaseModel):
    amount: Any = Field(..., description="Requested bid; type and range are checked by the bid validator")
    round_number: Optional[int] = None


class BidResponse(BaseModel):
    status: str
    amount: int
    round_number: int
    all_bids_in: bool
    resolved: bool


class AdvanceResponse(BaseModel):
    game_over: bool
    round_number: int


class RankedBidResponse(BaseModel):
    player_id: str
    player_name: str
    amount: int


class RoundResultResponse(BaseModel):
    round_number: int
    item: ItemResponse
    bids: List[RankedBidResponse]
    winner_id: str
    winner_name: str
    winner_bid: int
    winner_gain: int
    eliminated: List[str]
    game_over: bool


class LeaderboardEntry(BaseModel):
    rank: int
    player_id: str
    player_name: str
    capital: int
    is_eliminated: bool
