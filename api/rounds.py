"""
Round API Endpoints - short polling

Key points:
1. submit_bid persists the bid, then any request that sees all bids in
   tries to resolve; the atomic claim makes resolution run once
2. Business logic lives in RoundManager
3. Clients follow progress through state_version on /state
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from models import PlayerSession
from schemas import (
    BidSubmit,
    BidResponse,
    AdvanceResponse,
    RoundResultResponse,
)
from api.auth import get_current_session, require_room_session
from core.round_manager import RoundManager
from core.exceptions import (
    NotFoundError,
    RoundResultNotFound,
    UnauthorizedError,
    ValidationError,
)

router = APIRouter(prefix="/api/rooms", tags=["rounds"])
logger = logging.getLogger(__name__)


@router.post("/{room_id}/bids", response_model=BidResponse)
def submit_bid(
    room_id: str,
    bid_data: BidSubmit,
    session: PlayerSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """
    Submit the caller's bid for the current round

    No special "last bidder" path: every submission that sees all bids in
    attempts the claim; the loser still gets "ok" because its bid is stored.

    Returns:
        - amount: recorded amount (floored, clamped to capital)
        - all_bids_in: every active player has bid
        - resolved: this request ran the resolution
    """
    require_room_session(room_id, session)
    try:
        outcome = RoundManager.submit_bid(
            db,
            room_id,
            session.player_id,
            bid_data.amount,
            bid_data.round_number
        )

        return BidResponse(
            status="ok",
            amount=outcome.amount,
            round_number=outcome.round_number,
            all_bids_in=outcome.all_bids_in,
            resolved=outcome.resolved
        )

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to submit bid: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{room_id}/rounds/advance", response_model=AdvanceResponse)
def advance_round(
    room_id: str,
    session: PlayerSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """
    Next round (host endpoint)

    Effects:
    - results -> bidding with round + 1, or
    - -> game_over when one player is left or the last round was played
    """
    require_room_session(room_id, session)
    try:
        outcome = RoundManager.advance_round(db, room_id, session.player_id)
        return AdvanceResponse(game_over=outcome.game_over, round_number=outcome.round_number)

    except NotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")
    except UnauthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to advance round: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/rounds/{round_number}/result", response_model=RoundResultResponse)
def get_round_result(room_id: str, round_number: int, db: Session = Depends(get_db)):
    """
    Stored result of a resolved round

    Lets a client that missed the broadcast rebuild the results screen.
    """
    try:
        result = RoundManager.get_round_result(db, room_id, round_number)
        return RoundResultResponse(**result.to_payload())

    except RoundResultNotFound:
        raise HTTPException(status_code=404, detail="Result not available yet")
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")
    except Exception as e:
        logger.error(f"Failed to get round result: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
