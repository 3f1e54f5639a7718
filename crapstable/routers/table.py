from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field, conint, conlist
from typing import Optional

from crapstable.core.craps import BetType
from crapstable.core.database import Database, get_db
from crapstable.core.exceptions import BetRejectedError
from crapstable.core.logger import get_logger
from crapstable.core.rate_limit import limiter, table_rate_limit
from crapstable.core.tables import table_registry

logger = get_logger("api.table")

router = APIRouter()

DiceFace = conint(ge=1, le=6)
DicePair = conlist(DiceFace, min_length=2, max_length=2)

# ==================== Request Models ====================


class PlaceBetRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bet_type: BetType = Field(alias="betType")
    amount: int


class RollRequest(BaseModel):
    dice: Optional[DicePair] = None


class CompleteRollRequest(BaseModel):
    dice: DicePair


# ==================== Table Endpoints ====================


@router.get("/{account_id}")
@limiter.limit(table_rate_limit)
async def table_state(request: Request, account_id: str, db: Database = Depends(get_db)):
    return table_registry.state(db, account_id)


@router.post("/{account_id}/bets")
@limiter.limit(table_rate_limit)
async def place_bet(
    request: Request,
    account_id: str,
    data: PlaceBetRequest,
    db: Database = Depends(get_db),
):
    result = table_registry.place_bet(db, account_id, data.bet_type, data.amount)
    if not result:
        raise BetRejectedError(result.error.value)
    return {"bet": result.bet.to_dict(), **table_registry.state(db, account_id)}


@router.post("/{account_id}/roll")
@limiter.limit(table_rate_limit)
async def roll(
    request: Request,
    account_id: str,
    data: Optional[RollRequest] = None,
    db: Database = Depends(get_db),
):
    """Roll the dice and settle every bet. Dice may be reported by the client."""
    dice = data.dice if data else None
    summary = table_registry.roll(db, account_id, dice)
    return {"result": summary.to_dict(), **table_registry.state(db, account_id)}


@router.post("/{account_id}/roll/start")
@limiter.limit(table_rate_limit)
async def start_roll(request: Request, account_id: str, db: Database = Depends(get_db)):
    """Dice are in the air: betting closes until the roll is completed."""
    return table_registry.start_roll(db, account_id)


@router.post("/{account_id}/roll/complete")
@limiter.limit(table_rate_limit)
async def complete_roll(
    request: Request,
    account_id: str,
    data: CompleteRollRequest,
    db: Database = Depends(get_db),
):
    summary = table_registry.complete_roll(db, account_id, data.dice)
    return {"result": summary.to_dict(), **table_registry.state(db, account_id)}


@router.post("/{account_id}/reset")
@limiter.limit(table_rate_limit)
async def reset_table(request: Request, account_id: str, db: Database = Depends(get_db)):
    logger.info("Table reset", extra={"account": account_id})
    return table_registry.reset(db, account_id)
