from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from crapstable.core.database import Database, get_db
from crapstable.core.exceptions import CrapsTableError
from crapstable.core.logger import get_logger
from crapstable.core.rate_limit import api_rate_limit, limiter
from crapstable.core.tables import table_registry

logger = get_logger("api.accounts")

router = APIRouter()

# ==================== Request Models ====================


class CreateAccountRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = None
    account_id: Optional[str] = Field(default=None, alias="accountId")
    current_money: Optional[int] = Field(default=None, alias="currentMoney", ge=0)


class UpdateAccountRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_money: Optional[int] = Field(default=None, alias="currentMoney")
    total_wins: Optional[int] = Field(default=None, alias="totalWins")
    total_losses: Optional[int] = Field(default=None, alias="totalLosses")
    current_win_streak: Optional[int] = Field(default=None, alias="currentWinStreak")
    best_win_streak: Optional[int] = Field(default=None, alias="bestWinStreak")
    total_games_played: Optional[int] = Field(default=None, alias="totalGamesPlayed")
    total_money_won: Optional[int] = Field(default=None, alias="totalMoneyWon")
    total_money_lost: Optional[int] = Field(default=None, alias="totalMoneyLost")
    total_loaned: Optional[int] = Field(default=None, alias="totalLoaned")


class RepayRequest(BaseModel):
    amount: int


# ==================== Health ====================


@router.get("/health")
async def health():
    return {"status": "ok"}


# ==================== Accounts ====================


@router.get("/accounts/{username}")
@limiter.limit(api_rate_limit)
async def get_account(request: Request, username: str, db: Database = Depends(get_db)):
    """Look an account up by username."""
    return db.get_account_by_username(username).to_dict()


@router.post("/accounts", status_code=201)
@limiter.limit(api_rate_limit)
async def create_account(
    request: Request, data: CreateAccountRequest, db: Database = Depends(get_db)
):
    username = (data.username or "").strip()
    if not username:
        raise CrapsTableError("Username is required")

    account = db.create_account(
        username, account_id=data.account_id, current_money=data.current_money
    )
    return account.to_dict()


@router.put("/accounts/{account_id}")
@limiter.limit(api_rate_limit)
async def update_account(
    request: Request,
    account_id: str,
    data: UpdateAccountRequest,
    db: Database = Depends(get_db),
):
    """Sync balance and statistics from a client. Omitted fields are left alone."""
    account = db.update_account(account_id, data.model_dump(exclude_none=True))
    return account.to_dict()


@router.delete("/accounts/{account_id}")
@limiter.limit(api_rate_limit)
async def delete_account(request: Request, account_id: str, db: Database = Depends(get_db)):
    db.delete_account(account_id)
    table_registry.discard(account_id)
    return {"message": "Account deleted successfully"}


@router.get("/leaderboard")
@limiter.limit(api_rate_limit)
async def leaderboard(request: Request, limit: int = 10, db: Database = Depends(get_db)):
    limit = max(1, min(limit, 100))
    return {"leaderboard": [account.to_dict() for account in db.get_leaderboard(limit)]}


# ==================== Loans & Statistics ====================


@router.post("/accounts/{account_id}/loan")
@limiter.limit(api_rate_limit)
async def request_loan(request: Request, account_id: str, db: Database = Depends(get_db)):
    """Borrow from the casino. Only allowed while the balance is below the loan threshold."""
    result = table_registry.request_loan(db, account_id)
    logger.info("Loan granted", extra={"account": account_id, "received": result["received"]})
    return result


@router.post("/accounts/{account_id}/repay")
@limiter.limit(api_rate_limit)
async def repay_loan(
    request: Request, account_id: str, data: RepayRequest, db: Database = Depends(get_db)
):
    return table_registry.repay_loan(db, account_id, data.amount)


@router.post("/accounts/{account_id}/reset-stats")
@limiter.limit(api_rate_limit)
async def reset_statistics(request: Request, account_id: str, db: Database = Depends(get_db)):
    """Clear statistics but keep the money."""
    return table_registry.reset_statistics(db, account_id).to_dict()
