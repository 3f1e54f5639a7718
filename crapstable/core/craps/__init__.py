"""Craps betting and round resolution."""

from .bets import ActiveBet, BetError, BetType, PlaceBetResult, RollOutcome
from .ledger import BalanceLedger, BetLedger, StatisticsCollector
from .payouts import Payout, PayoutSign, resolve
from .resolver import BetResolution, ResetSummary, RoundResolver, RoundSummary
from .round_state import RoundEvent, RoundState, RoundStateMachine
from .table import CrapsTable

__all__ = [
    "ActiveBet",
    "BetError",
    "BetType",
    "PlaceBetResult",
    "RollOutcome",
    "BalanceLedger",
    "BetLedger",
    "StatisticsCollector",
    "Payout",
    "PayoutSign",
    "resolve",
    "BetResolution",
    "ResetSummary",
    "RoundResolver",
    "RoundSummary",
    "RoundEvent",
    "RoundState",
    "RoundStateMachine",
    "CrapsTable",
]
