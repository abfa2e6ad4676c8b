"""
cache
=====

In-memory odds cache engine: call budget, sequential fetch orchestration,
snapshot store, refresh scheduler and change notification.

Public API (stable):
- OddsCache (from service)
- CallBudget, BudgetExhausted (from budget)
- FetchOrchestrator (from fetch)
- SnapshotStore, NOT_FOUND, NOT_FETCHED (from store)
- RefreshScheduler (from scheduler), RefreshState (from state)
- ChangeNotifier (from notifier)
- Event, Outcome, OddsSnapshot (from models)
- NBA, FOOTBALL, SportConfig, default_sports (from sports)
"""
from .budget import BudgetExhausted, CallBudget
from .fetch import FetchOrchestrator
from .models import Event, OddsSnapshot, Outcome
from .notifier import ChangeNotifier
from .scheduler import RefreshScheduler
from .service import OddsCache
from .sports import FOOTBALL, NBA, SportConfig, default_sports
from .state import FULL_REFRESH, RefreshState
from .store import NOT_FETCHED, NOT_FOUND, SnapshotStore

__all__ = [
    "OddsCache",
    "CallBudget", "BudgetExhausted",
    "FetchOrchestrator",
    "SnapshotStore", "NOT_FOUND", "NOT_FETCHED",
    "RefreshScheduler", "RefreshState", "FULL_REFRESH",
    "ChangeNotifier",
    "Event", "Outcome", "OddsSnapshot",
    "NBA", "FOOTBALL", "SportConfig", "default_sports",
]
