"""Daily AI spend tracking with a per-user budget."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


@dataclass
class DailyUsage:
    """One user's AI spend on one UTC date."""

    user_id: str
    date: str
    total_cost: float = 0.0
    request_count: int = 0
    budget_warned: bool = False


class CostStore(Protocol):
    """Durable backing for cost records."""

    def save_cost(self, user_id: str, date: str, cost: float, request_count: int) -> None: ...

    def load_costs(self, date: str) -> list[tuple[str, float, int]]: ...


class CostTracker:
    """Accumulates estimated AI cost per user per day.

    Users over ``daily_budget`` are switched to cache-only mode by the
    hybrid engine: no further AI calls until the next UTC day.
    """

    def __init__(
        self,
        daily_budget: float = 0.10,
        store: CostStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.daily_budget = daily_budget
        self._store = store
        self._clock = clock
        self._usage: dict[tuple[str, str], DailyUsage] = {}

    def _today(self) -> str:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc).strftime("%Y-%m-%d")

    def _lookup(self, user_id: str, date: str) -> DailyUsage | None:
        """Usage already recorded for ``user_id`` on ``date``; never creates a row."""
        usage = self._usage.get((user_id, date))
        if usage is None and self._store is not None:
            for stored_user, cost, count in self._store.load_costs(date):
                if stored_user == user_id:
                    usage = DailyUsage(user_id, date, total_cost=cost, request_count=count)
                    self._usage[(user_id, date)] = usage
        return usage

    def _usage_for(self, user_id: str, date: str) -> DailyUsage:
        usage = self._lookup(user_id, date)
        if usage is None:
            usage = DailyUsage(user_id=user_id, date=date)
            self._usage[(user_id, date)] = usage
        return usage

    def record(self, user_id: str, cost: float) -> DailyUsage:
        """Add ``cost`` to today's total for ``user_id``."""
        usage = self._usage_for(user_id, self._today())
        usage.total_cost += cost
        usage.request_count += 1
        if self._store is not None:
            self._store.save_cost(user_id, usage.date, usage.total_cost, usage.request_count)

        if usage.total_cost > self.daily_budget and not usage.budget_warned:
            usage.budget_warned = True
            logger.warning(
                "Daily AI budget exceeded for %s: $%.4f > $%.2f; switching to cache-only mode",
                user_id,
                usage.total_cost,
                self.daily_budget,
            )
        return usage

    def is_over_budget(self, user_id: str) -> bool:
        usage = self._lookup(user_id, self._today())
        return usage is not None and usage.total_cost > self.daily_budget

    def report(self, date: str | None = None) -> dict[str, Any]:
        """Aggregate spend for ``date`` (default: today, UTC)."""
        date = date or self._today()
        if self._store is not None:
            for user_id, cost, count in self._store.load_costs(date):
                self._usage.setdefault(
                    (user_id, date),
                    DailyUsage(user_id, date, total_cost=cost, request_count=count),
                )
        rows = [u for (_, d), u in self._usage.items() if d == date and u.request_count]

        total_cost = sum(u.total_cost for u in rows)
        total_requests = sum(u.request_count for u in rows)
        active_users = len(rows)
        budget_pool = self.daily_budget * active_users
        return {
            "date": date,
            "total_cost": round(total_cost, 6),
            "average_cost_per_user": round(total_cost / active_users, 6) if active_users else 0.0,
            "total_requests": total_requests,
            "active_users": active_users,
            "budget_utilization": round(total_cost / budget_pool * 100, 2) if budget_pool else 0.0,
        }

    def cleanup(self, keep_days: int = 7) -> int:
        """Forget in-memory usage older than ``keep_days``; returns rows dropped."""
        cutoff = (
            datetime.fromtimestamp(self._clock(), tz=timezone.utc) - timedelta(days=keep_days)
        ).strftime("%Y-%m-%d")
        stale = [k for k in self._usage if k[1] < cutoff]
        for k in stale:
            del self._usage[k]
        return len(stale)
