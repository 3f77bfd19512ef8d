"""Human battery model: overnight charge, hourly drain, trend.

Charge comes from sleep (60%) and HRV (40%). Drain is a base rate plus
activity, stress and weather load.
"""

from __future__ import annotations

from datetime import datetime, timezone

from tempo.domains.wellness.domain_logic.models import (
    BatteryTrend,
    HumanBattery,
    battery_state_for,
)
from tempo.domains.wellness.domain_logic.numeric import clamp, optional_float, to_float

BASE_DRAIN_PER_HOUR = -2.5
TREND_THRESHOLD_POINTS = 5.0
LOW_BATTERY_PENALTY_LEVEL = 20.0


def sleep_charge_score(sleep: dict, user_mode: str = "standard") -> float:
    """Sleep contribution to the morning charge; athletes recover 10% better."""
    duration = to_float(sleep.get("duration_hours"), 0.0)
    quality = clamp(to_float(sleep.get("quality"), 0.0), 0.0, 1.0)
    duration_score = min(100.0, duration / 8.0 * 100.0)
    score = duration_score * 0.7 + quality * 100.0 * 0.3
    return score * 1.1 if user_mode == "athlete" else score


def hrv_score(hrv: dict) -> float:
    """HRV against the personal baseline, nudged by the recent trend."""
    baseline = to_float(hrv.get("baseline_ms"), 0.0)
    if baseline <= 0:
        return 50.0
    score = min(100.0, to_float(hrv.get("average_ms"), 0.0) / baseline * 100.0)
    trend = hrv.get("trend", "stable")
    if trend == "improving":
        return score * 1.1
    if trend == "declining":
        return score * 0.9
    return score


def morning_charge(
    sleep: dict,
    hrv: dict,
    user_mode: str = "standard",
    previous_level: float | None = None,
) -> float:
    """Charge at wake-up; a near-empty previous day costs 10%."""
    charge = sleep_charge_score(sleep, user_mode) * 0.6 + hrv_score(hrv) * 0.4
    if previous_level is not None and previous_level < LOW_BATTERY_PENALTY_LEVEL:
        charge *= 0.9
    return min(100.0, charge)


def environment_factor(weather: dict | None) -> float:
    """Extra drain per hour from hot-humid air and falling pressure."""
    if not weather:
        return 0.0
    factor = 0.0
    if to_float(weather.get("temperature_c"), 20.0) > 30 and to_float(weather.get("humidity"), 50.0) > 70:
        factor += 2.0
    previous = optional_float(weather.get("previous_pressure_hpa"))
    current = optional_float(weather.get("pressure_hpa"))
    if previous is not None and current is not None:
        if current - previous < -3.0:
            factor += 1.5
    return factor


def drain_rate(
    active_energy: float,
    stress_level: float,
    env_factor: float,
    user_mode: str = "standard",
) -> float:
    """Points per hour (negative). ``stress_level`` is 0-10."""
    activity_drain = active_energy * (0.8 if user_mode == "athlete" else 1.0) * 0.01
    return BASE_DRAIN_PER_HOUR - activity_drain - stress_level * 0.5 - env_factor


def battery_trend(current: float, previous: float | None) -> BatteryTrend:
    if previous is None:
        return "stable"
    diff = current - previous
    if diff > TREND_THRESHOLD_POINTS:
        return "recovering"
    if diff < -TREND_THRESHOLD_POINTS:
        return "declining"
    return "stable"


class BatteryEngine:
    """Tracks a HumanBattery between updates."""

    def __init__(self, user_mode: str = "standard") -> None:
        self.user_mode = user_mode

    def charge(
        self,
        sleep: dict,
        hrv: dict,
        previous_level: float | None = None,
        now: datetime | None = None,
    ) -> HumanBattery:
        level = morning_charge(sleep, hrv, self.user_mode, previous_level)
        return HumanBattery(
            current_level=level,
            morning_charge=level,
            drain_rate=BASE_DRAIN_PER_HOUR,
            state=battery_state_for(level),
            last_updated=now or datetime.now(timezone.utc),
        )

    def update(
        self,
        battery: HumanBattery,
        active_energy: float,
        stress_level: float,
        weather: dict | None = None,
        now: datetime | None = None,
    ) -> HumanBattery:
        """Apply the current drain rate over the hours since the last update."""
        now = now or datetime.now(timezone.utc)
        rate = drain_rate(active_energy, stress_level, environment_factor(weather), self.user_mode)
        hours = max(0.0, (now - battery.last_updated).total_seconds() / 3600.0)
        level = max(0.0, battery.current_level + rate * hours)
        return HumanBattery(
            current_level=level,
            morning_charge=battery.morning_charge,
            drain_rate=rate,
            state=battery_state_for(level),
            last_updated=now,
        )
