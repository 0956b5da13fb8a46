"""Prefill glucose inputs from readings stored on the backend."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from insula_client.adapters.glucose_client import GlucoseClient
from insula_client.domain.glucose import GlucoseReading

SEED_WINDOW = timedelta(hours=2, minutes=15)
SEED_SLOT_BUDGET = 23

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedResult:
    """Inputs derived from stored readings.

    ``inputs`` ends with one empty slot for manual additions. When no
    readings were found, ``no_data`` is set and ``inputs`` is empty.
    """

    inputs: list[str]
    no_data: bool = False


async def seed_pre_dose(
    client: GlucoseClient, token: str, now: datetime
) -> SeedResult:
    """Readings from the window before ``now``, most recent first."""
    readings = await client.fetch_readings(
        token, start_date=now - SEED_WINDOW, end_date=now
    )
    return _to_seed(readings, newest_first=True)


async def seed_post_dose(
    client: GlucoseClient, token: str, dose_time: datetime
) -> SeedResult:
    """Readings from the window after ``dose_time``, oldest first."""
    readings = await client.fetch_readings(
        token, start_date=dose_time, end_date=dose_time + SEED_WINDOW
    )
    return _to_seed(readings, newest_first=False)


def _to_seed(readings: list[GlucoseReading], *, newest_first: bool) -> SeedResult:
    if not readings:
        _logger.info("No glucose readings found in seed window")
        return SeedResult(inputs=[], no_data=True)
    ordered = sorted(readings, key=lambda r: r.timestamp, reverse=newest_first)
    inputs = [str(reading.value) for reading in ordered[:SEED_SLOT_BUDGET]]
    inputs.append("")
    return SeedResult(inputs=inputs)
