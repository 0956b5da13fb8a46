"""Prediction history: client-side filtering, sorting and pagination."""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from zoneinfo import ZoneInfo

from insula_client.adapters.insulin_client import PredictionClient
from insula_client.domain.errors import InsulaError, user_message
from insula_client.domain.predictions import InsulinPredictionResult
from insula_client.services.session import SessionContext

DEFAULT_PAGE_SIZE = 5
DEFAULT_TIMEZONE = "America/Argentina/Buenos_Aires"
COMPARISON_OPERATORS = frozenset({"=", ">", "<"})

_logger = logging.getLogger(__name__)


class SortKey(str, Enum):
    """Columns the history can be ordered by."""

    DATE = "date"
    CGM = "cgm"
    DOSE = "dose"


class SortDirection(str, Enum):
    """Ordering direction."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class NumericFilter:
    """Comparison of a numeric column against a typed value."""

    op: str = "="
    value: str = ""

    def __post_init__(self) -> None:
        if self.op not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported operator: {self.op}")

    def matches(self, actual: float | None) -> bool:
        """Return whether ``actual`` passes; inactive filters pass everything."""
        target = self.target()
        if target is None:
            return True
        if actual is None:
            return False
        if self.op == ">":
            return actual > target
        if self.op == "<":
            return actual < target
        return actual == target

    def target(self) -> float | None:
        """The comparison value, or None when the filter is inactive."""
        cleaned = self.value.strip().replace(",", ".")
        if not cleaned:
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None


@dataclass(frozen=True)
class HistoryFilters:
    """All filters of the history screen."""

    date: str = ""
    cgm: NumericFilter = field(default_factory=NumericFilter)
    dose: NumericFilter = field(default_factory=NumericFilter)


def _first_cgm(prediction: InsulinPredictionResult) -> int | None:
    return prediction.cgm_prev[0] if prediction.cgm_prev else None


def filter_predictions(
    predictions: list[InsulinPredictionResult],
    filters: HistoryFilters,
    tz: ZoneInfo,
) -> list[InsulinPredictionResult]:
    """Keep predictions matching the date substring and numeric filters.

    The date filter is matched against ``dd/MM`` in ``tz``; the CGM filter
    uses the first stored pre-dose reading.
    """
    date_query = filters.date.strip()
    kept = []
    for prediction in predictions:
        if date_query:
            day_month = prediction.date.astimezone(tz).strftime("%d/%m")
            if date_query not in day_month:
                continue
        if not filters.cgm.matches(_first_cgm(prediction)):
            continue
        if not filters.dose.matches(prediction.recommended_dose):
            continue
        kept.append(prediction)
    return kept


def sort_predictions(
    predictions: list[InsulinPredictionResult],
    key: SortKey,
    direction: SortDirection,
) -> list[InsulinPredictionResult]:
    """Stable sort; records without a CGM value sort last."""
    reverse = direction is SortDirection.DESC
    if key is SortKey.DATE:
        return sorted(predictions, key=lambda p: p.date, reverse=reverse)
    if key is SortKey.DOSE:
        return sorted(predictions, key=lambda p: p.recommended_dose, reverse=reverse)
    with_cgm = [p for p in predictions if p.cgm_prev]
    without_cgm = [p for p in predictions if not p.cgm_prev]
    return sorted(with_cgm, key=lambda p: p.cgm_prev[0], reverse=reverse) + without_cgm


def page_count(total: int, page_size: int) -> int:
    """Number of pages, never less than one."""
    return max(1, math.ceil(total / page_size))


def paginate(
    items: list[InsulinPredictionResult], page: int, page_size: int
) -> list[InsulinPredictionResult]:
    """Slice a 1-based page out of ``items``."""
    start = (page - 1) * page_size
    return items[start : start + page_size]


@dataclass
class HistoryView:
    """State of the prediction history screen."""

    prediction_client: PredictionClient
    session: SessionContext
    page_size: int = DEFAULT_PAGE_SIZE
    timezone_name: str = DEFAULT_TIMEZONE
    predictions: list[InsulinPredictionResult] = field(default_factory=list)
    filters: HistoryFilters = field(default_factory=HistoryFilters)
    sort_key: SortKey = SortKey.DATE
    sort_direction: SortDirection = SortDirection.DESC
    page: int = 1
    loading: bool = False
    error: str | None = None
    pending_delete_id: str | None = None

    async def load(self) -> None:
        """Fetch the full history from the backend."""
        self.loading = True
        self.error = None
        try:
            self.predictions = await self.prediction_client.fetch_history(
                self.session.require_token()
            )
        except InsulaError as exc:
            _logger.warning("History load failed: %s", exc.message)
            self.error = user_message(exc)
        finally:
            self.loading = False
        self.page = 1

    @property
    def filtered(self) -> list[InsulinPredictionResult]:
        """Filtered and sorted records across all pages."""
        tz = ZoneInfo(self.timezone_name)
        matching = filter_predictions(self.predictions, self.filters, tz)
        return sort_predictions(matching, self.sort_key, self.sort_direction)

    @property
    def total_pages(self) -> int:
        """Page count for the current filters."""
        return page_count(len(self.filtered), self.page_size)

    @property
    def visible(self) -> list[InsulinPredictionResult]:
        """Records on the current page."""
        return paginate(self.filtered, self.page, self.page_size)

    def set_filters(self, filters: HistoryFilters) -> None:
        """Apply new filters and go back to the first page."""
        self.filters = filters
        self.page = 1

    def set_sort(self, key: SortKey, direction: SortDirection) -> None:
        """Change ordering and go back to the first page."""
        self.sort_key = key
        self.sort_direction = direction
        self.page = 1

    def toggle_direction(self) -> None:
        """Flip the sort direction."""
        flipped = (
            SortDirection.ASC
            if self.sort_direction is SortDirection.DESC
            else SortDirection.DESC
        )
        self.set_sort(self.sort_key, flipped)

    def go_to_page(self, page: int) -> None:
        """Move to ``page``, clamped to the available range."""
        self.page = min(max(page, 1), self.total_pages)

    def request_delete(self, prediction_id: str) -> None:
        """Ask for confirmation before deleting a listed record."""
        if not any(p.id == prediction_id for p in self.predictions):
            raise KeyError(prediction_id)
        self.pending_delete_id = prediction_id

    def cancel_delete(self) -> None:
        """Dismiss the confirmation dialog."""
        self.pending_delete_id = None

    async def confirm_delete(self) -> bool:
        """Delete the pending record, removing it only once the server agrees."""
        prediction_id = self.pending_delete_id
        if prediction_id is None:
            return False
        self.pending_delete_id = None
        self.error = None
        try:
            deleted = await self.prediction_client.delete_prediction(
                self.session.require_token(), prediction_id
            )
        except InsulaError as exc:
            _logger.warning("Delete failed for %s: %s", prediction_id, exc.message)
            self.error = user_message(exc)
            return False
        if not deleted:
            self.error = "No se pudo eliminar la predicción."
            return False
        self.predictions = [p for p in self.predictions if p.id != prediction_id]
        self.page = min(self.page, self.total_pages)
        return True
