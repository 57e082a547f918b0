"""Period return and APR between two strategy reports.

For a previous report ``P`` and the current report ``C`` of the same strategy:

.. code-block:: text

    profit        = C.total_gain - P.total_gain
    duration_days = (C.timestamp - P.timestamp) / MS_PER_DAY
    duration_pr   = profit / P.total_debt
    apr           = duration_pr * DAYS_PER_YEAR / duration_days

- Linear annualisation, no compounding
- Negative profit is not clamped, a short period can give a very large APR
- Zero previous debt or zero duration gives ``duration_pr = apr = 0``
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from yearn_ledger.constants import DAYS_PER_YEAR, MS_PER_DAY
from yearn_ledger.context import LedgerContext
from yearn_ledger.entities import StrategyReport, StrategyReportResult, Transaction

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ReportPerformance:
    """Numbers computed from two reports."""

    #: ms
    duration: int
    profit: int
    duration_pr: Decimal
    apr: Decimal


def calculate_report_performance(previous: StrategyReport, current: StrategyReport) -> ReportPerformance:
    """Calculate the period return and APR of ``current`` over ``previous``."""
    assert previous.strategy == current.strategy, f"Reports of different strategies: {previous.strategy} {current.strategy}"
    assert previous.id != current.id, f"Cannot compare report {current.id} with itself"

    profit = current.total_gain - previous.total_gain
    duration = current.timestamp - previous.timestamp
    duration_days = Decimal(duration) / MS_PER_DAY

    if previous.total_debt == 0 or duration_days == 0:
        duration_pr = Decimal(0)
        apr = Decimal(0)
    else:
        duration_pr = Decimal(profit) / Decimal(previous.total_debt)
        apr = duration_pr * (DAYS_PER_YEAR / duration_days)

    return ReportPerformance(duration=duration, profit=profit, duration_pr=duration_pr, apr=apr)


class ReportResultCalculator:
    """Persist :py:class:`StrategyReportResult` entities."""

    def __init__(self, context: LedgerContext):
        self.report_results = context.report_results

    def create(self, tx: Transaction, previous: StrategyReport, current: StrategyReport) -> StrategyReportResult:
        """Create the result for the report pair.

        Keyed by the triggering transaction. An existing result is returned as is.
        """
        existing = self.report_results.load(tx.id)
        if existing is not None:
            logger.warning("Report result %s already exists for strategy %s", tx.id, current.strategy)
            return existing

        performance = calculate_report_performance(previous, current)
        logger.info(
            "Report result for strategy %s: start %d end %d, duration %d ms, profit %d, period return %s, APR %s, tx %s",
            current.strategy,
            previous.timestamp,
            current.timestamp,
            performance.duration,
            performance.profit,
            performance.duration_pr,
            performance.apr,
            tx.hash,
        )

        result = StrategyReportResult(
            id=tx.id,
            previous_report=previous.id,
            current_report=current.id,
            start_timestamp=previous.timestamp,
            end_timestamp=current.timestamp,
            duration=performance.duration,
            duration_pr=performance.duration_pr,
            apr=performance.apr,
            timestamp=tx.timestamp,
            block_number=tx.block_number,
            transaction=tx.id,
        )
        self.report_results.save(result)
        return result
