"""Strategy report chain.

Each strategy points to its newest report with ``latest_report``.
A new report is linked in, and compared against the previous one
with :py:class:`~yearn_ledger.report_result.ReportResultCalculator`.
The first report of a strategy is a baseline only.
"""

import logging

from yearn_ledger.context import LedgerContext
from yearn_ledger.entities import StrategyReport, Transaction
from yearn_ledger.report_result import ReportResultCalculator

logger = logging.getLogger(__name__)


class ReportChainBuilder:
    """Append reports to strategies."""

    def __init__(self, context: LedgerContext, result_calculator: ReportResultCalculator | None = None):
        self.strategies = context.strategies
        self.reports = context.reports
        self.result_calculator = result_calculator or ReportResultCalculator(context)

    def create_report(
        self,
        tx: Transaction,
        strategy_id: str,
        gain: int,
        loss: int,
        total_gain: int,
        total_loss: int,
        total_debt: int,
        debt_added: int,
        debt_ratio: int,
        debt_paid: int,
    ) -> StrategyReport | None:
        """Record a strategy report.

        :return:
            The report, or ``None`` if the strategy is unknown.
            An unknown strategy means we missed its ``StrategyAdded``, the report is skipped.
        """
        strategy = self.strategies.load(strategy_id)
        if strategy is None:
            logger.warning("Failed to load strategy %s while handling StrategyReported, tx %s", strategy_id, tx.hash)
            return None

        existing = self.reports.load(tx.id)
        if existing is not None:
            logger.warning("Report %s for strategy %s already recorded", tx.id, strategy.id)
            return existing

        previous_report_id = strategy.latest_report
        logger.info("Creating report for strategy %s, previous report %s, tx %s", strategy.id, previous_report_id, tx.hash)

        report = StrategyReport(
            id=tx.id,
            strategy=strategy.id,
            gain=gain,
            loss=loss,
            total_gain=total_gain,
            total_loss=total_loss,
            total_debt=total_debt,
            debt_added=debt_added,
            debt_ratio=debt_ratio,
            debt_paid=debt_paid,
            timestamp=tx.timestamp_ms,
            block_number=tx.block_number,
            transaction=tx.id,
        )
        self.reports.save(report)

        strategy.latest_report = report.id
        self.strategies.save(strategy)

        previous_report = self.reports.load(previous_report_id)
        if previous_report is not None:
            self.result_calculator.create(tx, previous_report, report)
        else:
            logger.info("First report %s for strategy %s, no result created", report.id, strategy.id)

        return report
