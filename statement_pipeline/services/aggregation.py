"""Read-side aggregations over committed transactions.

The module-level functions are pure computations over already-fetched transactions.
``AggregationEngine`` binds them to a persistence gateway for the dashboard and insight
endpoints. Nothing here writes.
"""

import datetime as dt
from collections.abc import Iterable

import pandas as pd

from statement_pipeline.core.categories import UNCATEGORIZED
from statement_pipeline.core.models import (
    CategoryTotal,
    ExpenseLine,
    HabitSummaryItem,
    StatementDetail,
    TransactionOut,
    TransactionType,
    TrendBucket,
)
from statement_pipeline.core.utils import add_months, month_label, month_start, round_whole, to_major_units
from statement_pipeline.services.repository import PersistenceGateway

DEFAULT_TREND_MONTHS = 6
DEFAULT_HABIT_MONTHS = 3
DEFAULT_PREVIOUS_MONTH_LIMIT = 50

FRAME_COLUMNS = ["date", "category", "amount"]


def expense_frame(transactions: Iterable[TransactionOut]) -> pd.DataFrame:
    """Build a date/category/amount frame of EXPENSE transactions, blank categories as Uncategorized."""
    rows = [
        {"date": t.date, "category": t.category or UNCATEGORIZED, "amount": t.amount}
        for t in transactions
        if t.type == TransactionType.EXPENSE
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def _group_by_category(frame: pd.DataFrame) -> pd.DataFrame:
    grouped = (
        frame.groupby("category", sort=False)
        .agg(total_minor=("amount", "sum"), n=("amount", "size"))
        .reset_index()
    )
    return grouped.sort_values("total_minor", ascending=False, kind="stable")


def category_breakdown(transactions: Iterable[TransactionOut]) -> list[CategoryTotal]:
    """Group a statement's expenses by category, sorted by total descending."""
    frame = expense_frame(transactions)
    if frame.empty:
        return []
    grouped = _group_by_category(frame)
    grand_total = int(grouped["total_minor"].sum())
    return [
        CategoryTotal(
            category=row.category,
            total=to_major_units(int(row.total_minor)),
            total_minor=int(row.total_minor),
            count=int(row.n),
            share=int(row.total_minor) / grand_total if grand_total else 0.0,
        )
        for row in grouped.itertuples(index=False)
    ]


def trend_window(today: dt.date, months: int = DEFAULT_TREND_MONTHS) -> tuple[dt.date, dt.date]:
    """First and last day of the trailing ``months`` calendar months ending with today's month."""
    start = month_start(add_months(today, -(months - 1)))
    end = month_start(add_months(today, 1)) - dt.timedelta(days=1)
    return start, end


def monthly_trend(
    transactions: Iterable[TransactionOut], today: dt.date, months: int = DEFAULT_TREND_MONTHS
) -> list[TrendBucket]:
    """Expense totals per calendar month over the trailing window, oldest first, empty months at zero."""
    start, _ = trend_window(today, months)
    first = pd.Period(year=start.year, month=start.month, freq="M")
    periods = pd.period_range(start=first, periods=months, freq="M")
    frame = expense_frame(transactions)
    if frame.empty:
        totals = pd.Series(0, index=periods)
    else:
        frame["period"] = pd.to_datetime(frame["date"]).dt.to_period("M")
        totals = frame.groupby("period")["amount"].sum().reindex(periods, fill_value=0)
    return [
        TrendBucket(
            label=month_label(period.month),
            month=period.month,
            year=period.year,
            total=to_major_units(int(total)),
        )
        for period, total in totals.items()
    ]


def habit_window(today: dt.date, months: int = DEFAULT_HABIT_MONTHS) -> tuple[dt.date, dt.date]:
    """The trailing window from the same day ``months`` months ago up to today, inclusive."""
    return add_months(today, -months), today


def habit_summary(transactions: Iterable[TransactionOut]) -> list[HabitSummaryItem] | None:
    """Category totals (whole currency units) and counts, or None when there is nothing to summarize.

    None means "insufficient data", which callers must not confuse with zero spending.
    """
    frame = expense_frame(transactions)
    if frame.empty:
        return None
    grouped = _group_by_category(frame)
    return [
        HabitSummaryItem(
            category=row.category,
            total=round_whole(to_major_units(int(row.total_minor))),
            count=int(row.n),
        )
        for row in grouped.itertuples(index=False)
    ]


def previous_month_range(today: dt.date) -> tuple[dt.date, dt.date]:
    """First and last day of the calendar month before ``today``."""
    this_month = month_start(today)
    return month_start(add_months(this_month, -1)), this_month - dt.timedelta(days=1)


class AggregationEngine:
    """Binds the aggregations to a persistence gateway."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        trend_months: int = DEFAULT_TREND_MONTHS,
        habit_months: int = DEFAULT_HABIT_MONTHS,
        previous_month_limit: int = DEFAULT_PREVIOUS_MONTH_LIMIT,
    ) -> None:
        """Initialize the engine with a gateway and window sizes."""
        self.gateway = gateway
        self.trend_months = trend_months
        self.habit_months = habit_months
        self.previous_month_limit = previous_month_limit

    def statement_breakdown(self, statement_id: str) -> list[CategoryTotal]:
        """Where the money went for one statement."""
        self.gateway.get_statement(statement_id)
        return category_breakdown(
            self.gateway.query_transactions(statement_id=statement_id, txn_type=TransactionType.EXPENSE)
        )

    def statement_detail(self, statement_id: str) -> StatementDetail:
        """Statement header, net savings and transactions by amount descending."""
        statement = self.gateway.get_statement(statement_id)
        transactions = self.gateway.query_transactions(statement_id=statement_id, order_by_amount=True)
        net = to_major_units(statement.total_income_minor - statement.total_expenses_minor)
        return StatementDetail(statement=statement, net_savings=net, transactions=transactions)

    def monthly_trends(self, user_id: str, today: dt.date | None = None) -> list[TrendBucket]:
        """Six-month (by default) expense trend for a user."""
        today = today or dt.date.today()
        start, end = trend_window(today, self.trend_months)
        transactions = self.gateway.query_transactions(
            user_id=user_id, start=start, end=end, txn_type=TransactionType.EXPENSE
        )
        return monthly_trend(transactions, today, self.trend_months)

    def recent_habits(
        self, user_id: str, months: int | None = None, today: dt.date | None = None
    ) -> list[HabitSummaryItem] | None:
        """Rolling habit summary over the last ``months`` months."""
        start, end = habit_window(today or dt.date.today(), months or self.habit_months)
        return habit_summary(
            self.gateway.query_transactions(user_id=user_id, start=start, end=end, txn_type=TransactionType.EXPENSE)
        )

    def yearly_habits(self, user_id: str, year: int) -> list[HabitSummaryItem] | None:
        """Habit summary over one calendar year."""
        return habit_summary(
            self.gateway.query_transactions(
                user_id=user_id,
                start=dt.date(year, 1, 1),
                end=dt.date(year, 12, 31),
                txn_type=TransactionType.EXPENSE,
            )
        )

    def previous_month_expenses(self, user_id: str, today: dt.date | None = None) -> list[ExpenseLine]:
        """Largest expenses of the previous calendar month, biggest first."""
        start, end = previous_month_range(today or dt.date.today())
        transactions = self.gateway.query_transactions(
            user_id=user_id,
            start=start,
            end=end,
            txn_type=TransactionType.EXPENSE,
            order_by_amount=True,
            limit=self.previous_month_limit,
        )
        return [
            ExpenseLine(
                description=t.description,
                amount=to_major_units(t.amount),
                category=t.category or UNCATEGORIZED,
                date=t.date,
            )
            for t in transactions
        ]
