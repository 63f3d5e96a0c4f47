"""
Anomaly Detector

Runs four independent rule-based scans over the transaction list:

1. DUPLICATES - same date, amount and description recorded more than once
2. UNUSUAL SPENDING - expenses more than 2 standard deviations above the mean
3. LARGE TRANSACTIONS - any transaction above a fixed amount
4. CATEGORY SPIKES - a category whose recent spend dwarfs the others

Each scan only reports when it has something to report. Results are
concatenated in scan order and then sorted by severity, highest first; the
sort is stable so scan order is kept within a severity.

detect_extended_anomalies runs three further scans (income spikes, card
testing, unusual timing) on request. They are kept out of detect_anomalies
so the dashboard's default list does not change.

IMPORTANT: Anomalies are prompts for a human to review the books.
The detector never edits, merges or removes transactions.
"""

from collections.abc import Sequence
from datetime import date, datetime, timedelta
from typing import Optional

import structlog

from finassist.analysis.stats import (
    format_currency,
    group_by,
    in_window,
    mean,
    population_stddev,
    slugify,
    sum_by_category,
    trailing_window,
)
from finassist.config.settings import AnalysisSettings
from finassist.models.analysis import SEVERITY_RANK, Anomaly, AnomalyType, Severity
from finassist.models.transaction import Transaction

logger = structlog.get_logger(__name__)


def find_duplicates(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Anomaly]:
    """One anomaly per (date, amount, description) group with 2+ members."""
    groups = group_by(transactions, lambda t: (t.date, t.amount, t.description))

    anomalies = []
    for (day, amount, description), group in groups.items():
        if len(group) < 2:
            continue
        anomalies.append(Anomaly(
            id=f"duplicate-{group[0].id}",
            type=AnomalyType.DUPLICATE,
            severity=Severity.MEDIUM,
            title="Possible duplicate transactions",
            description=(
                f"Found {len(group)} transactions of "
                f"{format_currency(amount, settings.currency_symbol)} "
                f"on {day.isoformat()} described as '{description}'."
            ),
            transactions=group,
            suggested_action="Review these transactions and delete any that were recorded twice.",
            detected_at=now,
        ))
    return anomalies


def find_unusual_spending(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Anomaly]:
    """
    Expenses strictly above mean + k * population stddev, collected into a
    single anomaly. Needs a minimum number of expenses to be meaningful.
    """
    expenses = [t for t in transactions if t.is_expense]
    if len(expenses) < settings.unusual_spending_min_expenses:
        return []

    amounts = [t.amount for t in expenses]
    average = mean(amounts)
    threshold = average + settings.unusual_spending_stddev_multiplier * population_stddev(amounts)

    unusual = [t for t in expenses if t.amount > threshold]
    if not unusual:
        return []

    symbol = settings.currency_symbol
    return [Anomaly(
        id=f"unusual-spending-{now.date().isoformat()}",
        type=AnomalyType.UNUSUAL_SPENDING,
        severity=Severity.MEDIUM,
        title="Unusual spending detected",
        description=(
            f"{len(unusual)} expense(s) are well above your typical expense of "
            f"{format_currency(average, symbol)} "
            f"(threshold {format_currency(threshold, symbol)})."
        ),
        transactions=unusual,
        suggested_action="Check that these expenses are legitimate and correctly categorized.",
        detected_at=now,
    )]


def find_large_transactions(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Anomaly]:
    """Income or expenses strictly above the large-transaction threshold."""
    large = [t for t in transactions if t.amount > settings.large_transaction_threshold]
    if not large:
        return []

    return [Anomaly(
        id=f"large-transactions-{now.date().isoformat()}",
        type=AnomalyType.LARGE_TRANSACTION,
        severity=Severity.LOW,
        title="Large transactions",
        description=(
            f"{len(large)} transaction(s) exceed "
            f"{format_currency(settings.large_transaction_threshold, settings.currency_symbol)}."
        ),
        transactions=large,
        suggested_action="Make sure large transactions have receipts or invoices attached.",
        detected_at=now,
    )]


def find_category_spikes(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Anomaly]:
    """
    Expense categories in the trailing window whose total is strictly above
    k times the mean category total. Needs a minimum number of distinct
    categories, otherwise the mean says nothing.
    """
    today: date = now.date()
    start, end = trailing_window(today, settings.history_window_days)
    recent = [t for t in transactions if t.is_expense and in_window(t.date, start, end)]

    totals = sum_by_category(recent)
    if len(totals) < settings.category_spike_min_categories:
        return []

    average = mean(list(totals.values()))
    threshold = settings.category_spike_multiplier * average

    by_category = group_by(recent, lambda t: t.category)
    symbol = settings.currency_symbol

    anomalies = []
    for category, total in totals.items():
        if total <= threshold:
            continue
        anomalies.append(Anomaly(
            id=f"category-spike-{slugify(category)}",
            type=AnomalyType.CATEGORY_SPIKE,
            severity=Severity.MEDIUM,
            title=f"Spending spike in {category}",
            description=(
                f"You spent {format_currency(total, symbol)} on {category} in the last "
                f"{settings.history_window_days} days, more than "
                f"{settings.category_spike_multiplier}x the average category "
                f"({format_currency(average, symbol)})."
            ),
            transactions=by_category[category],
            suggested_action=f"Review recent {category} expenses to understand the increase.",
            detected_at=now,
        ))
    return anomalies


SCANS = (
    find_duplicates,
    find_unusual_spending,
    find_large_transactions,
    find_category_spikes,
)


def detect_anomalies(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: Optional[AnalysisSettings] = None,
) -> list[Anomaly]:
    """Run every scan and return the anomalies sorted by severity, highest first."""
    settings = settings or AnalysisSettings()

    anomalies: list[Anomaly] = []
    for scan in SCANS:
        anomalies.extend(scan(transactions, now, settings))

    logger.debug(
        "anomalies_detected",
        transactions=len(transactions),
        anomalies=len(anomalies),
    )
    return sorted(anomalies, key=lambda a: -SEVERITY_RANK[a.severity])


# =============================================================================
# EXTENDED SCANS - not part of detect_anomalies
# =============================================================================

def _source(t: Transaction) -> str:
    return t.description or "Unknown"


def find_income_spikes(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Anomaly]:
    """
    Income sources whose average payment in the trailing window is well
    above their average over the preceding baseline period.

    Sources are told apart by description. Needs enough recent and
    baseline income to compare.
    """
    today: date = now.date()
    recent_start, _ = trailing_window(today, settings.history_window_days)
    baseline_start, _ = trailing_window(today, settings.income_spike_history_days)

    income = [t for t in transactions if t.is_income]
    recent = [t for t in income if in_window(t.date, recent_start, today)]
    baseline = [t for t in income if baseline_start <= t.date < recent_start]

    if (
        len(recent) < settings.income_spike_min_recent
        or len(baseline) < settings.income_spike_min_history
    ):
        return []

    baseline_by_source = group_by(baseline, _source)
    symbol = settings.currency_symbol

    anomalies = []
    for source, group in group_by(recent, _source).items():
        if source not in baseline_by_source:
            continue
        usual = mean([t.amount for t in baseline_by_source[source]])
        if usual == 0:
            continue
        average = mean([t.amount for t in group])
        ratio = average / usual
        if ratio <= settings.income_spike_multiplier:
            continue

        largest = sorted(group, key=lambda t: -t.amount)[:settings.income_spike_max_listed]
        anomalies.append(Anomaly(
            id=f"income-spike-{slugify(source)}",
            type=AnomalyType.INCOME_SPIKE,
            severity=(
                Severity.HIGH if ratio > settings.income_spike_high_multiplier
                else Severity.MEDIUM
            ),
            title=f"Unusually high income from {source}",
            description=(
                f"Payments from {source} average {format_currency(average, symbol)}, "
                f"{ratio:.1f}x the usual {format_currency(usual, symbol)}."
            ),
            transactions=largest,
            suggested_action="Verify this income matches what you invoiced.",
            detected_at=now,
        ))
    return anomalies


def find_card_testing(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Anomaly]:
    """
    Several small charges at one merchant within the last couple of days,
    the usual pattern of someone testing a stolen card.
    """
    today: date = now.date()
    start = today - timedelta(days=settings.card_testing_window_days - 1)

    small = [
        t for t in transactions
        if t.is_expense
        and t.amount < settings.card_testing_max_amount
        and in_window(t.date, start, today)
    ]

    anomalies = []
    for merchant, group in group_by(small, _source).items():
        if len(group) < settings.card_testing_min_count:
            continue
        anomalies.append(Anomaly(
            id=f"card-testing-{slugify(merchant)}",
            type=AnomalyType.CARD_TESTING,
            severity=Severity.HIGH,
            title=f"Possible card testing at {merchant}",
            description=(
                f"{len(group)} charges under "
                f"{format_currency(settings.card_testing_max_amount, settings.currency_symbol)} "
                f"were made at {merchant} in the last "
                f"{settings.card_testing_window_days} days."
            ),
            transactions=group,
            suggested_action="If you do not recognise these charges, contact your bank immediately.",
            detected_at=now,
        ))
    return anomalies


def find_unusual_timing(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Anomaly]:
    """
    Transactions that fall on a weekday their category rarely uses.

    A weekday is typical for a category when it holds strictly more than
    a set share of the category's transactions. Categories where no day,
    or every day, is typical have no pattern to break.
    """
    anomalies = []
    for category, group in group_by(transactions, lambda t: t.category).items():
        if len(group) < settings.timing_min_transactions:
            continue

        counts = [0] * 7
        for t in group:
            counts[t.date.weekday()] += 1

        cutoff = len(group) * settings.timing_typical_day_share
        typical = {day for day, n in enumerate(counts) if n > cutoff}
        if not typical or len(typical) == 7:
            continue

        for t in group:
            if t.date.weekday() in typical:
                continue
            anomalies.append(Anomaly(
                id=f"unusual-timing-{t.id}",
                type=AnomalyType.UNUSUAL_TIMING,
                severity=Severity.LOW,
                title=f"Unusual timing for {category}",
                description=(
                    f"A {category} transaction of "
                    f"{format_currency(t.amount, settings.currency_symbol)} "
                    f"was recorded on a {t.date.strftime('%A')}, which is unusual for this category."
                ),
                transactions=[t],
                suggested_action="Check that this transaction was expected on this day.",
                detected_at=now,
            ))
    return anomalies


EXTENDED_SCANS = (
    find_income_spikes,
    find_card_testing,
    find_unusual_timing,
)


def detect_extended_anomalies(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: Optional[AnalysisSettings] = None,
) -> list[Anomaly]:
    """
    Run the extended scans (income spikes, card testing, unusual timing)
    and return their anomalies sorted by severity, highest first.
    """
    settings = settings or AnalysisSettings()

    anomalies: list[Anomaly] = []
    for scan in EXTENDED_SCANS:
        anomalies.extend(scan(transactions, now, settings))

    logger.debug(
        "extended_anomalies_detected",
        transactions=len(transactions),
        anomalies=len(anomalies),
    )
    return sorted(anomalies, key=lambda a: -SEVERITY_RANK[a.severity])
