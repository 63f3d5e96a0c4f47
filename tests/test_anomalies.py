"""Tests for the anomaly detector."""

from decimal import Decimal

from finassist.analysis.anomalies import (
    detect_anomalies,
    detect_extended_anomalies,
    find_card_testing,
    find_category_spikes,
    find_duplicates,
    find_income_spikes,
    find_large_transactions,
    find_unusual_spending,
    find_unusual_timing,
)
from finassist.models import SEVERITY_RANK, AnomalyType, Severity


class TestDuplicates:
    """Same date, amount and description."""

    def test_pair_reported_once(self, txn, now, settings):
        """Test that a duplicated pair yields a single anomaly."""
        first = txn(amount="20", day=1, description="Coffee")
        second = txn(amount="20", day=1, description="Coffee")
        other = txn(amount="20", day=2, description="Coffee")

        anomalies = find_duplicates([first, second, other], now, settings)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.DUPLICATE
        assert anomalies[0].severity == Severity.MEDIUM
        assert anomalies[0].id == f"duplicate-{first.id}"
        assert anomalies[0].transactions == [first, second]

    def test_group_contains_every_member(self, txn, now, settings):
        """Test that every copy is listed in the duplicate anomaly."""
        copies = [txn(amount="75", day=3, description="Printer ink") for _ in range(3)]

        anomalies = find_duplicates(copies, now, settings)

        assert len(anomalies) == 1
        assert anomalies[0].transactions == copies

    def test_different_amount_is_not_a_duplicate(self, txn, now, settings):
        """Test that amounts must match exactly."""
        transactions = [
            txn(amount="20", day=1, description="Coffee"),
            txn(amount="21", day=1, description="Coffee"),
        ]
        assert find_duplicates(transactions, now, settings) == []


class TestLargeTransactions:
    """The large-transaction threshold is strict."""

    def test_exactly_threshold_is_not_large(self, txn, now, settings):
        """Test that an amount equal to the threshold is not flagged."""
        assert find_large_transactions([txn(amount="1000")], now, settings) == []

    def test_just_above_threshold_is_large(self, txn, now, settings):
        """Test that a cent over the threshold is flagged."""
        big = txn("income", "1000.01")

        anomalies = find_large_transactions([big, txn(amount="5")], now, settings)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.LARGE_TRANSACTION
        assert anomalies[0].severity == Severity.LOW
        assert anomalies[0].transactions == [big]


class TestUnusualSpending:
    """Expenses more than two standard deviations above the mean."""

    def _expenses(self, txn, n_small):
        small = [txn(amount="10", day=i, description=f"small {i}") for i in range(n_small)]
        outlier = txn(amount="1000", day=1, description="outlier")
        return small, outlier

    def test_outlier_flagged(self, txn, now, settings):
        """Test that a single outlier is reported."""
        small, outlier = self._expenses(txn, 9)

        anomalies = find_unusual_spending(small + [outlier], now, settings)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.UNUSUAL_SPENDING
        assert anomalies[0].transactions == [outlier]

    def test_needs_ten_expenses(self, txn, now, settings):
        """Test that fewer than ten expenses are not scanned."""
        small, outlier = self._expenses(txn, 8)
        assert find_unusual_spending(small + [outlier], now, settings) == []

    def test_uniform_spending_is_not_unusual(self, txn, now, settings):
        """Test that identical expenses never exceed the threshold."""
        expenses = [txn(amount="40", day=i, description=f"e{i}") for i in range(12)]
        assert find_unusual_spending(expenses, now, settings) == []


class TestCategorySpikes:
    """Recent category totals above twice the mean category total."""

    def test_spike_detected(self, txn, now, settings):
        """Test category spike detection."""
        transactions = [
            txn(amount="100", category="Software"),
            txn(amount="100", category="Utilities"),
            txn(amount="900", category="Marketing"),
        ]

        anomalies = find_category_spikes(transactions, now, settings)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.CATEGORY_SPIKE
        assert anomalies[0].id == "category-spike-marketing"
        assert anomalies[0].transactions == [transactions[2]]

    def test_needs_three_categories(self, txn, now, settings):
        """Test that two categories are not enough to compare."""
        transactions = [
            txn(amount="10", category="Software"),
            txn(amount="900", category="Marketing"),
        ]
        assert find_category_spikes(transactions, now, settings) == []

    def test_blank_category_id(self, txn, now, settings):
        """Test that blank and named categories share the same id scheme."""
        transactions = [
            txn(amount="100", category="Software"),
            txn(amount="100", category="Office Supplies"),
            txn(amount="900", category=""),
        ]

        anomalies = find_category_spikes(transactions, now, settings)

        assert [a.id for a in anomalies] == ["category-spike-uncategorized"]

    def test_only_recent_expenses_count(self, txn, now, settings):
        """Old expenses and income are left out of the totals."""
        transactions = [
            txn(amount="100", category="Software"),
            txn(amount="100", category="Utilities"),
            txn(amount="100", category="Marketing"),
            txn(amount="900", day=31, category="Marketing"),
            txn("income", "900", category="Marketing"),
        ]
        assert find_category_spikes(transactions, now, settings) == []


class TestDetectAnomalies:
    """Tests for the combined scan."""

    def test_empty_input(self, now):
        """Test that no transactions means no anomalies."""
        assert detect_anomalies([], now) == []

    def test_sorted_by_severity(self, txn, now):
        """Test that results are ordered by severity, highest first."""
        transactions = [
            txn(amount="20", day=1, category="Food", description="Coffee"),
            txn(amount="20", day=1, category="Food", description="Coffee"),
            txn("income", "5000", day=2, category="Sales"),
            txn(amount="100", day=3, category="Software"),
            txn(amount="900", day=4, category="Marketing"),
        ]

        anomalies = detect_anomalies(transactions, now)

        assert [a.type for a in anomalies] == [
            AnomalyType.DUPLICATE,
            AnomalyType.CATEGORY_SPIKE,
            AnomalyType.LARGE_TRANSACTION,
        ]
        ranks = [SEVERITY_RANK[a.severity] for a in anomalies]
        assert ranks == sorted(ranks, reverse=True)

    def test_stamped_with_reference_time(self, txn, now):
        """Test that detected_at is the reference time passed in."""
        anomalies = detect_anomalies([txn(amount="2500")], now)

        assert len(anomalies) == 1
        assert anomalies[0].detected_at == now

    def test_does_not_modify_input(self, txn, now):
        """Test that the input list is left untouched."""
        transactions = [txn(amount="1500"), txn(amount="20"), txn(amount="20")]
        snapshot = list(transactions)

        detect_anomalies(transactions, now)

        assert transactions == snapshot

    def test_description_includes_formatted_amount(self, txn, now):
        """Test currency formatting in descriptions."""
        anomalies = detect_anomalies(
            [txn(amount="1250", day=1, description="Laptop")] * 2, now
        )
        duplicate = next(a for a in anomalies if a.type == AnomalyType.DUPLICATE)
        assert "$1,250.00" in duplicate.description

    def test_large_threshold_is_configurable(self, txn, now, settings):
        """Test that settings override the large-transaction threshold."""
        settings = settings.model_copy(update={"large_transaction_threshold": Decimal("50")})
        anomalies = detect_anomalies([txn(amount="60")], now, settings)
        assert [a.type for a in anomalies] == [AnomalyType.LARGE_TRANSACTION]

    def test_coffee_recorded_twice(self, txn, now):
        """Two $50 'Coffee' expenses on the same day are one duplicate anomaly."""
        first = txn(amount="50", day=0, category="Meals", description="Coffee")
        second = txn(amount="50", day=0, category="Meals", description="Coffee")

        anomalies = detect_anomalies([first, second], now)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.DUPLICATE
        assert anomalies[0].severity == Severity.MEDIUM
        assert anomalies[0].transactions == [first, second]
        assert "$50.00" in anomalies[0].description
        assert "Coffee" in anomalies[0].description

    def test_deterministic(self, txn, now):
        """Test that identical input gives identical output."""
        transactions = [
            txn(amount="20", day=1, category="Food", description="Coffee"),
            txn(amount="20", day=1, category="Food", description="Coffee"),
            txn("income", "5000", day=2, category="Sales"),
            txn(amount="100", day=3, category="Software"),
            txn(amount="900", day=4, category="Marketing"),
        ]
        transactions += [txn(amount="15", day=i, description=f"misc {i}") for i in range(10)]

        first = detect_anomalies(transactions, now)
        second = detect_anomalies(list(transactions), now)

        assert first == second
        assert [a.id for a in first] == [a.id for a in second]


def baseline_income(txn, amount="100", source="Client A", n=30):
    """n payments from `source` between 31 and 60 days ago."""
    return [txn("income", amount, day=31 + i, description=source) for i in range(n)]


def payroll_on_fridays(txn, odd_day=4):
    """Nine Friday payroll runs and one on another day (default: Tuesday)."""
    fridays = [txn(amount="2000", day=1 + 7 * k, category="Payroll") for k in range(9)]
    return fridays, txn(amount="2000", day=odd_day, category="Payroll")


class TestIncomeSpikes:
    """Recent average payment per source against its baseline average."""

    def test_spike_detected(self, txn, now, settings):
        """Test a source paying well above its usual amount."""
        recent = [
            txn("income", amount, day=d + 1, description="Client A")
            for d, amount in enumerate(("215", "225", "235", "245", "255", "265"))
        ]

        anomalies = find_income_spikes(baseline_income(txn) + recent, now, settings)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.INCOME_SPIKE
        assert anomalies[0].severity == Severity.MEDIUM
        assert anomalies[0].id == "income-spike-client-a"
        assert [t.amount for t in anomalies[0].transactions] == [
            Decimal("265"), Decimal("255"), Decimal("245"), Decimal("235"), Decimal("225"),
        ]
        assert "2.4x" in anomalies[0].description

    def test_large_spike_is_high_severity(self, txn, now, settings):
        """Test that more than three times the usual amount is high severity."""
        recent = [txn("income", "400", day=d, description="Client A") for d in range(5)]

        anomalies = find_income_spikes(baseline_income(txn) + recent, now, settings)

        assert [a.severity for a in anomalies] == [Severity.HIGH]

    def test_exactly_double_is_not_a_spike(self, txn, now, settings):
        """Test that the ratio threshold is strict."""
        recent = [txn("income", "200", day=d, description="Client A") for d in range(5)]
        assert find_income_spikes(baseline_income(txn) + recent, now, settings) == []

    def test_new_source_is_ignored(self, txn, now, settings):
        """Test that sources without a baseline are skipped."""
        recent = [txn("income", "900", day=d, description="Client B") for d in range(5)]
        assert find_income_spikes(baseline_income(txn) + recent, now, settings) == []

    def test_needs_enough_baseline(self, txn, now, settings):
        """Test that 29 baseline payments are not enough."""
        recent = [txn("income", "400", day=d, description="Client A") for d in range(5)]
        assert find_income_spikes(baseline_income(txn, n=29) + recent, now, settings) == []

    def test_needs_enough_recent_income(self, txn, now, settings):
        """Test that four recent payments are not enough."""
        recent = [txn("income", "400", day=d, description="Client A") for d in range(4)]
        assert find_income_spikes(baseline_income(txn) + recent, now, settings) == []


class TestCardTesting:
    """Several small charges at one merchant within two days."""

    def test_small_charges_flagged(self, txn, now, settings):
        """Test three small charges today and yesterday."""
        charges = [
            txn(amount=amount, day=day, description="Gas Station")
            for amount, day in (("1.00", 0), ("2.50", 0), ("4.99", 1))
        ]

        anomalies = find_card_testing(charges, now, settings)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.CARD_TESTING
        assert anomalies[0].severity == Severity.HIGH
        assert anomalies[0].id == "card-testing-gas-station"
        assert anomalies[0].transactions == charges

    def test_two_charges_are_not_enough(self, txn, now, settings):
        """Test the minimum number of charges."""
        charges = [txn(amount="1", day=0, description="Gas Station") for _ in range(2)]
        assert find_card_testing(charges, now, settings) == []

    def test_older_charges_do_not_count(self, txn, now, settings):
        """Test that charges from two days ago fall outside the window."""
        charges = [
            txn(amount="1", day=0, description="Gas Station"),
            txn(amount="1", day=1, description="Gas Station"),
            txn(amount="1", day=2, description="Gas Station"),
        ]
        assert find_card_testing(charges, now, settings) == []

    def test_threshold_amount_is_not_small(self, txn, now, settings):
        """Test that the small-charge limit is strict."""
        charges = [txn(amount="50", day=0, description="Gas Station") for _ in range(3)]
        assert find_card_testing(charges, now, settings) == []

    def test_income_is_ignored(self, txn, now, settings):
        """Test that refunds and other income are not charges."""
        refunds = [txn("income", "1", day=0, description="Gas Station") for _ in range(3)]
        assert find_card_testing(refunds, now, settings) == []


class TestUnusualTiming:
    """Transactions on a weekday their category rarely uses."""

    def test_off_day_flagged(self, txn, now, settings):
        """Test a Tuesday payroll run among Friday ones."""
        fridays, tuesday = payroll_on_fridays(txn)

        anomalies = find_unusual_timing(fridays + [tuesday], now, settings)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.UNUSUAL_TIMING
        assert anomalies[0].severity == Severity.LOW
        assert anomalies[0].id == f"unusual-timing-{tuesday.id}"
        assert anomalies[0].transactions == [tuesday]
        assert "Tuesday" in anomalies[0].description

    def test_needs_ten_transactions(self, txn, now, settings):
        """Test that small categories are not profiled."""
        fridays, tuesday = payroll_on_fridays(txn)
        assert find_unusual_timing(fridays[:8] + [tuesday], now, settings) == []

    def test_every_day_typical_means_no_pattern(self, txn, now, settings):
        """Test a category spread evenly over the week."""
        spread = [txn(amount="5", day=d, category="Meals") for d in range(14)]
        assert find_unusual_timing(spread, now, settings) == []


class TestDetectExtendedAnomalies:
    """Tests for the combined extended scan."""

    def test_sorted_by_severity(self, txn, now):
        """Test that card testing comes before unusual timing."""
        fridays, tuesday = payroll_on_fridays(txn)
        charges = [txn(amount="1", day=0, description="Gas Station") for _ in range(3)]

        anomalies = detect_extended_anomalies(fridays + [tuesday] + charges, now)

        assert [a.type for a in anomalies] == [
            AnomalyType.CARD_TESTING,
            AnomalyType.UNUSUAL_TIMING,
        ]

    def test_not_part_of_default_scan(self, txn, now):
        """Test that detect_anomalies never runs the extended scans."""
        fridays, tuesday = payroll_on_fridays(txn)
        charges = [txn(amount=amount, day=0, description="Gas Station") for amount in "123"]

        default_types = {a.type for a in detect_anomalies(fridays + [tuesday] + charges, now)}

        assert AnomalyType.CARD_TESTING not in default_types
        assert AnomalyType.UNUSUAL_TIMING not in default_types

    def test_empty_input(self, now):
        """Test that no transactions means no anomalies."""
        assert detect_extended_anomalies([], now) == []
