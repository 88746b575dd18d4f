"""
Tests for the views built on the finance core: list filtering and
sorting, budget status and AI context strings.
"""

import pytest

from burnrate.finance import (
    budget_status,
    build_advisor_briefing,
    build_briefing_prompt,
    build_planner_context,
    build_planner_prompt,
    build_welcome_summary,
    filter_expenses,
    sort_expenses,
    top_expenses,
)
from burnrate.finance.context import round_half_up
from burnrate.models import (
    BudgetLevel,
    Expense,
    Frequency,
    SortMode,
    find_currency,
)


@pytest.fixture
def ledger():
    return [
        Expense(id="1", category="Housing", name="Rent", amount=1000, frequency="monthly"),
        Expense(id="2", category="Food", name="Coffee", amount=5, frequency="daily"),
        Expense(id="3", category="Software", name="Annual Suite", amount=600, frequency="yearly"),
        Expense(id="4", category="Food", name="Groceries", amount=100, frequency="weekly"),
        Expense(id="5", category="Gifts", name="Wedding Gift", amount=250, frequency="one-time", is_recurring=False),
    ]


@pytest.fixture
def usd():
    return find_currency("USD")


class TestFilterExpenses:
    """Tests for filter_expenses."""

    def test_no_filters_keeps_everything(self, ledger):
        assert filter_expenses(ledger) == ledger

    def test_search_matches_name_case_insensitively(self, ledger):
        assert [e.id for e in filter_expenses(ledger, search="COFF")] == ["2"]

    def test_search_matches_category(self, ledger):
        assert [e.id for e in filter_expenses(ledger, search="food")] == ["2", "4"]

    def test_frequency_filter(self, ledger):
        assert [e.id for e in filter_expenses(ledger, frequency="weekly")] == ["4"]
        assert [e.id for e in filter_expenses(ledger, frequency=Frequency.ONE_TIME)] == ["5"]

    def test_all_keeps_every_frequency(self, ledger):
        assert filter_expenses(ledger, frequency="all") == ledger

    def test_unknown_frequency_matches_nothing(self, ledger):
        assert filter_expenses(ledger, frequency="fortnightly") == []

    def test_unknown_frequency_matches_same_stored_string(self, ledger):
        odd = Expense(id="6", category="Pets", name="Grooming", amount=30, frequency="fortnightly")
        assert filter_expenses(ledger + [odd], frequency="fortnightly") == [odd]

    def test_filters_combine(self, ledger):
        assert filter_expenses(ledger, search="food", frequency="daily") == [ledger[1]]

    def test_no_match(self, ledger):
        assert filter_expenses(ledger, search="yacht") == []


class TestSortExpenses:
    """Tests for sort_expenses."""

    def test_highest_uses_monthly_value(self, ledger):
        # Rent 1000, Groceries 434.5, Coffee 152.2, Suite 50, Gift 0
        assert [e.id for e in sort_expenses(ledger, SortMode.HIGHEST)] == ["1", "4", "2", "3", "5"]

    def test_lowest(self, ledger):
        assert [e.id for e in sort_expenses(ledger, "lowest")] == ["5", "3", "2", "4", "1"]

    def test_alphabetical(self, ledger):
        names = [e.name for e in sort_expenses(ledger, SortMode.A_Z)]
        assert names == ["Annual Suite", "Coffee", "Groceries", "Rent", "Wedding Gift"]

    def test_by_category_is_stable(self, ledger):
        ids = [e.id for e in sort_expenses(ledger, "category")]
        assert ids == ["2", "4", "5", "1", "3"]

    def test_does_not_mutate_input(self, ledger):
        before = list(ledger)
        sort_expenses(ledger, SortMode.LOWEST)
        assert ledger == before

    def test_unknown_mode_raises(self, ledger):
        with pytest.raises(ValueError):
            sort_expenses(ledger, "random")


class TestTopExpenses:
    """Tests for top_expenses."""

    def test_ranks_by_raw_amount(self, ledger):
        assert [e.id for e in top_expenses(ledger, 3)] == ["1", "3", "5"]

    def test_n_larger_than_ledger(self, ledger):
        assert len(top_expenses(ledger, 50)) == len(ledger)

    def test_zero(self, ledger):
        assert top_expenses(ledger, 0) == []


class TestBudgetStatus:
    """Tests for budget_status."""

    def test_safe(self):
        status = budget_status(2500, 5000)
        assert status.progress_pct == pytest.approx(50)
        assert status.level == BudgetLevel.SAFE
        assert status.is_over_budget is False
        assert status.headroom == pytest.approx(2500)

    def test_warning_above_85_percent(self):
        status = budget_status(4300, 5000)
        assert status.level == BudgetLevel.WARNING
        assert status.is_over_budget is False

    def test_below_threshold_is_safe(self):
        assert budget_status(4000, 5000).level == BudgetLevel.SAFE

    def test_exactly_at_budget_is_not_over(self):
        status = budget_status(5000, 5000)
        assert status.is_over_budget is False
        assert status.progress_pct == pytest.approx(100)

    def test_over_budget_caps_progress(self):
        status = budget_status(6000, 5000)
        assert status.progress_pct == 100
        assert status.is_over_budget is True
        assert status.level == BudgetLevel.OVER
        assert status.headroom == pytest.approx(-1000)

    def test_zero_budget(self):
        assert budget_status(0, 0).progress_pct == 0
        assert budget_status(0, 0).level == BudgetLevel.SAFE
        assert budget_status(10, 0).progress_pct == 100
        assert budget_status(10, 0).level == BudgetLevel.OVER


class TestContextBuilders:
    """Tests for the AI context strings."""

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2
        assert round_half_up(-2.5) == -2

    def test_planner_context(self, ledger, usd):
        context = build_planner_context(ledger, usd)
        assert context == (
            "Cur:USD|Burn:1637"
            "|Cats:Housing:1000,Food:587,Software:50"
            "|Top5:Rent:1000,Annual Suite:600,Wedding Gift:250,Groceries:100,Coffee:5"
            "|Count:5"
        )

    def test_planner_context_empty_ledger(self, usd):
        assert build_planner_context([], usd) == "Cur:USD|Burn:0|Cats:|Top5:|Count:0"

    def test_planner_prompt(self):
        prompt = build_planner_prompt("Cur:USD|Burn:0", "  Save for a house ")
        assert prompt == (
            "Data[Cur:USD|Burn:0] Goal[Save for a house] "
            "Task:Strict financial roadmap. Brevity:High. Output:Markdown."
        )

    def test_briefing_prompt_extends_planner_prompt(self):
        planner = build_planner_prompt("ctx", "goal")
        briefing = build_briefing_prompt(planner)
        assert briefing.startswith(planner)
        assert "2-sentence ruthless executive summary" in briefing

    def test_advisor_briefing_under_budget(self, ledger, usd):
        briefing = build_advisor_briefing(ledger, usd, 5000)
        assert "LIVE DATA FEED" in briefing
        assert "Monthly Burn Rate: 1637" in briefing
        assert "Budget Cap: 5000" in briefing
        assert "SAFE: Under budget by 3363" in briefing
        assert "Total Data Points: 5" in briefing

    def test_advisor_briefing_over_budget(self, ledger, usd):
        briefing = build_advisor_briefing(ledger, usd, 1000)
        assert "CRITICAL: OVER BUDGET by 637" in briefing

    def test_welcome_summary(self, ledger, usd):
        assert build_welcome_summary(ledger, usd) == (
            "Welcome to Burnrate. Your calculated monthly burn is $1637. "
            "You are tracking 5 distinct data points. Stay sharp."
        )
