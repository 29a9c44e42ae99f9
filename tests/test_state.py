"""Tests for the application state snapshot."""
from tallybook.config import DEFAULT_CURRENCY, TRANSFER_CATEGORY
from tallybook.models import CategoryType, DebtType, Frequency
from tallybook.services import AppState, plan_loan


class TestAppState:
    def test_init_persists_default_currency(self, repo):
        state = AppState(repo).init()

        assert state.currency == DEFAULT_CURRENCY
        assert repo.get_setting("currency") == DEFAULT_CURRENCY

    def test_init_keeps_saved_currency(self, repo):
        repo.set_currency("€")

        assert AppState(repo).init().currency == "€"

    def test_refresh_loads_everything(self, repo, at, account_id, category_id):
        cash = account_id("Cash")
        state = AppState(repo).init()
        assert state.transactions == []

        repo.add_transaction(100, at(2024, 1, 1), category_id("Groceries"), account_id=cash)
        repo.add_debt(50, None, DebtType.LENT, None, "Karim")
        repo.add_recurring_payment(10, "Gym", category_id("Health"), Frequency.MONTHLY, 1, at(2024, 2, 1))
        plan = plan_loan("Bike", 1000, 0, 2, at(2024, 1, 1), Frequency.MONTHLY)
        repo.add_loan(plan.to_loan(), plan.installments)
        repo.transfer_funds(cash, account_id("Bank"), 10)
        state.refresh()

        assert len(state.transactions) == 3
        assert len(state.debts) == 1
        assert len(state.recurring_payments) == 1
        assert len(state.loans) == 1
        assert state.account_by_id(cash).balance == -110
        assert state.balance.total_expense == 110
        assert any(c.name == TRANSFER_CATEGORY for c in state.categories)

    def test_transaction_limit(self, repo, at, category_id):
        groceries = category_id("Groceries")
        for day in range(1, 6):
            repo.add_transaction(1, at(2024, 1, day), groceries)

        state = AppState(repo, transaction_limit=2).refresh()

        assert len(state.transactions) == 2

    def test_filter_transactions(self, repo, at, category_id):
        groceries = category_id("Groceries")
        for day in (1, 10, 20):
            repo.add_transaction(1, at(2024, 1, day), groceries, f"day {day}")
        state = AppState(repo).refresh()

        found = state.filter_transactions(at(2024, 1, 5), at(2024, 1, 15))

        assert [t.note for t in found] == ["day 10"]
        assert state.transactions == found

    def test_set_currency(self, repo):
        state = AppState(repo).init()

        state.set_currency("$")

        assert state.currency == "$"
        assert repo.get_currency() == "$"

    def test_category_lookup(self, repo, category_id):
        state = AppState(repo).refresh()
        salary = category_id("Salary", CategoryType.INCOME)

        assert state.category_by_id(salary).name == "Salary"
        assert state.category_by_id(9999) is None
