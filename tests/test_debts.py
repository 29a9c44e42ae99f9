"""Tests for borrow/lend debts."""
from tallybook.config import DEBT_CATEGORY
from tallybook.models import CategoryType, DebtType


class TestAddDebt:
    def test_borrowing_into_account_is_income(self, repo, account_id, balance_of):
        cash = account_id("Cash")

        debt_id = repo.add_debt(500, "Rent help", DebtType.BORROWED, None, "Rahim", cash)

        assert balance_of(cash) == 500
        txn = repo.get_transactions()[0]
        assert txn.category_name == DEBT_CATEGORY
        assert txn.category_type == CategoryType.INCOME
        assert txn.note == "Debt: Borrowed from Rahim - Rent help"
        assert repo.get_debt_by_id(debt_id).amount == 500

    def test_lending_from_account_is_expense(self, repo, account_id, balance_of):
        cash = account_id("Cash")

        repo.add_debt(200, None, DebtType.LENT, None, "Karim", cash)

        assert balance_of(cash) == -200
        assert repo.get_transactions()[0].note == "Debt: Lent to Karim"

    def test_without_account_moves_no_money(self, repo):
        repo.add_debt(200, None, DebtType.LENT, None, "Karim")

        assert repo.count_transactions() == 0
        assert len(repo.get_debts()) == 1

    def test_ordered_by_due_date(self, repo, at):
        repo.add_debt(1, None, DebtType.LENT, at(2024, 3, 1), "Late")
        repo.add_debt(1, None, DebtType.LENT, at(2024, 1, 1), "Early")

        assert [d.contact_name for d in repo.get_debts()] == ["Early", "Late"]


class TestSettleDebt:
    def test_repaying_borrowed_debt_is_expense(self, repo, account_id, balance_of):
        cash = account_id("Cash")
        debt_id = repo.add_debt(500, None, DebtType.BORROWED, None, "Rahim", cash)

        assert repo.mark_debt_as_paid(debt_id, cash)

        assert balance_of(cash) == 0
        assert repo.get_debt_by_id(debt_id).is_paid
        settlement = repo.get_transactions()[0]
        assert settlement.category_type == CategoryType.EXPENSE
        assert settlement.note == "Debt Repayment: Paid back to Rahim"

    def test_collecting_lent_debt_is_income(self, repo, account_id, balance_of):
        bank = account_id("Bank")
        debt_id = repo.add_debt(300, None, DebtType.LENT, None, "Karim")

        repo.mark_debt_as_paid(debt_id, bank)

        assert balance_of(bank) == 300
        assert repo.get_transactions()[0].note == "Debt Repayment: Received from Karim"

    def test_without_account_only_flags(self, repo):
        debt_id = repo.add_debt(300, None, DebtType.LENT, None, "Karim")

        repo.mark_debt_as_paid(debt_id)

        assert repo.get_debt_by_id(debt_id).is_paid
        assert repo.count_transactions() == 0

    def test_settling_twice_posts_once(self, repo, account_id, balance_of):
        cash = account_id("Cash")
        debt_id = repo.add_debt(300, None, DebtType.LENT, None, "Karim")

        assert repo.mark_debt_as_paid(debt_id, cash)
        assert repo.mark_debt_as_paid(debt_id, cash) is False

        assert balance_of(cash) == 300
        assert repo.count_transactions() == 1

    def test_missing_debt_is_noop(self, repo):
        assert repo.mark_debt_as_paid(9999) is False

    def test_debt_categories_are_idempotent(self, repo, account_id):
        cash = account_id("Cash")
        for _ in range(3):
            debt_id = repo.add_debt(10, None, DebtType.BORROWED, None, "A", cash)
            repo.mark_debt_as_paid(debt_id, cash)

        debt_categories = [c for c in repo.get_categories() if c.name == DEBT_CATEGORY]
        assert len(debt_categories) == 2


class TestDeleteDebt:
    def test_keeps_transactions(self, repo, account_id, balance_of):
        cash = account_id("Cash")
        debt_id = repo.add_debt(500, None, DebtType.BORROWED, None, "Rahim", cash)

        assert repo.delete_debt(debt_id)

        assert repo.get_debt_by_id(debt_id) is None
        assert repo.count_transactions() == 1
        assert balance_of(cash) == 500
