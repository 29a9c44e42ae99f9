"""Tests for transaction posting, reversal and transfers."""
import sqlite3

import pytest

from tallybook.config import TRANSFER_CATEGORY
from tallybook.models import AllocationInput, CategoryType, DebtType, ItemInput, PendingDueInfo


class TestAddTransaction:
    """Adding transactions and their balance effects."""

    def test_expense_debits_account(self, repo, at, account_id, category_id, balance_of):
        cash = account_id("Cash")

        txn_id = repo.add_transaction(300, at(2024, 1, 10), category_id("Groceries"), "Rice", account_id=cash)

        assert isinstance(txn_id, int)
        assert balance_of(cash) == -300

    def test_income_credits_account(self, repo, at, account_id, category_id, balance_of):
        bank = account_id("Bank")

        repo.add_transaction(
            5000, at(2024, 1, 1), category_id("Salary", CategoryType.INCOME), account_id=bank
        )

        assert balance_of(bank) == 5000

    def test_amount_is_rounded_half_up(self, repo, at, account_id, category_id, balance_of):
        cash = account_id("Cash")

        txn_id = repo.add_transaction(99.5, at(2024, 1, 10), category_id("Groceries"), account_id=cash)

        assert repo.get_transaction_by_id(txn_id).amount == 100
        assert balance_of(cash) == -100

    def test_without_account_moves_no_money(self, repo, at, category_id):
        before = {a.id: a.balance for a in repo.get_accounts()}

        repo.add_transaction(300, at(2024, 1, 10), category_id("Groceries"))

        assert {a.id: a.balance for a in repo.get_accounts()} == before

    def test_overdraft_is_allowed(self, repo, at, account_id, category_id, balance_of):
        cash = account_id("Cash")
        repo.update_account(cash, "Cash", "Cash", 100)

        repo.add_transaction(1000, at(2024, 1, 10), category_id("Housing"), account_id=cash)

        assert balance_of(cash) == -900
        assert not repo.can_cover(cash, 1)

    def test_items_are_stored(self, repo, at, account_id, category_id):
        items = [
            ItemInput(name="Rice", quantity=2, unit="kg", price_per_unit=80),
            ItemInput(name="Oil", quantity=1, unit="l", price_per_unit=140),
        ]

        txn_id = repo.add_transaction(
            300, at(2024, 1, 10), category_id("Groceries"), items=items, account_id=account_id("Cash")
        )

        stored = repo.get_transaction_items(txn_id)
        assert [i.name for i in stored] == ["Rice", "Oil"]
        assert stored[0].price_per_unit == 80
        assert repo.get_transaction_by_id(txn_id).items == stored

    def test_split_allocations(self, repo, at, account_id, category_id, balance_of):
        cash, bank = account_id("Cash"), account_id("Bank")

        txn_id = repo.add_transaction(
            1000,
            at(2024, 1, 10),
            category_id("Housing"),
            account_id=cash,
            allocations=[AllocationInput(cash, 600), AllocationInput(bank, 400)],
        )

        txn = repo.get_transaction_by_id(txn_id)
        assert txn.account_id is None
        assert txn.account_name is None
        assert [(a.account_id, a.amount) for a in txn.allocations] == [(cash, 600), (bank, 400)]
        assert balance_of(cash) == -600
        assert balance_of(bank) == -400

    def test_missing_category_has_no_balance_effect(self, repo, at, account_id, balance_of):
        cash = account_id("Cash")

        txn_id = repo.add_transaction(300, at(2024, 1, 10), None, account_id=cash)

        assert repo.get_transaction_by_id(txn_id) is not None
        assert balance_of(cash) == 0


class TestPartialPayment:
    """A partly paid bill records the remainder as a borrowed debt."""

    def test_pending_remainder_becomes_debt(self, repo, at, account_id, category_id, balance_of):
        cash = account_id("Cash")
        due = at(2024, 2, 1)

        txn_id = repo.add_transaction(
            1000,
            at(2024, 1, 10),
            category_id("Groceries"),
            "Monthly shop",
            account_id=cash,
            pending_due=PendingDueInfo(amount=400, contact_name="Shop", due_date=due),
        )

        assert repo.get_transaction_by_id(txn_id).amount == 600
        assert balance_of(cash) == -600

        debts = repo.get_debts()
        assert len(debts) == 1
        debt = debts[0]
        assert debt.type == DebtType.BORROWED
        assert debt.amount == 400
        assert debt.transaction_id == txn_id
        assert debt.contact_name == "Shop"
        assert debt.due_date == due
        assert debt.description == "Pending: Monthly shop"
        assert not debt.is_paid

    def test_zero_pending_creates_no_debt(self, repo, at, account_id, category_id):
        repo.add_transaction(
            1000,
            at(2024, 1, 10),
            category_id("Groceries"),
            account_id=account_id("Cash"),
            pending_due=PendingDueInfo(amount=0, contact_name="Shop"),
        )

        assert repo.get_debts() == []

    def test_deleting_transaction_detaches_debt(self, repo, at, account_id, category_id):
        txn_id = repo.add_transaction(
            1000,
            at(2024, 1, 10),
            category_id("Groceries"),
            account_id=account_id("Cash"),
            pending_due=PendingDueInfo(amount=400, contact_name="Shop"),
        )

        repo.delete_transaction(txn_id)

        debts = repo.get_debts()
        assert len(debts) == 1
        assert debts[0].transaction_id is None


class TestDeleteTransaction:
    """Deletion reverses the balance effect exactly."""

    def test_reverses_single_account(self, repo, at, account_id, category_id, balance_of):
        cash = account_id("Cash")
        repo.update_account(cash, "Cash", "Cash", 750)
        txn_id = repo.add_transaction(300, at(2024, 1, 10), category_id("Groceries"), account_id=cash)

        assert repo.delete_transaction(txn_id)

        assert balance_of(cash) == 750
        assert repo.get_transaction_by_id(txn_id) is None

    def test_reverses_income(self, repo, at, account_id, category_id, balance_of):
        bank = account_id("Bank")
        txn_id = repo.add_transaction(
            5000, at(2024, 1, 1), category_id("Salary", CategoryType.INCOME), account_id=bank
        )

        repo.delete_transaction(txn_id)

        assert balance_of(bank) == 0

    def test_reverses_allocations(self, repo, at, account_id, category_id, balance_of):
        cash, bank = account_id("Cash"), account_id("Bank")
        txn_id = repo.add_transaction(
            1000,
            at(2024, 1, 10),
            category_id("Housing"),
            allocations=[AllocationInput(cash, 700), AllocationInput(bank, 300)],
        )

        repo.delete_transaction(txn_id)

        assert balance_of(cash) == 0
        assert balance_of(bank) == 0
        assert repo.get_transaction_allocations(txn_id) == []

    def test_cascades_items(self, repo, at, account_id, category_id):
        txn_id = repo.add_transaction(
            160,
            at(2024, 1, 10),
            category_id("Groceries"),
            items=[ItemInput("Rice", 2, "kg", 80)],
            account_id=account_id("Cash"),
        )

        repo.delete_transaction(txn_id)

        assert repo.get_transaction_items(txn_id) == []

    def test_missing_transaction_is_noop(self, repo):
        assert repo.delete_transaction(9999) is False


class TestTransfer:
    """Transfers move money between accounts through two legs."""

    def test_moves_money(self, repo, account_id, balance_of):
        cash, bank = account_id("Cash"), account_id("Bank")
        repo.update_account(bank, "Bank", "Bank", 1000)

        out_id, in_id = repo.transfer_funds(bank, cash, 250)

        assert balance_of(bank) == 750
        assert balance_of(cash) == 250
        assert repo.count_transactions() == 2

        out_leg = repo.get_transaction_by_id(out_id)
        in_leg = repo.get_transaction_by_id(in_id)
        assert out_leg.signed_amount + in_leg.signed_amount == 0
        assert out_leg.note == "Transfer to Cash"
        assert in_leg.note == "Transfer from Bank"

    def test_auto_categories_are_idempotent(self, repo, account_id):
        cash, bank = account_id("Cash"), account_id("Bank")

        for _ in range(3):
            repo.transfer_funds(cash, bank, 10)

        transfer = [c for c in repo.get_categories() if c.name == TRANSFER_CATEGORY]
        assert sorted(c.type.value for c in transfer) == ["expense", "income"]

    def test_transfer_leaves_total_unchanged(self, repo, account_id):
        before = repo.get_balance().balance

        repo.transfer_funds(account_id("Cash"), account_id("Mobile Money"), 500)

        assert repo.get_balance().balance == before

    def test_deleting_one_leg_reverses_only_that_leg(self, repo, account_id, balance_of):
        cash, bank = account_id("Cash"), account_id("Bank")
        out_id, _ = repo.transfer_funds(cash, bank, 100)

        repo.delete_transaction(out_id)

        assert balance_of(cash) == 0
        assert balance_of(bank) == 100


class TestReads:
    def test_newest_first_with_paging(self, repo, at, account_id, category_id):
        groceries = category_id("Groceries")
        for day in (1, 3, 2):
            repo.add_transaction(10 * day, at(2024, 1, day), groceries, f"day {day}")

        notes = [t.note for t in repo.get_transactions()]
        assert notes == ["day 3", "day 2", "day 1"]
        assert [t.note for t in repo.get_transactions(limit=1, offset=1)] == ["day 2"]

    def test_range_is_inclusive(self, repo, at, category_id):
        groceries = category_id("Groceries")
        for day in (1, 2, 3):
            repo.add_transaction(10, at(2024, 1, day), groceries, f"day {day}")

        found = repo.get_transactions_by_range(at(2024, 1, 2), at(2024, 1, 3))
        assert [t.note for t in found] == ["day 3", "day 2"]

    def test_view_has_display_fields(self, repo, at, account_id, category_id):
        txn_id = repo.add_transaction(
            50, at(2024, 1, 1), category_id("Transport"), account_id=account_id("Cash")
        )

        txn = repo.get_transaction_by_id(txn_id)
        assert txn.category_name == "Transport"
        assert txn.category_type == CategoryType.EXPENSE
        assert txn.account_name == "Cash"
        assert txn.signed_amount == -50


class TestReferentialIntegrity:
    def test_cannot_delete_account_in_use(self, repo, at, account_id, category_id):
        cash = account_id("Cash")
        repo.add_transaction(10, at(2024, 1, 1), category_id("Groceries"), account_id=cash)

        with pytest.raises(sqlite3.IntegrityError):
            repo.delete_account(cash)
        assert repo.get_account_by_id(cash) is not None

    def test_cannot_delete_category_in_use(self, repo, at, category_id):
        groceries = category_id("Groceries")
        repo.add_transaction(10, at(2024, 1, 1), groceries)

        with pytest.raises(sqlite3.IntegrityError):
            repo.delete_category(groceries)

    def test_unused_account_can_be_deleted(self, repo):
        account = repo.add_account("Wallet", "Cash", 20)

        assert repo.delete_account(account.id)
        assert repo.get_account_by_id(account.id) is None

    def test_category_type_is_fixed_once_used(self, repo, at, category_id):
        groceries = category_id("Groceries")
        repo.add_transaction(10, at(2024, 1, 1), groceries)

        with pytest.raises(ValueError):
            repo.update_category(groceries, "Groceries", CategoryType.INCOME)

        assert repo.get_category_by_id(groceries).type == CategoryType.EXPENSE
        assert repo.update_category(groceries, "Food", CategoryType.EXPENSE)

    def test_unused_category_can_change_type(self, repo):
        category = repo.add_category("Refunds", CategoryType.EXPENSE)

        assert repo.update_category(category.id, "Refunds", CategoryType.INCOME)
        assert repo.get_category_by_id(category.id).type == CategoryType.INCOME


class TestAtomicity:
    """A failing step undoes every earlier step of the same operation."""

    def test_transfer_to_missing_account_rolls_back(self, repo, account_id, balance_of):
        cash = account_id("Cash")

        with pytest.raises(sqlite3.IntegrityError):
            repo.transfer_funds(cash, 9999, 100)

        assert balance_of(cash) == 0
        assert repo.count_transactions() == 0

    def test_allocation_to_missing_account_rolls_back(
        self, repo, at, account_id, category_id, balance_of
    ):
        cash = account_id("Cash")

        with pytest.raises(sqlite3.IntegrityError):
            repo.add_transaction(
                900,
                at(2024, 1, 20),
                category_id("Housing"),
                "Rent",
                items=[ItemInput("Rent", 1, "month", 900)],
                allocations=[AllocationInput(cash, 500), AllocationInput(9999, 400)],
            )

        assert balance_of(cash) == 0
        assert repo.count_transactions() == 0
        counts = repo.count_rows()
        assert counts["transaction_items"] == 0
        assert counts["transaction_allocations"] == 0
