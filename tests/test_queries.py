"""Tests for balance totals and reports."""
from tallybook.models import AllocationInput, CategoryType, DebtType, Frequency, ItemInput
from tallybook.services import plan_loan

DAY_MS = 24 * 60 * 60 * 1000


def expected_balances(repo, initial: dict) -> dict:
    """Initial balances plus the signed effect of every stored transaction."""
    balances = dict(initial)
    for txn in repo.get_transactions(limit=10000):
        full = repo.get_transaction_by_id(txn.id)
        sign = full.category_type.sign if full.category_type else 0
        if full.allocations:
            for alloc in full.allocations:
                balances[alloc.account_id] += sign * alloc.amount
        elif full.account_id:
            balances[full.account_id] += sign * full.amount
    return balances


class TestBalanceInvariant:
    def test_balances_match_history(self, repo, at, account_id, category_id):
        cash, bank, mobile = account_id("Cash"), account_id("Bank"), account_id("Mobile Money")
        repo.update_account(bank, "Bank", "Bank", 20000)
        initial = {a.id: a.balance for a in repo.get_accounts()}
        groceries = category_id("Groceries")

        keep = repo.add_transaction(
            5000, at(2024, 1, 1), category_id("Salary", CategoryType.INCOME), account_id=cash
        )
        drop = repo.add_transaction(
            900,
            at(2024, 1, 2),
            groceries,
            allocations=[AllocationInput(cash, 500), AllocationInput(mobile, 400)],
        )
        repo.add_transaction(300, at(2024, 1, 3), groceries, account_id=bank)
        repo.transfer_funds(bank, mobile, 1500, at(2024, 1, 4))
        debt_id = repo.add_debt(700, None, DebtType.LENT, None, "Karim", cash)
        repo.mark_debt_as_paid(debt_id, bank)

        plan = plan_loan("Car", 6000, 5, 2, at(2024, 1, 5), Frequency.MONTHLY)
        loan_id = repo.add_loan(plan.to_loan(), plan.installments, bank)
        repo.pay_installment(repo.get_loan_installments(loan_id)[0].id, cash)

        bill = repo.add_recurring_payment(250, "Phone", groceries, Frequency.MONTHLY, 5, at(2024, 1, 5))
        repo.pay_recurring_payment(bill, at(2024, 1, 5), mobile)

        repo.delete_transaction(drop)
        assert repo.get_transaction_by_id(keep) is not None

        expected = expected_balances(repo, initial)
        actual = {a.id: a.balance for a in repo.get_accounts()}
        assert actual == expected


class TestBalanceSummary:
    def test_totals(self, repo, at, account_id, category_id):
        cash, bank = account_id("Cash"), account_id("Bank")
        repo.update_account(bank, "Bank", "Bank", 1000)
        repo.add_transaction(
            5000, at(2024, 1, 1), category_id("Salary", CategoryType.INCOME), account_id=cash
        )
        repo.add_transaction(1200, at(2024, 1, 2), category_id("Housing"), account_id=cash)

        summary = repo.get_balance()

        assert summary.total_income == 5000
        assert summary.total_expense == 1200
        # Seed balance counts, income minus expense does not
        assert summary.balance == 1000 + 5000 - 1200

    def test_empty_ledger(self, repo):
        summary = repo.get_balance()

        assert summary.total_income == 0
        assert summary.total_expense == 0
        assert summary.balance == 0

    def test_account_balances(self, repo, account_id):
        repo.update_account(account_id("Cash"), "Cash", "Cash", 42)

        assert repo.get_account_balances()["Cash"] == 42


class TestReports:
    def test_item_consumption(self, repo, at, category_id):
        groceries = category_id("Groceries")
        repo.add_transaction(160, at(2024, 1, 2), groceries, items=[ItemInput("Rice", 2, "kg", 80)])
        repo.add_transaction(
            310,
            at(2024, 1, 9),
            groceries,
            items=[ItemInput("Rice", 3, "kg", 70), ItemInput("Oil", 1, "l", 100)],
        )
        repo.add_transaction(999, at(2024, 3, 1), groceries, items=[ItemInput("Rice", 50, "kg", 20)])

        report = repo.get_item_consumption_report(at(2024, 1, 1), at(2024, 1, 31))

        assert [(r.name, r.unit) for r in report] == [("Rice", "kg"), ("Oil", "l")]
        assert report[0].total_quantity == 5
        assert report[0].total_spent == 370

    def test_daily_trend_counts_expenses_only(self, repo, at, category_id):
        groceries = category_id("Groceries")
        repo.add_transaction(100, at(2024, 3, 5, 9), groceries)
        repo.add_transaction(50, at(2024, 3, 5, 18), groceries)
        repo.add_transaction(70, at(2024, 3, 7), groceries)
        repo.add_transaction(5000, at(2024, 3, 6), category_id("Salary", CategoryType.INCOME))

        trend = repo.get_daily_trend(at(2024, 3, 1, 0), at(2024, 3, 31, 23))

        assert [(p.label, p.expense) for p in trend] == [("05", 150), ("07", 70)]

    def test_monthly_trend(self, repo, at, category_id):
        groceries = category_id("Groceries")
        repo.add_transaction(100, at(2024, 1, 5), groceries)
        repo.add_transaction(200, at(2024, 3, 5), groceries)
        repo.add_transaction(300, at(2024, 3, 20), groceries)

        trend = repo.get_monthly_trend_by_range(at(2024, 1, 1), at(2024, 12, 31))

        assert [(p.label, p.expense) for p in trend] == [("2024-01", 100), ("2024-03", 500)]

    def test_spending_by_category(self, repo, at, category_id):
        repo.add_transaction(100, at(2024, 1, 5), category_id("Groceries"))
        repo.add_transaction(700, at(2024, 1, 6), category_id("Housing"))
        repo.add_transaction(50, at(2024, 1, 7), category_id("Groceries"))

        spending = repo.get_spending_by_category(at(2024, 1, 1), at(2024, 1, 31))

        assert [(s.name, s.total) for s in spending] == [("Housing", 700), ("Groceries", 150)]


class TestUpcomingBills:
    def test_reminder_window(self, repo, at, category_id):
        housing = category_id("Housing")
        due = at(2024, 2, 10)
        inside = repo.add_recurring_payment(1, "Inside", housing, Frequency.MONTHLY, 10, due, 3)
        repo.add_recurring_payment(1, "Outside", housing, Frequency.MONTHLY, 10, due, 1)
        inactive = repo.add_recurring_payment(1, "Off", housing, Frequency.MONTHLY, 10, due, 5)
        repo.set_recurring_payment_active(inactive, False)

        bills = repo.get_upcoming_bills(now=due - 2 * DAY_MS)

        assert [b.id for b in bills] == [inside]

    def test_overdue_bill_is_listed(self, repo, at, category_id):
        repo.add_recurring_payment(
            1, "Late", category_id("Housing"), Frequency.MONTHLY, 1, at(2024, 1, 1), 0
        )

        assert len(repo.get_upcoming_bills(now=at(2024, 1, 15))) == 1
