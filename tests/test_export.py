from datetime import datetime
from types import SimpleNamespace

from app.utils.export import EXPENSE_COLUMNS, INCOME_COLUMNS, iter_csv, summary_rows, transaction_rows


def test_iter_csv_writes_header_then_rows():
    incomes = [SimpleNamespace(date=datetime(2025, 3, 4, 15, 0), description="Gutter clean",
                               amount=180.0, category="service", source="Manual")]
    lines = "".join(iter_csv(incomes, INCOME_COLUMNS)).splitlines()
    assert lines == ["date,description,amount,category,source", "2025-03-04,Gutter clean,180.0,service,Manual"]


def test_iter_csv_neutralises_formulas():
    expense = SimpleNamespace(date=datetime(2025, 3, 4), description="=HYPERLINK(\"http://evil\")", amount=5.0,
                              category="other", payment_method="cash", is_recurring=False, notes="@SUM(A1)")
    row = "".join(iter_csv([expense], EXPENSE_COLUMNS)).splitlines()[1]
    assert row.startswith("2025-03-04,\"'=HYPERLINK(")
    assert row.endswith(",'@SUM(A1)")


def test_transaction_rows_merge_newest_first():
    incomes = [SimpleNamespace(date=datetime(2025, 3, 1), description="Repair", amount=200.0, category="repair")]
    expenses = [
        SimpleNamespace(date=datetime(2025, 3, 5), description="Fuel", amount=40.0, category="transportation"),
        SimpleNamespace(date=datetime(2025, 2, 20), description="Rent", amount=900.0, category="housing"),
    ]
    rows = transaction_rows(incomes, expenses)
    assert [(r["type"], r["amount"]) for r in rows] == [("expense", -40.0), ("income", 200.0), ("expense", -900.0)]


def test_summary_rows():
    incomes = [SimpleNamespace(amount=300.0, category="repair"), SimpleNamespace(amount=150.0, category="delivery")]
    expenses = [SimpleNamespace(amount=80.0, category="food"), SimpleNamespace(amount=20.5, category="food")]
    rows = [(r["section"], r["name"], r["amount"]) for r in summary_rows(incomes, expenses)]
    assert rows == [
        ("totals", "income", 450.0),
        ("totals", "expenses", 100.5),
        ("totals", "net", 349.5),
        ("income", "repair", 300.0),
        ("income", "delivery", 150.0),
        ("expenses", "food", 100.5),
    ]
