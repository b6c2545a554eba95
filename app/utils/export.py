# app/utils/export.py
import csv
import io
from typing import Any, Dict, Iterable, Iterator, List

INCOME_COLUMNS = ["date", "description", "amount", "category", "source"]
EXPENSE_COLUMNS = ["date", "description", "amount", "category", "payment_method", "is_recurring", "notes"]
TRANSACTION_COLUMNS = ["date", "type", "description", "amount", "category"]
SUMMARY_COLUMNS = ["section", "name", "amount"]


# Spreadsheet apps evaluate cells starting with these as formulas
FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.date().isoformat() if hasattr(value, "date") else value.isoformat()
    if hasattr(value, "value"):
        value = value.value
    if isinstance(value, str) and value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


def _field(record: Any, column: str) -> Any:
    if isinstance(record, dict):
        return record.get(column)
    return getattr(record, column, None)


def iter_csv(records: Iterable[Any], columns: List[str]) -> Iterator[str]:
    """Yield CSV text one row at a time, header first."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow(columns)
    yield buffer.getvalue()

    for record in records:
        buffer.seek(0)
        buffer.truncate(0)
        writer.writerow([_cell(_field(record, column)) for column in columns])
        yield buffer.getvalue()


def transaction_rows(incomes: Iterable[Any], expenses: Iterable[Any]) -> List[Dict[str, Any]]:
    """Incomes and expenses in one list, newest first; expenses carry a negative amount."""
    rows = [
        {"date": i.date, "type": "income", "description": i.description,
         "amount": round(abs(i.amount), 2), "category": i.category}
        for i in incomes
    ]
    rows += [
        {"date": e.date, "type": "expense", "description": e.description,
         "amount": -round(abs(e.amount), 2), "category": e.category}
        for e in expenses
    ]
    return sorted(rows, key=lambda row: row["date"], reverse=True)


def summary_rows(incomes: Iterable[Any], expenses: Iterable[Any]) -> List[Dict[str, Any]]:
    """Totals, net balance and per-category breakdowns as flat section/name/amount rows."""
    income_by_category: Dict[str, float] = {}
    for income in incomes:
        income_by_category[income.category] = income_by_category.get(income.category, 0.0) + income.amount
    expense_by_category: Dict[str, float] = {}
    for expense in expenses:
        expense_by_category[expense.category] = expense_by_category.get(expense.category, 0.0) + expense.amount

    total_income = round(sum(income_by_category.values()), 2)
    total_expenses = round(sum(expense_by_category.values()), 2)
    rows = [
        {"section": "totals", "name": "income", "amount": total_income},
        {"section": "totals", "name": "expenses", "amount": total_expenses},
        {"section": "totals", "name": "net", "amount": round(total_income - total_expenses, 2)},
    ]
    for section, totals in (("income", income_by_category), ("expenses", expense_by_category)):
        for name, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True):
            rows.append({"section": section, "name": name, "amount": round(amount, 2)})
    return rows
