from datetime import date, datetime

from app.models.expense import PaymentMethod
from app.utils.voice import (
    detect_payment_method,
    extract_amount,
    match_voice_command,
    parse_expense_transcript,
    parse_income_transcript,
)

TODAY = date(2025, 5, 14)


def test_parse_expense_full_sentence():
    draft = parse_expense_transcript("Spent 45 dollars on groceries at Walmart with my debit card", today=TODAY)
    assert draft["amount"] == 45.0
    assert draft["description"] == "Groceries"
    assert draft["category"] == "food"
    assert draft["payment_method"] == PaymentMethod.debit
    assert draft["date"] == datetime(2025, 5, 14)
    assert draft["missing_fields"] == []


def test_parse_expense_yesterday_and_cents():
    draft = parse_expense_transcript("paid $12.50 for parking yesterday", today=TODAY)
    assert draft["amount"] == 12.5
    assert draft["category"] == "transportation"
    assert draft["date"] == datetime(2025, 5, 13)


def test_parse_expense_reports_missing_fields():
    draft = parse_expense_transcript("spent 45 dollars", today=TODAY)
    assert draft["amount"] == 45.0
    assert draft["missing_fields"] == ["description"]

    no_amount = parse_expense_transcript("bought new tools", today=TODAY)
    assert no_amount["amount"] is None
    assert "amount" in no_amount["missing_fields"]
    assert no_amount["category"] == "supplies"


def test_parse_expense_defaults_to_cash_and_other():
    draft = parse_expense_transcript("spent 20 on a gift", today=TODAY)
    assert draft["payment_method"] == PaymentMethod.cash
    assert draft["category"] == "other"


def test_first_number_is_the_amount():
    value, _ = extract_amount("paid 1,250 for 2 tires")
    assert value == 1250.0


def test_payment_method_prefers_longer_phrase():
    assert detect_payment_method("paid with credit card") == PaymentMethod.credit
    assert detect_payment_method("sent it by bank transfer") == PaymentMethod.transfer
    assert detect_payment_method("used venmo") == PaymentMethod.mobile


def test_parse_income():
    draft = parse_income_transcript("earned 250 from installation at the Smith house", today=TODAY)
    assert draft["amount"] == 250.0
    assert draft["description"] == "Installation"
    assert draft["category"] == "installation"
    assert draft["source"] == "Voice"
    assert draft["missing_fields"] == []


def test_match_voice_command():
    result = match_voice_command("please show dashboard")
    assert result["recognized"] is True
    assert result["action"] == "navigate"
    assert result["route"] == "/"


def test_match_voice_command_prefers_longest_phrase():
    assert match_voice_command("hide help")["action"] == "hide_help"
    assert match_voice_command("help")["action"] == "show_help"


def test_unknown_voice_command():
    result = match_voice_command("make me a sandwich")
    assert result["recognized"] is False
    assert result["route"] is None
