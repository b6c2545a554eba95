# app/utils/voice.py
"""
Turn browser speech-recognition transcripts into expense / income drafts
and navigation commands.

The heuristics are deliberately forgiving: anything that can't be recognised
falls back to a default, and the caller is told which required fields are
still missing so the UI can ask the user to fill them in.
"""
import re
from datetime import datetime, timedelta, date
from typing import Dict, Any, List, Optional, Tuple

from app.models.expense import EXPENSE_CATEGORIES, PaymentMethod
from app.models.income import INCOME_CATEGORIES

AMOUNT_RE = re.compile(r"\$?\s?(\d{1,3}(?:,\d{3})+|\d+)(?:\.(\d{1,2}))?\b")

SPEND_VERBS = r"spent on|paid for|bought|purchased|spent|paid|expense for|for|on"
EARN_VERBS = r"earned from|received from|got paid for|earned|received|made|from|for"
STOP_WORDS = r"at|with|using|via|by|yesterday|today|this morning|last night"

FILLER_WORDS = [
    "dollars", "dollar", "bucks", "usd", "for", "spent", "paid", "bought",
    "purchased", "expense", "income", "earned", "received", "made", "add",
    "create", "new", "record", "i", "just", "some", "a", "an", "the",
]

# Longer phrases first so "credit card" wins over "credit"
PAYMENT_KEYWORDS: List[Tuple[str, PaymentMethod]] = [
    ("credit card", PaymentMethod.credit),
    ("debit card", PaymentMethod.debit),
    ("bank transfer", PaymentMethod.transfer),
    ("mobile payment", PaymentMethod.mobile),
    ("apple pay", PaymentMethod.mobile),
    ("google pay", PaymentMethod.mobile),
    ("venmo", PaymentMethod.mobile),
    ("paypal", PaymentMethod.mobile),
    ("zelle", PaymentMethod.mobile),
    ("cash app", PaymentMethod.mobile),
    ("credit", PaymentMethod.credit),
    ("debit", PaymentMethod.debit),
    ("check", PaymentMethod.check),
    ("cheque", PaymentMethod.check),
    ("transfer", PaymentMethod.transfer),
    ("mobile", PaymentMethod.mobile),
    ("cash", PaymentMethod.cash),
]

VOICE_COMMANDS: List[Dict[str, Optional[str]]] = [
    {"phrase": "show income", "action": "navigate", "route": "/income-history", "description": "View income history"},
    {"phrase": "add income", "action": "navigate", "route": "/income-form", "description": "Add new income entry"},
    {"phrase": "add expense", "action": "navigate", "route": "/expenses?openExpenseForm=true", "description": "Add new expense"},
    {"phrase": "record expense", "action": "navigate", "route": "/expenses?openVoiceExpense=true", "description": "Use voice to record expense"},
    {"phrase": "show dashboard", "action": "navigate", "route": "/", "description": "Navigate to dashboard"},
    {"phrase": "show goals", "action": "navigate", "route": "/goals", "description": "Navigate to goals page"},
    {"phrase": "show expenses", "action": "navigate", "route": "/expenses", "description": "Navigate to expenses page"},
    {"phrase": "show budget", "action": "navigate", "route": "/budget-planner", "description": "Navigate to budget planner"},
    {"phrase": "show bank connections", "action": "navigate", "route": "/bank-connections", "description": "Navigate to bank connections page"},
    {"phrase": "show settings", "action": "navigate", "route": "/settings", "description": "Navigate to settings page"},
    {"phrase": "refresh data", "action": "refresh", "route": None, "description": "Refresh all data"},
    {"phrase": "help", "action": "show_help", "route": None, "description": "Show available commands"},
    {"phrase": "hide help", "action": "hide_help", "route": None, "description": "Hide available commands"},
]


def _contains_word(text: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}\b", text) is not None


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip(" ,.!?")


def extract_amount(text: str) -> Tuple[Optional[float], Optional[re.Match]]:
    match = AMOUNT_RE.search(text)
    if not match:
        return None, None
    whole = match.group(1).replace(",", "")
    cents = match.group(2)
    value = float(f"{whole}.{cents}") if cents else float(whole)
    return value, match


def _strip_filler(text: str) -> str:
    for word in FILLER_WORDS:
        text = re.sub(rf"\b{re.escape(word)}\b", " ", text)
    return _collapse(text)


def extract_description(text: str, amount_match: Optional[re.Match], verbs: str) -> str:
    # Work on the transcript with the amount and currency words taken out
    without_amount = text
    if amount_match:
        without_amount = text[:amount_match.start()] + " " + text[amount_match.end():]
    without_amount = _collapse(re.sub(r"\b(?:dollars?|bucks|usd)\b", " ", without_amount))

    description = ""
    phrase = re.search(rf"\b(?:{verbs})\s+(.+?)(?=\s+(?:{STOP_WORDS})\b|$)", without_amount)
    if phrase:
        description = _strip_filler(phrase.group(1))

    if not description and amount_match:
        description = _strip_filler(text[amount_match.end():])

    if not description:
        description = _strip_filler(without_amount)

    return description[:1].upper() + description[1:] if description else ""


def detect_category(text: str, catalogue: List[Dict[str, Any]]) -> str:
    for category in catalogue:
        candidates = [category["id"], category["name"].lower()] + list(category.get("keywords", []))
        if category["id"] == "other":
            continue
        if any(_contains_word(text, candidate) for candidate in candidates):
            return category["id"]
    return "other"


def detect_payment_method(text: str) -> PaymentMethod:
    for keyword, method in PAYMENT_KEYWORDS:
        if _contains_word(text, keyword):
            return method
    return PaymentMethod.cash


def detect_date(text: str, today: Optional[date] = None) -> datetime:
    today = today or datetime.utcnow().date()
    if _contains_word(text, "yesterday") or _contains_word(text, "last night"):
        today = today - timedelta(days=1)
    return datetime(today.year, today.month, today.day)


def parse_expense_transcript(transcript: str, today: Optional[date] = None) -> Dict[str, Any]:
    """Build an expense draft from a transcript such as
    "spent 45 dollars on groceries at walmart with my debit card"."""
    text = (transcript or "").lower().strip()
    amount, amount_match = extract_amount(text)
    description = extract_description(text, amount_match, SPEND_VERBS) if text else ""

    draft = {
        "transcript": transcript,
        "description": description or None,
        "amount": amount,
        "date": detect_date(text, today),
        "category": detect_category(text, EXPENSE_CATEGORIES),
        "payment_method": detect_payment_method(text),
    }
    draft["missing_fields"] = [f for f in ("description", "amount") if not draft[f]]
    return draft


def parse_income_transcript(transcript: str, today: Optional[date] = None) -> Dict[str, Any]:
    """Build an income draft from a transcript such as
    "earned 250 from a repair job for Mrs Smith"."""
    text = (transcript or "").lower().strip()
    amount, amount_match = extract_amount(text)
    description = extract_description(text, amount_match, EARN_VERBS) if text else ""

    draft = {
        "transcript": transcript,
        "description": description or None,
        "amount": amount,
        "date": detect_date(text, today),
        "category": detect_category(text, INCOME_CATEGORIES),
        "source": "Voice",
    }
    draft["missing_fields"] = [f for f in ("description", "amount") if not draft[f]]
    return draft


def match_voice_command(transcript: str) -> Dict[str, Any]:
    """Return the first known command contained in the transcript."""
    text = (transcript or "").lower().strip()
    # Longest phrase first so "hide help" is not read as "help"
    for command in sorted(VOICE_COMMANDS, key=lambda c: len(c["phrase"]), reverse=True):
        if _contains_word(text, command["phrase"]):
            return {
                "recognized": True,
                "command": command["phrase"],
                "action": command["action"],
                "route": command["route"],
                "transcript": transcript,
            }
    return {
        "recognized": False,
        "command": None,
        "action": None,
        "route": None,
        "transcript": transcript,
    }
