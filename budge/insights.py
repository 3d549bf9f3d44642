"""Financial snapshot, chat replies and insight cards for the AI assistant.

The snapshot is built from :mod:`budge.aggregates`, the same calculations
the export and the dashboard use.  A chat reply is tagged with the path
that produced it: ``llm`` when the text-generation service answered,
``fallback`` when it is not configured or failed.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from . import aggregates
from .formatting import CurrencyFormat, format_currency
from .llm import GenerationError, TextGenerator
from .models import INCOME, Category, Transaction, User

logger = logging.getLogger(__name__)

PROMPT_TOP_CATEGORIES = 5
PROMPT_RECENT_TRANSACTIONS = 5
SNAPSHOT_RECENT_TRANSACTIONS = 10

BUDGET_WARNING_PERCENT = 90
BUDGET_HEALTHY_PERCENT = 50
HEALTHY_SAVINGS_SHARE = 0.2


@dataclass
class RecentTransaction:
    description: str
    amount: float
    type: str
    category_name: str


@dataclass
class FinancialSnapshot:
    summary: aggregates.Summary
    monthly_budget: float
    category_spending: List[aggregates.CategorySpend]
    recent_transactions: List[RecentTransaction] = field(default_factory=list)
    is_pro: bool = False


def financial_snapshot(
    user: User,
    transactions: Sequence[Transaction],
    categories: Sequence[Category],
) -> FinancialSnapshot:
    """Summarize ``transactions`` (newest first) for one user."""
    names = {category.id: category.name for category in categories}
    recent = [
        RecentTransaction(
            description=txn.description,
            amount=txn.amount,
            type=txn.type,
            category_name=names.get(txn.category_id, "Uncategorized"),
        )
        for txn in transactions[:SNAPSHOT_RECENT_TRANSACTIONS]
    ]
    return FinancialSnapshot(
        summary=aggregates.summarize(transactions, user.monthly_budget),
        monthly_budget=user.monthly_budget,
        category_spending=aggregates.category_breakdown(transactions, categories),
        recent_transactions=recent,
        is_pro=user.is_pro,
    )


def build_system_prompt(snapshot: FinancialSnapshot, fmt: CurrencyFormat) -> str:
    summary = snapshot.summary
    category_lines = []
    for row in snapshot.category_spending[:PROMPT_TOP_CATEGORIES]:
        line = f"- {row.name}: {format_currency(row.spent, fmt)}"
        if row.budget:
            line += f" (Budget: {format_currency(row.budget, fmt)})"
        category_lines.append(line)
    transaction_lines = [
        f"- {txn.description}: {'+' if txn.type == INCOME else '-'}"
        f"{format_currency(txn.amount, fmt)} ({txn.category_name})"
        for txn in snapshot.recent_transactions[:PROMPT_RECENT_TRANSACTIONS]
    ]

    return "\n".join([
        "You are a helpful AI financial assistant for a budgeting app called Budge.",
        "",
        "User's Financial Summary:",
        f"- Total Income: {format_currency(summary.total_income, fmt)}",
        f"- Total Expenses: {format_currency(summary.total_expenses, fmt)}",
        f"- Balance: {format_currency(summary.balance, fmt)}",
        f"- Monthly Budget: {format_currency(snapshot.monthly_budget, fmt)}",
        f"- Budget Used: {summary.budget_utilization:.1f}%",
        f"- Pro Status: {'Yes' if snapshot.is_pro else 'No'}",
        "",
        "Top Spending Categories:",
        *(category_lines or ["- None yet"]),
        "",
        "Recent Transactions:",
        *(transaction_lines or ["- None yet"]),
        "",
        "Guidelines:",
        "- Provide personalized financial advice based on the user's data",
        "- Be encouraging and supportive",
        "- Suggest specific actions when appropriate",
        "- Keep responses concise but helpful",
        f"- Format amounts in {fmt.code}",
        "- If user asks about Pro features and they're not Pro, mention the benefits of upgrading",
        "- Focus on practical, actionable advice",
    ])


class ReplyKind(str, enum.Enum):
    LLM = "llm"
    FALLBACK = "fallback"


@dataclass
class ChatReply:
    kind: ReplyKind
    message: str

    @property
    def from_llm(self) -> bool:
        return self.kind is ReplyKind.LLM


def fallback_reply(snapshot: FinancialSnapshot, fmt: CurrencyFormat) -> str:
    """Plain-text summary used when the text-generation service is unavailable."""
    summary = snapshot.summary
    parts = [
        f"You've spent {format_currency(summary.total_expenses, fmt)} of your "
        f"{format_currency(snapshot.monthly_budget, fmt)} monthly budget "
        f"({summary.budget_utilization:.0f}%)."
    ]
    if summary.balance > 0:
        parts.append("You're maintaining a positive balance - great job!")
    else:
        parts.append("Consider reviewing your expenses to improve your balance.")
    if snapshot.category_spending:
        top = snapshot.category_spending[0]
        parts.append(
            f"Your highest spending category is {top.name} with "
            f"{format_currency(top.spent, fmt)} spent."
        )
    else:
        parts.append("You don't have any expense data yet.")
    return " ".join(parts)


def respond(
    message: str,
    snapshot: FinancialSnapshot,
    generator: Optional[TextGenerator],
    fmt: CurrencyFormat = CurrencyFormat(),
) -> ChatReply:
    """Answer ``message`` with the generator, or with the fallback summary.

    Any error raised by the generator, or a blank answer, yields the
    fallback reply; the chat route never fails because of the generator.
    """
    if generator is not None:
        try:
            text = generator.generate(build_system_prompt(snapshot, fmt), message)
        except GenerationError as exc:
            logger.warning("Falling back to summary reply: %s", exc)
        except Exception:
            logger.exception("Text generator failed; falling back to summary reply")
        else:
            if isinstance(text, str) and text.strip():
                return ChatReply(ReplyKind.LLM, text)
            logger.warning("Text generator returned an empty answer; falling back")
    return ChatReply(ReplyKind.FALLBACK, fallback_reply(snapshot, fmt))


def insights(snapshot: FinancialSnapshot, fmt: CurrencyFormat = CurrencyFormat()) -> List[Dict[str, Any]]:
    """Warning, success and info cards derived from the snapshot."""
    summary = snapshot.summary
    cards: List[Dict[str, Any]] = []

    if summary.budget_utilization > BUDGET_WARNING_PERCENT:
        cards.append({
            "type": "warning",
            "title": "Budget Alert",
            "message": f"You've used {summary.budget_utilization:.0f}% of your monthly budget. "
                       "Consider reviewing your expenses.",
        })
    elif summary.budget_utilization < BUDGET_HEALTHY_PERCENT:
        cards.append({
            "type": "success",
            "title": "Great Budgeting",
            "message": f"You're doing well! You've only used {summary.budget_utilization:.0f}% "
                       "of your monthly budget.",
        })

    if snapshot.category_spending:
        top = snapshot.category_spending[0]
        cards.append({
            "type": "info",
            "title": "Top Spending Category",
            "message": f"Your highest spending is in {top.name} with {format_currency(top.spent, fmt)}.",
        })

    if summary.balance < 0:
        cards.append({
            "type": "warning",
            "title": "Negative Balance",
            "message": "Your expenses exceed your income. Consider reducing spending or increasing income.",
        })
    elif summary.balance > summary.total_income * HEALTHY_SAVINGS_SHARE:
        cards.append({
            "type": "success",
            "title": "Healthy Savings",
            "message": f"You're saving {summary.savings_rate:.0f}% of your income. Keep it up!",
        })
    return cards
