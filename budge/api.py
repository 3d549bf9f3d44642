"""FastAPI application exposing the Budge ledger.

Run locally with::

    budge-api

or ``uvicorn --factory budge.api:create_app``.  Every route except ``/health``
and ``/auth/register`` requires an ``Authorization: Bearer <token>``
header.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from . import aggregates, config, export, insights
from .budget_settings import BudgetSettings
from .categories import CategoryStore
from .db import PathLike, init_db
from .errors import BudgeError
from .formatting import CurrencyFormat
from .llm import TextGenerator, default_generator
from .models import User, utcnow
from .schemas import (
    AccountDelete,
    CategoryCreate,
    CategoryUpdate,
    ChatRequest,
    MonthlyBudgetUpdate,
    PreferencesUpdate,
    PrivacySettingsUpdate,
    RegisterRequest,
    TransactionCreate,
    TransactionUpdate,
)
from .transactions import TransactionStore
from .users import authenticate, create_user, delete_user, privacy_settings, update_privacy_settings

logger = logging.getLogger(__name__)

TypeFilter = Optional[Literal["income", "expense"]]


# ------------------------------
# Dependencies
# ------------------------------

def current_user(request: Request, authorization: Optional[str] = Header(None)) -> User:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    return authenticate(token, request.app.state.db_path)


def category_store(request: Request, user: User = Depends(current_user)) -> CategoryStore:
    return CategoryStore(user.id, request.app.state.db_path)


def transaction_store(request: Request, user: User = Depends(current_user)) -> TransactionStore:
    return TransactionStore(user.id, request.app.state.db_path)


def budget_settings(request: Request, user: User = Depends(current_user)) -> BudgetSettings:
    return BudgetSettings(user.id, request.app.state.db_path)


def currency_format(user: User = Depends(current_user)) -> CurrencyFormat:
    return CurrencyFormat.for_code(user.currency)


# ------------------------------
# Auth
# ------------------------------

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/register", status_code=201)
def register(payload: RegisterRequest, request: Request):
    user, token = create_user(
        payload.name, payload.email, request.app.state.db_path, seed_samples=payload.seed_samples,
    )
    return {"message": "Account created successfully", "user": user.to_dict(), "token": token}


@auth_router.get("/me")
def me(user: User = Depends(current_user)):
    return {"user": user.to_dict()}


# ------------------------------
# Transactions
# ------------------------------

transactions_router = APIRouter(prefix="/transactions", tags=["transactions"])


def _category_lookup(categories: CategoryStore) -> Dict[int, Any]:
    return {category.id: category for category in categories.list()}


@transactions_router.get("")
def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    txn_type: TypeFilter = Query(None, alias="type"),
    category: Optional[int] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    store: TransactionStore = Depends(transaction_store),
    categories: CategoryStore = Depends(category_store),
):
    result = store.list(
        txn_type=txn_type,
        category_id=category,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=limit,
    )
    by_id = _category_lookup(categories)
    return {
        "transactions": [txn.to_dict(by_id.get(txn.category_id)) for txn in result.items],
        "pagination": result.pagination(),
    }


@transactions_router.get("/stats/summary")
def transaction_summary(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    store: TransactionStore = Depends(transaction_store),
):
    summary = store.summary(start_date, end_date).to_dict()
    return {
        "summary": {
            key: summary[key]
            for key in ("totalIncome", "totalExpenses", "balance", "transactionCount")
        }
    }


@transactions_router.get("/{transaction_id}")
def get_transaction(
    transaction_id: int,
    store: TransactionStore = Depends(transaction_store),
    categories: CategoryStore = Depends(category_store),
):
    txn = store.get(transaction_id)
    return {"transaction": txn.to_dict(categories.get(txn.category_id))}


@transactions_router.post("", status_code=201)
def create_transaction(
    payload: TransactionCreate,
    store: TransactionStore = Depends(transaction_store),
    categories: CategoryStore = Depends(category_store),
):
    txn = store.create(**payload.model_dump())
    return {
        "message": "Transaction created successfully",
        "transaction": txn.to_dict(categories.get(txn.category_id)),
    }


@transactions_router.put("/{transaction_id}")
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    store: TransactionStore = Depends(transaction_store),
    categories: CategoryStore = Depends(category_store),
):
    txn = store.update(transaction_id, **payload.model_dump(exclude_unset=True))
    return {
        "message": "Transaction updated successfully",
        "transaction": txn.to_dict(categories.get(txn.category_id)),
    }


@transactions_router.delete("/{transaction_id}")
def delete_transaction(transaction_id: int, store: TransactionStore = Depends(transaction_store)):
    store.delete(transaction_id)
    return {"message": "Transaction deleted successfully"}


# ------------------------------
# Categories
# ------------------------------

categories_router = APIRouter(prefix="/categories", tags=["categories"])


@categories_router.get("")
def list_categories(
    category_type: TypeFilter = Query(None, alias="type"),
    store: CategoryStore = Depends(category_store),
):
    return {"categories": [category.to_dict() for category in store.list(category_type)]}


@categories_router.get("/{category_id}")
def get_category(category_id: int, store: CategoryStore = Depends(category_store)):
    return {"category": store.get(category_id).to_dict()}


@categories_router.get("/{category_id}/stats")
def category_stats(category_id: int, store: CategoryStore = Depends(category_store)):
    return store.stats(category_id)


@categories_router.post("", status_code=201)
def create_category(payload: CategoryCreate, store: CategoryStore = Depends(category_store)):
    category = store.create(**payload.model_dump())
    return {"message": "Category created successfully", "category": category.to_dict()}


@categories_router.put("/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    store: CategoryStore = Depends(category_store),
):
    category = store.update(category_id, **payload.model_dump(exclude_unset=True))
    return {"message": "Category updated successfully", "category": category.to_dict()}


@categories_router.delete("/{category_id}")
def delete_category(category_id: int, store: CategoryStore = Depends(category_store)):
    store.delete(category_id)
    return {"message": "Category deleted successfully"}


# ------------------------------
# Budget
# ------------------------------

budget_router = APIRouter(prefix="/budget", tags=["budget"])


@budget_router.get("")
def get_budget(settings: BudgetSettings = Depends(budget_settings)):
    return {"monthlyBudget": settings.get(), "preferences": settings.preferences()}


@budget_router.get("/monthly")
def get_monthly_budget(settings: BudgetSettings = Depends(budget_settings)):
    return {"monthlyBudget": settings.get()}


@budget_router.put("/monthly")
def set_monthly_budget(payload: MonthlyBudgetUpdate, settings: BudgetSettings = Depends(budget_settings)):
    value = settings.set(payload.monthly_budget)
    return {"message": "Monthly budget updated successfully", "monthlyBudget": value}


@budget_router.put("/preferences")
def update_preferences(payload: PreferencesUpdate, settings: BudgetSettings = Depends(budget_settings)):
    return {
        "message": "Preferences updated successfully",
        "preferences": settings.set_currency(payload.currency),
    }


# ------------------------------
# Analytics, export and AI chat
# ------------------------------

analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])


@analytics_router.get("/summary")
def analytics_summary(
    months: int = Query(config.DEFAULT_TREND_MONTHS, ge=1, le=24),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    store: TransactionStore = Depends(transaction_store),
    categories: CategoryStore = Depends(category_store),
    settings: BudgetSettings = Depends(budget_settings),
):
    transactions = store.all(start_date, end_date)
    category_list = categories.list()
    monthly_budget = settings.get()
    category_budgets = []
    for category in category_list:
        utilization = aggregates.per_category_budget_utilization(category, transactions)
        if utilization is not None:
            category_budgets.append({"categoryId": category.id, "name": category.name, **utilization.to_dict()})
    return {
        "summary": aggregates.summarize(transactions, monthly_budget).to_dict(),
        "budget": aggregates.budget_utilization(
            aggregates.total_expenses(transactions), monthly_budget,
        ).to_dict(),
        "categoryBreakdown": [row.to_dict() for row in aggregates.category_breakdown(transactions, category_list)],
        "categoryBudgets": category_budgets,
        "monthlyTrend": [bucket.to_dict() for bucket in aggregates.monthly_trend(transactions, months)],
    }


privacy_router = APIRouter(prefix="/privacy", tags=["privacy"])


@privacy_router.get("/export")
def export_data(
    export_format: Literal["json", "csv"] = Query("json", alias="format"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    user: User = Depends(current_user),
    store: TransactionStore = Depends(transaction_store),
    categories: CategoryStore = Depends(category_store),
):
    transactions = store.all(start_date, end_date)
    category_list = categories.list()
    now = utcnow()
    if export_format == "csv":
        return Response(
            content=export.transactions_csv(transactions, category_list),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{export.export_filename("csv", now)}"'},
        )
    bundle = export.build_export(user, transactions, category_list, start_date, end_date, now=now)
    return JSONResponse(
        content=bundle,
        headers={"Content-Disposition": f'attachment; filename="{export.export_filename("json", now)}"'},
    )


@privacy_router.get("/settings")
def get_privacy_settings(request: Request, user: User = Depends(current_user)):
    return privacy_settings(user.id, request.app.state.db_path)


@privacy_router.put("/settings")
def put_privacy_settings(payload: PrivacySettingsUpdate, request: Request, user: User = Depends(current_user)):
    sharing = update_privacy_settings(
        user.id, analytics=payload.analytics, marketing=payload.marketing, db_path=request.app.state.db_path,
    )
    return {"message": "Privacy settings updated successfully", "dataSharing": sharing}


@privacy_router.delete("/account")
def delete_account(payload: AccountDelete, request: Request, user: User = Depends(current_user)):
    deleted_at = delete_user(user.id, payload.confirm_email, request.app.state.db_path)
    return {
        "message": "Account and all associated data have been permanently deleted",
        "deletedAt": deleted_at.isoformat(),
    }


ai_router = APIRouter(prefix="/ai-chat", tags=["ai-chat"])


def _snapshot(user: User, store: TransactionStore, categories: CategoryStore) -> insights.FinancialSnapshot:
    recent = store.all(limit=config.AI_CONTEXT_TRANSACTIONS)
    return insights.financial_snapshot(user, recent, categories.list())


@ai_router.post("/chat")
def chat(
    payload: ChatRequest,
    request: Request,
    user: User = Depends(current_user),
    store: TransactionStore = Depends(transaction_store),
    categories: CategoryStore = Depends(category_store),
    fmt: CurrencyFormat = Depends(currency_format),
):
    snapshot = _snapshot(user, store, categories)
    reply = insights.respond(payload.message.strip(), snapshot, request.app.state.generator, fmt)
    return {
        "message": reply.message,
        "hasOpenAI": reply.from_llm,
        "kind": reply.kind.value,
        "timestamp": utcnow().isoformat(),
    }


@ai_router.get("/insights")
def ai_insights(
    user: User = Depends(current_user),
    store: TransactionStore = Depends(transaction_store),
    categories: CategoryStore = Depends(category_store),
    fmt: CurrencyFormat = Depends(currency_format),
):
    return {"insights": insights.insights(_snapshot(user, store, categories), fmt)}


# ------------------------------
# Application
# ------------------------------

def _validation_details(exc: RequestValidationError) -> list:
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]


def create_app(
    db_path: Optional[PathLike] = None,
    generator: Optional[TextGenerator] = None,
) -> FastAPI:
    """Build the API bound to ``db_path`` (defaults to ``config.DB_PATH``).

    ``generator`` defaults to one built from ``OPENAI_API_KEY``; without
    either, chat replies use the fallback summary.
    """
    init_db(db_path)
    app = FastAPI(title="Budge API", version="0.1.0")
    app.state.db_path = db_path
    app.state.generator = generator if generator is not None else default_generator()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BudgeError)
    async def handle_budge_error(request: Request, exc: BudgeError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "code": "validation_error", "details": _validation_details(exc)},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Server error"})

    @app.get("/health")
    def health():
        return {"backend": "ok"}

    for router in (
        auth_router,
        transactions_router,
        categories_router,
        budget_router,
        analytics_router,
        privacy_router,
        ai_router,
    ):
        app.include_router(router)
    return app


def main() -> None:
    import uvicorn

    config.configure_logging()
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
