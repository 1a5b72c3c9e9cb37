import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import get_settings
from database import SessionLocal
from errors import RecordNotFound
from periods import Period, resolve_period, select
from rollups import build_rollups, period_totals
from schemas import (
    BudgetIn,
    BudgetOut,
    PeriodOut,
    PeriodTotalsOut,
    RollupOut,
    RollupReport,
    TransactionIn,
    TransactionOut,
)
from services import BudgetService, TransactionService

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()

app = FastAPI(title="Budget Tracker", version=APP_VERSION)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@app.exception_handler(SQLAlchemyError)
async def store_unavailable(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.warning(f"store_error: path={request.url.path} error={exc}")
    return JSONResponse(status_code=503, content={"detail": "Store unavailable"})


def period_from_query(month: Optional[str], year: Optional[int]) -> Period:
    try:
        return resolve_period(month, year)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/transactions", response_model=list[TransactionOut])
def list_transactions(db: Session = Depends(get_db)):
    return TransactionService(db).list_all()


@app.post("/api/transactions", response_model=TransactionOut, status_code=201)
def create_transaction(data: TransactionIn, db: Session = Depends(get_db)):
    txn = TransactionService(db).create(data)
    logger.info(f"transaction_created: id={txn.id} type={txn.type.value}")
    return txn


@app.put("/api/transactions/{transaction_id}", response_model=TransactionOut)
def update_transaction(
    transaction_id: int, data: TransactionIn, db: Session = Depends(get_db)
):
    try:
        return TransactionService(db).update(transaction_id, data)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.delete("/api/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    try:
        TransactionService(db).delete(transaction_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logger.info(f"transaction_deleted: id={transaction_id}")
    return Response(status_code=204)


@app.get("/api/budgets", response_model=list[BudgetOut])
def list_budgets(
    month: Optional[str] = None,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
):
    period = period_from_query(month, year)
    return BudgetService(db).list_for_period(period)


@app.post("/api/budgets", response_model=BudgetOut, status_code=201)
def create_budget(data: BudgetIn, db: Session = Depends(get_db)):
    budget = BudgetService(db).create(data)
    logger.info(
        f"budget_created: id={budget.id} category={budget.category} "
        f"period={budget.month}-{budget.year}"
    )
    return budget


@app.put("/api/budgets/{budget_id}", response_model=BudgetOut)
def update_budget(budget_id: int, data: BudgetIn, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).update(budget_id, data)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.delete("/api/budgets/{budget_id}", status_code=204)
def delete_budget(budget_id: int, db: Session = Depends(get_db)):
    try:
        BudgetService(db).delete(budget_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logger.info(f"budget_deleted: id={budget_id}")
    return Response(status_code=204)


@app.get("/api/rollups", response_model=RollupReport)
def rollups(
    month: Optional[str] = None,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
):
    period = period_from_query(month, year)
    budgets = BudgetService(db).list_for_period(period)
    transactions = TransactionService(db).list_all()
    entries = build_rollups(budgets, transactions, period.month, period.year)
    totals = period_totals(select(transactions, period.month, period.year))
    return RollupReport(
        period=PeriodOut.model_validate(period),
        rollups=[RollupOut.model_validate(entry) for entry in entries],
        totals=PeriodTotalsOut.model_validate(totals),
    )
