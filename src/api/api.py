import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from time import perf_counter
from typing import Annotated, Any, AsyncGenerator, Awaitable, Callable

from fastapi import Body, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.dependencies import get_engine
from config import config
from domain.base_types import CustomerId, Metal, TransactionCategory
from domain.details import DetailsMismatchError
from domain.engine import CustomerNotFoundError, LedgerEngine, ProtectedFieldError
from domain.ledger import Customer, CustomerProfile, ShopTransaction, Transaction
from domain.rates import RateBook, RateQuote
from domain.shop_account import ShopCategoryError
from services.ledger_factory import build_engine
from utils.balance_summary import BalanceSummary, compute_balance_summary
from utils.dues_summary import ExpenseCategory, MarketDues, compute_expense_report, compute_market_dues
from utils.volume_summary import (
    CustomerVolume,
    DailyTransactionValue,
    compute_business_volume,
    compute_daily_transaction_value,
)

logger = logging.getLogger(__name__)

EngineDep = Annotated[LedgerEngine, Depends(get_engine)]


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = config()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    fastapi_app.state.engine = build_engine(settings)
    yield


app = FastAPI(lifespan=lifespan)


@app.middleware("http")
async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start_time = perf_counter()
    response = await call_next(request)
    process_time = perf_counter() - start_time
    logger.debug("Request time: %s %s: %.4fs", request.method, request.url, process_time)
    return response


@app.exception_handler(CustomerNotFoundError)
async def customer_not_found(request: Request, exc: CustomerNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ProtectedFieldError)
@app.exception_handler(ShopCategoryError)
@app.exception_handler(DetailsMismatchError)
@app.exception_handler(ValueError)
async def rejected_input(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


class CustomerResult(BaseModel):
    customer: Customer
    warning: str | None = None


class TransactionRequest(BaseModel):
    customer_id: CustomerId | None = None
    category: TransactionCategory
    details: dict[str, Any]


class TransactionResult(BaseModel):
    transaction: Transaction | None = None
    shop_transaction: ShopTransaction | None = None
    warning: str | None = None


class RatesResult(BaseModel):
    live_rates: RateBook
    warning: str | None = None


class ClearResult(BaseModel):
    warning: str | None = None


def _warning(engine: LedgerEngine) -> str | None:
    if engine.last_save_error is None:
        return None
    return f"Changes are kept in memory only, save failed: {engine.last_save_error}"


@app.get("/customers")
def list_customers(engine: EngineDep) -> list[Customer]:
    return list(engine.customers)


@app.post("/customers", status_code=201)
def create_customer(profile: CustomerProfile, engine: EngineDep) -> CustomerResult:
    customer = engine.create_customer(profile)
    return CustomerResult(customer=customer, warning=_warning(engine))


@app.get("/customers/{customer_id}")
def get_customer(customer_id: int, engine: EngineDep) -> Customer:
    customer = engine.get_customer(CustomerId(customer_id))
    if customer is None:
        raise CustomerNotFoundError(CustomerId(customer_id))
    return customer


@app.patch("/customers/{customer_id}")
def update_customer(
    customer_id: int, changes: Annotated[dict[str, Any], Body()], engine: EngineDep
) -> CustomerResult:
    customer = engine.update_customer(CustomerId(customer_id), changes)
    return CustomerResult(customer=customer, warning=_warning(engine))


@app.delete("/customers/{customer_id}")
def delete_customer(customer_id: int, engine: EngineDep) -> CustomerResult:
    customer = engine.delete_customer(CustomerId(customer_id))
    return CustomerResult(customer=customer, warning=_warning(engine))


@app.post("/transactions", status_code=201)
def add_transaction(submitted: TransactionRequest, engine: EngineDep) -> TransactionResult:
    payload = {"category": submitted.category, "details": submitted.details}
    recorded = engine.add_transaction(submitted.customer_id, payload)
    if isinstance(recorded, ShopTransaction):
        return TransactionResult(shop_transaction=recorded, warning=_warning(engine))
    return TransactionResult(transaction=recorded, warning=_warning(engine))


@app.get("/shop-transactions")
def list_shop_transactions(engine: EngineDep) -> list[ShopTransaction]:
    return list(engine.shop_transactions)


@app.get("/rates")
def get_rates(engine: EngineDep) -> RateBook:
    return engine.live_rates


@app.put("/rates/{metal}")
def update_rates(metal: Metal, quote: RateQuote, engine: EngineDep) -> RatesResult:
    live_rates = engine.update_live_rates(metal, quote)
    return RatesResult(live_rates=live_rates, warning=_warning(engine))


@app.post("/clear-transactions")
def clear_transactions(engine: EngineDep) -> ClearResult:
    engine.clear_all_transactions()
    return ClearResult(warning=_warning(engine))


@app.post("/clear-all")
def clear_all(engine: EngineDep) -> ClearResult:
    engine.clear_all_data()
    return ClearResult(warning=_warning(engine))


@app.get("/reports/balances")
def balances_report(engine: EngineDep, start: date | None = None, end: date | None = None) -> BalanceSummary:
    return compute_balance_summary(engine.snapshot(), start, end, tz=config().report_tz)


@app.get("/reports/dues")
def dues_report(engine: EngineDep) -> MarketDues:
    return compute_market_dues(engine.snapshot())


@app.get("/reports/volume")
def volume_report(engine: EngineDep, top_n: int = 10) -> list[CustomerVolume]:
    return compute_business_volume(engine.snapshot(), top_n=top_n)


@app.get("/reports/daily")
def daily_report(
    engine: EngineDep, start: date | None = None, end: date | None = None
) -> list[DailyTransactionValue]:
    tz = config().report_tz
    end = end or datetime.now(tz).date()
    start = start or end - timedelta(days=6)
    return compute_daily_transaction_value(engine.snapshot(), start, end, tz=tz)


@app.get("/reports/expenses")
def expenses_report(engine: EngineDep) -> list[ExpenseCategory]:
    return compute_expense_report(engine.snapshot())
