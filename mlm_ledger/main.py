import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mlm_ledger.core.config import LOG_LEVEL
from mlm_ledger.core.exceptions import LedgerError
from mlm_ledger.db.base import Base
from mlm_ledger.db.session import engine
from mlm_ledger.api.endpoints import users as users_api
from mlm_ledger.api.endpoints import products as products_api
from mlm_ledger.api.endpoints import orders as orders_api
from mlm_ledger.api.endpoints import wallet as wallet_api
from mlm_ledger.api.endpoints import withdrawals as withdrawals_api
from mlm_ledger.api.endpoints import kyc as kyc_api
from mlm_ledger.api.endpoints import network as network_api
from mlm_ledger.api.endpoints import jobs as jobs_api

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Tables are created on startup; schema migrations are handled outside this service.
Base.metadata.create_all(bind=engine)

app = FastAPI(title="MLM Ledger API", version="0.1.0")

@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

# Include API routers
app.include_router(users_api.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(products_api.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(orders_api.router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(wallet_api.router, prefix="/api/v1/wallet", tags=["Wallet"])
app.include_router(withdrawals_api.router, prefix="/api/v1/withdrawals", tags=["Withdrawals"])
app.include_router(kyc_api.router, prefix="/api/v1/kyc", tags=["KYC"])
app.include_router(network_api.router, prefix="/api/v1/network", tags=["Network"])
app.include_router(jobs_api.router, prefix="/api/v1/jobs", tags=["Jobs"])

@app.get("/ping", tags=["Health Check"])
async def ping():
    return {"message": "pong"}
