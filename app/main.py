from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api import chains, deposit_address, health, portfolio, session, withdrawals
from .config import settings
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

setup_logging()

# Create FastAPI app
app = FastAPI(
    title="Acumen Wallet API",
    description="Multi-chain wallet balances, deposit addresses and withdrawal builder",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestLoggingMiddleware)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(session.router, prefix="/api", tags=["Session"])
app.include_router(deposit_address.router, prefix="/api", tags=["Deposits"])
app.include_router(portfolio.router, prefix="/api", tags=["Portfolio"])
app.include_router(chains.router, prefix="/api", tags=["Chains"])
app.include_router(withdrawals.router, prefix="/api", tags=["Withdrawals"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Acumen Wallet API",
        "version": "0.1.0",
        "description": "Multi-chain wallet balances, deposit addresses and withdrawal builder",
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
