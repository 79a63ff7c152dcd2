"""
Loan Ledger API Application Factory
"""

from fastapi import FastAPI

from .. import __version__
from .loans import router as loans_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Loan Ledger API",
        description="Loan origination, amortization schedules and repayment allocation",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    
    app.include_router(loans_router, prefix="/loans", tags=["Loans"])
    
    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "loan_ledger_api",
            "version": __version__
        }
    
    return app
