# catering/api/__init__.py
from fastapi import FastAPI

from catering.api.routers import cashier, health, orders, payments, schedules


def create_app() -> FastAPI:
    app = FastAPI(
        title="School Catering Orders",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(cashier.router)
    app.include_router(schedules.router)

    return app
