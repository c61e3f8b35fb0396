from fastapi import FastAPI
from . import health, info, metrics, review

def register_routes(app: FastAPI):
    app.include_router(info.router)
    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(review.router)
