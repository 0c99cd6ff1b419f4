from fastapi import APIRouter
from . import health, reviews

def register_routes(app: APIRouter):
    app.include_router(health.router)
    app.include_router(reviews.router)
