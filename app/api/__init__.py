# app/api/__init__.py
"""
🌐 API ROUTES (маршруты FastAPI)

Все роутеры приложения. create_app() подключает их по списку.
"""

from app.api.routes.admin import router as admin_router
from app.api.routes.admin_pages import router as admin_pages_router
from app.api.routes.auth import router as auth_router
from app.api.routes.orders import router as orders_router
from app.api.routes.products import router as products_router
from app.api.routes.reviews import router as reviews_router
from app.api.routes.shipping import router as shipping_router

api_routers = [
    orders_router,
    products_router,
    reviews_router,
    auth_router,
    admin_router,
    admin_pages_router,
    shipping_router,
]

__all__ = ["api_routers"]
