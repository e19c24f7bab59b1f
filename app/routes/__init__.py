# app/routes/__init__.py
from fastapi import APIRouter
from app.routes.feedback import category_routes, feedback_routes
from app.routes.comments import comment_routes
from app.routes.users import user_routes


api_router = APIRouter()

# Feedback routes
api_router.include_router(category_routes.router)
api_router.include_router(feedback_routes.router)

# Comment routes
api_router.include_router(comment_routes.router)

# User routes
api_router.include_router(user_routes.router)
