from fastapi import APIRouter
from .endpoints import (
    auth_router,
    degree_router,
    course_router,
    lesson_router,
    test_router,
    home_router,
    wizard_router,
    subscription_router,
    stripe_router,
)

api_router = APIRouter()

api_router.include_router(auth_router.router, prefix="/auth", tags=["Auth"])
api_router.include_router(degree_router.router, prefix="/degrees", tags=["Degrees"])
api_router.include_router(course_router.router, prefix="/courses", tags=["Courses"])
api_router.include_router(lesson_router.router, prefix="/lessons", tags=["Lessons"])
api_router.include_router(test_router.router, prefix="/tests", tags=["Tests"])
api_router.include_router(home_router.router, tags=["Home"])
api_router.include_router(wizard_router.router, prefix="/wizard", tags=["Wizard"])
api_router.include_router(subscription_router.router, tags=["Subscription"])
api_router.include_router(stripe_router.router, prefix="/stripe", tags=["stripe"])
