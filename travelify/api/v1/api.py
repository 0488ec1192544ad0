from fastapi import APIRouter
from travelify.api.v1.routes.auth import router as auth_router
from travelify.api.v1.routes.tours import router as tours_router
from travelify.api.v1.routes.bookings import router as bookings_router
from travelify.api.v1.routes.reviews import router as reviews_router

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
api_router.include_router(tours_router)
api_router.include_router(bookings_router)
api_router.include_router(reviews_router)
