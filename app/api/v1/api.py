from fastapi import APIRouter
from app.api.v1.routes.auth import router as auth_router
from app.api.v1.routes.bookings import router as bookings_router
from app.api.v1.routes.business import router as business_router
from app.api.v1.routes.customers import router as customers_router
from app.api.v1.routes.consent import router as consent_router
from app.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(bookings_router)
api_router.include_router(business_router)
api_router.include_router(customers_router)
api_router.include_router(consent_router)
api_router.include_router(admin_router)
