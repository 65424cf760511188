from fastapi import APIRouter
from arpu.api.v1.endpoints import (
    auth, users, referrals, programs, donations, receipts, revenue, targets, transactions,
    surveys, certificates, volunteers, contact, donors, dashboard, hierarchy, coordinators,
)
from arpu.api.v1.endpoints.admin import admin_router

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(referrals.router, prefix="/referrals", tags=["Referrals"])
api_router.include_router(programs.router, prefix="/programs", tags=["Programs"])
api_router.include_router(donations.router, prefix="/donations", tags=["Donations"])
api_router.include_router(receipts.router, prefix="/receipts", tags=["Receipts"])
api_router.include_router(revenue.router, prefix="/revenue", tags=["Revenue"])
api_router.include_router(targets.router, prefix="/targets", tags=["Targets"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["Transactions"])
api_router.include_router(surveys.router, prefix="/surveys", tags=["Surveys"])
api_router.include_router(certificates.router, prefix="/certificates", tags=["Certificates"])
api_router.include_router(volunteers.router, prefix="/volunteer", tags=["Volunteers"])
api_router.include_router(contact.router, prefix="/contact", tags=["Contact"])
api_router.include_router(donors.router, prefix="/donors", tags=["Donors"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(hierarchy.router, prefix="/hierarchy", tags=["Hierarchy"])
api_router.include_router(coordinators.router, prefix="/coordinators", tags=["Coordinators"])

# Admin Dashboard routes
api_router.include_router(admin_router)
