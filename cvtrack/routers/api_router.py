from fastapi import APIRouter
from cvtrack.routers import mail, cvs, positions, applications

# Routers are aggregated here; main.py only imports this hub.
api_router = APIRouter()

api_router.include_router(mail.router)
api_router.include_router(cvs.router)
api_router.include_router(positions.router)
api_router.include_router(applications.router)
