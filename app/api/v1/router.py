from fastapi import APIRouter
from app.api.v1 import expeditions, parameters, regency, role_management

router = APIRouter()
router.include_router(expeditions.router, prefix="/expeditions", tags=["Expeditions"])
router.include_router(parameters.router, prefix="/parameters", tags=["Parameters"])
router.include_router(regency.router, prefix="/regency", tags=["Regency"])
router.include_router(role_management.router, tags=["RoleManagement"])
