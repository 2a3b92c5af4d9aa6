from members_api.routes.registration import router as registration_router
from members_api.routes.mpesa import router as mpesa_router
from members_api.routes.members import router as members_router

__all__ = ["registration_router", "mpesa_router", "members_router"]
