from .admin import admin_router
from .admin_group import router as admin_group_router
from .private import router as private_router

__all__ = ["admin_router", "admin_group_router", "private_router"]
