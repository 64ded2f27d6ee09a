from aiogram import Router

from .console import console_router
from .moderation import moderation_router

admin_router = Router(name="admin_main")
admin_router.include_router(console_router)
admin_router.include_router(moderation_router)
