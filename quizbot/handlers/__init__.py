from aiogram import Router

from quizbot.handlers.start import router as start_router
from quizbot.handlers.quiz import router as quiz_router


def setup_routers() -> Router:
    """Setup and return the main router with all sub-routers."""
    router = Router()
    router.include_router(start_router)
    router.include_router(quiz_router)
    return router


__all__ = ["setup_routers"]
