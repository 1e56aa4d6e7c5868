from smartnotes.routes.auth import router as auth_router
from smartnotes.routes.journal import router as journal_router
from smartnotes.routes.notes import router as notes_router
from smartnotes.routes.ai import router as ai_router

__all__ = [
    'auth_router',
    'journal_router',
    'notes_router',
    'ai_router',
]
