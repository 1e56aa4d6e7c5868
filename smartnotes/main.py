import os
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware
from dotenv import load_dotenv

load_dotenv()

# Setup logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

from smartnotes.routes import (
    auth_router,
    journal_router,
    notes_router,
    ai_router,
)
from smartnotes.database import init_db, DATABASE_URL
from smartnotes.errors import SmartNotesError, Unauthenticated

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production-min-32-characters")
SESSION_EXPIRE_MINUTES = int(os.getenv("SESSION_EXPIRE_MINUTES", "43200"))

# Create FastAPI app
app = FastAPI(
    title="Smart Notes",
    description="Daily notes with an AI companion",
    version="1.0.0"
)

app.add_middleware(
    SessionMiddleware,
    secret_key=SECRET_KEY,
    max_age=SESSION_EXPIRE_MINUTES * 60,
    same_site="lax",
)

# Include routers
app.include_router(auth_router)
app.include_router(journal_router)
app.include_router(notes_router)
app.include_router(ai_router)


@app.on_event("startup")
def on_startup():
    """Ensure DB is reachable and initialized at startup. If initialization
    fails the app will raise and stop with a clear error message.
    """
    try:
        init_db()
    except Exception as e:
        # Re-raise as RuntimeError so the server fails loudly
        raise RuntimeError(
            f"Database initialization failed for DATABASE_URL={DATABASE_URL}: {e}"
        ) from e


@app.get("/health")
async def health():
    return {"status": "ok"}


# Error handlers
@app.exception_handler(SmartNotesError)
async def smartnotes_error_handler(request: Request, exc: SmartNotesError):
    """Map the error taxonomy to responses. Pages redirect to login on 401."""
    if isinstance(exc, Unauthenticated) and not request.url.path.startswith("/api/"):
        return RedirectResponse(url="/login", status_code=303)

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} refused: {exc.message}")

    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("smartnotes.main:app", host="0.0.0.0", port=8000, reload=True)
