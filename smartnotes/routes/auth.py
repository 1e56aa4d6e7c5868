from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session
from urllib.parse import quote_plus

from smartnotes.database import get_db
from smartnotes.auth import (
    authenticate_user,
    create_user,
    get_current_user_optional,
    login_session,
    logout_session,
    safe_next_url,
)
from smartnotes.template_config import templates

router = APIRouter(tags=["auth"])


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    next: str = "/",
    error: str = None,
    mode: str = "login",
    db: Session = Depends(get_db)
):
    """Display login / sign-up page."""
    user = get_current_user_optional(request, db)
    if user:
        return RedirectResponse(url=safe_next_url(next), status_code=303)

    return templates.TemplateResponse(request, "auth/login.html", {
        "next": safe_next_url(next),
        "error": error,
        "is_signup": mode == "signup",
    })


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    next: str = Form("/"),
    db: Session = Depends(get_db)
):
    """Process login form."""
    next = safe_next_url(next)
    user = authenticate_user(db, email, password)

    if not user:
        return RedirectResponse(
            url=f"/login?error=Invalid+email+or+password&next={quote_plus(next)}",
            status_code=303
        )

    login_session(request, user)
    return RedirectResponse(url=next, status_code=303)


@router.post("/signup")
async def signup(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db)
):
    """Create an account and sign in."""
    try:
        user = create_user(db, email, password)
    except ValueError as e:
        return RedirectResponse(
            url=f"/login?mode=signup&error={quote_plus(str(e))}",
            status_code=303
        )

    login_session(request, user)
    return RedirectResponse(url="/", status_code=303)


@router.get("/logout")
async def logout(request: Request):
    """Log out the current user."""
    logout_session(request)
    return RedirectResponse(url="/login", status_code=303)
