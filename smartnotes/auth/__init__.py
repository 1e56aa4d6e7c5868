from smartnotes.auth.utils import (
    verify_password,
    get_password_hash,
    get_current_user,
    get_current_user_optional,
    authenticate_user,
    create_user,
    login_session,
    logout_session,
    safe_next_url,
)

__all__ = [
    "verify_password",
    "get_password_hash",
    "get_current_user",
    "get_current_user_optional",
    "authenticate_user",
    "create_user",
    "login_session",
    "logout_session",
    "safe_next_url",
]
