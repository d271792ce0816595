# permissions.py
"""
RBAC for the API: role_required([...]) is the decorator for routes.

Roles:
- user   - reads, creating and editing maintenance records
- admin  - everything user can + stock/machine/operator writes, maintenance delete
- root   - always passes; deletes of stock items, machines and operators

With LOGIN_DISABLED set (tests, local development) every check passes.
"""

from functools import wraps
from typing import Iterable, Set

from flask import abort, current_app
from flask_login import current_user, login_required


def _login_disabled() -> bool:
    return bool(current_app.config.get("LOGIN_DISABLED"))


# ----------------------------- BASE DECORATOR ----------------------------- #
def role_required(allowed_roles: Iterable[str]):
    """
    Restrict a view to the given roles.
    Example:
        @role_required(["admin", "root"])
        def view(): ...

    Rules:
    - anonymous → 401 (raised by login_required)
    - root always passes
    - missing role → 403
    """
    if isinstance(allowed_roles, str):
        allowed: Set[str] = {allowed_roles}
    else:
        allowed = set(allowed_roles or [])

    def decorator(view_func):
        @wraps(view_func)
        @login_required
        def wrapped(*args, **kwargs):
            if _login_disabled():
                return view_func(*args, **kwargs)

            role = getattr(current_user, "role", None)
            if role == "root" or role in allowed:
                return view_func(*args, **kwargs)

            abort(403, description="Insufficient permissions for this action")

        return wrapped
    return decorator
