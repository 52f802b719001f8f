from app.modules.auth.deps import ADMIN_ROLE, UserContext

AdminRoles = {ADMIN_ROLE}


def IsAdmin(user: UserContext) -> bool:
    return user.Role in AdminRoles


def CanAccessRecord(user: UserContext, owner_user_id: int | None) -> bool:
    """Notebooks are private: only the owner reads or edits their records."""
    return owner_user_id is not None and user.Id == owner_user_id


def CanRunReminders(user: UserContext) -> bool:
    return IsAdmin(user)
