from app.modules.auth.deps import ADMIN_ROLE, UserContext
from app.modules.notes.utils.rbac import CanAccessRecord, CanRunReminders, IsAdmin


def test_records_are_owner_only():
    owner = UserContext(Id=1, Username="alice", Role="User")
    admin = UserContext(Id=2, Username="root", Role=ADMIN_ROLE)

    assert CanAccessRecord(owner, 1)
    assert not CanAccessRecord(owner, 2)
    assert not CanAccessRecord(owner, None)
    assert not CanAccessRecord(admin, 1)


def test_only_admins_run_reminders():
    assert IsAdmin(UserContext(Id=2, Username="root", Role=ADMIN_ROLE))
    assert CanRunReminders(UserContext(Id=2, Username="root", Role=ADMIN_ROLE))
    assert not CanRunReminders(UserContext(Id=1, Username="alice", Role="User"))
