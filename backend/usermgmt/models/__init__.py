from usermgmt.models.role import Role, user_roles
from usermgmt.models.user import User

__all__ = ["Role", "User", "user_roles"]
