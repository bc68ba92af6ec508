from app.platform.security import PermissionResolver, PolicyGate, Principal, Role

__all__ = [
    "PermissionResolver",
    "PolicyGate",
    "Principal",
    "Role",
]
