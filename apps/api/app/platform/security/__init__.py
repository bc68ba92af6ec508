from app.platform.security.cache import PermissionCache
from app.platform.security.context import Principal, Role
from app.platform.security.errors import (
    AuthorizationDenied,
    AuthorizationError,
    GrantConflictError,
    InvalidRequestError,
    NotFoundError,
)
from app.platform.security.grants import (
    DbGrantStore,
    Grant,
    GrantKind,
    GranteeType,
    GrantStore,
    IndividualGrant,
    TenantGrant,
)
from app.platform.security.policies import PolicyGate
from app.platform.security.repository import BaseRepository
from app.platform.security.resolver import PermissionResolver
from app.platform.security.resources import Capability, ResourceAction, ResourceSummary, ResourceType, capability_for
from app.platform.security.scope import ScopeColumns, apply_listing_scope, apply_reusable_scope
from app.platform.security.visibility import ACCESS_KEY, LIMITED_FIELDS, project, project_many

__all__ = [
    "ACCESS_KEY",
    "LIMITED_FIELDS",
    "AuthorizationDenied",
    "AuthorizationError",
    "BaseRepository",
    "Capability",
    "DbGrantStore",
    "Grant",
    "GrantConflictError",
    "GrantKind",
    "GrantStore",
    "GranteeType",
    "IndividualGrant",
    "InvalidRequestError",
    "NotFoundError",
    "PermissionCache",
    "PermissionResolver",
    "PolicyGate",
    "Principal",
    "ResourceAction",
    "ResourceSummary",
    "ResourceType",
    "Role",
    "ScopeColumns",
    "TenantGrant",
    "apply_listing_scope",
    "apply_reusable_scope",
    "capability_for",
    "project",
    "project_many",
]
