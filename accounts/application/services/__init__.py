"""Application services: query shaping, resource handlers, access control, visibility.

CredentialService, UserService and AccountMailer are imported from their
modules directly by the composition root.
"""

from accounts.application.services.access_control import permits, require_role
from accounts.application.services.query_shaper import (
    QueryShaper,
    parse_query_params,
    shape_query,
)
from accounts.application.services.resource_access import (
    Relation,
    ResourceDescriptor,
    create_one,
    delete_one,
    get_one,
    list_all,
    restore_one,
    soft_delete_one,
    update_one,
)
from accounts.application.services.visibility import apply_visibility

__all__ = [
    "QueryShaper",
    "Relation",
    "ResourceDescriptor",
    "apply_visibility",
    "create_one",
    "delete_one",
    "get_one",
    "list_all",
    "parse_query_params",
    "permits",
    "require_role",
    "restore_one",
    "shape_query",
    "soft_delete_one",
    "update_one",
]
