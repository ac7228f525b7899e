"""Permissions for all operations subject to access control."""

from enum import StrEnum


class Permission(StrEnum):
    """Structured enum of all authorization-relevant operations."""

    # Users
    USERS_VIEW = "users:view"
    USERS_CREATE = "users:create"
    USERS_EDIT = "users:edit"
    USERS_DELETE = "users:delete"

    # Areas
    AREAS_VIEW = "areas:view"
    AREAS_CREATE = "areas:create"
    AREAS_EDIT = "areas:edit"
    AREAS_DELETE = "areas:delete"

    # Warehouses
    WAREHOUSES_VIEW = "warehouses:view"
    WAREHOUSES_CREATE = "warehouses:create"
    WAREHOUSES_EDIT = "warehouses:edit"
    WAREHOUSES_DELETE = "warehouses:delete"

    # Boxes
    BOXES_VIEW = "boxes:view"
    BOXES_CREATE = "boxes:create"
    BOXES_EDIT = "boxes:edit"
    BOXES_DELETE = "boxes:delete"
    BOXES_EXPORT = "boxes:export"

    # Products
    PRODUCTS_VIEW = "products:view"
    PRODUCTS_CREATE = "products:create"
    PRODUCTS_EDIT = "products:edit"
    PRODUCTS_DELETE = "products:delete"
    PRODUCTS_IMPORT = "products:import"

    # Providers
    PROVIDERS_VIEW = "providers:view"
    PROVIDERS_CREATE = "providers:create"
    PROVIDERS_EDIT = "providers:edit"
    PROVIDERS_DELETE = "providers:delete"

    # Projects
    PROJECTS_VIEW = "projects:view"
    PROJECTS_CREATE = "projects:create"
    PROJECTS_EDIT = "projects:edit"
    PROJECTS_DELETE = "projects:delete"
    PROJECTS_FINALIZE = "projects:finalize"

    # Dashboard
    DASHBOARD_VIEW = "dashboard:view"
    DASHBOARD_METRICS = "dashboard:metrics"

    # Settings
    SETTINGS_VIEW = "settings:view"
    SETTINGS_EDIT = "settings:edit"
