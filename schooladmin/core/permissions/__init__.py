"""Page and API permission registry."""

from .registry import (
    CATEGORIES,
    PAGE_RESOURCE,
    PAGES,
    ApiPermission,
    PageDefinition,
    find_page_permissions_for_request,
    get_all_categories,
    get_all_pages,
    get_api_permissions_for_page,
    get_page,
    get_pages_by_category,
    infer_resource_action,
    match_api_permission,
    page_permission_action,
    page_permission_name,
    permission_name,
)

__all__ = [
    "CATEGORIES",
    "PAGE_RESOURCE",
    "PAGES",
    "ApiPermission",
    "PageDefinition",
    "find_page_permissions_for_request",
    "get_all_categories",
    "get_all_pages",
    "get_api_permissions_for_page",
    "get_page",
    "get_pages_by_category",
    "infer_resource_action",
    "match_api_permission",
    "page_permission_action",
    "page_permission_name",
    "permission_name",
]
