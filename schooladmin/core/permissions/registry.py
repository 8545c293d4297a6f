"""
Page permission registry.

Every page of the front-end is listed here with the API calls it makes. A
``view`` grant on a page covers its view APIs; an ``edit`` grant covers the
view APIs plus the edit APIs. Granting a page permission therefore also grants
the matching ``resource:action`` API permissions, and the request-level check
accepts either.

API paths are relative to the ``/api/v1`` prefix and use ``:name`` for path
parameters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from schooladmin.core.models.domain.enums import PageAction

PAGE_RESOURCE = "page"


@dataclass(frozen=True)
class ApiPermission:
    """One API call: the permission it needs and the route it hits."""

    resource: str
    action: str
    method: str
    path: str

    @property
    def name(self) -> str:
        return permission_name(self.resource, self.action)

    @property
    def pattern(self) -> "re.Pattern[str]":
        return _compile_path(self.path)


@dataclass(frozen=True)
class PageDefinition:
    page: str
    display_name: str
    display_name_hebrew: str
    description: str
    description_hebrew: str
    category: str
    supports_edit_mode: bool
    view_apis: Tuple[ApiPermission, ...] = field(default_factory=tuple)
    edit_apis: Tuple[ApiPermission, ...] = field(default_factory=tuple)


CATEGORIES: Dict[str, str] = {
    "general": "כללי",
    "academic": "אקדמי",
    "administration": "ניהול",
}


def permission_name(resource: str, action: str) -> str:
    return f"{resource}:{action}"


def page_permission_action(page: str, action: str) -> str:
    """Action column of a page permission, e.g. ``students:view``."""
    return f"{page}:{action}"


def page_permission_name(page: str, action: str) -> str:
    """Full name of a page permission, e.g. ``page:students:view``."""
    return permission_name(PAGE_RESOURCE, page_permission_action(page, action))


_PATH_CACHE: Dict[str, "re.Pattern[str]"] = {}


def _compile_path(template: str) -> "re.Pattern[str]":
    compiled = _PATH_CACHE.get(template)
    if compiled is None:
        parts = [("[^/]+" if part.startswith(":") else re.escape(part)) for part in template.strip("/").split("/")]
        compiled = re.compile("^/" + "/".join(parts) + "/?$")
        _PATH_CACHE[template] = compiled
    return compiled


def _api(resource: str, action: str, method: str, path: str) -> ApiPermission:
    return ApiPermission(resource=resource, action=action, method=method, path=path)


PAGES: Tuple[PageDefinition, ...] = (
    PageDefinition(
        page="dashboard",
        display_name="Dashboard",
        display_name_hebrew="לוח בקרה",
        description="Overview of students, cohorts and classes",
        description_hebrew="סקירה כללית של תלמידים, מחזורים וכיתות",
        category="general",
        supports_edit_mode=False,
        view_apis=(
            _api("students", "read", "GET", "/students"),
            _api("cohorts", "read", "GET", "/cohorts"),
            _api("classes", "read", "GET", "/classes"),
            _api("tracks", "read", "GET", "/tracks"),
        ),
    ),
    PageDefinition(
        page="students",
        display_name="Students",
        display_name_hebrew="תלמידים",
        description="Student records, Excel import and yearly promotion",
        description_hebrew="רשומות תלמידים, ייבוא מאקסל וקידום שנתי",
        category="academic",
        supports_edit_mode=True,
        view_apis=(
            _api("students", "read", "GET", "/students"),
            _api("students", "read", "GET", "/students/:id"),
            _api("students", "read", "GET", "/students/id-number/:idNumber"),
            _api("cohorts", "read", "GET", "/cohorts"),
            _api("tracks", "read", "GET", "/tracks"),
            _api("classes", "read", "GET", "/classes"),
        ),
        edit_apis=(
            _api("students", "create", "POST", "/students"),
            _api("students", "update", "PUT", "/students/:id"),
            _api("students", "delete", "DELETE", "/students/:id"),
            _api("students", "upload", "POST", "/students/upload"),
            _api("students", "upload", "POST", "/students/upload/validate"),
            _api("students", "upload", "GET", "/students/upload/template"),
            _api("students", "promote", "POST", "/students/promote-all"),
            _api("students", "promote", "POST", "/students/cohorts/:cohortId/promote"),
        ),
    ),
    PageDefinition(
        page="resources",
        display_name="Resources",
        display_name_hebrew="משאבים",
        description="Rooms, departments and staff",
        description_hebrew="חדרים, מחלקות ואנשי צוות",
        category="administration",
        supports_edit_mode=True,
        view_apis=(
            _api("rooms", "read", "GET", "/rooms"),
            _api("rooms", "read", "GET", "/rooms/:id"),
            _api("soldiers", "read", "GET", "/soldiers"),
            _api("soldiers", "read", "GET", "/soldiers/:id"),
        ),
        edit_apis=(
            _api("rooms", "create", "POST", "/rooms"),
            _api("rooms", "update", "PUT", "/rooms/:id"),
            _api("rooms", "delete", "DELETE", "/rooms/:id"),
        ),
    ),
    PageDefinition(
        page="settings",
        display_name="Settings",
        display_name_hebrew="הגדרות",
        description="Departments and roles overview",
        description_hebrew="סקירת מחלקות ותפקידים",
        category="administration",
        supports_edit_mode=False,
        view_apis=(
            _api("departments", "read", "GET", "/departments/:id"),
            _api("departments", "read", "GET", "/departments/:id/commanders"),
            _api("roles", "read", "GET", "/roles/:id"),
        ),
    ),
    PageDefinition(
        page="tracks",
        display_name="Tracks",
        display_name_hebrew="מגמות",
        description="Study tracks offered by the school",
        description_hebrew="מגמות הלימוד בבית הספר",
        category="academic",
        supports_edit_mode=True,
        view_apis=(
            _api("tracks", "read", "GET", "/tracks"),
            _api("tracks", "read", "GET", "/tracks/:id"),
        ),
        edit_apis=(
            _api("tracks", "create", "POST", "/tracks"),
            _api("tracks", "update", "PUT", "/tracks/:id"),
            _api("tracks", "delete", "DELETE", "/tracks/:id"),
        ),
    ),
    PageDefinition(
        page="cohorts",
        display_name="Cohorts",
        display_name_hebrew="מחזורים",
        description="Cohorts, their names and current grades",
        description_hebrew="מחזורים, שמותיהם והכיתה הנוכחית",
        category="academic",
        supports_edit_mode=True,
        view_apis=(
            _api("cohorts", "read", "GET", "/cohorts"),
            _api("cohorts", "read", "GET", "/cohorts/:id"),
            _api("cohorts", "read", "POST", "/cohorts/calculate-grade"),
            _api("cohorts", "read", "POST", "/cohorts/calculate-cohort"),
            _api("cohorts", "read", "POST", "/cohorts/validate-match"),
        ),
        edit_apis=(
            _api("cohorts", "create", "POST", "/cohorts"),
            _api("cohorts", "update", "PUT", "/cohorts/:id"),
            _api("cohorts", "delete", "DELETE", "/cohorts/:id"),
            _api("cohorts", "update", "POST", "/cohorts/refresh"),
            _api("cohorts", "update", "POST", "/cohorts/update-names"),
        ),
    ),
    PageDefinition(
        page="classes",
        display_name="Classes",
        display_name_hebrew="כיתות",
        description="Classes per academic year",
        description_hebrew="כיתות לפי שנת לימודים",
        category="academic",
        supports_edit_mode=True,
        view_apis=(
            _api("classes", "read", "GET", "/classes"),
            _api("classes", "read", "GET", "/classes/:id"),
        ),
        edit_apis=(
            _api("classes", "create", "POST", "/classes"),
            _api("classes", "update", "PUT", "/classes/:id"),
            _api("classes", "delete", "DELETE", "/classes/:id"),
        ),
    ),
    PageDefinition(
        page="student-exits",
        display_name="Student Exits",
        display_name_hebrew="עזיבות תלמידים",
        description="Students who left the school and why",
        description_hebrew="תלמידים שעזבו את בית הספר וסיבות העזיבה",
        category="academic",
        supports_edit_mode=True,
        view_apis=(
            _api("student-exits", "read", "GET", "/student-exits"),
            _api("student-exits", "read", "GET", "/student-exits/student/:studentId"),
            _api("students", "read", "GET", "/students"),
        ),
        edit_apis=(
            _api("student-exits", "create", "POST", "/student-exits"),
            _api("student-exits", "update", "PUT", "/student-exits/:studentId"),
        ),
    ),
)

_PAGES_BY_NAME: Dict[str, PageDefinition] = {page.page: page for page in PAGES}


def get_page(page: str) -> Optional[PageDefinition]:
    return _PAGES_BY_NAME.get(page)


def get_all_pages() -> List[PageDefinition]:
    return list(PAGES)


def get_api_permissions_for_page(page: str, action: str) -> List[ApiPermission]:
    """API permissions implied by a page grant, deduplicated by ``resource:action``.

    ``view`` covers the view APIs; ``edit`` covers view and edit APIs. Unknown
    pages yield an empty list.
    """
    definition = get_page(page)
    if definition is None:
        return []

    apis = list(definition.view_apis)
    if action == PageAction.edit.value:
        apis.extend(definition.edit_apis)

    seen = set()
    unique = []
    for api in apis:
        if api.name in seen:
            continue
        seen.add(api.name)
        unique.append(api)
    return unique


def get_pages_by_category() -> Dict[str, List[PageDefinition]]:
    grouped: Dict[str, List[PageDefinition]] = {}
    for page in PAGES:
        grouped.setdefault(page.category, []).append(page)
    return grouped


def get_all_categories() -> List[Dict[str, str]]:
    return [{"category": key, "category_hebrew": label} for key, label in CATEGORIES.items()]


def match_api_permission(api: ApiPermission, method: str, path: str) -> bool:
    return api.method == method.upper() and api.pattern.match(path) is not None


def find_page_permissions_for_request(method: str, path: str) -> List[str]:
    """Page permission names, any one of which allows ``method path``.

    A view grant covers a page's view APIs; an edit grant covers both lists.
    """
    accepted: List[str] = []
    for page in PAGES:
        if any(match_api_permission(api, method, path) for api in page.view_apis):
            accepted.append(page_permission_name(page.page, PageAction.view.value))
            if page.supports_edit_mode:
                accepted.append(page_permission_name(page.page, PageAction.edit.value))
        elif any(match_api_permission(api, method, path) for api in page.edit_apis):
            accepted.append(page_permission_name(page.page, PageAction.edit.value))
    return accepted


_METHOD_ACTIONS = {
    "GET": "read",
    "HEAD": "read",
    "POST": "create",
    "PUT": "update",
    "PATCH": "update",
    "DELETE": "delete",
}


def infer_resource_action(method: str, path: str) -> Optional[Tuple[str, str]]:
    """Fallback ``(resource, action)`` for a request: first path segment and the method's verb."""
    segments = [s for s in path.split("/") if s]
    action = _METHOD_ACTIONS.get(method.upper())
    if not segments or action is None:
        return None
    return segments[0], action
