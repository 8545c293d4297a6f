"""Unit tests for the page and API permission registry."""

import pytest

from schooladmin.core.permissions import (
    ApiPermission,
    find_page_permissions_for_request,
    get_all_categories,
    get_api_permissions_for_page,
    get_page,
    get_pages_by_category,
    infer_resource_action,
    match_api_permission,
    page_permission_action,
    page_permission_name,
)


class TestNames:
    def test_page_permission_names(self):
        assert page_permission_action("students", "view") == "students:view"
        assert page_permission_name("students", "edit") == "page:students:edit"

    def test_every_page_has_hebrew_labels(self):
        for page in ("dashboard", "students", "resources", "settings", "tracks", "cohorts", "classes", "student-exits"):
            definition = get_page(page)
            assert definition is not None
            assert definition.display_name_hebrew
            assert definition.description_hebrew

    def test_unknown_page(self):
        assert get_page("reports") is None


class TestImpliedApiPermissions:
    def test_view_grants_view_apis_once_each(self):
        names = [api.name for api in get_api_permissions_for_page("students", "view")]
        assert names == ["students:read", "cohorts:read", "tracks:read", "classes:read"]

    def test_edit_adds_edit_apis(self):
        names = [api.name for api in get_api_permissions_for_page("students", "edit")]
        assert names[:4] == ["students:read", "cohorts:read", "tracks:read", "classes:read"]
        assert set(names[4:]) == {
            "students:create",
            "students:update",
            "students:delete",
            "students:upload",
            "students:promote",
        }
        assert len(names) == len(set(names))

    def test_unknown_page_implies_nothing(self):
        assert get_api_permissions_for_page("reports", "view") == []


class TestMatching:
    @pytest.mark.parametrize(
        "method, path, expected",
        [
            ("GET", "/students/42", True),
            ("get", "/students/42", True),
            ("GET", "/students/42/", True),
            ("PUT", "/students/42", False),
            ("GET", "/students", False),
            ("GET", "/students/id-number/123456782", False),
        ],
    )
    def test_match_api_permission(self, method, path, expected):
        api = ApiPermission(resource="students", action="read", method="GET", path="/students/:id")
        assert match_api_permission(api, method, path) is expected

    def test_request_allowed_by_several_pages(self):
        assert find_page_permissions_for_request("GET", "/students") == [
            "page:dashboard:view",
            "page:students:view",
            "page:students:edit",
            "page:student-exits:view",
            "page:student-exits:edit",
        ]

    def test_edit_only_request(self):
        assert find_page_permissions_for_request("POST", "/students/upload") == ["page:students:edit"]

    def test_request_not_used_by_any_page(self):
        assert find_page_permissions_for_request("DELETE", "/departments/1") == []

    @pytest.mark.parametrize(
        "method, path, expected",
        [
            ("GET", "/rooms", ("rooms", "read")),
            ("POST", "/rooms", ("rooms", "create")),
            ("PATCH", "/rooms/3", ("rooms", "update")),
            ("DELETE", "/rooms/3", ("rooms", "delete")),
            ("OPTIONS", "/rooms", None),
            ("GET", "/", None),
        ],
    )
    def test_infer_resource_action(self, method, path, expected):
        assert infer_resource_action(method, path) == expected


class TestCategories:
    def test_pages_by_category(self):
        grouped = get_pages_by_category()
        assert [p.page for p in grouped["academic"]] == ["students", "tracks", "cohorts", "classes", "student-exits"]
        assert [p.page for p in grouped["general"]] == ["dashboard"]

    def test_all_categories(self):
        categories = get_all_categories()
        assert {"category": "academic", "category_hebrew": "אקדמי"} in categories
        assert len(categories) == 3
