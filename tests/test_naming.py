"""
Unit tests for domain/naming.py.
"""
import unittest

from drf_ts_generator.domain.models import CandidateClass, ClassKind, NameBinding
from drf_ts_generator.domain.naming import (
    build_prefixed_name,
    build_unique_names,
    pluralize,
    property_key,
    to_pascal_case,
    to_snake_case,
)


def candidate(qualified_name, kind=ClassKind.VALIDATOR, base="app.forms"):
    return CandidateClass(qualified_name=qualified_name, kind=kind, cls=None, base_namespace=base)


class TestCaseConversion(unittest.TestCase):

    def test_snake_case(self):
        self.assertEqual(to_snake_case("UserAccount"), "user_account")
        self.assertEqual(to_snake_case("XMLHttpRequest"), "xml_http_request")
        self.assertEqual(to_snake_case("recentPosts"), "recent_posts")
        self.assertEqual(to_snake_case("already_snake"), "already_snake")

    def test_snake_case_rejects_non_strings(self):
        with self.assertRaises(TypeError):
            to_snake_case(None)

    def test_pascal_case_keeps_number(self):
        self.assertEqual(to_pascal_case("users"), "Users")
        self.assertEqual(to_pascal_case("api_v1"), "ApiV1")

    def test_pluralize(self):
        self.assertEqual(pluralize("User"), "Users")
        self.assertEqual(pluralize("Category"), "Categories")
        self.assertEqual(pluralize("UserSerializer"), "UserSerializers")
        self.assertEqual(pluralize("PostCategory"), "PostCategories")
        self.assertEqual(pluralize("Person"), "People")

    def test_property_key_quotes_invalid_identifiers(self):
        self.assertEqual(property_key("name"), "name")
        self.assertEqual(property_key("$ref"), "$ref")
        self.assertEqual(property_key("first-name"), "'first-name'")
        self.assertEqual(property_key("2fa"), "'2fa'")


class TestUniqueNames(unittest.TestCase):

    def test_unique_simple_names_are_kept(self):
        binding = build_unique_names([candidate("app.forms.users.CreateUserForm")])
        self.assertEqual(binding.get("app.forms.users.CreateUserForm"), "CreateUserForm")

    def test_prefix_from_package_path(self):
        c = candidate("app.forms.admin.api.v1.users.Foo")
        self.assertEqual(build_prefixed_name(c), "AdminApiV1Foo")

    def test_colliding_validators_get_namespace_prefix(self):
        first = candidate("app.forms.users.CreateUserForm")
        second = candidate("app.forms.admin.users.CreateUserForm")
        binding = build_unique_names([second, first])

        self.assertEqual(binding[first], "CreateUserForm")
        self.assertEqual(binding[second], "AdminCreateUserForm")

    def test_names_are_unique_across_kinds(self):
        model = candidate("app.models.users.User", ClassKind.ENTITY, "app.models")
        form = candidate("app.forms.users.User", ClassKind.VALIDATOR, "app.forms")
        binding = build_unique_names([model, form])

        names = [display for _, display in binding.items()]
        self.assertEqual(len(names), len(set(names)))

    def test_sibling_modules_use_module_prefix(self):
        orders = candidate("app.forms.orders.CreateForm")
        users = candidate("app.forms.users.CreateForm")
        binding = build_unique_names([users, orders])

        self.assertEqual(binding[orders], "OrdersCreateForm")
        self.assertEqual(binding[users], "UsersCreateForm")

    def test_module_prefix_only_for_colliding_packages(self):
        first = candidate("app.forms.users.CreateUserForm")
        second = candidate("app.forms.admin.users.CreateUserForm")
        third = candidate("app.forms.admin.staff.CreateUserForm")
        binding = build_unique_names([first, second, third])

        self.assertEqual(binding[first], "CreateUserForm")
        self.assertEqual(binding[second], "AdminUsersCreateUserForm")
        self.assertEqual(binding[third], "AdminStaffCreateUserForm")

    def test_prefixed_name_with_module(self):
        c = candidate("app.forms.admin.users.Foo")
        self.assertEqual(build_prefixed_name(c, include_module=True), "AdminUsersFoo")

    def test_numeric_suffix_when_prefix_still_collides(self):
        first = candidate("app.forms.Users.Foo")
        second = candidate("app.forms.users.Foo")
        binding = build_unique_names([second, first])

        self.assertEqual(binding[first], "UsersFoo")
        self.assertEqual(binding[second], "UsersFoo2")

    def test_deterministic_regardless_of_input_order(self):
        items = [
            candidate("app.forms.x.Foo"),
            candidate("app.forms.admin.x.Foo"),
            candidate("app.forms.staff.x.Foo"),
        ]
        forward = dict(build_unique_names(items).items())
        backward = dict(build_unique_names(list(reversed(items))).items())
        self.assertEqual(forward, backward)

    def test_binding_rejects_duplicates(self):
        with self.assertRaises(ValueError):
            NameBinding({"a.Foo": "Foo", "b.Foo": "Foo"})


if __name__ == "__main__":
    unittest.main()
