"""
Tests for model field extraction.
"""
import unittest

from drf_ts_generator.domain.models import FieldOrigin
from drf_ts_generator.extractors.entities import (
    accessor_fields,
    declared_fields,
    extract_entity_fields,
    storage_fields,
    timestamp_columns,
)
from tests.factories import field_map, make_config, make_context
from tests.sample_app.models import Post, Profile, User


def rendered(fields):
    return {f.name: (f.type.render(), f.nullable) for f in fields}


class TestDeclaredModelFields(unittest.TestCase):
    """Default 'declared' mode on the sample models."""

    @classmethod
    def setUpClass(cls):
        cls.context, _, _ = make_context()

    def test_user_interface_fields(self):
        fields = rendered(extract_entity_fields(User, self.context))
        self.assertEqual(fields["id"], ("number", False))
        self.assertEqual(fields["name"], ("string", True))
        self.assertEqual(fields["email"], ("string", True))
        self.assertEqual(fields["birth_date"], ("Date", True))
        self.assertEqual(fields["created_at"], ("Date", True))
        self.assertEqual(fields["updated_at"], ("Date", True))
        self.assertEqual(fields["posts"], ("Post[]", True))
        self.assertEqual(fields["profile"], ("Profile", True))
        self.assertEqual(fields["display_label"], ("string", True))
        self.assertEqual(fields["initials"], ("unknown", True))
        self.assertEqual(fields["published_posts"], ("Post[]", True))
        self.assertNotIn("posts_since", fields)

    def test_timestamps_come_from_auto_fields(self):
        self.assertEqual(timestamp_columns(User), ["created_at", "updated_at"])
        origins = {f.name: f.origin for f in extract_entity_fields(User, self.context)}
        self.assertEqual(origins["created_at"], FieldOrigin.TIMESTAMP)
        self.assertEqual(origins["id"], FieldOrigin.PRIMARY_KEY)

    def test_foreign_keys_use_attname(self):
        fields = field_map(declared_fields(Post, self.context))
        self.assertIn("author_id", fields)
        self.assertEqual(fields["author_id"].type.render(), "number")
        self.assertNotIn("tags", fields)

    def test_display_accessor(self):
        fields = field_map(accessor_fields(Post, self.context))
        self.assertEqual(fields["status_display"].type.render(), "string")

    def test_json_field_is_record(self):
        fields = rendered(extract_entity_fields(Profile, self.context))
        self.assertEqual(fields["settings"], ("Record<string, unknown>", True))
        self.assertEqual(fields["avatar"], ("string", True))
        self.assertEqual(fields["user_id"], ("number", True))
        self.assertEqual(fields["user"], ("User", True))

    def test_accessors_and_relations_can_be_disabled(self):
        context, _, _ = make_context(make_config(include_accessors=False, include_relations=False))
        fields = rendered(extract_entity_fields(User, context))
        self.assertNotIn("display_label", fields)
        self.assertNotIn("posts", fields)
        self.assertIn("name", fields)


class TestStorageModelFields(unittest.TestCase):
    """Database column introspection on the sqlite test database."""

    @classmethod
    def setUpClass(cls):
        cls.context, _, _ = make_context(make_config(properties_mode="storage"))

    def test_columns_use_database_nullability(self):
        fields = rendered(storage_fields(User, self.context))
        self.assertEqual(fields["name"], ("string", False))
        self.assertEqual(fields["birth_date"], ("Date", True))
        self.assertEqual(fields["id"], ("number", False))

    def test_model_field_cast_wins_over_column(self):
        fields = rendered(storage_fields(Profile, self.context))
        self.assertEqual(fields["settings"][0], "Record<string, unknown>")

    def test_storage_mode_keeps_timestamps(self):
        fields = rendered(extract_entity_fields(Post, self.context))
        self.assertEqual(fields["created_at"][0], "Date")
        self.assertEqual(fields["author_id"], ("number", False))
        self.assertEqual(fields["rating"], ("number", True))

    def test_both_mode_prefers_columns(self):
        context, _, _ = make_context(make_config(properties_mode="both"))
        fields = field_map(extract_entity_fields(User, context))
        self.assertEqual(fields["name"].origin, FieldOrigin.STORAGE)
        self.assertFalse(fields["name"].nullable)


if __name__ == "__main__":
    unittest.main()
