"""
Tests for relation detection and the relation/field conflict rule.
"""
import unittest

from drf_ts_generator.constants import Cardinality
from drf_ts_generator.domain.models import (
    ArrayOf,
    FieldDescriptor,
    FieldOrigin,
    Primitive,
    Reference,
    RelationDescriptor,
)
from drf_ts_generator.domain.relationships import RelationResolver, merge_relations
from tests.factories import make_context
from tests.sample_app.models import Post, Profile, Tag, User


class TestMergeRelations(unittest.TestCase):
    """Conflict rule between relations and already extracted fields."""

    def relation(self, name):
        return FieldDescriptor(name, ArrayOf(Reference("Post")), True, FieldOrigin.RELATION)

    def test_numeric_field_is_renamed(self):
        fields = [FieldDescriptor("posts", Primitive("number"), True)]
        merged = merge_relations(fields, [self.relation("posts")])

        by_name = {f.name: f for f in merged}
        self.assertEqual(set(by_name), {"posts_count", "posts"})
        self.assertEqual(by_name["posts_count"].type, Primitive("number"))
        self.assertEqual(by_name["posts"].origin, FieldOrigin.RELATION)

    def test_other_field_is_replaced(self):
        fields = [FieldDescriptor("posts", Primitive("string"), True)]
        merged = merge_relations(fields, [self.relation("posts")])

        self.assertEqual(len(merged), 1)
        self.assertEqual(merged[0].type, ArrayOf(Reference("Post")))

    def test_no_collision_appends(self):
        fields = [FieldDescriptor("name", Primitive("string"), True)]
        merged = merge_relations(fields, [self.relation("posts")])
        self.assertEqual([f.name for f in merged], ["name", "posts"])


class TestRelationResolver(unittest.TestCase):
    """Relation detection on the sample models."""

    @classmethod
    def setUpClass(cls):
        context, _, _ = make_context()
        cls.context = context
        cls.resolver = RelationResolver(context.resolver, context.entity_classes, context.invoke)

    def relations(self, model_cls):
        return {r.name: r for r in self.resolver.resolve(model_cls)}

    def test_reverse_descriptors(self):
        relations = self.relations(User)
        self.assertEqual(relations["posts"].cardinality, Cardinality.MANY)
        self.assertEqual(relations["posts"].related, "Post")
        self.assertEqual(relations["profile"].cardinality, Cardinality.ONE)
        self.assertEqual(relations["profile"].related, "Profile")

    def test_forward_descriptors(self):
        relations = self.relations(Post)
        self.assertEqual(relations["author"].cardinality, Cardinality.ONE)
        self.assertEqual(relations["author"].related, "User")
        self.assertEqual(relations["tags"].cardinality, Cardinality.MANY)
        self.assertEqual(relations["tags"].related, "Tag")
        self.assertEqual(self.relations(Profile)["user"].related, "User")
        self.assertEqual(self.relations(Tag)["posts"].related, "Post")

    def test_declared_return_annotation(self):
        relation = self.relations(User)["published_posts"]
        self.assertEqual(relation.cardinality, Cardinality.MANY)
        self.assertEqual(relation.related, "Post")

    def test_docstring_return_type(self):
        member = User.__dict__["drafts"]
        self.assertIsNone(self.resolver.from_declared_type(member))
        self.assertEqual(self.resolver.from_docstring(member), Cardinality.MANY)
        self.assertEqual(self.relations(User)["drafts"].related, "Post")

    def test_method_body(self):
        member = User.__dict__["recent_posts"]
        self.assertIsNone(self.resolver.from_docstring(member))
        self.assertEqual(self.resolver.from_method_body(member), Cardinality.MANY)
        self.assertEqual(self.relations(User)["recent_posts"].related, "Post")

    def test_members_with_required_parameters_are_skipped(self):
        self.assertNotIn("posts_since", self.relations(User))

    def test_properties_are_not_relations(self):
        relations = self.relations(User)
        self.assertNotIn("display_label", relations)
        self.assertNotIn("initials", relations)

    def test_json_lookups_are_not_relations(self):
        self.assertEqual(self.resolver.from_method_body(Profile.__dict__["theme"]), Cardinality.ONE)
        self.assertEqual(self.resolver.from_method_body(Profile.__dict__["setting_values"]), Cardinality.MANY)

        relations = self.relations(Profile)
        self.assertNotIn("theme", relations)
        self.assertNotIn("setting_values", relations)
        self.assertIn("user", relations)

    def test_undiscovered_model_is_kept_without_target(self):
        context, _, _ = make_context()
        resolver = RelationResolver(context.resolver, {User: "User"}, context.invoke)
        relations = {r.name: r for r in resolver.resolve(User)}

        self.assertEqual(relations["recent_posts"].cardinality, Cardinality.MANY)
        self.assertIsNone(relations["recent_posts"].related)
        self.assertEqual(resolver.to_field(relations["recent_posts"]).type, Primitive("unknown"))

    def test_unknown_related_model_degrades_to_fallback(self):
        relation = self.relations(User)["posts"]
        field = self.resolver.to_field(RelationDescriptor(relation.name, relation.cardinality, None))
        self.assertEqual(field.type, Primitive("unknown"))
        self.assertTrue(field.nullable)

    def test_many_relation_field(self):
        field = self.resolver.to_field(self.relations(User)["posts"])
        self.assertEqual(field.type.render(), "Post[]")


if __name__ == "__main__":
    unittest.main()
