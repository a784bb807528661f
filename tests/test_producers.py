"""
Tests for serializer field extraction and type inference.
"""
import unittest

from rest_framework import serializers

from drf_ts_generator.domain.models import ArrayOf, FieldDescriptor, FieldOrigin, Unresolved
from drf_ts_generator.exceptions import ExtractionError
from drf_ts_generator.extractors.producers import (
    ProducerTypeInferrer,
    execution_fields,
    extract_producer_fields,
    heuristic_type,
    own_shape_method,
    sample_representation,
    static_fields,
)
from tests.factories import make_config, make_context
from tests.sample_app.serializers.common import HealthSerializer
from tests.sample_app.serializers.orders.checkout import (
    OrderLineSerializer,
    OrderSerializer,
    RefundSerializer,
)
from tests.sample_app.serializers.users.accounts import (
    AvatarSerializer,
    PostSummarySerializer,
    UserSerializer,
)


def rendered(fields):
    return {f.name: f.type.render() for f in fields}


class TestBaseExtraction(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.context, _, _ = make_context()

    def test_own_shape_method(self):
        self.assertIsNotNone(own_shape_method(AvatarSerializer))
        self.assertIsNone(own_shape_method(UserSerializer))

    def test_execution_samples_null_instance(self):
        fields = {f.name: f for f in execution_fields(AvatarSerializer, self.context)}
        self.assertEqual(set(fields), {"id", "avatar_url"})
        self.assertTrue(all(f.type.is_unresolved for f in fields.values()))
        self.assertTrue(all(f.origin == FieldOrigin.EXECUTION for f in fields.values()))

    def test_execution_failure_raises_extraction_error(self):
        with self.assertRaises(ExtractionError):
            sample_representation(RefundSerializer, self.context)

    def test_non_mapping_representation(self):
        class ListShaped(serializers.Serializer):
            def to_representation(self, instance):
                return ["not", "a", "mapping"]

        with self.assertRaises(ExtractionError):
            sample_representation(ListShaped, self.context)

    def test_static_fields_from_declared_and_meta(self):
        names = [f.name for f in static_fields(UserSerializer, self.context)]
        self.assertEqual(sorted(names), ["bio", "birth_date", "email", "id", "name", "post_count", "posts"])

    def test_static_fields_from_shape_method(self):
        names = [f.name for f in static_fields(RefundSerializer, self.context)]
        self.assertEqual(names, ["order", "reason", "amount", "refund_total"])


class TestProducerFields(unittest.TestCase):
    """End to end extraction on the sample serializers."""

    @classmethod
    def setUpClass(cls):
        cls.context, _, _ = make_context()

    def fields(self, producer_cls):
        return rendered(extract_producer_fields(producer_cls, self.context))

    def test_name_heuristics_type_null_values(self):
        self.assertEqual(self.fields(AvatarSerializer), {"id": "number", "avatar_url": "string"})

    def test_declared_serializer_fields(self):
        fields = self.fields(UserSerializer)
        self.assertEqual(fields["id"], "number")
        self.assertEqual(fields["name"], "string")
        self.assertEqual(fields["email"], "string")
        self.assertEqual(fields["birth_date"], "string")
        self.assertEqual(fields["posts"], "PostSummarySerializer[]")
        self.assertEqual(fields["post_count"], "number")
        self.assertEqual(fields["bio"], "string")

    def test_choices_and_related_keys(self):
        fields = self.fields(PostSummarySerializer)
        self.assertEqual(fields["status"], "'draft' | 'published'")
        self.assertEqual(fields["tags"], "number[]")
        self.assertEqual(fields["title"], "string")

    def test_decimal_fields_are_strings(self):
        fields = self.fields(OrderLineSerializer)
        self.assertEqual(fields, {"sku": "string", "quantity": "number", "unit_price": "string"})

    def test_nested_serializer_data(self):
        fields = self.fields(OrderSerializer)
        self.assertEqual(fields["reference"], "string")
        self.assertEqual(fields["total"], "number")
        self.assertEqual(fields["placed_on"], "string")
        self.assertEqual(fields["customer"], "UserSerializer")
        self.assertEqual(fields["lines"], "OrderLineSerializer[]")
        self.assertEqual(fields["is_gift"], "boolean")

    def test_static_path_with_source_analysis(self):
        fields = {f.name: f for f in extract_producer_fields(RefundSerializer, self.context)}
        self.assertEqual(fields["order"].type.render(), "OrderSerializer")
        self.assertEqual(fields["order"].origin, FieldOrigin.SOURCE)
        self.assertEqual(fields["amount"].type.render(), "string")
        self.assertEqual(fields["amount"].origin, FieldOrigin.DOC)
        self.assertEqual(fields["refund_total"].type.render(), "number")
        self.assertEqual(fields["reason"].type.render(), "unknown")
        self.assertEqual(fields["reason"].origin, FieldOrigin.FALLBACK)

    def test_plain_serializer_fields(self):
        self.assertEqual(self.fields(HealthSerializer), {"status": "string", "uptime_seconds": "number"})

    def test_every_field_is_nullable(self):
        fields = extract_producer_fields(OrderSerializer, self.context)
        self.assertTrue(all(f.nullable for f in fields))

    def test_inference_disabled_closes_to_fallback(self):
        context, _, _ = make_context(make_config(infer_producer_types=False, unknown_type_fallback="any"))
        fields = {f.name: f for f in extract_producer_fields(AvatarSerializer, context)}
        self.assertEqual(fields["id"].type.render(), "any")
        self.assertEqual(fields["id"].origin, FieldOrigin.FALLBACK)


class TestInferenceStrategies(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.context, _, _ = make_context()

    def test_model_lookup_from_meta(self):
        inferrer = ProducerTypeInferrer(PostSummarySerializer, self.context)
        self.assertEqual(inferrer.from_model("rating").render(), "number")
        self.assertEqual(inferrer.from_model("author_id").render(), "number")
        self.assertEqual(inferrer.from_model("tags").render(), "number[]")
        self.assertIsNone(inferrer.from_model("missing"))

    def test_model_lookup_from_class_name(self):
        class PostSerializer(serializers.Serializer):
            pass

        inferrer = ProducerTypeInferrer(PostSerializer, self.context)
        self.assertEqual(inferrer.from_model("id").render(), "number")

    def test_name_heuristics_run_last(self):
        inferrer = ProducerTypeInferrer(AvatarSerializer, self.context)
        descriptor = FieldDescriptor("owner_id", Unresolved(), True, FieldOrigin.EXECUTION)
        inferred = inferrer.infer(descriptor)
        self.assertEqual(inferred.type.render(), "number")
        self.assertEqual(inferred.origin, FieldOrigin.HEURISTIC)

    def test_unresolved_arrays_skip_name_heuristics(self):
        inferrer = ProducerTypeInferrer(AvatarSerializer, self.context)
        descriptor = FieldDescriptor("owner_id", ArrayOf(Unresolved()), True, FieldOrigin.EXECUTION)
        self.assertTrue(inferrer.infer(descriptor).type.is_unresolved)

    def test_heuristic_type(self):
        cases = {
            "id": "number",
            "author_id": "number",
            "published_at": "string",
            "comment_count": "number",
            "is_active": "boolean",
            "url": "string",
            "contact_email": "string",
            "display_name": "string",
            "description": "string",
            "unit_price": "number",
            "tax_rate": "number",
        }
        for name, expected in cases.items():
            with self.subTest(name=name):
                self.assertEqual(heuristic_type(name).render(), expected)
        self.assertIsNone(heuristic_type("payload"))


if __name__ == "__main__":
    unittest.main()
