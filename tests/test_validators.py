"""
Tests for form rule extraction and normalisation.
"""
import unittest
from enum import Enum

from django import forms

from drf_ts_generator.domain.models import FieldOrigin, RuleToken
from drf_ts_generator.exceptions import ExtractionError
from drf_ts_generator.extractors.validators import (
    choice_values,
    collapse_rules,
    execution_rules,
    extract_validator_fields,
    extract_validator_rules,
    form_field_tokens,
    normalize_rule_object,
    normalize_rule_value,
    parse_token,
    static_rules,
)
from tests.factories import make_context
from tests.sample_app.forms import users
from tests.sample_app.forms.admin import users as admin_users


class Color(Enum):
    RED = "red"
    BLUE = "blue"


class TestTokens(unittest.TestCase):

    def test_parse_token(self):
        self.assertEqual(parse_token("Required"), RuleToken("required"))
        self.assertEqual(parse_token("max:255"), RuleToken("max", ("255",)))
        self.assertEqual(parse_token("between: 2, 20"), RuleToken("between", ("2", "20")))

    def test_params_are_lower_cased_unless_case_sensitive(self):
        self.assertEqual(parse_token("after:Today"), RuleToken("after", ("today",)))
        self.assertEqual(parse_token("in:Admin,User"), RuleToken("in", ("Admin", "User")))

    def test_regex_is_never_split(self):
        self.assertEqual(parse_token("regex:^[A-Z]{3,5}$"), RuleToken("regex", ("^[A-Z]{3,5}$",)))

    def test_normalize_values(self):
        self.assertEqual(
            normalize_rule_value("required|string|max:10"),
            (RuleToken("required"), RuleToken("string"), RuleToken("max", ("10",))),
        )
        self.assertEqual(normalize_rule_value(["required", Color]), (
            RuleToken("required"), RuleToken("in", ("red", "blue")),
        ))

    def test_rule_objects(self):
        self.assertEqual(normalize_rule_object(users.Tier), [RuleToken("in", ("1", "2", "3"))])
        self.assertEqual(normalize_rule_object(object()), [RuleToken("object")])

    def test_choice_values(self):
        self.assertEqual(choice_values([("", "---"), ("a", "A"), ("b", "B")]), ("a", "b"))
        self.assertEqual(choice_values({"x": "X"}), ("x",))
        self.assertEqual(choice_values([("Group", [("1", "One"), ("2", "Two")])]), ("1", "2"))

    def test_form_field_tokens(self):
        tokens = form_field_tokens(forms.CharField(max_length=50))
        self.assertEqual(tokens, (RuleToken("required"), RuleToken("string"), RuleToken("max", ("50",))))
        tokens = form_field_tokens(forms.BooleanField(required=False))
        self.assertEqual(tokens, (RuleToken("boolean"),))

    def test_collapse_rules(self):
        rules = collapse_rules({
            "items.*": "string",
            "items.*.name": "required",
            "address.city": "required|string",
            "title": "string",
        })
        self.assertEqual([r.field for r in rules], ["items", "address", "title"])
        self.assertTrue(rules[0].wildcard)
        self.assertEqual(rules[0].names, ["string"])
        self.assertFalse(rules[1].wildcard)


class TestRuleExtraction(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.context, _, _ = make_context()

    def fields(self, form_cls):
        return {f.name: (f.type.render(), f.nullable) for f in extract_validator_fields(form_cls, self.context)}

    def test_rules_method(self):
        self.assertEqual(self.fields(users.CreateUserForm), {
            "name": ("string", False),
            "email": ("string", False),
            "role": ("'admin' | 'user' | 'guest'", False),
        })

    def test_rule_lists_enums_and_wildcards(self):
        fields = self.fields(users.RegistrationForm)
        self.assertEqual(fields["password"], ("string", False))
        self.assertEqual(fields["tags"], ("unknown[]", True))
        self.assertEqual(fields["tier"], ("1 | 2 | 3", False))
        self.assertEqual(fields["nickname"], ("string", True))
        self.assertEqual(fields["code"], ("string", True))
        self.assertEqual(len(fields), 5)

    def test_declared_form_fields(self):
        self.assertEqual(self.fields(users.ProfileForm), {
            "bio": ("string", True),
            "website": ("string", True),
            "age": ("number", False),
            "newsletter": ("boolean", True),
            "plan": ("'free' | 'pro'", False),
        })

    def test_declared_form_field_tokens(self):
        rules = {r.field: r for r in execution_rules(users.ProfileForm, self.context)}
        self.assertEqual([str(t) for t in rules["age"].tokens], ["required", "integer", "min:13"])
        self.assertEqual([str(t) for t in rules["bio"].tokens], ["string", "max:500"])

    def test_failing_rules_fall_back_to_static_keys(self):
        with self.assertRaises(ExtractionError):
            execution_rules(users.BrokenRulesForm, self.context)

        rules = extract_validator_rules(users.BrokenRulesForm, self.context)
        self.assertEqual([r.field for r in rules], ["title", "attachments"])
        self.assertTrue(all(not r.tokens for r in rules))

        fields = {f.name: f for f in extract_validator_fields(users.BrokenRulesForm, self.context)}
        self.assertEqual(fields["title"].type.render(), "unknown")
        self.assertEqual(fields["attachments"].type.render(), "unknown[]")
        self.assertTrue(fields["title"].nullable)
        self.assertEqual(fields["title"].origin, FieldOrigin.FALLBACK)

    def test_static_rules_from_declared_fields(self):
        rules = static_rules(users.ProfileForm)
        self.assertEqual([r.field for r in rules], ["bio", "website", "age", "newsletter", "plan"])

    def test_namespaced_form(self):
        self.assertEqual(self.fields(admin_users.CreateUserForm), {
            "name": ("string", False),
            "is_staff": ("boolean", True),
        })


if __name__ == "__main__":
    unittest.main()
