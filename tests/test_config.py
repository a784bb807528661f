"""
Tests for configuration loading and validation.
"""
import tempfile
import unittest
from argparse import Namespace
from pathlib import Path

import yaml
from pydantic import ValidationError

from drf_ts_generator.config_validation import GeneratorConfig, load_config, validate_and_parse_config
from drf_ts_generator.constants import DefaultConfig


class TestGeneratorConfig(unittest.TestCase):

    def test_defaults(self):
        config = GeneratorConfig()
        self.assertEqual(config.properties_mode, "declared")
        self.assertEqual(config.unknown_type_fallback, "unknown")
        self.assertEqual(config.split_by_domain, "off")
        self.assertTrue(config.generate_yup_schemas)
        self.assertFalse(config.generate_zod_schemas)
        self.assertEqual(config.output, DefaultConfig.OUTPUT)
        self.assertEqual(config.base_classes_for("producer"), ["rest_framework.serializers.BaseSerializer"])

    def test_config_is_frozen(self):
        config = GeneratorConfig()
        with self.assertRaises(ValidationError):
            config.output = "elsewhere.ts"

    def test_single_path_becomes_list(self):
        config = GeneratorConfig(entity_paths="app/models", exclude_validators=["  app.forms.Foo  "])
        self.assertEqual(config.paths_for("entity"), ["app/models"])
        self.assertEqual(config.excludes_for("validator"), ["app.forms.Foo"])

    def test_invalid_values(self):
        for values in (
            {"unknown_type_fallback": "object"},
            {"split_by_domain": "by-file"},
            {"entity_paths": [""]},
            {"producer_base_classes": ["not a path"]},
            {"execution_timeout": -1},
        ):
            with self.subTest(values=values):
                with self.assertRaises(ValidationError):
                    GeneratorConfig(**values)

    def test_validation_failure_exits(self):
        with self.assertRaises(SystemExit) as cm:
            validate_and_parse_config({"properties_mode": "columns"})
        self.assertEqual(cm.exception.code, 1)


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.config_path = Path(self.tmp.name) / "ts-generator.yaml"
        self.config_path.write_text(yaml.safe_dump({
            "entity_paths": ["app/models"],
            "generate_zod_schemas": True,
            "output": "frontend/types/api.ts",
            "unrelated_key": 1,
        }), encoding="utf-8")

    def test_file_values(self):
        config = load_config(str(self.config_path))
        self.assertEqual(config.entity_paths, ["app/models"])
        self.assertTrue(config.generate_zod_schemas)
        self.assertEqual(config.output, "frontend/types/api.ts")

    def test_explicit_cli_values_override_file(self):
        args = Namespace(config=str(self.config_path), output="out", generate_zod_schemas=None, verbose=False)
        config = load_config(str(self.config_path), args)
        self.assertEqual(config.output, "out")
        self.assertTrue(config.generate_zod_schemas)

    def test_missing_file_uses_defaults(self):
        config = load_config(str(Path(self.tmp.name) / "missing.yaml"))
        self.assertEqual(config.output, DefaultConfig.OUTPUT)

    def test_non_mapping_file_is_ignored(self):
        self.config_path.write_text("- just\n- a list\n", encoding="utf-8")
        config = load_config(str(self.config_path))
        self.assertEqual(config.entity_paths, [])


if __name__ == "__main__":
    unittest.main()
