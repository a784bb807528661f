import sys
import logging
from argparse import Namespace
from pathlib import Path
from typing import List, Optional, Dict, Any, Literal, Self

import yaml
from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
    ConfigDict,
)

from .constants import DefaultConfig

logger = logging.getLogger(__name__)

KIND_PLURALS = {"entity": "entities", "producer": "producers", "validator": "validators"}


def _dotted_path_is_valid(path: str) -> bool:
    """Check that every segment of a dotted path is a Python identifier."""
    return all(part.isidentifier() for part in path.split("."))


class GeneratorConfig(BaseModel):
    """Immutable configuration threaded through every generation stage."""

    # Scan roots and exclude lists per class kind
    entity_paths: List[str] = Field(
        default_factory=list, description="Directories scanned for Django models."
    )
    producer_paths: List[str] = Field(
        default_factory=list, description="Directories scanned for DRF serializers."
    )
    validator_paths: List[str] = Field(
        default_factory=list, description="Directories scanned for Django forms."
    )
    exclude_entities: List[str] = Field(
        default_factory=list, description="Qualified model names to skip."
    )
    exclude_producers: List[str] = Field(
        default_factory=list, description="Qualified serializer names to skip."
    )
    exclude_validators: List[str] = Field(
        default_factory=list, description="Qualified form names to skip."
    )

    # Required base capability per kind (dotted import paths)
    entity_base_classes: List[str] = Field(
        default_factory=lambda: list(DefaultConfig.ENTITY_BASE_CLASSES)
    )
    producer_base_classes: List[str] = Field(
        default_factory=lambda: list(DefaultConfig.PRODUCER_BASE_CLASSES)
    )
    validator_base_classes: List[str] = Field(
        default_factory=lambda: list(DefaultConfig.VALIDATOR_BASE_CLASSES)
    )

    # Base namespaces stripped when building prefixes and domain keys.
    # Defaults to the module path of each scan root.
    entity_namespace: Optional[str] = None
    producer_namespace: Optional[str] = None
    validator_namespace: Optional[str] = None

    # Extra modules probed when guessing the model behind a serializer
    entity_modules: List[str] = Field(default_factory=list)

    include_entities: bool = True
    include_producers: bool = True
    include_validators: bool = True

    properties_mode: Literal["declared", "storage", "both"] = Field(
        default=DefaultConfig.PROPERTIES_MODE,
        description="Where model fields come from: declared fields, database columns or both.",
    )
    include_accessors: bool = True
    include_relations: bool = True
    infer_producer_types: bool = True

    generate_yup_schemas: bool = True
    generate_zod_schemas: bool = False

    unknown_type_fallback: Literal["unknown", "any", "never"] = DefaultConfig.UNKNOWN_TYPE_FALLBACK
    split_by_domain: Literal["off", "namespace", "prefix"] = DefaultConfig.SPLIT_BY_DOMAIN

    include_array_types: bool = True
    include_paginated_types: bool = True

    execution_timeout: float = Field(
        default=DefaultConfig.EXECUTION_TIMEOUT,
        ge=0,
        description="Seconds allowed per call into inspected code (0 disables the bound).",
    )
    database_alias: str = Field(default="default", min_length=1)
    django_settings_module: Optional[str] = None

    output: str = Field(default=DefaultConfig.OUTPUT, min_length=1)

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator(
        "entity_base_classes",
        "producer_base_classes",
        "validator_base_classes",
        "entity_modules",
    )
    @classmethod
    def check_dotted_paths(cls, v: List[str]) -> List[str]:
        """Ensure every entry is an importable-looking dotted path."""
        for index, item in enumerate(v):
            if not _dotted_path_is_valid(item):
                raise ValueError(f"Item at index {index} is not a dotted Python path: '{item}'")
        return v

    @field_validator(
        "entity_paths",
        "producer_paths",
        "validator_paths",
        "exclude_entities",
        "exclude_producers",
        "exclude_validators",
        mode="before",
    )
    @classmethod
    def check_string_list(cls, v: Any) -> List[str]:
        """Accept a single string or a list of non-empty strings."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, list):
            raise TypeError("Expected a list of strings.")
        processed = []
        for index, item in enumerate(v):
            if not isinstance(item, str):
                raise TypeError(
                    f"Item at index {index} must be a string, found: {type(item).__name__}"
                )
            stripped = item.strip()
            if not stripped:
                raise ValueError(f"Item at index {index} cannot be empty or just whitespace.")
            processed.append(stripped)
        return processed

    @model_validator(mode="after")
    def check_enabled_kinds(self) -> Self:
        """Warn about enabled kinds that have nothing to scan."""
        for kind_value in KIND_PLURALS:
            if self.is_enabled(kind_value) and not self.paths_for(kind_value):
                logger.debug(f"{KIND_PLURALS[kind_value]} are enabled but no scan paths are configured.")
        if not self.generate_yup_schemas and not self.generate_zod_schemas:
            logger.debug("Schema generation is disabled for both Yup and Zod.")
        return self

    # Per-kind accessors; kind_value is 'entity', 'producer' or 'validator'

    def namespace_for(self, kind_value: str) -> Optional[str]:
        return getattr(self, f"{kind_value}_namespace")

    def paths_for(self, kind_value: str) -> List[str]:
        return getattr(self, f"{kind_value}_paths")

    def excludes_for(self, kind_value: str) -> List[str]:
        return getattr(self, f"exclude_{KIND_PLURALS[kind_value]}")

    def base_classes_for(self, kind_value: str) -> List[str]:
        return getattr(self, f"{kind_value}_base_classes")

    def is_enabled(self, kind_value: str) -> bool:
        return getattr(self, f"include_{KIND_PLURALS[kind_value]}")


def validate_and_parse_config(config_dict: Dict[str, Any]) -> GeneratorConfig:
    """
    Validate a raw configuration dictionary against GeneratorConfig.
    Exits with error messages if validation fails.
    """
    try:
        validated_config = GeneratorConfig.model_validate(config_dict)
        logger.debug("Configuration dictionary parsed and validated successfully against schema.")
        return validated_config
    except ValidationError as e:
        logger.critical("Configuration validation failed! Please check your config file or arguments.")
        print("\n--- Configuration Errors ---", file=sys.stderr)
        for error in e.errors():
            loc_parts = [str(loc_item) for loc_item in error.get("loc", ())]
            loc_str = " -> ".join(loc_parts) if loc_parts else "Model Level"
            msg = error.get("msg", "Unknown validation error")

            print(f"  - Location: '{loc_str}'", file=sys.stderr)
            print(f"    Error:    {msg}", file=sys.stderr)

            if error.get("type") == "literal_error":
                expected = (error.get("ctx") or {}).get("expected")
                if expected:
                    print(f"    Hint:     Expected one of {expected}.", file=sys.stderr)

        print("----------------------------", file=sys.stderr)
        sys.exit(1)


def load_config(config_path: Optional[str], cli_args: Optional[Namespace] = None) -> GeneratorConfig:
    """
    Load configuration from a YAML file, merge explicitly given CLI arguments,
    validate the result and return an immutable GeneratorConfig.
    Exits with error messages if validation fails.
    """
    raw_config: Dict[str, Any] = {}

    if config_path:
        config_file = Path(config_path)
        if config_file.is_file():
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    yaml_config = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Error reading config file {config_path}: {e}")
                logger.warning("Proceeding with defaults and CLI arguments only.")
                yaml_config = None
            if yaml_config and isinstance(yaml_config, dict):
                raw_config.update(yaml_config)
                logger.debug(f"Loaded configuration from {config_path}")
            elif yaml_config:
                logger.warning(
                    f"Content in config file {config_path} is not a dictionary. Ignoring file content."
                )
        else:
            logger.warning(f"Config file not found at {config_path}. Using defaults and CLI arguments.")

    # CLI arguments override file values only when explicitly given
    overridden_keys = set()
    if cli_args is not None:
        for key, value in vars(cli_args).items():
            if value is not None and key in GeneratorConfig.model_fields:
                raw_config[key] = value
                overridden_keys.add(key)
    if overridden_keys:
        logger.debug(f"Overridden config keys from CLI arguments: {sorted(overridden_keys)}")

    return validate_and_parse_config(raw_config)
