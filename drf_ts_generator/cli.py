import argparse
import logging
import sys

from drf_ts_generator.colored_logging import (
    setup_colored_logging,
    log_success,
    log_progress,
    log_section,
    log_highlight,
)
from drf_ts_generator.config_validation import load_config
from drf_ts_generator.exceptions import ConfigurationError, OutputWriteError
from drf_ts_generator.introspection_django import setup_django
from drf_ts_generator.pipeline import generate
from drf_ts_generator.writer import write_result

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drf-ts-generate",
        description="Generate TypeScript interfaces and Yup/Zod schemas from Django models, "
                    "DRF serializers and Django forms.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output .ts file, or directory for a split bundle. Overrides config file setting.",
    )

    kinds = parser.add_argument_group("class kinds", "Restrict generation to the given kinds (default: all).")
    kinds.add_argument("--models", action="store_true", help="Generate model interfaces.")
    kinds.add_argument("--serializers", action="store_true", help="Generate serializer interfaces.")
    kinds.add_argument("--forms", action="store_true", help="Generate form interfaces.")

    parser.add_argument(
        "--yup",
        dest="generate_yup_schemas",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Generate Yup schemas for forms.",
    )
    parser.add_argument(
        "--zod",
        dest="generate_zod_schemas",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Generate Zod schemas for forms.",
    )
    parser.add_argument(
        "--no-paginated",
        dest="include_paginated_types",
        action="store_const",
        const=False,
        help="Do not emit paginated response aliases.",
    )
    parser.add_argument(
        "--no-array-types",
        dest="include_array_types",
        action="store_const",
        const=False,
        help="Do not emit array aliases.",
    )
    parser.add_argument(
        "--split",
        dest="split_by_domain",
        choices=["off", "namespace", "prefix"],
        help="Split output into one file per domain.",
    )
    parser.add_argument(
        "--settings",
        dest="django_settings_module",
        help="Django settings module, e.g. 'myproject.settings'.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose DEBUG logging for the generator tool.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (useful for CI/CD environments).",
    )
    return parser


def apply_kind_flags(args: argparse.Namespace) -> argparse.Namespace:
    """Turn --models/--serializers/--forms into include_* overrides when any is given."""
    if args.models or args.serializers or args.forms:
        args.include_entities = args.models
        args.include_producers = args.serializers
        args.include_validators = args.forms
    return args


def main(argv=None):
    parser = build_parser()
    args = apply_kind_flags(parser.parse_args(argv))

    # --- Logging Setup ---
    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_colored_logging(level=log_level, use_colors=not args.no_color)

    if args.verbose:
        logger.debug("Verbose mode enabled. DEBUG level logging activated.")

    try:
        # 1. Load Configuration
        log_progress(logger, "Loading configuration...")
        config = load_config(args.config, args)
        log_success(logger, "Configuration loaded and validated successfully.")
        logger.debug(f"Effective configuration: {config}")

        # 2. Setup Django so models, serializers and forms can be imported
        log_progress(logger, "Configuring Django...")
        setup_django(config.django_settings_module)

        # 3. Generate
        log_section(logger, "TypeScript Generation")
        result = generate(config)

        # 4. Write
        log_section(logger, "Output")
        written = write_result(result, config.output)
        for path in written:
            log_highlight(logger, f"Wrote {path}")

        for label, count in result.counts.items():
            logger.info(f"  {label}: {count}")
        if result.errors:
            logger.warning(f"{len(result.errors)} class(es) failed and were written as error comments.")
        log_success(logger, "TypeScript generation completed.")

    except ConfigurationError as e:
        logger.error(f"Configuration Error: {e}", exc_info=args.verbose)
        sys.exit(1)
    except OutputWriteError as e:
        logger.error(f"Output Error: {e}", exc_info=args.verbose)
        sys.exit(1)
    except Exception as e:
        logger.error(f"An unexpected error occurred during generation: {e}", exc_info=True)
        sys.exit(1)


# --- Script Entry Point ---
if __name__ == "__main__":
    main()
