import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..domain.naming import pluralize, property_key

logger = logging.getLogger(__name__)

# Define the path to the templates directory relative to this file
TEMPLATE_DIR = Path(__file__).parent / "templates"

HEADER = "// This file is generated by drf-ts-generator. Do not edit it by hand."
BANNER = "// " + "=" * 60


def setup_jinja_env() -> Environment:
    """Sets up and returns the Jinja2 environment."""
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=False,  # TypeScript output, nothing to escape
        trim_blocks=True,  # Remove first newline after a block tag
        lstrip_blocks=True,  # Strip leading whitespace from lines with block tags
        undefined=StrictUndefined,
    )
    env.filters["pluralize"] = pluralize
    env.filters["property_key"] = property_key
    env.globals["header"] = HEADER
    env.globals["banner"] = BANNER
    return env


def render_template(env: Environment, template_name: str, **context) -> str:
    """Render one template to text."""
    logger.debug(f"Rendering template {template_name}")
    return env.get_template(template_name).render(**context)
