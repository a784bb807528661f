"""
TypeScript and schema code generation.
"""

from .emitter import SINGLE_FILE_NAME, Emitter
from .schemas import YupRenderer, ZodRenderer, build_field_schema, build_schemas
from .templating import setup_jinja_env
from .typescript import build_artifact, error_artifact

__all__ = [
    'Emitter',
    'SINGLE_FILE_NAME',
    'YupRenderer',
    'ZodRenderer',
    'build_artifact',
    'build_field_schema',
    'build_schemas',
    'error_artifact',
    'setup_jinja_env',
]
