import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import django
from django.apps import apps
from django.db import DEFAULT_DB_ALIAS, connections

from .exceptions import ConfigurationError, SchemaIntrospectionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnInfo:
    """A single database column as reported by Django introspection."""
    name: str
    type_name: str  # Raw backend type string, or the Django field class name
    nullable: bool


def setup_django(settings_module: Optional[str] = None) -> None:
    """
    Make sure the Django app registry is ready.

    When a settings module is given it is exported as DJANGO_SETTINGS_MODULE
    before ``django.setup()`` runs. Projects that already configured Django
    (tests, management commands) are left untouched.
    """
    if apps.ready:
        logger.debug("Django setup already performed.")
        return

    if settings_module:
        os.environ["DJANGO_SETTINGS_MODULE"] = settings_module
    if not os.environ.get("DJANGO_SETTINGS_MODULE"):
        from django.conf import settings
        if not settings.configured:
            raise ConfigurationError(
                "Django is not configured",
                suggestions=[
                    "Pass --settings or set django_settings_module in the config file",
                    "Export DJANGO_SETTINGS_MODULE before running the generator",
                ],
            )

    logger.info("Configuring Django for class inspection...")
    django.setup()
    logger.info("Django setup complete.")


def get_table_columns(table_name: str, db_alias: str = DEFAULT_DB_ALIAS) -> List[ColumnInfo]:
    """
    Columns of a table, read through ``connection.introspection``.

    Raises:
        SchemaIntrospectionError: If the connection or table cannot be inspected
    """
    try:
        conn = connections[db_alias]
        introspector = conn.introspection
    except Exception as e:
        raise SchemaIntrospectionError(
            f"Could not get Django connection for alias '{db_alias}': {e}", table=table_name
        ) from e

    try:
        with conn.cursor() as cursor:
            if table_name not in introspector.table_names(cursor):
                raise SchemaIntrospectionError(f"Table '{table_name}' does not exist", table=table_name)
            description = introspector.get_table_description(cursor, table_name)
    except SchemaIntrospectionError:
        raise
    except Exception as e:
        raise SchemaIntrospectionError(
            f"Could not describe table '{table_name}': {e}", table=table_name
        ) from e

    columns = []
    for column in description:
        type_code = column.type_code
        if isinstance(type_code, str):
            type_name = type_code
        else:
            # Numeric type codes (e.g. PostgreSQL OIDs) map to a Django field class name
            try:
                type_name = introspector.get_field_type(type_code, column)
            except KeyError:
                logger.debug(f"Unknown type code {type_code!r} for {table_name}.{column.name}")
                type_name = str(type_code)
        columns.append(ColumnInfo(
            name=column.name,
            type_name=type_name,
            nullable=bool(column.null_ok),
        ))
    logger.debug(f"Introspected {len(columns)} columns for table '{table_name}'")
    return columns
