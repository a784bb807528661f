# File: tests/conftest.py
# Configures Django once for the whole test session.

import django
from django.conf import settings


def pytest_configure(config):
    """Set up an in-memory SQLite project with the sample app installed."""
    if not settings.configured:
        settings.configure(
            DEBUG=True,
            SECRET_KEY="drf-ts-generator-tests",
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME": ":memory:",
                }
            },
            INSTALLED_APPS=[
                "django.contrib.contenttypes",
                "django.contrib.auth",
                "rest_framework",
                "tests.sample_app",
            ],
            USE_TZ=True,
            DEFAULT_AUTO_FIELD="django.db.models.AutoField",
        )
    django.setup()

    from django.core.management import call_command
    call_command("migrate", run_syncdb=True, verbosity=0)
