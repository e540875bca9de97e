"""
Tests for the database health probe.
"""
import pytest

from lessons.storage.db import Database, DatabaseNotConfigured, normalize_database_url


class TestNormalizeDatabaseUrl:

    @pytest.mark.parametrize(
        "url",
        [
            "postgres://user:pw@ep-example.neon.tech/db?sslmode=require",
            "postgresql://user:pw@ep-example.neon.tech/db?sslmode=require",
        ],
    )
    def test_postgres_urls_use_psycopg(self, url):
        assert normalize_database_url(url) == (
            "postgresql+psycopg://user:pw@ep-example.neon.tech/db?sslmode=require"
        )

    def test_other_urls_untouched(self):
        assert normalize_database_url("sqlite://") == "sqlite://"


class TestDatabase:

    def test_version_from_sqlite(self):
        db = Database("sqlite://")
        try:
            version = db.version()
        finally:
            db.dispose()

        assert version
        assert version[0].isdigit()

    def test_missing_url(self):
        db = Database(None)

        with pytest.raises(DatabaseNotConfigured):
            db.version()
