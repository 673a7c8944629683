"""Tests for settings and database URL building."""

from components.core.config import Settings


def test_urls_built_from_parts():
    settings = Settings(DB_USER="saver", DB_PASSWORD="pw", DB_HOST="db", DB_PORT=3307, DB_NAME="plans")
    assert settings.async_db_url == "mysql+aiomysql://saver:pw@db:3307/plans"
    assert settings.sync_db_url == "mysql+pymysql://saver:pw@db:3307/plans"


def test_full_url_wins():
    settings = Settings(DB_URL="mysql+aiomysql://u:p@host/name")
    assert settings.async_db_url == "mysql+aiomysql://u:p@host/name"
    assert settings.sync_db_url == "mysql+pymysql://u:p@host/name"
