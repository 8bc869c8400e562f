"""Shared pytest fixtures for all tests."""

import os

import pytest

from translation_tables.app import create_app
from translation_tables.config import reload_settings
from translation_tables.extensions import db

from sample_models import Document, Page, Post


@pytest.fixture
def app(tmp_path):
    """Flask app bound to a temporary SQLite database with the source tables."""
    os.environ["TRANSLATION_TABLES_LOG_LEVEL"] = "ERROR"  # Reduce log noise in tests
    reload_settings()

    app = create_app(testing=True, database_url=f"sqlite:///{tmp_path / 'test.db'}")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.engine.dispose()

    os.environ.pop("TRANSLATION_TABLES_LOG_LEVEL", None)
    reload_settings()


@pytest.fixture
def posts(app):
    """Three committed posts: Hello, World, Again."""
    rows = [
        Post(id=1, title="Hello", body="First body", published=True),
        Post(id=2, title="World", body="Second body"),
        Post(id=3, title="Again", body=None),
    ]
    db.session.add_all(rows)
    db.session.add(Page(id=1, title="About"))
    db.session.add(Document(id="2f1c5a7e-0000-4000-8000-000000000001", summary="Abstract"))
    db.session.commit()
    return rows


@pytest.fixture
def connection(app, posts):
    """Connection the migrations under test run on."""
    with db.engine.connect() as conn:
        yield conn
