"""
extensions.py — Flask extension singletons.

Initialises SQLAlchemy as a module-level object so it can be imported
anywhere without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db` from here wherever needed.

    from groupsplit.app.extensions import db

SQLAlchemy backs the local snapshot store (models/snapshot.py). The group
itself is never spread across tables: the store holds one JSON document
per key, exactly what the host reads and writes on every state change.

IMPORTANT — schema rule:
  All validation Schema classes (in app/schemas/) inherit from
  marshmallow.Schema and never need an application context. Unit tests in
  tests/unit/ run without a Flask app, and the snapshot schema is also used
  outside any request (import/export helpers).
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
