"""Shared Flask extensions -- import from here to avoid circular imports.

Both extensions are created unbound; app.py calls init_app() on them
inside the create_app() factory function.
"""

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()
