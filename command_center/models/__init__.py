"""
BU Command Center
Database models package.

All models share a single Flask-SQLAlchemy instance. Import model modules
from here (or from ``command_center.models.<module>``) so that
``db.create_all()`` and Flask-Migrate can see every table.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
