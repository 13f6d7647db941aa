#!/usr/bin/env python
"""Drop and recreate every SurveyHub table on the configured DATABASE_URL."""
from sqlalchemy.exc import SQLAlchemyError

from surveyhub.app.core.config import settings
from surveyhub.db import Base
from surveyhub.db.session import engine
import surveyhub.db.models  # noqa: F401  registers the tables on Base.metadata


def recreate_database():
    print(f"Connecting to {engine.url.render_as_string(hide_password=True)}...")
    try:
        print("Dropping tables...")
        Base.metadata.drop_all(bind=engine)
        print("Creating tables...")
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        print(f"Error: {e}")
        raise
    print(f"Done: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    if settings.DATABASE_URL.startswith("sqlite"):
        print("SQLite: existing tables in the database file are replaced.")
    recreate_database()
