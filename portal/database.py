# -*- coding: utf-8 -*-
"""
SQLAlchemy database setup for the FastAPI application.
"""

import os
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from portal.config import Config


def make_engine(database_url):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        path = database_url.replace("sqlite:///", "", 1)
        directory = os.path.dirname(path)
        if directory and path != ":memory:":
            os.makedirs(directory, exist_ok=True)

    # pool_pre_ping: checks the connection before use (avoids "SSL connection closed")
    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_recycle=3600
    )


engine = make_engine(Config.database_url())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Dependency for FastAPI routes (used with Depends)
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
