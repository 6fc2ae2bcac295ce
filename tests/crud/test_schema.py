import pytest
from sqlalchemy import create_engine, inspect

from app.db.base import Base
from app.db.init_db import init_db

pytestmark = pytest.mark.crud


def test_schema_creates_on_fresh_database():
    engine = create_engine("sqlite://")
    try:
        init_db(bind=engine)
        tables = set(inspect(engine).get_table_names())
        assert tables == set(Base.metadata.tables)
        index_names = [
            index["name"]
            for table in tables
            for index in inspect(engine).get_indexes(table)
        ]
        assert len(index_names) == len(set(index_names))
    finally:
        engine.dispose()

def test_schema_creation_is_repeatable():
    engine = create_engine("sqlite://")
    try:
        Base.metadata.create_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        assert "commission_distribution" in inspect(engine).get_table_names()
    finally:
        engine.dispose()
