"""Shared fixtures – in-memory SQLite and fixed test keys."""

import os

TEST_ENCRYPTION_KEY = "5d45d66ca414ee68450053a3d4e6d2703af2a7264871b6d098d8f69f8190d234"
TEST_INDEX_KEY = "9c1e4b7a2f3d8e6c0b5a4f1e2d3c7b8a6f5e4d3c2b1a09f8e7d6c5b4a3928170"

# Must be in place before app.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PII_ENCRYPTION_KEY"] = TEST_ENCRYPTION_KEY
os.environ["BLIND_INDEX_KEY"] = TEST_INDEX_KEY

import pytest  # noqa: E402

from app.models.database import Base, SessionLocal, engine, init_db  # noqa: E402
from app.services.encryption import FieldCrypto  # noqa: E402
from app.services.keys import KeyMaterial  # noqa: E402


@pytest.fixture
def key_material():
    return KeyMaterial.from_hex(TEST_ENCRYPTION_KEY, TEST_INDEX_KEY)


@pytest.fixture
def crypto(key_material):
    return FieldCrypto.from_keys(key_material)


@pytest.fixture
def db():
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
