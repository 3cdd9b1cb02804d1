import os
import shutil
import tempfile

# Configure before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="storefront-test-")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.config import settings
from storefront.database import Base, enable_sqlite_foreign_keys, get_db
from storefront.errors import StorageFailure
from storefront.main import app
from storefront.models.category import Category
from storefront.models.product import ImageRef, Product
from storefront.models.users import Role, User
from storefront.utils.hashing import get_password_hash
from storefront.utils.storage import LocalFileStorage, get_storage

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_PASSWORD = "adminpassword"
USER_PASSWORD = "userpassword"


class RecordingStorage(LocalFileStorage):
    """Local storage that remembers which keys were written and deleted.

    Set ``fail_put`` to make every write fail like a full disk.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.puts = []
        self.deletes = []
        self.fail_put = False

    def put(self, key, data):
        self.puts.append(key)
        if self.fail_put:
            raise StorageFailure("Could not store the uploaded file.")
        return super().put(key, data)

    def delete(self, key):
        self.deletes.append(key)
        return super().delete(key)

    def stored_files(self):
        return sorted(p.relative_to(self.root).as_posix() for p in self.root.rglob("*") if p.is_file())


@pytest.fixture(scope="function")
def db():
    import storefront.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def storage():
    root = Path(settings.STORAGE_DIR)
    root.mkdir(parents=True, exist_ok=True)
    store = RecordingStorage(root, url_prefix=settings.STORAGE_URL_PREFIX, base_url="http://testserver")

    yield store

    shutil.rmtree(root, ignore_errors=True)
    root.mkdir(parents=True, exist_ok=True)


@pytest.fixture(scope="function")
def client(db, storage):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def admin_user(db):
    user = User(
        name="Admin",
        email="admin@example.com",
        password_hash=get_password_hash(ADMIN_PASSWORD),
        role=Role.ADMIN,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture(scope="function")
def regular_user(db):
    user = User(
        name="Regular",
        email="user@example.com",
        password_hash=get_password_hash(USER_PASSWORD),
        role=Role.USER,
    )
    db.add(user)
    db.commit()
    return user


def _login(client, email, password):
    r = client.post("/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture(scope="function")
def admin_headers(client, admin_user):
    return _login(client, "admin@example.com", ADMIN_PASSWORD)


@pytest.fixture(scope="function")
def user_headers(client, regular_user):
    return _login(client, "user@example.com", USER_PASSWORD)


@pytest.fixture(scope="function")
def category(db):
    c = Category(category_name="Beauty")
    db.add(c)
    db.commit()
    return c


@pytest.fixture(scope="function")
def external_product(db, category):
    """Seeded product whose image lives on a CDN."""
    p = Product(
        product_name="CDN Widget",
        description="Hosted elsewhere",
        price=Decimal("19.99"),
        in_stock=3,
        category_id=category.id,
    )
    p.image = ImageRef.external("https://cdn.example.com/x.webp")
    db.add(p)
    db.commit()
    return p


def jpeg_bytes(size=1024):
    # JPEG SOI marker followed by filler; content is never decoded
    return b"\xff\xd8\xff\xe0" + b"\x00" * (size - 4)


@pytest.fixture
def jpeg():
    return jpeg_bytes
