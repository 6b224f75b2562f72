"""
Test configuration and fixtures for the Property Manager API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

# Configure the application before it is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "testing"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="propmanager-uploads-")

import io
import uuid
import pytest
from pathlib import Path
from typing import AsyncGenerator, Dict, Optional
from PIL import Image
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from propmanager.main import app
from propmanager.database import Base, get_db
from propmanager.models import Property, PropertyStatus, User, UserRole
from propmanager.repositories.org import OrgRepository
from propmanager.repositories.user import UserRepository
from propmanager.services.image import ImageService
from propmanager.services.organization import OrganizationService
from propmanager.services.property import PropertyService
from propmanager.services.unit import UnitService
from propmanager.utils.auth import create_access_token
from propmanager.utils.file_utils import FileStorage


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
DEFAULT_PASSWORD = "testpassword123"


@pytest.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async test client sharing the test session with the application."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def storage(tmp_path: Path) -> FileStorage:
    return FileStorage(base_dir=tmp_path / "uploads")


# Service fixtures
@pytest.fixture
def org_service(db_session: AsyncSession) -> OrganizationService:
    return OrganizationService(db_session)


@pytest.fixture
def property_service(db_session: AsyncSession, storage: FileStorage) -> PropertyService:
    return PropertyService(db_session, storage=storage)


@pytest.fixture
def image_service(db_session: AsyncSession, storage: FileStorage) -> ImageService:
    return ImageService(db_session, storage=storage)


@pytest.fixture
def unit_service(db_session: AsyncSession) -> UnitService:
    return UnitService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    async def create_user(
        db_session: AsyncSession,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        name: Optional[str] = "Test Manager",
        company: Optional[str] = None,
        role: UserRole = UserRole.PROPERTY_MANAGER,
        is_active: bool = True,
        org_id: Optional[uuid.UUID] = None
    ) -> User:
        """Create a test user in the database."""
        return await UserRepository(db_session).create_user({
            "email": email or f"user{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "name": name,
            "company": company,
            "role": role,
            "is_active": is_active,
            "org_id": org_id,
        })


class PropertyFactory:
    """Factory for property payloads."""

    @staticmethod
    def payload(**overrides) -> Dict:
        data = {
            "name": "Harbour View Apartments",
            "address": "12 Quay Street",
            "city": "Auckland",
            "country": "New Zealand",
            "propertyType": "Residential",
        }
        data.update(overrides)
        return data


async def count_orgs(db_session: AsyncSession) -> int:
    return await OrgRepository(db_session).count()


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header for a user."""
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def create_test_image(width: int = 64, height: int = 48, format: str = "JPEG", color: str = "red") -> bytes:
    """Create a test image in memory."""
    img = Image.new("RGB", (width, height), color=color)
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=format)
    return img_bytes.getvalue()


# Common test fixtures
@pytest.fixture
async def manager(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(
        db_session, email="manager@example.com", name="Jordan Lee", company="Acme Facilities"
    )


@pytest.fixture
async def other_manager(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(
        db_session, email="other@example.com", name="Sam Rivera", company="Other Estates"
    )


@pytest.fixture
async def tenant(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(db_session, email="tenant@example.com", role=UserRole.TENANT)


@pytest.fixture
async def owner(db_session: AsyncSession, manager: User, org_service: OrganizationService) -> User:
    """Owner in the manager's organization (read-only access)."""
    org_id = await org_service.resolve_org_id(manager)
    return await UserFactory.create_user(
        db_session, email="owner@example.com", role=UserRole.OWNER, org_id=org_id
    )


@pytest.fixture
async def legacy_property(db_session: AsyncSession, manager: User, org_service: OrganizationService) -> Property:
    """Property that only has the legacy image_url / images fields."""
    org_id = await org_service.resolve_org_id(manager)
    property_obj = Property(
        name="Old Mill",
        address="1 Mill Lane",
        city="Leeds",
        country="United Kingdom",
        property_type="Commercial",
        status=PropertyStatus.ACTIVE,
        total_units=0,
        image_url="https://cdn.example.com/mill/front.jpg",
        images=["https://cdn.example.com/mill/front.jpg", "https://cdn.example.com/mill/yard.jpg"],
        org_id=org_id,
        manager_id=manager.id,
    )
    db_session.add(property_obj)
    await db_session.commit()
    await db_session.refresh(property_obj)
    return property_obj
