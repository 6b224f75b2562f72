"""
Tests for PropertyService: organization scoping, role checks, partial
updates and image synchronization.
"""

import io
import pytest
from starlette.datastructures import Headers, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from propmanager.models import Property, PropertyStatus, User
from propmanager.schemas.property import PropertyCreate, PropertyUpdate
from propmanager.services.property import PropertyService
from propmanager.utils.exceptions import (
    BadRequestError,
    InsufficientPermissionsError,
    PropertyNotFoundError,
)
from propmanager.utils.file_utils import FileStorage
from tests.conftest import PropertyFactory, create_test_image


def make_upload(content: bytes, filename: str = "photo.jpg", content_type: str = "image/jpeg") -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename, headers=Headers({"content-type": content_type}))


async def create_property(service: PropertyService, user: User, **overrides) -> Property:
    return await service.create_property(PropertyCreate.model_validate(PropertyFactory.payload(**overrides)), user)


def image_state(property_obj: Property):
    """(url, is_primary) pairs in display order."""
    ordered = sorted(property_obj.property_images, key=lambda image: image.display_order)
    return [(image.image_url, image.is_primary) for image in ordered]


class TestCreateProperty:

    async def test_create_assigns_org_and_manager(self, property_service: PropertyService, manager: User):
        property_obj = await create_property(property_service, manager)

        assert property_obj.org_id == manager.org_id
        assert property_obj.manager_id == manager.id
        assert property_obj.status == PropertyStatus.ACTIVE
        assert property_obj.property_images == []
        assert property_obj.image_url is None

    async def test_create_normalizes_images(self, property_service: PropertyService, manager: User):
        property_obj = await create_property(
            property_service,
            manager,
            images=[
                "https://x/a.jpg",
                {"url": "https://x/a.jpg"},
                {"imageUrl": "https://x/b.jpg", "isPrimary": True, "caption": "Street view"},
            ],
        )

        assert image_state(property_obj) == [("https://x/a.jpg", False), ("https://x/b.jpg", True)]
        assert property_obj.image_url == "https://x/b.jpg"
        assert property_obj.images == ["https://x/a.jpg", "https://x/b.jpg"]
        captions = {image.image_url: image.caption for image in property_obj.property_images}
        assert captions["https://x/b.jpg"] == "Street view"

    async def test_cover_image_goes_first(self, property_service: PropertyService, manager: User):
        property_obj = await create_property(
            property_service,
            manager,
            images=["https://x/a.jpg", "https://x/b.jpg"],
            coverImage="https://x/b.jpg",
        )

        assert image_state(property_obj) == [("https://x/b.jpg", True), ("https://x/a.jpg", False)]

    async def test_legacy_image_url_becomes_cover(self, property_service: PropertyService, manager: User):
        property_obj = await create_property(property_service, manager, imageUrl="https://x/legacy.jpg")

        assert image_state(property_obj) == [("https://x/legacy.jpg", True)]

    async def test_legacy_aliases(self, property_service: PropertyService, manager: User):
        payload = PropertyFactory.payload(postcode=" 1010 ", type="Commercial")
        del payload["propertyType"]

        property_obj = await property_service.create_property(PropertyCreate.model_validate(payload), manager)

        assert property_obj.zip_code == "1010"
        assert property_obj.property_type == "Commercial"
        data = property_service.serialize(property_obj)
        assert data["postcode"] == "1010"
        assert data["type"] == "Commercial"

    async def test_tenant_cannot_create(self, property_service: PropertyService, tenant: User):
        with pytest.raises(InsufficientPermissionsError):
            await create_property(property_service, tenant)

    async def test_owner_cannot_create(self, property_service: PropertyService, owner: User):
        with pytest.raises(InsufficientPermissionsError):
            await create_property(property_service, owner)


class TestReadProperties:

    async def test_owner_reads_org_properties(
        self, property_service: PropertyService, manager: User, owner: User
    ):
        property_obj = await create_property(property_service, manager)

        fetched = await property_service.get_property(property_obj.id, owner)

        assert fetched.id == property_obj.id

    async def test_other_org_sees_not_found(
        self, property_service: PropertyService, manager: User, other_manager: User
    ):
        property_obj = await create_property(property_service, manager)

        with pytest.raises(PropertyNotFoundError):
            await property_service.get_property(property_obj.id, other_manager)

    async def test_list_is_scoped_and_filtered(
        self, property_service: PropertyService, manager: User, other_manager: User
    ):
        await create_property(property_service, manager, name="Harbour View")
        await create_property(property_service, manager, name="Mill House", status="inactive")
        await create_property(property_service, other_manager, name="Harbour Lofts")

        properties, total = await property_service.list_properties(manager)
        assert total == 2
        assert {p.name for p in properties} == {"Harbour View", "Mill House"}

        properties, total = await property_service.list_properties(manager, search="harbour")
        assert total == 1
        assert properties[0].name == "Harbour View"

        properties, total = await property_service.list_properties(manager, status=PropertyStatus.INACTIVE)
        assert [p.name for p in properties] == ["Mill House"]

    async def test_list_pagination(self, property_service: PropertyService, manager: User):
        for index in range(3):
            await create_property(property_service, manager, name=f"Block {index}")

        page, total = await property_service.list_properties(manager, skip=2, limit=2)

        assert total == 3
        assert len(page) == 1

    async def test_tenant_cannot_list(self, property_service: PropertyService, tenant: User):
        with pytest.raises(InsufficientPermissionsError):
            await property_service.list_properties(tenant)


class TestUpdateProperty:

    @pytest.fixture
    async def property_with_images(self, property_service: PropertyService, manager: User) -> Property:
        return await create_property(
            property_service,
            manager,
            images=["https://x/a.jpg", "https://x/b.jpg", "https://x/c.jpg"],
            coverImage="https://x/b.jpg",
        )

    async def test_update_without_image_fields_keeps_images(
        self, property_service: PropertyService, manager: User, property_with_images: Property
    ):
        before = image_state(property_with_images)

        updated = await property_service.update_property(
            property_with_images.id, PropertyUpdate.model_validate({"name": "Renamed"}), manager
        )

        assert updated.name == "Renamed"
        assert image_state(updated) == before

    async def test_null_required_field_is_ignored(
        self, property_service: PropertyService, manager: User, property_with_images: Property
    ):
        updated = await property_service.update_property(
            property_with_images.id,
            PropertyUpdate.model_validate({"name": None, "description": "Sea views"}),
            manager,
        )

        assert updated.name == "Harbour View Apartments"
        assert updated.description == "Sea views"

    async def test_null_cover_removes_current_cover(
        self, property_service: PropertyService, manager: User, property_with_images: Property
    ):
        updated = await property_service.update_property(
            property_with_images.id, PropertyUpdate.model_validate({"coverImage": None}), manager
        )

        assert image_state(updated) == [("https://x/a.jpg", True), ("https://x/c.jpg", False)]
        assert updated.image_url == "https://x/a.jpg"

    async def test_existing_images_selects_kept_images(
        self, property_service: PropertyService, manager: User, property_with_images: Property
    ):
        updated = await property_service.update_property(
            property_with_images.id,
            PropertyUpdate.model_validate({"existingImages": '["https://x/c.jpg", {"url": "https://x/a.jpg"}]'}),
            manager,
        )

        assert image_state(updated) == [("https://x/c.jpg", True), ("https://x/a.jpg", False)]
        assert updated.images == ["https://x/c.jpg", "https://x/a.jpg"]

    async def test_existing_images_keep_current_cover(
        self, property_service: PropertyService, manager: User, property_with_images: Property
    ):
        updated = await property_service.update_property(
            property_with_images.id,
            PropertyUpdate.model_validate(
                {"existingImages": ["https://x/a.jpg", "https://x/b.jpg"], "images": ["https://x/d.jpg"]}
            ),
            manager,
        )

        assert image_state(updated) == [
            ("https://x/a.jpg", False),
            ("https://x/b.jpg", True),
            ("https://x/d.jpg", False),
        ]
        assert updated.image_url == "https://x/b.jpg"

    async def test_explicit_primary_replaces_current_cover(
        self, property_service: PropertyService, manager: User, property_with_images: Property
    ):
        updated = await property_service.update_property(
            property_with_images.id,
            PropertyUpdate.model_validate(
                {"existingImages": ["https://x/b.jpg", {"url": "https://x/c.jpg", "isPrimary": True}]}
            ),
            manager,
        )

        assert image_state(updated) == [("https://x/b.jpg", False), ("https://x/c.jpg", True)]

    async def test_submitted_images_are_appended(
        self, property_service: PropertyService, manager: User, property_with_images: Property
    ):
        updated = await property_service.update_property(
            property_with_images.id,
            PropertyUpdate.model_validate({"images": ["https://x/d.jpg", "https://x/a.jpg"]}),
            manager,
        )

        assert [url for url, _ in image_state(updated)] == [
            "https://x/b.jpg",
            "https://x/a.jpg",
            "https://x/c.jpg",
            "https://x/d.jpg",
        ]
        assert updated.image_url == "https://x/b.jpg"

    async def test_new_cover(
        self, property_service: PropertyService, manager: User, property_with_images: Property
    ):
        updated = await property_service.update_property(
            property_with_images.id, PropertyUpdate.model_validate({"coverImage": "https://x/c.jpg"}), manager
        )

        assert image_state(updated)[0] == ("https://x/c.jpg", True)
        assert sum(1 for _, primary in image_state(updated) if primary) == 1

    async def test_malformed_existing_images_changes_nothing(
        self, property_service: PropertyService, manager: User, property_with_images: Property
    ):
        before = image_state(property_with_images)

        with pytest.raises(BadRequestError):
            await property_service.update_property(
                property_with_images.id,
                PropertyUpdate.model_validate({"name": "Renamed", "existingImages": "[oops"}),
                manager,
            )

        fetched = await property_service.get_property(property_with_images.id, manager)
        assert fetched.name == "Harbour View Apartments"
        assert image_state(fetched) == before

    @pytest.mark.parametrize("payload", [{"url": "https://x/a.jpg"}, 5])
    async def test_non_list_existing_images_rejected(
        self, property_service: PropertyService, manager: User, property_with_images: Property, payload
    ):
        update = PropertyUpdate.model_validate({"existingImages": payload})

        with pytest.raises(BadRequestError):
            await property_service.update_property(property_with_images.id, update, manager)

    async def test_other_org_cannot_update(
        self, property_service: PropertyService, other_manager: User, property_with_images: Property
    ):
        with pytest.raises(PropertyNotFoundError):
            await property_service.update_property(
                property_with_images.id, PropertyUpdate.model_validate({"name": "Taken"}), other_manager
            )


class TestSyncPhotos:

    async def test_upload_appends_files(
        self, property_service: PropertyService, storage: FileStorage, manager: User
    ):
        property_obj = await create_property(property_service, manager, images=["https://x/a.jpg"])

        updated = await property_service.sync_photos(
            property_obj.id, manager, files=[make_upload(create_test_image())]
        )

        urls = [url for url, _ in image_state(updated)]
        assert urls[0] == "https://x/a.jpg"
        assert urls[1].startswith(f"/uploads/properties/{property_obj.id}/")
        assert storage.path_for_url(urls[1]).exists()

    async def test_existing_images_keep_current_cover(
        self, property_service: PropertyService, manager: User
    ):
        property_obj = await create_property(
            property_service,
            manager,
            images=["https://x/a.jpg", "https://x/b.jpg"],
            coverImage="https://x/b.jpg",
        )

        updated = await property_service.sync_photos(
            property_obj.id,
            manager,
            existing_images='["https://x/a.jpg", "https://x/b.jpg"]',
            files=[make_upload(create_test_image())],
        )

        state = image_state(updated)
        assert state[:2] == [("https://x/a.jpg", False), ("https://x/b.jpg", True)]
        assert state[2][1] is False
        assert updated.image_url == "https://x/b.jpg"

    async def test_blank_cover_clears_cover(self, property_service: PropertyService, manager: User):
        property_obj = await create_property(
            property_service, manager, images=["https://x/a.jpg", "https://x/b.jpg"]
        )

        updated = await property_service.sync_photos(property_obj.id, manager, cover_image="")

        assert image_state(updated) == [("https://x/b.jpg", True)]

    async def test_invalid_file_removes_saved_files(
        self, property_service: PropertyService, storage: FileStorage, manager: User
    ):
        property_obj = await create_property(property_service, manager)
        files = [
            make_upload(create_test_image()),
            make_upload(b"plain text", filename="notes.txt", content_type="text/plain"),
        ]

        with pytest.raises(BadRequestError):
            await property_service.sync_photos(property_obj.id, manager, files=files)

        property_dir = storage.base_dir / "properties" / str(property_obj.id)
        assert not property_dir.exists() or list(property_dir.iterdir()) == []
        fetched = await property_service.get_property(property_obj.id, manager)
        assert fetched.property_images == []

    async def test_malformed_existing_images_saves_nothing(
        self, property_service: PropertyService, storage: FileStorage, manager: User
    ):
        property_obj = await create_property(property_service, manager)

        with pytest.raises(BadRequestError):
            await property_service.sync_photos(
                property_obj.id, manager, existing_images="{bad", files=[make_upload(create_test_image())]
            )

        assert not (storage.base_dir / "properties" / str(property_obj.id)).exists()


class TestDeleteProperty:

    async def test_delete_removes_property_and_files(
        self, property_service: PropertyService, storage: FileStorage, manager: User
    ):
        property_obj = await create_property(property_service, manager)
        updated = await property_service.sync_photos(
            property_obj.id, manager, files=[make_upload(create_test_image())]
        )
        stored_path = storage.path_for_url(updated.property_images[0].image_url)
        assert stored_path.exists()

        await property_service.delete_property(property_obj.id, manager)

        assert not stored_path.exists()
        with pytest.raises(PropertyNotFoundError):
            await property_service.get_property(property_obj.id, manager)

    async def test_owner_cannot_delete(
        self, property_service: PropertyService, manager: User, owner: User
    ):
        property_obj = await create_property(property_service, manager)

        with pytest.raises(InsufficientPermissionsError):
            await property_service.delete_property(property_obj.id, owner)


class TestSerialize:

    async def test_legacy_property(self, property_service: PropertyService, legacy_property: Property):
        data = property_service.serialize(legacy_property)

        assert data["cover_image"] == "https://cdn.example.com/mill/front.jpg"
        assert data["images"] == ["https://cdn.example.com/mill/front.jpg", "https://cdn.example.com/mill/yard.jpg"]
        assert [image["is_primary"] for image in data["property_images"]] == [True, False]
        assert data["org_id"] == str(legacy_property.org_id)
