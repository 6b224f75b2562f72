"""
Property service for managing an organization's properties.
Handles CRUD operations, role checks, organization scoping, and keeps the
normalized PropertyImage rows and the legacy cover fields in sync.
"""

from typing import Optional, List, Dict, Any, Sequence, Tuple
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from propmanager.repositories.property import PropertyRepository, PropertySearchFilters
from propmanager.models.property import Property, PropertyStatus
from propmanager.models.image import PropertyImage
from propmanager.models.user import User
from propmanager.schemas.property import PropertyCreate, PropertyUpdate
from propmanager.services.organization import OrganizationService
from propmanager.utils.exceptions import PropertyNotFoundError, InsufficientPermissionsError
from propmanager.utils.file_utils import FileStorage
from propmanager.utils.images import (
    UNSET,
    NormalizedImage,
    apply_legacy_aliases,
    ensure_single_primary,
    merge_images_on_update,
    normalize_image_list,
    normalize_property_images,
    normalize_single_image,
    parse_existing_images,
)
import uuid
import logging

logger = logging.getLogger(__name__)


# Columns copied from create/update payloads onto the model
PROPERTY_FIELDS = (
    "name",
    "address",
    "city",
    "state",
    "zip_code",
    "country",
    "property_type",
    "status",
    "description",
    "year_built",
    "total_units",
    "total_area",
)

# Columns that may not be cleared with an explicit null
REQUIRED_FIELDS = ("name", "address", "city", "country", "status", "total_units")

IMAGE_FIELDS = ("images", "cover_image", "existing_images", "image_url")


class PropertyService:
    """
    Property service scoped to the caller's organization.
    Properties outside the caller's organization behave as if they did not exist.
    """

    def __init__(self, db_session: AsyncSession, storage: Optional[FileStorage] = None):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.org_service = OrganizationService(db_session)
        self.storage = storage or FileStorage()

    async def resolve_scope(self, current_user: User, write: bool = False) -> uuid.UUID:
        """
        Check the caller's role and resolve their organization.

        Raises:
            InsufficientPermissionsError: If the role may not read (or write) properties
        """
        if write and not current_user.can_write_properties:
            raise InsufficientPermissionsError("modify properties")
        if not current_user.can_read_properties:
            raise InsufficientPermissionsError("view properties")
        return await self.org_service.resolve_org_id(current_user)

    async def create_property(
        self,
        property_data: PropertyCreate,
        current_user: User,
        uploaded_urls: Sequence[str] = ()
    ) -> Property:
        """
        Create a property in the caller's organization.

        Submitted ``images`` and ``cover_image`` are normalized; the cover (or
        the first image flagged primary, or the first image) becomes the only
        primary image.

        Args:
            property_data: Validated creation payload
            current_user: User creating the property
            uploaded_urls: URLs of files uploaded alongside the payload

        Returns:
            Created property with its images loaded
        """
        org_id = await self.resolve_scope(current_user, write=True)
        data = apply_legacy_aliases(property_data.model_dump())

        cover = normalize_single_image(property_data.cover_image)
        if not isinstance(cover, str) and property_data.image_url:
            cover = property_data.image_url
        images = merge_images_on_update([], property_data.images, list(uploaded_urls), cover_image=cover)

        property_obj = Property(
            **{field: data.get(field) for field in PROPERTY_FIELDS},
            org_id=org_id,
            manager_id=current_user.id,
        )
        if property_obj.status is None:
            property_obj.status = PropertyStatus.ACTIVE

        self._sync_images(property_obj, images, current_user.id, existing=[])

        try:
            self.db.add(property_obj)
            await self.db.commit()
            await self.db.refresh(property_obj)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create property for user {current_user.id}: {e}")
            raise

        logger.info(
            f"Property created by user {current_user.email}: {property_obj.name} "
            f"(ID: {property_obj.id}, images: {len(images)})"
        )
        return property_obj

    async def list_properties(
        self,
        current_user: User,
        status: Optional[PropertyStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """
        List the caller's organization properties, newest first.

        Returns:
            Tuple of (properties, total count)
        """
        org_id = await self.resolve_scope(current_user)
        filters = PropertySearchFilters(status=status, search_text=search)
        properties, total = await self.property_repo.list_for_org(
            org_id, filters=filters, skip=skip, limit=limit
        )
        logger.debug(f"User {current_user.id} listed {len(properties)} properties")
        return properties, total

    async def get_property(self, property_id: uuid.UUID, current_user: User) -> Property:
        """
        Get a property of the caller's organization.

        Raises:
            PropertyNotFoundError: If missing or owned by another organization
        """
        org_id = await self.resolve_scope(current_user)
        return await self._get_in_org(property_id, org_id)

    async def get_property_for_write(self, property_id: uuid.UUID, current_user: User) -> Property:
        """Like get_property, but requires a role that may modify properties."""
        org_id = await self.resolve_scope(current_user, write=True)
        return await self._get_in_org(property_id, org_id)

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: User,
        uploaded_urls: Sequence[str] = ()
    ) -> Property:
        """
        Partially update a property.

        Only fields present in the payload change. When any image field is
        present (or files were uploaded) the image set is rebuilt from the
        kept images, the submitted images and the uploads. An explicit null
        cover removes the current cover image.

        Raises:
            BadRequestError: If existing_images is malformed (nothing is changed)
            PropertyNotFoundError: If missing or owned by another organization
        """
        fields_set = property_data.model_fields_set

        # Parse before touching anything so a malformed payload changes nothing
        existing_kept = None
        if "existing_images" in fields_set:
            existing_kept = parse_existing_images(property_data.existing_images)

        property_obj = await self.get_property_for_write(property_id, current_user)

        data = apply_legacy_aliases(property_data.model_dump(exclude_unset=True))
        for field in PROPERTY_FIELDS:
            if field not in data:
                continue
            if data[field] is None and field in REQUIRED_FIELDS:
                continue
            setattr(property_obj, field, data[field])

        removed_urls = []
        if uploaded_urls or any(field in fields_set for field in IMAGE_FIELDS):
            images = self._merge_update_images(property_obj, property_data, existing_kept, uploaded_urls)
            current = list(property_obj.property_images)
            kept_urls = {image.url for image in images}
            removed_urls = [record.image_url for record in current if record.image_url not in kept_urls]
            self._sync_images(property_obj, images, current_user.id, existing=current)

        try:
            await self.db.commit()
            await self.db.refresh(property_obj)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update property {property_id}: {e}")
            raise

        for url in removed_urls:
            self.storage.delete_by_url(url)

        logger.info(f"Property updated by user {current_user.email}: {property_obj.id}")
        return property_obj

    async def sync_photos(
        self,
        property_id: uuid.UUID,
        current_user: User,
        existing_images: Any = UNSET,
        cover_image: Any = UNSET,
        files: Sequence[UploadFile] = ()
    ) -> Property:
        """
        Multipart image update: keep ``existing_images``, add uploaded files and
        optionally set the cover.

        A blank ``cover_image`` form field clears the cover. Files are stored
        before the database write and removed again if the update fails.
        """
        payload: Dict[str, Any] = {}
        if existing_images is not UNSET:
            payload["existing_images"] = existing_images
            parse_existing_images(existing_images)
        if cover_image is not UNSET:
            payload["cover_image"] = normalize_single_image(cover_image, default_to_null=True)
        update = PropertyUpdate(**payload)

        await self.get_property_for_write(property_id, current_user)

        uploaded_urls: List[str] = []
        try:
            for file in files:
                uploaded_urls.append(await self.storage.save_upload(file, property_id))
            return await self.update_property(property_id, update, current_user, uploaded_urls=uploaded_urls)
        except Exception:
            for url in uploaded_urls:
                self.storage.delete_by_url(url)
            raise

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> None:
        """Delete a property together with its images and units."""
        property_obj = await self.get_property_for_write(property_id, current_user)
        image_urls = [image.image_url for image in property_obj.property_images]

        await self.property_repo.delete(property_obj)

        for url in image_urls:
            self.storage.delete_by_url(url)
        self.storage.cleanup_empty_directories(property_id)

        logger.info(f"Property deleted by user {current_user.email}: {property_id}")

    def serialize(self, property_obj: Property) -> Dict[str, Any]:
        """
        Public representation of a property.

        Includes the legacy ``postcode``/``type``/``cover_image`` aliases and the
        ordered image list (synthesized from legacy fields when no
        PropertyImage rows exist).
        """
        property_images = normalize_property_images(property_obj)
        urls = [image["image_url"] for image in property_images]
        cover = next(
            (image["image_url"] for image in property_images if image["is_primary"]),
            property_obj.image_url,
        )

        return {
            "id": str(property_obj.id),
            "name": property_obj.name,
            "address": property_obj.address,
            "city": property_obj.city,
            "state": property_obj.state,
            "zip_code": property_obj.zip_code,
            "postcode": property_obj.zip_code,
            "country": property_obj.country,
            "property_type": property_obj.property_type,
            "type": property_obj.property_type,
            "status": property_obj.status,
            "description": property_obj.description,
            "year_built": property_obj.year_built,
            "total_units": property_obj.total_units or 0,
            "total_area": property_obj.total_area,
            "image_url": cover,
            "cover_image": cover,
            "images": urls,
            "property_images": property_images,
            "org_id": str(property_obj.org_id),
            "manager_id": str(property_obj.manager_id) if property_obj.manager_id else None,
            "created_at": property_obj.created_at,
            "updated_at": property_obj.updated_at,
        }

    async def _get_in_org(self, property_id: uuid.UUID, org_id: uuid.UUID) -> Property:
        property_obj = await self.property_repo.get_in_org(property_id, org_id)
        if property_obj is None:
            raise PropertyNotFoundError(str(property_id))
        return property_obj

    def _merge_update_images(
        self,
        property_obj: Property,
        property_data: PropertyUpdate,
        existing_kept: Optional[List[Any]],
        uploaded_urls: Sequence[str]
    ) -> List[NormalizedImage]:
        fields_set = property_data.model_fields_set
        current = normalize_property_images(property_obj)
        current_cover = next((image["image_url"] for image in current if image["is_primary"]), None)

        kept = normalize_image_list(current if existing_kept is None else existing_kept)
        submitted = normalize_image_list(property_data.images)
        if any(image.is_primary for image in submitted):
            kept = [image.model_copy(update={"is_primary": False}) for image in kept]

        if "cover_image" in fields_set:
            cover = normalize_single_image(property_data.cover_image)
        elif "image_url" in fields_set:
            cover = normalize_single_image(property_data.image_url)
        else:
            cover = UNSET

        if cover is None:
            remaining = [
                image
                for image in merge_images_on_update(kept, submitted, list(uploaded_urls))
                if image.url != current_cover
            ]
            return ensure_single_primary(remaining)

        explicit_primary = any(image.is_primary for image in kept + submitted)
        merged = merge_images_on_update(kept, submitted, list(uploaded_urls), cover_image=cover)
        if cover is UNSET and not explicit_primary and any(image.url == current_cover for image in merged):
            # The stored cover stays primary unless the request names another
            merged = [image.model_copy(update={"is_primary": image.url == current_cover}) for image in merged]
        return merged

    def _sync_images(
        self,
        property_obj: Property,
        images: Sequence[NormalizedImage],
        uploaded_by_id: Optional[uuid.UUID],
        existing: Sequence[PropertyImage]
    ) -> None:
        """
        Replace the property's image rows with ``images``.

        Rows whose URL survives are reused (keeping their caption unless a new
        one is given); the rest are removed through delete-orphan. display_order
        is the list index, and the legacy image_url/images columns mirror the
        result.
        """
        by_url = {record.image_url: record for record in existing}
        records = []
        for index, image in enumerate(images):
            record = by_url.get(image.url)
            if record is None:
                record = PropertyImage(image_url=image.url, uploaded_by_id=uploaded_by_id)
            if image.caption:
                record.caption = image.caption
            record.is_primary = image.is_primary
            record.display_order = index
            records.append(record)

        property_obj.property_images = records
        property_obj.image_url = next((image.url for image in images if image.is_primary), None)
        property_obj.images = [image.url for image in images]

