"""
Image service for managing the normalized images of a property.
Provides adding by URL, multipart uploads, caption and cover changes,
deletion with cover promotion, and reordering.
"""

import uuid
import logging
from typing import Any, Dict, List, Optional, Sequence
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from propmanager.models.image import PropertyImage
from propmanager.models.property import Property
from propmanager.models.user import User
from propmanager.repositories.image import ImageRepository
from propmanager.schemas.image import PropertyImageCreate, PropertyImageUpdate
from propmanager.services.property import PropertyService
from propmanager.utils.exceptions import BadRequestError, NotFoundError, DuplicateResourceError
from propmanager.utils.file_utils import FileStorage
from propmanager.utils.images import (
    determine_primary_flag,
    normalize_property_images,
    order_property_images,
)

logger = logging.getLogger(__name__)


class ImageService:
    """Service for managing property images within the caller's organization."""

    def __init__(self, db_session: AsyncSession, storage: Optional[FileStorage] = None):
        self.db = db_session
        self.repository = ImageRepository(db_session)
        self.storage = storage or FileStorage()
        self.property_service = PropertyService(db_session, storage=self.storage)

    async def list_images(self, property_id: uuid.UUID, current_user: User) -> List[Dict[str, Any]]:
        """
        Ordered images of a property.

        Properties that predate image records get a synthesized list built
        from their legacy cover fields.
        """
        property_obj = await self.property_service.get_property(property_id, current_user)
        return normalize_property_images(property_obj)

    async def add_image(
        self,
        property_id: uuid.UUID,
        image_data: PropertyImageCreate,
        current_user: User
    ) -> PropertyImage:
        """
        Attach an image by URL or ``/uploads/`` path.

        Raises:
            DuplicateResourceError: If the property already has this URL
        """
        property_obj = await self.property_service.get_property_for_write(property_id, current_user)
        self._materialize_legacy_images(property_obj, current_user.id)

        if any(record.image_url == image_data.image_url for record in property_obj.property_images):
            raise DuplicateResourceError("Image", image_data.image_url)

        record = self._append_image(
            property_obj,
            image_data.image_url,
            current_user.id,
            caption=image_data.caption,
            explicit_primary=image_data.is_primary,
        )
        await self._commit(property_obj, f"add image to property {property_id}")
        await self.db.refresh(record)

        logger.info(f"Image {record.id} added to property {property_id} (primary: {record.is_primary})")
        return record

    async def upload_images(
        self,
        property_id: uuid.UUID,
        files: Sequence[UploadFile],
        current_user: User,
        caption: Optional[str] = None
    ) -> List[PropertyImage]:
        """
        Store uploaded files and attach them to the property in upload order.

        Files already written are deleted again if any file fails validation
        or the database write fails.
        """
        if not files:
            raise BadRequestError("At least one file is required")

        property_obj = await self.property_service.get_property_for_write(property_id, current_user)

        saved_urls: List[str] = []
        try:
            for file in files:
                saved_urls.append(await self.storage.save_upload(file, property_id))

            self._materialize_legacy_images(property_obj, current_user.id)
            records = [
                self._append_image(property_obj, url, current_user.id, caption=caption)
                for url in saved_urls
            ]
            await self._commit(property_obj, f"upload images to property {property_id}")
        except Exception:
            for url in saved_urls:
                self.storage.delete_by_url(url)
            raise

        for record in records:
            await self.db.refresh(record)

        logger.info(f"Uploaded {len(records)} images to property {property_id}")
        return records

    async def update_image(
        self,
        property_id: uuid.UUID,
        image_id: uuid.UUID,
        image_data: PropertyImageUpdate,
        current_user: User
    ) -> PropertyImage:
        """
        Change an image's caption or cover flag.

        Making an image primary demotes the current cover. Un-flagging the
        cover promotes the next image; a property's only image stays primary.
        """
        property_obj = await self.property_service.get_property_for_write(property_id, current_user)
        record = await self._find_image(property_obj, image_id)
        fields_set = image_data.model_fields_set

        if "caption" in fields_set:
            record.caption = image_data.caption

        if image_data.is_primary is True:
            self._set_primary(property_obj, record)
        elif image_data.is_primary is False and record.is_primary:
            others = [image for image in order_property_images(property_obj.property_images) if image is not record]
            if others:
                self._set_primary(property_obj, others[0])

        await self._commit(property_obj, f"update image {image_id}")
        await self.db.refresh(record)

        logger.info(f"Image {image_id} of property {property_id} updated")
        return record

    async def delete_image(self, property_id: uuid.UUID, image_id: uuid.UUID, current_user: User) -> None:
        """
        Remove an image.

        When the cover is removed the next image in display order becomes
        the cover; remaining images are renumbered without gaps.
        """
        property_obj = await self.property_service.get_property_for_write(property_id, current_user)
        record = await self._find_image(property_obj, image_id)
        image_url = record.image_url
        was_primary = record.is_primary

        property_obj.property_images.remove(record)
        remaining = order_property_images(property_obj.property_images)
        for index, image in enumerate(remaining):
            image.display_order = index
        if remaining and (was_primary or not any(image.is_primary for image in remaining)):
            self._set_primary(property_obj, remaining[0])

        await self._commit(property_obj, f"delete image {image_id}")
        self.storage.delete_by_url(image_url)

        logger.info(f"Image {image_id} deleted from property {property_id} (was primary: {was_primary})")

    async def reorder_images(
        self,
        property_id: uuid.UUID,
        ordered_image_ids: Sequence[uuid.UUID],
        current_user: User
    ) -> List[PropertyImage]:
        """
        Set the display order of every image of the property.

        Raises:
            BadRequestError: If the ids are not exactly the property's images
        """
        property_obj = await self.property_service.get_property_for_write(property_id, current_user)
        records = {record.id: record for record in property_obj.property_images}

        if len(set(ordered_image_ids)) != len(ordered_image_ids):
            raise BadRequestError("Image ids must not repeat")
        if set(ordered_image_ids) != set(records):
            raise BadRequestError("Image ids must match the property's images exactly")

        for index, image_id in enumerate(ordered_image_ids):
            records[image_id].display_order = index

        await self._commit(property_obj, f"reorder images of property {property_id}")
        await self.db.refresh(property_obj)

        logger.info(f"Reordered {len(records)} images of property {property_id}")
        return order_property_images(property_obj.property_images)

    async def _find_image(self, property_obj: Property, image_id: uuid.UUID) -> PropertyImage:
        record = await self.repository.get_in_property(image_id, property_obj.id)
        if record is None:
            raise NotFoundError("Image", str(image_id))
        return record

    def _append_image(
        self,
        property_obj: Property,
        image_url: str,
        uploaded_by_id: Optional[uuid.UUID],
        caption: Optional[str] = None,
        explicit_primary: Optional[bool] = None
    ) -> PropertyImage:
        existing = list(property_obj.property_images)
        is_primary = determine_primary_flag(
            explicit_primary,
            has_existing_images=bool(existing),
            has_existing_primary=any(image.is_primary for image in existing),
        )
        next_order = max((image.display_order for image in existing), default=-1) + 1

        record = PropertyImage(
            image_url=image_url,
            caption=caption,
            is_primary=False,
            display_order=next_order,
            uploaded_by_id=uploaded_by_id,
        )
        property_obj.property_images.append(record)
        if is_primary:
            self._set_primary(property_obj, record)
        return record

    def _set_primary(self, property_obj: Property, record: PropertyImage) -> None:
        for image in property_obj.property_images:
            image.is_primary = image is record

    def _materialize_legacy_images(self, property_obj: Property, uploaded_by_id: Optional[uuid.UUID]) -> None:
        """Turn legacy cover fields into image rows before the first new row is added."""
        if property_obj.property_images:
            return
        for legacy in normalize_property_images(property_obj):
            property_obj.property_images.append(
                PropertyImage(
                    image_url=legacy["image_url"],
                    is_primary=legacy["is_primary"],
                    display_order=legacy["display_order"],
                    uploaded_by_id=uploaded_by_id,
                )
            )

    def _sync_legacy_fields(self, property_obj: Property) -> None:
        ordered = order_property_images(property_obj.property_images)
        property_obj.image_url = next((image.image_url for image in ordered if image.is_primary), None)
        property_obj.images = [image.image_url for image in ordered]

    async def _commit(self, property_obj: Property, action: str) -> None:
        self._sync_legacy_fields(property_obj)
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise
