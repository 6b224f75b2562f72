"""
Property image normalization.

Clients submit images in several shapes: bare URL strings, ``{"url": ...}``
objects and detailed ``{"imageUrl", "caption", "isPrimary"}`` objects, while
older records only carry the legacy ``image_url`` / ``images`` columns. The
helpers here turn all of them into one canonical, deduplicated, ordered list
with a single primary (cover) image.

Unusable entries are dropped silently. The only hard failure is a malformed
``existingImages`` payload, which raises BadRequestError.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict

from propmanager.utils.exceptions import BadRequestError


class _Unset:
    """Marker for "field not supplied", distinct from an explicit None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


# Input variants


class UrlString(BaseModel):
    """A bare URL string."""
    model_config = ConfigDict(frozen=True)

    url: str


class UrlObject(BaseModel):
    """An object that only carries a ``url``."""
    model_config = ConfigDict(frozen=True)

    url: str


class DetailedImage(BaseModel):
    """An image with optional caption and explicit primary flag."""
    model_config = ConfigDict(frozen=True)

    image_url: str
    caption: Optional[str] = None
    is_primary: bool = False


ImageInput = Union[UrlString, UrlObject, DetailedImage]


class NormalizedImage(BaseModel):
    """Canonical image record produced by normalization."""
    model_config = ConfigDict(frozen=True)

    url: str
    caption: Optional[str] = None
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url}
        if self.caption:
            data["caption"] = self.caption
        if self.is_primary:
            data["isPrimary"] = True
        return data


_URL_KEYS = ("imageUrl", "image_url")
_DETAIL_KEYS = ("caption", "isPrimary", "is_primary")


def _clean_string(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return value is True


def _read_field(raw: Any, key: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(key)
    return getattr(raw, key, None)


def _has_field(raw: Any, key: str) -> bool:
    if isinstance(raw, Mapping):
        return key in raw
    return hasattr(raw, key)


def _first_field(raw: Any, keys: Sequence[str]) -> Any:
    for key in keys:
        value = _read_field(raw, key)
        if value is not None:
            return value
    return None


def parse_image_input(raw: Any) -> Optional[ImageInput]:
    """
    Classify a raw client value into an image input variant.

    Returns None when the value carries no usable URL.
    """
    if isinstance(raw, (UrlString, UrlObject, DetailedImage)):
        return raw

    if isinstance(raw, NormalizedImage):
        return DetailedImage(image_url=raw.url, caption=raw.caption, is_primary=raw.is_primary)

    if isinstance(raw, str):
        url = _clean_string(raw)
        return UrlString(url=url) if url else None

    if raw is None or isinstance(raw, (bytes, int, float, bool, list, tuple)):
        return None

    detailed_url = _clean_string(_first_field(raw, _URL_KEYS))
    plain_url = _clean_string(_read_field(raw, "url"))
    url = detailed_url or plain_url
    if not url:
        return None

    if detailed_url or any(_has_field(raw, key) for key in _DETAIL_KEYS):
        return DetailedImage(
            image_url=url,
            caption=_clean_string(_read_field(raw, "caption")),
            is_primary=_coerce_bool(_first_field(raw, ("isPrimary", "is_primary"))),
        )

    return UrlObject(url=url)


def extract_url(raw: Any) -> Optional[str]:
    """Return the trimmed URL carried by a raw image value, or None to skip it."""
    image = parse_image_input(raw)
    if isinstance(image, DetailedImage):
        return image.image_url
    if isinstance(image, (UrlString, UrlObject)):
        return image.url
    return None


def _to_normalized(image: ImageInput) -> NormalizedImage:
    if isinstance(image, DetailedImage):
        return NormalizedImage(url=image.image_url, caption=image.caption, is_primary=image.is_primary)
    return NormalizedImage(url=image.url)


def normalize_image_list(inputs: Any) -> List[NormalizedImage]:
    """
    Normalize a list of raw image values.

    Unusable entries are dropped and duplicates are removed by exact URL,
    keeping the first occurrence in its original position.
    """
    if inputs is None or inputs is UNSET:
        return []
    if isinstance(inputs, (str, Mapping)) or not isinstance(inputs, Iterable):
        inputs = [inputs]

    normalized: List[NormalizedImage] = []
    seen = set()
    for raw in inputs:
        image = parse_image_input(raw)
        if image is None:
            continue
        record = _to_normalized(image)
        if record.url in seen:
            continue
        seen.add(record.url)
        normalized.append(record)
    return normalized


def normalize_single_image(value: Any = UNSET, default_to_null: bool = False) -> Union[str, None, _Unset]:
    """
    Normalize a single cover-image field.

    An explicit None always clears the field. An absent or unusable value
    resolves to None when ``default_to_null`` is set, and to UNSET (leave the
    stored value untouched) otherwise.
    """
    if value is None:
        return None

    url = extract_url(value) if value is not UNSET else None
    if url:
        return url
    return None if default_to_null else UNSET


def determine_primary_flag(
    explicit: Optional[bool],
    has_existing_images: bool,
    has_existing_primary: bool
) -> bool:
    """
    Decide whether a newly added image becomes the primary image.

    An explicit request always wins. Otherwise the first image of a property
    is primary, and a later image is promoted only when no primary exists.
    """
    if explicit is True:
        return True
    if not has_existing_images:
        return True
    return not has_existing_primary


def ensure_single_primary(images: Sequence[NormalizedImage]) -> List[NormalizedImage]:
    """Return a copy of ``images`` with exactly one primary (the first flagged one, else the first)."""
    if not images:
        return []

    primary_index = next((i for i, image in enumerate(images) if image.is_primary), 0)
    return [
        image.model_copy(update={"is_primary": index == primary_index})
        for index, image in enumerate(images)
    ]


def merge_images_on_update(
    existing_kept: Any,
    submitted: Any,
    uploaded: Any,
    cover_image: Any = UNSET
) -> List[NormalizedImage]:
    """
    Merge the image sources of an update request.

    Order is existing-kept, then form-submitted, then uploaded images, with
    duplicates removed. An explicit cover image is moved to the front (or
    inserted there) and becomes the only primary image.
    """
    combined = normalize_image_list(
        list(normalize_image_list(existing_kept))
        + list(normalize_image_list(submitted))
        + list(normalize_image_list(uploaded))
    )

    cover_url = normalize_single_image(cover_image)
    if not isinstance(cover_url, str):
        return ensure_single_primary(combined)

    cover = next((image for image in combined if image.url == cover_url), None)
    cover = (cover or NormalizedImage(url=cover_url)).model_copy(update={"is_primary": True})
    rest = [
        image.model_copy(update={"is_primary": False})
        for image in combined
        if image.url != cover_url
    ]
    return [cover] + rest


def parse_existing_images(raw: Any) -> List[Any]:
    """
    Parse the ``existingImages`` field of an update request.

    Accepts a list or a JSON-encoded list. Raises BadRequestError for
    malformed JSON or a non-list payload.
    """
    if raw is None or raw is UNSET:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if not isinstance(raw, str):
        raise BadRequestError("existingImages must be a list of images")

    text = raw.strip()
    if not text:
        return []

    try:
        parsed = json.loads(text)
    except ValueError:
        raise BadRequestError("existingImages must be valid JSON")

    if not isinstance(parsed, list):
        raise BadRequestError("existingImages must be a list of images")
    return parsed


def _timestamp_key(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.min
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def order_property_images(records: Iterable[Any]) -> List[Any]:
    """Sort persisted image records by display_order, then created_at."""
    return sorted(
        records,
        key=lambda record: (
            _read_field(record, "display_order") or 0,
            _timestamp_key(_read_field(record, "created_at")),
        )
    )


def normalize_property_images(property_obj: Any) -> List[Dict[str, Any]]:
    """
    Public image list for a property.

    Uses the PropertyImage records when there are any; otherwise synthesizes
    records from the legacy ``image_url`` / ``images`` fields, with the legacy
    cover as the primary image.
    """
    records = _read_field(property_obj, "property_images") or []
    if records:
        return [record.to_dict() for record in order_property_images(records)]

    legacy = normalize_image_list(
        [_read_field(property_obj, "image_url")] + list(_read_field(property_obj, "images") or [])
    )
    legacy = ensure_single_primary(legacy)
    property_id = _read_field(property_obj, "id")
    created_at = _read_field(property_obj, "created_at")
    return [
        {
            "id": None,
            "property_id": str(property_id) if property_id else None,
            "image_url": image.url,
            "caption": None,
            "is_primary": image.is_primary,
            "display_order": index,
            "uploaded_by_id": None,
            "created_at": created_at.isoformat() if created_at else None,
        }
        for index, image in enumerate(legacy)
    ]


def apply_legacy_aliases(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fold legacy request aliases into their canonical fields.

    ``postcode`` fills ``zip_code`` and ``type`` fills ``property_type``. Image
    fields are left alone; covers are resolved by merge_images_on_update.
    """
    result = dict(data)
    if not result.get("zip_code") and result.get("postcode"):
        result["zip_code"] = result["postcode"]
    if not result.get("property_type") and result.get("type"):
        result["property_type"] = result["type"]

    return result
