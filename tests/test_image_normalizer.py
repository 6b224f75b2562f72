"""
Tests for property image normalization helpers.
"""

import pytest
from types import SimpleNamespace
from datetime import datetime, timezone

from propmanager.utils.exceptions import BadRequestError
from propmanager.utils.images import (
    UNSET,
    DetailedImage,
    NormalizedImage,
    UrlObject,
    UrlString,
    apply_legacy_aliases,
    determine_primary_flag,
    ensure_single_primary,
    extract_url,
    merge_images_on_update,
    normalize_image_list,
    normalize_property_images,
    normalize_single_image,
    parse_existing_images,
    parse_image_input,
)


class TestParseImageInput:
    """Classification of raw client values."""

    def test_string_becomes_url_string(self):
        assert parse_image_input("  https://x/a.jpg ") == UrlString(url="https://x/a.jpg")

    def test_url_object(self):
        assert parse_image_input({"url": "https://x/a.jpg"}) == UrlObject(url="https://x/a.jpg")

    def test_detailed_object(self):
        image = parse_image_input({"imageUrl": "https://x/b.jpg", "caption": " Front ", "isPrimary": True})
        assert image == DetailedImage(image_url="https://x/b.jpg", caption="Front", is_primary=True)

    def test_snake_case_detailed_object(self):
        image = parse_image_input({"image_url": "https://x/b.jpg", "is_primary": "true"})
        assert isinstance(image, DetailedImage)
        assert image.is_primary is True

    def test_url_object_with_caption_is_detailed(self):
        image = parse_image_input({"url": "https://x/c.jpg", "caption": "Kitchen"})
        assert image == DetailedImage(image_url="https://x/c.jpg", caption="Kitchen")

    @pytest.mark.parametrize("raw", [None, "", "   ", 42, True, [], {}, {"url": ""}, {"imageUrl": 7}])
    def test_unusable_values(self, raw):
        assert parse_image_input(raw) is None


class TestExtractUrl:

    def test_prefers_image_url_over_url(self):
        assert extract_url({"imageUrl": "https://x/a.jpg", "url": "https://x/b.jpg"}) == "https://x/a.jpg"

    def test_trims_whitespace(self):
        assert extract_url({"url": "  /uploads/properties/1/a.jpg  "}) == "/uploads/properties/1/a.jpg"

    def test_reads_attributes(self):
        assert extract_url(SimpleNamespace(image_url="https://x/a.jpg")) == "https://x/a.jpg"

    def test_missing_url_is_skipped(self):
        assert extract_url({"caption": "no url"}) is None


class TestNormalizeImageList:

    def test_duplicates_collapse_in_first_seen_order(self):
        images = normalize_image_list([
            "https://x/b.jpg",
            "https://x/a.jpg",
            {"url": "https://x/b.jpg"},
            {"imageUrl": "https://x/a.jpg", "caption": "ignored duplicate"},
            "https://x/c.jpg",
        ])
        assert [image.url for image in images] == ["https://x/b.jpg", "https://x/a.jpg", "https://x/c.jpg"]
        assert images[1].caption is None

    def test_unusable_entries_are_dropped(self):
        images = normalize_image_list(["", None, {"caption": "x"}, 3, "https://x/a.jpg"])
        assert [image.url for image in images] == ["https://x/a.jpg"]

    def test_none_and_unset_are_empty(self):
        assert normalize_image_list(None) == []
        assert normalize_image_list(UNSET) == []

    def test_single_value_is_wrapped(self):
        assert normalize_image_list("https://x/a.jpg") == [NormalizedImage(url="https://x/a.jpg")]

    def test_mixed_shapes_scenario(self):
        images = normalize_image_list([
            "https://x/a.jpg",
            {"url": "https://x/a.jpg"},
            {"imageUrl": "https://x/b.jpg", "isPrimary": True},
        ])
        assert [image.to_dict() for image in images] == [
            {"url": "https://x/a.jpg"},
            {"url": "https://x/b.jpg", "isPrimary": True},
        ]


class TestNormalizeSingleImage:

    def test_absent_leaves_field_untouched(self):
        assert normalize_single_image() is UNSET
        assert normalize_single_image(UNSET) is UNSET

    def test_absent_with_default_to_null(self):
        assert normalize_single_image(UNSET, default_to_null=True) is None

    def test_explicit_null_always_clears(self):
        assert normalize_single_image(None) is None
        assert normalize_single_image(None, default_to_null=True) is None

    def test_unusable_value(self):
        assert normalize_single_image("   ") is UNSET
        assert normalize_single_image("   ", default_to_null=True) is None

    def test_object_value(self):
        assert normalize_single_image({"imageUrl": " https://x/a.jpg "}) == "https://x/a.jpg"


class TestDeterminePrimaryFlag:

    @pytest.mark.parametrize(
        "explicit,has_images,has_primary,expected",
        [
            (True, True, True, True),
            (True, False, False, True),
            (False, False, False, True),
            (None, False, False, True),
            (False, True, True, False),
            (None, True, True, False),
            (False, True, False, True),
        ],
    )
    def test_decision_table(self, explicit, has_images, has_primary, expected):
        assert determine_primary_flag(explicit, has_images, has_primary) is expected


class TestEnsureSinglePrimary:

    def test_first_flagged_wins(self):
        images = ensure_single_primary([
            NormalizedImage(url="a"),
            NormalizedImage(url="b", is_primary=True),
            NormalizedImage(url="c", is_primary=True),
        ])
        assert [image.is_primary for image in images] == [False, True, False]

    def test_first_image_when_none_flagged(self):
        images = ensure_single_primary([NormalizedImage(url="a"), NormalizedImage(url="b")])
        assert [image.is_primary for image in images] == [True, False]

    def test_empty(self):
        assert ensure_single_primary([]) == []


class TestMergeImagesOnUpdate:

    def test_order_is_kept_submitted_uploaded(self):
        images = merge_images_on_update(
            ["https://x/kept.jpg"],
            [{"url": "https://x/new.jpg"}, "https://x/kept.jpg"],
            ["/uploads/properties/1/up.jpg"],
        )
        assert [image.url for image in images] == [
            "https://x/kept.jpg",
            "https://x/new.jpg",
            "/uploads/properties/1/up.jpg",
        ]
        assert [image.is_primary for image in images] == [True, False, False]

    def test_cover_moves_to_front_without_duplicate(self):
        images = merge_images_on_update(
            ["https://x/a.jpg", "https://x/b.jpg"],
            [],
            ["/uploads/properties/1/c.jpg"],
            cover_image="/uploads/properties/1/c.jpg",
        )
        assert [image.url for image in images] == [
            "/uploads/properties/1/c.jpg",
            "https://x/a.jpg",
            "https://x/b.jpg",
        ]
        assert [image.is_primary for image in images] == [True, False, False]

    def test_unknown_cover_is_inserted(self):
        images = merge_images_on_update(["https://x/a.jpg"], [], [], cover_image={"url": "https://x/cover.jpg"})
        assert [image.url for image in images] == ["https://x/cover.jpg", "https://x/a.jpg"]

    def test_cover_keeps_caption(self):
        images = merge_images_on_update(
            [{"imageUrl": "https://x/a.jpg"}, {"imageUrl": "https://x/b.jpg", "caption": "Garden"}],
            [],
            [],
            cover_image="https://x/b.jpg",
        )
        assert images[0] == NormalizedImage(url="https://x/b.jpg", caption="Garden", is_primary=True)

    def test_submitted_primary_is_honored_without_cover(self):
        images = merge_images_on_update([], ["https://x/a.jpg", {"imageUrl": "https://x/b.jpg", "isPrimary": True}], [])
        assert [image.is_primary for image in images] == [False, True]


class TestParseExistingImages:

    def test_json_list(self):
        assert parse_existing_images('["https://x/a.jpg", {"url": "https://x/b.jpg"}]') == [
            "https://x/a.jpg",
            {"url": "https://x/b.jpg"},
        ]

    def test_list_passthrough(self):
        assert parse_existing_images(["https://x/a.jpg"]) == ["https://x/a.jpg"]

    def test_blank_is_empty(self):
        assert parse_existing_images("  ") == []
        assert parse_existing_images(None) == []

    def test_malformed_json(self):
        with pytest.raises(BadRequestError) as exc_info:
            parse_existing_images("[not json")
        assert exc_info.value.status_code == 400

    def test_non_list_json(self):
        with pytest.raises(BadRequestError):
            parse_existing_images('{"url": "https://x/a.jpg"}')

    def test_non_list_value(self):
        with pytest.raises(BadRequestError):
            parse_existing_images(12)


class TestNormalizePropertyImages:

    def test_legacy_fields_are_synthesized(self):
        created_at = datetime(2024, 1, 2, tzinfo=timezone.utc)
        property_obj = SimpleNamespace(
            id="p1",
            property_images=[],
            image_url="https://x/cover.jpg",
            images=["https://x/a.jpg", "https://x/cover.jpg"],
            created_at=created_at,
        )
        images = normalize_property_images(property_obj)
        assert [image["image_url"] for image in images] == ["https://x/cover.jpg", "https://x/a.jpg"]
        assert [image["is_primary"] for image in images] == [True, False]
        assert [image["display_order"] for image in images] == [0, 1]
        assert all(image["id"] is None for image in images)

    def test_no_images(self):
        property_obj = SimpleNamespace(id="p1", property_images=[], image_url=None, images=[], created_at=None)
        assert normalize_property_images(property_obj) == []

    def test_records_are_ordered(self):
        def record(url, order, created):
            return SimpleNamespace(
                image_url=url,
                display_order=order,
                created_at=created,
                to_dict=lambda: {"image_url": url},
            )

        early = datetime(2024, 1, 1)
        late = datetime(2024, 1, 2)
        property_obj = SimpleNamespace(
            property_images=[record("c", 1, early), record("b", 0, late), record("a", 0, early)]
        )
        assert [image["image_url"] for image in normalize_property_images(property_obj)] == ["a", "b", "c"]


class TestApplyLegacyAliases:

    def test_postcode_and_type(self):
        data = apply_legacy_aliases({"postcode": "1010", "type": "Residential"})
        assert data["zip_code"] == "1010"
        assert data["property_type"] == "Residential"

    def test_canonical_fields_win(self):
        data = apply_legacy_aliases({"zip_code": "2000", "postcode": "1010"})
        assert data["zip_code"] == "2000"

    def test_image_fields_untouched(self):
        raw = {"cover_image": {"url": "https://x/c.jpg"}, "images": ["https://x/a.jpg"], "image_url": None}
        data = apply_legacy_aliases(raw)
        assert data == raw
        assert data is not raw
