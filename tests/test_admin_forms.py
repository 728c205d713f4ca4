"""Tests for admin form validation; failures raise before anything is built."""
import pytest

from app.core.admin_forms import (
    branding_changes,
    build_ad,
    build_entry,
    build_hero,
    entry_changes,
    splash_changes,
)
from app.core.errors import ValidationError


class TestBuildEntry:
    def test_minimal(self):
        entry = build_entry({"title": "  Dune  "})
        assert entry.title == "Dune"
        assert entry.category == "movies"
        assert entry.rating is None
        assert not entry.is_featured

    def test_full(self):
        entry = build_entry({
            "title": "Dune",
            "video_url": "https://www.youtube.com/watch?v=n9xhJrPXop4",
            "category": "latest",
            "rating": "8.1",
            "release_year": "2021",
            "tags": "spice, desert",
            "is_featured": "on",
        })
        assert entry.video_url == "https://www.youtube.com/embed/n9xhJrPXop4"
        assert entry.rating == 8.1
        assert entry.release_year == 2021
        assert entry.is_featured

    def test_title_required(self):
        with pytest.raises(ValidationError) as excinfo:
            build_entry({"title": "   ", "category": "movies"})
        assert excinfo.value.field == "title"

    def test_unknown_category(self):
        with pytest.raises(ValidationError) as excinfo:
            build_entry({"title": "X", "category": "podcasts"})
        assert excinfo.value.field == "category"

    @pytest.mark.parametrize("rating", ["11", "-1", "ten"])
    def test_bad_rating(self, rating):
        with pytest.raises(ValidationError) as excinfo:
            build_entry({"title": "X", "rating": rating})
        assert excinfo.value.field == "rating"

    def test_bad_year(self):
        with pytest.raises(ValidationError):
            build_entry({"title": "X", "release_year": "2021.5"})

    def test_changes_leave_counters_alone(self):
        changes = entry_changes(build_entry({"title": "X"}))
        assert "view_count" not in changes
        assert "download_count" not in changes
        assert "created_at" not in changes


class TestBuildHero:
    def test_override_needs_url(self):
        with pytest.raises(ValidationError) as excinfo:
            build_hero({"manual_override": "on"})
        assert excinfo.value.field == "youtube_url"

    def test_url_must_be_youtube(self):
        with pytest.raises(ValidationError):
            build_hero({"youtube_url": "https://vimeo.com/1"})

    def test_valid(self):
        hero = build_hero({
            "youtube_url": "https://youtu.be/dQw4w9WgXcQ",
            "movie_title": "Never",
            "manual_override": "on",
        })
        assert hero.manual_override
        assert hero.movie_title == "Never"

    def test_override_off_without_url(self):
        assert not build_hero({}).manual_override


class TestBuildAd:
    def test_requires_title_and_code(self):
        with pytest.raises(ValidationError) as excinfo:
            build_ad({"title": "Promo"})
        assert excinfo.value.field == "code"
        with pytest.raises(ValidationError) as excinfo:
            build_ad({"code": "<div></div>"})
        assert excinfo.value.field == "title"

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            build_ad({"title": "Promo", "code": "x", "type": "popup"})

    def test_midroll(self):
        ad = build_ad({"title": "Promo", "code": "x", "type": "midroll", "interval_minutes": "15", "is_active": "on"})
        assert ad.type == "midroll"
        assert ad.interval_minutes == 15
        assert ad.is_active


class TestBrandingChanges:
    def test_defaults_fill_blanks(self):
        changes = branding_changes({})
        assert changes["site_name"] == "Mflix Entertainment HUB"
        assert changes["theme"]["primary_color"] == "#e50914"
        assert changes["video_overlay_position"] == "top-right"

    def test_social_links_nested(self):
        changes = branding_changes({"social_telegram": "https://t.me/x"})
        assert changes["footer"]["social_links"]["telegram"] == "https://t.me/x"

    def test_bad_position(self):
        with pytest.raises(ValidationError):
            branding_changes({"video_overlay_position": "center"})


class TestSplashChanges:
    def test_enabled_needs_media(self):
        with pytest.raises(ValidationError) as excinfo:
            splash_changes({"enabled": "on", "mode": "video"})
        assert excinfo.value.field == "video_url"

    def test_negative_duration(self):
        with pytest.raises(ValidationError):
            splash_changes({"duration": "-5"})

    def test_zero_duration_is_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            splash_changes({"duration": "0"})
        assert excinfo.value.field == "duration"

    def test_blank_duration_uses_default(self):
        assert splash_changes({})["splash"]["duration"] == 5000

    def test_valid(self):
        changes = splash_changes({"enabled": "on", "image_url": "https://cdn.example.com/s.png", "duration": "3000"})
        assert changes["splash"]["enabled"]
        assert changes["splash"]["duration"] == 3000
        assert changes["splash"]["object_fit"] == "cover"

    def test_bad_mode(self):
        with pytest.raises(ValidationError):
            splash_changes({"mode": "gif"})
