"""Tests for hero banner selection."""
import pytest

from app.core.hero import EMPTY, ERROR, FEATURED_TRAILER, FEATURED_VIDEO, OVERRIDE, resolve_hero
from app.db.models import BrandingData, HeroTrailerData
from tests.conftest import FakeCatalogRepository, FakeSettingsStore, make_item


@pytest.fixture
def store():
    return FakeSettingsStore()


class TestResolveHero:
    @pytest.mark.asyncio
    async def test_manual_override_wins(self, catalog_repo, store):
        store.hero = HeroTrailerData(
            youtube_url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            movie_title="Override",
            watch_now_url="/watch/x",
            manual_override=True,
        )
        hero = await resolve_hero(catalog_repo, store)
        assert hero.status == OVERRIDE
        assert hero.video_id == "dQw4w9WgXcQ"
        assert hero.title == "Override"
        assert hero.embed_url.startswith("https://www.youtube.com/embed/dQw4w9WgXcQ?autoplay=1&mute=1")

    @pytest.mark.asyncio
    async def test_override_switched_off_falls_through(self, catalog_repo, store):
        store.hero = HeroTrailerData(youtube_url="https://youtu.be/dQw4w9WgXcQ", manual_override=False)
        hero = await resolve_hero(catalog_repo, store)
        assert hero.status == FEATURED_TRAILER
        assert hero.title == "Inception"

    @pytest.mark.asyncio
    async def test_featured_trailer_preferred(self, catalog_repo, store):
        hero = await resolve_hero(catalog_repo, store)
        featured = catalog_repo.items[0]
        assert hero.status == FEATURED_TRAILER
        assert hero.video_id == "YoHD9XEInc0"
        assert hero.watch_now_url == f"/watch/{featured.id}"
        assert hero.entry_id == featured.id

    @pytest.mark.asyncio
    async def test_falls_back_to_video(self, store):
        entry = make_item(title="Video Only", video_url="https://youtu.be/abc12345678", is_featured=True)
        hero = await resolve_hero(FakeCatalogRepository([entry]), store)
        assert hero.status == FEATURED_VIDEO
        assert hero.video_id == "abc12345678"

    @pytest.mark.asyncio
    async def test_nothing_featured(self, store):
        repo = FakeCatalogRepository([make_item(is_featured=False)])
        hero = await resolve_hero(repo, store)
        assert hero.status == EMPTY
        assert not hero.has_content
        assert hero.embed_url == ""

    @pytest.mark.asyncio
    async def test_featured_without_sources_is_empty(self, store):
        repo = FakeCatalogRepository([make_item(video_url="", is_featured=True)])
        hero = await resolve_hero(repo, store)
        assert hero.status == EMPTY

    @pytest.mark.asyncio
    async def test_non_youtube_source_is_flagged(self, store):
        entry = make_item(video_url="https://cdn.example.com/movie.mp4", is_featured=True)
        hero = await resolve_hero(FakeCatalogRepository([entry]), store)
        assert hero.has_content
        assert hero.invalid_source

    @pytest.mark.asyncio
    async def test_backend_failure_is_error_state(self, catalog_repo, store):
        store.fail = True
        hero = await resolve_hero(catalog_repo, store)
        assert hero.status == ERROR
        assert hero.error
        assert not hero.has_content

    @pytest.mark.asyncio
    async def test_logo_comes_from_branding(self, catalog_repo, store):
        store.branding = BrandingData(hero_logo_url="https://cdn.example.com/logo.png")
        hero = await resolve_hero(catalog_repo, store)
        assert hero.logo_url == "https://cdn.example.com/logo.png"

    @pytest.mark.asyncio
    async def test_logo_failure_does_not_hide_hero(self, catalog_repo, store):
        store.fail_branding = True
        hero = await resolve_hero(catalog_repo, store)
        assert hero.status == FEATURED_TRAILER
        assert hero.logo_url == ""

    @pytest.mark.asyncio
    async def test_path_segment_ending_in_v_is_not_a_youtube_id(self, store):
        entry = make_item(video_url="https://cdn.example.com/hls/v/master.m3u8", is_featured=True)
        hero = await resolve_hero(FakeCatalogRepository([entry]), store)
        assert hero.invalid_source
        assert hero.embed_url == ""
