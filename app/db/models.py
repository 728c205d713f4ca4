from typing import Optional
from beanie import Document, init_beanie
from pydantic import BaseModel, Field, ConfigDict
from pymongo import ASCENDING, DESCENDING, IndexModel
from motor.motor_asyncio import AsyncIOMotorClient
from datetime import datetime
from app.core.config import settings

CATEGORIES = ("latest", "trending", "webseries", "movies", "livetv")
AD_TYPES = ("preroll", "midroll", "banner")
OVERLAY_POSITIONS = ("top-left", "top-right", "bottom-left", "bottom-right")
OBJECT_FITS = ("cover", "contain", "fill", "none", "scale-down")


# Plain data shapes are what the core works with; the Document subclasses
# below only add persistence.

class EntryData(BaseModel):
    title: str
    description: str = ""
    poster_url: Optional[str] = None
    video_url: str = ""
    trailer_url: Optional[str] = None
    download_url: Optional[str] = None
    genre: str = ""
    category: str = "movies"  # latest | trending | webseries | movies | livetv
    rating: Optional[float] = None
    release_year: Optional[int] = None
    duration: str = ""
    language: Optional[str] = None
    tags: Optional[str] = None
    telegram_channel: Optional[str] = None
    is_featured: bool = False
    view_count: int = 0
    download_count: int = 0
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    model_config = ConfigDict(extra='allow')


class CatalogItem(EntryData):
    id: str


class HeroTrailerData(BaseModel):
    youtube_url: str = ""
    movie_title: str = ""
    description: str = ""
    watch_now_url: str = ""
    more_info_url: str = ""
    manual_override: bool = False
    updated_at: datetime = Field(default_factory=datetime.now)


class SplashConfig(BaseModel):
    enabled: bool = False
    mode: str = "image"  # image | video
    image_url: str = ""
    video_url: str = ""
    logo_url: str = ""
    audio_url: str = ""
    object_fit: str = "cover"
    duration: int = 5000  # ms


class ThemeColors(BaseModel):
    primary_color: str = "#e50914"
    secondary_color: str = "#1f2937"
    background_color: str = "#000000"
    text_color: str = "#ffffff"


class SocialLinks(BaseModel):
    youtube: str = ""
    facebook: str = ""
    instagram: str = ""
    telegram: str = ""
    twitter: str = ""


class FooterConfig(BaseModel):
    copyright_text: str = ""
    social_links: SocialLinks = Field(default_factory=SocialLinks)


class SeoConfig(BaseModel):
    meta_title: str = ""
    meta_description: str = ""
    keywords: str = ""


class BrandingData(BaseModel):
    site_name: str = "Mflix Entertainment HUB"
    site_tagline: str = "Your Ultimate Entertainment Destination"
    logo_url: str = ""
    hero_logo_url: str = ""
    favicon_url: str = ""
    video_overlay_logo_url: str = ""
    video_overlay_position: str = "top-right"
    splash: SplashConfig = Field(default_factory=SplashConfig)
    theme: ThemeColors = Field(default_factory=ThemeColors)
    footer: FooterConfig = Field(default_factory=FooterConfig)
    seo: SeoConfig = Field(default_factory=SeoConfig)
    updated_at: datetime = Field(default_factory=datetime.now)
    model_config = ConfigDict(extra='allow')


class AdData(BaseModel):
    title: str
    code: str
    type: str = "banner"  # preroll | midroll | banner
    interval_minutes: Optional[int] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class AdItem(AdData):
    id: str


class CatalogEntry(EntryData, Document):
    class Settings:
        name = "movies"
        indexes = [
            IndexModel([("created_at", DESCENDING)]),
            IndexModel([("category", ASCENDING), ("created_at", DESCENDING)]),
            IndexModel([("is_featured", ASCENDING), ("created_at", DESCENDING)]),
        ]


class HeroTrailer(HeroTrailerData, Document):
    key: str = Field(default="current", unique=True)
    class Settings:
        name = "header_trailer"


class SiteSettings(BrandingData, Document):
    key: str = Field(default="main", unique=True)
    class Settings:
        name = "site_settings"


class AdSnippet(AdData, Document):
    class Settings:
        name = "ads"


async def init_db() -> AsyncIOMotorClient:
    client = AsyncIOMotorClient(settings.MONGO_URI)
    await init_beanie(
        database=client[settings.MONGO_DB_NAME],
        document_models=[
            CatalogEntry,
            HeroTrailer,
            SiteSettings,
            AdSnippet,
        ],
    )
    return client
