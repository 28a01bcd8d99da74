from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "BrawlForge"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/brawlforge"

    scryfall_api_url: str = "https://api.scryfall.com"
    bulk_data_type: str = "default_cards"
    user_agent: str = "BrawlForge/1.0"
    http_timeout: float = 30.0
    download_timeout: float = 300.0

    # Eligibility rules for imported cards
    target_format: str = "brawl"
    target_games: list[str] = ["arena"]
    canonical_language: str = "en"

    import_batch_size: int = 100
    progress_interval: int = 100

    # Card names that get verbose import tracing
    watch_cards: list[str] = []


settings = Settings()


# =============================================================================
# CARD IMPORT RULES
# =============================================================================

# Lower rank wins when picking the canonical printing of a card
RARITY_RANK: dict[str, int] = {
    "common": 1,
    "uncommon": 2,
    "rare": 3,
    "mythic": 4,
}

# Release date assumed for sets we know nothing about (older than any real set)
UNKNOWN_RELEASE_DATE = "1993-01-01"
