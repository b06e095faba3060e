from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_host: str = "0.0.0.0"
    app_port: int = 8000

    user_agent: str = (
        "Mozilla/5.0 (compatible; AtlanticTruckBot/1.0; +https://www.atlantictruck.ca/)"
    )
    feed_timeout_ms: int = 3000
    image_fetch_timeout_ms: int = 2500

    news_limit: int = 30
    news_per_feed: int = 10
    news_max_per_host: int = 4
    traffic_per_feed: int = 20
    image_enrichment_cap: int = 12
    enrichment_concurrency: int = 6

    # Credentials are checked when a social endpoint is called, not at import
    fb_page_id: str | None = None
    fb_access_token: str | None = None
    fb_graph_version: str = "v20.0"
    fb_posts_limit: int = 15


settings = Settings()
