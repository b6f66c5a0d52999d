from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Runtime ---
    ENV: str = "dev"  # dev|prod
    LOG_LEVEL: str = "INFO"

    # --- Minimal auth for debug routes (API key) ---
    # Send: X-API-Key: <key>
    API_KEY: str | None = None

    # --- PropTx / AMPRE (RESO OData) ---
    # Missing token is not fatal: /listings answers with an empty payload.
    PROPTX_IDX_TOKEN: str | None = None
    PROPTX_BASE_URL: str = "https://query.ampre.ca/odata"
    PROPTX_TIMEOUT_S: float = 30.0
    # Listing history needs VOW access; DLA is tried when VOW is refused.
    PROPTX_VOW_TOKEN: str | None = None
    PROPTX_DLA_TOKEN: str | None = None

    # --- Listings search tuning ---
    DEFAULT_PAGE_SIZE: int = 50
    MEDIA_PER_LISTING: int = 3
    MEDIA_TIMEOUT_S: float = 5.0
    LOGO_TIMEOUT_S: float = 1.5  # tighter than media on purpose
    LOGO_MAX_LISTINGS: int = 100

    # --- Image processing service (warm cache, fire-and-forget) ---
    # e.g. http://localhost:3000/api/images
    IMAGE_SERVICE_URL: str | None = None
    IMAGE_SERVICE_TIMEOUT_S: float = 10.0


settings = Settings()
