"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Viewport
    MIN_ZOOM: float = 0.1
    MAX_ZOOM: float = 5.0
    ZOOM_SENSITIVITY: float = 0.001  # Scale change per wheel delta unit

    # Gestures
    MIN_LAYER_SCALE: float = 0.1
    MIN_ANCHOR_DISTANCE: float = 1.0  # Screen pixels

    # New layers
    INITIAL_LAYER_WIDTH: float = 300.0
    VIEW_WIDTH: int = 1280  # Nominal screen size, used to center new layers
    VIEW_HEIGHT: int = 720

    # Background removal levels
    MASK_BLACK_POINT: int = 50
    MASK_WHITE_POINT: int = 200

    # Export
    MAX_EXPORT_PIXELS: int = 8192 * 8192

    # Generative image service
    GEMINI_API_KEY: str | None = None
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GENERATE_MODEL: str = "imagen-4.0-generate-001"
    EDIT_MODEL: str = "gemini-2.5-flash-image"
    REQUEST_TIMEOUT: float = 60.0  # Seconds

    model_config = {"env_prefix": "COMPOFORGE_"}


settings = Settings()
