"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_FOOD_PROMPT = (
    "Ein professionelles Food-Fotografie-Bild: "
    "Kamera-Perspektive: leicht erhöhte Draufsicht, etwa 30-45° von oben. "
    "Objektiv: Normalobjektiv, 50 mm Vollformat-Look. "
    "Den Teller oder Gefäß vervollständigen, Hintergrund sanft unscharf (Bokeh). "
    "Komposition klar und appetitlich, alle Speisen vollständig sichtbar. "
    "Keine störenden Objekte wie Dosen, Serviettenhalter oder Salzstreuer im Bild. "
    "Beleuchtung: weiches, diffuses Licht wie aus einer großen Lichtwanne, "
    "natürliche Reflexe, zarte Schatten. "
    "Farben lebendig, aber realistisch; leichte Food-Styling-Ästhetik; "
    "knackige Details, hohe Schärfe, professioneller Look. "
    "Ultra-realistischer Stil, hochwertige Food-Photography."
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    airtable_api_key: str
    airtable_base_id: str
    airtable_table_name: str
    airtable_base_url: str = "https://api.airtable.com/v0"
    gemini_api_key: str
    gemini_model: str = "gemini-3-pro-image-preview"
    supabase_url: str
    supabase_service_key: str
    storage_bucket: str = "generated-images"
    public_base_url: str
    default_food_prompt: str = DEFAULT_FOOD_PROMPT
    use_default_prompt: bool = True
    default_variation_count: int = 2
    auto_process_enabled: bool = True
    eligibility_window_hours: int = 24
    max_concurrent_images: int = 1
    trigger_token: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
