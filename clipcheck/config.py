"""Application settings from environment variables."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment."""

    # API Keys
    elevenlabs_api_key: str = ""
    gptzero_api_key: str = ""

    # ElevenLabs
    elevenlabs_base_url: str = "https://api.elevenlabs.io"
    elevenlabs_stt_model: str = "scribe_v1"

    # GPTZero
    gptzero_base_url: str = "https://api.gptzero.me"
    gptzero_predict_path: str = "/v2/predict/text"

    # Supabase (optional; SQLite is used when unset)
    supabase_url: str = ""
    supabase_key: str = ""
    db_path: str = "data/analysis.db"

    # Artifact locations
    screenshot_dir: str = "screenshots"
    audio_dir: str = "audio"
    simulation_audio_dir: str = "data/audio"

    # Configuration
    log_level: str = "INFO"
    log_dir: str = "logs"
    host: str = "0.0.0.0"
    port: int = 3000

    # Simulation
    force_simulation: bool = False
    simulation_delay_seconds: float = 2.0

    # Stage timing
    detection_delay_seconds: float = 0.1
    capture_timeout_seconds: float = 30.0
    player_wait_seconds: float = 15.0
    player_settle_seconds: float = 3.0
    download_timeout_seconds: float = 300.0
    transcode_timeout_seconds: float = 300.0
    transcription_timeout_seconds: float = 300.0
    detection_timeout_seconds: float = 60.0

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def simulation_mode(self) -> bool:
        """True when the pipeline must run without the real SaaS collaborators."""
        return self.force_simulation or not (self.elevenlabs_api_key and self.gptzero_api_key)

    @property
    def use_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
