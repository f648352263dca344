from pydantic_settings import BaseSettings, SettingsConfigDict
import os
import tempfile

class Settings(BaseSettings):
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    REDIS_URL: str = "redis://localhost:6379/0"
    RQ_QUEUE: str = "waveforms"

    STORAGE_DIR: str = "./data"
    TEMP_DIR: str = tempfile.gettempdir()

    FFMPEG_BIN: str = "ffmpeg"
    FFPROBE_BIN: str = "ffprobe"

    # "ffmpeg" | "soundfile"
    WAVEFORM_DECODER: str = "ffmpeg"
    WAVEFORM_SAMPLES_PER_SECOND: int = 20
    WAVEFORM_PCM_SAMPLE_RATE: int = 8000
    WAVEFORM_SIMPLIFIED_LENGTH: int = 200

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
os.makedirs(settings.STORAGE_DIR, exist_ok=True)
