from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="XML_EMITTER_")

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # json or console

    # Conversion defaults
    numeric_tag_prefix: str = "numeric_"
    replace_spaces_in_keys: bool = True
    xml_encoding: Optional[str] = None
    xml_version: str = "1.0"
    flush_threshold: int = 1000
    indent: bool = True
    max_depth: int = 200


@lru_cache()
def get_settings() -> Settings:
    return Settings()
