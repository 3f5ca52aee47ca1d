# adminkit/core/config.py
from dotenv import load_dotenv
load_dotenv(".env")
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Literal

class Settings(BaseSettings):
    # model_config 会自动加载 .env 文件
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    APP_ENV: str = "production"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # --- Database ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./adminkit.db"
    DB_ECHO: bool = False

    # --- Admin forms ---
    ADMIN_FORM_ID: str = Field("admin-form", description="id attribute of the rendered <form> element")
    ADMIN_FORM_METHOD: Literal["post", "get"] = "post"
    ADMIN_SAVE_LABEL: str = "Save"
    ADMIN_SAVE_BUTTON_CLASS: str = "btn btn-success"
    ADMIN_COLUMN_WRAPPER: str = Field(
        '<div class="col-md-8">{items}</div>',
        description="Wrapper of the default single-column layout built by Entity.form()"
    )

    @field_validator("ADMIN_COLUMN_WRAPPER")
    @classmethod
    def _wrapper_has_placeholder(cls, value: str) -> str:
        if value.count("{items}") != 1:
            raise ValueError("ADMIN_COLUMN_WRAPPER must contain exactly one '{items}' placeholder")
        return value

settings = Settings()
