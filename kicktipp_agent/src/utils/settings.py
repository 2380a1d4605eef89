from pydantic_settings import BaseSettings as PydanticBaseSettings
from pydantic import SecretStr, Field
from typing import TypeVar, Type
from functools import lru_cache

from kicktipp_agent.src.models.session import KicktippCredentials

TypeSetting = TypeVar("TypeSetting", bound=PydanticBaseSettings)


class KicktippSettings(PydanticBaseSettings):
    base_url: str = Field("https://www.kicktipp.de", validation_alias="KICKTIPP_BASE_URL")
    timeout: float = Field(120.0, validation_alias="KICKTIPP_TIMEOUT")

    username: str = Field("", validation_alias="KICKTIPP_USERNAME")
    password: SecretStr = Field(
        SecretStr(""), exclude=True, validation_alias="KICKTIPP_PASSWORD"
    )

    model_config = {
        "extra": "ignore",
    }

    def to_credentials(self) -> KicktippCredentials:
        return KicktippCredentials(
            username=self.username, password=self.password.get_secret_value()
        )


class RepositorySettings(PydanticBaseSettings):
    context_repository_dir: str = Field(
        "context_documents", validation_alias="CONTEXT_REPOSITORY_DIR"
    )

    model_config = {
        "extra": "ignore",
    }


@lru_cache
def get_setting(setting_class: Type[TypeSetting]) -> TypeSetting:
    """helper to cache the PydanticSettings classes"""
    return setting_class()
