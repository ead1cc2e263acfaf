import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings
from pydantic_settings import SettingsConfigDict

from quizoverride.model import BaseModel


# NOTE: BaseModel comes second so its by_alias=True model_dump wins over
#       pydantic's; dictConfig needs the "()" and "class" aliases
class BaseSettings(PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    model_config = SettingsConfigDict(env_prefix="QUIZOVERRIDE_", populate_by_name=True)

    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        # specifically allow initialization with a dict
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)


class BaseSecrets(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="QUIZOVERRIDE_", env_nested_delimiter="__")
