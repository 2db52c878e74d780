import os
from functools import lru_cache
from types import MappingProxyType
from typing import Annotated, Any, List, Mapping, Optional, Tuple

from pydantic import AnyUrl, Field, TypeAdapter, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.indexed_keys import API_KEY_FAMILIES

_url_adapter = TypeAdapter(AnyUrl)


class ConfigError(RuntimeError):
    """Startup configuration is invalid; carries every (variable, reason) pair."""

    def __init__(self, violations: List[Tuple[str, str]]):
        self.violations = violations
        lines = [f"{name}: {reason}" for name, reason in violations]
        super().__init__("Invalid environment configuration:\n  " + "\n  ".join(lines))


class Settings(BaseSettings):
    app_name: str = "Secret Relay"

    port: int = Field(default=4000, validation_alias="PORT")
    service_api_token: str = Field(min_length=16, validation_alias="SERVICE_API_TOKEN")

    # Supabase
    supabase_url: str | None = Field(default=None, validation_alias="SUPABASE_URL")
    supabase_service_role_key: Annotated[str, Field(min_length=10)] | None = Field(
        default=None, validation_alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    feedbacks_db_service_key: str | None = Field(default=None, validation_alias="FEEDBACKS_DB_SERVICE_KEY")

    # Other databases
    neon_db_url: str | None = Field(default=None, validation_alias="NEON_DB_URL")

    # Razorpay
    razorpay_key_id: str | None = Field(default=None, validation_alias="RAZORPAY_KEY_ID")
    razorpay_key_secret: str | None = Field(default=None, validation_alias="RAZORPAY_KEY_SECRET")
    razorpay_webhook_secret: str | None = Field(default=None, validation_alias="RAZORPAY_WEBHOOK_SECRET")

    # Single API keys
    pdf_co_api_key: str | None = Field(default=None, validation_alias="PDF_CO_API_KEY")
    clipdrop_api_key: str | None = Field(default=None, validation_alias="CLIPDROP_API_KEY")
    handwriting_api_key: str | None = Field(default=None, validation_alias="HANDWRITING_API_KEY")
    stability_api_key: str | None = Field(default=None, validation_alias="STABILITY_API_KEY")

    # GEMINI_API_KEY_n, SPEECHIFY_API_KEY_n, SEARCHAPI_KEY_n; only the slots that are set
    api_key_slots: Mapping[str, str] = Field(default_factory=dict)

    # CORS
    cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")  # comma-separated if needed

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _prepare_environment(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        # None or blank means unset, so defaults apply and required fields report missing
        data = {k: v for k, v in data.items() if not (v is None or (isinstance(v, str) and not v.strip()))}
        slots = {}
        for family in API_KEY_FAMILIES:
            for name in family.key_names():
                value = data.get(name)
                if value is not None:
                    slots[name] = value
        return {**data, "api_key_slots": slots}

    @field_validator("api_key_slots")
    @classmethod
    def _read_only_slots(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(v))

    @field_validator("supabase_url")
    @classmethod
    def _url_shaped(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            _url_adapter.validate_python(v)
        except ValidationError:
            raise ValueError("must be a valid URL") from None
        return v


def _violations(exc: ValidationError) -> List[Tuple[str, str]]:
    out = []
    for err in exc.errors():
        name = ".".join(str(part) for part in err["loc"]) or "<root>"
        out.append((name, err["msg"]))
    return out


def load_settings(environ: Optional[Mapping[str, Optional[str]]] = None) -> Settings:
    """
    Validate a raw environment mapping (os.environ by default) into Settings.

    Raises ConfigError listing every invalid or missing variable, not just the first.
    """
    if environ is None:
        environ = os.environ
    try:
        return Settings.model_validate(dict(environ))
    except ValidationError as exc:
        raise ConfigError(_violations(exc)) from exc


@lru_cache
def get_settings() -> Settings:
    return load_settings()
