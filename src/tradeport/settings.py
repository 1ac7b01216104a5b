from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from pydantic import BaseModel, Field, SecretStr, ValidationError

from .errors import AdapterConfigurationError


class ProxySettings(BaseModel):
    url: str
    username: str | None = None
    password: SecretStr | None = None

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def proxy_url(self) -> str:
        if self.username and self.password:
            protocol, sep, rest = self.url.partition("://")
            if not sep:
                protocol, rest = "http", self.url
            return f"{protocol}://{self.username}:{self.password.get_secret_value()}@{rest}"
        return self.url


class AdapterSettings(BaseModel):
    """Validated, immutable settings for one exchange adapter."""

    api_key: SecretStr = Field(min_length=1)
    api_secret: SecretStr = Field(min_length=1)
    user_id: str | None = None
    wallet_id: str | None = None
    buy_fee: Decimal = Field(ge=0, lt=100, description="Buy fee in percent")
    sell_fee: Decimal = Field(ge=0, lt=100, description="Sell fee in percent")
    timeout: float = Field(gt=0, description="Request timeout in seconds")
    proxy: ProxySettings | None = None

    model_config = {"extra": "forbid", "frozen": True}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, exchange: str) -> "AdapterSettings":
        """Validate raw settings, failing with the name of the offending field."""
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise configuration_error(exc, prefix=exchange) from exc


class ExchangeSettings(BaseModel):
    enabled: bool = True
    api_key: SecretStr | None = None
    api_secret: SecretStr | None = None
    user_id: str | None = None
    wallet_id: str | None = None
    buy_fee: Decimal | None = None
    sell_fee: Decimal | None = None
    timeout: float | None = None
    proxy: ProxySettings | None = None

    model_config = {"extra": "forbid"}

    def adapter_settings(self, exchange: str) -> AdapterSettings:
        data = self.model_dump(exclude={"enabled"}, exclude_none=True)
        for secret in ("api_key", "api_secret"):
            if secret in data:
                data[secret] = data[secret].get_secret_value()
        if self.proxy is not None:
            data["proxy"] = self.proxy
        return AdapterSettings.from_mapping(data, exchange=exchange)


class Settings(BaseModel):
    env: str = "dev"
    exchanges: dict[str, ExchangeSettings] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        for exch in data.get("exchanges", {}).values():
            for key in ("api_key", "api_secret"):
                if exch.get(key) is not None:
                    exch[key] = "***"
            proxy = exch.get("proxy")
            if isinstance(proxy, dict) and proxy.get("password") is not None:
                proxy["password"] = "***"
        return data


def configuration_error(exc: ValidationError, *, prefix: str) -> AdapterConfigurationError:
    """Turn a pydantic ValidationError into a field-specific configuration error."""
    problems = []
    first_field = None
    for error in exc.errors():
        name = ".".join(str(part) for part in error["loc"]) or "<root>"
        first_field = first_field or name
        if error["type"] == "missing":
            problems.append(f"missing required setting '{name}'")
        else:
            problems.append(f"invalid setting '{name}': {error['msg']}")
    return AdapterConfigurationError(f"{prefix}: " + "; ".join(problems), field=first_field)
