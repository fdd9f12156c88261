# espocrm_client/config/app_config.py
from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from espocrm_client.errors import ConfigurationError
from espocrm_client.http.client import EspoApiClient, EspoApiClientBuilder

CONFIG_PATH = os.path.join(os.path.dirname(__file__), "app_config.json")

# env var -> config field
ENV_VARS = {
    "ESPOCRM_URL": "url",
    "ESPOCRM_USERNAME": "username",
    "ESPOCRM_PASSWORD": "password",
    "ESPOCRM_API_KEY": "api_key",
    "ESPOCRM_SECRET_KEY": "secret_key",
    "ESPOCRM_TIMEOUT": "timeout",
}


class ClientConfig(BaseModel):
    url: str
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None
    secret_key: Optional[str] = None
    timeout: float = 30.0

    @field_validator("url")
    @classmethod
    def _url_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("url must not be empty")
        return v.strip()

    @field_validator("timeout")
    @classmethod
    def _timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    def to_client(self, session: Any = None) -> EspoApiClient:
        builder = EspoApiClientBuilder(self.url).set_timeout(self.timeout)
        if self.username:
            builder.set_username(self.username)
        if self.password:
            builder.set_password(self.password)
        if self.api_key:
            builder.set_api_key(self.api_key)
        if self.secret_key:
            builder.set_secret_key(self.secret_key)
        if session is not None:
            builder.set_session(session)
        return builder.build()


def _read_file(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Unable to read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return data


def load_config(path: Optional[str] = None, use_env: bool = True) -> ClientConfig:
    """
    JSON file first (path, $ESPOCRM_CONFIG, or app_config.json next to this
    module), then ESPOCRM_* environment variables on top. A .env file is
    loaded without overriding variables that are already set.
    """
    if use_env:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    path = path or os.getenv("ESPOCRM_CONFIG") or CONFIG_PATH
    data = _read_file(path)

    if use_env:
        for env_name, key in ENV_VARS.items():
            val = os.getenv(env_name)
            if val:
                data[key] = val

    try:
        return ClientConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid EspoCRM client configuration: {e}") from e


def save_config(config: ClientConfig, path: Optional[str] = None) -> None:
    with open(path or CONFIG_PATH, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(exclude_none=True), f, indent=2)
