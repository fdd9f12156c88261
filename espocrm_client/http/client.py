# espocrm_client/http/client.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

import requests

from espocrm_client.errors import ConfigurationError
from espocrm_client.http.auth import (
    AuthScheme,
    Credentials,
    secret_key_bytes,
    apply_auth_headers,
    resolve_scheme,
)
from espocrm_client.http.serializer import serialize
from espocrm_client.logging_utils import correlation_scope
from espocrm_client.models.types import Params
from espocrm_client.util.encode import encode_json
from espocrm_client.util.url import API_PATH, join_action, strip_trailing_slash

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class Method(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def coerce(cls, method: Union["Method", str]) -> "Method":
        if isinstance(method, Method):
            return method
        try:
            return cls(str(method).upper())
        except ValueError:
            raise ValueError(f"Unsupported HTTP method: {method}") from None


# ---- request model + executor ----


@dataclass
class ApiRequest:
    """
    A fully composed request: everything except the network I/O.
      req = client.prepare(Method.GET, "Contact", params)
      resp = req.send(session)
    """

    method: Method
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    auth_scheme: AuthScheme = AuthScheme.NONE

    def send(self, session, timeout: Optional[float] = DEFAULT_TIMEOUT) -> requests.Response:
        try:
            resp = session.request(
                self.method.value,
                self.url,
                headers=self.headers,
                data=self.body,
                timeout=timeout,
            )
        except requests.RequestException as e:
            logger.debug("Got an error from EspoCRM: %s", e)
            raise
        logger.debug(
            "Got response from EspoCRM with status code: %s",
            getattr(resp, "status_code", "?"),
        )
        return resp


class EspoApiClient:
    """
    Client for the EspoCRM REST API (https://docs.espocrm.com/development/api/).

    Auth is picked from whichever credentials are set, in this order:
    username+password (Basic), api_key+secret_key (HMAC), api_key alone.

        client = (
            EspoApiClient.builder("https://espocrm.example.com")
            .set_api_key("key")
            .set_secret_key("secret")
            .build()
        )
        resp = client.request(Method.GET, "Contact", params=Params().set_max_size(10))

    Instances are immutable; build a new client to change settings.
    """

    __slots__ = ("_url", "_url_path", "_credentials", "_timeout", "_session", "_owns_session")

    def __init__(
        self,
        url: str,
        credentials: Optional[Credentials] = None,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        session: Any = None,
        url_path: str = API_PATH,
    ) -> None:
        if not isinstance(url, str) or url.strip() == "":
            raise ConfigurationError("EspoCRM url must be a non-empty string")
        if timeout is not None and timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        creds = credentials or Credentials()
        if resolve_scheme(creds) is AuthScheme.HMAC:
            secret_key_bytes(creds.secret_key)

        object.__setattr__(self, "_url", strip_trailing_slash(url.strip()))
        object.__setattr__(self, "_url_path", url_path)
        object.__setattr__(self, "_credentials", creds)
        object.__setattr__(self, "_timeout", timeout)
        object.__setattr__(self, "_owns_session", session is None)
        object.__setattr__(self, "_session", session if session is not None else requests.Session())
        _warn_partial(creds)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("EspoApiClient is immutable; use a builder to change it")

    def __repr__(self) -> str:
        return f"EspoApiClient(url={self._url!r}, auth={self.auth_scheme.value})"

    def __enter__(self) -> "EspoApiClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the session, unless it was handed in by the caller."""
        if self._owns_session:
            self._session.close()

    @classmethod
    def builder(cls, url: str) -> "EspoApiClientBuilder":
        return EspoApiClientBuilder(url)

    @property
    def url(self) -> str:
        return self._url

    @property
    def url_path(self) -> str:
        return self._url_path

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    @property
    def auth_scheme(self) -> AuthScheme:
        return resolve_scheme(self._credentials)

    def normalize_url(self, action: str) -> str:
        return join_action(self._url, action, self._url_path)

    def prepare(
        self,
        method: Union[Method, str],
        action: str,
        params: Optional[Params] = None,
        payload: Any = None,
    ) -> ApiRequest:
        """
        Compose a request without sending it.

        * method:  GET, POST, PUT or DELETE
        * action:  everything after "/api/v1/", e.g. "Contact" or "Contact/<id>"
        * params:  GET only; rendered into the query string
        * payload: non-GET only; sent as the JSON body
        """
        method = Method.coerce(method)
        url = self.normalize_url(action)

        if params is not None and method is Method.GET:
            query = serialize(params)
            if query:
                url = f"{url}?{query}"
        logger.debug("Using URL %s to request from EspoCRM", url)

        headers: Dict[str, str] = {}
        scheme = apply_auth_headers(headers, self._credentials, method.value, action)
        logger.debug("Using %s authentication", scheme.value)

        body = None
        if payload is not None and method is not Method.GET:
            body = encode_json(payload)
            headers["Content-Type"] = "application/json"

        return ApiRequest(
            method=method, url=url, headers=headers, body=body, auth_scheme=scheme
        )

    def request(
        self,
        method: Union[Method, str],
        action: str,
        params: Optional[Params] = None,
        payload: Any = None,
    ) -> requests.Response:
        """Prepare and send. The response is returned as-is; errors propagate."""
        with correlation_scope():
            req = self.prepare(method, action, params=params, payload=payload)
            return self.send(req)

    def send(self, req: ApiRequest) -> requests.Response:
        logger.debug("Sending request to EspoCRM")
        return req.send(self._session, timeout=self._timeout)

    def get(self, action: str, params: Optional[Params] = None) -> requests.Response:
        return self.request(Method.GET, action, params=params)

    def post(self, action: str, payload: Any = None) -> requests.Response:
        return self.request(Method.POST, action, payload=payload)

    def put(self, action: str, payload: Any = None) -> requests.Response:
        return self.request(Method.PUT, action, payload=payload)

    def delete(self, action: str, payload: Any = None) -> requests.Response:
        return self.request(Method.DELETE, action, payload=payload)


def _warn_partial(creds: Credentials) -> None:
    if bool(creds.username) != bool(creds.password):
        logger.warning("Only one of username/password is set; Basic auth will not be used")
    if creds.secret_key and not creds.api_key:
        logger.warning("secret_key is set without api_key; HMAC auth will not be used")


class EspoApiClientBuilder:
    """Mutable settings holder; build() hands out an immutable EspoApiClient."""

    def __init__(self, url: str) -> None:
        self._url = url
        self._username: Optional[str] = None
        self._password: Optional[str] = None
        self._api_key: Optional[str] = None
        self._secret_key: Optional[str] = None
        self._timeout: Optional[float] = DEFAULT_TIMEOUT
        self._session = None

    def set_url(self, url: str) -> "EspoApiClientBuilder":
        self._url = url
        return self

    def set_username(self, username: str) -> "EspoApiClientBuilder":
        """Basic auth. Needs set_password() too. Prefer API key or HMAC auth."""
        self._username = username
        return self

    def set_password(self, password: str) -> "EspoApiClientBuilder":
        self._password = password
        return self

    def set_api_key(self, api_key: str) -> "EspoApiClientBuilder":
        """API key auth on its own; HMAC auth together with set_secret_key()."""
        self._api_key = api_key
        return self

    def set_secret_key(self, secret_key: str) -> "EspoApiClientBuilder":
        self._secret_key = secret_key
        return self

    def set_timeout(self, timeout: Optional[float]) -> "EspoApiClientBuilder":
        self._timeout = timeout
        return self

    def set_session(self, session: Any) -> "EspoApiClientBuilder":
        self._session = session
        return self

    def build(self) -> EspoApiClient:
        return EspoApiClient(
            self._url,
            Credentials(
                username=self._username,
                password=self._password,
                api_key=self._api_key,
                secret_key=self._secret_key,
            ),
            timeout=self._timeout,
            session=self._session,
        )
