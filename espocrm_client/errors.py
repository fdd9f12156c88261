# espocrm_client/errors.py
from __future__ import annotations

import requests


class EspoClientError(Exception):
    """Base class for errors raised by the client itself (not the transport)."""


class ConfigurationError(EspoClientError):
    """Credentials or connection settings cannot be used. Never retried."""


class EncodingError(EspoClientError):
    """A query string or request body could not be encoded."""


# Transport failures are passed through untouched; this alias only gives
# callers a name to catch them by.
TransportError = requests.RequestException
