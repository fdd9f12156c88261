# espocrm_client/util/url.py
from typing import Sequence, Union
from urllib.parse import quote

API_PATH = "/api/v1/"


def strip_trailing_slash(base_url: str) -> str:
    return base_url[:-1] if base_url.endswith("/") else base_url


def join_action(base_url: str, action: str, url_path: str = API_PATH) -> str:
    return f"{base_url}{url_path}{action}"


def bracket_key(path: Sequence[Union[str, int]]) -> str:
    """
    ["where", 0, "value", 2] -> "where[0][value][2]"
    """
    if not path:
        raise ValueError("bracket_key needs at least one path segment")
    head, *rest = path
    return str(head) + "".join(f"[{p}]" for p in rest)


def encode_component(text: str) -> str:
    # RFC 3986: space -> %20, only A-Z a-z 0-9 - _ . ~ left as-is
    return quote(text, safe="", encoding="utf-8", errors="strict")
