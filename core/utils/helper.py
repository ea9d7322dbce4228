from __future__ import annotations

import os

from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import quote, urlparse

from core.const import SECRET

# ruamel YAML support
from pykwalify.errors import SchemaError
from ruamel.yaml import YAML
from ruamel.yaml.error import MarkedYAMLError
yaml = YAML()

__all__ = [
    "is_valid_url",
    "deep_merge",
    "read_yaml",
    "substitute_secret",
    "YAMLError"
]


def is_valid_url(url: str) -> bool:
    """
    Check if a given URL is valid.

    :param url: The URL to be validated.
    :type url: str
    :return: True if the URL is valid, False otherwise.
    :rtype: bool
    """
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except ValueError:
        return False


def deep_merge(d1: Mapping[str, Any], d2: Mapping[str, Any]) -> Mapping[str, Any]:
    """
       Merge two dictionaries recursively.  Non-mapping values are overwritten.

       Parameters
       ----------
       d1, d2 : Mapping
           Input mappings to merge.  They are *not* modified.

       Returns
       -------
       dict
           A new dictionary containing the deep merge of `d1` and `d2`.
       """
    if not isinstance(d1, Mapping):
        raise TypeError(f"d1 must be a Mapping, got {type(d1).__name__}")
    if not isinstance(d2, Mapping):
        raise TypeError(f"d2 must be a Mapping, got {type(d2).__name__}")

    result: dict = dict(d1)

    for key, value in d2.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def read_yaml(filename: str) -> Any:
    try:
        return yaml.load(Path(filename).read_text(encoding='utf-8'))
    except MarkedYAMLError as ex:
        raise YAMLError(filename, ex)


def substitute_secret(url: str, env: str) -> str:
    """
    Replaces the SECRET placeholder of a database URL with the password from the given environment variable.

    URLs without the placeholder are returned unchanged. A placeholder without a password raises a ValueError.
    """
    if SECRET not in (urlparse(url).password or ''):
        return url
    password = os.environ.get(env)
    if not password:
        raise ValueError(f"You need to set {env} or replace the {SECRET} keyword in your database URL!")
    return url.replace(SECRET, quote(password))


class YAMLError(Exception):
    """

    The `YAMLError` class is an exception class raised when there is an error encountered while parsing or scanning a YAML file.

    """
    def __init__(self, file: str, ex: MarkedYAMLError | ValueError | SchemaError):
        super().__init__(f"Error in {file}, " + ex.__str__().replace('"<unicode string>"', file))
