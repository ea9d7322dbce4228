import logging
import os
import re

from core.const import DEFAULT_TAG
from pykwalify.core import Core
from pykwalify.errors import SchemaError, PyKwalifyException
from pykwalify.rule import Rule
from typing import Any, Type
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

__all__ = [
    "is_url",
    "is_fuel_state",
    "str_or_list",
    "check_plugin_structure",
    "validate"
]

# pykwalify loads the extension functions from this file
EXTENSIONS = [os.path.abspath(__file__)]


def is_url(value, rule_obj, path):
    try:
        result = urlparse(value)
    except ValueError:
        raise SchemaError(msg=f'"{value}" is not a valid URL', path=path)
    if not all([result.scheme, result.netloc]):
        raise SchemaError(msg=f'"{value}" is not a valid URL', path=path)
    return True


def is_fuel_state(value, rule_obj, path):
    if not re.match(r'^\d+\.\d+$', str(value)):
        raise SchemaError(msg=f'"{value}" is not a fuel state like 5.2', path=path)
    return True


def _scalar_or_list(t: Type, value: Any, rule_obj: Rule, path: str):
    if isinstance(value, list):
        for idx, element in enumerate(value):
            if not isinstance(element, t):
                raise SchemaError(msg=f"Value {element} is not {t.__name__}.", path=f"{path}/{idx}")
    elif not isinstance(value, t):
        raise SchemaError(msg=f"Value {value} is not {t.__name__} or list.", path=path)
    rule_obj.enum = None
    return True


def str_or_list(value, rule_obj, path):
    return _scalar_or_list(str, value, rule_obj, path)


def check_plugin_structure(value, rule_obj, path):
    if not isinstance(value, dict):
        raise SchemaError(msg="The configuration has to be a mapping!", path=path)
    for element, section in value.items():
        if element == DEFAULT_TAG:
            continue
        if not isinstance(section, dict):
            raise SchemaError(msg=f"Section {element} has to be a mapping!", path=f"{path}/{element}")
        # carrier sections override the defaults, they do not nest further
        if DEFAULT_TAG in section:
            raise SchemaError(msg=f"Carrier section {element} must not have a {DEFAULT_TAG} tag!",
                              path=f"{path}/{element}")
    return True


def validate(source_file: str, schema_files: list[str], *, raise_exception: bool = False):
    c = Core(source_file=source_file, schema_files=schema_files, file_encoding='utf-8', extensions=EXTENSIONS)
    try:
        c.validate(raise_exception=True)
    except PyKwalifyException as ex:
        if raise_exception:
            raise
        if isinstance(ex, SchemaError):
            logger.warning(f'Error while parsing {source_file}:\n{ex}')
        else:
            logger.error(f'Error while parsing {source_file}:\n{ex}', exc_info=ex)
