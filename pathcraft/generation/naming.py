"""Names derived from recorded data: file slugs, page names, identifiers."""

import re
from typing import Optional
from urllib.parse import urlparse

from pathcraft.core.models import Element

DEFAULT_SUITE_NAME = "User Flow Test"


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def page_name(url: Optional[str]) -> str:
    """Readable page name for a URL: its path without surrounding slashes."""
    try:
        path = urlparse(url or "").path
    except ValueError:
        return "home"
    return path.strip("/") or "home"


def camel_case(text: str) -> str:
    words = re.sub(r"[^a-zA-Z0-9]", " ", text).split()
    if not words:
        return ""
    return words[0].lower() + "".join(w[:1].upper() + w[1:].lower() for w in words[1:])


def pascal_page_name(url: str) -> str:
    """``/user-settings/profile`` -> ``UserSettingsProfile``; the root is ``Home``."""
    try:
        path = urlparse(url).path.strip("/")
    except ValueError:
        return "Page"
    if not path:
        return "Home"
    name = "".join(part[:1].upper() + part[1:] for part in re.split(r"[-/_]", path) if part)
    name = re.sub(r"[^a-zA-Z0-9]", "", name)
    if not name or name[0].isdigit():
        name = "Page" + name
    return name


def selector_name(element: Element) -> str:
    for key in ("id", "name"):
        value = element.attributes.get(key)
        if value and camel_case(str(value)):
            return camel_case(str(value))
    type_name = re.sub(r"[^a-zA-Z0-9]", "", element.type)
    if element.text and camel_case(element.text):
        return camel_case(element.text) + type_name[:1].upper() + type_name[1:]
    return f"{type_name or 'generic'}Element"


def parameter_name(element: Element) -> str:
    for candidate in (element.attributes.get("name"), element.label):
        if candidate and camel_case(str(candidate)):
            return camel_case(str(candidate))
    return "password" if element.type == "password-input" else "value"


def unique_name(name: str, taken) -> str:
    if name not in taken:
        return name
    n = 2
    while f"{name}{n}" in taken:
        n += 1
    return f"{name}{n}"
