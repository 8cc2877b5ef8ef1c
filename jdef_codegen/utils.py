"""
Utility functions for identifier casing.
"""

import re

# Regex pattern to split text into words, handling camelCase boundaries
_WORD_PATTERN = re.compile(r"[a-z]+|[A-Z][a-z]*|[0-9]+")


def _normalize_separators(text: str) -> str:
    """Normalize separators (underscores, hyphens, dots, slashes) to spaces."""
    for separator in ("_", "-", ".", "/"):
        text = text.replace(separator, " ")
    return text


def _split_into_words(text: str) -> list[str]:
    """Split text into words, handling camelCase boundaries."""
    return _WORD_PATTERN.findall(text)


def to_pascal_case(text: str) -> str:
    """Convert snake_case, camelCase, dotted or space-separated text to PascalCase.

    Examples:
        "first_name" -> "FirstName"
        "listFoos" -> "ListFoos"
        "filterableFields" -> "FilterableFields"
    """
    if not text:
        return ""
    words = _split_into_words(_normalize_separators(text))
    return "".join(word.capitalize() for word in words if word)


def to_camel_case(text: str) -> str:
    """Convert text to camelCase.

    Examples:
        "/pkg.v1.FooService/GetFoo" -> "pkgV1FooServiceGetFoo"
        "get_foo" -> "getFoo"
    """
    pascal = to_pascal_case(text)
    if not pascal:
        return ""
    return pascal[0].lower() + pascal[1:]


def capitalize_parts(qualified_name: str, separator: str = ".") -> str:
    """Capitalize the first letter of each part of a qualified name and join them.

    Examples:
        "pkg.v1.Foo" -> "PkgV1Foo"
        "pkg.v1.foo_bar" -> "PkgV1Foo_bar"
    """
    return "".join(part[:1].upper() + part[1:] for part in qualified_name.split(separator) if part)
