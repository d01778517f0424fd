"""Display-template helper shared by the built-in classifiers."""
from __future__ import annotations

from string import Formatter


class _Lenient(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render_template(template: str, **values: str) -> str:
    """``str.format_map`` that leaves unknown fields in place."""
    return Formatter().vformat(template, (), _Lenient(values))
