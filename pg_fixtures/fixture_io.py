"""YAML fixture file reading and writing.

Files are rendered as Jinja2 templates before they are parsed, so fixture
files can compute values:

    author_00001:
      id: 1
      name: "{{ env.get('FIXTURE_AUTHOR', 'Ada') }}"
"""

import datetime
import ipaddress
import logging
import os
import uuid
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, StrictUndefined
from psycopg.types.range import Range

logger = logging.getLogger(__name__)

_jinja_env = Environment(undefined=StrictUndefined, keep_trailing_newline=True)


class FixtureDumper(yaml.SafeDumper):
    """SafeDumper that also writes the scalar types psycopg returns."""

    def ignore_aliases(self, data: Any) -> bool:
        # Fixture files are edited by hand; never emit &id001 anchors
        return True


def _represent_as_string(dumper: yaml.SafeDumper, value: Any) -> yaml.Node:
    return dumper.represent_str(str(value))


def _represent_time(dumper: yaml.SafeDumper, value: datetime.time) -> yaml.Node:
    return dumper.represent_str(value.isoformat())


def range_literal(value: Range) -> str:
    """
    PostgreSQL input text for a range value.

    Examples:
        >>> range_literal(Range(1, 5))
        '[1,5)'
        >>> range_literal(Range(empty=True))
        'empty'
    """
    if value.isempty:
        return "empty"
    lower = "" if value.lower is None else str(value.lower)
    upper = "" if value.upper is None else str(value.upper)
    return (
        f"{'[' if value.lower_inc else '('}{lower},{upper}{']' if value.upper_inc else ')'}"
    )


def _represent_range(dumper: yaml.SafeDumper, value: Range) -> yaml.Node:
    return dumper.represent_str(range_literal(value))


FixtureDumper.add_representer(Decimal, _represent_as_string)
FixtureDumper.add_representer(uuid.UUID, _represent_as_string)
FixtureDumper.add_representer(datetime.timedelta, _represent_as_string)
FixtureDumper.add_representer(datetime.time, _represent_time)
FixtureDumper.add_representer(Range, _represent_range)

# inet and cidr columns
for _ip_type in (
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
    ipaddress.IPv4Interface,
    ipaddress.IPv6Interface,
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
):
    FixtureDumper.add_representer(_ip_type, _represent_as_string)


def render_template(text: str, context: dict[str, Any] | None = None) -> str:
    """
    Render fixture text as a Jinja2 template.

    Args:
        text: Raw file content
        context: Extra template variables (``env`` is always available)

    Returns:
        Rendered text

    Raises:
        jinja2.TemplateError: If the template is invalid or uses an
            undefined variable
    """
    variables = {"env": dict(os.environ)}
    variables.update(context or {})
    return _jinja_env.from_string(text).render(**variables)


def protect_template(text: str) -> str:
    """
    Keep generated YAML from being rendered as a template.

    Text containing Jinja2 delimiters is wrapped in a raw block so that
    reading it back yields the same values. A value that itself contains
    ``{% endraw %}`` still cannot be read back.
    """
    if not any(marker in text for marker in ("{{", "{%", "{#")):
        return text
    return "{% raw %}\n" + text + "{% endraw %}\n"


def read_fixture_file(path: str | Path, context: dict[str, Any] | None = None) -> Any:
    """
    Read, render and parse a YAML fixture file.

    Args:
        path: File to read
        context: Extra template variables

    Returns:
        Parsed YAML (None for an empty file)
    """
    path = Path(path)
    raw = path.read_text(encoding="utf-8")
    return yaml.safe_load(render_template(raw, context))


def dump_yaml(data: Any, sort_keys: bool = True) -> str:
    """
    Serialize data as block-style YAML.

    Args:
        data: Data to serialize
        sort_keys: Sort mapping keys (False keeps insertion order)

    Returns:
        YAML text
    """
    return yaml.dump(
        data,
        Dumper=FixtureDumper,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=sort_keys,
    )


def write_file(path: str | Path, content: str) -> Path:
    """
    Overwrite path with content.

    The parent directory must already exist; OS errors propagate.

    Returns:
        The path written
    """
    path = Path(path)
    if not content.endswith("\n"):
        content += "\n"
    path.write_text(content, encoding="utf-8")
    logger.info(f"Wrote {path}")
    return path


def merge_fixtures(
    existing: dict[str, Any] | None, records: dict[str, Any]
) -> dict[str, Any]:
    """
    Merge newly collected records over existing fixture content.

    Args:
        existing: Parsed content of the current file (None if empty)
        records: New records by name

    Returns:
        Combined mapping; new records win on name collision
    """
    if not existing:
        return dict(records)
    merged = dict(existing)
    merged.update(records)
    return merged
