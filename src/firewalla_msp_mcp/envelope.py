"""The ``firewalla_response`` XML envelope returned by every data tool."""

import logging
from typing import Any, Callable, NamedTuple

from . import renderers
from .formatting import escape_xml, utc_timestamp

logger = logging.getLogger(__name__)

ROOT_ELEMENT = "firewalla_response"


class ResponseFormat(NamedTuple):
    """Title, summary and Markdown renderer for one response type."""

    title: Callable[[Any, dict[str, Any]], str]
    summary: Callable[[Any, dict[str, Any]], str]
    render: Callable[[Any, dict[str, Any]], str]


BOXES = ResponseFormat(renderers.boxes_title, renderers.boxes_summary, renderers.render_boxes)
DEVICES = ResponseFormat(renderers.devices_title, renderers.devices_summary, renderers.render_devices)
ALARMS = ResponseFormat(renderers.alarms_title, renderers.alarms_summary, renderers.render_alarms)
FLOWS = ResponseFormat(renderers.flows_title, renderers.flows_summary, renderers.render_flows)

RESPONSE_FORMATS: dict[str, ResponseFormat] = {
    "list_boxes": BOXES,
    "search_boxes": BOXES,
    "list_devices": DEVICES,
    "search_devices": DEVICES,
    "list_alarms": ALARMS,
    "search_alarms": ALARMS,
    "get_alarm": ResponseFormat(
        renderers.alarm_detail_title, renderers.alarm_detail_summary, renderers.render_alarm_detail
    ),
    "list_rules": ResponseFormat(renderers.rules_title, renderers.rules_summary, renderers.render_rules),
    "create_rule": ResponseFormat(
        renderers.rule_created_title, renderers.rule_created_summary, renderers.render_rule_created
    ),
    "update_rule": ResponseFormat(
        renderers.rule_updated_title, renderers.rule_updated_summary, renderers.render_rule_updated
    ),
    "list_flows": FLOWS,
    "search_flows": FLOWS,
    "list_target_lists": ResponseFormat(
        renderers.target_lists_title, renderers.target_lists_summary, renderers.render_target_lists
    ),
    "get_target_list": ResponseFormat(
        renderers.target_list_title, renderers.target_list_summary, renderers.render_target_list
    ),
    "create_target_list": ResponseFormat(
        renderers.target_list_created_title, renderers.target_list_summary, renderers.render_target_list_created
    ),
    "update_target_list": ResponseFormat(
        renderers.target_list_updated_title, renderers.target_list_summary, renderers.render_target_list_updated
    ),
    "get_statistics": ResponseFormat(
        renderers.statistics_title, renderers.statistics_summary, renderers.render_statistics
    ),
    "get_simple_statistics": ResponseFormat(
        renderers.simple_statistics_title,
        renderers.simple_statistics_summary,
        renderers.render_simple_statistics,
    ),
    "get_trends": ResponseFormat(renderers.trends_title, renderers.trends_summary, renderers.render_trends),
    "search_global": ResponseFormat(
        renderers.search_global_title, renderers.search_global_summary, renderers.render_search_global
    ),
}


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def value_to_xml(value: Any, indent: int = 2, _seen: frozenset[int] = frozenset()) -> str:
    """Serialize a JSON-like value into nested XML.

    Scalars become ``<value>`` elements, lists become ``<array>`` with indexed
    ``<item>`` children and dicts become ``<object>`` with one child per key.
    A container that contains itself raises ``ValueError``.
    """
    spaces = " " * indent

    if value is None:
        return f"{spaces}<value>null</value>"
    if isinstance(value, str):
        return f"{spaces}<value>{escape_xml(value)}</value>"
    if isinstance(value, (bool, int, float)):
        return f"{spaces}<value>{_scalar(value)}</value>"

    if isinstance(value, (list, tuple, dict)):
        if id(value) in _seen:
            raise ValueError("Cannot serialize a cyclic structure to XML")
        seen = _seen | {id(value)}

        if isinstance(value, dict):
            if not value:
                return f"{spaces}<object></object>"
            properties = []
            for key, item in value.items():
                tag = escape_xml(key)
                inner = value_to_xml(item, indent + 2, seen)
                properties.append(f"{spaces}  <{tag}>\n{inner}\n{spaces}  </{tag}>")
            return f"{spaces}<object>\n" + "\n".join(properties) + f"\n{spaces}</object>"

        if not value:
            return f"{spaces}<array></array>"
        items = []
        for index, item in enumerate(value):
            inner = value_to_xml(item, indent + 2, seen)
            items.append(f'{spaces}  <item index="{index}">\n{inner}\n{spaces}  </item>')
        return f"{spaces}<array>\n" + "\n".join(items) + f"\n{spaces}</array>"

    return f"{spaces}<value>{escape_xml(str(value))}</value>"


def metadata_value(value: Any) -> str:
    """Flat text for one metadata entry; lists are comma-joined."""
    if isinstance(value, (list, tuple)):
        return ",".join(_scalar(item) for item in value)
    return _scalar(value)


def _metadata_xml(response_type: str, timestamp: str, metadata: dict[str, Any] | None) -> str:
    lines = [
        "  <metadata>",
        f"    <response_type>{escape_xml(response_type)}</response_type>",
        f"    <timestamp>{timestamp}</timestamp>",
    ]
    for key, value in (metadata or {}).items():
        if value is None:
            continue
        tag = escape_xml(key)
        lines.append(f"    <{tag}>{escape_xml(metadata_value(value))}</{tag}>")
    lines.append("  </metadata>")
    return "\n".join(lines)


def format_as_xml(data: Any, response_type: str, metadata: dict[str, Any] | None = None) -> str:
    """Baseline envelope: metadata and the serialized payload, no presentation."""
    return "\n".join([
        f"<{ROOT_ELEMENT}>",
        _metadata_xml(response_type, utc_timestamp(), metadata),
        "  <data>",
        value_to_xml(data, 2),
        "  </data>",
        f"</{ROOT_ELEMENT}>",
    ])


def format_enhanced_response(data: Any, response_type: str, metadata: dict[str, Any] | None = None) -> str:
    """Envelope with a Markdown artifact and summary when a renderer exists.

    Unknown response types get the baseline envelope.
    """
    response_format = RESPONSE_FORMATS.get(response_type)
    if response_format is None:
        logger.debug(f"No renderer for {response_type}, using baseline envelope")
        return format_as_xml(data, response_type, metadata)

    metadata = metadata or {}
    title = response_format.title(data, metadata)
    summary = response_format.summary(data, metadata)
    content = response_format.render(data, metadata)

    return "\n".join([
        f"<{ROOT_ELEMENT}>",
        _metadata_xml(response_type, utc_timestamp(), metadata),
        "  <presentation>",
        f'    <artifact_content type="markdown" title="{escape_xml(title)}">',
        escape_xml(content.rstrip("\n")),
        "    </artifact_content>",
        "  </presentation>",
        f"  <summary>{escape_xml(summary)}</summary>",
        "  <data>",
        value_to_xml(data, 2),
        "  </data>",
        f"</{ROOT_ELEMENT}>",
    ])
