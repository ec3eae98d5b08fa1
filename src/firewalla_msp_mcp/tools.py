"""Tool declarations and the dispatcher that turns tool calls into MSP API requests."""

import logging
from string import Formatter
from types import MappingProxyType
from typing import Any, Callable, Mapping, NamedTuple
from urllib.parse import quote

import httpx
from mcp.types import Tool

from .entities import next_cursor_of, results_of
from .envelope import format_enhanced_response
from .errors import invalid_request, map_upstream_error, unknown_tool
from .query import build_query, unknown_qualifiers
from .search import DEFAULT_SEARCH_LIMIT, SEARCHABLE_TYPES, search_entities

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500
MAX_STATISTICS_LIMIT = 50
DEFAULT_ENTITY_SEARCH_LIMIT = 50

RULE_ACTIONS = ["allow", "block", "time_limit"]
RULE_DIRECTIONS = ["inbound", "outbound", "bidirection"]
RULE_PROTOCOLS = ["tcp", "udp", "icmp", "any"]
RULE_TARGET_TYPES = ["ip", "domain", "category", "device", "network"]
RULE_SCOPE_TYPES = ["device", "network", "group"]
RULE_SCHEDULE_TYPES = ["daily", "weekly", "custom"]
RULE_STATUSES = ["active", "paused"]
STATISTICS_TYPES = ["topBoxesByBlockedFlows", "topBoxesBySecurityAlarms", "topRegionsByBlockedFlows"]
TREND_TYPES = ["flows", "alarms", "rules"]


def _string(description: str, enum: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "string", "description": description}
    if enum:
        schema["enum"] = enum
    return schema


def _limit(description: str, maximum: int = MAX_PAGE_SIZE) -> dict[str, Any]:
    return {"type": "integer", "description": description, "minimum": 1, "maximum": maximum}


CURSOR = _string("Pagination cursor from a previous response")
GROUP = _string("Filter by box group ID")
RULE_ID = _string("Rule ID")
TARGET_LIST_ID = _string("Target list ID")
FILTERS = {
    "type": "object",
    "description": (
        "Qualifiers merged into the query, e.g. {\"status\": \"active\", \"-type\": 9}. "
        "A leading '-' on a key excludes matches; a [start, end] pair is a range."
    ),
}
TARGETS = {"type": "array", "items": {"type": "string"}, "description": "IP addresses or domains"}


def _rule_target(required: bool) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "type": "object",
        "description": "Rule target specification",
        "properties": {
            "type": _string("Target type", RULE_TARGET_TYPES),
            "value": _string("Target value (IP, domain, category, ...)"),
        },
    }
    if required:
        schema["required"] = ["type", "value"]
    return schema


RULE_SCOPE = {
    "type": "object",
    "description": "Where the rule applies",
    "properties": {
        "type": _string("Scope type", RULE_SCOPE_TYPES),
        "value": _string("Scope value (device ID, network ID, ...)"),
        "port": _string("Port or port range"),
    },
}
RULE_SCHEDULE = {
    "type": "object",
    "description": "When the rule is in force (time_limit rules)",
    "properties": {
        "type": _string("Schedule type", RULE_SCHEDULE_TYPES),
        "times": {"type": "array", "items": {"type": "string"}, "description": "Time periods"},
    },
}


class ToolSpec(NamedTuple):
    """How one MCP tool maps onto the MSP API.

    ``path`` may hold ``{placeholders}`` filled from arguments of the same
    name. Remaining arguments travel as query parameters for GET and as the
    JSON body otherwise. Tools with a ``confirmation`` return that sentence
    instead of an envelope.
    """

    name: str
    method: str
    path: str
    description: str
    properties: dict[str, Any]
    required: tuple[str, ...] = ()
    confirmation: str | None = None
    search_entity: str | None = None
    default_limit: int | None = None
    listing: bool = False
    renames: Mapping[str, str] = MappingProxyType({})

    @property
    def path_fields(self) -> list[str]:
        return [field for _, field, _, _ in Formatter().parse(self.path) if field]

    def to_tool(self) -> Tool:
        schema: dict[str, Any] = {"type": "object", "properties": self.properties}
        if self.required:
            schema["required"] = list(self.required)
        return Tool(name=self.name, description=self.description, inputSchema=schema)


def _search_spec(entity: str, description: str, qualifiers: str) -> ToolSpec:
    return ToolSpec(
        name=f"search_{entity}",
        method="GET",
        path=f"/{entity}",
        description=description,
        properties={
            "query": _string(f"Search query. Qualifiers: {qualifiers}. Supports wildcards, quotes, "
                             "exclusions (-), comparisons (><=), ranges (start-end) and units (KB/MB/GB)"),
            "limit": _limit(f"Maximum results (default: {DEFAULT_ENTITY_SEARCH_LIMIT}, max: {MAX_PAGE_SIZE})"),
            "cursor": CURSOR,
            "filters": FILTERS,
        },
        required=("query",),
        search_entity=entity,
        default_limit=DEFAULT_ENTITY_SEARCH_LIMIT,
        listing=True,
    )


TOOL_SPECS: dict[str, ToolSpec] = {spec.name: spec for spec in [
    ToolSpec(
        "list_boxes", "GET", "/boxes",
        "List Firewalla boxes in the MSP fleet with model, version, mode and online status",
        {"group": GROUP},
        listing=True,
    ),
    _search_spec(
        "boxes",
        "Search Firewalla boxes using Firewalla query syntax",
        "name, model, online, version, box.id, box.name, box.group.id",
    ),
    ToolSpec(
        "list_devices", "GET", "/devices",
        "List devices across boxes (name, MAC, IP, type, status and more)",
        {"box": _string("Filter by box ID"), "group": GROUP},
        listing=True,
    ),
    _search_spec(
        "devices",
        "Search devices using Firewalla query syntax with device qualifiers",
        "device.name, device.id, mac, ip, box.id, box.name, box.group.id",
    ),
    ToolSpec(
        "list_alarms", "GET", "/alarms",
        "List security alarms with optional query, grouping, sorting and pagination",
        {
            "query": _string("Search query, e.g. 'status:active box.id:<gid> type:9'"),
            "groupBy": _string("Group results (comma-separated)"),
            "sortBy": _string("Sort results, e.g. 'ts:desc,total:asc'"),
            "limit": _limit(f"Max results per page (max: {MAX_PAGE_SIZE})"),
            "cursor": CURSOR,
        },
        listing=True,
    ),
    _search_spec(
        "alarms",
        "Search alarms using Firewalla query syntax with alarm qualifiers",
        "ts, type, status, box.id, box.name, device.id, device.name, remote.category, remote.domain, "
        "remote.region, transfer.download, transfer.upload, transfer.total",
    ),
    ToolSpec(
        "get_alarm", "GET", "/alarms/{gid}/{aid}",
        "Get one alarm by box GID and alarm ID",
        {"gid": _string("Box GID"), "aid": _string("Alarm ID")},
        required=("gid", "aid"),
    ),
    ToolSpec(
        "delete_alarm", "DELETE", "/alarms/{gid}/{aid}",
        "Delete one alarm",
        {"gid": _string("Box GID"), "aid": _string("Alarm ID")},
        required=("gid", "aid"),
        confirmation="Alarm {aid} on box {gid} deleted successfully",
    ),
    ToolSpec(
        "list_rules", "GET", "/rules",
        "List security rules (requires MSP 2.7.0+)",
        {"query": _string("Search query, e.g. 'status:active box.id:<gid>'")},
        listing=True,
    ),
    ToolSpec(
        "create_rule", "POST", "/rules",
        """Create a security rule.

The name is generated from action, direction, protocol and target when omitted.
Use a schedule with time_limit rules.""",
        {
            "name": _string("Rule name"),
            "action": _string("Rule action", RULE_ACTIONS),
            "direction": _string("Traffic direction", RULE_DIRECTIONS),
            "protocol": _string("Protocol", RULE_PROTOCOLS),
            "target": _rule_target(required=True),
            "scope": RULE_SCOPE,
            "schedule": RULE_SCHEDULE,
        },
        required=("action", "direction", "protocol", "target"),
    ),
    ToolSpec(
        "update_rule", "PUT", "/rules/{id}",
        "Update an existing rule; only the fields given are sent",
        {
            "id": RULE_ID,
            "name": _string("Rule name"),
            "action": _string("Rule action", RULE_ACTIONS),
            "direction": _string("Traffic direction", RULE_DIRECTIONS),
            "protocol": _string("Protocol", RULE_PROTOCOLS),
            "target": _rule_target(required=False),
            "scope": RULE_SCOPE,
            "status": _string("Rule status", RULE_STATUSES),
        },
        required=("id",),
        renames={"id": "rule_id"},
    ),
    ToolSpec(
        "delete_rule", "DELETE", "/rules/{id}",
        "Delete a security rule",
        {"id": RULE_ID},
        required=("id",),
        confirmation="Rule {id} deleted successfully",
    ),
    ToolSpec(
        "pause_rule", "POST", "/rules/{id}/pause",
        "Pause a rule",
        {"id": RULE_ID},
        required=("id",),
        confirmation="Rule {id} paused successfully",
    ),
    ToolSpec(
        "resume_rule", "POST", "/rules/{id}/resume",
        "Resume a paused rule",
        {"id": RULE_ID},
        required=("id",),
        confirmation="Rule {id} resumed successfully",
    ),
    ToolSpec(
        "list_flows", "GET", "/flows",
        "List network flows with optional query, grouping, sorting and pagination",
        {
            "query": _string("Search query, e.g. 'ts:1720000000-1720086400 box.id:<gid>'"),
            "groupBy": _string("Group results"),
            "sortBy": _string("Sort results (default: 'ts:desc')"),
            "limit": _limit(f"Max results per page (max: {MAX_PAGE_SIZE})"),
            "cursor": CURSOR,
        },
        listing=True,
    ),
    _search_spec(
        "flows",
        "Search network flows using Firewalla query syntax with flow qualifiers",
        "ts, status, direction, box.id, box.name, device.id, device.name, category, domain, region, "
        "sport, dport, download, upload, total",
    ),
    ToolSpec(
        "list_target_lists", "GET", "/target-lists",
        "List target lists",
        {},
        listing=True,
    ),
    ToolSpec(
        "get_target_list", "GET", "/target-lists/{id}",
        "Get one target list",
        {"id": TARGET_LIST_ID},
        required=("id",),
        renames={"id": "target_list_id"},
    ),
    ToolSpec(
        "create_target_list", "POST", "/target-lists",
        "Create a target list of IP addresses or domains",
        {
            "name": _string("Name of the target list"),
            "targets": TARGETS,
            "owner": _string("Owner of the target list"),
            "category": _string("Category of the target list"),
            "notes": _string("Notes about the target list"),
        },
        required=("name", "targets"),
    ),
    ToolSpec(
        "update_target_list", "PATCH", "/target-lists/{id}",
        "Update a target list; only the fields given are sent",
        {
            "id": TARGET_LIST_ID,
            "name": _string("Name of the target list"),
            "targets": TARGETS,
            "owner": _string("Owner of the target list"),
            "category": _string("Category of the target list"),
            "notes": _string("Notes about the target list"),
        },
        required=("id",),
        renames={"id": "target_list_id"},
    ),
    ToolSpec(
        "delete_target_list", "DELETE", "/target-lists/{id}",
        "Delete a target list",
        {"id": TARGET_LIST_ID},
        required=("id",),
        confirmation="Target list {id} deleted successfully",
    ),
    ToolSpec(
        "get_statistics", "GET", "/stats/{type}",
        "Get ranked statistics of one type",
        {
            "type": _string("Type of statistics", STATISTICS_TYPES),
            "group": GROUP,
            "limit": _limit(f"Maximum number of results (max: {MAX_STATISTICS_LIMIT})", MAX_STATISTICS_LIMIT),
        },
        required=("type",),
        listing=True,
        renames={"type": "stats_type"},
    ),
    ToolSpec(
        "get_simple_statistics", "GET", "/stats/simple",
        "Get overview counts for boxes, alarms and rules",
        {"group": GROUP},
    ),
    ToolSpec(
        "get_trends", "GET", "/trends/{type}",
        "Get trend data for flows, alarms or rules over time",
        {"type": _string("Type of trend data", TREND_TYPES), "group": GROUP},
        required=("type",),
        listing=True,
        renames={"type": "trend_type"},
    ),
    ToolSpec(
        "search_global", "GET", "",
        """Search devices, alarms, flows and boxes with one Firewalla query.

A failing entity type is reported inline and does not affect the others.
Target lists, statistics and trends are not searchable.""",
        {
            "query": _string("Search query using Firewalla syntax, e.g. 'iPhone', 'status:active', "
                             "'device.name:*iphone*', 'ts:>1720000000', 'download:>1MB'"),
            "types": {
                "type": "array",
                "items": {"type": "string", "enum": list(SEARCHABLE_TYPES)},
                "description": "Entity types to search (default: all searchable types)",
            },
            "limit": _limit(f"Maximum results per type (default: {DEFAULT_SEARCH_LIMIT}, max: {MAX_PAGE_SIZE})"),
            "cursor": CURSOR,
        },
        required=("query",),
        default_limit=DEFAULT_SEARCH_LIMIT,
    ),
]}

TOOLS: list[Tool] = [spec.to_tool() for spec in TOOL_SPECS.values()]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_empty(value: Any) -> bool:
    return _is_blank(value) or (isinstance(value, (list, dict)) and not value)


def _check_value(name: str, value: Any, schema: dict[str, Any]) -> Any:
    """Check one argument against its schema, returning the value to send."""
    kind = schema.get("type")

    if kind == "string":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            raise invalid_request(f"{name} must be a string")
        value = value.strip()
        if "enum" in schema and value not in schema["enum"]:
            raise invalid_request(f"{name} must be one of: {', '.join(schema['enum'])}")
        return value

    if kind == "integer":
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value != int(value):
            raise invalid_request(f"{name} must be an integer")
        value = int(value)
        low, high = schema.get("minimum"), schema.get("maximum")
        if (low is not None and value < low) or (high is not None and value > high):
            raise invalid_request(f"{name} must be between {low} and {high}")
        return value

    if kind == "array":
        if not isinstance(value, list):
            raise invalid_request(f"{name} must be an array")
        item_schema = schema.get("items")
        if item_schema:
            return [_check_value(f"{name}[{i}]", item, item_schema) for i, item in enumerate(value)]
        return value

    if kind == "object":
        if not isinstance(value, dict):
            raise invalid_request(f"{name} must be an object")
        properties = schema.get("properties", {})
        for key in schema.get("required", []):
            if _is_blank(value.get(key)):
                raise invalid_request(f"{name}.{key} is required")
        checked = dict(value)
        for key, item in value.items():
            if key in properties and item is not None:
                checked[key] = _check_value(f"{name}.{key}", item, properties[key])
        return checked

    return value


def validate_arguments(spec: ToolSpec, arguments: dict[str, Any] | None) -> dict[str, Any]:
    """Validate tool arguments and drop empty optional ones.

    Raises ``McpError(INVALID_REQUEST)`` before any request is made.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise invalid_request("Tool arguments must be an object")

    for name in spec.required:
        if _is_blank(arguments.get(name)):
            raise invalid_request(f"{name} is required")

    checked: dict[str, Any] = {}
    for name, value in arguments.items():
        schema = spec.properties.get(name)
        if schema is None:
            logger.debug(f"Ignoring unknown argument {name} for {spec.name}")
            continue
        if name not in spec.required and _is_empty(value):
            continue
        checked[name] = _check_value(name, value, schema)
    return checked


def normalize_payload(payload: Any) -> Any:
    """Give array responses the ``{count, results}`` shape of paged ones."""
    if isinstance(payload, list):
        return {"count": len(payload), "results": payload}
    if payload is None:
        return {}
    return payload


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


def _listing_metadata(data: Any) -> dict[str, Any]:
    count = data.get("count") if isinstance(data, dict) else None
    if not isinstance(count, int) or isinstance(count, bool):
        count = len(results_of(data))
    cursor = next_cursor_of(data)
    return {"count": count, "has_more": bool(cursor), "next_cursor": cursor}


def build_metadata(spec: ToolSpec, args: dict[str, Any], data: Any) -> dict[str, Any]:
    """Envelope metadata: echoed scalar arguments plus per-tool extras."""
    metadata: dict[str, Any] = {}
    for name, value in args.items():
        if isinstance(value, (str, int, float, bool)):
            metadata[spec.renames.get(name, _snake(name))] = value

    if spec.listing:
        metadata.update(_listing_metadata(data))

    if spec.name == "create_rule":
        metadata["target_type"] = args["target"].get("type")
        metadata["target_value"] = args["target"].get("value")
    elif spec.name == "create_target_list":
        metadata["target_count"] = len(args["targets"])
    elif spec.method in ("PUT", "PATCH"):
        fields = [name for name in args if name not in spec.path_fields]
        metadata["updated_fields"] = fields
        metadata["field_count"] = len(fields)
    return metadata


class ToolDispatcher:
    """Runs tool calls against the shared ``MspClient``."""

    def __init__(self, client):
        self.client = client

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> str:
        spec = TOOL_SPECS.get(name)
        if spec is None:
            raise unknown_tool(name)

        args = validate_arguments(spec, arguments)
        logger.info(f"Calling tool {name}")
        try:
            if name == "search_global":
                return await self._search_global(spec, args)
            return await self._call(spec, args)
        except (httpx.HTTPError, ValueError) as e:
            raise map_upstream_error(e) from e

    async def _call(self, spec: ToolSpec, args: dict[str, Any]) -> str:
        path_fields = spec.path_fields
        path = spec.path.format(**{field: quote(str(args[field]), safe="") for field in path_fields})
        payload = {name: value for name, value in args.items() if name not in path_fields}

        if spec.search_entity:
            payload = self._search_params(spec, payload)
            args = {**args, "query": payload["query"], "limit": payload["limit"]}

        if spec.method == "GET":
            result = await self.client.get(path, params=payload)
        elif spec.method == "DELETE":
            result = await self.client.delete(path)
        else:
            body = payload if payload or spec.confirmation is None else None
            result = await getattr(self.client, spec.method.lower())(path, json=body)

        if spec.confirmation:
            return spec.confirmation.format(**args)

        data = normalize_payload(result)
        return format_enhanced_response(data, spec.name, build_metadata(spec, args, data))

    def _search_params(self, spec: ToolSpec, payload: dict[str, Any]) -> dict[str, Any]:
        filters = payload.pop("filters", None)
        query = build_query(payload.get("query"), filters)
        for key in unknown_qualifiers(spec.search_entity, query):
            logger.warning(f"Qualifier {key!r} is not documented for {spec.search_entity}")
        payload["query"] = query
        payload.setdefault("limit", spec.default_limit)
        return payload

    async def _search_global(self, spec: ToolSpec, args: dict[str, Any]) -> str:
        types = args.get("types") or list(SEARCHABLE_TYPES)
        limit = args.get("limit", spec.default_limit)
        data = await search_entities(self.client, args["query"], types, limit, args.get("cursor"))
        metadata = {
            "query": args["query"],
            "search_types": types,
            "limit": limit,
            "cursor": args.get("cursor"),
            "total_count": data["total_count"],
        }
        return format_enhanced_response(data, spec.name, metadata)
