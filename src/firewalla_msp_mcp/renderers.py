"""Markdown reports for each MSP response type.

Every report here is a pure function of the raw payload and the metadata map
built by the tool dispatcher. Each response type gets three functions sharing
the ``(data, metadata)`` signature: a title, a one-sentence summary and the
Markdown body. ``envelope.RESPONSE_FORMATS`` wires them together.
"""

import ipaddress
from collections import Counter
from typing import Any

from .entities import (
    SEVERITIES,
    Alarm,
    Box,
    Device,
    Flow,
    Rule,
    StatEntry,
    TargetList,
    TrendPoint,
    next_cursor_of,
    results_of,
)
from .formatting import (
    format_bytes,
    format_unix_time,
    md_cell,
    percent,
    plural,
    utc_timestamp,
)
from .query import parse_query

MAX_PREVIEW_ITEMS = 10
SEARCH_PREVIEW_ITEMS = 3
TOP_N = 5

ONLINE = "🟢 Online"
OFFLINE = "🔴 Offline"
SEVERITY_ICONS = {"HIGH": "🔴", "MEDIUM": "🟠", "LOW": "🟡"}

STATISTICS_LABELS = {
    "topBoxesByBlockedFlows": "Top Boxes by Blocked Flows",
    "topBoxesBySecurityAlarms": "Top Boxes by Security Alarms",
    "topRegionsByBlockedFlows": "Top Regions by Blocked Flows",
}


# -- shared pieces ----------------------------------------------------------


def _query(metadata: dict[str, Any]) -> str | None:
    value = metadata.get("query")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _with_query(title: str, metadata: dict[str, Any]) -> str:
    query = _query(metadata)
    return f"{title} - {query}" if query else title


def _matching(metadata: dict[str, Any]) -> str:
    query = _query(metadata)
    return f' matching "{query}"' if query else ""


def _header(title: str) -> list[str]:
    return [f"# {title}", f"*Generated: {utc_timestamp()}*", ""]


def _status(online: bool) -> str:
    return ONLINE if online else OFFLINE


def _table(headers: list[str], rows: list[list[Any]]) -> list[str]:
    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join("---" for _ in headers) + "|",
    ]
    for row in rows:
        lines.append("| " + " | ".join(md_cell(cell) for cell in row) + " |")
    return lines


def _more(total: int, shown: int) -> list[str]:
    if total > shown:
        return ["", f"*...and {total - shown} more*"]
    return []


def _breakdown(heading: str, counter: Counter, total: int, limit: int = TOP_N) -> list[str]:
    if not counter:
        return []
    lines = ["", f"### {heading}"]
    for label, count in counter.most_common(limit):
        lines.append(f"- **{md_cell(label)}**: {count} ({percent(count, total)})")
    if len(counter) > limit:
        lines.append(f"- *{len(counter) - limit} other values*")
    return lines


def _filters(metadata: dict[str, Any]) -> list[str]:
    parsed = parse_query(_query(metadata))
    if not parsed.terms and not parsed.qualifiers:
        return []
    lines = ["", "### 🔎 Search Filters"]
    for term in parsed.terms:
        lines.append(f"- Text: `{term}`")
    for qualifier in parsed.qualifiers:
        verb = "excluding" if qualifier.negated else "where"
        lines.append(f"- {verb} `{qualifier.key}` is `{qualifier.value}`")
    return lines


def _pagination(data: Any) -> list[str]:
    cursor = next_cursor_of(data)
    if cursor:
        return ["", f"**More results available** - cursor: {cursor}"]
    return []


def _record(data: Any) -> Any:
    """The single record of a get/create/update payload."""
    if isinstance(data, list):
        return data[0] if data else {}
    if isinstance(data, dict):
        results = data.get("results")
        if isinstance(results, list) and len(results) == 1 and isinstance(results[0], dict):
            return results[0]
        return data
    return {}


def _finish(lines: list[str]) -> str:
    return "\n".join(lines).rstrip() + "\n"


# -- boxes ------------------------------------------------------------------


def boxes_title(data: Any, metadata: dict[str, Any]) -> str:
    return _with_query("Firewalla Box Fleet", metadata)


def boxes_summary(data: Any, metadata: dict[str, Any]) -> str:
    boxes = [Box.from_wire(raw) for raw in results_of(data)]
    online = sum(1 for box in boxes if box.online)
    return (
        f"Found {plural(len(boxes), 'box', 'boxes')}{_matching(metadata)} "
        f"({online} online, {len(boxes) - online} offline)."
    )


def render_boxes(data: Any, metadata: dict[str, Any]) -> str:
    boxes = [Box.from_wire(raw) for raw in results_of(data)]
    online = sum(1 for box in boxes if box.online)
    lines = _header(boxes_title(data, metadata))
    lines += [
        "## 📊 Fleet Overview",
        f"- **Total Boxes**: {len(boxes)}",
        f"- **Online**: {online} ({percent(online, len(boxes))})",
        f"- **Offline**: {len(boxes) - online}",
    ]
    lines += _breakdown("Models", Counter(box.model for box in boxes), len(boxes))
    lines += _filters(metadata)

    lines += ["", "## 📦 Boxes"]
    if not boxes:
        lines.append("No boxes found.")
    else:
        shown = boxes[:MAX_PREVIEW_ITEMS]
        lines += _table(
            ["Box", "Model", "Status", "Mode", "Version", "Group"],
            [[f"**{b.name}**", b.model, _status(b.online), b.mode, b.version, b.group] for b in shown],
        )
        lines += _more(len(boxes), len(shown))
    lines += _pagination(data)
    return _finish(lines)


# -- devices ----------------------------------------------------------------


def devices_title(data: Any, metadata: dict[str, Any]) -> str:
    return _with_query("Network Device Inventory", metadata)


def devices_summary(data: Any, metadata: dict[str, Any]) -> str:
    devices = [Device.from_wire(raw) for raw in results_of(data)]
    online = sum(1 for device in devices if device.online)
    return (
        f"Found {plural(len(devices), 'device')} ({online} online, "
        f"{len(devices) - online} offline){_matching(metadata)}."
    )


def render_devices(data: Any, metadata: dict[str, Any]) -> str:
    devices = [Device.from_wire(raw) for raw in results_of(data)]
    online = sum(1 for device in devices if device.online)
    lines = _header(devices_title(data, metadata))
    lines += [
        "## 📊 Device Summary",
        f"- **Total Devices**: {len(devices)}",
        f"- **Online**: {online} ({percent(online, len(devices))})",
        f"- **Offline**: {len(devices) - online}",
    ]
    lines += _breakdown("Device Types", Counter(d.device_type for d in devices), len(devices))
    lines += _breakdown("Devices per Box", Counter(d.box for d in devices), len(devices))
    lines += _filters(metadata)

    lines += ["", "## 📱 Devices"]
    if not devices:
        lines.append("No devices found.")
    else:
        shown = devices[:MAX_PREVIEW_ITEMS]
        lines += _table(
            ["Device", "IP Address", "MAC Address", "Type", "Status", "Box", "Last Seen"],
            [
                [
                    f"**{d.name}**", f"`{d.ip}`", f"`{d.mac}`", d.device_type,
                    _status(d.online), d.box, format_unix_time(d.last_active),
                ]
                for d in shown
            ],
        )
        lines += _more(len(devices), len(shown))
    lines += _pagination(data)
    return _finish(lines)


# -- alarms -----------------------------------------------------------------


def alarms_title(data: Any, metadata: dict[str, Any]) -> str:
    query = _query(metadata)
    if query:
        return f"Firewalla Alarms Report - {query}"
    return "Firewalla Security Alarms Report"


def alarms_summary(data: Any, metadata: dict[str, Any]) -> str:
    return f"Found {plural(len(results_of(data)), 'alarm')}{_matching(metadata)}."


def _alarm_row(alarm: Alarm) -> list[str]:
    icon = SEVERITY_ICONS.get(alarm.severity, "⚪")
    return [
        f"{icon} **{alarm.severity}**",
        format_unix_time(alarm.ts),
        alarm.alarm_type,
        f"{alarm.device_name} (`{alarm.device_ip}`)",
        f"{alarm.remote} ({alarm.remote_country})",
        f"↓{format_bytes(alarm.download)} ↑{format_bytes(alarm.upload)} Total: {format_bytes(alarm.total)}",
        alarm.status,
    ]


def render_alarms(data: Any, metadata: dict[str, Any]) -> str:
    alarms = [Alarm.from_wire(raw) for raw in results_of(data)]
    severities = Counter(alarm.severity for alarm in alarms)
    statuses = Counter(alarm.status for alarm in alarms)

    lines = _header(alarms_title(data, metadata))
    lines += [
        "## 📊 Overview",
        f"- **Total Alarms**: {len(alarms)}",
        f"- **Active**: {statuses.get('active', 0)}",
    ]
    lines += ["", "### Severity Breakdown"]
    for severity in SEVERITIES:
        lines.append(f"- {SEVERITY_ICONS[severity]} **{severity}**: {severities.get(severity, 0)}")
    for severity, count in sorted(severities.items()):
        if severity not in SEVERITIES:
            lines.append(f"- ⚪ **{md_cell(severity)}**: {count}")
    lines += _breakdown("Status", statuses, len(alarms))
    lines += _breakdown("Top Alarm Types", Counter(a.alarm_type for a in alarms), len(alarms))
    lines += _filters(metadata)

    lines += ["", "## 🚨 Alarms"]
    if not alarms:
        lines.append("No alarms found.")
    else:
        shown = alarms[:MAX_PREVIEW_ITEMS]
        lines += _table(
            ["Severity", "Time", "Type", "Device", "Remote", "Transfer", "Status"],
            [_alarm_row(alarm) for alarm in shown],
        )
        lines += _more(len(alarms), len(shown))
    lines += _pagination(data)
    return _finish(lines)


def alarm_detail_title(data: Any, metadata: dict[str, Any]) -> str:
    alarm = Alarm.from_wire(_record(data))
    gid = metadata.get("gid") or alarm.gid
    aid = metadata.get("aid") or alarm.aid
    return f"Alarm Details - {gid}/{aid}"


def alarm_detail_summary(data: Any, metadata: dict[str, Any]) -> str:
    alarm = Alarm.from_wire(_record(data))
    return (
        f"{alarm.severity} severity {alarm.alarm_type} alarm on "
        f"{alarm.device_name} ({alarm.status})."
    )


def render_alarm_detail(data: Any, metadata: dict[str, Any]) -> str:
    alarm = Alarm.from_wire(_record(data))
    icon = SEVERITY_ICONS.get(alarm.severity, "⚪")
    lines = _header(alarm_detail_title(data, metadata))
    lines += [
        f"## {icon} {alarm.alarm_type}",
        f"- **Severity**: {alarm.severity}",
        f"- **Status**: {alarm.status}",
        f"- **Time**: {format_unix_time(alarm.ts)}",
        f"- **Message**: {alarm.message}",
        "",
        "### Device",
        f"- **Name**: {alarm.device_name}",
        f"- **IP Address**: `{alarm.device_ip}`",
        "",
        "### Remote Endpoint",
        f"- **Destination**: {alarm.remote}",
        f"- **Category**: {alarm.remote_category}",
        f"- **Region**: {alarm.remote_region}",
        f"- **Country**: {alarm.remote_country}",
        "",
        "### Transfer",
        f"- **Download**: {format_bytes(alarm.download)}",
        f"- **Upload**: {format_bytes(alarm.upload)}",
        f"- **Total**: {format_bytes(alarm.total)}",
    ]
    return _finish(lines)


# -- rules ------------------------------------------------------------------


def rules_title(data: Any, metadata: dict[str, Any]) -> str:
    return _with_query("Firewalla Security Rules", metadata)


def rules_summary(data: Any, metadata: dict[str, Any]) -> str:
    rules = [Rule.from_wire(raw) for raw in results_of(data)]
    paused = sum(1 for rule in rules if rule.status == "paused")
    return (
        f"Found {plural(len(rules), 'rule')}{_matching(metadata)} "
        f"({len(rules) - paused} active, {paused} paused)."
    )


def _rule_details(rule: Rule) -> list[str]:
    icon = "⏸️" if rule.status == "paused" else "🛡️"
    lines = [
        f"## {icon} {rule.name}",
        f"- **Rule ID**: `{rule.id}`",
        f"- **Status**: {rule.status}",
        f"- **Action**: {rule.action} {rule.direction} {rule.protocol}",
        f"- **Target**: {rule.target_type}: {rule.target_value}",
    ]
    if rule.scope:
        lines.append(f"- **Scope**: {rule.scope}")
    if rule.schedule:
        lines.append(f"- **Schedule**: {rule.schedule}")
    return lines


def render_rules(data: Any, metadata: dict[str, Any]) -> str:
    rules = [Rule.from_wire(raw) for raw in results_of(data)]
    paused = sum(1 for rule in rules if rule.status == "paused")
    lines = _header(rules_title(data, metadata))
    lines += [
        "## 📊 Rules Overview",
        f"- **Total Rules**: {len(rules)}",
        f"- **Active**: {len(rules) - paused}",
        f"- **Paused**: {paused}",
    ]
    lines += _breakdown("Actions", Counter(rule.action for rule in rules), len(rules))
    lines += _breakdown("Target Types", Counter(rule.target_type for rule in rules), len(rules))
    lines += _filters(metadata)

    lines += ["", "## 🛡️ Rules"]
    if not rules:
        lines.append("No rules found.")
    else:
        shown = rules[:MAX_PREVIEW_ITEMS]
        lines += _table(
            ["Rule", "Action", "Direction", "Protocol", "Target", "Scope", "Status"],
            [
                [
                    f"**{r.name}**", r.action, r.direction, r.protocol,
                    f"{r.target_type}: {r.target_value}", r.scope or "all", r.status,
                ]
                for r in shown
            ],
        )
        lines += _more(len(rules), len(shown))
    lines += _pagination(data)
    return _finish(lines)


def rule_created_title(data: Any, metadata: dict[str, Any]) -> str:
    return f"Rule Created: {Rule.from_wire(_record(data)).name}"


def rule_created_summary(data: Any, metadata: dict[str, Any]) -> str:
    rule = Rule.from_wire(_record(data))
    return f'Created {rule.action} rule "{rule.name}" targeting {rule.target_type} {rule.target_value}.'


def render_rule_created(data: Any, metadata: dict[str, Any]) -> str:
    rule = Rule.from_wire(_record(data))
    return _finish(_header(rule_created_title(data, metadata)) + _rule_details(rule))


def rule_updated_title(data: Any, metadata: dict[str, Any]) -> str:
    return f"Rule Updated: {Rule.from_wire(_record(data)).name}"


def rule_updated_summary(data: Any, metadata: dict[str, Any]) -> str:
    rule = Rule.from_wire(_record(data))
    fields = metadata.get("updated_fields") or []
    changed = ", ".join(fields) if fields else "no fields"
    return f'Updated rule "{rule.name}" ({changed}).'


def render_rule_updated(data: Any, metadata: dict[str, Any]) -> str:
    rule = Rule.from_wire(_record(data))
    lines = _header(rule_updated_title(data, metadata)) + _rule_details(rule)
    fields = metadata.get("updated_fields") or []
    if fields:
        lines += ["", "### Updated Fields"] + [f"- `{name}`" for name in fields]
    return _finish(lines)


# -- flows ------------------------------------------------------------------


def flows_title(data: Any, metadata: dict[str, Any]) -> str:
    return _with_query("Network Traffic Flows Report", metadata)


def flows_summary(data: Any, metadata: dict[str, Any]) -> str:
    flows = [Flow.from_wire(raw) for raw in results_of(data)]
    total = sum(flow.total for flow in flows)
    return f"Found {plural(len(flows), 'flow')}{_matching(metadata)} totaling {format_bytes(total)}."


def render_flows(data: Any, metadata: dict[str, Any]) -> str:
    flows = [Flow.from_wire(raw) for raw in results_of(data)]
    download = sum(flow.download for flow in flows)
    upload = sum(flow.upload for flow in flows)
    total = sum(flow.total for flow in flows)
    blocked = sum(1 for flow in flows if flow.status == "blocked")

    lines = _header(flows_title(data, metadata))
    lines += [
        "## 📊 Traffic Summary",
        f"- **Total Flows**: {len(flows)}",
        f"- **Download**: {format_bytes(download)}",
        f"- **Upload**: {format_bytes(upload)}",
        f"- **Total Transfer**: {format_bytes(total)}",
        f"- **Blocked**: {blocked}",
    ]
    lines += _breakdown("Protocols", Counter(flow.protocol for flow in flows), len(flows))
    lines += _breakdown("Directions", Counter(flow.direction for flow in flows), len(flows))

    by_destination: Counter = Counter()
    for flow in flows:
        by_destination[flow.destination] += flow.total
    if by_destination:
        lines += ["", "### Top Destinations by Transfer"]
        for destination, size in by_destination.most_common(TOP_N):
            lines.append(f"- **{md_cell(destination)}**: {format_bytes(size)}")
    lines += _filters(metadata)

    lines += ["", "## 🌐 Flows"]
    if not flows:
        lines.append("No flows found.")
    else:
        shown = flows[:MAX_PREVIEW_ITEMS]
        lines += _table(
            ["Time", "Device", "Destination", "Direction", "Protocol", "Ports", "Transfer", "Status"],
            [
                [
                    format_unix_time(f.ts), f.device, f"{f.destination} ({f.country})",
                    f.direction, f.protocol, f"{f.sport} → {f.dport}",
                    f"↓{format_bytes(f.download)} ↑{format_bytes(f.upload)}", f.status,
                ]
                for f in shown
            ],
        )
        lines += _more(len(flows), len(shown))
    lines += _pagination(data)
    return _finish(lines)


# -- target lists -----------------------------------------------------------


def _target_kind(target: str) -> str:
    try:
        ipaddress.ip_network(target, strict=False)
    except ValueError:
        return "domain"
    return "ip"


def target_lists_title(data: Any, metadata: dict[str, Any]) -> str:
    return "Firewalla Target Lists"


def target_lists_summary(data: Any, metadata: dict[str, Any]) -> str:
    lists = [TargetList.from_wire(raw) for raw in results_of(data)]
    entries = sum(len(item.targets) for item in lists)
    return f"Found {plural(len(lists), 'target list')} containing {plural(entries, 'target')}."


def render_target_lists(data: Any, metadata: dict[str, Any]) -> str:
    lists = [TargetList.from_wire(raw) for raw in results_of(data)]
    entries = sum(len(item.targets) for item in lists)
    lines = _header(target_lists_title(data, metadata))
    lines += [
        "## 📊 Overview",
        f"- **Total Lists**: {len(lists)}",
        f"- **Total Targets**: {entries}",
    ]
    lines += _breakdown("Categories", Counter(item.category for item in lists), len(lists))

    lines += ["", "## 📋 Target Lists"]
    if not lists:
        lines.append("No target lists found.")
    else:
        shown = lists[:MAX_PREVIEW_ITEMS]
        lines += _table(
            ["List", "ID", "Category", "Entries", "Owner"],
            [[f"**{t.name}**", f"`{t.id}`", t.category, len(t.targets), t.owner] for t in shown],
        )
        lines += _more(len(lists), len(shown))
    lines += _pagination(data)
    return _finish(lines)


def _target_list_details(target_list: TargetList) -> list[str]:
    kinds = Counter(_target_kind(target) for target in target_list.targets)
    lines = [
        f"## 📋 {target_list.name}",
        f"- **List ID**: `{target_list.id}`",
        f"- **Owner**: {target_list.owner}",
        f"- **Category**: {target_list.category}",
        f"- **Targets**: {len(target_list.targets)} "
        f"({kinds.get('ip', 0)} IP, {kinds.get('domain', 0)} domain)",
        f"- **Notes**: {target_list.notes}",
        "",
        "### Targets",
    ]
    if not target_list.targets:
        lines.append("No targets in this list.")
    else:
        shown = target_list.targets[:MAX_PREVIEW_ITEMS]
        lines += [f"- `{target}`" for target in shown]
        lines += _more(len(target_list.targets), len(shown))
    return lines


def target_list_title(data: Any, metadata: dict[str, Any]) -> str:
    return f"Target List: {TargetList.from_wire(_record(data)).name}"


def target_list_created_title(data: Any, metadata: dict[str, Any]) -> str:
    return f"Target List Created: {TargetList.from_wire(_record(data)).name}"


def target_list_updated_title(data: Any, metadata: dict[str, Any]) -> str:
    return f"Target List Updated: {TargetList.from_wire(_record(data)).name}"


def target_list_summary(data: Any, metadata: dict[str, Any]) -> str:
    target_list = TargetList.from_wire(_record(data))
    return (
        f'Target list "{target_list.name}" has {plural(len(target_list.targets), "target")} '
        f"(owner: {target_list.owner}, category: {target_list.category})."
    )


def _target_list_renderer(title_fn):
    def render(data: Any, metadata: dict[str, Any]) -> str:
        target_list = TargetList.from_wire(_record(data))
        return _finish(_header(title_fn(data, metadata)) + _target_list_details(target_list))

    return render


render_target_list = _target_list_renderer(target_list_title)
render_target_list_created = _target_list_renderer(target_list_created_title)
render_target_list_updated = _target_list_renderer(target_list_updated_title)


# -- statistics -------------------------------------------------------------


def _stats_label(metadata: dict[str, Any]) -> str:
    stats_type = metadata.get("stats_type")
    if not stats_type:
        return "Statistics"
    return STATISTICS_LABELS.get(str(stats_type), str(stats_type))


def statistics_title(data: Any, metadata: dict[str, Any]) -> str:
    return f"Firewalla Statistics: {_stats_label(metadata)}"


def statistics_summary(data: Any, metadata: dict[str, Any]) -> str:
    entries = [StatEntry.from_wire(raw) for raw in results_of(data)]
    if not entries:
        return f"{_stats_label(metadata)}: no entries."
    top = max(entries, key=lambda entry: entry.value)
    return (
        f"{_stats_label(metadata)}: {plural(len(entries), 'entry', 'entries')}, "
        f"led by {top.label} with {top.value:g}."
    )


def render_statistics(data: Any, metadata: dict[str, Any]) -> str:
    entries = [StatEntry.from_wire(raw) for raw in results_of(data)]
    total = sum(entry.value for entry in entries)
    lines = _header(statistics_title(data, metadata))
    lines += [
        "## 📊 Overview",
        f"- **Entries**: {len(entries)}",
        f"- **Total**: {total:g}",
    ]
    if metadata.get("group"):
        lines.append(f"- **Group**: {metadata['group']}")

    lines += ["", f"## 🏆 {_stats_label(metadata)}"]
    if not entries:
        lines.append("No statistics available.")
    else:
        ranked = sorted(entries, key=lambda entry: entry.value, reverse=True)
        rows = []
        for rank, entry in enumerate(ranked, start=1):
            share = f"{entry.percentage:.1f}%" if entry.percentage is not None else percent(entry.value, total)
            rows.append([rank, f"**{entry.label}**", f"{entry.value:g}", share])
        lines += _table(["#", "Name", "Count", "Share"], rows)
    return _finish(lines)


def _humanize(key: str) -> str:
    words = []
    current = ""
    for char in key:
        if char.isupper() and current:
            words.append(current)
            current = char
        elif char == "_":
            if current:
                words.append(current)
            current = ""
        else:
            current += char
    if current:
        words.append(current)
    return " ".join(word.capitalize() for word in words)


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def simple_statistics_title(data: Any, metadata: dict[str, Any]) -> str:
    return "Firewalla MSP Overview"


def simple_statistics_summary(data: Any, metadata: dict[str, Any]) -> str:
    stats = _record(data)
    online = _number(stats.get("onlineBoxes"))
    offline = _number(stats.get("offlineBoxes"))
    return (
        f"{plural(int(online + offline), 'box', 'boxes')} ({int(online)} online, {int(offline)} offline), "
        f"{plural(int(_number(stats.get('alarms'))), 'alarm')}, "
        f"{plural(int(_number(stats.get('rules'))), 'rule')}."
    )


def render_simple_statistics(data: Any, metadata: dict[str, Any]) -> str:
    stats = _record(data)
    online = _number(stats.get("onlineBoxes"))
    offline = _number(stats.get("offlineBoxes"))
    lines = _header(simple_statistics_title(data, metadata))
    lines += [
        "## 📊 Overview",
        f"- **Total Boxes**: {online + offline:g}",
        f"- **Online Boxes**: {online:g} ({percent(online, online + offline)})",
        f"- **Offline Boxes**: {offline:g}",
        f"- **Alarms**: {_number(stats.get('alarms')):g}",
        f"- **Rules**: {_number(stats.get('rules')):g}",
    ]
    rows = [
        [_humanize(key), f"{value:g}"]
        for key, value in stats.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
    ]
    if rows:
        lines += ["", "## 📈 All Metrics"] + _table(["Metric", "Value"], rows)
    return _finish(lines)


# -- trends -----------------------------------------------------------------


def _trend_points(data: Any) -> list[TrendPoint]:
    points = [TrendPoint.from_wire(raw) for raw in results_of(data)]
    return sorted(points, key=lambda point: point.ts if point.ts is not None else float("-inf"))


def trends_title(data: Any, metadata: dict[str, Any]) -> str:
    trend_type = str(metadata.get("trend_type") or "").strip()
    return f"Firewalla {trend_type.capitalize()} Trend Report" if trend_type else "Firewalla Trend Report"


def trends_summary(data: Any, metadata: dict[str, Any]) -> str:
    points = _trend_points(data)
    if not points:
        return "No trend data available."
    peak = max(points, key=lambda point: point.value)
    return (
        f"{plural(len(points), 'data point')} from {format_unix_time(points[0].ts)} "
        f"to {format_unix_time(points[-1].ts)}, peaking at {peak.value:g}."
    )


def render_trends(data: Any, metadata: dict[str, Any]) -> str:
    points = _trend_points(data)
    lines = _header(trends_title(data, metadata))
    lines += ["## 📊 Trend Summary", f"- **Data Points**: {len(points)}"]
    if points:
        values = [point.value for point in points]
        peak = max(points, key=lambda point: point.value)
        lines += [
            f"- **Period**: {format_unix_time(points[0].ts)} → {format_unix_time(points[-1].ts)}",
            f"- **Total**: {sum(values):g}",
            f"- **Average**: {sum(values) / len(values):.2f}",
            f"- **Minimum**: {min(values):g}",
            f"- **Maximum**: {max(values):g} at {format_unix_time(peak.ts)}",
        ]
        change = values[-1] - values[0]
        direction = "📈 up" if change > 0 else "📉 down" if change < 0 else "➡️ flat"
        lines.append(f"- **Change**: {direction} {abs(change):g}")

    lines += ["", "## 📈 Data Points"]
    if not points:
        lines.append("No trend data available.")
    else:
        extra = sorted({key for point in points for key in point.fields if key != "total"})
        shown = points[:MAX_PREVIEW_ITEMS]
        rows = [
            [format_unix_time(p.ts), f"{p.value:g}"] + [f"{p.fields.get(key, 0):g}" for key in extra]
            for p in shown
        ]
        lines += _table(["Time", "Value"] + [_humanize(key) for key in extra], rows)
        lines += _more(len(points), len(shown))
    return _finish(lines)


# -- global search ----------------------------------------------------------

SEARCH_SECTIONS = {
    "devices": ("📱", "Devices"),
    "alarms": ("🚨", "Alarms"),
    "flows": ("🌐", "Flows"),
    "boxes": ("📦", "Boxes"),
}


def _search_line(entity_type: str, raw: Any) -> str:
    if entity_type == "devices":
        device = Device.from_wire(raw)
        return f"**{device.name}** `{device.ip}` `{device.mac}` - {_status(device.online)}"
    if entity_type == "alarms":
        alarm = Alarm.from_wire(raw)
        return f"**{alarm.severity}** {alarm.alarm_type} on {alarm.device_name} ({format_unix_time(alarm.ts)})"
    if entity_type == "flows":
        flow = Flow.from_wire(raw)
        return f"{flow.device} → {flow.destination} ({flow.protocol}, {format_bytes(flow.total)})"
    if entity_type == "boxes":
        box = Box.from_wire(raw)
        return f"**{box.name}** ({box.model}) - {_status(box.online)}"
    return md_cell(raw)


def _search_sections(data: Any) -> dict[str, dict[str, Any]]:
    if isinstance(data, dict) and isinstance(data.get("results"), dict):
        return {name: section for name, section in data["results"].items() if isinstance(section, dict)}
    return {}


def _search_query(data: Any, metadata: dict[str, Any]) -> str:
    query = _query(metadata)
    if query is None and isinstance(data, dict) and data.get("query"):
        query = str(data["query"])
    return query or ""


def _search_total(data: Any) -> int:
    if isinstance(data, dict) and isinstance(data.get("total_count"), int):
        return data["total_count"]
    return sum(
        section.get("count", 0)
        for section in _search_sections(data).values()
        if "error" not in section
    )


def search_global_title(data: Any, metadata: dict[str, Any]) -> str:
    return f'Global Search Results: "{_search_query(data, metadata)}"'


def search_global_summary(data: Any, metadata: dict[str, Any]) -> str:
    sections = _search_sections(data)
    failed = [name for name, section in sections.items() if "error" in section]
    summary = (
        f'Found {plural(_search_total(data), "result")} for "{_search_query(data, metadata)}" '
        f"across {plural(len(sections) - len(failed), 'entity type')}"
    )
    if failed:
        summary += f"; search failed for {', '.join(failed)}"
    return summary + "."


def render_search_global(data: Any, metadata: dict[str, Any]) -> str:
    sections = _search_sections(data)
    lines = _header(search_global_title(data, metadata))
    lines += [
        "## 📊 Search Overview",
        f"- **Total Results**: {_search_total(data)}",
        f"- **Entity Types Searched**: {len(sections)}",
    ]
    rows = []
    for entity_type, section in sections.items():
        if "error" in section:
            rows.append([entity_type, 0, "⚠️ Failed"])
        else:
            rows.append([entity_type, section.get("count", 0), "✅ OK"])
    if rows:
        lines += [""] + _table(["Type", "Results", "Status"], rows)
    lines += _filters({"query": _search_query(data, metadata)})

    for entity_type, section in sections.items():
        icon, label = SEARCH_SECTIONS.get(entity_type, ("🔍", entity_type.capitalize()))
        if "error" in section:
            lines += ["", f"## {icon} {label}", f"⚠️ {section['error']}"]
            continue
        results = results_of(section)
        count = section.get("count", len(results))
        lines += ["", f"## {icon} {label} ({count} found)"]
        if not results:
            lines.append("No matches.")
            continue
        shown = results[:SEARCH_PREVIEW_ITEMS]
        lines += [f"- {_search_line(entity_type, raw)}" for raw in shown]
        lines += _more(len(results), len(shown))
        if section.get("next_cursor"):
            lines.append(f"**More {label.lower()} available** - cursor: {section['next_cursor']}")
    return _finish(lines)
