"""Formatting-guide prompts for presenting MSP data."""

from typing import NamedTuple

from mcp.types import GetPromptResult, Prompt, PromptMessage, TextContent

from .errors import invalid_request


class FormatGuide(NamedTuple):
    description: str
    detail: str
    text: str


FORMAT_GUIDES: dict[str, FormatGuide] = {
    "format_devices": FormatGuide(
        "Formatting guide for presenting device information",
        "How to format device information",
        """Present each Firewalla device like this:

📱 **{name}** | IP: `{ip}` | MAC: `{mac}`
   ├─ Type: {type}
   ├─ Status: 🟢 Online / 🔴 Offline
   ├─ Box: {box name}
   └─ Last Seen: {last active time, UTC}

- Bold the device name; put IP and MAC addresses in code spans.
- Leave a blank line between devices.
- With more than 10 devices, group them by box or network.""",
    ),
    "format_alarms": FormatGuide(
        "Formatting guide for presenting alarm information",
        "How to format alarm information",
        """Present each Firewalla alarm like this:

🚨 **{severity} Alert** | {timestamp}
   ├─ Type: {alarm type}
   ├─ Device: {device name} (`{device ip}`)
   ├─ Remote: {remote domain or ip} ({country})
   ├─ Transfer: ↓{download} ↑{upload} Total: {total}
   └─ Status: {status}

- Severity is HIGH (🔴), MEDIUM (🟠) or LOW (🟡).
- Show byte counts with units (KB, MB, GB).
- With many alarms, group them by severity or by time period.""",
    ),
    "format_flows": FormatGuide(
        "Formatting guide for presenting network flow information",
        "How to format network flow information",
        """Present each network flow like this:

🌐 **{device name}** → {destination domain or ip}
   ├─ Direction: {inbound/outbound} | Protocol: {protocol}
   ├─ Ports: {sport} → {dport}
   ├─ Transfer: ↓{download} ↑{upload} Total: {total}
   ├─ Category: {category}
   └─ Time: {timestamp}

- Prefer the domain over the raw IP for the destination.
- Sort by total transfer or by recency.""",
    ),
    "format_rules": FormatGuide(
        "Formatting guide for presenting security rules",
        "How to format security rules",
        """Present each security rule like this:

🛡️ **{rule name}** | Status: {active/paused}
   ├─ Action: {action} {direction} {protocol}
   ├─ Target: {target type}: {target value}
   ├─ Scope: {scope type}: {scope value} Port: {port}
   └─ Schedule: {schedule, for time-limited rules}

- Unnamed rules are titled "{action} {direction} {protocol} {target}".
- With many rules, group them by action.""",
    ),
    "format_boxes": FormatGuide(
        "Formatting guide for presenting Firewalla box information",
        "How to format Firewalla box information",
        """Present each Firewalla box like this:

📦 **{name}** | Model: {model}
   ├─ Status: {online/offline} | Version: {version}
   ├─ Mode: {mode}
   ├─ Group: {group}
   └─ Devices: {device count}

- Use a table when there are more than 5 boxes.""",
    ),
    "format_statistics": FormatGuide(
        "Formatting guide for presenting statistics and trends",
        "How to format statistics information",
        """Present Firewalla statistics as a ranked report:

📊 **{statistics type}**

1. {box or region} - {value} ({share of total})
2. ...

For overview statistics list online/offline boxes, alarms and rules.
For trends give the period covered, the peak and the average, then a
table of timestamps and values.""",
    ),
    "format_target_lists": FormatGuide(
        "Formatting guide for presenting target lists",
        "How to format target lists",
        """Present each target list like this:

📋 **{name}** | Owner: {owner}
   ├─ Category: {category}
   ├─ Entries: {target count}
   ├─ Notes: {notes}
   └─ Targets: the first 5, then "...and N more"

For several lists use a table with name, category, entries and owner.""",
    ),
    "format_search_results": FormatGuide(
        "Formatting guide for presenting search results across multiple types",
        "How to format global search results",
        """Present a global search like this:

🔍 **Search Results for: "{query}"**

📱 Devices ({count} found): the first 3, then "...and N more"
🚨 Alarms ({count} found): the first 3, then "...and N more"
🌐 Flows ({count} found): the first 3, then "...and N more"
📦 Boxes ({count} found): every match

Use the per-type guides for each entry and mention any entity type whose
search failed. End with: {total} total results across {types} types.""",
    ),
}

PROMPTS: list[Prompt] = [
    Prompt(name=name, description=guide.description) for name, guide in FORMAT_GUIDES.items()
]


def get_format_guide(name: str) -> GetPromptResult:
    guide = FORMAT_GUIDES.get(name)
    if guide is None:
        raise invalid_request(f"Unknown prompt: {name}")
    return GetPromptResult(
        description=guide.detail,
        messages=[PromptMessage(role="user", content=TextContent(type="text", text=guide.text))],
    )
