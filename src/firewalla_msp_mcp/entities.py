"""Typed views over the JSON shapes returned by the MSP API.

Every upstream record is untyped JSON with any field possibly missing. Each
``from_wire`` below reads one raw record and substitutes the documented
placeholder for absent fields, so the renderers never see ``None`` where they
print text.
"""

from dataclasses import dataclass, field
from typing import Any

NOT_AVAILABLE = "N/A"
UNKNOWN = "Unknown"

SEVERITY_HIGH = "HIGH"
SEVERITY_MEDIUM = "MEDIUM"
SEVERITY_LOW = "LOW"
SEVERITIES = (SEVERITY_HIGH, SEVERITY_MEDIUM, SEVERITY_LOW)


def results_of(payload: Any) -> list[Any]:
    """Return the result list of a payload, treating anything else as empty."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("results"), list):
        return payload["results"]
    return []


def next_cursor_of(payload: Any) -> str | None:
    if isinstance(payload, dict) and payload.get("next_cursor"):
        return str(payload["next_cursor"])
    return None


def _text(value: Any, default: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    text = str(value).strip()
    return text or default


def _int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _optional_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _obj(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _ref_name(ref: Any, *fallbacks: Any, default: str = NOT_AVAILABLE) -> str:
    """Name of a reference that may be an object with name/id or a bare id string."""
    if isinstance(ref, dict):
        for candidate in (ref.get("name"), *fallbacks, ref.get("id"), ref.get("gid")):
            if candidate not in (None, ""):
                return _text(candidate, default)
        return default
    for candidate in (*fallbacks, ref):
        if candidate not in (None, ""):
            return _text(candidate, default)
    return default


def derive_severity(alarm_type: Any) -> str:
    """Severity implied by an alarm type code: <=2 HIGH, <=5 MEDIUM, otherwise LOW."""
    code = _optional_number(alarm_type)
    if code is None:
        return SEVERITY_LOW
    if code <= 2:
        return SEVERITY_HIGH
    if code <= 5:
        return SEVERITY_MEDIUM
    return SEVERITY_LOW


@dataclass
class Box:
    gid: str
    name: str
    model: str
    online: bool
    mode: str
    version: str
    group: str
    device_count: int | None = None

    @classmethod
    def from_wire(cls, raw: Any) -> "Box":
        raw = _obj(raw)
        group = raw.get("group")
        device_count = raw.get("deviceCount")
        return cls(
            gid=_text(raw.get("gid") or raw.get("id"), NOT_AVAILABLE),
            name=_text(raw.get("name"), "Unknown Box"),
            model=_text(raw.get("model"), UNKNOWN),
            online=bool(raw.get("online")),
            mode=_text(raw.get("mode"), UNKNOWN),
            version=_text(raw.get("version"), NOT_AVAILABLE),
            group=_ref_name(group) if group else NOT_AVAILABLE,
            device_count=None if device_count is None else _int(device_count),
        )


@dataclass
class Device:
    mac: str
    ip: str
    name: str
    device_type: str
    online: bool
    box: str
    network: str
    last_active: float | None

    @classmethod
    def from_wire(cls, raw: Any) -> "Device":
        raw = _obj(raw)
        return cls(
            mac=_text(raw.get("mac") or raw.get("id"), NOT_AVAILABLE),
            ip=_text(raw.get("ipAddress") or raw.get("ip"), NOT_AVAILABLE),
            name=_text(raw.get("name"), "Unknown Device"),
            device_type=_text(raw.get("type") or raw.get("macVendor"), UNKNOWN),
            online=bool(raw.get("online")),
            box=_ref_name(raw.get("box"), raw.get("boxName")),
            network=_ref_name(raw.get("network")),
            last_active=_optional_number(raw.get("lastActiveTime") or raw.get("lastSeen")),
        )


@dataclass
class Alarm:
    gid: str
    aid: str
    ts: float | None
    type_code: Any
    alarm_type: str
    message: str
    status: str
    severity: str
    device_name: str
    device_ip: str
    remote: str
    remote_category: str
    remote_region: str
    remote_country: str
    download: int
    upload: int
    total: int

    @classmethod
    def from_wire(cls, raw: Any) -> "Alarm":
        raw = _obj(raw)
        device = _obj(raw.get("device"))
        remote = _obj(raw.get("remote"))
        transfer = _obj(raw.get("transfer"))
        type_code = raw.get("type")
        if raw.get("alarmType"):
            label = _text(raw.get("alarmType"), UNKNOWN)
        elif type_code is not None:
            label = f"Type {type_code}"
        else:
            label = UNKNOWN
        explicit = raw.get("severity")
        severity = _text(explicit, "").upper() or derive_severity(type_code)
        download = _int(transfer.get("download"))
        upload = _int(transfer.get("upload"))
        return cls(
            gid=_text(raw.get("gid"), NOT_AVAILABLE),
            aid=_text(raw.get("aid"), NOT_AVAILABLE),
            ts=_optional_number(raw.get("ts")),
            type_code=type_code,
            alarm_type=label,
            message=_text(raw.get("message"), "No message"),
            status=_text(raw.get("status"), "active"),
            severity=severity,
            device_name=_text(device.get("name"), UNKNOWN),
            device_ip=_text(device.get("ip") or device.get("ipAddress"), NOT_AVAILABLE),
            remote=_text(remote.get("domain") or remote.get("ip"), NOT_AVAILABLE),
            remote_category=_text(remote.get("category"), UNKNOWN),
            remote_region=_text(remote.get("region"), UNKNOWN),
            remote_country=_text(remote.get("country") or remote.get("region"), UNKNOWN),
            download=download,
            upload=upload,
            total=_int(transfer.get("total")) or download + upload,
        )


def synthesize_rule_name(action: Any, direction: Any, protocol: Any, target_value: Any) -> str:
    parts = [
        _text(action, "unknown"),
        _text(direction, ""),
        _text(protocol, "any"),
        _text(target_value, "any"),
    ]
    return " ".join(part for part in parts if part)


@dataclass
class Rule:
    id: str
    name: str
    status: str
    action: str
    direction: str
    protocol: str
    target_type: str
    target_value: str
    scope: str | None
    schedule: str | None
    box: str

    @classmethod
    def from_wire(cls, raw: Any) -> "Rule":
        raw = _obj(raw)
        target = _obj(raw.get("target"))
        scope = _obj(raw.get("scope"))
        schedule = _obj(raw.get("schedule"))

        name = _text(raw.get("name"), "") or synthesize_rule_name(
            raw.get("action"), raw.get("direction"), raw.get("protocol"), target.get("value")
        )

        scope_text = None
        if scope:
            scope_text = f"{_text(scope.get('type'), UNKNOWN)}: {_text(scope.get('value'), 'any')}"
            if scope.get("port"):
                scope_text += f" (port {_text(scope.get('port'), '')})"

        schedule_text = None
        if schedule:
            times = schedule.get("times")
            schedule_text = _text(schedule.get("type"), "custom")
            if isinstance(times, list) and times:
                schedule_text += " " + ", ".join(_text(t, "") for t in times if t)

        return cls(
            id=_text(raw.get("id"), NOT_AVAILABLE),
            name=name,
            status=_text(raw.get("status"), "active"),
            action=_text(raw.get("action"), "unknown"),
            direction=_text(raw.get("direction"), "any"),
            protocol=_text(raw.get("protocol"), "any"),
            target_type=_text(target.get("type"), UNKNOWN),
            target_value=_text(target.get("value"), "any"),
            scope=scope_text,
            schedule=schedule_text,
            box=_ref_name(raw.get("box")),
        )


@dataclass
class Flow:
    ts: float | None
    box: str
    device: str
    direction: str
    protocol: str
    destination: str
    category: str
    country: str
    region: str
    sport: str
    dport: str
    download: int
    upload: int
    total: int
    status: str

    @classmethod
    def from_wire(cls, raw: Any) -> "Flow":
        raw = _obj(raw)
        remote = _obj(raw.get("remote"))
        download = _int(raw.get("download"))
        upload = _int(raw.get("upload"))
        destination = (
            raw.get("domain") or raw.get("ip") or remote.get("domain") or remote.get("ip")
        )
        status = raw.get("status")
        if not status and raw.get("block") is not None:
            status = "blocked" if raw.get("block") else "allowed"
        return cls(
            ts=_optional_number(raw.get("ts")),
            box=_ref_name(raw.get("box")),
            device=_ref_name(raw.get("device"), default="Unknown Device"),
            direction=_text(raw.get("direction"), "unknown"),
            protocol=_text(raw.get("protocol"), "unknown"),
            destination=_text(destination, NOT_AVAILABLE),
            category=_text(raw.get("category") or remote.get("category"), "Uncategorized"),
            country=_text(raw.get("country") or remote.get("country"), UNKNOWN),
            region=_text(raw.get("region") or remote.get("region"), UNKNOWN),
            sport=_text(raw.get("sport"), NOT_AVAILABLE),
            dport=_text(raw.get("dport"), NOT_AVAILABLE),
            download=download,
            upload=upload,
            total=_int(raw.get("total")) or download + upload,
            status=_text(status, "unknown"),
        )


@dataclass
class TargetList:
    id: str
    name: str
    targets: list[str] = field(default_factory=list)
    owner: str = NOT_AVAILABLE
    category: str = "Uncategorized"
    notes: str = NOT_AVAILABLE

    @classmethod
    def from_wire(cls, raw: Any) -> "TargetList":
        raw = _obj(raw)
        targets = raw.get("targets")
        return cls(
            id=_text(raw.get("id"), NOT_AVAILABLE),
            name=_text(raw.get("name"), "Unnamed List"),
            targets=[_text(t, "") for t in targets if t not in (None, "")] if isinstance(targets, list) else [],
            owner=_text(raw.get("owner"), NOT_AVAILABLE),
            category=_text(raw.get("category"), "Uncategorized"),
            notes=_text(raw.get("notes"), NOT_AVAILABLE),
        )


@dataclass
class StatEntry:
    label: str
    value: float
    percentage: float | None

    @classmethod
    def from_wire(cls, raw: Any) -> "StatEntry":
        raw = _obj(raw)
        meta = _obj(raw.get("meta"))
        label = None
        for candidate in (
            meta.get("name"), meta.get("region"), meta.get("code"), meta.get("gid"),
            raw.get("name"), raw.get("region"),
        ):
            if candidate not in (None, ""):
                label = candidate
                break
        if label is None and raw.get("box") is not None:
            label = _ref_name(raw.get("box"))
        value = _optional_number(raw.get("value"))
        if value is None:
            value = _optional_number(raw.get("count")) or 0.0
        return cls(
            label=_text(label, UNKNOWN),
            value=value,
            percentage=_optional_number(raw.get("percentage")),
        )


@dataclass
class TrendPoint:
    ts: float | None
    value: float
    fields: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_wire(cls, raw: Any) -> "TrendPoint":
        raw = _obj(raw)
        ts = _optional_number(raw.get("ts", raw.get("timestamp")))
        numbers = {
            key: float(value)
            for key, value in raw.items()
            if key not in ("ts", "timestamp") and isinstance(value, (int, float)) and not isinstance(value, bool)
        }
        if "value" in numbers:
            value = numbers.pop("value")
        elif "total" in numbers:
            value = numbers["total"]
        else:
            value = 0.0
        return cls(ts=ts, value=value, fields=numbers)
