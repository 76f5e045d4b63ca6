"""Runtime log query parameters and output shaping."""

from __future__ import annotations

from typing import Any

from shared.schemas.zerops import LogEntry

# syslog facilities used by the log service
FACILITIES: dict[str, int] = {
    "application": 16,
    "webserver": 17,
}

SEVERITY_LEVELS: dict[str, int] = {
    "emergency": 0,
    "alert": 1,
    "critical": 2,
    "error": 3,
    "warning": 4,
    "notice": 5,
    "informational": 6,
    "debug": 7,
}

LOG_FORMATS = ["full", "short", "json"]


def build_log_query(
    service_id: str,
    limit: int,
    message_type: str,
    minimum_severity: str | None,
) -> dict[str, Any]:
    params: dict[str, Any] = {
        "limit": limit,
        "desc": 1,
        "facility": FACILITIES[message_type],
        "serviceStackId": service_id,
    }
    if minimum_severity:
        params["minimumSeverity"] = SEVERITY_LEVELS[minimum_severity]
    return params


def format_logs(entries: list[LogEntry], log_format: str) -> list[dict[str, Any]]:
    if log_format == "json":
        return [entry.model_dump(by_alias=True) for entry in entries]
    if log_format == "short":
        return [
            {"timestamp": e.timestamp, "severity": e.severity_label, "message": e.message}
            for e in entries
        ]
    return [
        {
            "timestamp": e.timestamp,
            "severity": e.severity_label,
            "facility": e.facility_label,
            "hostname": e.hostname,
            "app_name": e.app_name,
            "message": e.message,
            "content": e.content,
            "priority": e.priority,
            "proc_id": e.proc_id,
            "tag": e.tag,
        }
        for e in entries
    ]
