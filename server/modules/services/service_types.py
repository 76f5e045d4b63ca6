"""Known service types and correction hints for import YAML."""

from __future__ import annotations

from typing import Any

import yaml

from shared.errors import ToolError

KNOWN_SERVICE_TYPES: frozenset[str] = frozenset({
    "postgresql@16", "postgresql@15", "postgresql@14",
    "mariadb@11", "mariadb@10.6",
    "mongodb@7", "mongodb@6",
    "valkey@7", "keydb@6",
    "elasticsearch@8", "couchbase@7", "qdrant@1",
    "php@8.3", "php@8.2", "php@8.1",
    "nodejs@22", "nodejs@20", "nodejs@18",
    "python@3.12", "python@3.11", "python@3.10",
    "go@1", "go@1.22", "go@1.21",
    "java@21", "java@17",
    "dotnet@8", "dotnet@6",
    "ruby@3", "rust@1",
    "rabbitmq@3.12", "kafka@3", "nats@2",
    "meilisearch@1", "typesense@26",
    "static@1", "nginx@1.22", "object-storage@1",
})

# Common mistakes mapped to the type that should be used instead
CORRECTIONS: dict[str, str] = {
    "php-apache": "php@8.3 (with an apache run configuration)",
    "php-nginx": "php@8.3 (with an nginx run configuration)",
    "redis": "valkey@7 (Redis-compatible)",
    "mysql": "mariadb@11 (MySQL-compatible)",
    "postgres": "postgresql@16",
    "mongo": "mongodb@7",
    "elastic": "elasticsearch@8",
    "node": "nodejs@22",
}

# Internal stack types that cannot be imported directly
HIDDEN_TYPE_PREFIXES = ("build ", "prepare ", "zbuild ")
HIDDEN_TYPE_NAMES = {"Core", "L7 HTTP Balancer", "Generic Runtime"}


def suggest_service_type(service_type: str) -> str | None:
    """A correction hint for an unknown service type, if one is known."""
    base = service_type.split("@", 1)[0].lower()
    if base in CORRECTIONS:
        return f"use {CORRECTIONS[base]}"
    # postgresql@16.2 -> postgresql@16
    if "@" in service_type:
        name, version = service_type.split("@", 1)
        while "." in version:
            version = version.rsplit(".", 1)[0]
            candidate = f"{name}@{version}"
            if candidate in KNOWN_SERVICE_TYPES:
                return f"use '{candidate}' (no minor version needed)"
    return None


def parse_import_yaml(text: str) -> list[dict[str, Any]]:
    """Syntax-check import YAML and return its service entries."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ToolError(f"Invalid YAML: {e}")
    if not isinstance(document, dict) or not isinstance(document.get("services"), list):
        raise ToolError(
            "Import YAML must contain a 'services' list, for example:\n"
            "services:\n  - hostname: app\n    type: nodejs@22\n    startWithoutCode: true"
        )
    services = document["services"]
    for index, service in enumerate(services):
        if not isinstance(service, dict) or not service.get("hostname") or not service.get("type"):
            raise ToolError(f"services[{index}] needs both 'hostname' and 'type'")
    return services


def type_hints(services: list[dict[str, Any]]) -> list[str]:
    """Correction hints for every service whose type looks wrong."""
    hints = []
    for service in services:
        service_type = str(service["type"])
        if service_type in KNOWN_SERVICE_TYPES:
            continue
        suggestion = suggest_service_type(service_type)
        if suggestion:
            hints.append(f"{service['hostname']}: '{service_type}' is not a valid type, {suggestion}")
    return hints
