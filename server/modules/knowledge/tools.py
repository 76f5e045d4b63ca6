"""Knowledge module tool implementations: knowledge base search and platform guides."""

from __future__ import annotations

import json
import re
from datetime import datetime, timedelta, timezone

import httpx
import structlog

from core.arguments import Arguments
from core.context import InvocationContext
from core.results import HandlerResult, raw, text
from modules.knowledge.cache import GuideCache
from modules.knowledge.client import KnowledgeClient, fetch_text
from modules.knowledge.manifest import GUIDE_TYPES
from shared.config import Settings
from shared.errors import ToolError

logger = structlog.get_logger()

FALLBACK_GUIDES: dict[str, dict] = {
    "fresh_project": {
        "title": "Complete Guide: Starting a Fresh Project",
        "workflow": [
            "1. discovery() - Check current project state (should be empty)",
            "2. get_service_types() - See available service types",
            "3. knowledge_search('nodejs postgresql') - Find a matching recipe",
            "4. import_services(yaml: '...') - Create your services",
            "5. discovery() - Verify services were created",
            "6. enable_preview_subdomain(service_id: '...') - Enable public access",
            "7. get_process_status(process_id: '...') - Monitor subdomain setup",
            "8. set_project_env() / set_service_env() - Configure environment",
            "9. deploy_push(project_id, service_id) - Deploy your code",
            "10. get_service_logs() - Monitor application startup",
        ],
    },
    "existing_service": {
        "title": "Guide: Working with Existing Services",
        "workflow": [
            "1. discovery() - See all existing services and their status",
            "2. get_service_logs(service_id: '...') - Check current service health",
            "3. set_service_env() / set_project_env() - Update configuration",
            "4. restart_service(service_id: '...') - Apply configuration changes",
            "5. get_process_status(process_id: '...') - Monitor restart progress",
            "6. scale_service(service_id: '...') - Adjust resources if needed",
            "7. remount_service(service_name: '...') - Fix SSHFS issues if needed",
            "8. discovery() - Verify final state",
        ],
    },
    "add_services": {
        "title": "Guide: Adding Services to Existing Project",
        "workflow": [
            "1. discovery() - See current project services",
            "2. get_service_types() - Check available service types",
            "3. knowledge_search('database type') - Get examples for new services",
            "4. import_services(yaml: '...') - Add new services to project",
            "5. discovery() - Verify new services were created",
            "6. set_project_env() - Add shared environment variables",
            "7. restart_service() - Restart existing services to use new config",
            "8. enable_preview_subdomain() - Enable access for web services",
            "9. get_running_processes() - Monitor all operations",
        ],
    },
}


def format_name(name: str) -> str:
    """'laravel-jetstream' -> 'Laravel Jetstream'."""
    return " ".join(part.capitalize() for part in re.split(r"[-_.]", name) if part)


class KnowledgeTools:
    """Knowledge base lookups and cached workflow guides."""

    def __init__(
        self,
        settings: Settings,
        client: KnowledgeClient | None = None,
        cache: GuideCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.client = client or KnowledgeClient(
            settings.knowledge_api_url, timeout=settings.upstream_timeout, transport=transport
        )
        self.cache = cache or GuideCache(ttl=settings.guide_cache_ttl)
        self._transport = transport

    async def knowledge_search(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        """Ranked knowledge base search."""
        a = Arguments(args)
        query = a.string("query", required=True, hint="Try a framework or service name, e.g. 'django'.")
        limit = a.integer("limit", default=10)
        if limit < 1 or limit > 20:
            limit = 10

        response = await self.client.search(query, limit)
        if not response.results:
            return text(
                f"No results found for: {query}\n\n"
                "Try different search terms:\n"
                "  - Framework names: laravel, django, nextjs\n"
                "  - Service types: nodejs, postgresql, valkey\n"
                "  - Features: database, cache, email"
            )

        lines = [f"Found {response.count or len(response.results)} result(s) for: {query}", ""]
        for i, result in enumerate(response.results, 1):
            lines.append(f"{i}. {format_name(result.name or result.id)}")
            lines.append(f"   ID: {result.id}")
            lines.append(f"   Type: {result.type}")
            if result.summary:
                lines.append(f"   Summary: {result.summary}")
            if result.tags:
                lines.append(f"   Tags: {', '.join(result.tags)}")
            lines.append(f"   Relevance: {result.score * 100:.0f}%")
            lines.append("")
        lines.append("Use knowledge_get with an ID to retrieve the full content.")
        return text("\n".join(lines))

    async def knowledge_get(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        """Full content of a single knowledge item."""
        knowledge_id = Arguments(args).string("id", required=True)
        if "/" not in knowledge_id:
            raise ToolError(
                f"Invalid ID format: {knowledge_id}. Expected {{type}}/{{name}}, "
                "for example service/nodejs, recipe/laravel or patterns/nextjs."
            )

        item = await self.client.get(knowledge_id)
        if item is None:
            raise ToolError(f"Knowledge not found: {knowledge_id}. Use knowledge_search to find available content.")

        if isinstance(item.content, str):
            body = item.content
        else:
            body = json.dumps(item.content, indent=2, ensure_ascii=False)
        return text(
            f"Knowledge: {format_name(item.name or item.id)}\n"
            f"Type: {item.type}\n"
            f"ID: {item.id}\n\n"
            f"Content:\n```json\n{body}\n```"
        )

    async def load_platform_guide(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        """Workflow guide from the guide repository, cached for ``guide_cache_ttl`` seconds."""
        path_type = Arguments(args).string("path_type", required=True, hint=f"Valid guides: {', '.join(GUIDE_TYPES)}")
        if path_type not in GUIDE_TYPES:
            raise ToolError(f"Unknown guide type: '{path_type}'. Valid guides: {', '.join(GUIDE_TYPES)}")

        cached = self.cache.get(path_type)
        if cached is not None:
            return raw(cached)

        url = f"{self.settings.guides_base_url.rstrip('/')}/{path_type}.md"
        try:
            content = await fetch_text(url, timeout=self.settings.upstream_timeout, transport=self._transport)
        except httpx.HTTPError as e:
            logger.warning("guide_fetch_failed", guide=path_type, error=str(e))
            return raw({
                "source": "fallback",
                "path_type": path_type,
                "error": f"Failed to fetch guide: {e}",
                "content": FALLBACK_GUIDES[path_type],
            })

        now = datetime.now(timezone.utc)
        guide = {
            "source": "github",
            "path_type": path_type,
            "url": url,
            "content": content,
            "cached_at": now.isoformat(timespec="seconds"),
            "cache_expires": (now + timedelta(seconds=self.cache.ttl)).isoformat(timespec="seconds"),
        }
        self.cache.set(path_type, guide)
        logger.info("guide_fetched", guide=path_type, size=len(content))
        return raw(guide)
