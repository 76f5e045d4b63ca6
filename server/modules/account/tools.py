"""Account module tool implementations."""

from __future__ import annotations

from core.context import InvocationContext
from core.results import HandlerResult, text
from shared.errors import ToolError, UpstreamError
from shared.schemas.zerops import UserInfo


def _organizations(user: UserInfo) -> list[str]:
    lines = []
    for client_user in user.client_user_list:
        name = client_user.client.account_name if client_user.client else client_user.client_id
        role = f" ({client_user.role_code})" if client_user.role_code else ""
        lines.append(f"- {name}{role}")
    return lines


class AccountTools:
    """Who am I, and what can I reach."""

    async def auth_validate(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        try:
            user = await client.get_user_info()
        except UpstreamError as e:
            raise ToolError(f"Authentication failed: {e.detail}. Check that the API key is valid and not expired.")

        lines = [
            "Authentication successful",
            "",
            f"User: {user.full_name}",
            f"Email: {user.email}",
            "",
            f"Access to {len(user.client_user_list)} organization(s):",
            *_organizations(user),
        ]
        return text("\n".join(lines))

    async def auth_show(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        if ctx.client is None:
            return text(
                "Not authenticated\n\n"
                "Set ZEROPS_API_KEY or send 'Authorization: Bearer <api-key>' to authenticate."
            )
        user = await ctx.client.get_user_info()
        regions = await ctx.client.list_regions()

        lines = [
            "Authentication Status",
            "",
            f"User: {user.full_name}",
            f"Email: {user.email}",
            "",
            f"Organizations ({len(user.client_user_list)}):",
            *_organizations(user),
            "",
            "Available Regions:",
        ]
        for region in regions:
            default = " (default)" if region.is_default else ""
            lines.append(f"- {region.name}{default}")
            if region.address:
                lines.append(f"  Address: {region.address}")
        return text("\n".join(lines))
