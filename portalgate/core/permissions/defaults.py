from __future__ import annotations

from typing import Dict, Tuple

from portalgate.core.permissions.models import ModuleKey

PATH_TO_MODULE: Dict[str, ModuleKey] = {
    "/dashboard": ModuleKey.dashboard,
    "/analytics": ModuleKey.analytics,
    "/ecommerce": ModuleKey.ecommerce,
    "/google-shopping": ModuleKey.ecommerce,
    "/marketing": ModuleKey.marketing,
    "/kpis": ModuleKey.marketing,
    "/competitors": ModuleKey.marketing,
    "/social": ModuleKey.marketing,
    "/content-studio": ModuleKey.marketing,
    "/campaigns": ModuleKey.campaigns,
    "/programmatic": ModuleKey.campaigns,
    "/ab-tests": ModuleKey.campaigns,
    "/tasks": ModuleKey.tasks,
    "/projects": ModuleKey.tasks,
    "/team": ModuleKey.team,
    "/insights": ModuleKey.insights,
    "/ai-agents": ModuleKey.ai_agent,
    "/ai-insights": ModuleKey.ai_agent,
    "/reports": ModuleKey.reports,
    "/leads": ModuleKey.leads,
    "/billing": ModuleKey.billing,
    "/approvals": ModuleKey.approvals,
}

# Blocked whenever a simulation is active, regardless of the module map.
ADMIN_ONLY_PATHS: Tuple[str, ...] = (
    "/permissions",
    "/client-management",
    "/status",
    "/code-health",
    "/system-diagram",
    "/credits",
    "/agency",
    "/clients",
)
