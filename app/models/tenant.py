"""Tenant selection models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class SelectionSource(str, Enum):
    """Where the active tenant id came from."""
    URL = "url"
    PREFERENCE = "preference"
    FIRST_AUTHORIZED = "first_authorized"
    COOKIE = "cookie"
    DEMO_FALLBACK = "demo_fallback"


@dataclass(frozen=True)
class AuthorizedTenant:
    """One company the current user may act as (read-only)."""
    tenant_id: str
    display_name: str
    plan_tier: Optional[str] = None
    role: Optional[str] = None
    subdomain: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthorizedTenant":
        return cls(
            tenant_id=str(data["tenant_id"]),
            display_name=data.get("display_name") or data.get("tenant_name") or "",
            plan_tier=data.get("plan_tier") or data.get("tenant_plan"),
            role=data.get("role"),
            subdomain=data.get("subdomain") or data.get("tenant_subdomain"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "display_name": self.display_name,
            "plan_tier": self.plan_tier,
            "role": self.role,
            "subdomain": self.subdomain,
        }


@dataclass(frozen=True)
class TenantSelection:
    """The active tenant for a session."""
    tenant_id: str
    source: SelectionSource
