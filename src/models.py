"""
Pydantic models for the record store, the Key Vault firewall API and the
service responses.
"""
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


FIREWALL_UPDATE_PARTITION = "FirewallUpdate"


class IPRecord(BaseModel):
    """One table entity written by the IP watcher."""

    partition_key: str = Field(
        default=FIREWALL_UPDATE_PARTITION,
        description="Partition the entity was stored under.",
    )
    ip: str = Field(
        description="Public IP address observed by the watcher.",
        json_schema_extra={"example": "203.0.113.7"},
    )

    @classmethod
    def from_entity(cls, entity: Mapping[str, Any]) -> "IPRecord":
        return cls(
            partition_key=entity.get("PartitionKey", FIREWALL_UPDATE_PARTITION),
            ip=entity.get("IP"),
        )


class IPRule(BaseModel):
    """A single allow-list entry as the management API represents it."""

    model_config = ConfigDict(extra="ignore")

    value: str = Field(description="IP address or CIDR range.")


class FirewallRulesResponse(BaseModel):
    """
    Body of the firewallRules read call.

    Rules are accepted either as bare strings or as {"value": ip} objects and
    normalised to strings. Anything else fails validation.
    """

    model_config = ConfigDict(extra="ignore")

    value: List[str]

    @field_validator("value", mode="before")
    @classmethod
    def normalize_rules(cls, v):
        if not isinstance(v, list):
            return v
        rules = []
        for item in v:
            if isinstance(item, dict):
                # A dict without "value" leaves None and fails the List[str] check.
                rules.append(item.get("value"))
            else:
                rules.append(item)
        return rules


class IPRulesProperties(BaseModel):
    ip_rules: List[IPRule] = Field(alias="ipRules")

    model_config = ConfigDict(populate_by_name=True)


class FirewallRulesUpdate(BaseModel):
    """Full-replacement body for the firewallRules/default write call."""

    properties: IPRulesProperties

    @classmethod
    def from_ips(cls, ips: List[str]) -> "FirewallRulesUpdate":
        return cls(properties=IPRulesProperties(ip_rules=[IPRule(value=ip) for ip in ips]))

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class SyncResult(BaseModel):
    """Outcome of one sync run."""

    latest_ip: str
    changed: bool
    rules: List[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response schema for health check endpoint."""
    status: str = Field(
        description="Service status indicator",
        json_schema_extra={"example": "ok"}
    )
