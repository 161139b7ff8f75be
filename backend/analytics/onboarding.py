"""
Onboarding rules — pure functions only.
"""
from __future__ import annotations

_LEVEL_ROLES = {
    "founder / owner":        "CEO",
    "founder":                "CEO",
    "owner":                  "CEO",
    "c-level":                "Executive",
    "vp":                     "Director",
    "director":               "Director",
    "manager":                "Manager",
    "supervisor":             "Manager",
    "team lead":              "Manager",
    "individual contributor": "Team Member",
}


def role_for_level(level: str | None) -> str:
    """Map the self-reported seniority level to a team-member role."""
    return _LEVEL_ROLES.get((level or "").strip().lower(), "Team Member")


def default_organization_name(company: str) -> str:
    return f"{company.strip()} - All"


def display_name(first_name: str, last_name: str) -> str:
    return " ".join(p.strip() for p in (first_name, last_name) if p and p.strip())
