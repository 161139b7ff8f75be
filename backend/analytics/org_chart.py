"""
Reporting-line tree for the org chart — pure functions only.

Input:  flat list of team member dicts (id, name, role, reports_to_id)
Output: nested forest of {id, name, role, badge, children}
"""
from __future__ import annotations

import networkx as nx

_TOP_ROLES = {"founder", "ceo"}
_EXEC_ROLES = {"cfo", "cio", "cto", "coo", "executive"}

# badge → root ordering weight (higher first)
BADGE_WEIGHT = {"ceo": 5, "executive": 4, "director": 3, "manager": 2, "member": 1}


def _role_key(role: str | None) -> str:
    return (role or "").strip().lower()


def role_badge(role: str | None) -> str:
    """
    Collapse a role into one of: ceo, executive, director, manager, member.

    The whole role must match; "Assistant to the CEO" is a member.
    """
    r = _role_key(role)
    if r in _TOP_ROLES:
        return "ceo"
    if r in _EXEC_ROLES:
        return "executive"
    if r == "director":
        return "director"
    if r == "manager":
        return "manager"
    return "member"


def _is_top(member: dict) -> bool:
    return _role_key(member.get("role")) in _TOP_ROLES


def _name_key(member: dict) -> str:
    return (member.get("name") or "").lower()


def filter_members(members: list[dict], q: str | None) -> list[dict]:
    if not q:
        return members
    needle = q.strip().lower()
    return [
        m for m in members
        if needle in (m.get("name") or "").lower() or needle in (m.get("role") or "").lower()
    ]


def build_reporting_graph(members: list[dict]) -> nx.DiGraph:
    """Edge manager → report, only where both ends are in the member set."""
    G = nx.DiGraph()
    for m in members:
        G.add_node(m["id"], **m)
    for m in members:
        boss = m.get("reports_to_id")
        if boss and boss != m["id"] and G.has_node(boss):
            G.add_edge(boss, m["id"])
    return G


def build_org_chart(members: list[dict], q: str | None = None) -> list[dict]:
    """
    Roots are founders/CEOs. Members without a manager in the set hang under
    the first root; if there is no founder/CEO they become roots themselves.
    Members caught in a reporting cycle are promoted to roots so every member
    appears exactly once. Roots are ordered by badge weight, then name.
    """
    members = sorted(filter_members(members, q), key=_name_key)
    G = build_reporting_graph(members)

    tops = [m["id"] for m in members if _is_top(m)]
    orphans = [m["id"] for m in members if G.in_degree(m["id"]) == 0 and m["id"] not in tops]
    if tops:
        roots = list(tops)
        for top in tops:
            # a top role that reports to someone still shows as its own root
            for boss in list(G.predecessors(top)):
                G.remove_edge(boss, top)
        for oid in orphans:
            G.add_edge(tops[0], oid)
    else:
        roots = orphans

    placed: set[str] = set()

    def _node(member_id: str) -> dict:
        placed.add(member_id)
        m = G.nodes[member_id]
        children = sorted(
            (c for c in G.successors(member_id) if c not in placed),
            key=lambda c: (G.nodes[c].get("name") or "").lower(),
        )
        kids = []
        for c in children:
            if c not in placed:
                kids.append(_node(c))
        return {
            "id":      member_id,
            "name":    m.get("name"),
            "role":    m.get("role"),
            "email":   m.get("email"),
            "team_id": m.get("team_id"),
            "badge":   role_badge(m.get("role")),
            "children": kids,
        }

    forest = [_node(r) for r in roots if r not in placed]
    for m in members:
        if m["id"] not in placed:
            forest.append(_node(m["id"]))
    forest.sort(key=lambda n: (-BADGE_WEIGHT[n["badge"]], _name_key(n)))
    return forest
