"""
Unit tests for analytics/org_chart.py — pure functions only, no DB required.
"""
from analytics.org_chart import build_org_chart, filter_members, role_badge


def member(id_, name, role=None, reports_to=None):
    return {"id": id_, "name": name, "role": role, "reports_to_id": reports_to,
            "email": None, "team_id": None}


def ids(forest):
    return [n["id"] for n in forest]


def find(forest, id_):
    for n in forest:
        if n["id"] == id_:
            return n
        hit = find(n["children"], id_)
        if hit:
            return hit
    return None


# ── role_badge ─────────────────────────────────────────────────────────────────

class TestRoleBadge:
    def test_badges(self):
        assert role_badge("CEO") == "ceo"
        assert role_badge(" founder ") == "ceo"
        assert role_badge("CTO") == "executive"
        assert role_badge("Executive") == "executive"
        assert role_badge("Director") == "director"
        assert role_badge("manager") == "manager"
        assert role_badge("Engineer") == "member"
        assert role_badge(None) == "member"

    def test_whole_role_must_match(self):
        assert role_badge("Assistant to the CEO") == "member"
        assert role_badge("Co-Founder") == "member"
        assert role_badge("Director of Sales") == "member"
        assert role_badge("Engineering Manager") == "member"


# ── build_org_chart ────────────────────────────────────────────────────────────

class TestBuildOrgChart:
    def test_founder_is_root_and_reports_nest(self):
        members = [
            member("ceo", "Alice", "CEO"),
            member("m1", "Bob", "Manager", "ceo"),
            member("e1", "Carol", "Engineer", "m1"),
        ]
        forest = build_org_chart(members)
        assert ids(forest) == ["ceo"]
        assert ids(forest[0]["children"]) == ["m1"]
        assert ids(forest[0]["children"][0]["children"]) == ["e1"]

    def test_unmanaged_members_attach_to_first_founder(self):
        members = [
            member("ceo", "Alice", "Founder"),
            member("x", "Xena", "Engineer"),
            member("y", "Yuri", "Designer"),
        ]
        forest = build_org_chart(members)
        assert ids(forest) == ["ceo"]
        assert ids(forest[0]["children"]) == ["x", "y"]

    def test_without_founder_unmanaged_members_are_roots(self):
        members = [
            member("a", "Ann", "Director"),
            member("b", "Ben", "Engineer", "a"),
            member("c", "Cat", "Engineer"),
        ]
        forest = build_org_chart(members)
        assert ids(forest) == ["a", "c"]
        assert ids(forest[0]["children"]) == ["b"]

    def test_role_mentioning_ceo_stays_under_manager(self):
        members = [
            member("ceo", "Alice", "CEO"),
            member("asst", "Bob", "Assistant to the CEO", "ceo"),
        ]
        forest = build_org_chart(members)
        assert ids(forest) == ["ceo"]
        assert ids(forest[0]["children"]) == ["asst"]
        assert forest[0]["children"][0]["badge"] == "member"

    def test_roots_ordered_by_role_weight_then_name(self):
        members = [
            member("e", "Abe", "Engineer"),
            member("m", "Amy", "Manager"),
            member("d2", "Zoe", "Director"),
            member("d1", "Dan", "Director"),
            member("x", "Xi", "CTO"),
        ]
        forest = build_org_chart(members)
        assert ids(forest) == ["x", "d1", "d2", "m", "e"]

    def test_children_sorted_by_name(self):
        members = [
            member("ceo", "Alice", "CEO"),
            member("z", "Zed", "Engineer", "ceo"),
            member("b", "Bea", "Engineer", "ceo"),
        ]
        forest = build_org_chart(members)
        assert [c["name"] for c in forest[0]["children"]] == ["Bea", "Zed"]

    def test_cycle_members_still_appear_once(self):
        members = [
            member("a", "Ann", "Engineer", "b"),
            member("b", "Ben", "Engineer", "a"),
        ]
        forest = build_org_chart(members)
        assert find(forest, "a") is not None
        assert find(forest, "b") is not None
        flat = []

        def walk(nodes):
            for n in nodes:
                flat.append(n["id"])
                walk(n["children"])
        walk(forest)
        assert sorted(flat) == ["a", "b"]

    def test_self_report_is_ignored(self):
        forest = build_org_chart([member("a", "Ann", "Engineer", "a")])
        assert ids(forest) == ["a"]

    def test_search_filters_by_name_or_role(self):
        members = [
            member("ceo", "Alice", "CEO"),
            member("m1", "Bob", "Manager", "ceo"),
            member("e1", "Carol", "Engineer", "m1"),
        ]
        assert [m["id"] for m in filter_members(members, "eng")] == ["e1"]
        forest = build_org_chart(members, "bob")
        assert ids(forest) == ["m1"]
        assert forest[0]["badge"] == "manager"
