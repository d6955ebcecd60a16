import pytest

from auth.roles import Role, parse_role, sees_all_content


def test_non_admin_cannot_read_stats(client, alice, headers_for):
    resp = client.get("/api/content/stats", headers=headers_for(alice))
    assert resp.status_code == 403
    assert resp.json() == {"message": "Access denied. Insufficient permissions."}


def test_non_admin_cannot_read_recent_activity(client, alice, headers_for):
    assert client.get("/api/content/recent", headers=headers_for(alice)).status_code == 403


def test_non_admin_cannot_decide(client, store, alice, headers_for):
    item = store.add_content(created_by=alice.id)
    for action in ("approve", "reject"):
        resp = client.put(f"/api/content/{item['id']}/{action}", headers=headers_for(alice))
        assert resp.status_code == 403
    assert store.content[item["id"]]["status"] == "pending"


def test_admin_cannot_submit_content(client, store, admin, headers_for):
    resp = client.post(
        "/api/content",
        json={"title": "Admin post", "description": "Admins only moderate content."},
        headers=headers_for(admin),
    )
    assert resp.status_code == 403
    assert store.content == {}


@pytest.mark.parametrize(
    "raw, expected",
    [("admin", Role.ADMIN), (" USER ", Role.USER), ("root", None), (None, None)],
)
def test_parse_role(raw, expected):
    assert parse_role(raw) is expected


def test_only_admins_see_all_content():
    assert sees_all_content(Role.ADMIN) is True
    assert sees_all_content(Role.USER) is False
