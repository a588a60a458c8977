from conftest import human_headers

from ishortn.models.link_visit import LinkVisit


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json()["cache"] == "up"


def test_signup_login_and_profile(client):
    resp = client.post("/signups", json={"name": "Ada", "email": "Ada@Example.com", "password": "pw"})
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["user"]["plan"] == "free"

    assert client.post("/signups", json={"email": "ada@example.com", "password": "pw"}).get_json()["success"] is False
    assert client.post("/login", json={"email": "ada@example.com", "password": "nope"}).get_json()["success"] is False

    token = client.post("/login", json={"email": "ada@example.com", "password": "pw"}).get_json()["data"]["token"]
    me = client.get("/me", headers={"Authorization": f"Bearer {token}"}).get_json()
    assert me["data"]["email"] == "ada@example.com"


def test_management_requires_token(client):
    body = client.get("/links").get_json()

    assert body["success"] is False
    assert body["message"] == "Token is missing!"


def test_redirect_follows_active_link(client, make_user, make_link):
    link = make_link(make_user(), alias="promo")

    resp = client.get("/PROMO", headers=human_headers())

    assert resp.status_code == 302
    assert resp.headers["Location"] == "https://example.com"
    assert LinkVisit.query.filter_by(link_id=link.id).count() == 1


def test_redirect_for_missing_alias(client):
    body = client.get("/missing", headers=human_headers()).get_json()

    assert body["success"] is False
    assert body["message"] == "URL does not exist"


def test_api_link_hides_password_hash(client, make_user, make_link):
    link = make_link(make_user(plan="pro"), alias="secret", password="s3cret")

    body = client.get("/api/link?domain=ishortn.ink&alias=secret", headers=human_headers()).get_json()

    assert body["data"] == {"id": link.id, "password_protected": True, "status": "active"}


def test_verify_password_endpoint(client, make_user, make_link):
    link = make_link(make_user(plan="pro"), alias="secret", password="s3cret")

    wrong = client.post("/api/link/verify-password", json={"id": link.id, "password": "x"}, headers=human_headers())
    assert wrong.get_json()["data"] is None
    assert LinkVisit.query.count() == 0

    right = client.post("/api/link/verify-password", json={"id": link.id, "password": "s3cret"}, headers=human_headers())
    data = right.get_json()["data"]
    assert data["url"] == "https://example.com"
    assert "password_hash" not in data
    assert LinkVisit.query.count() == 1


def test_metadata_endpoint_does_not_record(client, make_user, make_link):
    make_link(make_user(), alias="promo")

    body = client.get("/api/link/metadata?alias=promo", headers=human_headers()).get_json()

    assert body["data"]["alias"] == "promo"
    assert LinkVisit.query.count() == 0


def test_create_update_and_delete_through_api(client, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)

    created = client.post("/links", json={"url": "example.com", "alias": "launch"}, headers=headers).get_json()
    assert created["success"] is True
    link_id = created["data"]["id"]
    assert created["data"]["url"] == "https://example.com"

    taken = client.post("/links", json={"url": "example.com", "alias": "LAUNCH"}, headers=headers).get_json()
    assert taken["success"] is False

    updated = client.put(f"/links/{link_id}", json={"alias": "relaunch"}, headers=headers).get_json()
    assert updated["data"]["alias"] == "relaunch"
    assert client.get("/launch", headers=human_headers()).get_json()["success"] is False
    assert client.get("/relaunch", headers=human_headers()).status_code == 302

    listing = client.get("/links", headers=headers).get_json()
    assert [item["alias"] for item in listing["data"]] == ["relaunch"]

    assert client.delete(f"/links/{link_id}", headers=headers).get_json()["success"] is True
    assert client.get("/relaunch", headers=human_headers()).get_json()["success"] is False


def test_toggle_and_visits_through_api(client, make_user, make_link, auth_headers):
    user = make_user()
    link = make_link(user, alias="promo")
    headers = auth_headers(user)

    client.get("/promo", headers=human_headers())
    visits = client.get("/links/visits?alias=promo", headers=headers).get_json()
    assert visits["data"]["total_visits"] == 1

    client.post(f"/links/{link.id}/toggle", headers=headers)
    body = client.get("/promo", headers=human_headers()).get_json()
    assert body["data"]["status"] == "disabled"


def test_alias_availability_endpoint(client, make_user, make_link, auth_headers):
    user = make_user()
    make_link(user, alias="promo")

    body = client.get("/links/alias-availability?alias=PROMO", headers=auth_headers(user)).get_json()

    assert body["data"]["available"] is False


def test_team_header_requires_membership(client, make_user, make_team, auth_headers):
    owner = make_user()
    outsider = make_user()
    team = make_team(owner)

    body = client.get("/links", headers=auth_headers(outsider, team=team)).get_json()
    assert body["success"] is False

    created = client.post("/links", json={"url": "https://example.com"}, headers=auth_headers(owner, team=team)).get_json()
    assert created["data"]["team_id"] == team.id


def test_subscription_status_reports_usage(client, make_user, auth_headers):
    user = make_user(plan="pro")

    body = client.get("/subscription/status", headers=auth_headers(user)).get_json()

    assert body["data"]["plan"] == "pro"
    assert body["data"]["events"]["limit"] == 10000
    assert body["data"]["links"]["used"] == 0


def test_redirect_on_www_host_uses_bare_domain(client, make_user, make_link):
    link = make_link(make_user(), alias="promo", domain="ishortn.ink")

    resp = client.get("/promo", headers=human_headers(), base_url="http://www.ishortn.ink")

    assert resp.status_code == 302
    assert resp.headers["Location"] == "https://example.com"
    assert LinkVisit.query.filter_by(link_id=link.id).count() == 1


def test_domain_argument_drops_www_prefix(client, make_user, make_link):
    link = make_link(make_user(), alias="promo", domain="go.example.org")

    body = client.get("/api/link?domain=WWW.go.example.org&alias=promo", headers=human_headers()).get_json()

    assert body["data"]["id"] == link.id


def test_verify_password_rejects_non_string_password(client, make_user, make_link):
    link = make_link(make_user(plan="pro"), alias="secret", password="12345")

    body = client.post("/api/link/verify-password", json={"id": link.id, "password": 12345}).get_json()

    assert body["success"] is False
    assert body["message"] == "password must be a string"
    assert LinkVisit.query.count() == 0


def test_create_link_rejects_malformed_fields(client, make_user, auth_headers):
    headers = auth_headers(make_user(plan="ultra"))

    metadata = client.post("/links", json={"url": "example.com", "metadata": "oops"}, headers=headers).get_json()
    utm = client.post("/links", json={"url": "example.com", "utm_params": ["utm_source"]}, headers=headers).get_json()
    password = client.post("/links", json={"url": "example.com", "password": 12345}, headers=headers).get_json()

    assert metadata == {"success": False, "message": "metadata must be an object", "data": None}
    assert utm["message"] == "utm_params must be an object"
    assert password["message"] == "password must be a string"


def test_update_link_rejects_malformed_metadata(client, make_user, make_link, auth_headers):
    user = make_user(plan="pro")
    link = make_link(user, alias="promo")

    body = client.put(f"/links/{link.id}", json={"metadata": "oops"}, headers=auth_headers(user)).get_json()

    assert body["success"] is False
    assert body["message"] == "metadata must be an object"


def test_change_password_rejects_non_string(client, make_user, make_link, auth_headers):
    user = make_user(plan="pro")
    link = make_link(user, alias="promo")

    body = client.post(f"/links/{link.id}/password", json={"password": 42}, headers=auth_headers(user)).get_json()

    assert body["success"] is False
    assert body["message"] == "password must be a string"
