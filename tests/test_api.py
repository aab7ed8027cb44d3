"""Tests for the FastAPI surface."""

from abtest_engine.repositories.assignment_repo import decode_cookie_map

HERO = "hero-messaging-test"


def test_variant_is_assigned_and_cookies_set(client, app_sink):
    response = client.get(f"/ab/tests/{HERO}/variant")

    assert response.status_code == 200
    data = response.json()
    assert data["variant_id"] == "original"
    assert data["config"]["cta"]["text"] == "Join the Mission"

    assert decode_cookie_map(client.cookies.get("warden_ab_variants")) == {HERO: "original"}
    assert client.cookies.get("ab_session")
    assert app_sink.names() == ["ab_variant_assigned"]


def test_variant_is_stable_across_requests(client, app_sink):
    first = client.get(f"/ab/tests/{HERO}/variant").json()
    second = client.get(f"/ab/tests/{HERO}/variant").json()

    assert first == second
    assert app_sink.names() == ["ab_variant_assigned", "ab_variant_viewed"]


def test_primary_store_outlives_cookie_mirror(client):
    client.get(f"/ab/tests/{HERO}/variant")
    client.cookies.delete("warden_ab_variants")

    assert client.get(f"/ab/tests/{HERO}/variant").json()["variant_id"] == "original"


def test_cookie_mirror_is_read_without_primary_entry(client):
    client.cookies.set("warden_ab_variants", "%7B%22hero-messaging-test%22%3A%22protective-focus%22%7D")

    assert client.get(f"/ab/tests/{HERO}/variant").json()["variant_id"] == "protective-focus"


def test_unknown_test_is_404(client):
    response = client.get("/ab/tests/nope/variant")
    assert response.status_code == 404


def test_section_config(client):
    response = client.get("/ab/sections/cta/config")

    assert response.status_code == 200
    assert response.json()["form"]["submitText"] == "Back the Mission"
    assert client.get("/ab/sections/footer/config").status_code == 404


def test_conversion_requires_prior_assignment(client, app_sink):
    response = client.post(f"/ab/tests/{HERO}/conversions", json={"conversion_type": "hero_cta_click"})
    assert response.status_code == 202
    assert response.json() == {"tracked": False}
    assert app_sink.events == []

    client.get(f"/ab/tests/{HERO}/variant")
    response = client.post(
        f"/ab/tests/{HERO}/conversions",
        json={"conversion_type": "hero_cta_click", "metadata": {"cta_text": "Join the Mission"}},
    )
    assert response.json() == {"tracked": True}
    assert app_sink.events[-1] == (
        "ab_variant_conversion",
        {
            "test_id": HERO,
            "variant_id": "original",
            "conversion_type": "hero_cta_click",
            "cta_text": "Join the Mission",
        },
    )


def test_interaction_tracking(client, app_sink):
    client.get(f"/ab/tests/{HERO}/variant")
    response = client.post(f"/ab/tests/{HERO}/interactions", json={"interaction_type": "quote_read"})

    assert response.json() == {"tracked": True}
    assert app_sink.events[-1][1]["interaction_type"] == "quote_read"


def test_debug_routes_absent_outside_debug(client):
    response = client.get("/debug/ab", headers={"Authorization": "Bearer debug-token"})
    assert response.status_code == 404


def test_debug_routes_require_token(debug_client):
    assert debug_client.get("/debug/ab").status_code == 401
    response = debug_client.get("/debug/ab", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401


def test_debug_force_and_inspect(debug_client):
    headers = {"Authorization": "Bearer debug-token"}

    response = debug_client.post(
        "/debug/ab/force",
        json={"test_id": HERO, "variant_id": "protective-focus"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["variant_id"] == "protective-focus"

    assert debug_client.get(f"/ab/tests/{HERO}/variant").json()["variant_id"] == "protective-focus"

    info = debug_client.get("/debug/ab", headers=headers).json()
    assert info["currentVariants"][HERO]["variantId"] == "protective-focus"

    variant = debug_client.get(f"/debug/ab/variants/{HERO}", headers=headers).json()
    assert variant["variant_name"] == "Alternative - Protection Focus"


def test_debug_tracking(debug_client, app_sink):
    headers = {"Authorization": "Bearer debug-token"}
    debug_client.get(f"/ab/tests/{HERO}/variant")

    response = debug_client.post(
        "/debug/ab/interactions",
        json={"test_id": HERO, "interaction_type": "cta_click"},
        headers=headers,
    )
    assert response.json() == {"tracked": True}

    response = debug_client.post("/debug/ab/conversions", json={"test_id": HERO}, headers=headers)
    assert response.json() == {"tracked": True}
    assert app_sink.names()[-2:] == ["ab_variant_interaction", "ab_variant_conversion"]


def test_debug_force_unknown_variant(debug_client):
    headers = {"Authorization": "Bearer debug-token"}
    response = debug_client.post(
        "/debug/ab/force",
        json={"test_id": HERO, "variant_id": "ghost"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json() is None


def test_deeply_nested_cookie_is_ignored(client, app_sink):
    client.cookies.set("warden_ab_variants", "%5B" * 3000)

    response = client.get(f"/ab/tests/{HERO}/variant")

    assert response.status_code == 200
    assert response.json()["variant_id"] == "original"
    assert app_sink.names() == ["ab_variant_assigned"]
    assert decode_cookie_map(client.cookies.get("warden_ab_variants")) == {HERO: "original"}


def test_one_request_resolving_every_test_keeps_all_assignments(debug_client, app_sink):
    headers = {"Authorization": "Bearer debug-token"}

    info = debug_client.get("/debug/ab", headers=headers).json()

    assert set(info["currentVariants"]) == {HERO, "mission-approach-test", "cta-messaging-test"}
    assert app_sink.names() == ["ab_variant_assigned"] * 3
    assert set(decode_cookie_map(debug_client.cookies.get("warden_ab_variants"))) == {
        HERO,
        "mission-approach-test",
        "cta-messaging-test",
    }

    debug_client.cookies.delete("warden_ab_variants")
    debug_client.get("/debug/ab", headers=headers)
    assert app_sink.names()[3:] == ["ab_variant_viewed"] * 3


def test_debug_info_lists_recent_events(debug_client):
    headers = {"Authorization": "Bearer debug-token"}
    debug_client.get(f"/ab/tests/{HERO}/variant")
    debug_client.get(f"/ab/tests/{HERO}/variant")

    recent = debug_client.get("/debug/ab", headers=headers).json()["recentEvents"]

    assert [e["event"] for e in recent[:2]] == ["ab_variant_assigned", "ab_variant_viewed"]
    assert recent[0]["payload"] == {"test_id": HERO, "variant_id": "original"}
