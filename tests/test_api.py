"""HTTP mapping: status codes, error bodies and end-to-end flows."""


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def create_bounty(client, fam, **fields):
    body = {"title": "Wash Dishes", "emoji": "🍽️", "rewardType": "TICKETS", "rewardValue": "5"}
    body.update(fields)
    r = client.post(f"/families/{fam['family_id']}/bounties", json=body, headers=fam["parent_headers"])
    assert r.status_code == 201, r.text
    return r.json()


def assign(client, fam, bounty_id, child):
    r = client.post(
        f"/families/{fam['family_id']}/bounty-assignments",
        json={"bountyId": bounty_id, "userId": fam[child]["userId"]},
        headers=fam["parent_headers"],
    )
    assert r.status_code == 201, r.text
    return r.json()


# --- Auth & errors ---

def test_requests_without_token_are_unauthenticated(client, api_family):
    r = client.get(f"/families/{api_family['family_id']}/users")
    assert r.status_code == 401
    assert r.json() == {"error": "UNAUTHENTICATED"}


def test_garbage_token_is_rejected(client, api_family):
    r = client.get(f"/families/{api_family['family_id']}/users", headers=auth("nope"))
    assert r.status_code == 401
    assert r.json() == {"error": "INVALID_TOKEN"}


def test_missing_fields(client):
    r = client.post("/auth/register", json={"username": "x"})
    assert r.status_code == 400
    assert r.json()["error"] == "MISSING_FIELDS"


def test_duplicate_username_is_case_insensitive(client, api_family):
    r = client.post(
        "/auth/register",
        json={"username": "ALICE", "password": "pw", "displayName": "A", "familyName": "Other"},
    )
    assert r.status_code == 409
    assert r.json() == {"error": "USERNAME_TAKEN"}


def test_login(client, api_family):
    r = client.post("/auth/login", json={"username": "Alice", "password": "secret"})
    assert r.status_code == 200
    assert r.json()["userId"] == api_family["alice"]["userId"]

    r = client.post("/auth/login", json={"username": "alice", "password": "wrong"})
    assert r.status_code == 400
    assert r.json() == {"error": "INVALID_CREDENTIALS"}


def test_invalid_join_code(client):
    r = client.post(
        "/auth/join",
        json={"joinCode": "ZZZZZZ", "username": "kid", "password": "pw", "displayName": "Kid"},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "INVALID_JOIN_CODE"}


def test_me_shows_join_code_to_parents_only(client, api_family):
    parent = client.get("/auth/me", headers=api_family["parent_headers"]).json()
    child = client.get("/auth/me", headers=api_family["alice_headers"]).json()

    assert parent["role"] == "PARENT"
    assert parent["familyName"] == "Smith"
    assert parent["joinCode"] == api_family["parent"]["joinCode"]
    assert child["role"] == "CHILD"
    assert child["joinCode"] is None


def test_regenerate_join_code(client, api_family):
    r = client.post("/auth/join-code", headers=api_family["parent_headers"])
    assert r.status_code == 200
    assert r.json()["joinCode"] != api_family["parent"]["joinCode"]

    r = client.post("/auth/join-code", headers=api_family["alice_headers"])
    assert r.status_code == 403
    assert r.json() == {"error": "PARENT_ONLY"}


def test_other_family_is_forbidden(client, api_family):
    r = client.post(
        "/auth/register",
        json={"username": "dad", "password": "pw", "displayName": "Dad", "familyName": "Jones"},
    )
    outsider = auth(r.json()["token"])
    r = client.get(f"/families/{api_family['family_id']}/users", headers=outsider)
    assert r.status_code == 403
    assert r.json() == {"error": "FORBIDDEN"}


# --- Members ---

def test_list_and_delete_members(client, api_family):
    fid = api_family["family_id"]
    users = client.get(f"/families/{fid}/users", headers=api_family["parent_headers"]).json()
    assert {u["username"] for u in users} == {"mom", "alice", "bob"}

    bob_id = api_family["bob"]["userId"]
    r = client.delete(f"/users/{bob_id}", headers=api_family["parent_headers"])
    assert r.status_code == 204
    users = client.get(f"/families/{fid}/users", headers=api_family["parent_headers"]).json()
    assert {u["username"] for u in users} == {"mom", "alice"}


def test_parent_cannot_delete_self(client, api_family):
    r = client.delete(f"/users/{api_family['parent']['userId']}", headers=api_family["parent_headers"])
    assert r.status_code == 400
    assert r.json() == {"error": "CANNOT_DELETE_SELF"}


def test_parent_adds_member_directly(client, api_family):
    r = client.post(
        f"/families/{api_family['family_id']}/users",
        json={"username": "Carl", "password": "pw", "displayName": "Carl"},
        headers=api_family["parent_headers"],
    )
    assert r.status_code == 201
    assert r.json()["role"] == "CHILD"
    assert r.json()["ticketBalance"] == 0


def test_member_edits_own_profile(client, api_family):
    alice_id = api_family["alice"]["userId"]
    r = client.patch(
        f"/users/{alice_id}",
        json={"displayName": " Ali ", "avatarColor": "bg-teal-400", "username": " Ali2 "},
        headers=api_family["alice_headers"],
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert (body["displayName"], body["avatarColor"], body["username"]) == ("Ali", "bg-teal-400", "ali2")
    assert body["role"] == "CHILD"


def test_profile_edit_rules(client, api_family):
    alice_id = api_family["alice"]["userId"]
    bob_id = api_family["bob"]["userId"]

    r = client.patch(f"/users/{bob_id}", json={"displayName": "B"}, headers=api_family["alice_headers"])
    assert (r.status_code, r.json()) == (403, {"error": "PARENT_ONLY"})

    r = client.patch(f"/users/{alice_id}", json={"role": "PARENT"}, headers=api_family["alice_headers"])
    assert (r.status_code, r.json()) == (403, {"error": "PARENT_ONLY"})

    r = client.patch(f"/users/{alice_id}", json={"avatarColor": "bg-black"}, headers=api_family["alice_headers"])
    assert (r.status_code, r.json()) == (400, {"error": "INVALID_AVATAR_COLOR"})

    r = client.patch(f"/users/{alice_id}", json={"username": "BOB"}, headers=api_family["alice_headers"])
    assert (r.status_code, r.json()) == (409, {"error": "USERNAME_TAKEN"})

    r = client.patch("/users/nope", json={"displayName": "x"}, headers=api_family["parent_headers"])
    assert r.status_code == 404

    r = client.patch(f"/users/{bob_id}", json={"role": "PARENT"}, headers=api_family["parent_headers"])
    assert r.status_code == 200
    assert r.json()["role"] == "PARENT"


def test_profile_edit_other_family_is_forbidden(client, api_family):
    r = client.post(
        "/auth/register",
        json={"username": "dad", "password": "pw", "displayName": "Dad", "familyName": "Jones"},
    )
    outsider = auth(r.json()["token"])
    alice_id = api_family["alice"]["userId"]
    r = client.patch(f"/users/{alice_id}", json={"displayName": "x"}, headers=outsider)
    assert (r.status_code, r.json()) == (403, {"error": "FORBIDDEN"})
    r = client.patch(f"/users/{alice_id}/password", json={"newPassword": "x"}, headers=outsider)
    assert (r.status_code, r.json()) == (403, {"error": "FORBIDDEN"})


def test_change_password(client, api_family):
    alice_id = api_family["alice"]["userId"]
    r = client.patch(f"/users/{alice_id}/password", json={}, headers=api_family["alice_headers"])
    assert (r.status_code, r.json()["error"]) == (400, "MISSING_FIELDS")

    r = client.patch(
        f"/users/{alice_id}/password", json={"newPassword": "hunter2"}, headers=api_family["bob_headers"]
    )
    assert r.status_code == 403

    r = client.patch(
        f"/users/{alice_id}/password", json={"newPassword": "hunter2"}, headers=api_family["parent_headers"]
    )
    assert r.status_code == 204
    assert client.post("/auth/login", json={"username": "alice", "password": "secret"}).status_code == 400
    r = client.post("/auth/login", json={"username": "alice", "password": "hunter2"})
    assert r.status_code == 200


# --- Scenario: ticket bounty ---

def test_ticket_bounty_end_to_end(client, api_family):
    bounty = create_bounty(client, api_family)
    assignment = assign(client, api_family, bounty["id"], "alice")
    assert assignment["status"] == "OFFERED"
    assert assignment["bounty"]["title"] == "Wash Dishes"

    aid = assignment["id"]
    r = client.post(f"/bounty-assignments/{aid}/accept", headers=api_family["alice_headers"])
    assert r.json()["status"] == "IN_PROGRESS"
    r = client.post(f"/bounty-assignments/{aid}/complete", headers=api_family["alice_headers"])
    assert r.json()["status"] == "COMPLETED"

    r = client.post(f"/bounty-assignments/{aid}/verify", headers=api_family["parent_headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["ticketsAwarded"] == 5
    assert "prize" not in body
    assert body["assignment"]["status"] == "VERIFIED"

    alice_id = api_family["alice"]["userId"]
    r = client.get(f"/users/{alice_id}/tickets", headers=api_family["alice_headers"])
    assert r.json() == {"userId": alice_id, "ticketBalance": 5}

    history = client.get(
        f"/families/{api_family['family_id']}/history",
        params={"userId": alice_id},
        headers=api_family["parent_headers"],
    ).json()
    assert {"TASK_ASSIGNED", "TASK_ACCEPTED", "TASK_COMPLETED", "VERIFIED_TASK", "EARNED_TICKETS"} == {
        h["action"] for h in history
    }


def test_verify_before_completion_is_invalid(client, api_family):
    bounty = create_bounty(client, api_family)
    assignment = assign(client, api_family, bounty["id"], "alice")
    r = client.post(
        f"/bounty-assignments/{assignment['id']}/verify", headers=api_family["parent_headers"]
    )
    assert r.status_code == 400
    assert r.json() == {"error": "INVALID_STATUS"}


def test_child_cannot_create_bounty(client, api_family):
    r = client.post(
        f"/families/{api_family['family_id']}/bounties",
        json={"title": "x", "emoji": "x", "rewardValue": "x"},
        headers=api_family["alice_headers"],
    )
    assert r.status_code == 403
    assert r.json() == {"error": "PARENT_ONLY"}


def test_ticket_bounty_needs_numeric_value(client, api_family):
    r = client.post(
        f"/families/{api_family['family_id']}/bounties",
        json={"title": "x", "emoji": "x", "rewardType": "TICKETS", "rewardValue": "many"},
        headers=api_family["parent_headers"],
    )
    assert r.status_code == 400
    assert r.json() == {"error": "INVALID_TICKET_AMOUNT"}


def test_ticket_bounty_rejects_superscript_digits(client, api_family):
    r = client.post(
        f"/families/{api_family['family_id']}/bounties",
        json={"title": "x", "emoji": "x", "rewardType": "TICKETS", "rewardValue": "²"},
        headers=api_family["parent_headers"],
    )
    assert r.status_code == 400
    assert r.json() == {"error": "INVALID_TICKET_AMOUNT"}


# --- Scenario: FCFS contention ---

def test_fcfs_loser_gets_not_found(client, api_family):
    bounty = create_bounty(client, api_family, isFcfs=True)
    first = assign(client, api_family, bounty["id"], "alice")
    second = assign(client, api_family, bounty["id"], "bob")

    r = client.post(f"/bounty-assignments/{first['id']}/accept", headers=api_family["alice_headers"])
    assert r.status_code == 200
    r = client.post(f"/bounty-assignments/{second['id']}/accept", headers=api_family["bob_headers"])
    assert r.status_code == 404
    assert r.json() == {"error": "NOT_FOUND"}

    listed = client.get(
        f"/families/{api_family['family_id']}/bounty-assignments", headers=api_family["parent_headers"]
    ).json()
    assert [(a["id"], a["status"]) for a in listed] == [(first["id"], "IN_PROGRESS")]


def test_deleting_bounty_template_removes_assignments(client, api_family):
    bounty = create_bounty(client, api_family)
    assign(client, api_family, bounty["id"], "alice")

    r = client.delete(f"/bounties/{bounty['id']}", headers=api_family["parent_headers"])
    assert r.status_code == 204
    listed = client.get(
        f"/families/{api_family['family_id']}/bounty-assignments", headers=api_family["parent_headers"]
    ).json()
    assert listed == []


def test_update_rejects_null_for_required_columns(client, api_family):
    fid = api_family["family_id"]
    headers = api_family["parent_headers"]
    bounty = create_bounty(client, api_family)
    item = client.post(f"/families/{fid}/store-items", json={"title": "Kite", "cost": 2}, headers=headers).json()
    reward = client.post(
        f"/families/{fid}/rewards", json={"title": "Park", "emoji": "🌳", "type": "ACTIVITY"}, headers=headers
    ).json()

    for url, body in (
        (f"/bounties/{bounty['id']}", {"title": None}),
        (f"/bounties/{bounty['id']}", {"isFcfs": None}),
        (f"/store-items/{item['id']}", {"cost": None}),
        (f"/rewards/{reward['id']}", {"type": None}),
    ):
        r = client.put(url, json=body, headers=headers)
        assert r.status_code == 400, url
        assert r.json()["error"] == "MISSING_FIELDS"

    # nullable columns can still be cleared
    r = client.put(f"/bounties/{bounty['id']}", json={"themeColor": None}, headers=headers)
    assert r.status_code == 200
    assert r.json()["themeColor"] is None
    assert r.json()["title"] == "Wash Dishes"


# --- Rewards ---

def test_reward_claim_reject_approve(client, api_family):
    fid = api_family["family_id"]
    r = client.post(
        f"/families/{fid}/rewards",
        json={"title": "Stay up late", "emoji": "🌙", "type": "PRIVILEGE"},
        headers=api_family["parent_headers"],
    )
    assert r.status_code == 201
    template = r.json()

    r = client.post(
        f"/families/{fid}/assigned-prizes",
        json={"templateId": template["id"], "userId": api_family["alice"]["userId"]},
        headers=api_family["parent_headers"],
    )
    assert r.status_code == 201
    prize = r.json()
    assert prize["status"] == "AVAILABLE"
    assert prize["origin"] == "TEMPLATE"

    pid = prize["id"]
    r = client.post(f"/assigned-prizes/{pid}/claim", headers=api_family["bob_headers"])
    assert r.status_code == 403
    assert r.json() == {"error": "ONLY_ASSIGNEE_CAN_CLAIM"}

    client.post(f"/assigned-prizes/{pid}/claim", headers=api_family["alice_headers"])
    r = client.post(f"/assigned-prizes/{pid}/reject", headers=api_family["parent_headers"])
    assert r.json()["status"] == "AVAILABLE"
    assert r.json()["claimedAt"] is None

    client.post(f"/assigned-prizes/{pid}/claim", headers=api_family["alice_headers"])
    r = client.post(f"/assigned-prizes/{pid}/approve", headers=api_family["parent_headers"])
    assert r.json()["status"] == "REDEEMED"

    # editing the template later leaves the granted prize alone
    client.put(f"/rewards/{template['id']}", json={"title": "Bedtime +1h"}, headers=api_family["parent_headers"])
    prizes = client.get(f"/families/{fid}/assigned-prizes", headers=api_family["parent_headers"]).json()
    assert prizes[0]["title"] == "Stay up late"


# --- Scenario: store purchase ---

def test_store_purchase_end_to_end(client, api_family):
    fid = api_family["family_id"]
    alice_id = api_family["alice"]["userId"]
    r = client.post(
        f"/families/{fid}/store-items",
        json={"title": "Comic book", "cost": 3},
        headers=api_family["parent_headers"],
    )
    assert r.status_code == 201
    item = r.json()

    r = client.post(f"/users/{alice_id}/tickets", json={"amount": 5}, headers=api_family["parent_headers"])
    assert r.json()["ticketBalance"] == 5

    r = client.post(f"/store-items/{item['id']}/purchase", headers=api_family["alice_headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["ticketBalance"] == 2

    prizes = client.get(f"/families/{fid}/assigned-prizes", headers=api_family["parent_headers"]).json()
    assert [(p["id"], p["status"], p["origin"]) for p in prizes] == [
        (body["assignmentId"], "PENDING_APPROVAL", "STORE")
    ]

    parent_id = api_family["parent"]["userId"]
    notes = client.get(f"/users/{parent_id}/notifications", headers=api_family["parent_headers"]).json()
    assert any("Comic book" in n["message"] for n in notes)

    r = client.post(f"/store-items/{item['id']}/purchase", headers=api_family["alice_headers"])
    assert r.status_code == 400
    assert r.json() == {"error": "INSUFFICIENT_TICKETS"}


def test_give_tickets_rejects_bad_amount(client, api_family):
    alice_id = api_family["alice"]["userId"]
    for amount in (0, -2, "abc", 1.5, "²"):
        r = client.post(
            f"/users/{alice_id}/tickets", json={"amount": amount}, headers=api_family["parent_headers"]
        )
        assert r.status_code == 400
        assert r.json() == {"error": "INVALID_AMOUNT"}


# --- Wheel ---

def test_wheel_configuration_and_spin(client, api_family):
    fid = api_family["family_id"]
    headers = api_family["parent_headers"]

    r = client.put(
        f"/families/{fid}/wheel-segments",
        json={"segments": [{"label": "A", "prob": 0.5}, {"label": "B", "prob": 0.3}]},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json() == {"error": "PROBABILITIES_MUST_SUM_TO_ONE"}

    r = client.put(
        f"/families/{fid}/wheel-segments",
        json={"segments": [{"label": "Candy Run", "prob": 1.0, "color": "#FCD34D"}], "spinCost": 2},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["spinCost"] == 2
    assert r.json()["segments"][0]["emoji"] == "🍬"

    assert client.get(f"/families/{fid}/wheel-config", headers=headers).json() == {"spinCost": 2}

    r = client.post(f"/families/{fid}/wheel-segments/spin", headers=api_family["alice_headers"])
    assert r.status_code == 400
    assert r.json() == {"error": "INSUFFICIENT_TICKETS"}

    alice_id = api_family["alice"]["userId"]
    client.post(f"/users/{alice_id}/tickets", json={"amount": 3}, headers=headers)
    r = client.post(f"/families/{fid}/wheel-segments/spin", headers=api_family["alice_headers"])
    assert r.status_code == 200
    body = r.json()
    assert (body["won"], body["prize"], body["emoji"], body["newBalance"]) == (True, "Candy Run", "🍬", 1)


def test_wheel_reset(client, api_family):
    fid = api_family["family_id"]
    r = client.post(f"/families/{fid}/wheel-segments/reset", headers=api_family["parent_headers"])
    assert r.status_code == 200
    assert len(r.json()) == 9
    listed = client.get(f"/families/{fid}/wheel-segments", headers=api_family["alice_headers"]).json()
    assert [s["position"] for s in listed] == list(range(9))


# --- Notifications, push, events ---

def test_notifications_read_flow(client, api_family):
    bounty = create_bounty(client, api_family)
    assign(client, api_family, bounty["id"], "alice")
    alice_id = api_family["alice"]["userId"]
    headers = api_family["alice_headers"]

    notes = client.get(f"/users/{alice_id}/notifications", headers=headers).json()
    assert len(notes) == 1
    r = client.post(f"/notifications/{notes[0]['id']}/read", headers=headers)
    assert r.json()["isRead"] is True
    assert client.get(f"/users/{alice_id}/notifications", headers=headers).json() == []

    r = client.get(f"/users/{alice_id}/notifications", headers=api_family["bob_headers"])
    assert r.status_code == 403


def test_push_subscription_upsert(client, api_family):
    body = {"endpoint": "https://push.example/abc", "keys": {"p256dh": "k", "auth": "a"}}
    r = client.post("/push/subscribe", json=body, headers=api_family["alice_headers"])
    assert r.status_code == 201
    r = client.post("/push/subscribe", json=body, headers=api_family["alice_headers"])
    assert r.status_code == 200
    r = client.post("/push/unsubscribe", json={"endpoint": body["endpoint"]}, headers=api_family["alice_headers"])
    assert r.status_code == 204


def test_push_public_key_when_unconfigured(client):
    r = client.get("/push/public-key")
    assert r.status_code == 404
    assert r.json() == {"error": "PUSH_NOT_CONFIGURED"}


def test_event_stream_requires_token(client):
    r = client.get("/events")
    assert r.status_code == 401
    r = client.get("/events", params={"token": "bad"})
    assert r.status_code == 401
    assert r.json() == {"error": "INVALID_TOKEN"}
