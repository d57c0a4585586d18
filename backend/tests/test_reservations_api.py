"""
Tests for the reservation endpoints: auth, validation, conflicts, listing,
edits and deletes over HTTP.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from esports_scheduler.core.security import create_access_token
from esports_scheduler.models.reservation import Reservation

T0 = datetime(2030, 3, 1, 18, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


def iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def payload(team_id, computer_ids, start=T0, end=T0 + HOUR, **extra):
    body = {
        "teamId": team_id,
        "computerIds": computer_ids,
        "startsAt": iso(start),
        "endsAt": iso(end),
    }
    body.update(extra)
    return body


async def book(client, headers, team_id, computer_ids, start=T0, end=T0 + HOUR):
    response = await client.post(
        "/api/v1/reservations",
        json=payload(team_id, computer_ids, start, end),
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_reservation_group(client: AsyncClient, admin_headers, admin_id, computers, team_id):
    """A booking over two computers comes back as one camelCase group."""
    response = await client.post(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-02"], computers["PC-01"]]),
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["teamId"] == team_id
    assert data["team"] == {"name": "Valorant A", "gameTitle": "Valorant"}
    assert [c["label"] for c in data["computers"]] == ["PC-01", "PC-02"]
    assert datetime.fromisoformat(data["startsAt"]) == T0
    assert datetime.fromisoformat(data["endsAt"]) == T0 + HOUR
    assert data["createdBy"]["id"] == admin_id
    assert data["groupId"] == data["id"]


@pytest.mark.asyncio
async def test_create_accepts_single_computer_id(client: AsyncClient, admin_headers, computers, team_id):
    body = payload(team_id, None, computerId=computers["PC-05"])
    del body["computerIds"]
    response = await client.post("/api/v1/reservations", json=body, headers=admin_headers)
    assert response.status_code == 201
    assert [c["label"] for c in response.json()["computers"]] == ["PC-05"]


@pytest.mark.asyncio
async def test_create_creator_is_caller_not_payload(client: AsyncClient, admin_headers, admin_id, computers, team_id):
    body = payload(team_id, [computers["PC-01"]], createdByUserId="someone-else")
    response = await client.post("/api/v1/reservations", json=body, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["createdBy"]["id"] == admin_id


@pytest.mark.asyncio
async def test_create_unauthenticated(client: AsyncClient, computers, team_id):
    """No bearer token returns 401."""
    response = await client.post("/api/v1/reservations", json=payload(team_id, [computers["PC-01"]]))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_invalid_token(client: AsyncClient, computers, team_id):
    response = await client.post(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-01"]]),
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_as_non_admin_forbidden(client: AsyncClient, viewer_headers, computers, team_id):
    response = await client.post(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-01"]]),
        headers=viewer_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_with_stale_admin_token(client: AsyncClient, computers, team_id):
    """A valid admin token for a user that no longer exists is told to sign in again."""
    token = create_access_token(data={"sub": "deleted-admin", "role": "ADMIN"})
    response = await client.post(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-01"]]),
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401
    assert "sign back in" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_inverted_interval(client: AsyncClient, admin_headers, computers, team_id):
    response = await client.post(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-01"]], start=T0 + HOUR, end=T0),
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "startsAt must be before endsAt"


@pytest.mark.asyncio
async def test_create_zero_length_interval(client: AsyncClient, admin_headers, computers, team_id):
    response = await client.post(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-01"]], start=T0, end=T0),
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["teamId", "computerIds", "startsAt", "endsAt"])
async def test_create_missing_field(client: AsyncClient, admin_headers, computers, team_id, missing):
    body = payload(team_id, [computers["PC-01"]])
    del body[missing]
    response = await client.post("/api/v1/reservations", json=body, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_unparseable_datetime(client: AsyncClient, admin_headers, computers, team_id):
    body = payload(team_id, [computers["PC-01"]])
    body["startsAt"] = "next tuesday"
    response = await client.post("/api/v1/reservations", json=body, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid payload"


@pytest.mark.asyncio
async def test_create_unknown_team(client: AsyncClient, admin_headers, computers):
    response = await client.post(
        "/api/v1/reservations",
        json=payload("team-nobody", [computers["PC-01"]]),
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "teamId does not exist"


@pytest.mark.asyncio
async def test_create_inactive_computer(client: AsyncClient, admin_headers, inactive_computer_id, team_id):
    response = await client.post(
        "/api/v1/reservations",
        json=payload(team_id, [inactive_computer_id]),
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert str(inactive_computer_id) in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_conflict_lists_labels(client: AsyncClient, admin_headers, computers, team_id, other_team_id):
    """Overlap on any requested computer returns 409 naming the taken computers."""
    await book(client, admin_headers, team_id, [computers["PC-03"], computers["PC-04"]])

    response = await client.post(
        "/api/v1/reservations",
        json=payload(
            other_team_id,
            [computers["PC-04"], computers["PC-05"]],
            start=T0 + timedelta(minutes=30),
            end=T0 + 2 * HOUR,
        ),
        headers=admin_headers,
    )
    assert response.status_code == 409
    data = response.json()
    assert data["detail"] == "Already reserved for: PC-04"
    assert data["labels"] == ["PC-04"]

    listing = await client.get("/api/v1/reservations")
    assert {r["computerId"] for r in listing.json()} == {computers["PC-03"], computers["PC-04"]}


@pytest.mark.asyncio
async def test_adjacent_bookings_succeed(client: AsyncClient, admin_headers, computers, team_id):
    await book(client, admin_headers, team_id, [computers["PC-01"]], T0, T0 + HOUR)
    await book(client, admin_headers, team_id, [computers["PC-01"]], T0 + HOUR, T0 + 2 * HOUR)


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_list_reservations_is_public(client: AsyncClient, admin_headers, computers, team_id):
    await book(client, admin_headers, team_id, [computers["PC-01"], computers["PC-02"]])

    response = await client.get("/api/v1/reservations")
    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 2
    assert rows[0]["groupId"] == rows[1]["groupId"]
    assert rows[0]["computer"]["label"] == "PC-01"
    assert rows[0]["status"] == "CONFIRMED"


@pytest.mark.asyncio
async def test_list_grouped_folds_rows(client: AsyncClient, admin_headers, computers, team_id, other_team_id):
    first = await book(client, admin_headers, team_id, [computers["PC-01"], computers["PC-02"]])
    second = await book(client, admin_headers, other_team_id, [computers["PC-03"]], T0 + HOUR, T0 + 2 * HOUR)

    response = await client.get("/api/v1/reservations", params={"grouped": 1})
    assert response.status_code == 200
    groups = response.json()
    assert [g["id"] for g in groups] == [first["id"], second["id"]]
    assert [c["label"] for c in groups[0]["computers"]] == ["PC-01", "PC-02"]


@pytest.mark.asyncio
async def test_list_grouped_by_computer_keeps_siblings(client: AsyncClient, admin_headers, computers, team_id):
    group = await book(client, admin_headers, team_id, [computers["PC-01"], computers["PC-02"]])
    await book(client, admin_headers, team_id, [computers["PC-09"]])

    response = await client.get(
        "/api/v1/reservations", params={"grouped": 1, "computerId": computers["PC-02"]}
    )
    groups = response.json()
    assert len(groups) == 1
    assert groups[0]["id"] == group["id"]
    assert [c["label"] for c in groups[0]["computers"]] == ["PC-01", "PC-02"]


@pytest.mark.asyncio
async def test_list_time_window_filter(client: AsyncClient, admin_headers, computers, team_id):
    await book(client, admin_headers, team_id, [computers["PC-01"]], T0, T0 + HOUR)
    await book(client, admin_headers, team_id, [computers["PC-01"]], T0 + 3 * HOUR, T0 + 4 * HOUR)

    response = await client.get(
        "/api/v1/reservations",
        params={"start": iso(T0 + HOUR), "end": iso(T0 + 3 * HOUR + timedelta(minutes=1))},
    )
    rows = response.json()
    assert len(rows) == 1
    assert datetime.fromisoformat(rows[0]["startsAt"]) == T0 + 3 * HOUR


@pytest.mark.asyncio
async def test_list_ignores_half_window(client: AsyncClient, admin_headers, computers, team_id):
    """start without end is not a filter."""
    await book(client, admin_headers, team_id, [computers["PC-01"]], T0, T0 + HOUR)
    response = await client.get("/api/v1/reservations", params={"start": iso(T0 + 5 * HOUR)})
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_list_legacy_rows_grouped_by_composite_key(
    client: AsyncClient, db_session, computers, team_id, admin_id
):
    db_session.add_all(
        [
            Reservation(
                group_id=None,
                team_id=team_id,
                computer_id=computers[label],
                starts_at=T0,
                ends_at=T0 + HOUR,
                created_by_user_id=admin_id,
            )
            for label in ("PC-07", "PC-08")
        ]
    )
    await db_session.commit()

    response = await client.get("/api/v1/reservations", params={"grouped": 1})
    groups = response.json()
    assert len(groups) == 1
    assert groups[0]["id"].startswith("legacy:")
    assert groups[0]["groupId"] is None
    assert [c["label"] for c in groups[0]["computers"]] == ["PC-07", "PC-08"]


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_group_keeps_creator(
    client: AsyncClient, admin_headers, second_admin_headers, admin_id, computers, team_id, other_team_id
):
    """An edit by a different admin moves the booking but keeps the original creator."""
    group = await book(client, admin_headers, team_id, [computers["PC-01"], computers["PC-02"]])

    response = await client.put(
        "/api/v1/reservations",
        json=payload(other_team_id, [computers["PC-06"]], T0 + HOUR, T0 + 2 * HOUR, groupId=group["id"]),
        headers=second_admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == group["id"]
    assert data["teamId"] == other_team_id
    assert [c["label"] for c in data["computers"]] == ["PC-06"]
    assert data["createdBy"]["id"] == admin_id

    rows = (await client.get("/api/v1/reservations")).json()
    assert [r["computerId"] for r in rows] == [computers["PC-06"]]


@pytest.mark.asyncio
async def test_update_over_own_slot(client: AsyncClient, admin_headers, computers, team_id):
    group = await book(client, admin_headers, team_id, [computers["PC-01"]], T0, T0 + 2 * HOUR)
    response = await client.put(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-01"]], T0 + HOUR, T0 + 3 * HOUR, groupId=group["id"]),
        headers=admin_headers,
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_update_conflict(client: AsyncClient, admin_headers, computers, team_id):
    await book(client, admin_headers, team_id, [computers["PC-01"]])
    group = await book(client, admin_headers, team_id, [computers["PC-02"]])

    response = await client.put(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-01"], computers["PC-02"]], groupId=group["id"]),
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["labels"] == ["PC-01"]


@pytest.mark.asyncio
async def test_update_unknown_group(client: AsyncClient, admin_headers, computers, team_id):
    response = await client.put(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-01"]], groupId="does-not-exist"),
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_without_group_id(client: AsyncClient, admin_headers, computers, team_id):
    response = await client.put(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-01"]]),
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_as_non_admin_forbidden(client: AsyncClient, viewer_headers, computers, team_id):
    response = await client.put(
        "/api/v1/reservations",
        json=payload(team_id, [computers["PC-01"]], groupId="whatever"),
        headers=viewer_headers,
    )
    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_delete_group(client: AsyncClient, admin_headers, computers, team_id):
    group = await book(client, admin_headers, team_id, [computers["PC-01"], computers["PC-02"]])

    response = await client.delete(
        "/api/v1/reservations", params={"groupId": group["id"]}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json() == {"deleted": 2}
    assert (await client.get("/api/v1/reservations")).json() == []


@pytest.mark.asyncio
async def test_delete_group_missing_id(client: AsyncClient, admin_headers, seeded):
    response = await client.delete("/api/v1/reservations", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_unknown_group(client: AsyncClient, admin_headers, seeded):
    response = await client.delete(
        "/api/v1/reservations", params={"groupId": "nope"}, headers=admin_headers
    )
    assert response.status_code == 404
    assert response.json()["deleted"] == 0


@pytest.mark.asyncio
async def test_delete_group_unauthenticated(client: AsyncClient, seeded):
    response = await client.delete("/api/v1/reservations", params={"groupId": "nope"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_delete_single_row(client: AsyncClient, admin_headers, computers, team_id):
    await book(client, admin_headers, team_id, [computers["PC-01"], computers["PC-02"]])
    rows = (await client.get("/api/v1/reservations")).json()

    response = await client.delete(f"/api/v1/reservations/{rows[0]['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"ok": True}

    remaining = (await client.get("/api/v1/reservations")).json()
    assert [r["id"] for r in remaining] == [rows[1]["id"]]

    again = await client.delete(f"/api/v1/reservations/{rows[0]['id']}", headers=admin_headers)
    assert again.status_code == 404
