"""End-to-end tests for the notification feed endpoint against a real database."""
from datetime import datetime, timezone

import pytest

from tests.conftest import create_test_event, create_test_user, make_friends

STARTS = datetime(2030, 1, 1, 18, 0, tzinfo=timezone.utc)
AS_OF = "2030-01-01T17:30:00+00:00"


async def _rsvp(client, event_id, user_id):
    resp = await client.post("/api/attendees/rsvp", json={"event_id": event_id, "user_id": user_id})
    assert resp.status_code == 201


async def _setup(client):
    host = await create_test_user(client, "host", display_name="Hana Host")
    guest = await create_test_user(client, "guest", display_name="Gus Guest")
    await make_friends(client, host["user_id"], guest["user_id"])
    event = await create_test_event(client, host["user_id"], title="Rooftop Party",
                                    visibility="friends_only", starts_at=STARTS)
    await _rsvp(client, event["event_id"], guest["user_id"])
    return host, guest, event


class TestFeedEndpoint:

    @pytest.mark.asyncio
    async def test_guest_gets_reminders(self, client):
        _, guest, event = await _setup(client)
        resp = await client.get(f"/api/notifications/{guest['user_id']}", params={"as_of": AS_OF})
        assert resp.status_code == 200
        data = resp.json()
        eid = event["event_id"]
        assert [item["id"] for item in data["items"]] == [
            f"{eid}-reminder-2", f"{eid}-reminder-1", f"{eid}-reminder-0",
        ]
        assert data["items"][0]["body"] == '"Rooftop Party" is starting in 1 hour!'
        assert all(item["read"] is False for item in data["items"])
        assert "referenced_user_ids" not in data["items"][0]
        assert data["partial"] is False
        assert data["unread_count"] == 3

    @pytest.mark.asyncio
    async def test_host_gets_rsvp_not_reminders(self, client):
        host, _, event = await _setup(client)
        await _rsvp(client, event["event_id"], host["user_id"])

        resp = await client.get(f"/api/notifications/{host['user_id']}", params={"as_of": AS_OF})
        items = resp.json()["items"]
        assert len(items) == 1
        assert items[0]["kind"] == "rsvp"
        assert items[0]["title"] == "RSVP: Rooftop Party"
        assert items[0]["body"] == "Gus has RSVP'ed to your event!"

    @pytest.mark.asyncio
    async def test_rsvp_aggregate(self, client):
        host, _, event = await _setup(client)
        for name in ["ann", "ben", "cal", "dee", "eve"]:
            user = await create_test_user(client, name, display_name=f"{name.title()} Smith")
            await make_friends(client, user["user_id"], host["user_id"])
            await _rsvp(client, event["event_id"], user["user_id"])

        resp = await client.get(f"/api/notifications/{host['user_id']}", params={"as_of": AS_OF})
        [item] = resp.json()["items"]
        assert item["id"] == f"{event['event_id']}-rsvp-ig"
        assert item["kind"] == "rsvp_aggregate"
        assert item["body"] == "Dee, Eve and 4 others have RSVP'ed to your event!"

    @pytest.mark.asyncio
    async def test_pending_invitations_counted(self, client):
        host, guest, _ = await _setup(client)
        other = await create_test_event(client, host["user_id"], title="Brunch", visibility="private",
                                        starts_at=datetime(2030, 2, 1, 11, 0, tzinfo=timezone.utc))
        await client.post("/api/invitations/", json={
            "event_id": other["event_id"],
            "inviter_id": host["user_id"],
            "invitee_ids": [guest["user_id"]],
        })

        resp = await client.get(f"/api/notifications/{guest['user_id']}", params={"as_of": AS_OF})
        data = resp.json()
        assert [inv["event_title"] for inv in data["invitations"]] == ["Brunch"]
        assert len(data["items"]) == 3
        assert data["unread_count"] == 4

    @pytest.mark.asyncio
    async def test_search(self, client):
        _, guest, event = await _setup(client)
        resp = await client.get(
            f"/api/notifications/{guest['user_id']}",
            params={"as_of": AS_OF, "q": "IN 2 HOURS"},
        )
        assert [item["id"] for item in resp.json()["items"]] == [f"{event['event_id']}-reminder-1"]

    @pytest.mark.asyncio
    async def test_before_any_window(self, client):
        _, guest, _ = await _setup(client)
        resp = await client.get(
            f"/api/notifications/{guest['user_id']}",
            params={"as_of": "2029-12-30T12:00:00+00:00"},
        )
        assert resp.json()["items"] == []

    @pytest.mark.asyncio
    async def test_cancelled_rsvp_disappears_on_next_fetch(self, client):
        host, guest, event = await _setup(client)
        url = f"/api/notifications/{host['user_id']}"
        assert len((await client.get(url, params={"as_of": AS_OF})).json()["items"]) == 1

        await client.delete("/api/attendees/rsvp", params={"event_id": event["event_id"], "user_id": guest["user_id"]})
        assert (await client.get(url, params={"as_of": AS_OF})).json()["items"] == []
