"""Tests for event creation, joining by code / QR, and sharing."""
import re

from tests.conftest import auth, create_test_event, event_with_guest, join_test_event, sign_up_user

JOIN_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6}$")


class TestEventCreate:

    def test_create_event(self, client):
        organizer = sign_up_user(client, name="Organizer")
        event = create_test_event(client, organizer, title="Ducks vs Them Tailgate")
        assert event["title"] == "Ducks vs Them Tailgate"
        assert event["date"] == "2026-11-01"
        assert event["created_by"] == organizer["user_id"]
        assert JOIN_CODE_PATTERN.match(event["join_code"])

    def test_creator_is_first_attendee(self, client):
        organizer = sign_up_user(client, name="Organizer")
        event = create_test_event(client, organizer)
        assert event["attendees"] == [organizer["user_id"]]

    def test_missing_fields_rejected(self, client):
        organizer = sign_up_user(client, name="Organizer")
        resp = client.post("/api/events/", json={"title": "Tailgate", "description": "  "},
                           headers=auth(organizer))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Please fill in all fields."

    def test_bad_date_rejected(self, client):
        organizer = sign_up_user(client, name="Organizer")
        resp = client.post("/api/events/", json={
            "title": "Tailgate", "description": "Food", "date": "next saturday",
        }, headers=auth(organizer))
        assert resp.status_code == 400

    def test_requires_session(self, client):
        resp = client.post("/api/events/", json={"title": "t", "description": "d", "date": "2026-11-01"})
        assert resp.status_code == 401

    def test_list_my_events(self, client):
        organizer, guest, event = event_with_guest(client)
        other = sign_up_user(client, name="Other")
        create_test_event(client, other, title="Someone else's party")

        resp = client.get("/api/events/", headers=auth(guest))
        assert resp.status_code == 200
        assert [e["event_id"] for e in resp.json()] == [event["event_id"]]


class TestJoinByCode:

    def test_join_normalizes_input(self, client):
        organizer = sign_up_user(client, name="Organizer")
        guest = sign_up_user(client, name="Guest")
        event = create_test_event(client, organizer, title="Potluck")

        resp = client.post("/api/events/join", json={"join_code": f"  {event['join_code'].lower()} "},
                           headers=auth(guest))
        assert resp.status_code == 200
        data = resp.json()
        assert data["already_joined"] is False
        assert data["message"] == 'You\'ve joined "Potluck"!'
        assert guest["user_id"] in data["event"]["attendees"]

    def test_join_is_idempotent(self, client):
        organizer, guest, event = event_with_guest(client)
        before = client.get(f"/api/events/{event['event_id']}", headers=auth(guest)).json()["attendees"]

        data = join_test_event(client, guest, event["join_code"])
        assert data["already_joined"] is True
        assert data["message"] == "You're already part of this event!"
        assert data["event"]["attendees"] == before
        assert before.count(guest["user_id"]) == 1

    def test_creator_rejoining_is_a_no_op(self, client):
        organizer = sign_up_user(client, name="Organizer")
        event = create_test_event(client, organizer)
        data = join_test_event(client, organizer, event["join_code"])
        assert data["already_joined"] is True
        assert data["event"]["attendees"] == [organizer["user_id"]]

    def test_unknown_code(self, client):
        guest = sign_up_user(client, name="Guest")
        resp = client.post("/api/events/join", json={"join_code": "ZZZZZZ"}, headers=auth(guest))
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    def test_blank_code(self, client):
        guest = sign_up_user(client, name="Guest")
        resp = client.post("/api/events/join", json={"join_code": "   "}, headers=auth(guest))
        assert resp.status_code == 400


class TestJoinByQR:

    def test_prefixed_payload(self, client):
        organizer = sign_up_user(client, name="Organizer")
        guest = sign_up_user(client, name="Guest")
        event = create_test_event(client, organizer)

        resp = client.post("/api/events/join/qr", json={"payload": f"GRUBIO:{event['join_code']}"},
                           headers=auth(guest))
        assert resp.status_code == 200
        assert guest["user_id"] in resp.json()["event"]["attendees"]

    def test_bare_payload_is_the_code(self, client):
        organizer = sign_up_user(client, name="Organizer")
        guest = sign_up_user(client, name="Guest")
        event = create_test_event(client, organizer)

        resp = client.post("/api/events/join/qr", json={"payload": event["join_code"].lower()},
                           headers=auth(guest))
        assert resp.status_code == 200
        assert resp.json()["already_joined"] is False

    def test_unknown_qr(self, client):
        guest = sign_up_user(client, name="Guest")
        resp = client.post("/api/events/join/qr", json={"payload": "GRUBIO:NOPE00"}, headers=auth(guest))
        assert resp.status_code == 404
        assert resp.json()["detail"] == "No event found with that QR code."


class TestEventAccess:

    def test_share(self, client):
        organizer = sign_up_user(client, name="Organizer")
        event = create_test_event(client, organizer, title="Potluck")
        resp = client.get(f"/api/events/{event['event_id']}/share", headers=auth(organizer))
        assert resp.status_code == 200
        data = resp.json()
        assert data["qr_payload"] == f"GRUBIO:{event['join_code']}"
        assert data["message"] == f'Join my event "Potluck" on Grub.io! Use code: {event["join_code"]}'

    def test_non_attendee_cannot_view(self, client):
        organizer = sign_up_user(client, name="Organizer")
        outsider = sign_up_user(client, name="Outsider")
        event = create_test_event(client, organizer)
        resp = client.get(f"/api/events/{event['event_id']}", headers=auth(outsider))
        assert resp.status_code == 403

    def test_missing_event(self, client):
        organizer = sign_up_user(client, name="Organizer")
        resp = client.get("/api/events/00000000-0000-0000-0000-000000000000", headers=auth(organizer))
        assert resp.status_code == 404
