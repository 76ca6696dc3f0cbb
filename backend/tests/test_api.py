"""Route tests over the ASGI app with a SQLite session."""

import pytest

from app.models import UserProfile

ORGANIZER = {"X-User-Id": "organizer-1"}
PLAYER = {"X-User-Id": "player-1"}

PRACTICE = {
    "event_date": "2025-06-03",
    "start_time": "14:00",
    "end_time": "16:00",
    "location": "Gym A",
    "max_participants": 8,
    "team_name": "Morning Club",
}


async def _create(client, headers=ORGANIZER, **overrides):
    response = await client.post("/api/practices", json={**PRACTICE, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["created"]


class TestHealth:
    @pytest.mark.asyncio
    async def test_root_and_health(self, client):
        assert (await client.get("/")).json()["status"] == "running"
        assert (await client.get("/health")).json()["status"] == "healthy"


class TestCreatePractice:
    @pytest.mark.asyncio
    async def test_weekly_series(self, client):
        response = await client.post(
            "/api/practices",
            json={**PRACTICE, "recurrence_type": "weekly", "recurrence_end_date": "2025-06-24"},
            headers=ORGANIZER,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 4
        assert [p["event_date"] for p in body["created"]] == [
            "2025-06-03",
            "2025-06-10",
            "2025-06-17",
            "2025-06-24",
        ]
        assert len({p["recurrence_group_id"] for p in body["created"]}) == 1

    @pytest.mark.asyncio
    async def test_requires_identity(self, client):
        response = await client.post("/api/practices", json=PRACTICE)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_conflict_lists_existing_practice(self, client):
        [existing] = await _create(client)

        response = await client.post(
            "/api/practices",
            json={**PRACTICE, "start_time": "15:00", "end_time": "17:00"},
            headers={"X-User-Id": "organizer-2"},
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["success"] is False
        assert detail["conflicts"][0]["practice_id"] == existing["id"]
        assert detail["conflicts"][0]["label"] == "Morning Club"
        assert len((await client.get("/api/practices")).json()["practices"]) == 1

    @pytest.mark.asyncio
    async def test_back_to_back(self, client):
        await _create(client)
        await _create(client, start_time="16:00", end_time="18:00")

    @pytest.mark.asyncio
    async def test_validation_error_names_field(self, client):
        response = await client.post(
            "/api/practices", json={**PRACTICE, "end_time": "13:00"}, headers=ORGANIZER
        )

        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "end_time"

    @pytest.mark.asyncio
    async def test_unsupported_recurrence(self, client):
        response = await client.post(
            "/api/practices", json={**PRACTICE, "recurrence_type": "daily"}, headers=ORGANIZER
        )

        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "recurrence_type"

    @pytest.mark.asyncio
    async def test_organizer_display_name_is_copied(self, client, db_session):
        db_session.add(UserProfile(user_id="organizer-1", display_name="Coach Ken"))
        await db_session.commit()

        [practice] = await _create(client)

        assert practice["display_name"] == "Coach Ken"


class TestEditPractice:
    @pytest.mark.asyncio
    async def test_get_update_delete(self, client):
        [practice] = await _create(client)
        url = f"/api/practices/{practice['id']}"

        fetched = (await client.get(url)).json()
        assert fetched["signup_count"] == 0

        response = await client.patch(url, json={"fee": "500"}, headers=ORGANIZER)
        assert response.status_code == 200
        assert response.json()["practice"]["fee"] == "500"

        assert (await client.patch(url, json={"fee": "0"}, headers=PLAYER)).status_code == 404

        assert (await client.delete(url, headers=ORGANIZER)).status_code == 200
        assert (await client.get(url)).status_code == 404

    @pytest.mark.asyncio
    async def test_change_series_end(self, client):
        created = await _create(client, recurrence_type="weekly", recurrence_end_date="2025-06-24")
        group_id = created[0]["recurrence_group_id"]

        response = await client.patch(
            f"/api/recurrence-groups/{group_id}", json={"end_date": "2025-06-10"}, headers=ORGANIZER
        )

        assert response.status_code == 200
        assert response.json()["deleted"] == 2
        listed = (await client.get("/api/practices")).json()["practices"]
        assert [p["event_date"] for p in listed] == ["2025-06-03", "2025-06-10"]

    @pytest.mark.asyncio
    async def test_google_calendar_url(self, client):
        [practice] = await _create(client)

        response = await client.get(f"/api/practices/{practice['id']}/google-calendar-url")

        assert response.json()["url"].startswith("https://calendar.google.com/calendar/render?")

    @pytest.mark.asyncio
    async def test_list_limit_bounds(self, client):
        await _create(client)

        assert (await client.get("/api/practices", params={"limit": -1})).status_code == 422
        assert (await client.get("/api/practices", params={"limit": 501})).status_code == 422
        assert len((await client.get("/api/practices", params={"limit": 1})).json()["practices"]) == 1


class TestParticipation:
    @pytest.mark.asyncio
    async def test_join_comment_like_cancel(self, client):
        [practice] = await _create(client)
        base = f"/api/practices/{practice['id']}"

        joined = await client.post(f"{base}/signup", json={"message": "Count me in"}, headers=PLAYER)
        assert joined.status_code == 201
        assert joined.json()["signup_count"] == 1
        assert (await client.post(f"{base}/signup", headers=PLAYER)).status_code == 409

        posted = await client.post(f"{base}/comments", json={"comment": "Bring balls?"}, headers=ORGANIZER)
        assert posted.status_code == 201
        comment_id = posted.json()["id"]

        assert (await client.put(f"/api/comments/{comment_id}/like", headers=PLAYER)).json()["liked"] is True
        assert (await client.put(f"/api/comments/{comment_id}/like", headers=PLAYER)).status_code == 200

        thread = (await client.get(f"{base}/comments", headers=PLAYER)).json()["comments"]
        assert [(c["type"], c["comment"]) for c in thread] == [
            ("join", "Count me in"),
            ("comment", "Bring balls?"),
        ]
        assert thread[1]["like_count"] == 1
        assert thread[1]["liked_by_me"] is True

        await client.delete(f"/api/comments/{comment_id}/like", headers=PLAYER)
        cancelled = await client.delete(f"{base}/signup", headers=PLAYER)
        assert cancelled.json()["signup_count"] == 0

        thread = (await client.get(f"{base}/comments")).json()["comments"]
        assert thread[1]["like_count"] == 0
        assert thread[-1]["type"] == "cancel"

    @pytest.mark.asyncio
    async def test_unknown_practice(self, client):
        missing = "00000000-0000-0000-0000-000000000000"
        assert (await client.post(f"/api/practices/{missing}/signup", headers=PLAYER)).status_code == 404
        assert (await client.put(f"/api/comments/{missing}/like", headers=PLAYER)).status_code == 404


class TestCalendarFeed:
    @pytest.mark.asyncio
    async def test_feed_lists_signed_up_practices(self, client):
        [practice] = await _create(client)
        await client.post(f"/api/practices/{practice['id']}/signup", headers=PLAYER)

        issued = await client.post("/api/me/calendar-feed", headers=PLAYER)
        url = issued.json()["url"]
        assert "/api/calendar/feed?token=" in url
        token = url.split("token=", 1)[1]

        feed = await client.get("/api/calendar/feed", params={"token": token})

        assert feed.status_code == 200
        assert feed.headers["content-type"].startswith("text/calendar")
        assert feed.headers["cache-control"].startswith("private, max-age=")
        assert f"UID:{practice['id']}@pingpong-hub" in feed.text

    @pytest.mark.asyncio
    async def test_feed_token_required(self, client):
        assert (await client.get("/api/calendar/feed")).status_code == 400
        assert (await client.get("/api/calendar/feed", params={"token": "nope"})).status_code == 404


class TestProfile:
    @pytest.mark.asyncio
    async def test_saved_display_name_is_used_afterwards(self, client):
        assert (await client.get("/api/me/profile", headers=ORGANIZER)).status_code == 404

        saved = await client.put(
            "/api/me/profile",
            json={"display_name": "Coach Ken", "racket": "Timo Boll ALC", "dominant_hand": "right"},
            headers=ORGANIZER,
        )
        assert saved.status_code == 200
        assert saved.json()["profile"]["racket"] == "Timo Boll ALC"

        [practice] = await _create(client)
        assert practice["display_name"] == "Coach Ken"

        base = f"/api/practices/{practice['id']}"
        posted = await client.post(f"{base}/comments", json={"comment": "Welcome"}, headers=ORGANIZER)
        assert posted.json()["display_name"] == "Coach Ken"

        fetched = (await client.get("/api/me/profile", headers=ORGANIZER)).json()
        assert fetched["display_name"] == "Coach Ken"
        assert fetched["forehand_rubber"] is None

    @pytest.mark.asyncio
    async def test_profile_requires_identity(self, client):
        assert (await client.put("/api/me/profile", json={"display_name": "x"})).status_code == 401
