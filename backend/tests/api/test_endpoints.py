"""
API エンドポイントテスト

DB と認証は dependency_overrides で FakeSession・固定ユーザーに差し替える。
lifespan（テーブル作成）を走らせないため TestClient は with 文なしで使う。
"""
from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from program_planner.api.deps import get_current_user, get_current_user_optional
from program_planner.core.providers.amplify import AmplifyAPIError
from program_planner.core.security import sign_unsubscribe
from program_planner.db.base import get_async_session
from program_planner.main import app
from program_planner.services.assistant import TECHNICAL_DIFFICULTIES_REPLY
from tests.conftest import FakeSession, build_event, build_plan, build_policy, build_user


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session, user):
    async def override_session():
        yield session

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_current_user_optional] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(session):
    async def override_session():
        yield session

    app.dependency_overrides[get_async_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signed_in_client(session, user):
    """任意認証のルートにもトークン付きで呼び出すクライアント"""
    async def override_session():
        yield session

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_current_user_optional] = lambda: user
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    def test_healthz(self, client):
        with patch(
            "program_planner.main.check_database_connection",
            new=AsyncMock(return_value=False),
        ):
            response = client.get("/healthz")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["database"] == "disconnected"
        assert body["amplify"] in {"enabled", "disabled"}
        assert "timestamp" in body

    def test_trace_id_header_is_propagated(self, client):
        with patch(
            "program_planner.main.check_database_connection",
            new=AsyncMock(return_value=True),
        ):
            response = client.get("/healthz", headers={"X-Trace-ID": "frontend-trace-01"})
        assert response.headers["X-Trace-ID"] == "frontend-trace-01"


class TestAuth:
    def test_login_requires_all_fields(self, client):
        response = client.post(
            "/api/auth/login",
            json={"vanderbilt_id": "doej1", "email": "jane@vanderbilt.edu", "first_name": "Jane"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields"

    def test_login_existing_user_returns_token(self, client, session, user):
        session.results.append([user])
        response = client.post(
            "/api/auth/login",
            json={
                "vanderbilt_id": user.vanderbilt_id,
                "email": user.email,
                "first_name": user.first_name,
                "last_name": user.last_name,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == str(user.id)
        assert body["token"]
        assert session.added == []

    def test_protected_route_without_token(self, anonymous_client):
        response = anonymous_client.get("/api/auth/me")
        assert response.status_code == 401


class TestPlans:
    def test_cannot_list_another_users_plans(self, client):
        response = client.get("/api/plans", params={"user_id": str(uuid.uuid4())})
        assert response.status_code == 403

    def test_lists_own_plans(self, client, session, user):
        session.results.append([build_plan(user_id=user.id)])
        response = client.get("/api/plans", params={"user_id": str(user.id)})

        assert response.status_code == 200
        assert [p["title"] for p in response.json()] == ["Spring Concert"]

    def test_create_requires_location(self, client):
        response = client.post("/api/plans", json={"title": "Mixer", "program_type": "mixer"})
        assert response.status_code == 422

    def test_partial_update(self, client, session, user):
        plan = build_plan(user_id=user.id)
        session.objects[plan.id] = plan

        response = client.put(
            f"/api/plans/{plan.id}",
            json={"status": "approved", "checklist": [{"task": "Book room", "completed": True}]},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert plan.title == "Spring Concert"
        assert plan.checklist[0]["completed"] is True

    def test_other_users_plan_is_forbidden(self, client, session):
        plan = build_plan()
        session.objects[plan.id] = plan
        assert client.delete(f"/api/plans/{plan.id}").status_code == 403
        assert session.deleted == []

    def test_delete(self, client, session, user):
        plan = build_plan(user_id=user.id)
        session.objects[plan.id] = plan

        assert client.delete(f"/api/plans/{plan.id}").status_code == 204
        assert session.deleted == [plan]

    def test_missing_plan(self, client):
        assert client.get(f"/api/plans/{uuid.uuid4()}").status_code == 404


class TestChat:
    def test_empty_message(self, client):
        response = client.post("/api/chat", json={"message": "   "})
        assert response.status_code == 400
        assert response.json()["detail"] == "Message is required"

    def test_reply_is_saved_to_plan_history(self, signed_in_client, session, user, mock_llm):
        provider = mock_llm(preset_text="Reserve the space through EMS first.")
        plan = build_plan(user_id=user.id, program_type="mixer")
        session.objects[plan.id] = plan

        response = signed_in_client.post(
            "/api/chat",
            json={"message": "Where do I book a room?", "plan_id": str(plan.id)},
        )

        assert response.status_code == 200
        assert response.json() == {"response": "Reserve the space through EMS first."}
        assert provider.call_count == 1
        assert [turn["role"] for turn in plan.conversation_history] == ["user", "assistant"]
        assert session.commits == 1

    def test_anonymous_chat_does_not_touch_plan(self, client, session, mock_llm):
        mock_llm(preset_text="Sure.")
        plan = build_plan()
        session.objects[plan.id] = plan

        response = client.post("/api/chat", json={"message": "hello", "plan_id": str(plan.id)})

        assert response.status_code == 200
        assert plan.conversation_history == []
        assert session.commits == 0

    def test_other_users_plan_is_not_written(self, signed_in_client, session, mock_llm):
        mock_llm(preset_text="Sure.")
        plan = build_plan()
        session.objects[plan.id] = plan

        response = signed_in_client.post(
            "/api/chat", json={"message": "hello", "plan_id": str(plan.id)}
        )

        assert response.status_code == 200
        assert plan.conversation_history == []
        assert session.commits == 0

    def test_provider_failure_returns_apology(self, client, mock_llm):
        mock_llm(error=AmplifyAPIError(503, "unavailable"))
        response = client.post("/api/chat", json={"message": "Can we serve beer?"})

        assert response.status_code == 200
        assert response.json()["response"] == TECHNICAL_DIFFICULTIES_REPLY

    def test_event_update_requires_inputs(self, client):
        response = client.post("/api/chat/generate-event-update", json={"conversation": "hi"})
        assert response.status_code == 400

    def test_event_update_failure_shape(self, client, mock_llm):
        mock_llm(error=AmplifyAPIError(500, "boom"))
        response = client.post(
            "/api/chat/generate-event-update",
            json={"conversation": "user: move it to Friday", "existing_event": {"title": "Mixer"}},
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to generate event update",
            "event_data": {"description": "", "checklist": []},
        }


class TestEvents:
    def test_other_users_event_is_forbidden(self, client, session):
        session.results.append([build_event()])
        response = client.get(f"/api/events/{uuid.uuid4()}")
        assert response.status_code == 403

    def test_missing_event(self, client):
        response = client.get(f"/api/events/{uuid.uuid4()}")
        assert response.status_code == 404

    def test_owner_reads_event(self, client, session, event):
        session.results.append([event])
        response = client.get(f"/api/events/{event.id}")

        assert response.status_code == 200
        assert response.json()["title"] == event.title

    def test_share_link(self, client, session, event):
        session.results.append([event])
        response = client.post(f"/api/events/{event.id}/share")

        assert response.status_code == 200
        body = response.json()
        assert body["share_id"] == event.share_id
        assert body["share_url"].endswith(f"/public/events/{event.share_id}")
        assert event.share_enabled is True

    def test_disable_share(self, client, session, event):
        event.share_id = "s1"
        event.share_enabled = True
        session.results.append([event])

        assert client.delete(f"/api/events/{event.id}/share").status_code == 204
        assert event.share_enabled is False
        assert event.share_id == "s1"
        assert session.commits == 1

    def test_update_appends_new_checklist_items(self, client, session, event):
        event.checklist = [{"id": "t1", "task": "Book room", "completed": False}]
        session.results.append([event])

        response = client.put(
            f"/api/events/{event.id}",
            json={"checklist": [{"task": "Book room"}, {"task": "Order catering"}]},
        )

        assert response.status_code == 200
        assert [item["task"] for item in event.checklist] == ["Book room", "Order catering"]
        assert event.checklist[0]["id"] == "t1"
        assert event.checklist[1]["completed"] is False
        assert session.commits == 1

    def test_edit_collaborator_can_update(self, client, session, user):
        event = build_event(
            collaborators=[{"id": "k1", "email": user.email, "permission": "edit"}],
        )
        session.results.append([event])

        response = client.put(f"/api/events/{event.id}", json={"notes": "Bring extension cords"})

        assert response.status_code == 200
        assert event.notes == "Bring extension cords"

    def test_view_collaborator_cannot_update(self, client, session, user):
        event = build_event(
            collaborators=[{"id": "k1", "email": user.email, "permission": "view"}],
        )
        session.results.append([event])

        response = client.put(f"/api/events/{event.id}", json={"notes": "x"})

        assert response.status_code == 403
        assert event.notes is None
        assert session.commits == 0

    def test_owner_deletes_event(self, client, session, event):
        session.results.append([event])

        assert client.delete(f"/api/events/{event.id}").status_code == 204
        assert session.deleted == [event]

    def test_collaborator_cannot_delete(self, client, session, user):
        event = build_event(
            collaborators=[{"id": "k1", "email": user.email, "permission": "admin"}],
        )
        session.results.append([event])

        assert client.delete(f"/api/events/{event.id}").status_code == 403
        assert session.deleted == []


class TestPublicAndCollaboration:
    def test_unknown_share_link(self, anonymous_client):
        assert anonymous_client.get("/public/events/unknown").status_code == 404
        assert anonymous_client.get("/api/public/events/unknown").status_code == 404

    def test_uninvited_user_cannot_join(self, client, session):
        event = build_event(collaboration_enabled=True, collaboration_id="collab-123")
        session.results.append([event])

        response = client.post("/api/collaborate/collab-123/join", json={"email": "stranger@x.edu"})

        assert response.status_code == 403
        assert response.json()["detail"] == "Only invited collaborators can join"

    def test_enable_collaboration(self, client, session, event):
        session.results.append([event])
        response = client.post(f"/api/events/{event.id}/collaboration/enable")

        assert response.status_code == 200
        body = response.json()
        assert body["collaboration_id"] == event.collaboration_id
        assert body["collaboration_url"].endswith(f"/collaborate/{event.collaboration_id}")

    def test_duplicate_invitation(self, client, session, event):
        session.results.extend([[event], [event]])
        payload = {"email": "friend@vanderbilt.edu", "permission": "edit"}

        assert client.post(f"/api/events/{event.id}/collaborators", json=payload).status_code == 201
        response = client.post(f"/api/events/{event.id}/collaborators", json=payload)
        assert response.status_code == 409

    def test_collaborative_update_requires_identity(self, client, session):
        session.results.append([build_event(collaboration_enabled=True, collaboration_id="c1")])
        response = client.put("/api/collaborate/c1", json={"notes": "hi"})
        assert response.status_code == 400

    def test_collaborator_toggles_task(self, client, session):
        event = build_event(
            collaboration_enabled=True,
            collaboration_id="c1",
            collaborators=[{"id": "k1", "email": "friend@vanderbilt.edu", "permission": "edit"}],
            checklist=[{"id": "t1", "task": "Book room", "completed": False}],
        )
        session.results.append([event])

        response = client.put(
            "/api/collaborate/c1",
            json={
                "email": "friend@vanderbilt.edu",
                "user_name": "Sam",
                "checklist": [{"id": "t1", "task": "Book room", "completed": True}],
            },
        )

        assert response.status_code == 200
        assert event.checklist[0]["completed"] is True
        assert event.checklist[0]["completed_at"] is not None
        assert event.activity_log[-1]["action"] == "completed_task"
        assert event.collaborators[0]["last_active"] is not None

    def test_view_only_collaborator_cannot_edit(self, client, session):
        event = build_event(
            collaboration_enabled=True,
            collaboration_id="c1",
            collaborators=[{"id": "k1", "email": "viewer@vanderbilt.edu", "permission": "view"}],
        )
        session.results.append([event])

        response = client.put("/api/collaborate/c1", json={"email": "viewer@vanderbilt.edu", "notes": "x"})
        assert response.status_code == 403

    def test_shared_event_hides_owner_details(self, anonymous_client, session):
        event = build_event(
            share_id="s1",
            share_enabled=True,
            collaborators=[{"id": "k1", "email": "friend@vanderbilt.edu", "permission": "edit"}],
            activity_log=[{"action": "created", "timestamp": "2026-10-01T00:00:00+00:00"}],
        )
        session.results.append([event])

        response = anonymous_client.get("/public/events/s1")

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Fall Mixer"
        for hidden in ("user_id", "owner_id", "collaborators", "activity_log", "share_id"):
            assert hidden not in body

    def test_collaboration_view_hides_identities(self, anonymous_client, session):
        event = build_event(
            collaboration_enabled=True,
            collaboration_id="c1",
            collaborators=[{
                "id": "k1",
                "user_id": str(uuid.uuid4()),
                "email": "friend@vanderbilt.edu",
                "first_name": "Sam",
                "permission": "edit",
            }],
        )
        session.results.append([event])

        response = anonymous_client.get("/api/collaborate/c1")

        assert response.status_code == 200
        body = response.json()
        assert "user_id" not in body
        assert "owner_id" not in body
        assert body["collaborators"] == [{
            "id": "k1",
            "first_name": "Sam",
            "last_name": None,
            "permission": "edit",
            "last_active": None,
        }]

    def test_claimed_owner_id_is_not_trusted(self, client, session):
        event = build_event(
            collaboration_enabled=True,
            collaboration_id="c1",
            collaborators=[{"id": "k1", "email": "viewer@vanderbilt.edu", "permission": "view"}],
        )
        session.results.extend([[event], [event]])
        owner_id = str(event.owner_id)

        response = client.put("/api/collaborate/c1", json={"user_id": owner_id, "title": "Hijacked"})
        assert response.status_code == 400

        response = client.put(
            "/api/collaborate/c1",
            json={"user_id": owner_id, "email": "viewer@vanderbilt.edu", "title": "Hijacked"},
        )
        assert response.status_code == 403
        assert event.title == "Fall Mixer"
        assert session.commits == 0

    def test_signed_in_identity_wins_over_body(self, signed_in_client, session, user):
        event = build_event(
            collaboration_enabled=True,
            collaboration_id="c1",
            collaborators=[{"id": "k1", "email": user.email, "permission": "view"}],
        )
        session.results.append([event])

        response = signed_in_client.put(
            "/api/collaborate/c1",
            json={"user_id": str(event.owner_id), "email": "someone@else.edu", "notes": "x"},
        )

        assert response.status_code == 403
        assert event.notes is None

    def test_anonymous_join_does_not_bind_user_id(self, client, session):
        event = build_event(
            collaboration_enabled=True,
            collaboration_id="c1",
            collaborators=[{"id": "k1", "email": "friend@vanderbilt.edu", "permission": "edit"}],
        )
        session.results.append([event])

        response = client.post(
            "/api/collaborate/c1/join",
            json={"email": "friend@vanderbilt.edu", "user_id": str(uuid.uuid4())},
        )

        assert response.status_code == 200
        assert event.collaborators[0].get("user_id") is None
        assert event.collaborators[0]["last_active"] is not None
        assert session.commits == 1

    def test_signed_in_join_binds_token_user(self, signed_in_client, session, user):
        event = build_event(
            collaboration_enabled=True,
            collaboration_id="c1",
            collaborators=[{"id": "k1", "email": user.email, "permission": "edit"}],
        )
        session.results.append([event])

        response = signed_in_client.post("/api/collaborate/c1/join", json={})

        assert response.status_code == 200
        assert event.collaborators[0]["user_id"] == str(user.id)
        assert event.collaborators[0]["first_name"] == "Jane"

    def test_activity_is_newest_first(self, anonymous_client, session):
        event = build_event(
            collaboration_enabled=True,
            collaboration_id="c1",
            activity_log=[
                {"action": "created", "timestamp": "2026-10-01T00:00:00+00:00"},
                {"action": "completed_task", "timestamp": "2026-10-03T00:00:00+00:00"},
                {"action": "updated", "timestamp": "2026-10-02T00:00:00+00:00"},
            ],
        )
        session.results.append([event])

        response = anonymous_client.get("/api/collaborate/c1/activity")

        assert response.status_code == 200
        actions = [entry["action"] for entry in response.json()["activity_log"]]
        assert actions == ["completed_task", "updated", "created"]


class TestPolicies:
    def test_list(self, client, session):
        session.results.append([build_policy(), build_policy(category="Alcohol", title="Alcohol")])
        response = client.get("/api/policies")

        assert response.status_code == 200
        assert [p["category"] for p in response.json()] == ["Space Booking", "Alcohol"]


class TestUnsubscribe:
    URL = "/api/notifications/unsubscribe"

    def test_missing_parameters(self, anonymous_client):
        response = anonymous_client.get(self.URL, params={"uid": "u"})
        assert response.status_code == 400
        assert response.text == "Invalid unsubscribe link."

    def test_bad_signature(self, anonymous_client):
        response = anonymous_client.get(self.URL, params={"uid": "u", "eid": "e", "sig": "nope"})
        assert response.status_code == 400
        assert response.text == "Invalid or expired unsubscribe signature."

    def test_owner_mismatch(self, anonymous_client, session):
        event = build_event()
        session.objects[event.id] = event
        uid = str(uuid.uuid4())
        eid = str(event.id)

        response = anonymous_client.get(
            self.URL, params={"uid": uid, "eid": eid, "sig": sign_unsubscribe(uid, eid)}
        )
        assert response.status_code == 404

    def test_unsubscribes(self, anonymous_client, session):
        owner = build_user()
        event = build_event(user_id=owner.id)
        session.objects[event.id] = event
        uid, eid = str(owner.id), str(event.id)

        response = anonymous_client.get(
            self.URL, params={"uid": uid, "eid": eid, "sig": sign_unsubscribe(uid, eid)}
        )

        assert response.status_code == 200
        assert response.text == "You have been unsubscribed from email notifications for this event."
        assert event.notifications["email_opt_in"] is False
        assert event.notifications["reminder_days"] == 5
        assert session.commits == 1
