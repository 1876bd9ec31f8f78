from datetime import timedelta

from emotion_recognition.models.emotion_summary import EmotionSummary
from emotion_recognition.models.emotions import Emotion
from emotion_recognition.models.sessions import DetectionSession
from emotion_recognition.utils.time_utils import utc_now
from tests.mocks import observation_payload


def _create(client, headers=None, **body):
    payload = {"sessionName": "Interview practice"}
    payload.update(body)
    return client.post("/api/v1/sessions", json=payload, headers=headers)


# TEST CREATE
# POST /api/v1/sessions

class TestCreateSession:

    def test_anonymous_session(self, client):
        response = _create(client, deviceInfo="Firefox 130 / Linux")

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"] is None
        assert data["session_name"] == "Interview practice"
        assert data["device_info"] == "Firefox 130 / Linux"
        assert data["total_detections"] == 0
        assert data["end_time"] is None
        assert data["is_completed"] is False

    def test_owned_session(self, client, registered_user, auth_headers):
        response = _create(client, auth_headers)

        assert response.status_code == 201
        assert response.json()["user_id"] == registered_user["user"]["id"]

    def test_name_too_short_returns_400(self, client):
        response = _create(client, sessionName="ab")

        assert response.status_code == 400
        assert "session" in response.json()["detail"]

    def test_invalid_token_is_rejected_not_downgraded(self, client):
        response = _create(client, {"Authorization": "Bearer garbage"})
        assert response.status_code == 401


# TEST READ / LIST
# GET /api/v1/sessions, GET /api/v1/sessions/{id}

class TestReadSessions:

    def test_list_requires_auth(self, client):
        assert client.get("/api/v1/sessions").status_code == 401

    def test_list_returns_only_own_sessions_newest_first(
        self, client, auth_headers, other_auth_headers
    ):
        first = _create(client, auth_headers, sessionName="First").json()
        second = _create(client, auth_headers, sessionName="Second").json()
        _create(client, other_auth_headers, sessionName="Not mine")
        _create(client, sessionName="Anonymous")

        response = client.get("/api/v1/sessions", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [s["id"] for s in data["sessions"]] == [second["id"], first["id"]]

    def test_list_pagination(self, client, auth_headers):
        for i in range(3):
            _create(client, auth_headers, sessionName=f"Session {i}")

        response = client.get("/api/v1/sessions", params={"limit": 2, "offset": 2}, headers=auth_headers)

        data = response.json()
        assert data["total"] == 3
        assert len(data["sessions"]) == 1

    def test_get_anonymous_session_is_public(self, client, demo_session, auth_headers):
        assert client.get(f"/api/v1/sessions/{demo_session.id}").status_code == 200
        assert client.get(f"/api/v1/sessions/{demo_session.id}", headers=auth_headers).status_code == 200

    def test_get_other_users_session_returns_404(self, client, auth_headers, other_auth_headers):
        session_id = _create(client, auth_headers).json()["id"]

        assert client.get(f"/api/v1/sessions/{session_id}", headers=other_auth_headers).status_code == 404
        assert client.get(f"/api/v1/sessions/{session_id}").status_code == 404
        assert client.get(f"/api/v1/sessions/{session_id}", headers=auth_headers).status_code == 200


# TEST UPDATE
# PUT /api/v1/sessions/{id}

class TestUpdateSession:

    def test_rename(self, client, demo_session):
        response = client.put(
            f"/api/v1/sessions/{demo_session.id}",
            json={"sessionName": "Renamed demo", "location": "Lab 2"}
        )

        assert response.status_code == 200
        assert response.json()["session_name"] == "Renamed demo"
        assert response.json()["location"] == "Lab 2"

    def test_null_name_returns_400_and_keeps_the_name(self, client, demo_session):
        response = client.put(
            f"/api/v1/sessions/{demo_session.id}",
            json={"session_name": None}
        )

        assert response.status_code == 400
        assert "session_name" in response.json()["detail"]
        assert client.get(f"/api/v1/sessions/{demo_session.id}").json()["session_name"] == "Demo"

    def test_clearing_optional_metadata_is_allowed(self, client, demo_session):
        client.put(f"/api/v1/sessions/{demo_session.id}", json={"location": "Lab 2"})

        response = client.put(f"/api/v1/sessions/{demo_session.id}", json={"location": None})

        assert response.status_code == 200
        assert response.json()["location"] is None

    def test_counters_are_not_editable(self, client, demo_session):
        response = client.put(
            f"/api/v1/sessions/{demo_session.id}",
            json={"total_detections": 99}
        )

        assert response.status_code == 200
        assert response.json()["total_detections"] == 0


# TEST CLOSE
# PUT /api/v1/sessions/{id}/end

class TestEndSession:

    def test_close_with_explicit_end_time(self, client, demo_session):
        start = demo_session.start_time.replace(tzinfo=None)
        end_time = (start + timedelta(minutes=2)).isoformat() + "Z"

        response = client.put(
            f"/api/v1/sessions/{demo_session.id}/end",
            json={"endTime": end_time, "accuracy": 0.88}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["duration_seconds"] == 120
        assert data["is_completed"] is True
        assert data["accuracy_score"] == 0.88

    def test_close_twice_keeps_first_values(self, client, demo_session):
        first = client.put(f"/api/v1/sessions/{demo_session.id}/end", json={}).json()
        second = client.put(
            f"/api/v1/sessions/{demo_session.id}/end",
            json={"endTime": (utc_now() + timedelta(hours=1)).isoformat()}
        ).json()

        assert second["end_time"] == first["end_time"]
        assert second["duration_seconds"] == first["duration_seconds"]

    def test_end_before_start_returns_400(self, client, demo_session):
        response = client.put(
            f"/api/v1/sessions/{demo_session.id}/end",
            json={"endTime": "2000-01-01T00:00:00Z"}
        )
        assert response.status_code == 400

    def test_client_total_does_not_override_stored_count(self, client, demo_session):
        client.post("/api/v1/emotions", json=observation_payload(demo_session.id, "happy", 0.9))

        response = client.put(
            f"/api/v1/sessions/{demo_session.id}/end",
            json={"totalDetections": 40}
        )

        assert response.status_code == 200
        assert response.json()["total_detections"] == 1

    def test_accuracy_out_of_range_returns_400(self, client, demo_session):
        response = client.put(
            f"/api/v1/sessions/{demo_session.id}/end",
            json={"accuracy": 1.2}
        )
        assert response.status_code == 400

    def test_unknown_session_returns_404(self, client):
        assert client.put("/api/v1/sessions/9999/end", json={}).status_code == 404


# TEST DELETE
# DELETE /api/v1/sessions/{id}

class TestDeleteSession:

    def test_delete_cascades_to_observations_and_summaries(self, client, db_session, demo_session):
        for label in ("happy", "sad"):
            client.post("/api/v1/emotions", json=observation_payload(demo_session.id, label, 0.5))
        session_id = demo_session.id

        response = client.delete(f"/api/v1/sessions/{session_id}")

        assert response.status_code == 204
        db_session.expire_all()
        assert db_session.get(DetectionSession, session_id) is None
        assert db_session.query(Emotion).filter(Emotion.session_id == session_id).count() == 0
        assert db_session.query(EmotionSummary).filter(EmotionSummary.session_id == session_id).count() == 0

    def test_delete_other_users_session_returns_404(self, client, auth_headers, other_auth_headers):
        session_id = _create(client, auth_headers).json()["id"]

        response = client.delete(f"/api/v1/sessions/{session_id}", headers=other_auth_headers)

        assert response.status_code == 404
        assert client.get(f"/api/v1/sessions/{session_id}", headers=auth_headers).status_code == 200


def test_health_reports_connected_database(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["database"] == "connected"
    assert response.json()["environment"] == "test"
