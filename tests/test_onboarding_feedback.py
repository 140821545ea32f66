"""Tests for onboarding, preference updates and feedback votes."""
import pytest

from advisor.db.repo.feedback_repo import FeedbackRepo
from advisor.db.repo.users_repo import UsersRepo

ANSWERS = {"cryptoAssets": ["BTC", "ETH"], "investorType": "HODLer", "contentTypes": ["news", "memes"]}


class TestOnboarding:

    def test_saves_preferences(self, client, signup):
        headers, user = signup()
        response = client.put(f"/onboarding/{user['_id']}", json=ANSWERS, headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["user"]["preferences"] == ANSWERS

        stored = UsersRepo().get_user_record(user["_id"])
        assert stored.preferences.crypto_assets == ["BTC", "ETH"]

    def test_other_users_record_is_forbidden(self, client, signup):
        headers, _ = signup(email="a@example.com")
        _, other = signup(email="b@example.com")
        response = client.put(f"/onboarding/{other['_id']}", json=ANSWERS, headers=headers)

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "You are not allowed to update this user"
        assert UsersRepo().get_user(other["_id"])["preferences"]["cryptoAssets"] == []

    @pytest.mark.parametrize("payload", [
        {"cryptoAssets": "BTC", "investorType": "HODLer", "contentTypes": []},
        {"cryptoAssets": ["BTC"], "contentTypes": []},
        {"cryptoAssets": ["BTC"], "investorType": 3, "contentTypes": []},
        {"cryptoAssets": [1, 2], "investorType": "x", "contentTypes": []},
        ["BTC"],
    ])
    def test_malformed_payload_is_400(self, client, signup, payload):
        headers, user = signup()
        response = client.put(f"/onboarding/{user['_id']}", json=payload, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("Invalid payload. Expecting")

    def test_requires_auth(self, client, signup):
        _, user = signup()
        response = client.put(f"/onboarding/{user['_id']}", json=ANSWERS)
        assert response.status_code == 401


class TestPreferences:

    def test_partial_update_defaults_missing_fields(self, client, signup):
        headers, _ = signup()
        response = client.post("/user/preferences", json={"cryptoAssets": ["SOL"]}, headers=headers)

        assert response.status_code == 200
        assert response.json()["user"]["preferences"] == {
            "cryptoAssets": ["SOL"], "investorType": "", "contentTypes": [],
        }

    def test_replaces_previous_preferences(self, client, signup):
        headers, user = signup()
        client.put(f"/onboarding/{user['_id']}", json=ANSWERS, headers=headers)
        client.post("/user/preferences", json={"investorType": "day trader"}, headers=headers)

        prefs = client.get("/user/me", headers=headers).json()["user"]["preferences"]
        assert prefs == {"cryptoAssets": [], "investorType": "day trader", "contentTypes": []}

    def test_wrong_types_rejected(self, client, signup):
        headers, _ = signup()
        response = client.post("/user/preferences", json={"cryptoAssets": "BTC"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid preferences payload"


class TestFeedback:

    def test_vote_is_stored_for_authenticated_user(self, client, signup):
        headers, user = signup()
        response = client.post(
            "/feedback",
            json={"section": "news", "itemId": "https://n.example/2", "vote": 1, "userId": "usr_spoofed"},
            headers=headers,
        )

        assert response.status_code == 200
        feedback = response.json()["feedback"]
        assert feedback["userId"] == user["_id"]
        assert feedback["section"] == "news"
        assert feedback["vote"] == 1

        rows = FeedbackRepo().list_feedback_for_user(user["_id"])
        assert [(r["item_id"], r["vote"]) for r in rows] == [("https://n.example/2", 1)]

    def test_downvote(self, client, signup):
        headers, _ = signup()
        response = client.post("/feedback", json={"section": "meme", "itemId": "m1", "vote": -1}, headers=headers)
        assert response.json()["feedback"]["vote"] == -1

    @pytest.mark.parametrize("payload", [
        {"section": "weather", "itemId": "x", "vote": 1},
        {"section": "news", "itemId": "", "vote": 1},
        {"section": "news", "itemId": "x", "vote": 2},
        {"section": "news", "itemId": "x", "vote": "1"},
        {"section": "news", "itemId": "x", "vote": True},
        {"section": "news", "itemId": "x", "vote": 1.0},
        {"section": "news", "vote": 1},
    ])
    def test_invalid_feedback_is_400(self, client, signup, payload):
        headers, user = signup()
        response = client.post("/feedback", json=payload, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid feedback payload"
        assert FeedbackRepo().list_feedback_for_user(user["_id"]) == []

    def test_requires_auth(self, client):
        response = client.post("/feedback", json={"section": "news", "itemId": "x", "vote": 1})
        assert response.status_code == 401
