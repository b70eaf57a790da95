"""Tests for the HTML pages and the level form flow."""
from urllib.parse import parse_qs, urlparse

from app.core.config import get_settings


def _post(client, seeded, grade, action, **fields):
    data = {"action": action, "user_id": str(seeded.users[grade]), **fields}
    return client.post(f"/level/{seeded.level_id}", data=data, follow_redirects=False)


def _params(response) -> dict:
    query = parse_qs(urlparse(response.headers["location"]).query)
    return {k: v[0] for k, v in query.items()}


def _session_fields(params: dict) -> dict:
    keys = ("index", "state", "second_chance", "score", "answered")
    return {k: params[k] for k in keys if k in params}


def _play_level(client, seeded, grade, correct):
    """Answer every problem in order, the first `correct` of them right."""
    params = {}
    for i, pid in enumerate(seeded.problem_ids):
        answer = seeded.answers[i] if i < correct else -1
        response = _post(
            client, seeded, grade, "submit-answer", problem_id=str(pid), user_answer=str(answer),
            **_session_fields(params),
        )
        params = _params(response)
        if i < len(seeded.problem_ids) - 1:
            params = _params(_post(client, seeded, grade, "next-problem", **_session_fields(params)))
    return response, params


class TestHome:
    def test_lists_profiles_and_avatars(self, client, seeded):
        response = client.get("/")
        assert response.status_code == 200
        assert "Kid3" in response.text
        assert "🦖" in response.text


class TestCreateProfile:
    def test_form_needs_avatar(self, client):
        response = client.get("/create-profile", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"].endswith("/")

    def test_form_renders(self, client):
        response = client.get("/create-profile", params={"avatar": "🐼"})
        assert response.status_code == 200
        assert "🐼" in response.text

    def test_create_redirects_to_dashboard(self, client):
        response = client.post(
            "/create-profile",
            data={"name": "Maya", "grade": "2", "avatar": "🐼"},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert "/dashboard/" in response.headers["location"]

        page = client.get(response.headers["location"])
        assert "Welcome back, Maya!" in page.text
        assert "2nd Grade" in page.text

    def test_invalid_profile(self, client):
        response = client.post(
            "/create-profile",
            data={"name": "", "grade": "7", "avatar": "🐼"},
        )
        assert response.status_code == 400

    def test_avatar_too_long(self, client):
        response = client.post(
            "/create-profile",
            data={"name": "Maya", "grade": "1", "avatar": "x" * 17},
        )
        assert response.status_code == 400

    def test_name_too_long(self, client):
        response = client.post(
            "/create-profile",
            data={"name": "x" * 21, "grade": "1", "avatar": "🐼"},
        )
        assert response.status_code == 400


class TestDashboard:
    def test_shows_levels_for_grade(self, client, seeded):
        response = client.get(f"/dashboard/{seeded.users[1]}")
        assert response.status_code == 200
        assert "Test Level" in response.text
        assert "0 of 1 levels completed" in response.text

    def test_other_grade_has_no_levels(self, client, seeded):
        response = client.get(f"/dashboard/{seeded.users[4]}")
        assert "No levels for this grade yet." in response.text

    def test_unknown_user(self, client, seeded):
        assert client.get("/dashboard/999").status_code == 404


class TestLevelPage:
    def test_renders_first_problem(self, client, seeded):
        response = client.get(f"/level/{seeded.level_id}", params={"user_id": seeded.users[1]})
        assert response.status_code == 200
        assert "1 + 2 = ?" in response.text
        assert "Problem 1 of 5" in response.text

    def test_missing_user(self, client, seeded):
        assert client.get(f"/level/{seeded.level_id}").status_code == 400

    def test_unknown_level(self, client, seeded):
        assert client.get("/level/999", params={"user_id": seeded.users[1]}).status_code == 404

    def test_kindergarten_sees_hints(self, client, seeded):
        response = client.get(f"/level/{seeded.level_id}", params={"user_id": seeded.users[0]})
        assert "Let's count together!" in response.text

    def test_grade_one_no_hints_before_second_chance(self, client, seeded):
        response = client.get(f"/level/{seeded.level_id}", params={"user_id": seeded.users[1]})
        assert "Let's count together!" not in response.text

    def test_keyboard_input_from_grade_two(self, client, seeded):
        response = client.get(f"/level/{seeded.level_id}", params={"user_id": seeded.users[2]})
        assert 'id="answer-input"' in response.text

    def test_bad_state(self, client, seeded):
        response = client.get(
            f"/level/{seeded.level_id}",
            params={"user_id": seeded.users[1], "state": "bogus"},
        )
        assert response.status_code == 400


class TestLevelActions:
    def test_invalid_action(self, client, seeded):
        response = _post(client, seeded, 1, "dance")
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid action"

    def test_missing_user_id(self, client, seeded):
        response = client.post(
            f"/level/{seeded.level_id}",
            data={"action": "submit-answer", "problem_id": str(seeded.problem_ids[0]), "user_answer": "3"},
        )
        assert response.status_code == 400

    def test_missing_problem_id(self, client, seeded, fetch_progress, count_attempts):
        response = _post(client, seeded, 3, "submit-answer", user_answer="3")
        assert response.status_code == 400
        assert fetch_progress(seeded.users[3], seeded.level_id) is None
        assert count_attempts(seeded.users[3]) == 0

    def test_unknown_problem(self, client, seeded):
        response = _post(client, seeded, 3, "submit-answer", problem_id="999", user_answer="3")
        assert response.status_code == 404

    def test_second_chance_flow(self, client, seeded, fetch_progress, count_attempts):
        """Grade 1: wrong, try again with hints, wrong again -> counted once."""
        level_id, user_id = seeded.level_id, seeded.users[1]

        response = _post(client, seeded, 1, "submit-answer", problem_id=str(seeded.problem_ids[0]), user_answer="1")
        assert response.status_code == 303
        params = _params(response)
        assert params["state"] == "first-wrong"
        assert fetch_progress(user_id, level_id) is None

        page = client.get(response.headers["location"])
        assert "Try Again with Help!" in page.text

        response = _post(client, seeded, 1, "try-again", **_session_fields(params))
        params = _params(response)
        assert params["state"] == "unanswered"
        assert params["second_chance"] == "1"

        page = client.get(response.headers["location"])
        assert "Let me help you!" in page.text

        response = _post(
            client,
            seeded,
            1,
            "submit-answer",
            problem_id=str(seeded.problem_ids[0]),
            user_answer="4",
            is_second_attempt="true",
            **_session_fields(params),
        )
        params = _params(response)
        assert params["state"] == "answered"
        assert params["answered"] == "1"
        assert params["score"] == "0"

        progress = fetch_progress(user_id, level_id)
        assert (progress.correct_answers, progress.total_attempts) == (0, 1)
        assert count_attempts(user_id) == 2

        page = client.get(response.headers["location"])
        assert f"The answer is {seeded.answers[0]}" in page.text

    def test_submit_after_answered_is_rejected(self, client, seeded, count_attempts):
        response = _post(
            client,
            seeded,
            3,
            "submit-answer",
            problem_id=str(seeded.problem_ids[0]),
            user_answer="3",
            state="answered",
        )
        assert response.status_code == 400
        assert count_attempts(seeded.users[3]) == 0

    def test_next_problem(self, client, seeded):
        response = _post(client, seeded, 3, "submit-answer", problem_id=str(seeded.problem_ids[0]), user_answer="3")
        params = _params(response)
        assert params["correct"] == "1"

        response = _post(client, seeded, 3, "next-problem", **_session_fields(params))
        params = _params(response)
        assert params["index"] == "1"
        assert params["state"] == "unanswered"

        page = client.get(response.headers["location"])
        assert "2 + 2 = ?" in page.text

    def test_play_and_complete_level(self, client, seeded, fetch_progress):
        response, params = _play_level(client, seeded, 3, correct=4)

        page = client.get(response.headers["location"])
        assert "Complete Level!" in page.text

        response = _post(client, seeded, 3, "complete-level", **_session_fields(params))
        assert response.status_code == 303
        assert response.headers["location"].endswith(
            f"/dashboard/{seeded.users[3]}?completed={seeded.level_id}"
        )
        assert fetch_progress(seeded.users[3], seeded.level_id).is_completed is True

    def test_complete_without_enough_correct(self, client, seeded, fetch_progress):
        _post(client, seeded, 3, "submit-answer", problem_id=str(seeded.problem_ids[0]), user_answer="3")
        response = _post(client, seeded, 3, "complete-level")
        assert response.status_code == 303
        assert _params(response)["practice"] == "1"
        assert fetch_progress(seeded.users[3], seeded.level_id).is_completed is False

    def test_stricter_threshold_hides_completion(self, client, seeded, fetch_progress, monkeypatch):
        monkeypatch.setattr(get_settings(), "completion_threshold", 0.9)
        response, params = _play_level(client, seeded, 3, correct=4)

        page = client.get(response.headers["location"])
        assert "Complete Level!" not in page.text
        assert "You need 90% accuracy" in page.text

        response = _post(client, seeded, 3, "complete-level", **_session_fields(params))
        assert _params(response)["practice"] == "1"
        assert fetch_progress(seeded.users[3], seeded.level_id).is_completed is False

    def test_looser_threshold_offers_completion(self, client, seeded, fetch_progress, monkeypatch):
        monkeypatch.setattr(get_settings(), "completion_threshold", 0.6)
        response, params = _play_level(client, seeded, 3, correct=3)

        page = client.get(response.headers["location"])
        assert "Complete Level!" in page.text

        response = _post(client, seeded, 3, "complete-level", **_session_fields(params))
        assert "/dashboard/" in response.headers["location"]
        assert fetch_progress(seeded.users[3], seeded.level_id).is_completed is True

    def test_stale_problem_is_rejected(self, client, seeded, fetch_progress, count_attempts):
        response = _post(client, seeded, 3, "submit-answer", problem_id=str(seeded.problem_ids[0]), user_answer="3")
        params = _params(_post(client, seeded, 3, "next-problem", **_session_fields(_params(response))))
        assert params["index"] == "1"

        response = _post(
            client, seeded, 3, "submit-answer", problem_id=str(seeded.problem_ids[0]), user_answer="3",
            **_session_fields(params),
        )
        assert response.status_code == 400
        progress = fetch_progress(seeded.users[3], seeded.level_id)
        assert (progress.correct_answers, progress.total_attempts) == (1, 1)
        assert count_attempts(seeded.users[3]) == 1

    def test_restart(self, client, seeded):
        response = _post(client, seeded, 3, "restart", index="4", state="answered", score="2", answered="5")
        params = _params(response)
        assert params["index"] == "0"
        assert params["state"] == "unanswered"
        assert params["answered"] == "5"
