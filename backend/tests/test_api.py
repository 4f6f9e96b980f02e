"""
End-to-end API tests through the FastAPI test client
"""
import pytest

from classroom.curriculum import roster_for
from classroom.errors import ContentGenerationError
from classroom.routers.content import get_gemini_client

MONDAY = {"date": "2024-01-01", "period": 2, "grade": "Grade 3 O"}


class FakeGemini:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.prompts = []

    async def generate_json(self, prompt, schema):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.payload


@pytest.fixture
def use_gemini(client):
    def install(fake):
        client.app.dependency_overrides[get_gemini_client] = lambda: fake
        return fake

    yield install
    client.app.dependency_overrides.clear()


def _start(client, headers, body=MONDAY):
    return client.post("/session", json=body, headers=headers)


# ---- auth ----

def test_info_is_public(client):
    response = client.get("/info")
    assert response.status_code == 200
    assert response.json()["cloud_connected"] is False


def test_admin_routes_require_token(client):
    assert client.get("/participation").status_code == 401
    assert client.post("/session", json=MONDAY).status_code == 401


def test_wrong_passphrase_rejected(client):
    response = client.post("/auth/token", json={"passphrase": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect password."


def test_logout_revokes_token(client, admin_headers):
    assert client.get("/auth/me", headers=admin_headers).status_code == 200
    assert client.post("/auth/logout", headers=admin_headers).status_code == 204
    assert client.get("/auth/me", headers=admin_headers).status_code == 401


# ---- session and picker ----

def test_friday_session_rejected(client, admin_headers):
    response = _start(client, admin_headers, {**MONDAY, "date": "2024-01-05"})
    assert response.status_code == 422
    assert "School days are Sunday to Thursday." in response.text


def test_picker_requires_session(client, admin_headers):
    response = client.post("/picker/draw", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "NoActiveSessionError"


def test_session_start_builds_pool(client, admin_headers):
    response = _start(client, admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "idle"
    assert body["poolSize"] == len(roster_for("Grade 3 O"))
    assert body["session"]["day"] == "Monday"
    assert client.get("/session", headers=admin_headers).json()["period"] == 2


def test_draw_time_resolve_and_leaderboard(client, admin_headers, clock):
    _start(client, admin_headers)
    drawn = client.post("/picker/draw", headers=admin_headers).json()
    assert drawn["state"] == "drawn"
    student = drawn["activeStudent"]

    assert client.post("/picker/start", headers=admin_headers).json()["timerRunning"] is True
    clock.advance(2.0)
    resolved = client.post("/picker/resolve", json={"isCorrect": True}, headers=admin_headers).json()
    assert resolved["state"] == "resolved"
    assert resolved["lastResult"]["total"] == 1100

    board = client.get("/leaderboard", headers=admin_headers).json()
    assert board == [{"name": student, "score": 1100}]

    records = client.get("/participation", headers=admin_headers).json()
    assert records[0]["studentName"] == student
    assert records[0]["durationSeconds"] == 2.0
    assert records[0]["timestamp"] == 1_704_096_000_000


def test_invalid_transition_is_conflict(client, admin_headers):
    _start(client, admin_headers)
    response = client.post("/picker/start", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "PickerStateError"


def test_absent_returns_to_idle_without_record(client, admin_headers):
    _start(client, admin_headers)
    client.post("/picker/draw", headers=admin_headers)
    body = client.post("/picker/absent", headers=admin_headers).json()
    assert body["state"] == "idle"
    assert client.get("/participation", headers=admin_headers).json() == []


def test_reset_session_deletes_only_current_session(client, admin_headers, clock):
    _start(client, admin_headers)
    for _ in range(2):
        client.post("/picker/draw", headers=admin_headers)
        client.post("/picker/start", headers=admin_headers)
        client.post("/picker/resolve", json={"isCorrect": False}, headers=admin_headers)
        clock.advance(2.0)

    _start(client, admin_headers, {**MONDAY, "period": 3})
    client.post("/picker/draw", headers=admin_headers)
    client.post("/picker/start", headers=admin_headers)
    client.post("/picker/resolve", json={"isCorrect": True}, headers=admin_headers)
    clock.advance(2.0)

    _start(client, admin_headers)
    body = client.post("/picker/reset-session", headers=admin_headers).json()
    assert body["removed"] == 2
    remaining = client.get("/participation", headers=admin_headers).json()
    assert [r["period"] for r in remaining] == [3]


def test_special_needs_flag_reweights_running_pool(client, admin_headers):
    _start(client, admin_headers)
    name = roster_for("Grade 3 O")[0]
    response = client.put(f"/curriculum/profiles/{name}", json={"isSpecialNeeds": True}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["isSpecialNeeds"] is True
    assert client.get("/picker", headers=admin_headers).json()["poolSize"] == len(roster_for("Grade 3 O")) + 3


# ---- participation views ----

def test_delete_participation_record(client, admin_headers):
    _start(client, admin_headers)
    client.post("/picker/draw", headers=admin_headers)
    client.post("/picker/start", headers=admin_headers)
    client.post("/picker/resolve", json={"isCorrect": True}, headers=admin_headers)
    record_id = client.get("/participation", headers=admin_headers).json()[0]["id"]

    assert client.delete(f"/participation/{record_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/participation/{record_id}", headers=admin_headers).status_code == 404


def test_diary_and_report(client, admin_headers):
    _start(client, admin_headers)
    client.post("/picker/draw", headers=admin_headers)
    client.post("/picker/start", headers=admin_headers)
    client.post("/picker/resolve", json={"isCorrect": True}, headers=admin_headers)

    diary = client.get("/participation/diary", headers=admin_headers).json()
    assert diary[0]["id"] == "2024-01-01-Grade 3 O-2"
    assert diary[0]["participationCount"] == 1

    report = client.get("/participation/report", params={"timeframe": "all"}, headers=admin_headers).json()
    assert report["totalParticipations"] == 1
    assert client.get("/participation/report", params={"timeframe": "year"}, headers=admin_headers).status_code == 422


def test_delete_session_by_query(client, admin_headers):
    response = client.delete(
        "/participation/session",
        params={"date": "2024-01-01", "grade": "Grade 3 O", "period": 2},
        headers=admin_headers,
    )
    assert response.json() == {"removed": 0}


# ---- curriculum and activities ----

def test_curriculum_defaults_and_rosters(client):
    curriculum = client.get("/curriculum").json()
    assert curriculum["appName"] == "English Genius"
    assert "Singular & Plural Nouns" in curriculum["grammarTopics"]
    assert curriculum["learnToWriteCategories"] == ["Personal Narrative", "Letter Writing"]
    assert curriculum["classroomSettings"]["enableLeaderboard"] is False
    assert client.get("/curriculum/grades").json() == ["Grade 3 O", "Grade 3 P"]
    assert client.get("/curriculum/roster/Grade 9 Z").status_code == 404


def test_baseline_marks_profile(client):
    response = client.post("/curriculum/baseline", json={"studentName": "Omar", "level": "Developing"})
    assert response.status_code == 200
    assert response.json()["baselineTaken"] is True
    profiles = client.get("/curriculum").json()["studentProfiles"]
    assert profiles[0]["masteryLevel"] == "Developing"


def test_assignments_lifecycle(client, admin_headers):
    created = client.post(
        "/curriculum/assignments",
        json={"moduleId": "grammar", "studentName": "Omar"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    assignment_id = created.json()["id"]
    assert [a["id"] for a in client.get("/curriculum/assignments", params={"student": "Omar"}).json()] == [assignment_id]
    assert client.delete(f"/curriculum/assignments/{assignment_id}", headers=admin_headers).status_code == 200
    assert client.get("/curriculum/assignments").json() == []


def test_log_activity(client):
    response = client.post("/activities", json={
        "studentName": "Omar", "activityType": "Grammar", "category": "Nouns", "score": 8, "total": 10,
    })
    assert response.status_code == 201
    assert response.json()["studentSection"] == "Unknown"
    assert len(client.get("/activities", params={"student": "Omar"}).json()) == 1
    assert client.get("/activities", params={"student": "Ahmed"}).json() == []


# ---- cloud ----

def test_cloud_config_rejects_js_object_literal(client, admin_headers):
    response = client.post("/cloud/config", json={"config": "{apiKey: 'x', projectId: 'y'}"}, headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["error"] == "CloudConfigError"


def test_cloud_upload_without_config(client, admin_headers):
    assert client.get("/cloud/status", headers=admin_headers).json()["connected"] is False
    assert client.post("/cloud/upload", headers=admin_headers).status_code == 503


# ---- content ----

def test_content_unavailable_without_key(client):
    response = client.post("/content/definition", json={"word": "camel"})
    assert response.status_code == 503


def test_grammar_quiz(client, use_gemini):
    fake = use_gemini(FakeGemini([
        {"type": "MULTIPLE_CHOICE", "question": "Pick the noun", "options": ["run", "cat"], "correctAnswer": "cat"},
    ]))
    response = client.post("/content/grammar-quiz", json={"topic": "Nouns", "count": 1})
    assert response.status_code == 200
    assert response.json()[0]["correctAnswer"] == "cat"
    assert '"Nouns"' in fake.prompts[0]


def test_sentence_scramble(client, use_gemini):
    use_gemini(FakeGemini({"sentences": [{"scrambled": ["sat", "The", "cat"], "correct": "The cat sat."}]}))
    response = client.post("/content/sentence-scramble", json={"count": 1})
    assert response.json() == [{"scrambled": ["sat", "The", "cat"], "correct": "The cat sat."}]


def test_content_failure_is_bad_gateway(client, use_gemini):
    use_gemini(FakeGemini(error=ContentGenerationError("boom")))
    response = client.post("/content/reading-passage", json={"skill": "Main Idea"})
    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to load reading passage. Please try again."


def test_malformed_content_is_bad_gateway(client, use_gemini):
    use_gemini(FakeGemini({"word": "camel"}))
    response = client.post("/content/vocabulary-card", json={"word": "camel"})
    assert response.status_code == 502


def test_scramble_moves(client):
    state = {"target": "The cat sat", "remaining": ["sat", "The", "cat"], "chosen": []}
    body = client.post("/content/scramble/choose", json={"state": state, "index": 1}).json()
    assert body["state"]["chosen"] == ["The"]
    assert body["isComplete"] is False
    assert client.post("/content/scramble/choose", json={"state": state, "index": 5}).status_code == 400
    reset = client.post("/content/scramble/reset", json=body["state"]).json()
    assert reset["state"]["chosen"] == []


def test_baseline_refreshes_running_picker(client, admin_headers):
    _start(client, admin_headers)
    client.post("/picker/draw", headers=admin_headers)
    assert client.get("/picker", headers=admin_headers).json()["poolSize"] == 25

    name = roster_for("Grade 3 O")[5]
    client.post("/curriculum/baseline", json={"studentName": name, "level": "Mastery"})

    picker = client.get("/picker", headers=admin_headers).json()
    assert picker["state"] == "idle"
    assert picker["poolSize"] == 26


# ---- content: writing, leveling and quizzes ----

def _rubric(score):
    return {"score": score, "justification": "ok"}


def test_writing_feedback(client, use_gemini):
    fake = use_gemini(FakeGemini({
        "scores": {
            "paragraphs": _rubric(2), "grammar": _rubric(4), "sentenceStructure": _rubric(3),
            "spellingAndPunctuation": _rubric(4), "total": 8,
        },
        "goodPoints": ["Great title!"],
        "improvementArea": [{"mistake": "i went", "correction": "I went", "explanation": "Use a capital I."}],
    }))
    response = client.post("/content/writing-feedback", json={"text": "i went to the desert with my family."})
    assert response.status_code == 200
    body = response.json()
    assert body["scores"]["total"] == 8
    assert body["improvementArea"][0] == {"mistake": "i went", "correction": "I went", "explanation": "Use a capital I."}
    assert "i went to the desert" in fake.prompts[0]
    assert "must not exceed 8" in fake.prompts[0]


def test_writing_feedback_rejects_out_of_range_score(client, use_gemini):
    use_gemini(FakeGemini({
        "scores": {
            "paragraphs": _rubric(9), "grammar": _rubric(4), "sentenceStructure": _rubric(3),
            "spellingAndPunctuation": _rubric(4), "total": 20,
        },
        "goodPoints": [],
        "improvementArea": [],
    }))
    response = client.post("/content/writing-feedback", json={"text": "My trip."})
    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to load writing feedback. Please try again."


def test_letter_feedback(client, use_gemini):
    use_gemini(FakeGemini({
        "partsFeedback": [
            {"part": "Greeting", "status": "Correct", "comment": "Nice greeting."},
            {"part": "Signature", "status": "Missing", "comment": "Sign your name."},
        ],
        "improvementArea": [],
        "overallComment": "Lovely letter!",
    }))
    response = client.post("/content/letter-feedback", json={"text": "Dear Grandma, I miss you."})
    assert response.status_code == 200
    assert [p["status"] for p in response.json()["partsFeedback"]] == ["Correct", "Missing"]


def test_passage_quiz(client, use_gemini):
    question = {
        "type": "MULTIPLE_CHOICE", "question": "Who rode the camel?",
        "options": ["Sara", "Ali", "Omar", "Huda"], "correctAnswer": "Ali", "skill": "Detail",
    }
    fake = use_gemini(FakeGemini([question] * 6))
    response = client.post("/content/passage-quiz", json={"passage": "Ali rode a camel in Riyadh."})
    assert response.status_code == 200
    assert len(response.json()) == 6
    assert response.json()[0]["skill"] == "Detail"
    assert "exactly 6" in fake.prompts[0]


def test_passage_quiz_rejects_unknown_skill(client, use_gemini):
    use_gemini(FakeGemini([{
        "type": "MULTIPLE_CHOICE", "question": "Q?", "options": ["a", "b"], "correctAnswer": "a", "skill": "Spelling",
    }]))
    response = client.post("/content/passage-quiz", json={"passage": "Text."})
    assert response.status_code == 502


def test_leveled_text(client, use_gemini):
    words = [{"word": "oasis", "definition": "a green place in the desert"}]
    fake = use_gemini(FakeGemini({
        "leveledPassages": {"low": "A camel walks.", "medium": "A camel walks far.", "gradeSpecific": "A camel crosses the desert."},
        "vocabulary": {"low": words, "medium": words, "gradeSpecific": words},
    }))
    response = client.post(
        "/content/leveled-text",
        json={"text": "The camel crossed the vast desert.", "suggestions": "Mention an oasis."},
    )
    assert response.status_code == 200
    assert response.json()["leveledPassages"]["low"] == "A camel walks."
    assert "Teacher suggestions: Mention an oasis." in fake.prompts[0]


def test_leveled_text_without_suggestions(client, use_gemini):
    fake = use_gemini(FakeGemini(error=ContentGenerationError("boom")))
    response = client.post("/content/leveled-text", json={"text": "The camel crossed the desert."})
    assert response.status_code == 502
    assert "Teacher suggestions" not in fake.prompts[0]


def test_vocabulary_quiz_keeps_playable_questions(client, use_gemini):
    fake = use_gemini(FakeGemini([
        {"type": "MULTIPLE_CHOICE", "question": "A camel is an...", "options": ["animal", "car", "fruit", "city"], "correctAnswer": "animal"},
        {"type": "TRUE_FALSE", "question": "Dates grow on palm trees.", "options": ["True", "False"], "correctAnswer": "True"},
        {"type": "MULTIPLE_CHOICE", "question": "Broken", "options": ["a", "b", "c", "d"], "correctAnswer": "z"},
    ]))
    response = client.post("/content/vocabulary-quiz", json={
        "cards": [{"word": "camel", "meaning": "a desert animal"}, {"word": "date", "meaning": "a sweet fruit"}],
        "numQuestions": 3,
    })
    assert response.status_code == 200
    body = response.json()
    assert [q["type"] for q in body] == ["MULTIPLE_CHOICE", "TRUE_FALSE"]
    assert body[1]["options"] is None
    assert "- camel: a desert animal" in fake.prompts[0]


def test_vocabulary_quiz_drops_unrequested_types(client, use_gemini):
    use_gemini(FakeGemini([
        {"type": "TRUE_FALSE", "question": "Camels fly.", "correctAnswer": "False"},
    ]))
    response = client.post("/content/vocabulary-quiz", json={
        "cards": [{"word": "camel", "meaning": "a desert animal"}],
        "questionTypes": ["MULTIPLE_CHOICE"],
    })
    assert response.status_code == 502


def test_vocabulary_quiz_needs_cards(client, use_gemini):
    use_gemini(FakeGemini([]))
    assert client.post("/content/vocabulary-quiz", json={"cards": []}).status_code == 422


def test_cvc_words(client, use_gemini):
    fake = use_gemini(FakeGemini({"words": [{"word": "cat", "image_prompt": "a cartoon cat"}]}))
    response = client.post("/content/cvc-words", json={"count": 1, "difficulty": "hard"})
    assert response.status_code == 200
    assert response.json() == [{"word": "cat", "image_prompt": "a cartoon cat"}]
    assert "harder to picture" in fake.prompts[0]


def test_cvc_words_malformed(client, use_gemini):
    use_gemini(FakeGemini({"oops": []}))
    assert client.post("/content/cvc-words", json={}).status_code == 502
