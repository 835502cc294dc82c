"""Tests for course and topic management, MCQ authoring and bulk upload."""

import pytest

from app.models import Course, CourseTopic, Mcq, McqTopicLink


def upload_item(question="Which drug reverses heparin?", **overrides):
    item = {
        "question": question,
        "options": {"A": "Protamine", "B": "Vitamin K", "C": "Naloxone", "D": "Flumazenil"},
        "correct_answer": "A",
        "explanation": "Protamine binds heparin.",
        "difficulty": "Easy",
    }
    item.update(overrides)
    return item


class TestCourses:
    def test_list_is_public(self, client, course):
        response = client.get("/courses")

        assert response.status_code == 200
        assert [c["title"] for c in response.json()] == ["Internal Medicine"]

    def test_create_update_delete(self, client, db_session, admin_headers):
        created = client.post("/admin/courses", json={"title": "Surgery"}, headers=admin_headers)
        assert created.status_code == 201
        course_id = created.json()["id"]

        updated = client.put(
            f"/admin/courses/{course_id}",
            json={"title": "General Surgery", "description": "Core topics"},
            headers=admin_headers,
        )
        assert updated.json()["title"] == "General Surgery"
        assert updated.json()["description"] == "Core topics"

        deleted = client.delete(f"/admin/courses/{course_id}", headers=admin_headers)
        assert deleted.status_code == 204
        assert db_session.query(Course).count() == 0

    def test_delete_removes_topics_and_links(self, client, db_session, admin_headers, course, make_topic, make_mcq):
        topic = make_topic("Anticoagulants")
        mcq = make_mcq("Which drug reverses heparin?")
        db_session.add(McqTopicLink(mcq_id=mcq.id, topic_id=topic.id))
        db_session.commit()

        client.delete(f"/admin/courses/{course.id}", headers=admin_headers)

        assert db_session.query(CourseTopic).count() == 0
        assert db_session.query(McqTopicLink).count() == 0
        assert db_session.query(Mcq).count() == 1

    def test_writes_require_admin(self, client, user_headers, course):
        assert client.post("/admin/courses", json={"title": "Surgery"}, headers=user_headers).status_code == 403
        assert client.delete(f"/admin/courses/{course.id}", headers=user_headers).status_code == 403

    def test_unknown_course(self, client, admin_headers):
        response = client.put(
            "/admin/courses/00000000-0000-0000-0000-000000000000", json={"title": "X"}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Course not found"}


class TestCourseTopics:
    def test_topics_listed_in_order(self, client, admin_headers, course):
        for title, order in [("Second", 2), ("First", 1)]:
            response = client.post(
                f"/admin/courses/{course.id}/topics", json={"title": title, "order": order}, headers=admin_headers
            )
            assert response.status_code == 201

        response = client.get(f"/courses/{course.id}/topics")

        assert [t["title"] for t in response.json()] == ["First", "Second"]

    def test_topics_of_unknown_course(self, client):
        response = client.get("/courses/00000000-0000-0000-0000-000000000000/topics")

        assert response.status_code == 404

    def test_update_and_delete_topic(self, client, db_session, admin_headers, make_topic):
        topic = make_topic("Anticoagulants")

        updated = client.put(
            f"/admin/course-topics/{topic.id}",
            json={"title": "Anticoagulation", "content": "{}", "order": 3},
            headers=admin_headers,
        )
        assert updated.json()["order"] == 3

        assert client.delete(f"/admin/course-topics/{topic.id}", headers=admin_headers).status_code == 204
        assert db_session.query(CourseTopic).count() == 0


class TestMcqAuthoring:
    def test_create_with_topic_link(self, client, db_session, admin_headers, make_topic):
        topic = make_topic("Anticoagulants")

        response = client.post(
            "/admin/mcqs",
            json={
                "question_text": "Which drug reverses heparin?",
                "option_a": "Protamine", "option_b": "Vitamin K", "option_c": "Naloxone", "option_d": "Flumazenil",
                "correct_answer": "A",
                "topic_id": str(topic.id),
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["topic_id"] == str(topic.id)
        link = db_session.query(McqTopicLink).one()
        assert link.topic_id == topic.id

    def test_rejects_unknown_answer_letter(self, client, admin_headers):
        response = client.post(
            "/admin/mcqs",
            json={
                "question_text": "Q", "option_a": "a", "option_b": "b", "option_c": "c", "option_d": "d",
                "correct_answer": "E",
            },
            headers=admin_headers,
        )

        assert response.status_code == 400


class TestBulkUpload:
    URL = "/functions/v1/bulk-upload-mcqs"

    def test_all_items_stored(self, client, db_session, admin_headers):
        response = client.post(
            self.URL, json={"mcqs": [upload_item(), upload_item("Antidote for warfarin?", correct_answer="B")]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Bulk upload process completed.",
            "successCount": 2,
            "errorCount": 0,
            "errors": [],
        }
        mcq = db_session.query(Mcq).filter(Mcq.question_text == "Antidote for warfarin?").one()
        assert mcq.option_b == "Vitamin K"
        assert mcq.correct_answer == "B"

    def test_invalid_items_are_reported_and_skipped(self, client, db_session, admin_headers):
        bad = upload_item("A question whose options were lost somewhere along the way", options={"A": "x"})

        response = client.post(self.URL, json={"mcqs": [upload_item(), bad]}, headers=admin_headers)

        assert response.status_code == 207
        body = response.json()
        assert body["successCount"] == 1
        assert body["errorCount"] == 1
        assert body["errors"][0].startswith(
            'Failed to process MCQ "A question whose options were lost somewhere along...": options.B'
        )
        assert db_session.query(Mcq).count() == 1

    @pytest.mark.parametrize("payload", [{}, {"mcqs": "not a list"}, {"mcqs": {"question": "Q"}}])
    def test_requires_an_array(self, client, admin_headers, payload):
        response = client.post(self.URL, json=payload, headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid input: Expected an array of MCQs."}

    def test_requires_admin(self, client, user_headers):
        response = client.post(self.URL, json={"mcqs": [upload_item()]}, headers=user_headers)

        assert response.status_code == 403
