import logging

import pytest

from queries import service as queries


def _create_category(client, **body):
    response = client.post("/category", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _create_question(client, category_id, text="2+2?"):
    response = client.post(
        "/question",
        json={
            "question": text,
            "categoryId": category_id,
            "answers": [{"answer": "4", "correct": True}, {"answer": "5", "correct": False}],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestMeta:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_index_lists_endpoints(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "/questions/category/:slug" in response.text


class TestCategoryEndpoints:
    def test_create_and_fetch(self, client):
        created = _create_category(client, title="Science")

        assert created["slug"] == "science"
        detail = client.get("/categories/science").json()
        assert detail["title"] == "Science"
        assert detail["questions"] == []
        assert [c["slug"] for c in client.get("/categories").json()] == ["science"]

    def test_invalid_body_is_400(self, client):
        response = client.post("/category", json={"slug": "no-title"})
        assert response.status_code == 400
        assert response.json()["errors"]

    def test_duplicate_slug_on_create_is_409(self, client):
        _create_category(client, title="Science")
        response = client.post("/category", json={"title": "Science"})
        assert response.status_code == 409
        assert response.json()["field"] == "slug"

    def test_unknown_slug_is_404(self, client):
        assert client.get("/categories/nope").status_code == 404
        assert client.patch("/category/nope", json={"title": "x"}).status_code == 404
        assert client.delete("/category/nope").status_code == 404

    def test_patch_changes_only_given_fields(self, client):
        _create_category(client, title="Science", description="Labs")

        response = client.patch("/category/science", json={"title": "Natural Science"})

        assert response.status_code == 200
        assert response.json() == {
            "id": 1,
            "slug": "science",
            "title": "Natural Science",
            "description": "Labs",
        }

    def test_empty_patch_returns_unchanged(self, client):
        created = _create_category(client, title="Science")
        response = client.patch("/category/science", json={})
        assert response.status_code == 200
        assert response.json() == created

    def test_patch_to_taken_slug_is_400(self, client):
        _create_category(client, title="Science")
        _create_category(client, title="History")

        response = client.patch("/category/history", json={"slug": "science"})

        assert response.status_code == 400
        assert client.get("/categories/history").status_code == 200

    def test_delete_removes_tree(self, client):
        category = _create_category(client, title="Science")
        question = _create_question(client, category["id"])

        assert client.delete("/category/science").status_code == 204
        assert client.get("/categories/science").status_code == 404
        assert client.get(f"/questions/{question['id']}").status_code == 404
        assert client.get("/questions").json() == []


class TestQuestionEndpoints:
    def test_create_uses_camel_case_keys(self, client):
        category = _create_category(client, title="Science")

        question = _create_question(client, category["id"])

        assert question["categoryId"] == category["id"]
        assert {a["questionId"] for a in question["answers"]} == {question["id"]}

    def test_unknown_category_is_400(self, client):
        response = client.post("/question", json={"question": "?", "categoryId": 99, "answers": []})
        assert response.status_code == 400
        assert response.json()["error"] == "dependency_missing"

    def test_listing_and_filters(self, client):
        science = _create_category(client, title="Science")
        history = _create_category(client, title="History")
        _create_question(client, science["id"], "2+2?")
        _create_question(client, history["id"], "Year?")

        everything = client.get("/questions").json()
        by_path = client.get("/questions/category/history").json()
        by_query = client.get("/questions", params={"categoryId": science["id"]}).json()

        assert [q["category"]["slug"] for q in everything] == ["science", "history"]
        assert [q["question"] for q in by_path] == ["Year?"]
        assert [q["question"] for q in by_query] == ["2+2?"]

    def test_unknown_filters_are_404(self, client):
        assert client.get("/questions/category/nope").status_code == 404
        assert client.get("/questions", params={"category": "nope"}).status_code == 404

    def test_non_numeric_ids_are_400(self, client):
        assert client.get("/questions/abc").status_code == 400
        assert client.patch("/question/abc", json={"question": "x"}).status_code == 400
        assert client.delete("/question/abc").status_code == 400
        assert client.get("/questions", params={"categoryId": "abc"}).status_code == 400

    def test_patch_and_delete(self, client):
        category = _create_category(client, title="Science")
        question = _create_question(client, category["id"])

        patched = client.patch(f"/question/{question['id']}", json={"question": "Two plus two?"})
        bad_move = client.patch(f"/question/{question['id']}", json={"categoryId": 99})

        assert patched.status_code == 200
        assert patched.json()["question"] == "Two plus two?"
        assert len(patched.json()["answers"]) == 2
        assert bad_move.status_code == 400
        assert client.get(f"/questions/{question['id']}").json()["categoryId"] == category["id"]

        assert client.delete(f"/question/{question['id']}").status_code == 204
        assert client.delete(f"/question/{question['id']}").status_code == 404
        assert client.patch(f"/question/{question['id']}", json={}).status_code == 404

    def test_filtered_listings_carry_their_category(self, client):
        science = _create_category(client, title="Science")
        _create_question(client, science["id"], "2+2?")

        by_id = client.get("/questions", params={"categoryId": science["id"]}).json()
        by_slug = client.get("/questions", params={"category": "science"}).json()

        assert [q["category"]["slug"] for q in by_id] == ["science"]
        assert [q["category"]["slug"] for q in by_slug] == ["science"]
        assert by_id[0]["category"]["id"] == science["id"]


class TestRequestLog:
    def test_request_is_logged(self, client, caplog):
        caplog.set_level(logging.INFO, logger="quiz_api")

        client.get("/health")

        lines = [r.getMessage() for r in caplog.records if r.name == "quiz_api"]
        assert any("path=/health" in line and "status=200" in line for line in lines)

    def test_unhandled_error_is_logged_as_500(self, client, caplog, monkeypatch):
        caplog.set_level(logging.INFO, logger="quiz_api")

        async def broken(store):
            raise RuntimeError("boom")

        monkeypatch.setattr(queries, "list_categories", broken)

        with pytest.raises(RuntimeError):
            client.get("/categories")

        lines = [r.getMessage() for r in caplog.records if r.name == "quiz_api"]
        assert any("method=GET path=/categories status=500" in line for line in lines)
