from pathlib import Path

import pytest

from checklist import _seed_questions
from checklist.models import Answer, ExcelFile, Question, UserResponse


def _submit(client, questions, email="user@example.com", language="EN"):
    return client.post("/api/responses", json={
        "email": email,
        "language": language,
        "answers": [{"question_id": q.id, "answer": "Yes", "remarks": ""} for q in questions],
    })


def _upload(client, path, url, headers, **form):
    with open(path, "rb") as fh:
        data = dict(form, excel=(fh, Path(path).name))
        return client.post(url, data=data, headers=headers, content_type="multipart/form-data")


def test_health(client):
    assert client.get("/api/health").get_json()["status"] == "ok"


def test_unknown_api_path_is_json(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not found"


class TestQuestions:

    def test_language_required(self, client):
        assert client.get("/api/questions").status_code == 400
        assert client.get("/api/questions?lang=FR").status_code == 400

    def test_list_grouped(self, client, seeded):
        body = client.get("/api/questions?lang=EN").get_json()
        assert body["total_questions"] == 3
        assert [q["sequence_order"] for q in body["questions"]] == [1, 2, 3]
        assert list(body["grouped_questions"]) == ["Modeling"]

    def test_single_question(self, client, seeded):
        q = seeded["ID"][0]
        assert client.get(f"/api/questions/{q.id}").get_json()["question"]["area"] == "Pemodelan"
        assert client.get("/api/questions/9999").status_code == 404

    def test_stats_and_answers(self, client, seeded):
        _submit(client, seeded["EN"])
        stats = client.get("/api/questions/stats?lang=EN").get_json()["stats"]
        assert [s["yes_count"] for s in stats] == [1, 1, 1]

        answers = client.get(f"/api/questions/{seeded['EN'][0].id}/answers").get_json()["answers"]
        assert answers[0]["email"] == "user@example.com"

    def test_question_pdf_needs_admin(self, client, seeded, admin_headers):
        url = f"/api/questions/{seeded['EN'][0].id}/pdf"
        assert client.get(url).status_code == 401
        resp = client.get(url, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.data.startswith(b"%PDF")


class TestResponses:

    def test_submit_and_fetch(self, client, seeded):
        resp = _submit(client, seeded["EN"])
        assert resp.status_code == 201
        response_id = resp.get_json()["response_id"]

        data = client.get(f"/api/responses/{response_id}").get_json()["data"]
        assert data["response"]["email"] == "user@example.com"
        assert len(data["answers"]) == 3

    def test_submit_missing_fields(self, client, seeded):
        resp = client.post("/api/responses", json={"email": "a@b.c"})
        assert resp.status_code == 400
        assert "Missing required fields" in resp.get_json()["error"]

    @pytest.mark.parametrize("email", [123, ["a@b.c"], "   "])
    def test_submit_rejects_non_text_email(self, client, seeded, email):
        resp = client.post("/api/responses", json={
            "email": email,
            "language": "EN",
            "answers": [{"question_id": seeded["EN"][0].id, "answer": "Yes"}],
        })
        assert resp.status_code == 400
        assert UserResponse.query.count() == 0

    def test_failed_submission_leaves_nothing(self, client, seeded):
        resp = client.post("/api/responses", json={
            "email": "user@example.com",
            "language": "EN",
            "answers": [{"question_id": q.id, "answer": "Yes"} for q in seeded["EN"]]
                       + [{"question_id": 777, "answer": "No"}],
        })
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "Failed to store answers"
        assert UserResponse.query.count() == 0
        assert Answer.query.count() == 0

    def test_list_filters(self, client, seeded):
        _submit(client, seeded["EN"], email="alice@example.com")
        _submit(client, seeded["ID"], email="budi@example.com", language="ID")
        body = client.get("/api/responses?language=ID").get_json()
        assert body["count"] == 1
        assert body["responses"][0]["email"] == "budi@example.com"
        assert client.get("/api/responses?limit=1").get_json()["count"] == 1

    def test_update_and_delete(self, client, seeded):
        response_id = _submit(client, seeded["EN"]).get_json()["response_id"]

        resp = client.put(f"/api/responses/{response_id}",
                          json={"answers": [{"question_id": seeded["EN"][0].id, "answer": "No"}]})
        assert resp.status_code == 200
        assert [a.answer for a in Answer.query.filter_by(response_id=response_id)] == ["No"]

        assert client.delete(f"/api/responses/{response_id}").status_code == 200
        assert client.delete(f"/api/responses/{response_id}").status_code == 404

    def test_user_pdf(self, client, seeded):
        response_id = _submit(client, seeded["EN"]).get_json()["response_id"]
        resp = client.get(f"/api/responses/{response_id}/pdf")
        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert resp.data.startswith(b"%PDF")
        assert client.get("/api/responses/9999/pdf").status_code == 404

    def test_user_pdf_filename_is_header_safe(self, client, seeded):
        response_id = _submit(client, seeded["EN"], email='we"ird@example.com').get_json()["response_id"]
        resp = client.get(f"/api/responses/{response_id}/pdf")
        assert resp.status_code == 200
        assert resp.headers["Content-Disposition"] == \
            f'attachment; filename="checklist-weirdexample.com-{response_id}.pdf"'


class TestAdmin:

    def test_login(self, client, app):
        ok = client.post("/api/admin/login", json={"username": "admin", "password": app.config["ADMIN_PASSWORD"]})
        assert ok.get_json()["token"] == app.config["ADMIN_TOKEN"]
        bad = client.post("/api/admin/login", json={"username": "admin", "password": "wrong"})
        assert bad.status_code == 401

    def test_requires_token(self, client):
        assert client.get("/api/admin/dashboard").status_code == 401
        assert client.get("/api/admin/dashboard", headers={"Authorization": "Bearer nope"}).status_code == 401

    def test_dashboard(self, client, seeded, admin_headers):
        _submit(client, seeded["EN"])
        stats = client.get("/api/admin/dashboard", headers=admin_headers).get_json()["statistics"]
        assert stats["total_responses"] == 1
        assert stats["total_questions"] == 6

    def test_upload_excel(self, client, app, admin_headers, make_workbook, checklist_sheets):
        resp = _upload(client, make_workbook(checklist_sheets), "/api/admin/upload-excel", admin_headers)

        body = resp.get_json()
        assert resp.status_code == 200
        assert body["questions_imported"] == 6
        assert Question.query.count() == 6
        assert ExcelFile.query.count() == 1
        assert (Path(app.config["UPLOAD_DIR"]) / body["filename"]).exists()

    def test_upload_again_needs_force(self, client, seeded, admin_headers, make_workbook):
        path = make_workbook({"Eng": [["Area", "Activity", "Criteria"], ["Drafting", "Dimension", "Placed"]]},
                             name="new.xlsx")

        skipped = _upload(client, path, "/api/admin/upload-excel", admin_headers).get_json()
        assert skipped["questions_imported"] == 0
        assert Question.query.count() == 6

        forced = _upload(client, path, "/api/admin/upload-excel", admin_headers, force="true").get_json()
        assert forced["questions_imported"] == 1
        assert Question.query.count() == 1

    def test_upload_keeps_three_newest(self, client, app, admin_headers, make_workbook, checklist_sheets):
        path = make_workbook(checklist_sheets)
        for _ in range(5):
            _upload(client, path, "/api/admin/upload-excel", admin_headers)
        assert len(list(Path(app.config["UPLOAD_DIR"]).glob("*.xlsx"))) <= 3

    def test_upload_rejects_non_excel(self, client, admin_headers, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("hello")
        resp = _upload(client, notes, "/api/admin/upload-excel", admin_headers)
        assert resp.status_code == 400

    def test_unreadable_upload_is_removed(self, client, app, seeded, admin_headers, tmp_path):
        broken = tmp_path / "bad.xlsx"
        broken.write_bytes(b"not a workbook")

        resp = _upload(client, broken, "/api/admin/upload-excel", admin_headers, force="true")

        assert resp.status_code == 422
        assert Question.query.count() == 6
        assert not list(Path(app.config["UPLOAD_DIR"]).glob("*bad.xlsx"))

    def test_preview_excel(self, client, app, admin_headers, make_workbook, checklist_sheets):
        resp = _upload(client, make_workbook(checklist_sheets), "/api/admin/preview-excel", admin_headers)

        preview = resp.get_json()["preview"]
        assert set(preview) == {"Eng", "Bahasa"}
        assert preview["Eng"]["row_count"] == 3
        assert Question.query.count() == 0
        assert list(Path(app.config["UPLOAD_DIR"]).iterdir()) == []

    def test_responses_pagination_and_details(self, client, seeded, admin_headers):
        for i in range(3):
            _submit(client, seeded["EN"][:2], email=f"user{i}@example.com")

        data = client.get("/api/admin/responses?page=1&limit=2", headers=admin_headers).get_json()["data"]
        assert len(data["responses"]) == 2
        assert data["pagination"]["total_items"] == 3

        response_id = data["responses"][0]["id"]
        details = client.get(f"/api/admin/responses/{response_id}/details", headers=admin_headers).get_json()
        assert details["data"]["completion_percentage"] == 67

        assert client.delete(f"/api/admin/responses/{response_id}", headers=admin_headers).status_code == 200
        assert UserResponse.query.count() == 2

    def test_consolidated_pdf(self, client, seeded, admin_headers):
        _submit(client, seeded["EN"])
        _submit(client, seeded["ID"], email="budi@example.com", language="ID")
        resp = client.get("/api/admin/report/pdf", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.data.startswith(b"%PDF")
        assert client.get("/api/admin/report/pdf?language=ID", headers=admin_headers).status_code == 200


class TestStartupAndCli:

    def test_seed_workbook_from_config(self, app, make_workbook, checklist_sheets):
        app.config["SEED_WORKBOOK"] = str(make_workbook(checklist_sheets))
        _seed_questions(app)
        assert Question.query.count() == 6

    def test_missing_seed_workbook_is_not_fatal(self, app, tmp_path):
        app.config["SEED_WORKBOOK"] = str(tmp_path / "missing.xlsx")
        _seed_questions(app)
        assert Question.query.count() == 0

    def test_cli_import_and_preview(self, app, make_workbook, checklist_sheets):
        path = str(make_workbook(checklist_sheets))
        runner = app.test_cli_runner()

        preview = runner.invoke(args=["preview-questions", path])
        assert '"row_count": 3' in preview.output
        assert Question.query.count() == 0

        result = runner.invoke(args=["import-questions", path])
        assert "Imported 6 questions" in result.output

        again = runner.invoke(args=["import-questions", path])
        assert "nothing imported" in again.output
