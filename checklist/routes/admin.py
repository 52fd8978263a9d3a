import logging

from flask import Blueprint, Response, current_app, jsonify, request

from ..auth import admin_required, check_credentials
from ..errors import Unauthorized, ValidationError, WorkbookUnreadable
from ..ingest.pipeline import force_reimport, import_workbook, preview_workbook
from ..models import LANGUAGES
from ..reports import build_consolidated_report
from ..services import submissions
from ..services.stats import (dashboard_statistics, filter_responses, paginate_responses,
                              question_statistics, questions_with_answers, response_details)
from ..uploads import prune_uploads, save_upload

logger = logging.getLogger(__name__)

bp = Blueprint("admin", __name__)


def _filters():
    return {
        "email": request.args.get("email"),
        "language": request.args.get("language"),
        "start_date": request.args.get("start_date"),
        "end_date": request.args.get("end_date"),
    }


@bp.post("/login")
def login():
    data = request.get_json(silent=True) or request.form
    if not check_credentials(data.get("username"), data.get("password")):
        raise Unauthorized(message="Invalid credentials")
    return jsonify({
        "success": True,
        "token": current_app.config["ADMIN_TOKEN"],
        "message": "Login successful",
    })


@bp.post("/upload-excel")
@admin_required
def upload_excel():
    p = save_upload(request.files.get("excel"), current_app.config["UPLOAD_DIR"])
    force = request.form.get("force", "").lower() in ("1", "true", "yes")
    try:
        result = force_reimport(p) if force else import_workbook(p)
    except WorkbookUnreadable:
        p.unlink(missing_ok=True)
        raise
    finally:
        prune_uploads(current_app.config["UPLOAD_DIR"], keep=current_app.config["KEEP_UPLOADS"])

    message = "Excel file uploaded and processed successfully"
    if result.skipped:
        message = "Questions already exist; upload with force=true to replace them"
    return jsonify({
        "success": True,
        "message": message,
        "filename": p.name,
        "questions_imported": result.total_inserted,
        "import": result.to_dict(),
    })


@bp.post("/preview-excel")
@admin_required
def preview_excel():
    p = save_upload(request.files.get("excel"), current_app.config["UPLOAD_DIR"])
    try:
        preview = preview_workbook(p)
    finally:
        try:
            p.unlink()
        except OSError as e:
            logger.error(f"Could not remove preview upload {p.name}: {e}")
    return jsonify({"success": True, "preview": preview})


@bp.get("/dashboard")
@admin_required
def dashboard():
    return jsonify({"success": True, "statistics": dashboard_statistics()})


@bp.get("/report/pdf")
@admin_required
def consolidated_pdf():
    filters = _filters()
    language = filters["language"]
    responses = [r.to_dict() for r in filter_responses(
        language=language, start_date=filters["start_date"], end_date=filters["end_date"]).all()]
    stats = question_statistics(language if language in LANGUAGES else None)

    details = {
        r["id"]: {
            "answers": submissions.answers_for_response(r["id"]),
            "questions": questions_with_answers(r["id"], r["language"]),
        } for r in responses
    }
    pdf = build_consolidated_report(responses, stats, details, title=current_app.config["REPORT_TITLE"])
    return Response(pdf, mimetype="application/pdf", headers={
        "Content-Disposition": 'attachment; filename="consolidated-report.pdf"',
    })


@bp.get("/responses")
@admin_required
def responses():
    try:
        page = int(request.args.get("page", 1))
        limit = int(request.args.get("limit", 20))
    except ValueError:
        raise ValidationError("page and limit must be integers")
    return jsonify({"success": True, "data": paginate_responses(page=page, limit=limit, **_filters())})


@bp.get("/responses/<int:response_id>/details")
@admin_required
def details(response_id):
    return jsonify({"success": True, "data": response_details(response_id)})


@bp.delete("/responses/<int:response_id>")
@admin_required
def delete(response_id):
    submissions.delete_response(response_id)
    return jsonify({"success": True, "message": "Response deleted successfully"})
