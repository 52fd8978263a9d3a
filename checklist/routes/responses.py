from flask import Blueprint, Response, current_app, jsonify, request
from werkzeug.utils import secure_filename

from ..errors import ValidationError
from ..reports import build_user_report
from ..services import submissions
from ..services.stats import expected_questions, filter_responses

bp = Blueprint("responses", __name__)


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON body required")
    return data


@bp.post("")
def submit():
    data = _json_body()
    email = data.get("email")
    if not isinstance(email, str) or not email.strip() \
            or not data.get("language") or not isinstance(data.get("answers"), list):
        raise ValidationError(message="Missing required fields: email, language, and answers array")

    response = submissions.submit_response(data["email"], data["language"], data["answers"])
    return jsonify({
        "success": True,
        "response_id": response.id,
        "message": "Response submitted successfully",
    }), 201


@bp.get("")
def list_responses():
    try:
        limit = int(request.args.get("limit", 50))
    except ValueError:
        raise ValidationError("limit must be an integer")
    q = filter_responses(
        email=request.args.get("email"),
        language=request.args.get("language"),
        start_date=request.args.get("start_date"),
        end_date=request.args.get("end_date"),
    )
    responses = [r.to_dict() for r in q.limit(max(limit, 1)).all()]
    return jsonify({"success": True, "count": len(responses), "responses": responses})


@bp.get("/<int:response_id>")
def get_response(response_id):
    return jsonify({"success": True, "data": submissions.get_response_with_answers(response_id)})


@bp.get("/<int:response_id>/pdf")
def response_pdf(response_id):
    data = submissions.get_response_with_answers(response_id)
    response = data["response"]
    filename = secure_filename(f"checklist-{response['email']}-{response_id}.pdf")
    pdf = build_user_report(response, data["answers"], expected_questions(response["language"]),
                            title=current_app.config["REPORT_TITLE"])
    return Response(pdf, mimetype="application/pdf", headers={
        "Content-Disposition": f'attachment; filename="{filename}"',
    })


@bp.put("/<int:response_id>")
def update_response(response_id):
    data = _json_body()
    if not isinstance(data.get("answers"), list):
        raise ValidationError(message="Answers array is required")
    submissions.replace_answers(response_id, data["answers"])
    return jsonify({"success": True, "message": "Response updated successfully"})


@bp.delete("/<int:response_id>")
def delete_response(response_id):
    submissions.delete_response(response_id)
    return jsonify({"success": True, "message": "Response deleted successfully"})
