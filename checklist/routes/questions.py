from flask import Blueprint, Response, jsonify, request

from ..auth import admin_required
from ..errors import QuestionNotFound, ValidationError
from ..extensions import db
from ..models import LANGUAGES, Question
from ..reports import build_question_report
from ..services.stats import answers_for_question, question_statistics

bp = Blueprint("questions", __name__)


def _get_question(question_id):
    question = db.session.get(Question, question_id)
    if question is None:
        raise QuestionNotFound()
    return question


@bp.get("")
def list_questions():
    lang = request.args.get("lang")
    if lang not in LANGUAGES:
        raise ValidationError(message="Language parameter required. Use lang=EN or lang=ID")

    questions = Question.query.filter_by(language=lang) \
        .order_by(Question.sequence_order.asc(), Question.id.asc()).all()
    items = [q.to_dict() for q in questions]

    # dicts keep insertion order, so areas come out in questionnaire order
    grouped = {}
    for q in items:
        grouped.setdefault(q["area"], []).append(q)

    return jsonify({
        "success": True,
        "language": lang,
        "total_questions": len(items),
        "questions": items,
        "grouped_questions": grouped,
    })


@bp.get("/stats")
def stats():
    lang = request.args.get("lang")
    if lang and lang not in LANGUAGES:
        raise ValidationError(message="Invalid language. Use EN or ID")
    return jsonify({"success": True, "stats": question_statistics(lang)})


@bp.get("/<int:question_id>")
def get_question(question_id):
    return jsonify({"success": True, "question": _get_question(question_id).to_dict()})


@bp.get("/<int:question_id>/answers")
def question_answers(question_id):
    _get_question(question_id)
    return jsonify({
        "success": True,
        "question_id": question_id,
        "answers": answers_for_question(question_id),
    })


@bp.get("/<int:question_id>/pdf")
@admin_required
def question_pdf(question_id):
    question = _get_question(question_id)
    pdf = build_question_report(question.to_dict(), answers_for_question(question_id))
    return Response(pdf, mimetype="application/pdf", headers={
        "Content-Disposition": f'attachment; filename="question-{question_id}.pdf"',
    })
