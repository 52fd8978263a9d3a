import logging
import math
from datetime import timedelta

import pandas as pd
from sqlalchemy import case, func

from ..errors import ValidationError
from ..extensions import db
from ..models import LANGUAGES, Answer, Question, UserResponse
from .submissions import answer_summary, answers_for_response, completion_percentage, get_response

logger = logging.getLogger(__name__)

RECENT_RESPONSES = 10

# Performance bands, highest first
SCORE_BANDS = [
    (90, "Excellent"),
    (75, "Good"),
    (60, "Average"),
    (0, "Needs Improvement"),
]


def score_band(score) -> str:
    for floor, label in SCORE_BANDS:
        if score >= floor:
            return label
    return SCORE_BANDS[-1][1]


def _parse_date(value, name):
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        raise ValidationError(f"{name} is not a valid date: {value!r}")
    return ts.to_pydatetime()


def _answer_counts():
    return (
        func.count(Answer.id).label("total_answers"),
        func.coalesce(func.sum(case((Answer.answer == "Yes", 1), else_=0)), 0).label("yes_count"),
        func.coalesce(func.sum(case((Answer.answer == "No", 1), else_=0)), 0).label("no_count"),
        func.coalesce(func.sum(case((Answer.answer == "N/A", 1), else_=0)), 0).label("na_count"),
    )


def filter_responses(email=None, language=None, start_date=None, end_date=None):
    """Response query narrowed by the admin/list filters, newest first."""
    q = UserResponse.query
    if email:
        q = q.filter(UserResponse.email.like(f"%{email}%"))
    if language in LANGUAGES:
        q = q.filter(UserResponse.language == language)
    if start_date:
        q = q.filter(UserResponse.timestamp >= _parse_date(start_date, "start_date"))
    if end_date:
        end = _parse_date(end_date, "end_date")
        if len(str(end_date).strip()) <= 10:
            # a bare date covers the whole day
            q = q.filter(UserResponse.timestamp < end + timedelta(days=1))
        else:
            q = q.filter(UserResponse.timestamp <= end)
    return q.order_by(UserResponse.timestamp.desc(), UserResponse.id.desc())


def paginate_responses(page=1, limit=20, **filters):
    page, limit = max(int(page), 1), max(int(limit), 1)
    q = filter_responses(**filters)
    total = q.order_by(None).count()
    items = q.limit(limit).offset((page - 1) * limit).all()
    return {
        "responses": [r.to_dict() for r in items],
        "pagination": {
            "current_page": page,
            "total_pages": math.ceil(total / limit),
            "total_items": total,
            "items_per_page": limit,
        },
    }


def question_statistics(language=None):
    """Per-question answer counts; unanswered questions report zeros."""
    q = db.session.query(Question, *_answer_counts()) \
        .outerjoin(Answer, Answer.question_id == Question.id)
    if language:
        q = q.filter(Question.language == language)
    q = q.group_by(Question.id).order_by(Question.sequence_order.asc(), Question.id.asc())
    return [{
        "question_id": question.id,
        "area": question.area,
        "activity": question.activity,
        "criteria": question.criteria,
        "language": question.language,
        "total_responses": int(total),
        "yes_count": int(yes),
        "no_count": int(no),
        "na_count": int(na),
    } for question, total, yes, no, na in q.all()]


def area_statistics():
    rows = db.session.query(
        Question.area,
        Question.language,
        func.count(func.distinct(Question.id)).label("question_count"),
        *_answer_counts()
    ).outerjoin(Answer, Answer.question_id == Question.id) \
        .group_by(Question.area, Question.language) \
        .order_by(Question.area, Question.language).all()
    return [{
        "area": r.area,
        "language": r.language,
        "question_count": int(r.question_count),
        "total_answers": int(r.total_answers),
        "yes_count": int(r.yes_count),
        "no_count": int(r.no_count),
        "na_count": int(r.na_count),
    } for r in rows]


def dashboard_statistics():
    by_language = db.session.query(UserResponse.language, func.count(UserResponse.id)) \
        .group_by(UserResponse.language).all()
    recent = UserResponse.query.order_by(UserResponse.timestamp.desc(), UserResponse.id.desc()) \
        .limit(RECENT_RESPONSES).all()
    return {
        "total_responses": db.session.query(func.count(UserResponse.id)).scalar() or 0,
        "total_questions": db.session.query(func.count(Question.id)).scalar() or 0,
        "responses_by_language": [{"language": lang, "count": int(c)} for lang, c in by_language],
        "recent_responses": [r.to_dict() for r in recent],
        "question_statistics": area_statistics(),
    }


def expected_questions(language) -> int:
    return db.session.query(func.count(Question.id)).filter(Question.language == language).scalar() or 0


def response_details(response_id):
    response = get_response(response_id)
    summary = answer_summary(answers_for_response(response.id))
    expected = expected_questions(response.language)
    return {
        "response": response.to_dict(),
        "answer_summary": summary,
        "completion_percentage": completion_percentage(summary["total"], expected),
        "total_expected_questions": expected,
    }


def questions_with_answers(response_id, language):
    """Every question of the language in order, with this response's answer if any."""
    rows = db.session.query(Question, Answer) \
        .outerjoin(Answer, (Answer.question_id == Question.id) & (Answer.response_id == response_id)) \
        .filter(Question.language == language) \
        .order_by(Question.sequence_order.asc(), Question.id.asc()).all()
    return [{
        "sequence_order": q.sequence_order,
        "area": q.area,
        "activity": q.activity,
        "criteria": q.criteria,
        "answer": a.answer if a else "Not Answered",
        "remarks": (a.remarks or "") if a else "",
    } for q, a in rows]


def answers_for_question(question_id):
    """Answers to one question with the respondent, newest first."""
    rows = db.session.query(Answer, UserResponse) \
        .join(UserResponse, Answer.response_id == UserResponse.id) \
        .filter(Answer.question_id == question_id) \
        .order_by(UserResponse.timestamp.desc(), UserResponse.id.desc()).all()
    return [{
        "id": a.id,
        "question_id": a.question_id,
        "response_id": a.response_id,
        "answer": a.answer,
        "remarks": a.remarks or "",
        "email": r.email,
        "timestamp": r.timestamp.isoformat() if r.timestamp else None,
    } for a, r in rows]
