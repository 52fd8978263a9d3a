import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..errors import AnswerBatchInconsistent, ResponseNotFound, StorageError, ValidationError
from ..extensions import db
from ..models import ANSWER_VALUES, LANGUAGES, MAX_REMARKS_LENGTH, Answer, Question, UserResponse

logger = logging.getLogger(__name__)


def _clean_answers(answers):
    """Validate submitted answers and return (question_id, answer, remarks) tuples."""
    if not isinstance(answers, list) or not answers:
        raise ValidationError("answers must be a non-empty array")

    cleaned = []
    for i, item in enumerate(answers, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"answer #{i} must be an object")
        question_id = item.get("question_id", item.get("questionId"))
        value = item.get("answer")
        remarks = item.get("remarks") or ""
        if not question_id or not value:
            raise ValidationError(f"answer #{i} must have question_id and answer value")
        try:
            question_id = int(question_id)
        except (TypeError, ValueError):
            raise ValidationError(f"answer #{i} has an invalid question_id: {question_id!r}")
        if value not in ANSWER_VALUES:
            raise ValidationError(f"answer #{i} must be one of {', '.join(ANSWER_VALUES)}")
        remarks = str(remarks).strip()
        if len(remarks) > MAX_REMARKS_LENGTH:
            raise ValidationError(f"answer #{i} remarks exceed {MAX_REMARKS_LENGTH} characters")
        cleaned.append((question_id, value, remarks))
    return cleaned


def _insert_answers(response_id, cleaned):
    for question_id, value, remarks in cleaned:
        db.session.add(Answer(question_id=question_id, response_id=response_id,
                              answer=value, remarks=remarks))
        db.session.flush()

    stored = db.session.query(func.count(Answer.id)).filter_by(response_id=response_id).scalar()
    if stored != len(cleaned):
        raise AnswerBatchInconsistent(f"expected {len(cleaned)} answers, stored {stored}")


def submit_response(email, language, answers) -> UserResponse:
    """Store a response and its answers in one transaction.

    Any failing answer rolls the whole submission back, the response row
    included.
    """
    email = email.strip() if isinstance(email, str) else ""
    if not email:
        raise ValidationError("email is required")
    if language not in LANGUAGES:
        raise ValidationError("Invalid language. Use EN or ID")
    cleaned = _clean_answers(answers)

    try:
        response = UserResponse(email=email, language=language)
        db.session.add(response)
        db.session.flush()
        _insert_answers(response.id, cleaned)
        db.session.commit()
    except AnswerBatchInconsistent:
        db.session.rollback()
        logger.error(f"Answer count mismatch for {email}, submission rolled back")
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to insert answers for {email}, submission rolled back: {e}")
        raise AnswerBatchInconsistent(f"Failed to insert answers: {e.__class__.__name__}") from e

    logger.info(f"Response {response.id} submitted by {email} ({language}, {len(cleaned)} answers)")
    return response


def get_response(response_id) -> UserResponse:
    response = db.session.get(UserResponse, response_id)
    if response is None:
        raise ResponseNotFound()
    return response


def replace_answers(response_id, answers) -> UserResponse:
    """Swap the complete answer set of a response (admin corrections)."""
    response = get_response(response_id)
    cleaned = _clean_answers(answers)
    try:
        db.session.query(Answer).filter_by(response_id=response.id).delete()
        _insert_answers(response.id, cleaned)
        db.session.commit()
    except AnswerBatchInconsistent:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to replace answers of response {response_id}: {e}")
        raise AnswerBatchInconsistent(f"Failed to update answers: {e.__class__.__name__}") from e
    logger.info(f"Response {response_id} answers replaced ({len(cleaned)} answers)")
    return response


def delete_response(response_id) -> None:
    response = get_response(response_id)
    try:
        db.session.query(Answer).filter_by(response_id=response.id).delete()
        db.session.delete(response)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(f"Failed to delete response {response_id}: {e}") from e
    logger.info(f"Response {response_id} deleted")


def answers_for_response(response_id):
    """Answers joined with their question, in questionnaire order."""
    rows = db.session.query(Answer, Question) \
        .join(Question, Answer.question_id == Question.id) \
        .filter(Answer.response_id == response_id) \
        .order_by(Question.sequence_order.asc(), Question.id.asc()).all()
    return [{
        "id": a.id,
        "question_id": q.id,
        "response_id": a.response_id,
        "answer": a.answer,
        "remarks": a.remarks or "",
        "area": q.area,
        "activity": q.activity,
        "criteria": q.criteria,
        "sequence_order": q.sequence_order,
    } for a, q in rows]


def get_response_with_answers(response_id):
    response = get_response(response_id)
    return {"response": response.to_dict(), "answers": answers_for_response(response.id)}


def answer_summary(answers):
    return {
        "total": len(answers),
        "yes": sum(1 for a in answers if a["answer"] == "Yes"),
        "no": sum(1 for a in answers if a["answer"] == "No"),
        "na": sum(1 for a in answers if a["answer"] == "N/A"),
        "with_remarks": sum(1 for a in answers if (a.get("remarks") or "").strip()),
    }


def percentage(part, whole) -> int:
    # half-up, 2.5% -> 3%
    return int(part * 100.0 / whole + 0.5) if whole else 0


def completion_percentage(answered, expected) -> int:
    return percentage(answered, expected)
