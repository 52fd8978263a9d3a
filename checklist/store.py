import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from .errors import StorageError
from .extensions import db
from .models import ExcelFile, Question

logger = logging.getLogger(__name__)


class QuestionStore:
    """Question table access used by the import pipeline.

    Every write commits on its own, so one failed insert never takes the rows
    before it down with it.
    """

    def count_questions(self) -> int:
        try:
            return db.session.query(func.count(Question.id)).scalar() or 0
        except SQLAlchemyError as e:
            raise StorageError(f"count failed: {e}") from e

    def clear_questions(self) -> None:
        # submitted answers stay; their question_id is nulled by the FK
        try:
            cleared = db.session.query(Question).delete()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageError(f"clear failed: {e}") from e
        logger.info(f"Cleared {cleared} questions")

    def insert_question(self, area: str, activity: str, criteria: str, language: str, order: int) -> Question:
        question = Question(area=area, activity=activity, criteria=criteria,
                            language=language, sequence_order=order)
        try:
            db.session.add(question)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageError(f"insert failed: {e}") from e
        return question

    def record_imported_file(self, filename: str) -> ExcelFile:
        record = ExcelFile(filename=filename)
        try:
            db.session.add(record)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageError(f"recording {filename} failed: {e}") from e
        logger.info(f"Recorded import of {filename}")
        return record
