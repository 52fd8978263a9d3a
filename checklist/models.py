from .extensions import db
from datetime import datetime

LANGUAGES = ("EN", "ID")
LANGUAGE_NAMES = {"EN": "English", "ID": "Bahasa Indonesia"}
ANSWER_VALUES = ("Yes", "No", "N/A")
MAX_REMARKS_LENGTH = 140


class Question(db.Model):
    __tablename__ = 'questions'
    __table_args__ = {'sqlite_autoincrement': True}

    id = db.Column(db.Integer, primary_key=True)
    area = db.Column(db.Text, nullable=False)
    activity = db.Column(db.Text, nullable=False)
    criteria = db.Column(db.Text, nullable=False)
    language = db.Column(db.String(2), nullable=False, index=True)
    sequence_order = db.Column(db.Integer, nullable=False, default=0)

    answers = db.relationship('Answer', backref='question', lazy=True, passive_deletes=True)

    def to_dict(self):
        return {
            "id": self.id,
            "area": self.area,
            "activity": self.activity,
            "criteria": self.criteria,
            "language": self.language,
            "sequence_order": self.sequence_order,
        }


class UserResponse(db.Model):
    __tablename__ = 'user_responses'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    language = db.Column(db.String(2), nullable=False)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    answers = db.relationship('Answer', backref='response', lazy=True,
                              cascade='all, delete-orphan')

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "language": self.language,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


class Answer(db.Model):
    __tablename__ = 'answers'

    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey('questions.id', ondelete='SET NULL'), index=True)
    response_id = db.Column(db.Integer, db.ForeignKey('user_responses.id'), nullable=False, index=True)
    answer = db.Column(db.String(8), nullable=False)    # Yes / No / N/A
    remarks = db.Column(db.String(MAX_REMARKS_LENGTH), default='')


class ExcelFile(db.Model):
    __tablename__ = 'excel_files'

    id = db.Column(db.Integer, primary_key=True)
    filename = db.Column(db.String(255), nullable=False)
    uploaded_at = db.Column(db.DateTime, default=datetime.utcnow)
