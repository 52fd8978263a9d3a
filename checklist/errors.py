"""Error types raised by the checklist services.

Every error carries the HTTP status it maps to, so the app can register a
single handler for the whole family. Conditions that only skip a sheet or a
row during an import are logged by the pipeline and never raised.
"""


class ChecklistError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, details=None, message=None):
        super().__init__(details or message or self.message)
        if message:
            self.message = message
        self.details = details

    def to_dict(self):
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ChecklistError):
    status_code = 400
    message = "Invalid request"


class Unauthorized(ChecklistError):
    status_code = 401
    message = "Unauthorized"


class ResponseNotFound(ChecklistError):
    status_code = 404
    message = "Response not found"


class QuestionNotFound(ChecklistError):
    status_code = 404
    message = "Question not found"


class DocumentNotFound(ChecklistError):
    status_code = 404
    message = "Excel file not found"


class WorkbookUnreadable(ChecklistError):
    status_code = 422
    message = "Excel file could not be read"


class StorageError(ChecklistError):
    message = "Storage operation failed"


class AnswerBatchInconsistent(ChecklistError):
    message = "Failed to store answers"
