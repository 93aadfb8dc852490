from shared.utils.app_status_code import AppStatusCode


class ComplianceError(Exception):
    """Base for domain failures that map onto a JsonOutResult failure envelope."""

    http_status = 400
    app_status_code = AppStatusCode.OPERATION_FAILED

    def __init__(self, message: str, http_status: int | None = None, app_status_code: str | None = None):
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status
        if app_status_code is not None:
            self.app_status_code = app_status_code


class NotFoundError(ComplianceError):
    http_status = 404
    app_status_code = AppStatusCode.NOT_FOUND


class InvalidCaseStateError(ComplianceError):
    http_status = 400
    app_status_code = AppStatusCode.INVALID_CASE_STATE


class ReviewConflictError(ComplianceError):
    http_status = 409
    app_status_code = AppStatusCode.REVIEW_ALREADY_DECIDED


class ImportInProgressError(ComplianceError):
    http_status = 409
    app_status_code = AppStatusCode.IMPORT_IN_PROGRESS


class ImportValidationError(ComplianceError):
    app_status_code = AppStatusCode.REQUIRED_VALIDATION_ERROR


class RowValidationError(ComplianceError):
    """Raised for a single import row; recorded in the row log, never surfaced over HTTP."""

    app_status_code = AppStatusCode.REQUIRED_VALIDATION_ERROR


class SpreadsheetParseError(ComplianceError):
    app_status_code = AppStatusCode.IMPORT_FILE_UNREADABLE


class PasswordProtectedFileError(SpreadsheetParseError):
    app_status_code = AppStatusCode.IMPORT_FILE_PASSWORD_PROTECTED
