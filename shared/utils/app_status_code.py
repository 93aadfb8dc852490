class AppStatusCode:
    DATA_RETRIEVED_SUCCESSFULLY = "200"
    OPERATION_SUCCESSFUL = "201"

    OPERATION_FAILED = "1000"
    OPERATION_ERROR = "1001"
    INVALID_INPUT = "1002"
    REQUIRED_VALIDATION_ERROR = "1003"
    DUPLICATE_ADD_ERROR = "1004"
    NOT_FOUND = "1005"

    AUTHENTICATION_TOKEN_INVALID = "2001"
    AUTHENTICATION_TOKEN_EXPIRED = "2002"
    AUTHENTICATION_USER_INVALID = "2003"

    # case workflow
    INVALID_CASE_STATE = "3001"

    # imports / duplicate review
    IMPORT_IN_PROGRESS = "4001"
    IMPORT_FILE_UNREADABLE = "4002"
    IMPORT_FILE_PASSWORD_PROTECTED = "4003"
    REVIEW_ALREADY_DECIDED = "4004"
