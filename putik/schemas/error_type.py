from enum import Enum

class ErrorType(str, Enum):
    '''
    Structured classification of what went wrong in a request.

    INPUT_ERROR: malformed or missing input. The user fixes the form and retries.
    VALIDATION_ERROR: input is well formed but fails a business check, e.g. not enough stock.
    BUSINESS_RULE_ERROR: the entity is in a state that forbids the action, e.g. accepting a cancelled booking.
    PERMISSION_DENIED: signed out, wrong role, or not the owner.
    NOT_FOUND: referenced entity does not exist.
    DATABASE_ERROR: the data store failed (connection, constraint, transaction).
    SYSTEM_ERROR: anything unclassified.
    '''
    INPUT_ERROR = "INPUT_ERROR"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    BUSINESS_RULE_ERROR = "BUSINESS_RULE_ERROR"

    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"

    DATABASE_ERROR = "DATABASE_ERROR"
    SYSTEM_ERROR = "SYSTEM_ERROR"


HTTP_STATUS = {
    ErrorType.INPUT_ERROR: 400,
    ErrorType.VALIDATION_ERROR: 409,
    ErrorType.BUSINESS_RULE_ERROR: 409,
    ErrorType.PERMISSION_DENIED: 403,
    ErrorType.NOT_FOUND: 404,
    ErrorType.DATABASE_ERROR: 500,
    ErrorType.SYSTEM_ERROR: 500,
}
