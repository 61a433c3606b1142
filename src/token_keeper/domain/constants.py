from enum import Enum


class TokenKind(Enum):
    REFRESH = "refresh"
    ACCESS = "access"


# Renewal defaults, in seconds
DEFAULT_REFRESH_THRESHOLD = 60 * 60
DEFAULT_REFRESH_CHECK_PERIOD = 30 * 60
DEFAULT_ACCESS_THRESHOLD = 10 * 60
DEFAULT_ACCESS_CHECK_PERIOD = 5 * 60

UNKNOWN_ERROR = "UNKNOWN_ERROR"
DEFAULT_STRINGS = {
    UNKNOWN_ERROR: "An unknown error has occurred.",
}
