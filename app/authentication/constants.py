"""
Constants for user accounts.

Field limits are shared by the model, the serializers and the tests.
"""

# =============================================================================
# Field Limits
# =============================================================================

NAME_MAX_LENGTH = 25
USERNAME_MAX_LENGTH = 25
STATUS_MAX_LENGTH = 100

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 15

# At least one digit and one letter, 6-15 characters
PASSWORD_PATTERN = r"^(?=.*\d)(?=.*[a-zA-Z]).{6,15}$"
USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_STATUS = "Available"

DEFAULT_PROFILE_PICTURE = (
    "https://icon-library.com/images/my-profile-icon-png/my-profile-icon-png-14.jpg"
)

# Folder in object storage for uploaded profile pictures
PROFILE_PICTURE_FOLDER = "profile-pictures"

# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode:
    """Machine-readable error codes returned by UserService."""

    EMAIL_EXISTS = "EMAIL_EXISTS"
    USERNAME_TAKEN = "USERNAME_TAKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
