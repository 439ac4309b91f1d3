"""
Structured error codes for detection, validation and constraint application.
Use these keys in return values; map to user-facing messages in the admin UI.
"""

# Known error keys
INVALID_BUFFER = "invalid_buffer"
NO_MARKED_REGION = "no_marked_region"
NO_CONTOURS = "no_contours"
CONSTRAINT_NOT_FOUND = "constraint_not_found"
RUN_FAILED = "run_failed"

# User-facing messages (short, actionable)
USER_MESSAGES: dict[str, str] = {
    INVALID_BUFFER: "Image data does not match its dimensions. Re-upload the template.",
    NO_MARKED_REGION: "No marked area found in the template. Check the marker color or raise tolerance.",
    NO_CONTOURS: "Marked area could not be outlined. Try enabling hole filling or smoothing.",
    CONSTRAINT_NOT_FOUND: "No placement constraint is configured for this product and placement type.",
    RUN_FAILED: "Run failed. Check the template image and settings.",
}


class InputError(ValueError):
    """Malformed pixel buffer or dimensions. Fatal for the call that raised it."""

    key = INVALID_BUFFER


def user_message(error_key: str | None, fallback: str = "Something went wrong.") -> str:
    """Return a user-facing message for the given error key."""
    if not error_key:
        return fallback
    return USER_MESSAGES.get(error_key, fallback)
