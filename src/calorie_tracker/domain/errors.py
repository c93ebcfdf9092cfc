"""Error taxonomy for the calorie tracker."""


class TrackerError(Exception):
    """Base class for errors with a user-safe message."""

    message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(TrackerError):
    """A request is missing a required field or carries an invalid value."""

    message = "Invalid request."


class AIError(TrackerError):
    """The vision model could not produce a usable estimate."""


class AIUnavailableError(AIError):
    """The vision model call failed or timed out."""

    message = "The food recognition service is unavailable. Please try again."


class AIParseError(AIError):
    """The vision model answered without a usable food estimate."""

    message = "Couldn't read a food estimate from that photo. Try another shot."


class StoreError(TrackerError):
    """The external spreadsheet could not be reached or updated."""


class StoreWriteError(StoreError):
    """A write-through to the external spreadsheet failed."""

    message = "Failed to write to the spreadsheet."


class StoreReadError(StoreError):
    """Rows could not be loaded from the external spreadsheet."""

    message = "Failed to read from the spreadsheet."
