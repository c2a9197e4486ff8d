"""
Error taxonomy for Presence+.

Every failure the user can run into is a PresenceError carrying a short
title and a human readable message (what the client shows as a toast),
plus a category that decides the HTTP status code.
"""


class PresenceError(Exception):
    """Base class for all user-facing failures."""

    category = "backend"
    status_code = 500
    title = "Error"
    default_message = "Something went wrong. Please try again."

    def __init__(self, message=None, title=None):
        self.message = message or self.default_message
        if title:
            self.title = title
        super().__init__(self.message)

    def to_dict(self):
        return {"title": self.title, "message": self.message, "category": self.category}


# --- (a) Device permission errors ---

class DevicePermissionError(PresenceError):
    category = "device"
    status_code = 400


class CameraUnavailableError(DevicePermissionError):
    title = "Camera Error"
    default_message = "Could not access your camera. Please allow camera access and try again."


class LocationPermissionError(DevicePermissionError):
    title = "Location Error"
    default_message = (
        "Could not verify your location. Please allow location access "
        "or contact your teacher for assistance."
    )


class GeolocationUnsupportedError(DevicePermissionError):
    title = "Location Not Supported"
    default_message = (
        "Your browser doesn't support geolocation. Please use a different device "
        "or contact your teacher for assistance."
    )


# --- (b) Validation errors ---

class ValidationFailure(PresenceError):
    category = "validation"
    status_code = 400
    title = "Validation Error"


class MissingCredentialsError(ValidationFailure):
    default_message = "Please enter your roll number and password"


class MissingRollNumberError(ValidationFailure):
    title = "Roll Number Required"
    default_message = "Please enter your roll number"


class InvalidQRPayloadError(ValidationFailure):
    title = "Invalid QR Code"
    default_message = "This QR code could not be read. Please scan the code shown by your teacher."


class QRExpiredError(ValidationFailure):
    title = "QR Code Expired"
    default_message = "This QR code has expired. Please ask your teacher to generate a new one."


class OutOfRangeError(ValidationFailure):
    title = "Location Restriction"

    def __init__(self, distance, radius):
        self.distance = distance
        self.radius = radius
        super().__init__(
            f"You appear to be {round_half_up(distance)} meters away from the classroom. "
            f"You must be within {round_half_up(radius)} meters to mark attendance."
        )


class FaceNotRegisteredError(ValidationFailure):
    title = "Face Not Registered"
    default_message = "Face not registered. Please register your face first."


class FaceMismatchError(ValidationFailure):
    title = "Verification Failed"
    default_message = "Your face does not match our records. Please try again or contact support."


class InvalidImageError(ValidationFailure):
    title = "Invalid Image"
    default_message = "The captured image could not be read. Please try again."


class InvalidStatusError(ValidationFailure):
    default_message = "Invalid attendance status"


# --- Lookups, auth, conflicts ---

class NotFoundError(PresenceError):
    category = "not_found"
    status_code = 404
    title = "Not Found"
    default_message = "The requested record does not exist."


class StudentNotFoundError(NotFoundError):
    title = "Verification Failed"
    default_message = "Invalid roll number. Please check and try again."


class NotAuthenticatedError(PresenceError):
    category = "auth"
    status_code = 401
    title = "Authentication Required"
    default_message = "Please log in to continue."


class InvalidCredentialsError(NotAuthenticatedError):
    title = "Login Failed"
    default_message = "Invalid email or password."


class ForbiddenError(PresenceError):
    category = "forbidden"
    status_code = 403
    title = "Access Denied"
    default_message = "You are not allowed to perform this action."


class UserAlreadyExistsError(PresenceError):
    category = "conflict"
    status_code = 409
    title = "User Already Exists"
    default_message = "A user with this email already exists. Please login or use a different email."


# --- (c) Backend errors ---

class StoreError(PresenceError):
    """Raised by a Store when the managed database rejects a call."""

    category = "backend"
    status_code = 502
    title = "Database Error"
    default_message = "The database request failed."


class AttendanceError(StoreError):
    title = "Attendance Error"
    default_message = "Your attendance could not be recorded. Please try again."


def round_half_up(value):
    """Round to the nearest integer, halves away from zero for positives."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)
