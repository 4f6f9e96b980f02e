from __future__ import annotations


class ClassroomError(Exception):
	"""Base class for errors the API maps to a response instead of a crash."""

	status_code = 400

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message


class NoStudentsError(ClassroomError):
	status_code = 409


class PickerStateError(ClassroomError):
	status_code = 409


class NoActiveSessionError(ClassroomError):
	status_code = 409


class StorageFullError(ClassroomError):
	# The write failed; whatever is held in memory is untouched
	status_code = 507


class CloudConfigError(ClassroomError):
	status_code = 422


class CloudPermissionError(ClassroomError):
	status_code = 503


class CloudUnavailableError(ClassroomError):
	status_code = 503


class ContentGenerationError(ClassroomError):
	status_code = 502
