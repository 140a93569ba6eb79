"""
Shared exceptions for service layer operations.

Three families are surfaced to callers, each mapped to its own HTTP status in
``api.main``:

- ``NotFoundError``: an id does not resolve under the caller's ownership.
- ``PreconditionFailedError``: the operation is impossible for the resource's
  current state. Retrying will not help.
- ``PushRequestError``: the platform push could not be requested. Transient,
  safe to retry.
"""
from uuid import UUID


class NotFoundError(Exception):
    """Raised when an entity does not exist or belongs to another user."""

    entity_name = "Resource"
    error_code = "not_found"

    def __init__(self, entity_id: UUID | str) -> None:
        self.entity_id = entity_id
        super().__init__(f"{self.entity_name} not found: {entity_id}")

    @property
    def hint(self) -> str:
        """Actionable follow-up for the caller."""
        return f"Check the {self.entity_name.lower()} ID"


class TemplateNotFoundError(NotFoundError):
    """Raised when a template is missing or not owned by the user."""

    entity_name = "Template"
    error_code = "template_not_found"


class ContainerNotFoundError(NotFoundError):
    """Raised when a container is missing or not owned by the user."""

    entity_name = "Container"
    error_code = "container_not_found"


class VideoNotFoundError(NotFoundError):
    """Raised when a video is missing or its channel is not owned by the user."""

    entity_name = "Video"
    error_code = "video_not_found"


class HistoryEntryNotFoundError(NotFoundError):
    """Raised when a history entry does not exist for any of the user's videos."""

    entity_name = "History entry"
    error_code = "history_entry_not_found"


class PreconditionFailedError(Exception):
    """
    Raised when an operation is invalid for a resource's current state.

    Carries a stable ``error_code`` and a ``hint`` telling the user what to do
    instead.
    """

    error_code = "precondition_failed"

    def __init__(self, message: str, hint: str = "") -> None:
        self.message = message
        self.hint = hint
        super().__init__(message)


class VideoAlreadyAssignedError(PreconditionFailedError):
    """Raised when attaching a video that already has a container."""

    error_code = "already_assigned"

    def __init__(self, video_id: UUID | None, container_id: UUID) -> None:
        self.video_id = video_id
        self.container_id = container_id
        super().__init__(
            "Video is already assigned to a container",
            "A video's container cannot be changed. Detach the video (or roll it "
            "back) first, then attach it again.",
        )


class VideoNotAssignedError(PreconditionFailedError):
    """Raised when an operation needs the video to be attached to a container."""

    error_code = "not_assigned"

    def __init__(self, video_id: UUID) -> None:
        self.video_id = video_id
        super().__init__(
            "Video must be assigned to a container first",
            "Attach the video to a container before editing variables or previewing.",
        )


class HistoryEntryMismatchError(PreconditionFailedError):
    """Raised when a history entry exists but belongs to a different video."""

    error_code = "history_entry_mismatch"

    def __init__(self, video_id: UUID, history_id: UUID) -> None:
        self.video_id = video_id
        self.history_id = history_id
        super().__init__(
            "History entry belongs to a different video",
            "Pick a version from this video's own history.",
        )


class InvalidVariableError(ValueError):
    """Raised when a variable update targets a key the container does not define."""

    def __init__(self, template_id: UUID, name: str) -> None:
        self.template_id = template_id
        self.name = name
        super().__init__(
            f"Variable '{name}' is not defined by template {template_id} "
            f"in this video's container",
        )


class InvalidTemplateOrderError(ValueError):
    """Raised when a container's template order is invalid (e.g., duplicates)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class PushRequestError(Exception):
    """
    Raised when a description push could not be requested.

    Local state changes made in the same unit of work are rolled back, so the
    caller can retry the whole operation.
    """

    error_code = "push_request_failed"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
