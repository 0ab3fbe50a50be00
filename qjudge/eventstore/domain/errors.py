"""Domain rejections raised by entity commands."""

from qjudge.core.errors import QJudgeError


class EntityRejectedError(QJudgeError):
    """Raised when a command violates an entity precondition. No event is appended."""

    def __init__(self, entity_type: str, entity_id: str, reason: str) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Failed to apply command to {entity_type} {entity_id!r}: {reason}")


class EntityAlreadyExistsError(EntityRejectedError):
    """Raised by create-style commands when the entity already has state."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(
            entity_type=entity_type, entity_id=entity_id, reason="already exists"
        )


class EntityNotFoundError(EntityRejectedError):
    """Raised by commands that require an existing entity."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(entity_type=entity_type, entity_id=entity_id, reason="not found")


class ConcurrencyConflictError(QJudgeError):
    """Raised when an append races another writer on the same entity."""

    def __init__(
        self, entity_type: str, entity_id: str, expected_version: int, actual_version: int
    ) -> None:
        super().__init__(
            f"Failed to append to {entity_type} {entity_id!r}: expected version"
            f" {expected_version}, found {actual_version}",
            retriable=True,
        )
