"""Domain errors raised by services; routers map them to HTTP responses."""


class MathAdventureError(Exception):
    """Base class for domain errors."""


class NotFoundError(MathAdventureError):
    entity = "Entity"

    def __init__(self, entity_id: int | None = None):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found")


class UserNotFound(NotFoundError):
    entity = "User"


class LevelNotFound(NotFoundError):
    entity = "Level"


class ProblemNotFound(NotFoundError):
    entity = "Problem"


class InvalidActionError(MathAdventureError):
    def __init__(self, action: str | None):
        self.action = action
        super().__init__("Invalid action")


class MissingParametersError(MathAdventureError):
    def __init__(self, *names: str):
        self.names = names
        super().__init__("Missing required parameters")
