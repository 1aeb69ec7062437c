"""Error taxonomy shared by the northstar services.

Validation and not-found errors propagate to the caller unchanged.
Dependency and projection failures are absorbed where they happen
(fallback roadmap, best-effort journal write) and only ever logged.
"""


class NorthstarError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(NorthstarError):
    """A required field is missing or blank. No state was mutated."""
    status_code = 400


class NotFoundError(NorthstarError):
    """A referenced goal/milestone/action/check-in does not exist for the caller."""
    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(NorthstarError):
    """A second daily check-in was written for a (user, date) pair."""
    status_code = 409


class DependencyUnavailable(NorthstarError):
    """The roadmap generator could not produce a usable answer."""
    status_code = 503


class ProjectionWriteFailed(NorthstarError):
    """The journal upsert failed after the check-in itself was saved."""
