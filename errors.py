class RegistryError(Exception):
    kind = "RegistryError"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

class Unauthorized(RegistryError):
    kind = "Unauthorized"

class NotFound(RegistryError):
    kind = "NotFound"

class InvalidInput(RegistryError):
    kind = "InvalidInput"

class InvalidIdentity(InvalidInput):
    kind = "InvalidIdentity"

class AlreadyFlagged(RegistryError):
    kind = "AlreadyFlagged"

class AlreadyExists(RegistryError):
    kind = "AlreadyExists"

class InvalidState(RegistryError):
    kind = "InvalidState"
