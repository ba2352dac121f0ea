from pathlib import Path


class RitualError(Exception):
    pass


class NotFoundError(RitualError):
    pass


class ValidationError(RitualError):
    pass


class PersistenceError(RitualError):
    def __init__(self, path: Path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"failed to write {path}: {cause}")


class MalformedRecord(RitualError):
    def __init__(self, line: str, lineno: int = 0):
        self.line = line
        self.lineno = lineno
        where = f" (line {lineno})" if lineno else ""
        super().__init__(f"malformed record{where}: {line!r}")
