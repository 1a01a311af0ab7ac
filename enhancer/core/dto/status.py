from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class OperationStatus:
    message: str
    progress: int

    def __post_init__(self):
        object.__setattr__(self, "progress", max(0, min(100, int(self.progress))))
