from dataclasses import dataclass


@dataclass
class QueueStats:
    name: str
    total: int
    pending: int
    active: int
    completed: int
    retrying: int
    exhausted: int

    @staticmethod
    def from_row(row: tuple) -> "QueueStats":
        (
            name,
            total,
            pending,
            active,
            completed,
            retrying,
            exhausted,
        ) = row
        return QueueStats(
            name=name,
            total=total,
            pending=pending or 0,
            active=active or 0,
            completed=completed or 0,
            retrying=retrying or 0,
            exhausted=exhausted or 0,
        )
