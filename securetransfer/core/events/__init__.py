"""Event emitter used for snapshot and transfer notifications."""
from .event_emitter import EventEmitter

__all__ = [
    'EventEmitter',
]
