from .emitter import EventEmitter, EventType, LoggingEventEmitter, NullEventEmitter, make_event_emitter

__all__ = ["EventEmitter", "EventType", "LoggingEventEmitter", "NullEventEmitter", "make_event_emitter"]
