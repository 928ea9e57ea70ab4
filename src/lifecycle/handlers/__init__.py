from .scheduler_shutdown_handler import SchedulerShutdownHandler

__all__ = [
    "SchedulerShutdownHandler",
]
