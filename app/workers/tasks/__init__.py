from app.workers.tasks.attempt_timeouts import run_attempt_timeout_sweep

__all__ = [
    "run_attempt_timeout_sweep",
]
