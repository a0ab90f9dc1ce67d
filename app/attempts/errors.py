class AttemptError(Exception):
    pass


class QuizInactiveError(AttemptError):
    pass


class RetakeNotAllowedError(AttemptError):
    pass


class AttemptNotStartedError(AttemptError):
    pass


class AttemptNotInProgressError(AttemptError):
    pass


class InvalidAnswerOptionError(AttemptError):
    pass


class AttemptNotFoundError(AttemptError):
    pass


class AttemptAccessError(AttemptError):
    pass


class AttemptPersistenceError(AttemptError):
    pass
