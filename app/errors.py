class TypemasterError(Exception):
    """Base class for errors raised by the typing engine."""


class SessionNotStartedError(TypemasterError):
    """An edit or query arrived before ``start()`` set up a session."""


class SettingsError(TypemasterError, ValueError):
    """Engine settings could not be parsed or hold an invalid value."""
