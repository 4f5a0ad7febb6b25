"""
Migration service exceptions.
"""


class MigrationError(Exception):
    """Base class for migration service errors"""
    pass


class SessionNotFoundError(MigrationError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class SessionExistsError(MigrationError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session already exists: {session_id}")


class MailboxMoverError(MigrationError):
    """A mailbox mover command could not be executed"""
    pass
