"""
Common base for repositories and services that work inside a caller's session.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Holds the ``Session`` a repository or service works in.

    Subclasses ``flush()`` so ids and constraints resolve early.  Committing
    or rolling back is left to whoever opened the session, normally
    ``session_scope()``, so one transaction event updates its candidate
    atomically.
    """

    def __init__(self, session: Session):
        self.session = session
