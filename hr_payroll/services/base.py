import logging
from sqlalchemy.orm import Session


class BaseService:
    """Common plumbing for services that own a database session."""

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(self.__class__.__module__)

    def log_info(self, message: str, **extra):
        self._logger.info(message, extra=extra or None)
