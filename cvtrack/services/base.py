import logging
from sqlalchemy.orm import Session


class BaseService:
    """
    Common plumbing for DB-backed services: session, logger and
    commit-or-rollback.
    """

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(self.__class__.__module__)

    def commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def log_info(self, message: str):
        self._logger.info(message)

    def log_warning(self, message: str):
        self._logger.warning(message)

    def log_error(self, message: str, exc_info: bool = False):
        self._logger.error(message, exc_info=exc_info)
