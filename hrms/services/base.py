import logging
from typing import Any, Callable, Optional

from hrms.stores.base import LeaveStores


class BaseService:
    """
    Common plumbing for services working on a LeaveStores bundle.

    Services own their transactions: a ledger operation either commits as a
    whole or is rolled back as a whole. Side records (audit trail, logs,
    notifications) are written afterwards on a best-effort basis.
    """

    def __init__(self, stores: LeaveStores):
        self.stores = stores
        self._logger = logging.getLogger(self.__class__.__module__)

    def log_info(self, message: str, **extra: Any):
        self._logger.info(message, extra=extra or None)

    def log_warning(self, message: str, **extra: Any):
        self._logger.warning(message, extra=extra or None)

    def _commit(self):
        try:
            self.stores.uow.commit()
        except Exception:
            self.stores.uow.rollback()
            raise

    def _best_effort(self, label: str, write: Callable[[], Any]) -> Optional[str]:
        """
        Run and commit a side write. Failures are logged and returned as a
        warning string; they never undo work that was already committed.
        """
        try:
            write()
            self.stores.uow.commit()
            return None
        except Exception as e:
            self.stores.uow.rollback()
            self._logger.error(f"{label} failed: {e}", exc_info=True)
            return f"{label} failed: {e}"
