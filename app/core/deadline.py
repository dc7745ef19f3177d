# app/core/deadline.py

from __future__ import annotations

import threading
import time
from typing import Optional


class DeadlineExceeded(TimeoutError):
    pass


class Deadline:
    """
    Prazo de uma operação, derivado do prazo de quem chamou.

    Um filho nunca vive mais que o pai: `child(timeout)` usa o menor entre
    "agora + timeout" e o vencimento do pai, e o cancelamento do pai
    (ex.: cliente desconectou) também cancela o filho.

    O cancelamento usa `threading.Event` porque o insert roda numa thread
    do threadpool e precisa enxergar o sinal.
    """

    def __init__(self, expires_at: Optional[float] = None, parent: Optional[Deadline] = None) -> None:
        self.expires_at = expires_at
        self._parent = parent
        self._cancelled = threading.Event()

    @classmethod
    def background(cls) -> Deadline:
        return cls()

    @classmethod
    def after(cls, timeout: Optional[float]) -> Deadline:
        if timeout is None:
            return cls()
        return cls(time.monotonic() + timeout)

    def child(self, timeout: float) -> Deadline:
        expires_at = time.monotonic() + timeout
        if self.expires_at is not None:
            expires_at = min(expires_at, self.expires_at)
        return Deadline(expires_at, parent=self)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def remaining(self) -> Optional[float]:
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        if self.cancelled:
            return True
        return self.expires_at is not None and time.monotonic() >= self.expires_at

    def check(self) -> None:
        if self.cancelled:
            raise DeadlineExceeded("operation cancelled by caller")
        if self.expired:
            raise DeadlineExceeded("deadline exceeded")
