from abc import ABC, abstractmethod
from datetime import datetime


class ClockPort(ABC):
    @abstractmethod
    def now_utc(self) -> datetime:
        """Current instant as an aware UTC datetime."""
        raise NotImplementedError
