"""
Health Port Interface

Defines the contract for reading toolchain availability.
"""

from abc import ABC, abstractmethod

from leo_executor.domain.value_objects import HealthStatus


class IHealthPort(ABC):
    """Port interface for (possibly cached) toolchain availability."""

    @abstractmethod
    async def get_status(self) -> HealthStatus:
        """
        Return the current availability snapshot.

        Returns:
            HealthStatus; never raises
        """
        pass
