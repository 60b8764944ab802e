"""Kernel value-object types – public re-export surface."""

from mp_scheduler.kernel.types.ids import JobId, TenantId

__all__ = ["JobId", "TenantId"]
