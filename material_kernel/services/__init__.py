"""Kernel services: session-bound base class and the material event bus."""

from material_kernel.services.base import BaseService
from material_kernel.services.event_bus import DispatchResult, MaterialEventBus

__all__ = ["BaseService", "MaterialEventBus", "DispatchResult"]
