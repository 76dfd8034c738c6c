from .addon import AddonComponents
from .client import AddonClient

__all__ = ["AddonComponents", "AddonClient"]
