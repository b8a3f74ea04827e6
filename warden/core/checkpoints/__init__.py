"""Login checkpoints."""

from warden.core.checkpoints.activation import ActivationCheckpoint
from warden.core.checkpoints.base import Checkpoint
from warden.core.checkpoints.chain import CheckpointChain
from warden.core.checkpoints.throttle import ThrottleCheckpoint

__all__ = ["ActivationCheckpoint", "Checkpoint", "CheckpointChain", "ThrottleCheckpoint"]
