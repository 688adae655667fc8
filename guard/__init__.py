"""Presence monitoring and absence alarm for FocusGuard."""

from .controller import AlarmController, AlarmState
from .sampler import PresenceSampler
from .tracker import DetectionSample, PresenceStatus, PresenceTracker
