"""HandWorks - Gesture-controlled firework particles."""

__version__ = "0.1.0"

from handworks.gestures import GestureType, HandSample, classify
from handworks.surface import CompositeMode, OpenCVSurface, Surface, SurfaceUnavailable
from handworks.particles import Particle, ParticleSystem, Star
from handworks.tracking import HandDetector, SampleSlot, TrackingWorker, make_sample
from handworks.controller import AnimationController, FrameLoop
from handworks.config import AppConfig
