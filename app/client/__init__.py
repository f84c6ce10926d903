"""
Viewer-side pieces: the local event projection and the detach beacon
"""
from .projection import EventProjection, ProjectionCache
from .beacon import dispatch_detach_beacon, send_detach_beacon

__all__ = ["EventProjection", "ProjectionCache", "dispatch_detach_beacon", "send_detach_beacon"]
