"""Live proximity statistics from a depth camera.

Synchronized depth/video pairs are validated, a fixed window in the middle of
the depth map is summarized (average/min/max distance) and the result is
projected to millimeters and a preview image.
"""

__all__ = [
    "app",
    "buffer",
    "capture",
    "display",
    "frames",
    "pipeline",
    "service",
    "session",
    "stats",
    "validator",
    "worker",
]

__version__ = "0.1.0"
