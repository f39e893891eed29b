from .distortion import (
    max_radius,
    magnification,
    lens_distortion_point,
    lens_distortion_points,
)
from .depth_projection import (
    ProjectionStats,
    valid_depth_mask,
    pixel_to_camera,
    project_with_stats,
    project_depth_grid,
)

__all__ = [
    "max_radius",
    "magnification",
    "lens_distortion_point",
    "lens_distortion_points",
    "ProjectionStats",
    "valid_depth_mask",
    "pixel_to_camera",
    "project_with_stats",
    "project_depth_grid",
]
