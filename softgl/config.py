from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class RenderConfig:
    """
    Scene and output parameters for one render.

    light_dir doubles as the eye position of the shadow pass, so it must not
    be parallel to `up` (same for eye - center). specular_weight left as None
    keeps the shader defaults (0.3 specular, 0.6 shadow pass).
    """
    width: int = 800
    height: int = 800
    light_dir: Vec3 = (-1.0, -1.0, 2.0)
    eye: Vec3 = (1.0, 0.0, 2.0)
    center: Vec3 = (0.0, 0.0, 0.0)
    up: Vec3 = (0.0, 1.0, 0.0)
    shadow_bias: float = 5.0
    shadow_dim: float = 0.3
    specular_weight: Optional[float] = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"resolution must be positive, got {self.width}x{self.height}")
        if np.allclose(self.eye, self.center):
            raise ValueError("eye and center coincide")
        if self.specular_weight is not None and self.specular_weight < 0.0:
            raise ValueError(f"specular weight must be non-negative, got {self.specular_weight}")

    def viewport_rect(self) -> Tuple[float, float, float, float]:
        """Image occupies the middle 3/4 of the canvas."""
        return (
            float(self.width // 8),
            float(self.height // 8),
            float(self.width * 3 // 4),
            float(self.height * 3 // 4),
        )

    def camera_coeff(self) -> float:
        """Perspective coefficient -1 / |eye - center|."""
        d = np.subtract(self.eye, self.center)
        return -1.0 / float(np.linalg.norm(d))
