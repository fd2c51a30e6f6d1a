"""
Point-pair bookkeeping for interactive or file-driven correspondence entry.

Points are entered alternately: first on image 1, then the matching point on
image 2.  The session keeps both lists in step and holds the most recent
homography, which is recomputed wholesale on every estimate and discarded on
reset.
"""

import json
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
import yaml

from homovision.geometry.homography import MIN_CORRESPONDENCES, as_points
from homovision.geometry.ransac import estimate_homography
from homovision.utils.config import RansacConfig
from homovision.utils.errors import Result

Point = Tuple[float, float]


class WrongImageError(ValueError):
    """Raised when a point is added to the image that is not expected next."""

    def __init__(self, expected: int):
        self.expected = expected
        super().__init__(f"Please add a point to Image {expected}.")


class CorrespondenceSession:
    """Accumulates matched points on a source (1) and destination (2) image."""

    def __init__(self):
        self.points1: List[Point] = []
        self.points2: List[Point] = []
        self.next_image = 1
        self.homography: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return len(self.points1)

    @property
    def ready(self) -> bool:
        """True when enough complete pairs exist to attempt estimation."""
        return (len(self.points1) >= MIN_CORRESPONDENCES
                and len(self.points1) == len(self.points2))

    def add_point(self, point: Sequence[float], image: int) -> None:
        if image != self.next_image:
            raise WrongImageError(self.next_image)
        x, y = point
        if image == 1:
            self.points1.append((float(x), float(y)))
            self.next_image = 2
        else:
            self.points2.append((float(x), float(y)))
            self.next_image = 1

    def clear_last_pair(self) -> None:
        """Remove the last complete pair, or the dangling image-1 point."""
        if not self.points1:
            return
        if self.next_image == 1:
            self.points1.pop()
            self.points2.pop()
        else:
            self.points1.pop()
            self.next_image = 1

    def replace(self, points1, points2) -> None:
        """Replace both lists at once, e.g. with automatically suggested pairs."""
        pts1 = as_points(points1)
        pts2 = as_points(points2)
        if len(pts1) != len(pts2):
            raise ValueError(f"Point lists differ in length: {len(pts1)} vs {len(pts2)}")
        self.points1 = [(float(x), float(y)) for x, y in pts1]
        self.points2 = [(float(x), float(y)) for x, y in pts2]
        self.next_image = 1

    def reset(self) -> None:
        self.points1 = []
        self.points2 = []
        self.next_image = 1
        self.homography = None

    def estimate(self, ransac: Optional[RansacConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 strict: bool = False) -> Result:
        """Estimate the homography from the current pairs.

        The stored homography is replaced by the new value, or cleared when
        estimation fails.
        """
        result = estimate_homography(list(self.points1), list(self.points2),
                                     ransac=ransac, rng=rng, strict=strict)
        self.homography = result.value if result.ok else None
        return result

    @classmethod
    def from_file(cls, path) -> "CorrespondenceSession":
        """Load ``points1`` / ``points2`` lists of ``[x, y]`` from YAML or JSON."""
        path = Path(path)
        with open(path, "r") as fh:
            if path.suffix.lower() == ".json":
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
        if not isinstance(data, dict) or "points1" not in data or "points2" not in data:
            raise ValueError(f"{path}: expected 'points1' and 'points2' lists")

        session = cls()
        session.replace(data["points1"], data["points2"])
        return session
