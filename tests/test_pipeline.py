"""
End-to-end tests for the command-line pipeline
"""

import os

import numpy as np
import pytest
import yaml
from PIL import Image

import run_pipeline


@pytest.fixture
def scene_dir(tmp_path):
    """Source/destination images related by a (5, 3) pixel translation."""
    h, w = 30, 40
    yy, xx = np.mgrid[0:h, 0:w]
    src = np.zeros((h, w, 4), dtype=np.uint8)
    src[..., 0] = (xx * 6) % 256
    src[..., 1] = (yy * 8) % 256
    src[..., 2] = 90
    src[..., 3] = 255
    dst = np.full((h, w, 4), 30, dtype=np.uint8)
    dst[..., 3] = 255

    Image.fromarray(src).save(tmp_path / "source.png")
    Image.fromarray(dst).save(tmp_path / "target.png")

    pts1 = [[2.0, 2.0], [30.0, 3.0], [28.0, 20.0], [4.0, 22.0]]
    pts2 = [[x + 5.0, y + 3.0] for x, y in pts1]
    (tmp_path / "points.yaml").write_text(yaml.safe_dump({"points1": pts1, "points2": pts2}))

    cfg = {
        "results_dir": str(tmp_path / "results"),
        "ransac": {"num_iterations": 100, "seed": 0},
        "preview": {"split_x": 100, "split_y": 100},
        "scenes": [{
            "name": "shift",
            "img1": str(tmp_path / "source.png"),
            "img2": str(tmp_path / "target.png"),
            "points": str(tmp_path / "points.yaml"),
        }],
    }
    (tmp_path / "config.yaml").write_text(yaml.safe_dump(cfg))
    return tmp_path


class TestRunPipeline:

    def test_writes_matrix_and_preview(self, scene_dir):
        code = run_pipeline.main(["--config", str(scene_dir / "config.yaml"), "--no-figures"])
        assert code == 0

        out = scene_dir / "results" / "shift"
        H = np.loadtxt(out / "homography.txt")
        expected = np.array([[1.0, 0.0, 5.0], [0.0, 1.0, 3.0], [0.0, 0.0, 1.0]])
        assert np.allclose(H, expected, atol=1e-6)

        preview = np.array(Image.open(out / "preview.png"))
        src = np.array(Image.open(scene_dir / "source.png"))
        assert preview.shape == (30, 40, 4)
        # destination pixels left of / above the shift keep the base image
        assert (preview[:3, :, :3] == 30).all()
        assert np.array_equal(preview[10:20, 10:20], src[7:17, 5:15])
        assert not (out / "correspondences.png").exists()

    def test_figures(self, scene_dir):
        code = run_pipeline.main(["--config", str(scene_dir / "config.yaml"),
                                  "--split-x", "60"])
        assert code == 0
        out = scene_dir / "results" / "shift"
        for name in ("correspondences.png", "reprojection_errors.png", "preview_figure.png"):
            assert (out / name).exists()

    def test_estimation_failure_is_reported(self, scene_dir, capsys):
        (scene_dir / "points.yaml").write_text(yaml.safe_dump(
            {"points1": [[0, 0], [1, 1], [2, 2]], "points2": [[0, 0], [1, 1], [2, 2]]}))

        code = run_pipeline.main(["--config", str(scene_dir / "config.yaml"), "--no-figures"])

        assert code == 0
        assert "At least 4 pairs" in capsys.readouterr().out
        assert not (scene_dir / "results" / "shift" / "preview.png").exists()

    def test_missing_config(self, tmp_path):
        assert run_pipeline.main(["--config", str(tmp_path / "nope.yaml")]) == 1

    def test_unknown_scene(self, scene_dir):
        code = run_pipeline.main(["--config", str(scene_dir / "config.yaml"),
                                  "--scenes", "other"])
        assert code == 1

    def test_invalid_split_override(self, scene_dir):
        code = run_pipeline.main(["--config", str(scene_dir / "config.yaml"),
                                  "--split-x", "150"])
        assert code == 1
