import numpy as np
import pytest

from timeshaper.analysis.analyzers.scene_analyzer import SceneAnalyzer, SceneType
from timeshaper.analysis.frame_metrics import edge_density
from timeshaper.core.media import PixelFrame

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def sequence(solid_frame, colors, duration=None):
    n = len(colors)
    duration = float(n) if duration is None else duration
    return [solid_frame(c, timestamp=i * duration / n) for i, c in enumerate(colors)], duration


class TestSceneSegmentation:
    def test_identical_frames_form_one_scene(self, solid_frame):
        frames, duration = sequence(solid_frame, [(255, 0, 0)] * 5, duration=4.0)
        result = SceneAnalyzer().analyze(frames, duration)
        assert len(result.scenes) == 1
        assert (result.scenes[0].start, result.scenes[0].end) == (0.0, 4.0)
        assert result.boundaries == ()

    def test_step_change_gives_two_scenes(self, solid_frame):
        frames, duration = sequence(solid_frame, [WHITE] * 5 + [BLACK] * 5)
        result = SceneAnalyzer().analyze(frames, duration)

        assert [(s.start, s.end) for s in result.scenes] == [(0.0, 5.0), (5.0, 10.0)]
        assert sum(s.duration for s in result.scenes) == pytest.approx(duration)
        assert [b.frame_index for b in result.boundaries] == [5]

    def test_black_final_frame_gives_single_boundary(self, solid_frame):
        frames, duration = sequence(solid_frame, [WHITE] * 10 + [BLACK])
        result = SceneAnalyzer().analyze(frames, duration)

        assert len(result.boundaries) == 1
        assert result.boundaries[0].timestamp == frames[10].timestamp
        assert result.boundaries[0].difference == pytest.approx(1.0)

    def test_black_flash_mid_sequence(self, solid_frame):
        frames, duration = sequence(solid_frame, [WHITE] * 10 + [BLACK] + [WHITE] * 9)
        result = SceneAnalyzer().analyze(frames, duration)

        assert [b.timestamp for b in result.boundaries] == [
            frames[10].timestamp,
            frames[11].timestamp,
        ]
        assert len(result.scenes) == 3
        assert result.scenes[1].scene_type == SceneType.INDOOR.value

    def test_scenes_partition_duration(self, solid_frame):
        colors = [WHITE, WHITE, BLACK, BLACK, WHITE, (0, 255, 0), (0, 255, 0), BLACK]
        frames, duration = sequence(solid_frame, colors, duration=16.0)
        scenes = SceneAnalyzer().analyze(frames, duration).scenes

        assert scenes[0].start == 0.0
        assert scenes[-1].end == duration
        for prev, cur in zip(scenes, scenes[1:]):
            assert prev.end == cur.start

    def test_no_frames(self):
        result = SceneAnalyzer().analyze([], 10.0)
        assert result.scenes == ()


class TestSceneClassification:
    def test_bright_green_is_outdoor(self, solid_frame):
        scene_type, confidence, _, _ = SceneAnalyzer().classify_frame(solid_frame((100, 255, 100)))
        assert scene_type is SceneType.OUTDOOR
        assert confidence == 0.7

    def test_dark_is_indoor(self, solid_frame):
        scene_type, confidence, _, _ = SceneAnalyzer().classify_frame(solid_frame(BLACK))
        assert scene_type is SceneType.INDOOR
        assert confidence == 0.6

    def test_flat_bright_is_close_up(self, solid_frame):
        scene_type, confidence, _, _ = SceneAnalyzer().classify_frame(solid_frame(WHITE))
        assert scene_type is SceneType.CLOSE_UP
        assert confidence == 0.8

    def test_busy_frame_is_indoor(self):
        pixels = np.zeros((32, 32, 3), dtype=np.uint8)
        pixels[:, ::2] = 255  # vertical stripes, one pixel wide
        frame = PixelFrame(pixels)
        assert edge_density(frame) == 0.0  # central differences skip the neighbour
        pixels = np.zeros((32, 32, 3), dtype=np.uint8)
        pixels[:, ::4] = 255
        pixels[:, 1::4] = 255
        busy = PixelFrame(pixels)
        assert edge_density(busy) > 0.3
        scene_type, _, _, _ = SceneAnalyzer().classify_frame(busy)
        assert scene_type is SceneType.INDOOR

    def test_last_scene_uses_last_frame(self, solid_frame):
        frames, duration = sequence(solid_frame, [BLACK] * 3 + [WHITE] * 3)
        scenes = SceneAnalyzer().analyze(frames, duration).scenes
        assert scenes[0].scene_type == "indoor"
        assert scenes[-1].scene_type == "close-up"
