import logging
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from timeshaper.core.media import AudioInput, PixelFrame, VideoInput
from timeshaper.utils.logger import get_logger, setup_logging
from timeshaper.utils.memory_pool import FeatureRingBuffer
from timeshaper.utils.parallel import SubAnalysisError, get_optimal_worker_count, run_concurrently


class TestFeatureRingBuffer:
    def test_fifo_order(self):
        ring = FeatureRingBuffer(capacity=4, width=2)
        for i in range(3):
            ring.push((i, i * 10))
        assert ring.pop().tolist() == [0.0, 0.0]
        assert ring.drain().tolist() == [[1.0, 10.0], [2.0, 20.0]]
        assert ring.pop() is None

    def test_drop_oldest(self):
        ring = FeatureRingBuffer(capacity=3, width=1)
        results = [ring.push((i,)) for i in range(5)]
        assert results == [True, True, True, False, False]
        assert ring.drain().ravel().tolist() == [2.0, 3.0, 4.0]
        assert ring.get_stats() == {"capacity": 3, "size": 0, "total_pushed": 5, "dropped": 2}

    def test_len_and_clear(self):
        ring = FeatureRingBuffer(capacity=2, width=1)
        ring.push((1,))
        assert len(ring) == 1
        ring.clear()
        assert len(ring) == 0

    def test_resize_keeps_pending_rows(self):
        ring = FeatureRingBuffer(capacity=3, width=1)
        for i in range(5):
            ring.push((i,))
        assert ring.resize(5) == 0
        ring.push((5,))
        assert ring.drain().ravel().tolist() == [2.0, 3.0, 4.0, 5.0]

    def test_shrink_keeps_newest_and_counts_drops(self):
        ring = FeatureRingBuffer(capacity=4, width=1)
        for i in range(4):
            ring.push((i,))
        assert ring.resize(2) == 2
        assert ring.drain().ravel().tolist() == [2.0, 3.0]
        assert ring.get_stats()["dropped"] == 2
        assert ring.get_stats()["capacity"] == 2

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            FeatureRingBuffer(capacity=0, width=1)


class TestRunConcurrently:
    def test_collects_results_by_name(self):
        with ThreadPoolExecutor(max_workers=2) as executor:
            results = run_concurrently({"a": lambda: 1, "b": lambda: 2}, executor)
        assert results == {"a": 1, "b": 2}

    def test_first_failure_names_stage(self):
        def slow():
            time.sleep(0.05)
            return "slow"

        def broken():
            raise KeyError("missing")

        with ThreadPoolExecutor(max_workers=1) as executor:
            with pytest.raises(SubAnalysisError) as exc:
                run_concurrently({"broken": broken, "slow": slow}, executor)
        assert exc.value.stage == "broken"
        assert isinstance(exc.value.cause, KeyError)

    def test_worker_count(self):
        assert get_optimal_worker_count("cpu") >= 1
        assert 1 <= get_optimal_worker_count("io") <= 32


class TestLogger:
    def test_child_loggers_share_root(self):
        assert get_logger("audio").name == "timeshaper.audio"
        assert get_logger("timeshaper.video").name == "timeshaper.video"

    def test_file_handler_only_with_log_dir(self, tmp_path):
        logger = setup_logging(log_dir=None)
        assert len(logger.handlers) == 1
        logger = setup_logging(log_dir=str(tmp_path), console_level=logging.WARNING)
        assert len(logger.handlers) == 2
        assert (tmp_path / "timeshaper.log").exists()
        setup_logging()


class TestMedia:
    def test_pixel_frame_is_read_only(self):
        frame = PixelFrame(np.zeros((4, 6, 3), dtype=np.uint8), 1.5)
        assert (frame.width, frame.height, frame.timestamp) == (6, 4, 1.5)
        with pytest.raises(ValueError):
            frame.pixels[0, 0, 0] = 1

    def test_caller_buffers_stay_writable(self):
        pixels = np.zeros((4, 4, 3), dtype=np.uint8)
        samples = np.zeros(100, dtype=np.float32)
        frame = PixelFrame(pixels, 0.0)
        audio = AudioInput(samples, 8000)

        pixels[0, 0, 0] = 255
        samples[0] = 1.0
        assert frame.pixels[0, 0, 0] == 0
        assert audio.samples[0] == 0.0

    def test_pixel_frame_requires_rgb(self):
        with pytest.raises(ValueError):
            PixelFrame(np.zeros((4, 4), dtype=np.uint8))

    def test_audio_duration_from_samples(self):
        audio = AudioInput(np.zeros(22050), 44100)
        assert audio.duration == pytest.approx(0.5)
        assert audio.samples.dtype == np.float32

    def test_audio_requires_positive_rate(self):
        with pytest.raises(ValueError):
            AudioInput(np.zeros(10), 0)

    def test_video_input_counts_frames(self):
        frames = [PixelFrame(np.zeros((2, 2, 3), dtype=np.uint8), t) for t in (0.0, 1.0)]
        assert VideoInput(frames, 2.0).frame_count == 2
