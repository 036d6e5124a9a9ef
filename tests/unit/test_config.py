# pylint: disable=missing-module-docstring,missing-function-docstring

from pathlib import Path

import pytest

from sixelsync.config import PlaybackConfig


def test_defaults_match_reference_run():
    config = PlaybackConfig()

    assert config.fps == 30
    assert config.frame_interval == pytest.approx(1 / 30)
    assert (config.start_frame, config.end_frame) == (1, 6570)
    assert config.total_frames == 6570
    assert config.prefetch_frames == 90
    assert config.window_size == 91
    assert config.initial_buffer_frames == 30
    assert config.frame_lag_tolerance == 0.5
    assert config.max_catchup_frames == 2
    assert config.decode_timeout is None
    assert config.audio_path == Path("bgm.aac")


def test_paths_are_coerced():
    config = PlaybackConfig(frames_dir="frames2", audio_path="track.ogg")

    assert config.frame_path(12) == Path("frames2") / "output_0012.png"
    assert config.audio_path == Path("track.ogg")


@pytest.mark.parametrize("overrides", [
    {"fps": 0},
    {"start_frame": 5, "end_frame": 4},
    {"prefetch_frames": -1},
    {"prefetch_frames": 3, "initial_buffer_frames": 10},
    {"frame_lag_tolerance": -0.1},
    {"max_catchup_frames": -1},
    {"decode_timeout": 0},
    {"audio_start_timeout": -2},
    {"palette": ((0, 0, 0),)},
])
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValueError):
        PlaybackConfig(**overrides)
