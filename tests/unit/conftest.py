# pylint: disable=missing-module-docstring,missing-function-docstring

from concurrent.futures import ThreadPoolExecutor

import pytest

from sixelsync.playback.frame_store import FrameStore
from fakes import InstantSource


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=8, thread_name_prefix="TestDecode")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def make_store(executor):
    def factory(source=None, start=1, end=100, decode_timeout=None):
        return FrameStore(
            source or InstantSource(),
            executor,
            start,
            end,
            decode_timeout=decode_timeout
        )
    return factory
