"""
SixelSync - Audio Player
=========================
Background music playback with lifecycle notifications.

Responsibilities:
- Decode the audio track (FFmpeg/PyAV)
- Stream it to the output device via sounddevice
- Notify listeners when sound actually starts and when the track ends

The video timeline anchors to the ``started`` notification, which fires
from the device callback the first time decoded samples are handed to the
device. Returning from ``play()`` only means the stream was opened.
"""

import queue
import sys
import threading
from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, List, Optional

import av
import numpy as np

STARTED = "started"
ENDED = "ended"
EVENTS = (STARTED, ENDED)

Listener = Callable[[], None]


class AudioPlayer:
    """
    Real-time audio player using sounddevice.

    Decodes audio using PyAV on a background thread and feeds the output
    stream's callback from a bounded queue.
    """

    def __init__(self, queue_size: int = 20, blocksize: int = 2048):
        """
        Initialize audio player.

        Args:
            queue_size: Max decoded chunks buffered ahead of the device
            blocksize: Frames per device callback
        """
        self.container = None
        self.stream = None
        self.resampler = None
        self.output_stream = None
        self.blocksize = blocksize

        # Audio format
        self.sample_rate = 44100
        self.channels = 2
        self.dtype = 'float32'
        self.has_audio = False

        self.audio_queue: "queue.Queue[np.ndarray]" = queue.Queue(maxsize=queue_size)
        self._leftover: Optional[np.ndarray] = None
        self.decode_thread: Optional[threading.Thread] = None
        self.stop_event = threading.Event()
        self.decode_finished = threading.Event()
        self.ended_event = threading.Event()

        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._lock = threading.Lock()
        self._started = False
        self._ended = False
        self._closed = False
        self.samples_played = 0

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_listener(self, event: str, callback: Listener):
        """
        Register ``callback`` for ``"started"`` or ``"ended"``.

        Callbacks run on the audio threads and must not block.
        """
        if event not in EVENTS:
            raise ValueError(f"Unknown audio event: {event!r}")
        self._listeners[event].append(callback)

    def _emit(self, event: str):
        for callback in list(self._listeners[event]):
            callback()

    def _notify_started(self):
        with self._lock:
            if self._started:
                return
            self._started = True
        self._emit(STARTED)

    def _notify_ended(self):
        with self._lock:
            if self._ended:
                return
            self._ended = True
        self.ended_event.set()
        self._emit(ENDED)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, audio_path: str) -> bool:
        """
        Open the audio track.

        Args:
            audio_path: Path to any FFmpeg-readable audio or video file

        Returns:
            True if an audio stream was found, False for silent playback

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(audio_path)
        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        self.container = av.open(str(path))
        if not self.container.streams.audio:
            print("[Audio] No audio stream found. Playing silently.", file=sys.stderr)
            self.has_audio = False
            return False

        self.stream = self.container.streams.audio[0]
        self.sample_rate = self.stream.rate
        self.channels = 2 if self.stream.channels >= 2 else 1

        # sounddevice wants packed (interleaved) float32
        self.resampler = av.AudioResampler(
            format='flt',
            layout='stereo' if self.channels == 2 else 'mono',
            rate=self.sample_rate
        )
        self.has_audio = True

        print(
            f"[Audio] Opened stream: {self.stream.codec_context.name}, "
            f"{self.sample_rate}Hz, {self.channels}ch",
            file=sys.stderr
        )
        return True

    def play(self):
        """
        Start playback asynchronously.

        ``started`` fires later, from the device callback. Without an
        audio stream both notifications fire immediately.
        """
        if not self.has_audio:
            self._notify_started()
            self._finish()
            return

        self.stop_event.clear()
        self.decode_finished.clear()

        self.decode_thread = threading.Thread(
            target=self._decode_loop,
            name="AudioDecodeThread",
            daemon=True
        )
        self.decode_thread.start()

        import sounddevice as sd

        self.output_stream = sd.OutputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype=self.dtype,
            callback=self._audio_callback,
            blocksize=self.blocksize
        )
        self.output_stream.start()
        print("[Audio] Output stream running", file=sys.stderr)

    def wait_ended(self, timeout: Optional[float] = None) -> bool:
        """Block until the track has ended. Returns False on timeout."""
        return self.ended_event.wait(timeout)

    def get_position(self) -> float:
        """Seconds of audio handed to the device so far."""
        with self._lock:
            return self.samples_played / self.sample_rate

    def close(self):
        """Stop playback and release the device stream and container."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self.stop_event.set()

        if self.output_stream is not None:
            self.output_stream.stop()
            self.output_stream.close()
            self.output_stream = None

        if self.decode_thread is not None and self.decode_thread.is_alive():
            self.decode_thread.join(timeout=1.0)

        if self.container is not None:
            self.container.close()
            self.container = None

        while True:
            try:
                self.audio_queue.get_nowait()
            except queue.Empty:
                break
        self._leftover = None

        print("[Audio] Stopped", file=sys.stderr)

    def _finish(self):
        self._notify_ended()
        self.close()

    # ------------------------------------------------------------------
    # Worker threads
    # ------------------------------------------------------------------

    def _decode_loop(self):
        """Decode the whole track into the queue."""
        try:
            for frame in self.container.decode(self.stream):
                if self.stop_event.is_set():
                    return
                for out_frame in self.resampler.resample(frame):
                    self._enqueue(out_frame)
            # Flush samples buffered inside the resampler
            for out_frame in self.resampler.resample(None):
                self._enqueue(out_frame)
        except av.error.FFmpegError as e:
            print(f"[Audio] Decode error: {e}", file=sys.stderr)
        finally:
            self.decode_finished.set()

    def _enqueue(self, out_frame):
        # Packed formats come back as a single plane: (1, samples * channels)
        data = out_frame.to_ndarray().reshape(-1, self.channels)
        data = np.ascontiguousarray(data, dtype=np.float32)

        while not self.stop_event.is_set():
            try:
                self.audio_queue.put(data, timeout=0.1)
                return
            except queue.Full:
                continue

    def _audio_callback(self, outdata, frames, time_info, status):
        """
        Sounddevice callback.

        Args:
            outdata: Output buffer (frames, channels)
            frames: Number of frames to fill
            time_info: Time info dict
            status: Status flags
        """
        if status:
            print(f"[Audio] Buffer status: {status}", file=sys.stderr)

        filled = 0

        while filled < frames:
            chunk = self._leftover
            self._leftover = None
            if chunk is None:
                try:
                    chunk = self.audio_queue.get_nowait()
                except queue.Empty:
                    break

            take = min(len(chunk), frames - filled)
            outdata[filled:filled + take] = chunk[:take]
            filled += take
            if take < len(chunk):
                self._leftover = chunk[take:]

        # Underflow or end of stream: pad with silence
        outdata[filled:] = 0

        if filled:
            with self._lock:
                self.samples_played += filled
            self._notify_started()

        drained = (
            self.decode_finished.is_set()
            and self._leftover is None
            and self.audio_queue.empty()
        )
        if drained and not self._ended:
            # close() joins the stream, which cannot happen on this thread
            threading.Thread(target=self._finish, name="AudioFinish", daemon=True).start()
