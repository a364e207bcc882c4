"""Circular buffer for building sliding analysis windows from a stream."""

from typing import Optional

import numpy as np


class FrameBuffer:
    """Fixed-size ring buffer of float samples.

    Capture chunks are usually much shorter than the analysis window, so
    sources write each chunk here and read back the most recent ``size``
    samples once enough audio has arrived.
    """

    def __init__(self, size: int, dtype: type = np.float32):
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        self.size = size
        self.buffer = np.zeros(size, dtype=dtype)
        self.write_pos = 0
        self.is_full = False

    def write(self, data: np.ndarray) -> None:
        data = np.asarray(data, dtype=self.buffer.dtype)
        n = len(data)
        if n == 0:
            return
        if n >= self.size:
            # Only the tail can survive
            self.buffer[:] = data[-self.size :]
            self.write_pos = 0
            self.is_full = True
            return

        end = self.write_pos + n
        if end < self.size:
            self.buffer[self.write_pos : end] = data
        else:
            first = self.size - self.write_pos
            self.buffer[self.write_pos :] = data[:first]
            self.buffer[: end - self.size] = data[first:]
        self.write_pos = end % self.size
        self.is_full = self.is_full or end >= self.size

    def read(self) -> Optional[np.ndarray]:
        """Return the last ``size`` samples oldest-first, or None until full."""
        if not self.is_full:
            return None
        return np.concatenate((self.buffer[self.write_pos :], self.buffer[: self.write_pos]))

    def clear(self) -> None:
        self.buffer.fill(0)
        self.write_pos = 0
        self.is_full = False
