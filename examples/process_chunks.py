#!/usr/bin/env python3
"""Example: Process audio without microphone capture.

This example shows how to feed audio data directly to the engine,
useful for:
- Processing audio files
- Custom audio sources
- Testing and simulation
"""

import numpy as np

from sound_alert_engine import AudioFrame, Engine, EngineConfig

SAMPLE_RATE = 48000


def generate_beep(duration: float, sample_rate: int) -> np.ndarray:
    """Generate a smoke-alarm-like beep: tones around 3.1 kHz plus the 6.2 kHz harmonic."""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    signal = np.zeros_like(t)
    for offset in np.arange(-90, 91, 15):
        signal += 0.06 * np.sin(2 * np.pi * (3100 + offset) * t)
        signal += 0.015 * np.sin(2 * np.pi * (6200 + offset) * t)
    return signal


def main():
    config = EngineConfig()
    levels = []

    engine = Engine(config=config, on_level=levels.append)
    engine.begin_session()

    print("Generating synthetic alarm...")
    audio = generate_beep(1.0, SAMPLE_RATE)

    # Feed overlapping frames, one per 1024-sample hop
    hop = 1024
    detections = []
    for end in range(config.fft_size, len(audio) + 1, hop):
        frame = AudioFrame(
            samples=audio[end - config.fft_size : end],
            sample_rate=SAMPLE_RATE,
            timestamp_ms=int(end * 1000 / SAMPLE_RATE),
        )
        result = engine.process_frame(frame)
        detections.extend(result.events)

    engine.stop()

    print(f"Processed {len(levels)} frames, final level {levels[-1]:.2f}")
    for event in detections:
        print(f"  {event}")
    if not detections:
        print("No detections")


if __name__ == "__main__":
    main()
