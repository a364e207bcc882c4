#!/usr/bin/env python3
"""Example: Basic sound detection.

This example shows how to use the Sound Alert Engine to detect fire
alarms, doorbells and crying babies from microphone input.
"""

import logging

from sound_alert_engine import AudioConfig, DetectionEvent, Engine, SignatureKind

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%H:%M:%S"
)


def on_sound_detected(event: DetectionEvent):
    """Callback when a sound is detected."""
    print(f"\n{event.kind.label} ({event.confidence:.0%})\n")
    # Here you could:
    # - Flash the screen or vibrate a device
    # - Trigger home automation
    # - Keep a history of detections


def main():
    engine = Engine(
        audio_config=AudioConfig(sample_rate=48000, chunk_size=1024),
        on_detection=on_sound_detected,
    )
    # Signatures can be toggled at any time without restarting
    engine.enabled.set(SignatureKind.BABY_CRY, False)

    print("Starting audio capture...")
    print("   Press Ctrl+C to stop\n")

    # Start listening (blocking)
    try:
        engine.start()
    except KeyboardInterrupt:
        print("\nStopping...")
        engine.stop()


if __name__ == "__main__":
    main()
