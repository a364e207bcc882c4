"""Command line interface: live listening, file scanning and device listing."""

import argparse
import logging
import sys
from typing import List, Optional

from scipy.io import wavfile

from sound_alert_engine.config import GlobalConfig, configure_logging
from sound_alert_engine.engine import Engine
from sound_alert_engine.errors import EngineError
from sound_alert_engine.listener import ArrayFrameSource, AudioListener
from sound_alert_engine.models import DetectionEvent, SignatureKind

logger = logging.getLogger(__name__)

KIND_CHOICES = [kind.value for kind in SignatureKind]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sound-alert-engine",
        description="Detect fire alarms, doorbells and crying babies in audio.",
    )
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--log-level", help="Override the configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    listen = sub.add_parser("listen", help="Listen to the microphone")
    listen.add_argument("--device", type=int, help="Input device index")
    listen.add_argument("--disable", nargs="*", default=[], choices=KIND_CHOICES)

    scan = sub.add_parser("scan", help="Scan a WAV file for signatures")
    scan.add_argument("wav", help="Path to a WAV file")
    scan.add_argument("--disable", nargs="*", default=[], choices=KIND_CHOICES)
    scan.add_argument(
        "--hop", type=int, default=None, help="Samples between frames (default: chunk size)"
    )

    sub.add_parser("devices", help="List audio input devices")
    return parser


def _load_config(args: argparse.Namespace) -> GlobalConfig:
    config = GlobalConfig.load(args.config) if args.config else GlobalConfig()
    if args.log_level:
        config.system.log_level = args.log_level.upper()
    return config


def _print_event(event: DetectionEvent) -> None:
    print(str(event), flush=True)


def run_listen(args: argparse.Namespace, config: GlobalConfig) -> int:
    if args.device is not None:
        config.audio.device_index = args.device

    mask = config.detection.mask()
    mask.disable(args.disable)
    engine = Engine(
        config=config.engine,
        audio_config=config.audio,
        enabled=mask,
        on_detection=_print_event,
    )

    print("Listening... press Ctrl+C to stop")
    try:
        engine.start()
    except EngineError as e:
        print(f"Could not start listening: {e}", file=sys.stderr)
        return 1
    return 0


def run_scan(args: argparse.Namespace, config: GlobalConfig) -> int:
    sample_rate, audio = wavfile.read(args.wav)
    source = ArrayFrameSource(
        audio,
        sample_rate,
        frame_size=config.engine.fft_size,
        hop_size=args.hop or config.audio.chunk_size,
    )
    if len(source.audio) < config.engine.fft_size:
        print(
            f"{args.wav} is shorter than one analysis frame "
            f"({config.engine.fft_size} samples)",
            file=sys.stderr,
        )
        return 1

    mask = config.detection.mask()
    mask.disable(args.disable)
    events: List[DetectionEvent] = []
    engine = Engine(config=config.engine, enabled=mask, on_detection=events.append)

    try:
        engine.start(source)
    except EngineError as e:
        print(f"Scan failed: {e}", file=sys.stderr)
        return 1

    for event in events:
        _print_event(event)
    print(f"{len(events)} detection(s) in {source.duration:.1f}s of audio")
    return 0


def run_devices(args: argparse.Namespace, config: GlobalConfig) -> int:
    try:
        devices = AudioListener(config.audio).list_devices()
    except EngineError as e:
        print(str(e), file=sys.stderr)
        return 1

    if not devices:
        print("No audio input devices found")
    for index, name, channels in devices:
        print(f"{index:3d}: {name} (inputs: {channels})")
    return 0


COMMANDS = {
    "listen": run_listen,
    "scan": run_scan,
    "devices": run_devices,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = _load_config(args)
    configure_logging(config.system)
    return COMMANDS[args.command](args, config)
