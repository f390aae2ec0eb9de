"""Entry point for Phonical."""

import argparse
import platform
import signal
import sys
import threading
from pathlib import Path

from phonical import __version__
from phonical.app import PhonicalApp, resolve_sounds_dir
from phonical.audio import DeviceInitError, list_output_devices, parse_device
from phonical.config import Config, get_config
from phonical.dispatch import PHONICS_MAP
from phonical.log import setup_logging


def print_banner() -> None:
    """Print the startup banner."""
    print("Phonical - Phonics Learning Tool")
    print("System-wide phonics - works across all applications!")
    print()


def print_config_info(config: Config, sounds_dir: Path) -> None:
    """Print configuration information."""
    audio = config["audio"]
    print("Configuration")
    print("-" * 40)
    print(f"  Sample Rate:  {audio['sample_rate']} Hz")
    print(f"  Channels:     {audio['channels']}")
    print(f"  Sample Width: {audio['sample_width']} bytes")
    device = parse_device(audio.get("device"))
    print(f"  Device:       {'default' if device is None else device}")
    print(f"  Queue Size:   {config['queue']['capacity']}")
    print(f"  Sounds:       {sounds_dir}")
    print()


def run_listen(config: Config, sounds_dir: str | None = None) -> int:
    """Listen for keystrokes system-wide and play phonics sounds.

    Runs until Ctrl+C or SIGTERM.

    Args:
        config: Application configuration.
        sounds_dir: Optional sounds directory override.

    Returns:
        Exit code: 0 for success, 1 for error.
    """
    # pynput needs a display server, import only when listening
    from phonical.listener import KeyListener, KeyListenerError

    print_banner()
    print("Press Ctrl+C to exit")
    if sys.platform == "darwin":
        print()
        print("Note: You may need to grant Accessibility permissions in:")
        print("System Settings > Privacy & Security > Accessibility")

    try:
        app = PhonicalApp(config, sounds_dir=sounds_dir)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    listener = KeyListener(on_char=app.handle_char)
    shutdown_event = threading.Event()

    def signal_handler(signum, frame):
        """Handle Ctrl+C / SIGTERM for clean shutdown."""
        print("\nExiting Phonical...")
        shutdown_event.set()

    # Store original handlers
    original_int = signal.getsignal(signal.SIGINT)
    original_term = signal.getsignal(signal.SIGTERM)
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        app.startup()
        listener.start()
        print()
        print("Listening for keystrokes system-wide...")

        # Wait for shutdown signal
        while not shutdown_event.is_set():
            shutdown_event.wait(timeout=0.5)

        return 0

    except DeviceInitError as e:
        print(f"Failed to initialize audio: {e}", file=sys.stderr)
        return 1

    except KeyListenerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    finally:
        listener.stop()
        app.shutdown()
        signal.signal(signal.SIGINT, original_int)
        signal.signal(signal.SIGTERM, original_term)


def run_play(config: Config, text: str, sounds_dir: str | None = None, timeout: float = 30.0) -> int:
    """Play the sounds for each letter of text, without a keyboard hook.

    Args:
        config: Application configuration.
        text: Characters to "type".
        sounds_dir: Optional sounds directory override.
        timeout: Maximum seconds to wait for playback to finish.

    Returns:
        Exit code: 0 for success, 1 for error.
    """
    try:
        app = PhonicalApp(config, sounds_dir=sounds_dir)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        app.startup()
    except DeviceInitError as e:
        print(f"Failed to initialize audio: {e}", file=sys.stderr)
        return 1

    try:
        queued = sum(1 for char in text if app.handle_char(char))
        if not app.wait_idle(timeout):
            print(f"Playback did not finish within {timeout:.0f}s", file=sys.stderr)
            return 1
        print(f"Played {app.engine.played}/{queued} sounds")
        return 0
    finally:
        app.shutdown()


def run_devices() -> int:
    """List audio output devices.

    Returns:
        Exit code: 0 for success, 1 for error.
    """
    try:
        devices = list_output_devices()
    except Exception as e:
        print(f"Error listing audio devices: {e}", file=sys.stderr)
        return 1

    print("Output Devices")
    print("-" * 40)
    for device in devices:
        marker = "*" if device["is_default"] else " "
        print(
            f" {marker} [{device['index']}] {device['name']} "
            f"({device['max_output_channels']} ch, {device['default_samplerate']:.0f} Hz)"
        )
    if not devices:
        print("  (no output devices found)")
    return 0


def run_info(config: Config, sounds_dir: str | None = None) -> int:
    """Show version, configuration and sound asset status.

    Returns:
        Exit code: 0 if every letter has a sound file, 1 otherwise.
    """
    print_banner()
    print(f"  Version:  {__version__}")
    print(f"  Python:   {platform.python_version()}")
    print(f"  Platform: {platform.system()} {platform.release()}")
    print()

    directory = resolve_sounds_dir(config, sounds_dir)
    print_config_info(config, directory)

    missing = [name for name in PHONICS_MAP.values() if not (directory / name).is_file()]
    print("Sound Assets")
    print("-" * 40)
    print(f"  Found:   {len(PHONICS_MAP) - len(missing)}/{len(PHONICS_MAP)}")
    if missing:
        print(f"  Missing: {', '.join(missing)}")
    print()
    return 1 if missing else 0


def main() -> None:
    """Main entry point for Phonical."""
    parser = argparse.ArgumentParser(
        prog="phonical",
        description="Phonical - A phonics learning tool for kids",
        epilog="Press Ctrl+C to exit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show verbose output",
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        type=Path,
        help="Path to a config.toml (default: per-user config)",
    )
    parser.add_argument(
        "--sounds-dir",
        metavar="DIR",
        help="Directory containing a.wav ... z.wav (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command")

    # listen subcommand (also the default when no args)
    subparsers.add_parser(
        "listen",
        help="Play phonics sounds for keys typed anywhere (default)",
    )

    play_parser = subparsers.add_parser(
        "play",
        help="Play the sounds for the given letters and exit",
    )
    play_parser.add_argument("text", help="Letters to play, e.g. 'cat'")

    subparsers.add_parser(
        "devices",
        help="List audio output devices",
    )

    subparsers.add_parser(
        "info",
        help="Show configuration and sound asset status",
    )

    args = parser.parse_args()

    config = get_config(args.config)
    verbose = args.verbose or config["logging"].get("verbose", False)
    setup_logging(verbose=verbose, log_file=config["logging"].get("file") or None)

    if args.command == "listen" or args.command is None:
        sys.exit(run_listen(config, args.sounds_dir))
    elif args.command == "play":
        sys.exit(run_play(config, args.text, args.sounds_dir))
    elif args.command == "devices":
        sys.exit(run_devices())
    elif args.command == "info":
        sys.exit(run_info(config, args.sounds_dir))


if __name__ == "__main__":
    main()
