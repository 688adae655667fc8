import logging
import signal
import sys

from audio_io import SoundPlayer, create_pyaudio, get_output_device
from config import load_config, setup_logging
from guard.camera import CameraSource
from guard.detector import FaceDetector
from guard.errors import CaptureError, DetectorInitError
from guard.runtime import HELP_TEXT, GuardRuntime, handle_command
from guard.sounds import SoundCatalog, ensure_catalog
from guard.storage import PreferenceStore

logger = logging.getLogger("focusguard")

CAMERA_HELP = "Allow camera access to use FocusGuard."


def graceful_exit(signum, frame) -> None:  # pragma: no cover - signal handler
    logger.info("Shutting down (signal %s)", signum)
    raise KeyboardInterrupt()


def run_console(runtime: GuardRuntime) -> None:
    print(HELP_TEXT)
    print("Type 'unlock' to allow the alarm to sound.")
    while True:
        try:
            line = input("> ")
        except EOFError:
            break
        reply = handle_command(runtime, line)
        if reply is None:
            break
        if reply:
            print(reply)


def main() -> int:
    config = load_config()
    setup_logging(config.log_level)
    signal.signal(signal.SIGINT, graceful_exit)
    logger.info("Starting FocusGuard")

    catalog = SoundCatalog.from_directory(config.sounds_dir)
    ensure_catalog(catalog)
    preferences = PreferenceStore(config.preferences_path)

    pa = create_pyaudio()
    device = get_output_device(pa, config.output_device_index)
    player = SoundPlayer(pa, device_index=device.index)

    runtime = GuardRuntime(
        config=config,
        camera=CameraSource(config.camera_index),
        detector=FaceDetector(min_face_px=config.detect_min_face_px, scale=config.detect_scale),
        player=player,
        preferences=preferences,
        catalog=catalog,
        test_player_factory=lambda: SoundPlayer(pa, device_index=device.index),
    )
    try:
        runtime.start()
    except CaptureError as exc:
        logger.error("Camera unavailable: %s", exc)
        print(CAMERA_HELP)
        pa.terminate()
        return 1
    except DetectorInitError as exc:
        logger.error("Face detector unavailable: %s", exc)
        print("Face detector model could not be loaded.")
        pa.terminate()
        return 1

    try:
        run_console(runtime)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        runtime.shutdown()
        pa.terminate()
    return 0


if __name__ == "__main__":
    sys.exit(main())
