import io
import itertools
import pytest
import yaml
from rich.console import Console
from fflite.core.session import Session
from fflite.infrastructure.event_bus import EventBus
from fflite.ui.console import TerminalOutput

# A complete, successful ffmpeg run as it appears on stderr.
ENCODE_STDERR = (
    b"Input #0, matroska,webm, from 'in.mkv':\n"
    b"  Duration: 00:12:34.50, start: 0.000000, bitrate: 5000 kb/s\n"
    b"  Stream #0:0(eng): Video: h264 (High), yuv420p, 1920x1080\n"
    b"  Stream #0:1(jpn): Audio: aac, 48000 Hz, stereo\n"
    b"Stream mapping:\n"
    b"  Stream #0:0 -> #0:0 (h264 (native) -> h264 (libx264))\n"
    b"  Stream #0:1 -> #0:1 (copy)\n"
    b"Press [q] to stop, [?] for help\n"
    b"Output #0, matroska, to 'out.mkv':\n"
    b"  Stream #0:0: Video: h264\n"
    b"frame=  100 fps= 50 q=28.0 size=    1024kB time=00:00:04.00 bitrate=2097.2kbits/s dup=0 drop=0 speed=2.00x\r"
    b"frame=  200 fps= 50 q=28.0 size=    2048kB time=00:00:08.00 bitrate=2097.2kbits/s dup=0 drop=0 speed=2.00x\r"
    b"frame=  300 fps= 50 q=-1.0 Lsize=    3072kB time=00:00:12.00 bitrate=2097.2kbits/s dup=0 drop=0 speed=2.00x\n"
    b"video:3000kB audio:60kB subtitle:0kB other streams:0kB global headers:0kB muxing overhead: 0.4%\n"
)

# Encoder complains mid-run; the run itself still completes.
ENCODER_ERROR_STDERR = (
    b"  Duration: 00:00:20.00, start: 0.000000, bitrate: 5000 kb/s\n"
    b"frame=  100 fps= 50 q=28.0 size=    1024kB time=00:00:04.00 bitrate=2097.2kbits/s speed=2.00x\r"
    b"[aac @ 0x55d0c0] Queue input is backward in time\n"
    b"frame=  200 fps= 50 q=28.0 size=    2048kB time=00:00:08.00 bitrate=2097.2kbits/s speed=2.00x\n"
    b"video:3000kB audio:60kB subtitle:0kB other streams:0kB global headers:0kB muxing overhead: 0.4%\n"
)


def make_clock(start: float = 100.0, step: float = 1.0):
    """Returns a deterministic clock that advances by `step` on every call."""
    counter = itertools.count()
    return lambda: start + next(counter) * step


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def console_file():
    return io.StringIO()


@pytest.fixture
def output(console_file):
    """TerminalOutput writing plain text into an in-memory buffer."""
    return TerminalOutput(Console(file=console_file, force_terminal=False, width=200))


@pytest.fixture
def session():
    return Session(clock=make_clock())


@pytest.fixture
def fflite_yaml(tmp_path):
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "fflite.yaml"

    content = {
        'general': {
            'ffmpeg_binary': '/opt/ffmpeg/bin/ffmpeg',
            'mute': True,
            'warning_limit': 3,
        },
        'crop': {
            'count': 3,
        },
        'presets': {
            r'^@fast$': '-preset veryfast',
        },
    }

    with open(conf_file, 'w') as f:
        yaml.dump(content, f)

    return conf_file


@pytest.fixture
def encode_stderr():
    return ENCODE_STDERR


@pytest.fixture
def encoder_error_stderr():
    return ENCODER_ERROR_STDERR


@pytest.fixture
def clock_factory():
    return make_clock
