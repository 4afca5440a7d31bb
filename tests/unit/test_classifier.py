import pytest
from fflite.config.models import PatternConfig
from fflite.core.classifier import LineClassifier, PatternCatalogue, parse_duration
from fflite.domain.models import LineKind, Phase


@pytest.fixture
def classifier():
    return LineClassifier()


@pytest.mark.parametrize("phase", list(Phase))
def test_duration_header_in_any_phase(classifier, phase):
    item = classifier.classify("  Duration: 00:12:34.50, start: 0.000000, bitrate: 5000 kb/s", phase)
    assert item.kind == LineKind.DURATION_HEADER
    assert item.duration == pytest.approx(754.5)
    assert item.duration_text.startswith("Duration: 00:12:34.50")


def test_duration_not_available(classifier):
    item = classifier.classify("  Duration: N/A, bitrate: N/A", Phase.IDLE)
    assert item.kind == LineKind.DURATION_HEADER
    assert item.duration is None
    assert parse_duration("Duration: N/A") is None


def test_progress_with_speed(classifier):
    item = classifier.classify("frame=100 time=00:00:10.00 bitrate=128kbits/s speed=2.0x", Phase.ENCODING)
    assert item.kind == LineKind.PROGRESS_WITH_SPEED
    assert item.elapsed == pytest.approx(10.0)
    assert item.speed == pytest.approx(2.0)
    assert item.bitrate == "128kbits/s"


def test_progress_without_speed(classifier):
    line = "frame=  100 fps=0.0 q=28.0 size=     256kB time=00:00:03.00 bitrate= 699.1kbits/s dup=2 drop=1 speed=N/A"
    item = classifier.classify(line, Phase.ENCODING)
    assert item.kind == LineKind.PROGRESS_NO_SPEED
    assert item.elapsed == pytest.approx(3.0)
    assert item.dup == 2
    assert item.drop == 1
    assert item.speed is None


def test_progress_with_unknown_time(classifier):
    item = classifier.classify("size=       0kB time=N/A bitrate=N/A speed=N/A", Phase.IDLE)
    assert item.kind == LineKind.PROGRESS_NO_SPEED
    assert item.elapsed == 0.0


def test_headers(classifier):
    item = classifier.classify("Input #1, mov,mp4,m4a,3gp,3g2,mj2, from 'clip one.mp4':", Phase.IDLE)
    assert item.kind == LineKind.INPUT_HEADER
    assert item.index == 1
    assert item.path == "clip one.mp4"

    item = classifier.classify("Output #0, matroska, to 'out.mkv':", Phase.IDLE)
    assert item.kind == LineKind.OUTPUT_HEADER
    assert item.path == "out.mkv"

    item = classifier.classify("Stream mapping:", Phase.IDLE)
    assert item.kind == LineKind.STREAM_MAPPING_HEADER


def test_stream_header_with_language(classifier):
    item = classifier.classify("  Stream #0:1[0x2](jpn): Audio: aac (LC), 48000 Hz, stereo", Phase.IDLE)
    assert item.kind == LineKind.STREAM_HEADER
    assert item.stream_id == "0:1"
    assert item.language == "jpn"
    assert item.description.startswith("Audio: aac")


def test_stream_header_without_language(classifier):
    item = classifier.classify("  Stream #0:0: Video: h264", Phase.IDLE)
    assert item.kind == LineKind.STREAM_HEADER
    assert item.language is None
    assert item.description == "Video: h264"


def test_mapping_entry_only_while_mapping(classifier):
    line = "  Stream #0:0 -> #0:0 (h264 (native) -> h264 (libx264))"
    assert classifier.classify(line, Phase.MAPPING_STREAMS).kind == LineKind.STREAM_MAPPING_ENTRY
    assert classifier.classify(line, Phase.IDLE).kind == LineKind.UNCLASSIFIED


def test_error_catalogue(classifier):
    item = classifier.classify("missing.mp4: No such file or directory", Phase.IDLE)
    assert item.kind == LineKind.ERROR
    assert item.message == "missing.mp4: No such file or directory"


def test_specific_structure_wins_over_broad_error(classifier):
    # Contains "error" but is an input header first.
    item = classifier.classify("Input #0, wav, from 'error.wav':", Phase.IDLE)
    assert item.kind == LineKind.INPUT_HEADER


def test_warning_catalogue_captures_message(classifier):
    item = classifier.classify("[mp4 @ 0x7f] Warning: something odd happened", Phase.ENCODING)
    assert item.kind == LineKind.WARNING
    assert item.message == "Warning: something odd happened"


def test_finish_marker(classifier):
    line = "video:3000kB audio:60kB subtitle:0kB other streams:0kB global headers:0kB muxing overhead: 0.4%"
    assert classifier.classify(line, Phase.ENCODING).kind == LineKind.FINISH_MARKER


def test_suppressible_lines(classifier):
    assert classifier.classify("Press [q] to stop, [?] for help", Phase.IDLE).kind == LineKind.SUPPRESSIBLE
    assert classifier.classify("", Phase.ENCODING).kind == LineKind.SUPPRESSIBLE


def test_unclassified_marks_encoder_error_only_while_encoding(classifier):
    line = "[aac @ 0x55d0c0] Queue input is backward in time"
    assert classifier.classify(line, Phase.ENCODING).encoder_error is True
    item = classifier.classify(line, Phase.IDLE)
    assert item.kind == LineKind.UNCLASSIFIED
    assert item.encoder_error is False


def test_injected_catalogue():
    catalogue = PatternCatalogue.from_config(PatternConfig(errors=[r"boom"], warnings=[], hide=[]))
    classifier = LineClassifier(catalogue)
    assert classifier.classify("it went boom", Phase.IDLE).kind == LineKind.ERROR
    # Default error entries are gone.
    assert classifier.classify("No such file", Phase.IDLE).kind == LineKind.UNCLASSIFIED
