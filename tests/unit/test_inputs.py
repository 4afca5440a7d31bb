from fflite.pipeline.inputs import expand_inputs, parse_inline_list, read_list_file


def test_read_list_file_skips_blank_lines(tmp_path):
    list_file = tmp_path / "files.txt"
    list_file.write_text("a.mp4\n\n  b.mp4  \n")
    assert read_list_file(list_file) == ["a.mp4", "b.mp4"]


def test_expand_inputs_from_list_file(tmp_path):
    list_file = tmp_path / "files.txt"
    list_file.write_text("a.mp4\nb.mp4\n")
    source = expand_inputs(str(list_file))
    assert source.batch is True
    assert source.paths == ["a.mp4", "b.mp4"]


def test_parse_inline_list_with_quotes():
    assert parse_inline_list('list:a.mp4 b.mp4 "c d.mp4"') == ["a.mp4", "b.mp4", "c d.mp4"]
    assert parse_inline_list("list:") == []


def test_expand_inputs_inline_list():
    source = expand_inputs("list:one.mkv two.mkv")
    assert source.batch is True
    assert source.paths == ["one.mkv", "two.mkv"]


def test_expand_inputs_glob(tmp_path):
    for name in ["x2.mp4", "x1.mp4", "y.mkv"]:
        (tmp_path / name).write_text("")
    source = expand_inputs(str(tmp_path / "x*.mp4"))
    assert source.batch is True
    assert source.paths == [str(tmp_path / "x1.mp4"), str(tmp_path / "x2.mp4")]


def test_expand_inputs_glob_without_matches(tmp_path):
    source = expand_inputs(str(tmp_path / "*.avi"))
    assert source.batch is True
    assert source.paths == []


def test_expand_inputs_single_file(tmp_path):
    source = expand_inputs(str(tmp_path / "clip.mp4"))
    assert source.batch is False
    assert source.paths == [str(tmp_path / "clip.mp4")]


def test_missing_txt_file_is_a_single_input(tmp_path):
    missing = str(tmp_path / "subtitles.txt")
    source = expand_inputs(missing)
    assert source.batch is False
    assert source.paths == [missing]
