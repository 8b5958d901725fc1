import pytest

from hwinspect.util import concat_strings, safe_int_from_file


class Recorder:
    def __init__(self):
        self.messages = []

    def warning(self, msg, *args):
        self.messages.append(msg % args)


@pytest.mark.parametrize(
    "items,expected",
    [
        ([], ""),
        (["simple"], "simple"),
        (["foo", "bar", "baz"], "foobarbaz"),
        (["foo ", " bar ", " baz"], "foo  bar  baz"),
    ],
)
def test_concat_strings(items, expected):
    assert concat_strings(*items) == expected


def test_safe_int_from_file_reads_value(tmp_path):
    path = tmp_path / "numa_node"
    path.write_text(" 42\n")
    recorder = Recorder()
    assert safe_int_from_file(str(path), recorder) == 42
    assert recorder.messages == []


def test_safe_int_from_file_negative_value(tmp_path):
    path = tmp_path / "numa_node"
    path.write_text("-1\n")
    assert safe_int_from_file(str(path), Recorder()) == -1


def test_safe_int_from_file_bad_contents(tmp_path):
    path = tmp_path / "value"
    path.write_text("abc\n")
    recorder = Recorder()
    assert safe_int_from_file(str(path), recorder) == -1
    assert len(recorder.messages) == 1
    assert recorder.messages[0].startswith("failed to read int from file:")


def test_safe_int_from_file_missing(tmp_path):
    recorder = Recorder()
    assert safe_int_from_file(str(tmp_path / "absent"), recorder) == -1
    assert len(recorder.messages) == 1