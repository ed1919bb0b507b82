import pytest

from ddnsconf.file import FileReadError, read_string


@pytest.fixture
def root(tmp_path):
    (tmp_path / "test").mkdir()
    (tmp_path / "test" / "file.txt").write_text(" hello world   ")
    (tmp_path / "dir").mkdir()
    (tmp_path / "dir" / "file.txt").write_text("hello")
    return tmp_path


def test_read_string(root):
    assert read_string("test/file.txt", root) == "hello world"


def test_read_string_absolute_path(root):
    assert read_string("/test/file.txt", root) == "hello world"


def test_read_string_wrong_path(root):
    with pytest.raises(FileReadError, match="wrong/path.txt"):
        read_string("wrong/path.txt", root)


def test_read_string_directory(root):
    with pytest.raises(FileReadError, match="dir"):
        read_string("dir", root)