import re
from pathlib import Path
from unittest.mock import patch

import pytest

from repocheckout.git.errors import ConfigurationError
from repocheckout.git.fs_helper import directory_exists, file_exists
from repocheckout.git.regexp_helper import escape


class TestDirectoryExists:
    def test_empty_path_raises(self) -> None:
        with pytest.raises(ValueError, match="Arg 'path' must not be empty"):
            directory_exists("", False)

    def test_missing_not_required(self, tmp_path: Path) -> None:
        assert directory_exists(tmp_path / "missing", False) is False

    def test_missing_required(self, tmp_path: Path) -> None:
        missing = tmp_path / "missing"
        with pytest.raises(ConfigurationError, match=re.escape(f"Directory '{missing}' does not exist")):
            directory_exists(missing, True)

    def test_other_os_error(self) -> None:
        with patch("repocheckout.git.fs_helper.os.stat", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(ConfigurationError, match="Encountered an error when checking whether path 'path' exists: Permission denied"):
                directory_exists("path", True)

    def test_directory(self, tmp_path: Path) -> None:
        assert directory_exists(tmp_path, True) is True

    def test_file_not_required(self, tmp_path: Path) -> None:
        f = tmp_path / "file.txt"
        f.write_text("x")
        assert directory_exists(f, False) is False

    def test_file_required(self, tmp_path: Path) -> None:
        f = tmp_path / "file.txt"
        f.write_text("x")
        with pytest.raises(ConfigurationError):
            directory_exists(f, True)


class TestFileExists:
    def test_empty_path_raises(self) -> None:
        with pytest.raises(ValueError):
            file_exists("")

    def test_missing(self, tmp_path: Path) -> None:
        assert file_exists(tmp_path / "shallow") is False

    def test_file(self, tmp_path: Path) -> None:
        f = tmp_path / "shallow"
        f.write_text("abc\n")
        assert file_exists(f) is True

    def test_directory_is_not_a_file(self, tmp_path: Path) -> None:
        assert file_exists(tmp_path) is False


class TestEscape:
    def test_escapes_non_word_characters(self) -> None:
        assert escape("a1b2c3_!@#") == "a1b2c3_\\!\\@\\#"

    def test_config_key(self) -> None:
        assert escape("http.https://github.com/.extraheader") == (
            "http\\.https\\:\\/\\/github\\.com\\/\\.extraheader"
        )
