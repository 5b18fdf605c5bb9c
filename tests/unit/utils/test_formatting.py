"""Unit tests for formatting helpers."""

import pytest
from purgectl.utils.formatting import format_size


class TestFormatSize:
    """Tests for format_size."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (None, "0 B"),
            (0, "0 B"),
            (512, "512 B"),
            (2048, "2.0 KB"),
            (5 * 1024 * 1024, "5.0 MB"),
            (3 * 1024**3, "3.0 GB"),
            (2 * 1024**4, "2.0 TB"),
        ],
    )
    def test_format_size(self, size: int | None, expected: str) -> None:
        assert format_size(size) == expected
