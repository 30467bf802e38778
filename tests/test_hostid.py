from __future__ import annotations

import pytest

from sdk_provisioner.lib.hostid import parse_windows_user


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("alice\r\n", "alice"),
        (
            "'\\\\wsl.localhost\\Ubuntu-22.04\\root'\r\n"
            "CMD.EXE was started with the above path as the current directory.\r\n"
            "UNC paths are not supported.  Defaulting to Windows directory.\r\n"
            "Jean  Dupont \r\n",
            "Jean Dupont",
        ),
        ("\r\n\r\n  bob\r\n\r\n", "bob"),
        ("", None),
        ("C:\\Windows\r\n", None),
        ("%USERNAME%\r\ncmd failed\r\n", "%USERNAME%"),
    ],
)
def test_parse_windows_user(raw, expected):
    assert parse_windows_user(raw) == expected
