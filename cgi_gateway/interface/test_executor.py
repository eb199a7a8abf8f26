import logging
import os

import pytest

from cgi_gateway.interface.errors import ScriptExecutionError, ScriptNotFoundError
from cgi_gateway.interface.executor import execute_script


def test_missing_script(tmp_path):
    with pytest.raises(ScriptNotFoundError) as exc_info:
        execute_script(str(tmp_path / "missing.cgi"), {})
    assert "missing.cgi" in str(exc_info.value)


def test_returns_stdout(cgi_script):
    script = cgi_script("Content-Type: text/plain\n\nhello\n")
    assert execute_script(str(script), {}) == "Content-Type: text/plain\n\nhello\n"


def test_environment_is_injected(cgi_script, child_env):
    script = cgi_script("")
    execute_script(str(script), {"PATH_INFO": "/src/"})
    assert child_env()["PATH_INFO"] == "/src/"
    # the host process is left alone
    assert os.environ.get("PATH_INFO") != "/src/"


def test_host_environment_can_be_dropped(cgi_script, child_env, monkeypatch):
    monkeypatch.setenv("GATEWAY_TEST_MARKER", "1")
    script = cgi_script("")

    execute_script(str(script), {"QUERY_STRING": "a=1"})
    assert child_env()["GATEWAY_TEST_MARKER"] == "1"

    execute_script(
        str(script),
        {"QUERY_STRING": "a=1", "PATH": os.environ["PATH"]},
        inherit_environ=False,
    )
    assert "GATEWAY_TEST_MARKER" not in child_env()
    assert child_env()["QUERY_STRING"] == "a=1"


def test_binary_output_survives(tmp_path):
    script = tmp_path / "binary.cgi"
    script.write_text("#!/bin/sh\nprintf 'Content-Type: image/png\\n\\n\\211PNG'\n")
    script.chmod(0o755)

    output = execute_script(str(script), {})
    assert output.encode("utf-8", errors="surrogateescape").endswith(b"\x89PNG")


def test_failing_script_is_logged(tmp_path, caplog):
    script = tmp_path / "broken.cgi"
    script.write_text("#!/bin/sh\necho 'Status: 500'\necho oops >&2\nexit 3\n")
    script.chmod(0o755)

    with caplog.at_level(logging.WARNING, logger="uvicorn.error"):
        output = execute_script(str(script), {})

    assert output == "Status: 500\n"
    assert "exited with 3" in caplog.text
    assert "oops" in caplog.text


def test_script_without_execute_bit(tmp_path):
    script = tmp_path / "plain.cgi"
    script.write_text("#!/bin/sh\necho hi\n")
    script.chmod(0o644)

    with pytest.raises(ScriptExecutionError) as exc_info:
        execute_script(str(script), {})
    assert exc_info.value.script == str(script)
    assert isinstance(exc_info.value.__cause__, PermissionError)


def test_directory_is_not_runnable(tmp_path):
    with pytest.raises(ScriptExecutionError) as exc_info:
        execute_script(str(tmp_path), {})
    assert str(tmp_path) in str(exc_info.value)
