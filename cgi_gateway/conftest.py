import pytest


@pytest.fixture
def cgi_script(tmp_path):
    """Create an executable CGI script that prints `output` and records its environment."""

    def _create(output: str, name: str = "test.cgi"):
        (tmp_path / "output.txt").write_text(output, encoding="utf-8")
        script = tmp_path / name
        script.write_text("#!/bin/sh\nenv > env.txt\ncat output.txt\n")
        script.chmod(0o755)
        return script

    return _create


@pytest.fixture
def child_env(tmp_path):
    """Read back the environment recorded by a `cgi_script` run."""

    def _read():
        env = {}
        for line in (tmp_path / "env.txt").read_text().splitlines():
            key, _, value = line.partition("=")
            env[key] = value
        return env

    return _read
