import logging
import os
import subprocess
from typing import Mapping

from opentelemetry import trace

from .errors import ScriptExecutionError, ScriptNotFoundError

logger = logging.getLogger("uvicorn.error")
tracer = trace.get_tracer(__name__)


def execute_script(
    script: str, env: Mapping[str, str], inherit_environ: bool = True
) -> str:
    """
    Run the CGI script synchronously and return everything it wrote to stdout.

    `env` is overlaid on a copy of the host environment (or used alone when
    `inherit_environ` is off); the host process environment is left untouched.
    Output is decoded with surrogateescape so binary bodies can be turned back
    into the original bytes.
    """
    if not os.path.exists(script):
        raise ScriptNotFoundError(script)

    child_env = os.environ.copy() if inherit_environ else {}
    child_env.update(env)

    with tracer.start_as_current_span("execute_cgi_script") as span:
        span.set_attribute("cgi.script", script)
        logger.debug(f"[Executor] Running {script} with {sorted(env)}")
        try:
            completed = subprocess.run(
                [script],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=child_env,
                cwd=os.path.dirname(script) or None,
            )
        except OSError as e:
            span.set_attribute("cgi.error", str(e))
            raise ScriptExecutionError(script, e.strerror or str(e)) from e
        span.set_attribute("cgi.exit_code", completed.returncode)
        span.set_attribute("cgi.output_bytes", len(completed.stdout))

    if completed.returncode != 0:
        logger.warning(
            f"[Executor] {script} exited with {completed.returncode}: "
            f"{completed.stderr.decode('utf-8', errors='replace').strip()}"
        )

    return completed.stdout.decode("utf-8", errors="surrogateescape")
