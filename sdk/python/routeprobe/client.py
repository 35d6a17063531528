"""Sandbox runtime client.

The runtime is an external binary. Each run is one blocking process
invocation:

    xcsandbox run --route-file routes.txt --result-file result.json URL...
    xcsandbox resume <id> --route-file routes.txt --result-file result.json URL...

and the runtime writes a JSON object describing the session to the result
file. Usage:

    client = Client(Config(binary_path="xcsandbox"))
    result = client.run("routes.txt", ["https://example.com"])
    print(result.session_id)
"""

import json
import logging
import os
import shutil
import subprocess
import tempfile
from typing import Any, Sequence

from .types import Config, RunResult, RuntimeInvocationError

log = logging.getLogger(__name__)

_STDERR_TAIL = 2000


class Client:
    """Client for invoking the sandbox runtime binary."""

    def __init__(self, config: Config | None = None):
        if config is None:
            config = Config.from_env()
        self._config = config
        self._last_session_id: str | None = None

    @property
    def config(self) -> Config:
        return self._config

    @property
    def session_id(self) -> str | None:
        return self._last_session_id

    def build_command(
        self,
        route_file: str | os.PathLike[str],
        urls: Sequence[str],
        result_file: str | os.PathLike[str],
        resume: str | None = None,
    ) -> list[str]:
        cmd = [self._config.binary_path]
        if resume:
            cmd += ["resume", resume]
        else:
            cmd += ["run"]
        cmd += [
            "--route-file",
            os.fspath(route_file),
            "--result-file",
            os.fspath(result_file),
        ]
        cmd += list(urls)
        if self._config.use_sudo:
            cmd = ["sudo"] + cmd
        return cmd

    def run(
        self,
        route_file: str | os.PathLike[str],
        urls: Sequence[str],
        resume: str | None = None,
        result_file: str | os.PathLike[str] | None = None,
    ) -> RunResult:
        """Run one sandbox session and block until the runtime exits.

        Args:
            route_file: Route file handed to the runtime.
            urls: Target URLs, passed as trailing arguments.
            resume: Session to resume; a new session is started when None.
            result_file: Where the runtime writes its JSON result. A private
                temporary file is used and removed when None.

        Raises:
            RuntimeInvocationError: the runtime could not be started, exited
                with a non-zero status, or produced no usable result.
        """
        if not urls:
            raise RuntimeInvocationError("at least one URL is required")

        temp_dir = ""
        if result_file is None:
            temp_dir = tempfile.mkdtemp(prefix="routeprobe-result-")
            result_file = os.path.join(temp_dir, "result.json")

        try:
            cmd = self.build_command(route_file, urls, result_file, resume=resume)
            log.debug("running %s", " ".join(cmd))
            try:
                os.unlink(result_file)
            except FileNotFoundError:
                pass
            except OSError as e:
                raise RuntimeInvocationError(
                    f"failed to clear stale sandbox result: {e}"
                ) from e
            try:
                proc = subprocess.run(
                    cmd, capture_output=True, text=True, errors="replace"
                )
            except OSError as e:
                raise RuntimeInvocationError(
                    f"failed to start sandbox runtime {cmd[0]!r}: {e}"
                ) from e

            if proc.returncode != 0:
                stderr = (proc.stderr or "")[-_STDERR_TAIL:]
                raise RuntimeInvocationError(
                    f"sandbox runtime exited with status {proc.returncode}: "
                    f"{stderr.strip()}",
                    exit_code=proc.returncode,
                    stderr=stderr,
                )

            payload = self._read_result(result_file)
            session_id = str(
                payload.get("id") or payload.get("container_id") or ""
            ).strip()
            if not session_id:
                raise RuntimeInvocationError(
                    "invalid sandbox result: missing id",
                    exit_code=proc.returncode,
                )
        finally:
            if temp_dir:
                shutil.rmtree(temp_dir, ignore_errors=True)

        self._last_session_id = session_id
        return RunResult(session_id=session_id, exit_code=proc.returncode, raw=payload)

    def _read_result(self, path: str | os.PathLike[str]) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                payload = json.load(f)
        except OSError as e:
            raise RuntimeInvocationError(f"failed to read sandbox result: {e}") from e
        except json.JSONDecodeError as e:
            raise RuntimeInvocationError(f"failed to parse sandbox result: {e}") from e
        if not isinstance(payload, dict):
            raise RuntimeInvocationError(
                "failed to parse sandbox result: expected object"
            )
        return payload
