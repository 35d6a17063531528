"""Shared fixtures: a fake sandbox runtime and an isolated log root."""

from __future__ import annotations

import os
import stat
import sys
import textwrap
from pathlib import Path

import pytest

from routeprobe import Config, RunResult
from routeprobe.logs import LOG_FILE_PREFIX, log_dir

FAKE_RUNTIME = textwrap.dedent(
    """\
    #!{python}
    import json
    import os
    import sys

    args = sys.argv[1:]
    with open(os.environ["FAKE_ARGS_FILE"], "a", encoding="utf-8") as f:
        f.write(json.dumps(args) + "\\n")

    code = int(os.environ.get("FAKE_EXIT", "0"))
    if code:
        sys.stderr.write("runtime exploded\\n")
        sys.exit(code)

    result_file = args[args.index("--result-file") + 1]
    if not os.environ.get("FAKE_SKIP_RESULT"):
        payload = os.environ.get("FAKE_PAYLOAD", '{{"id": "box-1"}}')
        with open(result_file, "w", encoding="utf-8") as f:
            f.write(payload)

    if os.environ.get("FAKE_BINARY_NOISE"):
        sys.stdout.buffer.write(b"\\xff\\xfe chrome noise\\n")
        sys.stderr.buffer.write(b"\\xff warning\\n")

    log_dir = os.environ.get("FAKE_LOG_DIR")
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        with open(os.path.join(log_dir, "xcnetwork_0001.log"), "w", encoding="utf-8") as f:
            f.write(os.environ.get("FAKE_LOG_TEXT", ""))
    """
)


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(binary_path="unused", data_root=tmp_path / "appdata")


def write_log(config: Config, session_id: str, lines: list[str], name: str = "0001.log") -> Path:
    directory = log_dir(session_id, config)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / (LOG_FILE_PREFIX + name)
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return path


class FakeClient:
    """Stands in for Client; each run writes the scripted log lines."""

    def __init__(self, config: Config, sessions: list[tuple[str, list[str]]]):
        self.config = config
        self._sessions = list(sessions)
        self.calls: list[dict] = []

    def run(self, route_file, urls, resume=None, result_file=None) -> RunResult:
        self.calls.append(
            {
                "route_text": Path(route_file).read_text(encoding="utf-8"),
                "route_file": Path(route_file),
                "urls": list(urls),
                "resume": resume,
                "result_file": result_file,
            }
        )
        session_id, lines = self._sessions.pop(0)
        if lines:
            write_log(self.config, session_id, lines, name=f"{len(self.calls):04d}.log")
        return RunResult(session_id=session_id)


class Answers:
    """Prompt callable that replays scripted answers."""

    def __init__(self, *answers: str):
        self._answers = list(answers)
        self.asked = 0

    def __call__(self, message: str) -> str:
        self.asked += 1
        return self._answers.pop(0)


@pytest.fixture
def fake_runtime(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    if sys.platform == "win32":
        pytest.skip("fake runtime relies on a shebang script")
    script = tmp_path / "fake-runtime"
    script.write_text(FAKE_RUNTIME.format(python=sys.executable), encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    monkeypatch.setenv("FAKE_ARGS_FILE", os.fspath(tmp_path / "args.jsonl"))
    return script
