"""Route file convergence loop.

Each iteration writes the accumulated allow-list to the route file, runs a
sandbox session against it, scans the session's network logs for blocked
destinations and asks the user whether the pages worked:

    SEED -> BUILD -> RUN -> SCAN -> ACCUMULATE -> PROMPT -> DONE
              ^                                     |
              +-------------------------------------+

Destinations found blocked are only ever added, so the ``ip-add`` section
grows monotonically. ``ip-block`` always holds ``0.0.0.0`` so that anything
not explicitly allowed stays blocked.
"""

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

from .client import Client
from .hosts import wildcard_host
from .logs import scan_session
from .routes import RouteFile
from .types import (
    BLOCK_ALL_UNRESOLVED,
    SECTION_ADD,
    SECTION_BLOCK,
    Config,
    InvalidHostError,
)

log = logging.getLogger(__name__)

STATE_SEED = "seed"
STATE_BUILD = "build"
STATE_RUN = "run"
STATE_SCAN = "scan"
STATE_ACCUMULATE = "accumulate"
STATE_PROMPT = "prompt"
STATE_DONE = "done"

PROMPT_MESSAGE = "Did the pages load correctly? [y/N] "
ROUTE_FILE_NAME = "routes.txt"


def is_affirmative(answer: str) -> bool:
    return answer.casefold().startswith("y")


def seed_candidates(
    urls: Iterable[str], extra_hosts: Iterable[str] = ()
) -> tuple[list[str], list[str]]:
    """Return the initial allow entries and the inputs that were skipped."""
    candidates: list[str] = []
    invalid: list[str] = []
    for url in urls:
        try:
            candidates.append(wildcard_host(url))
        except InvalidHostError as e:
            log.warning("skipping %s", e)
            invalid.append(url)
    for host in extra_hosts:
        host = host.strip()
        if host:
            candidates.append(host)
    return list(dict.fromkeys(candidates)), invalid


@dataclass
class LoopResult:
    """Outcome of a convergence run."""

    route_file: RouteFile
    """Route file used by the last sandbox run."""

    route_text: str
    """Encoded route file."""

    route_path: Path | None
    """Persistent route file location, or None if it was temporary."""

    iterations: int
    """Number of sandbox runs."""

    session_id: str | None
    """Identifier of the last sandbox session."""

    invalid_hosts: list[str] = field(default_factory=list)
    """Inputs that could not be turned into allow entries."""

    converged: bool = True
    """False when the run stopped at max_iterations instead of user approval."""


class Explorer:
    """Drives sandbox runs until the user confirms the pages work.

    Args:
        urls: Target URLs, passed to every sandbox run.
        client: Sandbox runtime client; a default Client is built when None.
        config: Log location settings; defaults to the client's config.
        route_path: Persistent route file. A temporary file is used, and
            removed on exit, when None.
        result_path: Where the runtime writes its JSON result.
        prompt: Callable asking the user a question and returning the answer.
        extra_hosts: Additional allow entries added verbatim.
        max_iterations: Stop after this many runs without further prompting.
        on_state: Called with ``(state, explorer)`` on every state entry.
    """

    def __init__(
        self,
        urls: Sequence[str],
        client: Client | None = None,
        config: Config | None = None,
        route_path: str | Path | None = None,
        result_path: str | Path | None = None,
        prompt: Callable[[str], str] = input,
        extra_hosts: Iterable[str] = (),
        max_iterations: int | None = None,
        on_state: Callable[[str, "Explorer"], Any] | None = None,
    ):
        if not urls:
            raise ValueError("at least one URL is required")
        if max_iterations is not None and max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")

        if client is None:
            client = Client(config)
        if config is None:
            config = client.config

        self.urls = list(urls)
        self.client = client
        self.config = config
        self.route_path = Path(route_path) if route_path is not None else None
        self.result_path = Path(result_path) if result_path is not None else None
        self._prompt = prompt
        self._extra_hosts = list(extra_hosts)
        self._max_iterations = max_iterations
        self._on_state = on_state

        self.state = STATE_SEED
        self.route_file = RouteFile()
        self.pending: list[str] = []
        self.session_id: str | None = None
        self.iterations = 0
        self.history: list[list[str]] = []
        self.invalid_hosts: list[str] = []

    def run(self) -> LoopResult:
        temp_dir = ""
        route_path = self.route_path
        if route_path is None:
            temp_dir = tempfile.mkdtemp(prefix="routeprobe-")
            route_path = Path(temp_dir) / ROUTE_FILE_NAME

        try:
            converged = self._converge(route_path)
        finally:
            if temp_dir:
                shutil.rmtree(temp_dir, ignore_errors=True)

        if self.route_path is not None:
            log.info("route file written to %s", self.route_path)
        return LoopResult(
            route_file=self.route_file,
            route_text=self.route_file.dumps(),
            route_path=self.route_path,
            iterations=self.iterations,
            session_id=self.session_id,
            invalid_hosts=list(self.invalid_hosts),
            converged=converged,
        )

    def _converge(self, route_path: Path) -> bool:
        self._enter(STATE_SEED)
        self.pending, self.invalid_hosts = seed_candidates(
            self.urls, self._extra_hosts
        )

        while True:
            self._enter(STATE_BUILD)
            self._build(route_path)

            self._enter(STATE_RUN)
            result = self.client.run(
                route_path,
                self.urls,
                resume=self.session_id,
                result_file=self.result_path,
            )
            self.session_id = result.session_id
            self.iterations += 1
            log.info("sandbox session=%s iteration=%d", self.session_id, self.iterations)

            self._enter(STATE_SCAN)
            blocked = scan_session(self.session_id, self.config)

            self._enter(STATE_ACCUMULATE)
            self.pending = list(dict.fromkeys([*self.pending, *blocked]))

            if (
                self._max_iterations is not None
                and self.iterations >= self._max_iterations
            ):
                log.info("stopping after %d iterations", self.iterations)
                self._enter(STATE_BUILD)
                self._build(route_path)
                self._enter(STATE_DONE)
                return False

            self._enter(STATE_PROMPT)
            if is_affirmative(self._prompt(PROMPT_MESSAGE)):
                self._enter(STATE_DONE)
                return True

    def _build(self, route_path: Path) -> None:
        route_file = RouteFile.load(route_path)
        route_file.merge(SECTION_ADD, self.pending)
        route_file.merge(SECTION_BLOCK, [BLOCK_ALL_UNRESOLVED])
        route_file.dump(route_path)
        self.route_file = route_file
        self.history.append(route_file.entries(SECTION_ADD))

    def _enter(self, state: str) -> None:
        self.state = state
        if self._on_state is not None:
            self._on_state(state, self)
