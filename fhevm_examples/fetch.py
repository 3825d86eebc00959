"""Raw file downloads and template cloning from the examples repository."""

from __future__ import annotations

from dataclasses import dataclass
from http.client import IncompleteRead
from pathlib import Path
from typing import Callable
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlparse
from urllib.request import Request, urlopen

from .commands import CommandError, CommandRunner
from .logging import get_logger

RAW_CONTENT_HOST = "https://raw.githubusercontent.com"


class FetchError(RuntimeError):
    """Raised when a remote file cannot be downloaded."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass
class FetchResponse:
    """Body and status of a completed GET request."""

    status: int
    reason: str
    body: str


def _default_fetcher(url: str, timeout: float) -> FetchResponse:
    request = Request(url, headers={"User-Agent": "create-fhevm-example"}, method="GET")
    try:
        with urlopen(request, timeout=timeout) as response:  # type: ignore[arg-type]
            raw = response.read()
            status = getattr(response, "status", 200)
            reason = getattr(response, "reason", "OK")
    except HTTPError as exc:
        return FetchResponse(status=exc.code, reason=str(exc.reason), body="")
    except URLError as exc:
        raise FetchError(f"Request to {url} failed: {exc.reason}") from exc
    except IncompleteRead as exc:
        raise FetchError(f"Response from {url} was cut short") from exc

    try:
        body = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FetchError(f"Response from {url} is not UTF-8 text") from exc
    return FetchResponse(status=status, reason=reason, body=body)


class RemoteSource:
    """Fixed remote location holding the example contracts, tests and template."""

    def __init__(
        self,
        repo_url: str,
        branch: str,
        *,
        template_path: str = "fhevm-hardhat-template",
        fetcher: Callable[[str, float], FetchResponse] | None = None,
        runner: CommandRunner | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.repo_url = repo_url.rstrip("/")
        self.branch = branch
        self.template_path = template_path
        self.timeout = timeout
        self._fetcher = fetcher or _default_fetcher
        self._runner = runner or CommandRunner()
        self.logger = get_logger("fetch")

    @property
    def owner_and_repo(self) -> tuple[str, str]:
        parts = [part for part in urlparse(self.repo_url).path.split("/") if part]
        if len(parts) < 2:
            raise FetchError(f"Repository URL must name an owner and repo: {self.repo_url}")
        return parts[0], parts[1].removesuffix(".git")

    def raw_url(self, path: str) -> str:
        owner, repo = self.owner_and_repo
        return f"{RAW_CONTENT_HOST}/{owner}/{repo}/{self.branch}/{quote(path.lstrip('/'))}"

    def fetch_text(self, path: str) -> str:
        url = self.raw_url(path)
        self.logger.debug("GET %s", url)
        response = self._fetcher(url, self.timeout)
        if not 200 <= response.status < 300:
            raise FetchError(
                f"Failed to download {path}: {response.reason or response.status}",
                status=response.status,
            )
        return response.body

    def download(self, path: str, destination: Path) -> Path:
        """Fetch ``path`` and write it to ``destination``; nothing is written on failure."""
        content = self.fetch_text(path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(content, encoding="utf-8")
        return destination

    def clone_template(self, workdir: Path) -> Path:
        """Shallow-clone the repository into ``workdir`` and return the template directory."""
        clone_dir = workdir / "template"
        try:
            self._runner.run(
                [
                    "git",
                    "clone",
                    "--depth=1",
                    "--branch",
                    self.branch,
                    "--single-branch",
                    f"{self.repo_url}.git",
                    str(clone_dir),
                ],
                cwd=workdir,
            )
        except CommandError as exc:
            raise FetchError(f"Git clone failed: {exc}") from exc

        try:
            self._runner.run(
                ["git", "submodule", "update", "--init", "--recursive", self.template_path],
                cwd=clone_dir,
            )
        except CommandError as exc:
            raise FetchError(f"Submodule init failed: {exc}") from exc

        template_dir = clone_dir / self.template_path
        if not template_dir.is_dir():
            raise FetchError(f"Template directory missing after clone: {self.template_path}")
        return template_dir


__all__ = ["FetchError", "FetchResponse", "RAW_CONTENT_HOST", "RemoteSource"]
