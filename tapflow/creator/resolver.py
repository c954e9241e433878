"""Template acquisition.

Turns a template reference into a local directory:

* ``file://<path>`` -- a template package on disk, used in place.
* ``http(s)://...`` -- a tarball, downloaded and extracted into a temp dir.
* anything else -- a registry package; its tarball URL is looked up with the
  configured package-metadata command, then handled as a URL.

Downloads are streamed: response chunks are fed into a ``tarfile`` reader
running in a worker thread, so the archive is never buffered as a whole.
"""

from __future__ import annotations

import asyncio
import io
import queue
import shutil
import tarfile
import tempfile
import zlib
from pathlib import Path
from types import TracebackType

import httpx

from tapflow.config import Config
from tapflow.errors import (
    DownloadError,
    ExtractionError,
    PackageLookupError,
    TempAllocationError,
    TemplateNotFoundError,
)
from tapflow.models import TemplateKind, TemplateReference
from tapflow.utils import print_step, run_command

_PUT_POLL_SECONDS = 0.05


# ---------------------------------------------------------------------------
# Temp directory lifecycle
# ---------------------------------------------------------------------------


def allocate_temp_dir(prefix: str = "tapflow-") -> Path:
    """Create a fresh temporary directory.

    Raises:
        TempAllocationError: If the filesystem cannot provide one.
    """
    try:
        return Path(tempfile.mkdtemp(prefix=prefix))
    except OSError as exc:
        raise TempAllocationError(f"Cannot create temporary directory: {exc}") from exc


class TempDirScope:
    """Owns temp directories and removes all of them when the scope exits.

    Usable as a sync or async context manager.  Cleanup runs on every exit
    path, including exceptions, cancellation and ``KeyboardInterrupt``.
    """

    def __init__(self, prefix: str = "tapflow-") -> None:
        self.prefix = prefix
        self.paths: list[Path] = []

    def allocate(self) -> Path:
        path = allocate_temp_dir(self.prefix)
        self.paths.append(path)
        return path

    def cleanup(self) -> None:
        while self.paths:
            shutil.rmtree(self.paths.pop(), ignore_errors=True)

    def __enter__(self) -> "TempDirScope":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    async def __aenter__(self) -> "TempDirScope":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await asyncio.to_thread(self.cleanup)


# ---------------------------------------------------------------------------
# Streaming bridge between the event loop and the extraction thread
# ---------------------------------------------------------------------------


class _ChunkPipe(io.RawIOBase):
    """File-like object fed with byte chunks from the event loop.

    At most ``maxsize`` chunks are buffered; the feeding side waits for the
    reader and gives up once the reader has finished.
    """

    def __init__(self, maxsize: int = 16) -> None:
        self._chunks: queue.Queue[bytes | None] = queue.Queue(maxsize=maxsize)
        self._pending = b""
        self._eof = False

    async def feed(self, chunk: bytes, reader: asyncio.Future[None]) -> bool:
        """Hand *chunk* to the reader.  Returns ``False`` once it stopped."""
        if not chunk:
            return not reader.done()
        return await self._put(chunk, reader)

    async def finish(self, reader: asyncio.Future[None]) -> None:
        await self._put(None, reader)

    async def _put(self, item: bytes | None, reader: asyncio.Future[None]) -> bool:
        while not reader.done():
            try:
                self._chunks.put_nowait(item)
                return True
            except queue.Full:
                await asyncio.wait({reader}, timeout=_PUT_POLL_SECONDS)
        return False

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        while not self._pending and not self._eof:
            chunk = self._chunks.get()
            if chunk is None:
                self._eof = True
            else:
                self._pending = chunk
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


def _extract_stream(source: io.RawIOBase, destination: Path) -> None:
    with tarfile.open(fileobj=io.BufferedReader(source), mode="r|*") as archive:
        archive.extractall(destination, filter="data")


# ---------------------------------------------------------------------------
# TemplateResolver
# ---------------------------------------------------------------------------


class TemplateResolver:
    """Resolves template references to local template directories.

    Temp directories allocated for downloads belong to the ``scope`` passed
    to :meth:`resolve`; without one they are left for the caller to remove.
    """

    def __init__(
        self,
        config: Config | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or Config()
        self.transport = transport

    async def resolve(self, reference: str, scope: TempDirScope | None = None) -> Path:
        """Return the absolute template directory for *reference*."""
        print_step(f"Using template [bold]{reference}[/bold]")
        ref = TemplateReference.classify(reference, self.config.local_prefix)

        if ref.kind is TemplateKind.LOCAL:
            path = Path(ref.value).resolve() / self.config.template_dir_name
            if not path.is_dir():
                raise TemplateNotFoundError(path)
            print_step(f"Local template at {path}")
            return path

        url = ref.value
        if ref.kind is TemplateKind.REGISTRY:
            url = await self.lookup_tarball_url(ref.value)

        tmp_dir = scope.allocate() if scope is not None else allocate_temp_dir()
        await self.download(url, tmp_dir)

        path = tmp_dir / self.config.archive_root_dir / self.config.template_dir_name
        if not path.is_dir():
            raise TemplateNotFoundError(path)
        return path

    async def lookup_tarball_url(self, package: str) -> str:
        """Ask the package registry for the tarball URL of *package*.

        Raises:
            PackageLookupError: If the lookup command fails or prints nothing.
        """
        print_step(f"Looking up download URL of '{package}'")
        cmd = self.config.lookup_command_for(package)
        returncode, stdout, stderr = await run_command(cmd)
        if returncode != 0:
            raise PackageLookupError(package, stderr or f"exit code {returncode}")
        url = stdout.strip()
        if not url:
            raise PackageLookupError(package, "lookup returned an empty result")
        return url

    async def download(self, url: str, destination: Path) -> None:
        """Stream the tarball at *url* and extract it into *destination*.

        Raises:
            DownloadError: On a non-2xx response or a transport failure.
            ExtractionError: If the body is not a readable tar archive.
        """
        print_step(f"Downloading {url}")
        pipe = _ChunkPipe()
        extraction = asyncio.ensure_future(asyncio.to_thread(_extract_stream, pipe, destination))

        download_error: DownloadError | None = None
        try:
            await self._stream_into(url, pipe, extraction)
        except DownloadError as exc:
            download_error = exc
        finally:
            await pipe.finish(extraction)

        try:
            await extraction
        except (tarfile.TarError, EOFError, OSError, zlib.error) as exc:
            if download_error is not None:
                raise download_error from exc
            raise ExtractionError(url, str(exc)) from exc
        if download_error is not None:
            raise download_error

    async def _stream_into(self, url: str, pipe: _ChunkPipe, extraction: asyncio.Future[None]) -> None:
        try:
            async with httpx.AsyncClient(transport=self.transport, follow_redirects=True) as client:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise DownloadError(
                            url, f"HTTP {response.status_code}", status_code=response.status_code
                        )
                    async for chunk in response.aiter_bytes():
                        # Extraction stopped (done or failed), the rest is not needed.
                        if not await pipe.feed(chunk, extraction):
                            break
        except httpx.HTTPError as exc:
            raise DownloadError(url, str(exc) or type(exc).__name__) from exc
