from __future__ import annotations

import logging
import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

import requests

from .. import __version__
from ..errors import FetchError

logger = logging.getLogger(__name__)

ProgressFn = Callable[[int, Optional[int]], None]

DEFAULT_CHUNK_SIZE = 64 * 1024
USER_AGENT = f"harbor-installer/{__version__}"


class FetchTimeout(Exception):
    """An attempt ran past its wall-clock budget."""


@dataclass(frozen=True)
class FetchTarget:
    name: str
    urls: Tuple[str, ...]
    dest: Path


class LoggingProgress:
    """Progress callback that logs every 10% (or every 8 MiB without Content-Length)."""

    def __init__(self, label: str, *, step_pct: int = 10, step_bytes: int = 8 * 1024 * 1024) -> None:
        self.label = label
        self.step_pct = step_pct
        self.step_bytes = step_bytes
        self._next_pct = step_pct
        self._next_bytes = step_bytes

    def __call__(self, done: int, total: Optional[int]) -> None:
        if total:
            pct = done * 100 // total
            if pct >= self._next_pct:
                logger.info("%s: %d%% (%d/%d bytes)", self.label, pct, done, total)
                self._next_pct = (pct // self.step_pct + 1) * self.step_pct
        elif done >= self._next_bytes:
            logger.info("%s: %d bytes", self.label, done)
            self._next_bytes = (done // self.step_bytes + 1) * self.step_bytes


def _remove_partial(dest: Path) -> None:
    try:
        dest.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove partial download %s: %s", str(dest), e)


def _response_socket(resp) -> Optional[socket.socket]:
    """Dig the connected socket out of a streaming requests response, if there is one."""

    raw = getattr(resp, "raw", None)
    conn = getattr(raw, "connection", None) or getattr(raw, "_connection", None)
    sock = getattr(conn, "sock", None)
    if sock is None:
        # urllib3 already let go of the connection; http.client still holds the file.
        fp = getattr(getattr(raw, "_fp", None), "fp", None)
        sock = getattr(getattr(fp, "raw", None), "_sock", None)
    return sock if isinstance(sock, socket.socket) else None


def _interrupt(resp) -> None:
    # close() alone does not wake a recv() blocked in another thread; shutdown() does.
    sock = _response_socket(resp)
    if sock is not None:
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug("shutdown of timed-out connection failed: %s", e)
    resp.close()


class Fetcher:
    """Streams remote artifacts to disk, trying mirror URLs in order."""

    def __init__(
        self,
        *,
        timeout: float = 300.0,
        session_factory: Callable[[], requests.Session] = requests.Session,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.timeout = timeout
        self.session_factory = session_factory
        self.chunk_size = chunk_size

    def fetch(
        self,
        urls: Union[str, Sequence[str]],
        dest: Union[str, Path],
        *,
        timeout: Optional[float] = None,
        progress: Optional[ProgressFn] = None,
    ) -> str:
        """Download the first URL that answers 200 to dest. Returns that URL.

        Redirects are followed. Each attempt is bounded by timeout seconds.
        On failure no partial dest is left behind.
        """

        url_list = [urls] if isinstance(urls, str) else list(urls)
        dest_path = Path(dest)
        budget = self.timeout if timeout is None else timeout

        last_status: Optional[int] = None
        last_error: Optional[BaseException] = None

        with self.session_factory() as session:
            for url in url_list:
                logger.info("GET %s", url)
                try:
                    status = self._attempt(session, url, dest_path, budget, progress)
                except (requests.RequestException, FetchTimeout, OSError) as e:
                    _remove_partial(dest_path)
                    last_status, last_error = None, e
                    logger.warning("Download failed: %s (%s)", url, e)
                    continue
                except BaseException:
                    _remove_partial(dest_path)
                    raise

                if status == 200:
                    logger.info("Downloaded %s -> %s", url, str(dest_path))
                    return url

                _remove_partial(dest_path)
                last_status, last_error = status, None
                logger.warning("Download failed: %s (HTTP %s)", url, status)

        raise FetchError(url_list, str(dest_path), status=last_status, error=last_error)

    def _attempt(
        self,
        session: requests.Session,
        url: str,
        dest: Path,
        budget: float,
        progress: Optional[ProgressFn],
    ) -> int:
        deadline = time.monotonic() + budget
        expired = threading.Event()

        with session.get(
            url,
            stream=True,
            timeout=(budget, budget),
            allow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        ) as resp:
            if resp.status_code != 200:
                return resp.status_code

            try:
                total: Optional[int] = int(resp.headers.get("Content-Length") or 0) or None
            except ValueError:
                total = None

            # A read blocked inside iter_content (stalled, or a server trickling bytes
            # into a half-filled chunk) never reaches the deadline check below; the
            # watchdog breaks the connection under it.
            def _abort() -> None:
                expired.set()
                _interrupt(resp)

            watchdog = threading.Timer(max(deadline - time.monotonic(), 0.0), _abort)
            watchdog.daemon = True
            watchdog.start()
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                done = 0
                with open(dest, "wb") as f:
                    for chunk in resp.iter_content(chunk_size=self.chunk_size):
                        if expired.is_set() or time.monotonic() > deadline:
                            raise FetchTimeout(f"timed out after {budget}s")
                        if not chunk:
                            continue
                        f.write(chunk)
                        done += len(chunk)
                        if progress is not None:
                            progress(done, total)
            except Exception as e:
                # Breaking a connection mid-read surfaces as whatever urllib3 or
                # http.client trips over first.
                if expired.is_set():
                    raise FetchTimeout(f"timed out after {budget}s") from e
                raise
            finally:
                watchdog.cancel()

            if expired.is_set():
                raise FetchTimeout(f"timed out after {budget}s")
            if total is not None and done < total:
                raise OSError(f"short read: {done}/{total} bytes")
            return resp.status_code

    def fetch_many(self, targets: Sequence[FetchTarget], *, max_workers: int = 3) -> Dict[str, str]:
        """Fetch independent targets concurrently; join all, then raise the first failure.

        Returns {target.name: url_used}.
        """

        results: Dict[str, str] = {}
        first_error: Optional[BaseException] = None

        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(targets) or 1))) as pool:
            futures = [
                (t, pool.submit(self.fetch, t.urls, t.dest, progress=LoggingProgress(t.name)))
                for t in targets
            ]
            for t, fut in futures:
                try:
                    results[t.name] = fut.result()
                except Exception as e:
                    logger.error("Fetch of %s failed: %s", t.name, e)
                    if first_error is None:
                        first_error = e

        if first_error is not None:
            raise first_error
        return results
