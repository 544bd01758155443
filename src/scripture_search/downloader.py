"""Download the markdown scripture corpus into the corpus directory."""

import logging
import shutil
import tempfile
import zipfile
from pathlib import Path

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import get_corpus_url, get_default_corpus_dir
from .corpus import discover_books

logger = logging.getLogger(__name__)

# Directory inside the archive holding one folder per book
CORPUS_SUBDIR = "by_chapter"

# Responses worth retrying
RETRY_STATUSES = (429, 500, 502, 503, 504)


def corpus_session(retries: int = 5) -> requests.Session:
    """Build a session that retries idempotent requests with exponential backoff."""
    adapter = HTTPAdapter(
        max_retries=Retry(
            total=retries,
            backoff_factor=1,
            status_forcelist=RETRY_STATUSES,
            allowed_methods=["GET", "HEAD"],
        )
    )

    session = requests.Session()
    for scheme in ("http://", "https://"):
        session.mount(scheme, adapter)
    session.headers["User-Agent"] = "scripture-search"
    return session


def download_file(url: str, dest_path: Path, session: requests.Session | None = None) -> None:
    """
    Download a file from a URL to a destination path.

    Args:
        url: URL to download from
        dest_path: Path to save the downloaded file
        session: Optional requests session to use (with retries configured)

    Raises:
        requests.RequestException: If download fails
    """
    logger.info("Downloading %s", url)

    if session is None:
        session = corpus_session()

    try:
        response = session.get(url, timeout=60, stream=True)
        response.raise_for_status()

        with open(dest_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    f.write(chunk)

    except requests.exceptions.RequestException as e:
        logger.error("Download of %s failed: %s", url, e)
        raise

    logger.info("Downloaded to %s", dest_path)


def unpack_archive(zip_path: Path, extract_to: Path) -> Path:
    """
    Unpack a repository archive and return its root directory.

    GitHub archives hold a single "<repo>-<branch>/" directory; anything else
    is not a corpus archive.

    Raises:
        zipfile.BadZipFile: If the archive is corrupt
        ValueError: If the archive has no single root directory
    """
    logger.info("Unpacking %s", zip_path.name)
    with zipfile.ZipFile(zip_path) as archive:
        archive.extractall(extract_to)

    roots = [d for d in extract_to.iterdir() if d.is_dir()]
    if len(roots) != 1:
        raise ValueError(
            f"Corpus archive {zip_path.name} should have one root directory, found {len(roots)}"
        )
    return roots[0]


def install_corpus(source_dir: Path, corpus_dir: Path) -> int:
    """
    Copy the book directories of an extracted archive into the corpus directory.

    Args:
        source_dir: Extracted archive root
        corpus_dir: Destination corpus directory; existing books are replaced

    Returns:
        Number of book directories installed

    Raises:
        ValueError: If the archive has no by_chapter directory
    """
    books_dir = source_dir / CORPUS_SUBDIR
    if not books_dir.is_dir():
        raise ValueError(f"Archive has no {CORPUS_SUBDIR}/ directory")

    corpus_dir.mkdir(parents=True, exist_ok=True)

    count = 0
    for book_dir in sorted(books_dir.iterdir()):
        if not book_dir.is_dir():
            continue
        target_dir = corpus_dir / book_dir.name
        if target_dir.exists():
            shutil.rmtree(target_dir)
        shutil.copytree(book_dir, target_dir)
        count += 1

    logger.info("Installed %d books into %s", count, corpus_dir)
    return count


def corpus_is_present(corpus_dir: Path) -> bool:
    """Check whether the corpus directory already holds at least one book."""
    try:
        return bool(discover_books(corpus_dir))
    except OSError:
        return False


def ensure_corpus_downloaded(
    corpus_dir: str | Path | None = None, url: str | None = None, force: bool = False
) -> Path:
    """
    Ensure the scripture corpus is downloaded and installed.

    Args:
        corpus_dir: Corpus directory. Defaults to the configured corpus directory
        url: Archive URL. Defaults to the configured corpus URL
        force: Download even if the corpus is already present

    Returns:
        Path to the corpus directory

    Raises:
        requests.RequestException: If download fails
        zipfile.BadZipFile: If the archive is corrupt
        ValueError: If the archive structure is unexpected
    """
    corpus_dir = Path(corpus_dir) if corpus_dir is not None else get_default_corpus_dir()
    url = url or get_corpus_url()

    if not force and corpus_is_present(corpus_dir):
        logger.info("Corpus already exists at %s, skipping download", corpus_dir)
        return corpus_dir

    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)

        zip_path = temp_path / "corpus.zip"
        download_file(url, zip_path)

        extract_path = temp_path / "extracted"
        extract_path.mkdir()
        extracted_dir = unpack_archive(zip_path, extract_path)

        install_corpus(extracted_dir, corpus_dir)

    return corpus_dir
