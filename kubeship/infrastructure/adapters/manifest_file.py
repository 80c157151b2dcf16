"""
Temporary manifest files handed to `kubectl apply -f` / `oc apply -f`.

Names are time-based and created exclusively, so overlapping runs never share a
file; the file is removed once the apply returns. Manifests can carry registry
credentials, so the file is readable by its owner only.
"""

from __future__ import annotations
import logging
import os
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from kubeship.domain.value_objects.manifest import RenderedManifest

logger = logging.getLogger(__name__)

MANIFEST_MODE = 0o600


def manifest_path(directory: Optional[str] = None) -> Path:
    base = Path(directory) if directory else Path(tempfile.gettempdir())
    return base / f"kubeship-manifest-{time.time_ns()}-{os.getpid()}.yaml"


@contextmanager
def manifest_file(manifest: RenderedManifest, directory: Optional[str] = None) -> Iterator[Path]:
    path = manifest_path(directory)
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, MANIFEST_MODE)
    with os.fdopen(fd, "w") as f:
        f.write(manifest.text)
    try:
        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Manifest file %s already removed", path)
