"""Lambda packaging: turn a file set into a deployable zip.

Creates a normalized zip archive from a file set plus the handler/runtime the
platform needs to invoke it, and records the archive's SHA-256 digest.

Design goals:
- Deterministic output: sorted entries, fixed timestamps, so unchanged pages
  produce byte-identical lambdas across builds.
- Only relative arcnames (keys are normalized before writing).
"""

from __future__ import annotations

import hashlib
import io
import stat
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

from next_builder.config import get_settings, parse_size
from next_builder.files import FileSet, normalize_key
from next_builder.logging import get_logger

log = get_logger(__name__)

DEFAULT_HANDLER = "now__launcher.launcher"
DEFAULT_RUNTIME = "nodejs8.10"

_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def _sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class Lambda:
    zip_bytes: bytes = field(repr=False)
    handler: str
    runtime: str
    sha256: str

    @property
    def size(self) -> int:
        return len(self.zip_bytes)

    def names(self) -> list[str]:
        with zipfile.ZipFile(io.BytesIO(self.zip_bytes)) as z:
            return z.namelist()

    def read(self, name: str) -> bytes:
        with zipfile.ZipFile(io.BytesIO(self.zip_bytes)) as z:
            return z.read(name)

    def write(self, outdir: Path, name: str) -> Path:
        """Persist the zip under *outdir* with a sibling ``.sha256`` file."""
        outdir.mkdir(parents=True, exist_ok=True)
        zip_path = outdir / f"{name}.zip"
        zip_path.parent.mkdir(parents=True, exist_ok=True)
        zip_path.write_bytes(self.zip_bytes)
        zip_path.with_suffix(".zip.sha256").write_text(self.sha256, encoding="utf-8")
        return zip_path


def create_lambda(
    files: FileSet,
    handler: str = DEFAULT_HANDLER,
    runtime: str = DEFAULT_RUNTIME,
) -> Lambda:
    """Zip *files* into a Lambda.

    Parameters
    ----------
    files: FileSet
        Archive contents keyed by their path inside the lambda.
    handler: str
        ``<module>.<export>`` invoked by the platform.
    runtime: str
        Platform runtime identifier.

    Returns
    -------
    Lambda
        The immutable deployable unit.
    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for key in sorted(files):
            info = zipfile.ZipInfo(normalize_key(key), date_time=_ZIP_EPOCH)
            info.external_attr = (stat.S_IMODE(files[key].mode) or 0o644) << 16
            info.compress_type = zipfile.ZIP_DEFLATED
            z.writestr(info, files[key].read_bytes())

    data = buf.getvalue()
    budget = parse_size(get_settings().max_lambda_size)
    if len(data) > budget:
        log.warning(
            "lambda exceeds the size budget",
            extra={"size": len(data), "budget": budget, "handler": handler},
        )
    return Lambda(
        zip_bytes=data,
        handler=handler,
        runtime=runtime,
        sha256=_sha256_bytes(data),
    )
