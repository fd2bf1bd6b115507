"""Optional raw-HTML snapshots for diagnosing upstream markup drift."""

from __future__ import annotations

from pathlib import Path

import structlog

log = structlog.get_logger(__name__)


def dump_html(dump_dir: Path | None, filename: str, html: str) -> None:
    """Write *html* to ``dump_dir/filename``; a no-op without *dump_dir*.

    Failures are logged only; a snapshot never breaks a request.
    """
    if dump_dir is None:
        return
    target = dump_dir / filename
    try:
        dump_dir.mkdir(parents=True, exist_ok=True)
        target.write_text(html, encoding="utf-8")
    except OSError as exc:
        log.warning("debug_dump_failed", path=str(target), error=str(exc))
        return
    log.debug("debug_dump_written", path=str(target), html_len=len(html))
