"""Printable HTML exports of the journal.

The documents call ``window.print()`` when opened, so "Save as PDF" in the
browser's print dialog produces the PDF. ``export_pdf`` renders a PDF
directly with Playwright instead.

Requires optional dependency for ``export_pdf``: pip install study-journal[pdf]
"""

from __future__ import annotations

import html
import logging
import webbrowser
from datetime import datetime
from pathlib import Path

from study_journal.datekeys import display_date
from study_journal.models import (
    DayRecord,
    JournalEntry,
    Screenshot,
    TaskItem,
    VideoItem,
)

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Raised when a PDF cannot be rendered."""

_STYLE = """
      body {
        font-family: system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
        margin: 40px;
        color: #111827;
      }
      h1, h2 { margin-bottom: 8px; }
      h1 { font-size: 24px; }
      h2 { font-size: 18px; margin-top: 24px; }
      hr { margin: 20px 0; border: none; border-top: 1px solid #e5e7eb; }
      small { color: #6b7280; }
      figure { width: 180px; margin: 0; }
      figure img { width: 100%; height: auto; border-radius: 8px; border: 1px solid #e5e7eb; }
      figcaption { font-size: 11px; color: #4b5563; margin-top: 4px; word-break: break-word; }
      .gallery { display: flex; flex-wrap: wrap; gap: 12px; }
"""


def _esc(text: str) -> str:
    return html.escape(text, quote=True)


def _placeholder(text: str) -> str:
    return f"<p><em>{_esc(text)}</em></p>"


def _document(title: str, body: list[str]) -> str:
    lines = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "  <head>",
        '    <meta charset="utf-8" />',
        f"    <title>{_esc(title)}</title>",
        f"    <style>{_STYLE}    </style>",
        "  </head>",
        "  <body>",
    ]
    lines.extend(f"    {line}" for line in body)
    lines.extend([
        "    <script>",
        "      window.onload = function () { window.print(); };",
        "    </script>",
        "  </body>",
        "</html>",
        "",
    ])
    return "\n".join(lines)


def _gallery(items: list[tuple[str, str, str]]) -> str:
    """Render (src, caption, detail) triples as a figure gallery."""
    figures = []
    for src, caption, detail in items:
        detail_html = f'<br/><small>{_esc(detail)}</small>' if detail else ""
        figures.append(
            f'<figure><img src="{_esc(src)}" alt="{_esc(caption)}"/>'
            f"<figcaption>{_esc(caption)}{detail_html}</figcaption></figure>"
        )
    return f'<div class="gallery">{"".join(figures)}</div>'


def render_day_document(record: DayRecord) -> str:
    """Build the printable document for one day."""
    day_label = display_date(record.date)
    body = [
        f"<h1>Study journal - {_esc(day_label)}</h1>",
        "<small>Exported from study-journal</small>",
        "<hr/>",
        "<h2>Summary of the day</h2>",
    ]

    if record.summary:
        summary = _esc(record.summary).replace("\n", "<br/>")
        body.append(
            f'<p style="white-space:pre-wrap;font-size:14px;line-height:1.6;">{summary}</p>'
        )
    else:
        body.append(_placeholder("No summary for this day."))

    body.extend(["<hr/>", "<h2>Study links</h2>"])
    if record.links:
        items = "".join(
            f"<li><strong>{_esc(link.title or link.url)}</strong><br/>"
            f'<a href="{_esc(link.url)}" target="_blank">{_esc(link.url)}</a></li>'
            for link in record.links
        )
        body.append(f"<ul>{items}</ul>")
    else:
        body.append(_placeholder("No study links."))

    body.extend(["<hr/>", "<h2>Captures</h2>"])
    if record.captures:
        body.append(_gallery([(c.url, c.title, "") for c in record.captures]))
    else:
        body.append(_placeholder("No captures."))

    return _document(f"Study journal - {day_label}", body)


def _format_timestamp(ts: str) -> str:
    try:
        dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return ts
    return dt.astimezone().strftime("%d/%m/%Y %H:%M")


def _format_hours(hours: float) -> str:
    return f"{hours:g}"


def render_journal_document(
    entries: list[JournalEntry],
    tasks: list[TaskItem],
    videos: list[VideoItem],
    screenshots: list[Screenshot],
    generated_at: datetime | None = None,
) -> str:
    """Build the printable document for the whole tracker."""
    generated_at = generated_at or datetime.now()
    body = [
        "<h1>Study journal</h1>",
        f"<small>Generated: {_esc(generated_at.strftime('%d/%m/%Y %H:%M'))}</small>",
        "<hr/>",
        "<h2>Journal entries</h2>",
    ]

    if entries:
        for entry in sorted(entries, key=lambda e: e.date, reverse=True):
            body.append(
                '<section style="margin-bottom:16px;">'
                f'<h3 style="font-size:16px;margin:0 0 4px;">{_esc(display_date(entry.date))}</h3>'
                f'<p style="margin:0 0 4px;"><strong>Study hours:</strong> {_format_hours(entry.hours)}</p>'
                f'<pre style="white-space:pre-wrap;font-size:12px;font-family:inherit;margin:0;">{_esc(entry.notes)}</pre>'
                "</section>"
            )
    else:
        body.append(_placeholder("No entries yet."))

    body.extend(["<hr/>", "<h2>Tasks</h2>"])
    if tasks:
        items = "".join(
            f"<li>[{'x' if t.done else ' '}] {_esc(t.text.strip() or '(no description)')}</li>"
            for t in tasks
        )
        body.append(f"<ul>{items}</ul>")
    else:
        body.append(_placeholder("No tasks recorded."))

    body.extend(["<hr/>", "<h2>Study videos</h2>"])
    if videos:
        items = "".join(
            f"<li><strong>{_esc(v.title)}</strong><br/>"
            f"Status: {_esc(v.status.label)}<br/>"
            f"Link: {_esc(v.url or '(no link)')}</li>"
            for v in videos
        )
        body.append(f"<ul>{items}</ul>")
    else:
        body.append(_placeholder("No videos recorded."))

    body.extend(["<hr/>", "<h2>Screenshots</h2>"])
    if screenshots:
        body.append(
            _gallery([
                (s.data_url, s.name, _format_timestamp(s.created_at))
                for s in screenshots
            ])
        )
    else:
        body.append(_placeholder("No screenshots recorded."))

    return _document("Study journal", body)


def print_document(
    content: str,
    output_dir: Path,
    name: str = "study-journal",
    open_browser: bool = True,
) -> Path | None:
    """Write the document and open it in the default browser for printing.

    Returns the written path, or None when the document could not be
    written or the browser could not be opened.
    """
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    output_path = output_dir / f"{name}-{stamp}.html"
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
    except OSError as e:
        logger.error("Could not write export %s: %s", output_path, e)
        return None
    logger.info("Wrote: %s", output_path)

    if not open_browser:
        return output_path

    try:
        opened = webbrowser.open(output_path.resolve().as_uri())
    except webbrowser.Error as e:
        logger.error("Could not open browser: %s", e)
        return None
    if not opened:
        logger.error("No browser available to print %s", output_path)
        return None
    return output_path


def _check_playwright() -> None:
    """Check if Playwright is installed."""
    try:
        import playwright  # noqa: F401
    except ImportError:
        raise ImportError(
            "Playwright is required for PDF export. "
            "Install with: pip install study-journal[pdf]"
        )


def export_pdf(content: str, output_path: Path, timeout: int = 30) -> Path:
    """Render the document to a PDF file with headless Chromium.

    Args:
        content: HTML document.
        output_path: Destination PDF path.
        timeout: Page load timeout in seconds.

    Returns:
        The written path.

    Raises:
        ImportError: If Playwright is not installed.
        ExportError: If the output path cannot be created or rendering fails.
    """
    _check_playwright()

    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import sync_playwright

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportError(f"Cannot create {output_path.parent}: {e}") from e

    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True)
            try:
                page = browser.new_page()
                page.set_content(content, timeout=timeout * 1000, wait_until="load")
                page.pdf(path=str(output_path), format="A4", print_background=True)
            finally:
                browser.close()
    except PlaywrightError as e:
        raise ExportError(f"PDF rendering failed: {e}") from e

    logger.info("Wrote: %s", output_path)
    return output_path
