"""
HTML page routes.
Serves the create form and the paste view page.
"""
import logging
from html import escape
from typing import Optional

from fastapi import APIRouter, Header
from fastapi.responses import HTMLResponse
from starlette.concurrency import run_in_threadpool

from ephemeral_paste.clock import current_time_ms
from ephemeral_paste.database import get_store
from ephemeral_paste.errors import StorageError
from ephemeral_paste.models import PasteView
from ephemeral_paste.service import consume_paste

router = APIRouter()
logger = logging.getLogger(__name__)

_STYLE = """
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
            background: #f4f4f7;
            min-height: 100vh;
            display: flex;
            align-items: center;
            justify-content: center;
            padding: 20px;
        }
        .container {
            background: white;
            border-radius: 10px;
            box-shadow: 0 10px 40px rgba(0, 0, 0, 0.15);
            max-width: 900px;
            width: 100%;
            padding: 40px;
        }
        h1 { color: #333; margin-bottom: 16px; font-size: 24px; }
        .meta { color: #666; font-size: 13px; margin-bottom: 20px; display: flex; gap: 16px; flex-wrap: wrap; }
        .content, textarea {
            background: #f5f5f5;
            border: 1px solid #ddd;
            border-radius: 5px;
            padding: 20px;
            font-family: "Courier New", monospace;
            font-size: 14px;
            line-height: 1.6;
            white-space: pre-wrap;
            word-wrap: break-word;
            color: #333;
            width: 100%;
        }
        label { display: block; margin-top: 12px; color: #444; font-size: 14px; }
        input { margin-top: 4px; padding: 6px; width: 160px; }
        button { margin-top: 20px; padding: 10px 24px; background: #667eea; color: white; border: 0; border-radius: 5px; }
        .footer { margin-top: 20px; text-align: center; color: #999; font-size: 12px; }
        .footer a, #result a { color: #667eea; }
"""

_CREATE_PAGE = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Ephemeral Paste</title>
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
        <h1>Ephemeral Paste</h1>
        <form id="paste-form">
            <textarea id="content" rows="12" required></textarea>
            <label>Expire after (seconds) <input id="ttl_seconds" type="number" min="1"></label>
            <label>Maximum views <input id="max_views" type="number" min="1"></label>
            <button type="submit">Create paste</button>
        </form>
        <p id="result"></p>
    </div>
    <script>
        document.getElementById("paste-form").addEventListener("submit", async (event) => {{
            event.preventDefault();
            const body = {{ content: document.getElementById("content").value }};
            for (const field of ["ttl_seconds", "max_views"]) {{
                const value = document.getElementById(field).value;
                if (value !== "") body[field] = Number(value);
            }}
            const result = document.getElementById("result");
            const response = await fetch("/api/pastes", {{
                method: "POST",
                headers: {{ "content-type": "application/json" }},
                body: JSON.stringify(body),
            }});
            const data = await response.json();
            result.textContent = "";
            if (response.ok) {{
                const link = document.createElement("a");
                link.href = data.url;
                link.textContent = data.url;
                result.appendChild(link);
            }} else {{
                result.textContent = data.error;
            }}
        }});
    </script>
</body>
</html>"""

_NOT_FOUND_PAGE = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Not Found - Ephemeral Paste</title>
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
        <h1>404</h1>
        <p>This paste was not found, has expired, or its view limit has been reached.</p>
        <div class="footer"><a href="/">Create a new paste</a></div>
    </div>
</body>
</html>"""


def render_paste_page(paste_id: str, paste: PasteView) -> str:
    """Render a paste. Content is escaped here and only here."""
    remaining = "unlimited" if paste.remaining_views is None else str(paste.remaining_views)
    expires = paste.expires_at or "never"
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="robots" content="noindex">
    <title>Paste {escape(paste_id)} - Ephemeral Paste</title>
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
        <h1>Paste</h1>
        <div class="meta">
            <div><strong>ID:</strong> <code>{escape(paste_id)}</code></div>
            <div><strong>Remaining views:</strong> {remaining}</div>
            <div><strong>Expires at:</strong> {expires}</div>
        </div>
        <pre class="content">{escape(paste.content)}</pre>
        <div class="footer"><a href="/">Create a new paste</a></div>
    </div>
</body>
</html>"""


def _consume(paste_id: str, now_ms: int) -> Optional[PasteView]:
    return consume_paste(get_store(), paste_id, now_ms)


@router.get("/", response_class=HTMLResponse)
async def root() -> HTMLResponse:
    """Serve the create paste HTML page."""
    return HTMLResponse(_CREATE_PAGE)


@router.get("/p/{paste_id}", response_class=HTMLResponse)
async def view_paste(
    paste_id: str,
    x_test_now_ms: Optional[str] = Header(None),
) -> HTMLResponse:
    """
    View a paste as HTML.
    Each view consumes one view of a view-limited paste, same as the API.
    """
    now_ms = current_time_ms(x_test_now_ms)
    try:
        paste = await run_in_threadpool(_consume, paste_id, now_ms)
    except StorageError as e:
        logger.error(f"Paste view error for {paste_id}: {e}")
        paste = None

    if paste is None:
        return HTMLResponse(_NOT_FOUND_PAGE, status_code=404)

    return HTMLResponse(render_paste_page(paste_id, paste))
