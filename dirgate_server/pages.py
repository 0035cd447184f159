# dirgate_server/pages.py
from __future__ import annotations

from html import escape
from typing import List, Optional
from urllib.parse import quote

from dirgate.services.access import Listing
from dirgate.services.listing import Entry

ICONS = {
    # Images
    "jpg": "image", "jpeg": "image", "png": "image", "gif": "image", "svg": "image",
    # Documents
    "pdf": "pdf", "doc": "document", "docx": "document", "txt": "text", "md": "markdown",
    # Code
    "html": "code", "css": "code", "js": "code", "ts": "code", "json": "code", "py": "code",
    # Archives
    "zip": "archive", "rar": "archive", "tar": "archive", "gz": "archive",
}

GLYPHS = {
    "folder": "&#128193;", "image": "&#128444;", "pdf": "&#128213;", "document": "&#128196;",
    "text": "&#128196;", "markdown": "&#128221;", "code": "&#128187;", "archive": "&#128230;",
    "file": "&#128196;",
}

STYLE = """
:root { --bg: #f9fafb; --card-bg: #fff; --text: #374151; --accent: #2563eb; --border: #e5e7eb; }
[data-theme="dark"] { --bg: #1a1a1a; --card-bg: #2d2d2d; --text: #e5e5e5; --accent: #93c5fd; --border: #404040; }
body { font-family: system-ui, sans-serif; margin: 2rem; color: var(--text); background: var(--bg); }
a { color: var(--accent); }
.container { max-width: 960px; margin: 0 auto; background: var(--card-bg); padding: 1.5rem; border-radius: 8px; }
.header { display: flex; justify-content: space-between; align-items: center; }
.breadcrumbs { margin: 1rem 0; }
table { width: 100%; border-collapse: collapse; }
th, td { text-align: left; padding: .4rem .6rem; border-bottom: 1px solid var(--border); }
th[data-sort-key] { cursor: pointer; }
th[data-dir="asc"]::after { content: " \\25B2"; }
th[data-dir="desc"]::after { content: " \\25BC"; }
td.size, td.date { white-space: nowrap; }
.theme-toggle { background: none; border: 1px solid var(--border); border-radius: 6px; color: var(--text); cursor: pointer; }
.error { color: #ef4444; }
form.login { display: grid; gap: .6rem; max-width: 320px; }
"""

FAVICON_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 32 32">'
    '<path d="M2 7a2 2 0 0 1 2-2h8l3 3h13a2 2 0 0 1 2 2v15a2 2 0 0 1-2 2H4a2 2 0 0 1-2-2z" fill="#2563eb"/>'
    "</svg>"
)

# Runs in <head> so the saved theme applies before first paint
THEME_HEAD_SCRIPT = """
(function () {
  var saved = localStorage.getItem('theme');
  var prefersDark = window.matchMedia('(prefers-color-scheme: dark)').matches;
  if (saved === 'dark' || (!saved && prefersDark)) {
    document.documentElement.setAttribute('data-theme', 'dark');
  }
})();
"""

THEME_SCRIPT = """
(function () {
  var button = document.getElementById('theme-toggle');
  if (!button) { return; }
  button.addEventListener('click', function () {
    var dark = document.documentElement.getAttribute('data-theme') === 'dark';
    if (dark) {
      document.documentElement.removeAttribute('data-theme');
    } else {
      document.documentElement.setAttribute('data-theme', 'dark');
    }
    localStorage.setItem('theme', dark ? 'light' : 'dark');
  });
})();
"""

SORT_SCRIPT = """
(function () {
  var table = document.querySelector('.directory-listing table');
  if (!table) { return; }
  var tbody = table.tBodies[0];
  table.querySelectorAll('th[data-sort-key]').forEach(function (th) {
    th.addEventListener('click', function () {
      var asc = th.dataset.dir !== 'asc';
      table.querySelectorAll('th[data-sort-key]').forEach(function (h) { delete h.dataset.dir; });
      th.dataset.dir = asc ? 'asc' : 'desc';
      var idx = th.cellIndex, numeric = th.dataset.sortKey === 'number';
      var rows = Array.prototype.slice.call(tbody.querySelectorAll('tr:not(.parent)'));
      rows.sort(function (a, b) {
        var x = a.cells[idx].dataset.sort, y = b.cells[idx].dataset.sort;
        var cmp = numeric ? parseFloat(x) - parseFloat(y) : x.localeCompare(y);
        return asc ? cmp : -cmp;
      });
      rows.forEach(function (r) { tbody.appendChild(r); });
    });
  });
})();
"""

TOGGLE_SCRIPT = """
document.querySelectorAll('input[data-permission]').forEach(function (box) {
  box.addEventListener('change', function () {
    var kind = box.dataset.permission;
    var body = {path: box.dataset.path};
    body[kind === 'read' ? 'isPublic' : 'isWritable'] = box.checked;
    fetch('/api/permissions/' + kind, {
      method: 'POST',
      headers: {'Content-Type': 'application/json'},
      body: JSON.stringify(body)
    }).then(function (resp) {
      if (!resp.ok) { box.checked = !box.checked; resp.text().then(alert); }
    });
  });
});
"""


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{value:.2f} {units[i]}"


def file_icon(entry: Entry) -> str:
    if entry.is_dir:
        return "folder"
    ext = entry.name.rsplit(".", 1)[-1].lower() if "." in entry.name else ""
    return ICONS.get(ext, "file")


def _href(relative: str, is_dir: bool) -> str:
    href = "/" + quote(relative)
    return href + "/" if is_dir and relative else href


def breadcrumbs(relative: str) -> str:
    crumbs = ['<a href="/">Home</a>']
    current = ""
    for part in [p for p in relative.split("/") if p]:
        current = f"{current}/{part}" if current else part
        crumbs.append(f'<a href="{_href(current, True)}">{escape(part)}</a>')
    return '<div class="breadcrumbs">' + " / ".join(crumbs) + "</div>"


def _page(title: str, body: str, script: str = "") -> str:
    tail = f"<script>{script}</script>" if script else ""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en"><head><meta charset="UTF-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">'
        f"<title>{escape(title)}</title>"
        '<link rel="icon" href="/favicon.ico" type="image/svg+xml">'
        f"<style>{STYLE}</style><script>{THEME_HEAD_SCRIPT}</script></head>"
        f'<body><div class="container">{body}</div>{tail}</body></html>'
    )


def _toggle(kind: str, entry: Entry, checked: bool) -> str:
    return (
        f'<input type="checkbox" data-permission="{kind}" '
        f'data-path="{escape(entry.relative)}"{" checked" if checked else ""}>'
    )


def _row(entry: Entry, manage: bool) -> str:
    cells = [
        f'<td class="icon">{GLYPHS[file_icon(entry)]}</td>',
        f'<td class="name" data-sort="{escape(entry.name.lower())}">'
        f'<a href="{_href(entry.relative, entry.is_dir)}">{escape(entry.name)}</a></td>',
        # directories sort ahead of every file by size
        f'<td class="size" data-sort="{-1 if entry.is_dir else entry.size}">'
        f'{"-" if entry.is_dir else format_file_size(entry.size)}</td>',
        f'<td class="date" data-sort="{entry.mtime.timestamp():.0f}">'
        f'{entry.mtime.strftime("%Y-%m-%d %H:%M:%S")}</td>',
    ]
    if manage:
        cells.append(f'<td class="public">{_toggle("read", entry, entry.is_public)}</td>')
        cells.append(f'<td class="writable">{_toggle("write", entry, entry.is_writable)}</td>')
    return "<tr>" + "".join(cells) + "</tr>"


def render_listing(listing: Listing, display_name: Optional[str] = None) -> str:
    """
    Directory page. Permission toggles are rendered only for an
    authenticated identity; anonymous pages carry neither the controls nor
    the script that drives them.
    """
    relative = listing.target.relative
    manage = listing.identity is not None
    title = "/" + relative

    if manage:
        who = escape(display_name or listing.identity or "")
        account = f'<span>Signed in as {who}</span> <a href="/logout">Log out</a>'
    else:
        account = f'<a href="/login?redirect={quote(_href(relative, True), safe="")}">Log in</a>'

    rows: List[str] = []
    if relative:
        parent = relative.rsplit("/", 1)[0] if "/" in relative else ""
        rows.append(
            f'<tr class="parent"><td class="icon">{GLYPHS["folder"]}</td>'
            f'<td class="name"><a href="{_href(parent, True)}">..</a></td>'
            '<td class="size">-</td><td class="date"></td>'
            + ("<td></td><td></td>" if manage else "")
            + "</tr>"
        )
    rows.extend(_row(e, manage) for e in listing.entries)

    headers = (
        '<th></th><th data-sort-key="text">Name</th>'
        '<th data-sort-key="number">Size</th><th data-sort-key="number">Modified</th>'
    )
    if manage:
        headers += "<th>Public</th><th>Writable</th>"

    body = (
        '<div class="header"><h1>Directory Browser</h1><div>'
        '<button id="theme-toggle" class="theme-toggle" aria-label="Toggle dark/light mode">'
        f"&#9680;</button> {account}</div></div>"
        f"{breadcrumbs(relative)}"
        f'<div class="directory-listing"><table><thead><tr>{headers}</tr></thead>'
        f"<tbody>{''.join(rows)}</tbody></table></div>"
    )
    scripts = THEME_SCRIPT + SORT_SCRIPT + (TOGGLE_SCRIPT if manage else "")
    return _page(f"Directory: {title}", body, scripts)


def render_login(redirect: str = "/", error: Optional[str] = None) -> str:
    message = f'<p class="error">{escape(error)}</p>' if error else ""
    body = (
        "<h1>Log in</h1>"
        f"{message}"
        '<form class="login" method="post" action="/login">'
        f'<input type="hidden" name="redirect" value="{escape(redirect)}">'
        '<label>Username <input name="username" autocomplete="username" required></label>'
        '<label>Password <input name="password" type="password" '
        'autocomplete="current-password" required></label>'
        '<button type="submit">Log in</button>'
        "</form>"
    )
    return _page("Log in", body)
