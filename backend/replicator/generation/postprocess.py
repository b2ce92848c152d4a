"""Pull HTML/CSS/JS out of free-form model text and wrap it in the standard document."""
import re
from dataclasses import dataclass
from string import Template

_HTML_DOC = re.compile(r"<html[\s\S]*?</html>", re.IGNORECASE)
_BODY = re.compile(r"<body[^>]*>([\s\S]*?)</body>", re.IGNORECASE)
_HTML_INNER = re.compile(r"<html[^>]*>([\s\S]*?)</html>", re.IGNORECASE)
_HEAD = re.compile(r"<head[^>]*>[\s\S]*?</head>", re.IGNORECASE)
_DOCTYPE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)

_FENCE_HTML = re.compile(r"```html\s*([\s\S]*?)```", re.IGNORECASE)
_FENCE_CSS = re.compile(r"```css\s*([\s\S]*?)```", re.IGNORECASE)
_FENCE_JS = re.compile(r"```(?:javascript|js)\s*([\s\S]*?)```", re.IGNORECASE)
_FENCE_MARKER = re.compile(r"```[a-zA-Z]*")

_STYLE = re.compile(r"<style[^>]*>([\s\S]*?)</style>", re.IGNORECASE)
# Inline scripts only; <script src=...> tags are left in the markup
_SCRIPT = re.compile(r"<script(?![^>]*\bsrc=)[^>]*>([\s\S]*?)</script>", re.IGNORECASE)

DOCUMENT_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>UI Replication</title>
    <link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/tailwindcss@2.2.19/dist/tailwind.min.css">
    <link rel="stylesheet" href="styles.css">
    $script_tag
    <style>
        /* Base responsive styles */
        *, *::before, *::after {
            box-sizing: border-box;
        }

        :root {
            font-size: 16px;
        }

        body {
            margin: 0;
            padding: 0;
            width: 100%;
            min-height: 100vh;
            overflow-x: hidden;
            -webkit-font-smoothing: antialiased;
            -moz-osx-font-smoothing: grayscale;
        }

        img {
            max-width: 100%;
            height: auto;
            display: block;
        }

        /* Touch-friendly controls */
        input, button, select, textarea, a {
            font-size: 16px; /* Prevents zoom on mobile */
            min-height: 44px;
            min-width: 44px;
        }

        .container {
            width: 100%;
            max-width: 1200px;
            margin: 0 auto;
            padding: 0 15px;
        }

        /* Responsive typography */
        h1 { font-size: clamp(1.75rem, 4vw, 2.5rem); }
        h2 { font-size: clamp(1.5rem, 3vw, 2rem); }
        h3 { font-size: clamp(1.25rem, 2.5vw, 1.75rem); }
        h4 { font-size: clamp(1.125rem, 2vw, 1.5rem); }
        p, li { font-size: clamp(0.875rem, 1.5vw, 1rem); }

        .responsive-grid {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(250px, 1fr));
            gap: 1rem;
        }

        /* Mobile devices */
        @media (max-width: 640px) {
            .container {
                padding: 0 10px;
            }

            .mobile-stack {
                flex-direction: column !important;
            }

            .hide-on-mobile {
                display: none !important;
            }
        }

        /* Tablet devices */
        @media (min-width: 641px) and (max-width: 1024px) {
            .hide-on-tablet {
                display: none !important;
            }
        }

        /* Desktop devices */
        @media (min-width: 1025px) {
            .hide-on-desktop {
                display: none !important;
            }
        }
    </style>
</head>
<body>
    $body
</body>
</html>
""")

SCRIPT_TAG = '<script defer src="script.js"></script>'


@dataclass
class ExtractedCode:
    markup: str  # the matched HTML region, styles and scripts included
    body: str  # markup reduced to body content without <style>/<script>
    css: str
    js: str


def strip_code_fences(text: str) -> str:
    """Drop markdown fence markers (```html, ```), keeping their contents."""
    return _FENCE_MARKER.sub("", text).strip()


def _find_markup(text: str) -> str:
    for pattern in (_HTML_DOC, _BODY):
        m = pattern.search(text)
        if m:
            return m.group(0).strip()
    m = _FENCE_HTML.search(text)
    if m:
        return m.group(1).strip()
    return text.strip()


def _body_content(markup: str) -> str:
    m = _BODY.search(markup)
    if m:
        return m.group(1)
    m = _HTML_INNER.search(markup)
    if m:
        return _HEAD.sub("", m.group(1))
    return _DOCTYPE.sub("", _HEAD.sub("", markup))


def _first(patterns: tuple[re.Pattern, ...], text: str) -> str:
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            return m.group(1).strip()
    return ""


def extract_code(text: str) -> ExtractedCode:
    """Split a model response into markup, body fragment, stylesheet and script.

    Falls back to the whole response as markup when no tags or fenced block are found.
    """
    text = text or ""
    markup = _find_markup(text)
    body = _body_content(markup)
    body = _SCRIPT.sub("", _STYLE.sub("", body)).strip()
    css = _first((_STYLE, _FENCE_CSS), text)
    js = _first((_SCRIPT, _FENCE_JS), text)
    return ExtractedCode(markup=markup, body=body, css=css, js=js)


def assemble_document(body: str, include_script: bool = False) -> str:
    """Wrap a body fragment in the fixed responsive boilerplate."""
    return DOCUMENT_TEMPLATE.substitute(
        script_tag=SCRIPT_TAG if include_script else "",
        body=body,
    )
