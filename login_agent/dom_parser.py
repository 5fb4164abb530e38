import re
from bs4 import BeautifulSoup

# Elements login pages commonly use for rejection messages
ERROR_SELECTORS = [
    "[role='alert']",
    ".alert-danger",
    ".error-message",
    ".form-error",
    ".invalid-feedback",
    "[class*='error']",
]

MAX_ERROR_TEXT = 200
WHITESPACE = re.compile(r'\s+')
HIDDEN_STYLE = re.compile(r'display:\s*none|visibility:\s*hidden')


def _is_hidden(elem) -> bool:
    for node in [elem, *elem.parents]:
        if getattr(node, 'attrs', None) is None:
            continue
        if node.has_attr('hidden') or node.get('aria-hidden') == 'true':
            return True
        style = node.get('style', '')
        if isinstance(style, str) and HIDDEN_STYLE.search(style):
            return True
    return False


def extract_error_text(html: str) -> str | None:
    """Extract the first visible error/alert message from page HTML."""
    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup(['script', 'style', 'noscript', 'template']):
        tag.decompose()

    for selector in ERROR_SELECTORS:
        for elem in soup.select(selector):
            if _is_hidden(elem):
                continue
            text = WHITESPACE.sub(' ', elem.get_text(' ')).strip()
            if text:
                return text[:MAX_ERROR_TEXT]

    return None
