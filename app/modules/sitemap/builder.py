"""
sitemaps.org 0.9 XML for the public site: static pages plus one page per listed business.
"""
from typing import Any, Dict, Iterable, Optional
from xml.sax.saxutils import escape

from app.core.timeutils import parse_timestamp

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"

# (path, changefreq, priority)
STATIC_PAGES = (
    ("/", "daily", "1.0"),
    ("/directory", "daily", "0.9"),
    ("/about", "monthly", "0.7"),
    ("/how-it-works", "monthly", "0.7"),
    ("/pricing", "monthly", "0.8"),
    ("/sponsors", "monthly", "0.6"),
    ("/sales-agent", "monthly", "0.6"),
    ("/contact", "yearly", "0.5"),
    ("/privacy", "yearly", "0.3"),
    ("/terms", "yearly", "0.3"),
)


def _url_entry(loc: str, lastmod: Optional[str], changefreq: str, priority: str) -> str:
    lines = ["  <url>", f"    <loc>{escape(loc)}</loc>"]
    if lastmod:
        lines.append(f"    <lastmod>{escape(lastmod)}</lastmod>")
    lines.append(f"    <changefreq>{changefreq}</changefreq>")
    lines.append(f"    <priority>{priority}</priority>")
    lines.append("  </url>")
    return "\n".join(lines)


def build_sitemap(site_url: str, businesses: Iterable[Dict[str, Any]]) -> str:
    base = site_url.rstrip("/")
    entries = [_url_entry(f"{base}{path}", None, freq, priority) for path, freq, priority in STATIC_PAGES]
    for business in businesses:
        updated = parse_timestamp(business.get("updated_at"))
        lastmod = updated.date().isoformat() if updated else None
        entries.append(_url_entry(f"{base}/business/{business['id']}", lastmod, "weekly", "0.8"))
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="{SITEMAP_NAMESPACE}">\n'
        + "\n".join(entries)
        + "\n</urlset>\n"
    )
