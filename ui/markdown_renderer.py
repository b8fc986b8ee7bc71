# ui/markdown_renderer.py
# -*- coding: utf-8 -*-

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from markdown import markdown

from core.text_codec import TextHierarchyCodec


@dataclass(frozen=True)
class MarkdownTheme:
    text: str = "#111827"
    muted: str = "#6B7280"
    border: str = "#E5E7EB"
    panel: str = "#FFFFFF"
    accent: str = "#DC2626"
    soft: str = "#F9FAFB"


class MarkdownRenderer:
    """
    Checkbox task list (the clipboard export format) -> standalone HTML page.

    tkinterweb (tkhtml) renders a limited HTML subset: no <input> checkboxes
    and no CSS variables. So the list is preprocessed into plain nested
    bullets with unicode boxes before Python-Markdown sees it.
    """

    _item = re.compile(r"^- \[( |x|X)\]\s+(.*)$")
    _priority = re.compile(r"\s(!{1,3})(?=\s*(\(\d+🍅\))?\s*$)")

    def __init__(self, theme: Optional[MarkdownTheme] = None, title: str = "Tasks"):
        self.theme = theme or MarkdownTheme()
        self.title = title

    # ---------- preprocessing ----------
    def preprocess(self, md_text: str) -> str:
        """
        - indentation of any unit (tab, 2 or 4 spaces) -> 4 spaces per level,
          which is what Python-Markdown needs for nesting
        - "- [ ]" -> "- ☐", "- [x]" -> "- ☑" (done items struck through)
        - trailing priority marker -> highlighted badge
        """
        if not md_text:
            return ""

        unit = TextHierarchyCodec.detect_indent_unit(md_text)
        out: List[str] = []
        for raw in md_text.splitlines():
            if not raw.strip():
                out.append("")
                continue
            level = TextHierarchyCodec.indent_level_of(raw, unit)
            m = self._item.match(raw.strip())
            if m is None:
                out.append(raw.strip())
                continue

            done = m.group(1) in ("x", "X")
            text = html.escape(m.group(2), quote=False)
            text = self._priority.sub(r' <span class="prio">\1</span>', text)
            if done:
                text = f'<span class="done">{text}</span>'
            box = "☑" if done else "☐"
            out.append(f"{'    ' * level}- {box} {text}")

        return "\n".join(out)

    # ---------- extensions ----------
    def extensions(self) -> Tuple[List[str], Dict]:
        return ["extra", "sane_lists", "attr_list"], {}

    # ---------- CSS ----------
    def css(self) -> str:
        t = self.theme
        return f"""
        body {{
          font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Arial, sans-serif;
          margin: 14px;
          color: {t.text};
          background: {t.panel};
          font-size: 14px;
          line-height: 1.55;
        }}

        h1 {{
          font-size: 1.2em;
          margin: 0 0 0.6em;
          padding-bottom: 0.3em;
          border-bottom: 1px solid {t.border};
        }}

        ul {{ padding-left: 1.2em; margin: 0.3em 0; list-style-type: none; }}
        li {{ margin: 0.2em 0; }}

        .done {{ color: {t.muted}; text-decoration: line-through; }}
        .prio {{ color: {t.accent}; font-weight: 700; }}

        .empty {{
          color: {t.muted};
          background: {t.soft};
          border-radius: 8px;
          padding: 8px 10px;
        }}
        """

    # ---------- render ----------
    def to_html(self, md_text: str) -> str:
        safe_md = self.preprocess(md_text or "")
        if safe_md.strip():
            exts, cfg = self.extensions()
            body = markdown(
                safe_md,
                extensions=exts,
                extension_configs=cfg,
                output_format="html5",
            )
        else:
            body = '<p class="empty">No tasks.</p>'
        return f"""
        <html>
          <head>
            <meta charset="utf-8"/>
            <style>{self.css()}</style>
          </head>
          <body><h1>{html.escape(self.title)}</h1>{body}</body>
        </html>
        """
