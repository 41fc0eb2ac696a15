"""
Export service for UISketch: wraps a mockup fragment in a standalone document
"""
import re
from typing import Optional
import logging

from config.device_presets import get_preview_size

logger = logging.getLogger(__name__)

TAILWIND_CDN = "https://cdn.tailwindcss.com"
INTER_FONT = "https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;800;900&display=swap"
MATERIAL_SYMBOLS_FONT = "https://fonts.googleapis.com/css2?family=Material+Symbols+Outlined:wght,FILL@100..700,0..1&display=swap"

EXPORT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <script src="{tailwind}"></script>
  <link href="{inter}" rel="stylesheet">
  <link href="{symbols}" rel="stylesheet">
  <script>
    tailwind.config = {{
      theme: {{
        extend: {{
          colors: {{ "primary": "#135bec" }},
          fontFamily: {{ "sans": ["Inter", "system-ui", "sans-serif"] }},
        }},
      }},
    }}
  </script>
  <style>
    body {{ font-family: 'Inter', sans-serif; }}
    .material-symbols-outlined {{ font-variation-settings: 'FILL' 0, 'wght' 400; }}
  </style>
</head>
<body>
{html}
</body>
</html>"""

PREVIEW_TEMPLATE = """<!DOCTYPE html>
<html class="light" lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width={width}, initial-scale=1.0">
  <script src="{tailwind}?plugins=forms,container-queries"></script>
  <link href="{inter}" rel="stylesheet"/>
  <link href="{symbols}" rel="stylesheet"/>
  <script>
    tailwind.config = {{
      darkMode: "class",
      theme: {{
        extend: {{
          colors: {{ "primary": "#135bec" }},
          fontFamily: {{ "display": ["Inter", "sans-serif"], "sans": ["Inter", "system-ui", "sans-serif"] }},
        }},
      }},
    }}
  </script>
  <style>
    html, body {{ width: {width}px; min-height: {height}px; }}
    body {{ font-family: 'Inter', system-ui, sans-serif; margin: 0; padding: 0; }}
    ::-webkit-scrollbar {{ display: none; }}
    * {{ scrollbar-width: none; }}
    .material-symbols-outlined {{ font-variation-settings: 'FILL' 0, 'wght' 400, 'GRAD' 0, 'opsz' 24; }}
  </style>
</head>
<body>
{html}
</body>
</html>"""


class ExportService:
    def build_export_html(self, html: str, title: str = "Mockup Export") -> str:
        """Standalone document that renders the fragment outside the app."""
        return EXPORT_TEMPLATE.format(
            title=title,
            tailwind=TAILWIND_CDN,
            inter=INTER_FONT,
            symbols=MATERIAL_SYMBOLS_FONT,
            html=html,
        )

    def build_preview_html(self, html: str, device: Optional[str] = None) -> str:
        """Document sized to a preview frame, with scrollbars hidden."""
        size = get_preview_size(device or "")
        logger.debug(f"Building {size['label']} preview ({size['width']}x{size['height']})")
        return PREVIEW_TEMPLATE.format(
            width=size["width"],
            height=size["height"],
            tailwind=TAILWIND_CDN,
            inter=INTER_FONT,
            symbols=MATERIAL_SYMBOLS_FONT,
            html=html,
        )

    def export_filename(self, label: Optional[str]) -> str:
        """'Variation 1' -> 'variation-1.html'"""
        base = re.sub(r"\s+", "-", (label or "").strip().lower())
        return f"{base or 'mockup'}.html"

    def format_html(self, html: str) -> str:
        """
        Put one tag per line and indent by nesting depth, for the code view.
        """
        formatted = re.sub(r">\s*<", ">\n<", html)

        indent = 0
        lines = []
        for line in formatted.split("\n"):
            trimmed = line.strip()
            if not trimmed:
                continue

            if trimmed.startswith("</") or trimmed.startswith("/>"):
                indent = max(0, indent - 1)

            lines.append("  " * indent + trimmed)

            opens_block = (
                trimmed.startswith("<")
                and not trimmed.startswith("</")
                and not trimmed.endswith("/>")
                and "</" not in trimmed
            )
            if opens_block:
                indent += 1

        return "\n".join(lines)
