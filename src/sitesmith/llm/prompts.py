"""
System prompt templates and user prompt builders.
"""

from __future__ import annotations

from typing import Sequence

from ..parsing import render_files

INTENT_SYSTEM_PROMPT = """
You are an assistant that understands {language} and converts spoken {language} into a detailed website intent in English.
Always elaborate dynamically: describe the purpose of the site in multiple sentences, and include the sections and features it should have.
""".strip()

SITE_SYSTEM_PROMPT = """
You are a coding assistant that generates complete, production-ready multi-file websites.
""".strip()

SITE_USER_PROMPT = """
You are a coding assistant that generates complete, production-ready multi-file websites based on the user's intent.

Always:
- Produce professional, responsive HTML using Tailwind CSS via CDN (never use PostCSS or @import).
- Include:
  - index.html with multiple sections
  - style.css for extra custom styles
  - script.js for interactivity (smooth scroll, animations, etc.)
  - server.js using Express to serve static files
  - package.json with correct dependencies and a start script
- Replace any contact form with a Team Section:
  - At least 5 members
  - Each member must use a unique image:
    - Use https://picsum.photos/800/600?random=1, ?random=2, etc.
    - Or https://via.placeholder.com/800x600 for placeholders
  - Include alt text, name, role, and bio
  - Tailwind classes: object-cover rounded-lg mb-4 w-full h-64
  - Responsive grid: 1 col mobile, 2 cols tablet, 3 cols desktop
- Fill all sections with relevant sample content
- Add a fixed navbar with smooth scrolling
- Do not use React or build tools unless explicitly asked
- Keep filenames consistent

Output all files in this exact order with no extra commentary and no Markdown code fences:

{layout}

Intent: {intent}
Generate the full code for ALL the files listed above ({file_list}).
""".strip()


def build_intent_system_prompt(language: str) -> str:
    return INTENT_SYSTEM_PROMPT.format(language=language)


def build_intent_user_prompt(text: str, language: str) -> str:
    """Wrap the raw request the way the intent model expects it."""
    return f'{language} Input: "{text.strip()}". What kind of website does the user want?'


def build_site_system_prompt() -> str:
    return SITE_SYSTEM_PROMPT


def build_site_user_prompt(intent: str, files: Sequence[str]) -> str:
    """
    Build the generation prompt asking for every file behind a marker line.

    Args:
        intent: Elaborated description of the website.
        files: Filenames to request, in output order.
    """
    layout = render_files({name: "<code>" for name in files})
    return SITE_USER_PROMPT.format(
        layout=layout,
        intent=intent.strip(),
        file_list=", ".join(files),
    )
