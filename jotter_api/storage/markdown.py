from __future__ import annotations

from dataclasses import dataclass

import yaml

from jotter_api.domain.schemas import NotePageDoc

FENCE = "---"


@dataclass(frozen=True)
class FrontmatterParse:
    frontmatter: dict
    body: str
    error: str | None


def parse_frontmatter(markdown: str) -> FrontmatterParse:
    lines = markdown.split("\n")
    if not lines or lines[0].rstrip("\r") != FENCE:
        return FrontmatterParse(frontmatter={}, body=markdown, error="frontmatter_missing")

    for end in range(1, len(lines)):
        if lines[end].rstrip("\r") != FENCE:
            continue
        yaml_block = "\n".join(lines[1:end])
        body = "\n".join(lines[end + 1 :])
        try:
            parsed = yaml.safe_load(yaml_block) or {}
        except yaml.YAMLError:
            return FrontmatterParse(frontmatter={}, body=markdown, error="frontmatter_yaml_error")
        if not isinstance(parsed, dict):
            return FrontmatterParse(frontmatter={}, body=markdown, error="frontmatter_not_mapping")
        return FrontmatterParse(frontmatter=parsed, body=body, error=None)

    return FrontmatterParse(frontmatter={}, body=markdown, error="frontmatter_unterminated")


def render_page_body(doc: NotePageDoc) -> str:
    # Readable preview only; the frontmatter is the source of truth.
    out: list[str] = []
    if doc.title.strip():
        out.append(f"# {doc.title.strip()}")
        out.append("")
    for item in doc.items:
        if item.kind == "task":
            out.append(f"- [ ] {item.text}".rstrip())
        elif item.text.strip():
            out.append(item.text)
    return "\n".join(out).rstrip() + "\n"


def render_page_markdown(doc: NotePageDoc) -> str:
    frontmatter = doc.model_dump(exclude_none=True)
    yaml_text = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True).strip("\n")
    if FENCE in yaml_text.split("\n"):
        # A multi-line scalar put a bare fence on its own line; quote everything on one line instead.
        yaml_text = yaml.safe_dump(
            frontmatter, sort_keys=False, allow_unicode=True, default_style='"', width=2**31
        ).strip("\n")
    return f"{FENCE}\n{yaml_text}\n{FENCE}\n\n{render_page_body(doc)}"
