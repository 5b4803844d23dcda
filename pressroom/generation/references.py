"""Reference Sources section handling."""

import re
from typing import Dict, List, Optional

REFERENCE_HEADING = "## Reference Sources"

# "## Reference Sources", "**Reference Sources**" or a bare "Reference Sources:" line
_HEADING_RE = re.compile(
    r"^[ \t]*(?:(#{1,6})[ \t]*)?(?:\*\*|__)?[ \t]*reference sources[ \t]*:?[ \t]*(?:\*\*|__)?[ \t]*:?[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
_LINK_RE = re.compile(r"\]\((https?://[^)\s]+)\)|<(https?://[^>\s]+)>")


def strip_reference_sources(content: str) -> str:
    """Remove every Reference Sources section, up to the next heading of the same or higher level."""
    match = _HEADING_RE.search(content)
    while match:
        # Bold or plain labels end at any markdown heading
        level = len(match.group(1)) if match.group(1) else 6
        next_heading = re.compile(rf"^#{{1,{level}}}\s", re.MULTILINE)
        following = next_heading.search(content, match.end())
        end = following.start() if following else len(content)

        content = content[: match.start()] + content[end:]
        match = _HEADING_RE.search(content)

    return content


def ensure_reference_sources(
    content: str,
    links: List[str],
    titles: Optional[Dict[str, str]] = None,
) -> str:
    """
    Make the body end with one canonical Reference Sources section.

    Every link appears exactly once, in the order given. A section the model
    wrote itself is replaced so the list always matches the gathered sources.
    """
    unique_links = list(dict.fromkeys(link for link in links if link))
    body = strip_reference_sources(content).rstrip()

    if not unique_links:
        return body

    titles = titles or {}
    lines = [REFERENCE_HEADING, ""]
    for i, link in enumerate(unique_links, 1):
        title = titles.get(link)
        lines.append(f"{i}. [{title}]({link})" if title else f"{i}. <{link}>")

    return body + "\n\n" + "\n".join(lines) + "\n"


def extract_reference_links(content: str) -> List[str]:
    """Links listed in the Reference Sources section, in order."""
    match = _HEADING_RE.search(content)
    if not match:
        return []
    section = content[match.end():]
    return [a or b for a, b in _LINK_RE.findall(section)]
