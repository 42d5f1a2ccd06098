"""Metadata extractors run against finalized chunks, plus link/image collection."""

import re
from abc import ABC, abstractmethod

from mdchunker.services.chunking.models import Chunk, Image, Link

_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(\s*<?([^)\s>]*)>?(?:\s+[\"']([^\"']*)[\"'])?\s*\)")
_LINK_RE = re.compile(r"(?<!!)\[([^\]]+)\]\(\s*<?([^)\s>]*)>?(?:\s+[\"'][^\"']*[\"'])?\s*\)")
_AUTOLINK_RE = re.compile(r"<((?:https?://|mailto:)[^>\s]+)>")

_COMPLEXITY_KEYWORDS = (
    "if", "else", "for", "while", "switch", "case", "try", "catch",
    "function", "def", "class", "struct", "interface",
)
_COMPLEXITY_RE = re.compile(r"\b(?:" + "|".join(_COMPLEXITY_KEYWORDS) + r")\b", re.IGNORECASE)
_FENCE_LINE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")


def link_type(url: str) -> str:
    """Classify a link target as anchor, external, or internal."""
    if url.startswith("#"):
        return "anchor"
    if url.startswith(("http://", "https://", "mailto:")):
        return "external"
    return "internal"


def find_links(content: str) -> list[Link]:
    """Inline links and autolinks in source order. Images are not links."""
    found: list[tuple[int, Link]] = []
    for m in _LINK_RE.finditer(content):
        found.append((m.start(), Link(text=m.group(1), url=m.group(2), type=link_type(m.group(2)))))
    for m in _AUTOLINK_RE.finditer(content):
        found.append((m.start(), Link(text=m.group(1), url=m.group(1), type=link_type(m.group(1)))))
    found.sort(key=lambda pair: pair[0])
    return [link for _, link in found]


def find_images(content: str) -> list[Image]:
    return [Image(alt=m.group(1), url=m.group(2), title=m.group(3) or "") for m in _IMAGE_RE.finditer(content)]


class MetadataExtractor(ABC):
    """
    Decorates a finalized chunk with auxiliary string metadata.
    Extractors never change content; the engine merges their output into chunk.metadata.
    """

    @abstractmethod
    def extract(self, chunk: Chunk) -> dict[str, str]:
        """Return metadata for the chunk. Empty dict when nothing applies."""
        ...

    @property
    @abstractmethod
    def supported_types(self) -> frozenset[str]:
        """Chunk or node kinds this extractor handles. Empty = all."""
        ...

    def supports(self, kind: str) -> bool:
        return not self.supported_types or kind in self.supported_types


class LinkExtractor(MetadataExtractor):
    """Counts links and lists their targets."""

    @property
    def supported_types(self) -> frozenset[str]:
        return frozenset({"paragraph", "heading", "blockquote", "list", "code", "table"})

    def extract(self, chunk: Chunk) -> dict[str, str]:
        links = chunk.links or tuple(find_links(chunk.content))
        if not links:
            return {}
        return {"link_count": str(len(links)), "links": ",".join(link.url for link in links)}


class ImageExtractor(MetadataExtractor):
    """Counts images and lists their sources."""

    @property
    def supported_types(self) -> frozenset[str]:
        return frozenset({"paragraph", "heading", "blockquote", "list"})

    def extract(self, chunk: Chunk) -> dict[str, str]:
        images = chunk.images or tuple(find_images(chunk.content))
        if not images:
            return {}
        return {"image_count": str(len(images)), "images": ",".join(image.url for image in images)}


class CodeComplexityExtractor(MetadataExtractor):
    """Rough complexity score for code chunks: count of control-flow and definition keywords."""

    @property
    def supported_types(self) -> frozenset[str]:
        return frozenset({"code"})

    def extract(self, chunk: Chunk) -> dict[str, str]:
        lines = [line for line in chunk.content.split("\n") if not _FENCE_LINE_RE.match(line)]
        non_empty = [line for line in lines if line.strip()]
        complexity = sum(len(_COMPLEXITY_RE.findall(line)) for line in lines)
        return {
            "code_lines": str(len(lines)),
            "code_non_empty_lines": str(len(non_empty)),
            "code_complexity": str(complexity),
        }


EXTRACTOR_REGISTRY: dict[str, type[MetadataExtractor]] = {
    "links": LinkExtractor,
    "images": ImageExtractor,
    "code_complexity": CodeComplexityExtractor,
}


def get_extractor(name: str) -> MetadataExtractor | None:
    """Return an instance of the named built-in extractor, or None."""
    cls = EXTRACTOR_REGISTRY.get(name)
    if cls is None:
        return None
    return cls()
