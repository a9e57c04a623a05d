"""
Text splitting utilities for building the vector index.
"""

import re
from typing import List, Dict, Any, Optional, Tuple


class Document:
    """Simple document class to hold text and metadata."""

    def __init__(self, text: str, metadata: Optional[Dict[str, Any]] = None):
        self.text = text
        self.metadata = metadata or {}


class HeadingAwareTextSplitter:
    """
    Text splitter that first splits a book on headings, then cuts sections
    that are too large into overlapping character windows.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200):
        """
        Initialize the splitter.

        Args:
            chunk_size: Target chunk size in characters
            chunk_overlap: Overlap between consecutive windows in characters
        """
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

        self.markdown_pattern = re.compile(r'^(#{1,3})\s+(.+)$')
        self.numbered_pattern = re.compile(r'^(\d{1,3}(?:\.\d{1,3})*)\s+([A-Z].{0,80})$')
        self.chapter_pattern = re.compile(r'^(chapter|part|book)\s+([0-9]+|[ivxlcdm]+)\b.{0,60}$', re.IGNORECASE)
        self.caps_pattern = re.compile(r'^[A-Z][A-Z\s]{19,}$')

    def _detect_heading_type(self, line: str) -> Tuple[Optional[str], Optional[int]]:
        """
        Detect if a line is a heading and return its type and level.

        Returns:
            Tuple of (heading_type, level) or (None, None) if not a heading
        """
        line = line.strip()

        markdown_match = self.markdown_pattern.match(line)
        if markdown_match:
            return "markdown", len(markdown_match.group(1))

        if self.chapter_pattern.match(line):
            return "chapter", 1

        # Numbered headings (e.g., "3.2 Clinical Outcomes")
        numbered_match = self.numbered_pattern.match(line)
        if numbered_match:
            return "numbered", len(numbered_match.group(1).split('.'))

        if self.caps_pattern.match(line):
            return "caps", 1

        return None, None

    def _split_into_sections(self, text: str) -> List[Dict[str, Any]]:
        """Split text into sections that each start at a heading."""
        sections = []
        current_lines: List[str] = []
        current_heading = {'heading': None, 'heading_level': None, 'heading_type': None}

        def flush():
            section_text = '\n'.join(current_lines).strip()
            if section_text:
                sections.append({'text': section_text, **current_heading})

        for line in text.split('\n'):
            heading_type, heading_level = self._detect_heading_type(line)
            if heading_type:
                flush()
                current_lines = [line]
                current_heading = {
                    'heading': line.strip(),
                    'heading_level': heading_level,
                    'heading_type': heading_type,
                }
            else:
                current_lines.append(line)

        flush()
        return sections

    def _windows(self, text: str) -> List[str]:
        """Cut text into overlapping windows, preferring to break on whitespace."""
        windows = []
        start = 0

        while start < len(text):
            end = min(start + self.chunk_size, len(text))
            if end < len(text):
                # Back off to the last whitespace in the second half of the window
                cut = text.rfind(' ', start + self.chunk_size // 2, end)
                cut = max(cut, text.rfind('\n', start + self.chunk_size // 2, end))
                if cut > start:
                    end = cut

            window = text[start:end].strip()
            if window:
                windows.append(window)

            if end >= len(text):
                break

            next_start = max(end - self.chunk_overlap, start + 1)
            space = text.find(' ', next_start, end)
            start = space + 1 if space != -1 else next_start

        return windows

    def split_text(self, text: str) -> List[Document]:
        """
        Split text into documents using heading-aware splitting.

        Args:
            text: Input text to split

        Returns:
            List of Document objects with text and metadata
        """
        documents = []

        for section in self._split_into_sections(text):
            pieces = [section['text']] if len(section['text']) <= self.chunk_size else self._windows(section['text'])
            for chunk_num, piece in enumerate(pieces):
                documents.append(Document(piece, {
                    'heading': section['heading'],
                    'heading_level': section['heading_level'],
                    'heading_type': section['heading_type'],
                    'chunk_num': chunk_num,
                    'is_continuation': chunk_num > 0,
                }))

        return documents
