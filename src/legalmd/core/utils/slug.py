"""Slug generation for section names"""

import re


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated slug."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def same_section(name: str, title: str) -> bool:
    """True when an import section name refers to a header title."""
    return name.strip().lower() == title.strip().lower() or slugify(name) == slugify(title)
