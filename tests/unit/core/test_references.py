"""Unit tests for core/references.py"""

from legalmd.core.references import process_references, section_labels
from legalmd.core.tracking import COMPUTED, RESOLVED, mark


def test_metadata_references(metadata, today):
    """|key| resolves dotted metadata paths with inline renderings."""
    text = "|client.name| owes |amount| (active: |active|) to |parties| from |effective|."
    out = process_references(text, metadata, today=today)
    assert out == "Acme Corp owes 1500 (active: true) to Acme Corp, Provider Ltd from 2024-01-01."


def test_unresolved_reference_is_left_alone(today):
    assert process_references("See |nothing.here|.", {}, today=today) == "See |nothing.here|."


def test_today_formats(today):
    assert process_references("@today", {}, today=today) == "2024-01-15"
    assert process_references("@today[legal]", {}, today=today) == "15th day of January, 2024"


def test_today_uses_metadata_format(today):
    md = {"date-format": "long"}
    assert process_references("@today", md, today=today) == "January 15, 2024"
    assert process_references("@today[us]", md, today=today) == "01/15/2024"


def test_today_uses_locale(today):
    md = {"dateFormat": "D [de] MMMM", "locale": "es"}
    assert process_references("@today", md, today=today) == "15 de enero"


def test_section_references(today):
    """|key| on a header line defines a section reference; other uses resolve to the label."""
    content = "l. Definitions |defs|\nll. Payment |pay|\nSee |pay| and |defs|.\n"
    out = process_references(content, {}, today=today)
    assert "l. Definitions |defs|" in out
    assert "ll. Payment |pay|" in out
    assert "See Section 1 and Article 1." in out


def test_section_labels_use_metadata_formats():
    labels, definitions = section_labels("l. A |a|\nll. B |b|\n", {"level-two": "Clause %n"})
    assert labels == {"a": "Article 1", "b": "Clause 1"}
    assert len(definitions) == 2


def test_template_tokens_are_not_touched(today):
    text = '{{formatDate @today "legal"}} and |a|'
    assert process_references(text, {"a": 1}, today=today) == '{{formatDate @today "legal"}} and 1'


def test_tracking_marks(metadata, today):
    out = process_references("|client.name| on @today", metadata, today=today, tracking=True)
    assert out == f"{mark(RESOLVED, 'client.name', 'Acme Corp')} on {mark(COMPUTED, '@today', '2024-01-15')}"
