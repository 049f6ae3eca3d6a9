"""Integration tests for full document processing: every stage over one agreement"""

from datetime import datetime, timezone

import pytest

from legalmd.config import Settings
from legalmd.core.imports import mapping_reader
from legalmd.core.pipeline import Pipeline


AGREEMENT = """---
title: Service Agreement
client:
  name: Acme Corp
  type: llc
amount: 12500
vip: true
items:
  - name: Setup
    price: 500
  - name: Support
    price: 1200
level-two: "Section %n."
---
l. Parties |parties|

This agreement is between {{client.name}} and the Provider[, a limited liability company]{client.type = "llc"}.

ll. Fees

The total fee is {{formatDollar amount}}.
{{#each items}}
- {{name}}: {{formatDollar price}}
{{/each}}

ll. Term

[VIP clients receive priority support.]{vip}
[Standard support applies.]{vip = false}

l. Signatures

See |parties|. Signed on @today[legal].
"""

EXPECTED = """Article 1. Parties

This agreement is between Acme Corp and the Provider, a limited liability company.

   Section 1. Fees

The total fee is $12,500.00.
- Setup: $500.00
- Support: $1,200.00

   Section 2. Term

VIP clients receive priority support.


Article 2. Signatures

See Article 1. Signed on 15th day of January, 2024.
"""


@pytest.fixture(name="pipeline")
def pipeline_fixture():
    clock = lambda: datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    reader = mapping_reader({
        "master.md": "---\ngoverning_law: Delaware\n---\nThis agreement is governed by {{governing_law}} law.",
        "clauses/confidentiality.md": (
            "---\nclient:\n  name: Ignored Inc\n  city: Springfield\n---\n"
            "l. Confidentiality\n\n{{client.name}} of {{client.city}} keeps secrets.\n"
        ),
    })
    return Pipeline(Settings(), reader=reader, clock=clock)


def test_full_agreement(pipeline):
    result = pipeline.process(AGREEMENT)
    assert result.content == EXPECTED
    assert result.metadata["title"] == "Service Agreement"


def test_output_is_idempotent(pipeline):
    """Processing fully resolved output again changes nothing."""
    once = pipeline.process(AGREEMENT).content
    assert pipeline.process(once).content == once


def test_imports_merge_and_render(pipeline):
    text = (
        "---\nclient:\n  name: Acme Corp\n---\n"
        "l. Terms\n\n@import master.md\n\n@import clauses/confidentiality.md\n"
    )
    result = pipeline.process(text)
    assert result.content == (
        "Article 1. Terms\n\n"
        "This agreement is governed by Delaware law.\n\n"
        "Article 2. Confidentiality\n\n"
        "Acme Corp of Springfield keeps secrets.\n"
    )
    assert result.imported == ["master.md", "clauses/confidentiality.md"]
    assert result.merge_stats.conflicts == ["client.name"]
    assert sorted(result.merge_stats.added) == ["client.city", "governing_law"]


def test_highlighted_agreement(pipeline):
    result = Pipeline(Settings(enable_field_tracking=True), clock=pipeline.clock).process(AGREEMENT)
    assert '<span class="legal-field imported-value" data-field="client.name">Acme Corp</span>' in result.content
    assert '<span class="legal-field highlight" data-field="parties">Article 1</span>' in result.content
    assert result.fields.empty == 0
