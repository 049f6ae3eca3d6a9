"""Unit tests for core/template/engine.py"""

from datetime import date

import pytest

from legalmd.core.template.engine import Block, Tag, Text, TemplateEngine, parse_nodes
from legalmd.core.template.helpers import HELPERS
from legalmd.core.template.parser import SyntaxMode
from legalmd.core.tracking import MISSING, RESOLVED, annotate, mark
from legalmd.errors import BudgetExceededError

ITEMS = {"items": [{"name": "A", "price": 1}, {"name": "B", "price": 2}], "currency": "EUR"}


@pytest.fixture(name="engine")
def engine_fixture():
    return TemplateEngine(SyntaxMode.MODERN, today=date(2024, 1, 15))


# --- parse_nodes ---

def test_parse_nodes_builds_blocks():
    nodes = parse_nodes("a {{x}} {{#if y}}b{{else}}c{{/if}}")
    assert isinstance(nodes[1], Tag)
    block = next(n for n in nodes if isinstance(n, Block))
    assert (block.kind, block.arg) == ("if", "y")
    assert block.body == [Text("b")]
    assert block.inverse == [Text("c")]


def test_parse_nodes_keeps_unclosed_blocks_as_text():
    nodes = parse_nodes("{{#if x}}never closed")
    assert "".join(n.text for n in nodes if isinstance(n, Text)) == "{{#if x}}never closed"


# --- expand_blocks ---

def test_each_inline(engine):
    out = engine.expand_blocks("{{#each items}}{{name}}: {{price}}{{/each}}", ITEMS)
    assert out == "A: 1B: 2"


def test_each_standalone_lines(engine):
    text = "Items:\n{{#each items}}\n- {{name}}\n{{/each}}\nDone\n"
    assert engine.expand_blocks(text, ITEMS) == "Items:\n- A\n- B\nDone\n"


def test_each_empty_renders_else_once(engine):
    text = "{{#each items}}x{{else}}none{{/each}}"
    assert engine.expand_blocks(text, {"items": []}) == "none"
    assert engine.expand_blocks(text, {}) == "none"
    assert engine.expand_blocks("{{#each items}}x{{/each}}", {"items": []}) == ""


def test_each_locals(engine):
    text = "{{#each tags}}{{@index}}{{#if @last}}.{{else}},{{/if}}{{/each}}"
    assert engine.expand_blocks(text, {"tags": ["a", "b", "c"]}) == "0,1,2."


def test_each_this_and_number(engine):
    text = "{{#each tags}}{{@number}}[{{this}}]{{/each}}"
    assert engine.expand_blocks(text, {"tags": ["x", "y"]}) == "1[x]2[y]"


def test_each_mapping_exposes_key(engine):
    text = "{{#each fees}}{{@key}}={{this}};{{/each}}"
    assert engine.expand_blocks(text, {"fees": {"a": 1, "b": 2}}) == "a=1;b=2;"


def test_parent_access(engine):
    text = "{{#each items}}{{name}}-{{../currency}} {{/each}}"
    assert engine.expand_blocks(text, ITEMS) == "A-EUR B-EUR "


def test_outer_names_visible_inside_loops(engine):
    assert engine.expand_blocks("{{#each items}}{{currency}}{{/each}}", ITEMS) == "EUREUR"


def test_nested_each_parent_access(engine):
    md = {"orders": [{"id": 1, "lines": [{"sku": "a"}, {"sku": "b"}]}]}
    text = "{{#each orders}}{{#each lines}}{{../id}}:{{sku}};{{/each}}{{/each}}"
    assert engine.expand_blocks(text, md) == "1:a;1:b;"


def test_if_else_and_unless(engine):
    assert engine.expand_blocks("{{#if vip}}VIP{{else}}Regular{{/if}}", {"vip": False}) == "Regular"
    assert engine.expand_blocks("{{#unless vip}}Regular{{/unless}}", {"vip": False}) == "Regular"
    assert engine.expand_blocks("{{#if tags}}yes{{/if}}", {"tags": []}) == "yes"


def test_if_with_conditions(engine):
    md = {"type": "llc", "a": True, "b": False}
    assert engine.expand_blocks('{{#if type == "llc"}}LLC{{/if}}', md) == "LLC"
    assert engine.expand_blocks("{{#if a AND b}}yes{{else}}no{{/if}}", md) == "no"
    assert engine.expand_blocks("{{#if (eq type \"llc\")}}yes{{/if}}", md) == "yes"


def test_top_level_tokens_left_for_render(engine):
    out = engine.expand_blocks("{{name}} {{#if x}}{{name}}{{/if}}", {"name": "N", "x": True})
    assert out == "{{name}} N"


def test_stray_tags_kept(engine):
    assert engine.expand_blocks("text {{/if}}", {}) == "text {{/if}}"
    assert engine.expand_blocks("{{#if x}}never closed", {"x": True}) == "{{#if x}}never closed"


def test_legacy_sections():
    engine = TemplateEngine(SyntaxMode.LEGACY)
    md = {"client": {"name": "Acme"}, "parties": [{"n": "A"}, {"n": "B"}], "flag": False}
    assert engine.expand_blocks("{{#client}}{{name}}{{/client}}", md) == "Acme"
    assert engine.expand_blocks("{{#parties}}{{n}}{{/parties}}", md) == "AB"
    assert engine.expand_blocks("{{#flag}}on{{^}}off{{/flag}}", md) == "off"


# --- render ---

def test_render_paths(engine):
    assert engine.render("Hello {{client.name}}", {"client": {"name": "Acme"}}) == "Hello Acme"


def test_render_undefined_is_left_as_written(engine):
    assert engine.render("{{missing}} and {{ missing.path }}", {}) == "{{missing}} and {{ missing.path }}"


def test_render_helpers(engine):
    md = {"amount": 1234.5, "name": "acme corp", "date": "2024-03-01"}
    assert engine.render('{{formatCurrency amount "EUR"}}', md) == "1,234.50 €"
    assert engine.render("{{upper name}}", md) == "ACME CORP"
    assert engine.render('{{formatDate (addMonths date 1) "long"}}', md) == "April 1, 2024"


def test_render_today(engine):
    assert engine.render('{{formatDate @today "legal"}}', {}) == "15th day of January, 2024"


def test_render_legacy_expressions():
    engine = TemplateEngine(SyntaxMode.LEGACY)
    md = {"price": 2.5, "qty": 4, "name": "Smith", "vip": True}
    assert engine.render("{{price * qty}}", md) == "10"
    assert engine.render('{{"Mr. " + name}}', md) == "Mr. Smith"
    assert engine.render('{{vip ? "Gold" : "Standard"}}', md) == "Gold"
    assert engine.render("{{formatDollar(price * qty)}}", md) == "$10.00"


def test_render_failures_leave_token(engine):
    md = {"bad": "xyz"}
    assert engine.render('{{formatDate bad "legal"}}', md) == '{{formatDate bad "legal"}}'
    assert engine.render("{{frobnicate bad}}", md) == "{{frobnicate bad}}"
    assert engine.render("{{ a + }}", md) == "{{ a + }}"


def test_render_any_helper_error_leaves_token(engine, monkeypatch):
    monkeypatch.setitem(HELPERS, "lookupFee", lambda table: table.fee)
    assert engine.render("{{lookupFee fees}} due", {"fees": {"fee": 5}}) == "{{lookupFee fees}} due"


def test_render_non_string_date_format(engine):
    md = {"effective": date(2024, 1, 1), "fmt": 5}
    assert engine.render("{{formatDate effective 2024}}", md) == "2024-01-01"
    assert engine.render("{{formatDate effective fmt}}", md) == "2024-01-01"


def test_render_comment(engine):
    assert engine.render("a{{! note }}b", {}) == "ab"


def test_render_nested_values(engine):
    md = {"full": "{{first}} {{last}}", "first": "Jane", "last": "Doe"}
    assert engine.render("{{full}}", md) == "Jane Doe"


def test_render_self_reference_is_left_as_written(engine):
    assert engine.render("{{a}}", {"a": "{{a}}"}) == "{{a}}"


def test_render_mutual_recursion_terminates(engine):
    md = {"a": "x {{b}}", "b": "y {{a}}"}
    once = engine.render("{{a}} and {{b}}", md)
    assert once == "{{a}} and {{b}}"
    assert engine.render(once, md) == once


def test_render_tracking():
    engine = TemplateEngine(tracking=True)
    out = engine.render("{{name}} {{missing}}", {"name": "Acme"})
    assert out == f"{mark(RESOLVED, 'name', 'Acme')} {mark(MISSING, 'missing', '[[missing]]')}"
    content, report = annotate(out)
    assert 'class="legal-field missing-value"' in content
    assert report.empty == 1


def test_render_budget():
    with pytest.raises(BudgetExceededError):
        TemplateEngine(timeout=0).render("{{a}}", {"a": 1})
