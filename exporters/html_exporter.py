"""HTML cross-reference report exporter."""

from jinja2 import BaseLoader, Environment, StrictUndefined

from graph.xref import CrossReference
from scanner.config import DEFAULT_TITLE


PAGE_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
<style>
body { font-family: sans-serif; margin: 2em; }
code, .sym { font-family: monospace; }
table { border-collapse: collapse; margin-bottom: 1em; }
th, td { border: 1px solid #ccc; padding: 0.2em 0.6em; text-align: left; vertical-align: top; }
.unresolved { color: #b00; }
.muted { color: #888; }
</style>
</head>
<body>
<h1>{{ title }}</h1>
<p class="muted">{{ files|length }} files, {{ symbol_count }} symbols, {{ unresolved_count }} unresolved references</p>

<h2>Contents</h2>
<ul class="toc">
{% for section in files %}
  <li><a href="#{{ section.anchor }}">{{ section.path }}</a></li>
{% endfor %}
</ul>
{% macro link(ref) -%}
{% if ref.resolved %}<a class="sym" href="#{{ ref.anchor }}" title="{{ ref.file }}:{{ ref.line }}">{{ ref.label }}</a>{% else %}<span class="sym unresolved" title="unresolved">{{ ref.label }} (unknown)</span>{% endif %}
{%- endmacro %}
{% macro links(refs) -%}
{% for ref in refs %}{{ link(ref) }}{% if not loop.last %}, {% endif %}{% endfor %}
{%- endmacro %}
{% macro symbol_table(entries) %}
<table>
<tr><th>Symbol</th><th>Line</th><th>Uses</th><th>Used by</th></tr>
{% for entry in entries %}
<tr id="{{ entry.anchor }}">
  <td class="sym">{{ entry.name }}</td>
  <td>{{ entry.line }}</td>
  <td>{{ links(entry.uses) }}</td>
  <td>{{ links(entry.used_by) }}</td>
</tr>
{% endfor %}
</table>
{% endmacro %}

{% for section in files %}
<h2 id="{{ section.anchor }}">{{ section.path }}</h2>
{% for group in section.groups %}
<h3>{{ group.category }}</h3>
{{ symbol_table(group.symbols) }}
{% endfor %}
{% if section.lexicals %}
<h3>Lexicals</h3>
{{ symbol_table(section.lexicals) }}
{% endif %}
{% if section.uses %}
<h3>File uses</h3>
<p>{{ links(section.uses) }}</p>
{% endif %}
{% if not section.groups and not section.lexicals and not section.uses %}
<p class="muted">No directives.</p>
{% endif %}
{% endfor %}

{% if diagnostics %}
<h2>Warnings</h2>
<ul class="warnings">
{% for diagnostic in diagnostics %}
  <li><code>{{ diagnostic.file }}:{{ diagnostic.line }}</code> {{ diagnostic.message }}</li>
{% endfor %}
</ul>
{% endif %}
</body>
</html>
"""


def get_jinja_environment() -> Environment:
    """
    Create the Jinja2 environment for report rendering.

    Returns:
        Environment with:
        - StrictUndefined so template typos fail loudly
        - BaseLoader for string templates
        - Autoescaping, since symbol names contain ``&`` and ``%``
    """
    return Environment(
        loader=BaseLoader(),
        undefined=StrictUndefined,
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def to_html(xref: CrossReference, title: str = DEFAULT_TITLE) -> str:
    """
    Render a cross reference as a standalone HTML page.

    Args:
        xref: Resolved cross reference.
        title: Page title.

    Returns:
        HTML document string.
    """
    template = get_jinja_environment().from_string(PAGE_TEMPLATE)
    return template.render(
        title=title,
        files=xref.files,
        diagnostics=xref.diagnostics,
        symbol_count=sum(1 for _ in xref.iter_entries()),
        unresolved_count=sum(1 for _ in xref.iter_unresolved()),
    )
