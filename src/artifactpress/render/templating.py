from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, ChoiceLoader, DictLoader, Environment, FileSystemLoader, StrictUndefined

DEFAULT_TEMPLATES: dict[str, str] = {
    "base.html": """
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{{ title }} | {{ site_name }}</title>
  </head>
  <body class="{% block body_class %}site{% endblock %}">
    <main class="site-main">
      {% block content %}{% endblock %}
    </main>
  </body>
</html>
""".strip(),
    "empty.html": """
{% extends "base.html" %}
{% block body_class %}site artifact-empty-page{% endblock %}
{% block content %}
<div class="artifact-empty" style="padding: 2rem; text-align: center;">
  <h1>{{ title }}</h1>
  <p>This artifact has no content yet.</p>
</div>
{% endblock %}
""".strip(),
    "artifact.html": """
<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
{% if not head_has_title %}<title>{{ title }}</title>
{% endif %}{{ head_fragment|safe }}
{{ head_assets|safe }}
</head>
<body class="artifact-page">
<div class="artifact-root" id="artifact-{{ artifact_id }}">
{{ body|safe }}
</div>
{{ footer_assets|safe }}
</body>
</html>
""".strip(),
}


@dataclass(frozen=True)
class Templates:
    env: Environment

    def render_artifact(self, context: dict[str, Any]) -> str:
        tpl = self.env.get_template("artifact.html")
        return str(tpl.render(**context))

    def render_empty(self, context: dict[str, Any]) -> str:
        tpl = self.env.get_template("empty.html")
        return str(tpl.render(**context))


def create_environment(templates_dir: Path | None = None) -> Templates:
    """Built-in templates, overridden file by file from ``templates_dir``."""
    loaders: list[BaseLoader] = []
    if templates_dir is not None:
        loaders.append(FileSystemLoader(str(templates_dir)))
    loaders.append(DictLoader(DEFAULT_TEMPLATES))
    env = Environment(loader=ChoiceLoader(loaders), undefined=StrictUndefined, autoescape=True)
    return Templates(env=env)


def write_default_templates(target_dir: Path) -> list[Path]:
    """Copy the built-in templates into ``target_dir`` as a starting point for overrides."""
    target_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name, source in DEFAULT_TEMPLATES.items():
        path = target_dir / name
        path.write_text(source + "\n", encoding="utf-8")
        written.append(path)
    return written
