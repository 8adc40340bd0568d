"""NarrativeRenderer — Jinja2 templates for the human-readable alert text.

The Flag code text and the Communication payload are rendered from the
``template/`` directory so clinical wording can change without touching
the resource builders.  Rendered text is collapsed onto a single line.
"""

from __future__ import annotations

from pathlib import Path

import jinja2

FLAG_CODE_TEMPLATE = "flag_code.jinja2"
COMMUNICATION_TEMPLATE = "communication_alert.jinja2"


class NarrativeRenderer:
    """Renders alert narratives.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
        )

    def render(self, template_name: str, **context) -> str:
        """Render a named template and join its non-blank lines with spaces."""
        rendered = self._env.get_template(template_name).render(**context)
        return " ".join(line.strip() for line in rendered.splitlines() if line.strip())

    def flag_code_text(self, *, total: int, q10: int) -> str:
        return self.render(FLAG_CODE_TEMPLATE, total=total, q10=q10)

    def communication_text(self, *, patient_id: str, total: int, q10: int) -> str:
        return self.render(
            COMMUNICATION_TEMPLATE, patient_id=patient_id, total=total, q10=q10,
        )
