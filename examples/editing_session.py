"""
A short editing session against the jsonstate core.

Opens two documents, edits one with undo/redo, searches it, and saves it
through a plain file sink. Run with ``python examples/editing_session.py``.
"""

import logging
from pathlib import Path

from jsonstate import EditorConfig, WorkspaceManager, to_python

logger = logging.getLogger(__name__)

SAMPLE = {
    "id": "devcore-001",
    "features": ["ai-explainer", "api-tester"],
    "config": {"theme": "dark", "metadata": {"project_name": "Nexus"}},
}


def write_to_disk(output_dir: Path):
    def sink(document_id: str, text: str) -> None:
        target = output_dir / f"{document_id[:8]}.json"
        target.write_text(text, encoding="utf-8")
        logger.info(f"EXAMPLE: Wrote {target}")
    return sink


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")

    workspace = WorkspaceManager(config=EditorConfig(default_expansion_depth=1))
    scratch_id = workspace.create_document()
    doc_id = workspace.create_document(SAMPLE, name="sample.json")
    document = workspace.get_document(doc_id)

    document.set("config.theme", "light")
    document.insert("features", len(document.get("features")), "cli")
    with document.atomic("Rename metadata"):
        document.rename_key("config.metadata", "meta")
        document.set("config.meta.project_name", "Nexus 2")

    document.undo()
    print("after undo:", to_python(document.value))
    document.redo()

    result = document.reveal_matches("nexus")
    print("matches:", result.matches)

    for item in document.history.describe():
        marker = "*" if item['is_current'] else " "
        print(f"{marker} {item['index']}: {item['label']}")

    output_dir = Path.cwd() / "example_output"
    output_dir.mkdir(exist_ok=True)
    workspace.save_document(doc_id, write_to_disk(output_dir))

    workspace.switch_active(scratch_id)
    workspace.close_document(doc_id)
    print("open documents:", [d.name for d in workspace])


if __name__ == "__main__":
    main()
