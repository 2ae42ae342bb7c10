# src/qa_kit/prompts/templates_library.py

import logging
from pathlib import Path

import yaml

from .prompt import PromptTemplate

logger = logging.getLogger(__name__)

BUILTIN_TEMPLATES_DIR = Path(__file__).parent / "templates"


class PromptTemplatesLibrary:
    def __init__(self, directory: str | Path = BUILTIN_TEMPLATES_DIR) -> None:
        self._templates: dict[str, PromptTemplate] = {}
        logger.info("Initializing PromptTemplatesLibrary from directory: %s", directory)
        self._load_all(Path(directory))
        logger.info("Loaded %d prompt templates", len(self._templates))

    def get(self, name: str) -> PromptTemplate:
        logger.debug("Getting prompt template: name=%s", name)
        try:
            return self._templates[name]
        except KeyError:
            logger.error("Prompt template not found: name=%s", name)
            raise KeyError(f"Prompt template '{name}' not found")

    def add(self, template: PromptTemplate) -> None:
        if template.name in self._templates:
            raise ValueError(f"Prompt template '{template.name}' already exists")
        self._templates[template.name] = template

    def list(self) -> list[str]:
        return list(self._templates.keys())

    def _load_all(self, directory: Path) -> None:
        for file_path in sorted(directory.glob("*.yaml")):
            template = self._load_template(file_path)
            self._templates[template.name] = template
            logger.debug("Loaded prompt template: %s from %s", template.name, file_path)

    def _load_template(self, file_path: Path) -> PromptTemplate:
        with open(file_path) as f:
            data = yaml.safe_load(f)
        return PromptTemplate(**data)
