"""
Final rendering of generated artifacts into TypeScript files.

Sections always appear in the same order and an empty section is left out
entirely, so unchanged input gives byte-identical output.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from jinja2 import Environment

from ..constants import BundleFiles, Sections
from ..domain.models import ClassKind, DomainGroup, GeneratedArtifact, SchemaArtifact, SchemaVariant
from .templating import render_template, setup_jinja_env
from .typescript import PAGINATED_WRAPPER

logger = logging.getLogger(__name__)

SINGLE_FILE_NAME = f"types{BundleFiles.EXTENSION}"

YUP_IMPORT = "import * as yup from 'yup';"
ZOD_IMPORT = "import { z } from 'zod';"

_ALIAS_ATTRIBUTES = ("interface_text", "array_alias_text", "paginated_alias_text")


@dataclass(frozen=True)
class Section:
    title: str
    body: str


def file_name(key: str) -> str:
    return f"{key}{BundleFiles.EXTENSION}"


class Emitter:
    """
    Renders sections into a single file or a multi-file bundle.

    Args:
        env: Jinja2 environment; a default one is built when omitted
    """

    def __init__(self, env: Optional[Environment] = None):
        self.env = env or setup_jinja_env()

    def pagination_text(self) -> str:
        return render_template(self.env, "pagination.ts.j2")

    def build_sections(
        self,
        artifacts: Sequence[GeneratedArtifact],
        schemas: Sequence[SchemaArtifact],
        include_pagination: bool,
    ) -> List[Section]:
        sections: List[Section] = []

        def add(title: str, texts: List[str], separator: str) -> None:
            if texts:
                sections.append(Section(title, separator.join(texts)))

        if include_pagination:
            add(Sections.PAGINATION, [self.pagination_text()], "")

        for kind, titles in ((ClassKind.ENTITY, Sections.ENTITY), (ClassKind.PRODUCER, Sections.PRODUCER)):
            members = sorted((a for a in artifacts if a.kind is kind), key=lambda a: a.display_name)
            for title, attribute in zip(titles, _ALIAS_ATTRIBUTES):
                texts = [getattr(a, attribute) for a in members if getattr(a, attribute)]
                # Interfaces are separated by a blank line, one-line aliases are not
                add(title, texts, "\n\n" if attribute == "interface_text" else "\n")

        validators = sorted((a for a in artifacts if a.kind is ClassKind.VALIDATOR), key=lambda a: a.display_name)
        add(Sections.VALIDATOR, [a.interface_text for a in validators if a.interface_text], "\n\n")

        for variant, title in ((SchemaVariant.YUP, Sections.YUP), (SchemaVariant.ZOD, Sections.ZOD)):
            texts = [s.text for s in sorted(schemas, key=lambda s: s.schema_name) if s.variant is variant]
            add(title, texts, "\n\n")
        return sections

    @staticmethod
    def schema_imports(sections: List[Section]) -> List[str]:
        titles = {section.title for section in sections}
        imports = []
        if Sections.YUP in titles:
            imports.append(YUP_IMPORT)
        if Sections.ZOD in titles:
            imports.append(ZOD_IMPORT)
        return imports

    def render_module(self, sections: List[Section], imports: List[str]) -> str:
        return render_template(self.env, "module.ts.j2", imports=imports, sections=sections)

    def emit_single(
        self,
        artifacts: Sequence[GeneratedArtifact],
        schemas: Sequence[SchemaArtifact],
        include_pagination: bool,
    ) -> Dict[str, str]:
        """All sections in one file."""
        sections = self.build_sections(artifacts, schemas, include_pagination)
        return {SINGLE_FILE_NAME: self.render_module(sections, self.schema_imports(sections))}

    def emit_bundle(self, groups: Sequence[DomainGroup]) -> Dict[str, str]:
        """
        One shared file, one file per domain group and an index re-exporting all of them.

        Returns:
            File names mapped to their text
        """
        files: Dict[str, str] = {}
        shared_sections = [Section(Sections.PAGINATION, self.pagination_text())]
        files[file_name(BundleFiles.SHARED)] = self.render_module(shared_sections, [])

        for group in groups:
            sections = self.build_sections(group.artifacts, group.schemas, include_pagination=False)
            imports = self.schema_imports(sections)
            # Every domain file imports the shared file, with or without paginated aliases
            imports.append(f"import type {{ {PAGINATED_WRAPPER} }} from './{BundleFiles.SHARED}';")
            for source, names in group.shared_imports:
                imports.append(f"import type {{ {', '.join(names)} }} from './{source}';")
            files[file_name(group.key)] = self.render_module(sections, imports)
            logger.debug(f"Rendered domain file {file_name(group.key)} with {len(group.artifacts)} artifact(s)")

        modules = sorted([BundleFiles.SHARED] + [group.key for group in groups])
        files[file_name(BundleFiles.INDEX)] = render_template(self.env, "index.ts.j2", modules=modules)
        return files
