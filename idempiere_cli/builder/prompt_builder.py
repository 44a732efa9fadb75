#!/usr/bin/env python3
# CUI // SP-CTI
"""Compose the provider-agnostic generation prompt.

Pure string composition: the same inputs always give the same prompt.
"""

from typing import Any, Dict, Optional

from idempiere_cli.project.analyzer import ProjectContext

# Built-in descriptions used when no SKILL.md is available.
COMPONENT_DESCRIPTIONS: Dict[str, str] = {
    "callout": (
        "An iDempiere column-level callout implementing IColumnCallout. "
        "Use @Callout(tableName, columnName) annotation for registration. "
        "The existing CalloutFactory scans the package for all @Callout classes automatically."
    ),
    "process": (
        "An iDempiere server-side process extending SvrProcess. "
        "Use @Process annotation with its own AnnotationBasedProcessFactory."
    ),
    "process-mapped": (
        "An iDempiere process using MappedProcessFactory (2Pack compatible). "
        "Extends SvrProcess, registered via MappedProcessFactory in Activator."
    ),
    "event-handler": (
        "An iDempiere model event handler using @EventDelegate annotation. "
        "Handles lifecycle events like BeforeNew, AfterChange on model objects."
    ),
    "zk-form": "A ZK programmatic form extending ADForm for iDempiere UI.",
    "zk-form-zul": "A ZUL-based form with separate .zul layout file and Controller class.",
    "listbox-group": "A form with grouped/collapsible Listbox using GroupsModel.",
    "wlistbox-editor": "A form with custom WListbox column editors.",
    "report": "An iDempiere report process extending SvrProcess.",
    "jasper-report": "A Jasper report with Activator and sample .jrxml template.",
    "window-validator": "An iDempiere window-level event validator.",
    "rest-extension": "A REST API resource extension using JAX-RS annotations.",
    "facts-validator": "An iDempiere accounting facts validator.",
    "base-test": "A JUnit test class using AbstractTestCase (iDempiere test infrastructure).",
}

USER_PROMPT_KEY = "prompt"

OUTPUT_FORMAT = """
## Output Format
Respond with ONLY a JSON object (no markdown fences, no explanation):
{
  "files": [
    {"path": "relative/path/from/plugin/root/File.java", "content": "full file content"}
  ],
  "manifest_additions": ["Import-Package lines to add"],
  "build_properties_additions": ["lines to add to build.properties"]
}

IMPORTANT:
- Paths are relative to the plugin root directory
- Include full file content, not snippets
- Use the exact package based on the Plugin ID
- Follow the naming conventions visible in existing classes
"""


def describe_component(component_type: str) -> str:
    return COMPONENT_DESCRIPTIONS.get(component_type, f"An iDempiere {component_type} component.")


def _flag(value: bool) -> str:
    return "true" if value else "false"


def build_prompt(skill_text: Optional[str],
                 context: ProjectContext,
                 component_type: str,
                 component_name: str,
                 extra_params: Optional[Dict[str, Any]] = None) -> str:
    """Build the generation prompt.

    Args:
        skill_text: SKILL.md content, embedded verbatim when given.
        context: Analyzed project.
        component_type: One of COMPONENT_DESCRIPTIONS' keys (others get a generic line).
        component_name: Class/component name to generate.
        extra_params: Extra key/values; ``prompt`` is the end user's instruction.
    """
    parts = ["You are generating an iDempiere plugin component.\n\n"]

    if skill_text is not None:
        parts.append("## Skill Instructions\n")
        parts.append(skill_text + "\n\n")
    else:
        parts.append("## Component Type\n")
        parts.append(describe_component(component_type) + "\n\n")

    parts.append("## Project Context\n")
    parts.append(f"- Plugin ID: {context.plugin_id}\n")
    parts.append(f"- Base package: {context.base_package}\n")
    if context.platform_version is not None:
        parts.append(f"- Platform version: iDempiere {context.platform_version.major}\n")
    if context.existing_classes:
        parts.append(f"- Existing classes: {', '.join(context.existing_classes)}\n")
    parts.append(f"- Uses annotation pattern: {_flag(context.uses_annotation_pattern)}\n")
    parts.append(f"- Has Activator: {_flag(context.has_activator)}\n")
    parts.append(f"- Has CalloutFactory: {_flag(context.has_callout_factory)}\n")
    parts.append(f"- Has EventManager: {_flag(context.has_event_manager)}\n")

    if context.manifest_content is not None:
        parts.append(f"\n## Current MANIFEST.MF\n```\n{context.manifest_content}\n```\n")

    parts.append("\n## Task\n")
    parts.append(f"Generate a {component_type} named {component_name}.\n")

    params = dict(extra_params or {})
    user_prompt = params.pop(USER_PROMPT_KEY, None)
    if isinstance(user_prompt, str) and user_prompt.strip():
        parts.append("\n## User Instructions\n")
        parts.append(user_prompt + "\n")
    if params:
        parts.append("Additional parameters:\n")
        for key in sorted(params):
            parts.append(f"- {key}: {params[key]}\n")

    parts.append(OUTPUT_FORMAT)
    return "".join(parts)
