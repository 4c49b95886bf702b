"""
XML codec for project configuration documents.

A document describes everything about a project except its name, which
comes from where the document is stored. That is what lets a template's
document be poured onto an implementation without changing who the
implementation is.

    <project>
      <description>Nightly build</description>
      <disabled>false</disabled>
      <properties>
        <templateProperty/>
        <syncPolicy template="base/nightly" syncBuildTriggers="false" .../>
        <parameters>
          <parameter kind="string" name="BRANCH">
            <description>Branch to build</description>
            <defaultValue>main</defaultValue>
          </parameter>
        </parameters>
      </properties>
      <triggers><trigger kind="timer">H 2 * * *</trigger></triggers>
      <builders><builder kind="shell">make</builder></builders>
    </project>

Matrix projects use a ``matrix-project`` root and carry an ``<axes>`` block.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Optional

from .errors import ConfigReadError, PersistenceError
from .models import (
    Axis,
    BuildStep,
    MatrixProject,
    ParameterDefinition,
    ParametersProperty,
    Project,
    SyncPolicy,
    TemplateProperty,
    Trigger,
)

PROJECT_TAG = "project"
MATRIX_PROJECT_TAG = "matrix-project"

_POLICY_FLAGS = {
    "syncBuildTriggers": "sync_build_triggers",
    "syncDisabled": "sync_disabled",
    "syncDescription": "sync_description",
    "syncMatrixAxis": "sync_matrix_axis",
}

# Characters an XML 1.0 parser accepts in text and attribute values.
_ILLEGAL_XML_CHARS = re.compile(
    "[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def _parse_bool(text: Optional[str], default: bool = False) -> bool:
    if text is None:
        return default
    return text.strip().lower() == "true"


# ---------------------------------------------------------------------------
# Project -> XML
# ---------------------------------------------------------------------------


def project_to_element(project: Project) -> ET.Element:
    """Build the document tree for a project."""
    is_matrix = isinstance(project, MatrixProject)
    root = ET.Element(MATRIX_PROJECT_TAG if is_matrix else PROJECT_TAG)

    if project.description is not None:
        ET.SubElement(root, "description").text = project.description
    ET.SubElement(root, "disabled").text = _bool_text(project.disabled)

    properties = ET.SubElement(root, "properties")
    if project.template is not None:
        ET.SubElement(properties, "templateProperty")
    if project.implementation is not None:
        policy = project.implementation
        attrs = {"template": policy.template_name}
        for attr, field_name in _POLICY_FLAGS.items():
            attrs[attr] = _bool_text(getattr(policy, field_name))
        ET.SubElement(properties, "syncPolicy", attrs)
    if project.parameters is not None:
        block = ET.SubElement(properties, "parameters")
        for definition in project.parameters.definitions:
            _parameter_to_element(block, definition)

    triggers = ET.SubElement(root, "triggers")
    for trigger in project.triggers:
        ET.SubElement(triggers, "trigger", {"kind": trigger.kind}).text = trigger.spec

    builders = ET.SubElement(root, "builders")
    for step in project.builders:
        ET.SubElement(builders, "builder", {"kind": step.kind}).text = step.command

    if is_matrix:
        axes = ET.SubElement(root, "axes")
        for axis in project.axes:
            axis_el = ET.SubElement(axes, "axis", {"name": axis.name})
            for value in axis.values:
                ET.SubElement(axis_el, "value").text = value

    return root


def _parameter_to_element(parent: ET.Element, definition: ParameterDefinition) -> None:
    param = ET.SubElement(
        parent, "parameter", {"kind": definition.kind, "name": definition.name}
    )
    ET.SubElement(param, "description").text = definition.description
    if definition.default_value is not None:
        ET.SubElement(param, "defaultValue").text = definition.default_value
    if definition.choices:
        choices = ET.SubElement(param, "choices")
        for choice in definition.choices:
            ET.SubElement(choices, "choice").text = choice


def _check_storable(root: ET.Element, name: str) -> None:
    for el in root.iter():
        for value in (el.text, *el.attrib.values()):
            if value and _ILLEGAL_XML_CHARS.search(value):
                raise PersistenceError(
                    f"Cannot store [{name}]: <{el.tag}> contains a character "
                    f"not allowed in XML: {value!r}"
                )


def project_to_xml(project: Project) -> str:
    """Serialize a project to its configuration document.

    Raises:
        PersistenceError: If a field holds a character the document
            could not be read back with.
    """
    root = project_to_element(project)
    _check_storable(root, project.name)
    ET.indent(root, space="  ")
    return "<?xml version='1.1' encoding='UTF-8'?>\n" + ET.tostring(root, encoding="unicode") + "\n"


# ---------------------------------------------------------------------------
# XML -> Project
# ---------------------------------------------------------------------------


def project_from_xml(text: str, name: str) -> Project:
    """Parse a configuration document into a project called ``name``.

    Args:
        text: The XML document.
        name: Full name of the project the document belongs to.

    Raises:
        ConfigReadError: If the document is not well formed or has an
            unknown root element.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ConfigReadError(f"Malformed configuration for [{name}]: {exc}") from exc
    return project_from_element(root, name)


def project_from_element(root: ET.Element, name: str) -> Project:
    if root.tag not in (PROJECT_TAG, MATRIX_PROJECT_TAG):
        raise ConfigReadError(
            f"Unknown project type <{root.tag}> in configuration for [{name}]"
        )

    description_el = root.find("description")
    fields: dict = {
        "name": name,
        "description": (description_el.text or "") if description_el is not None else None,
        "disabled": _parse_bool(root.findtext("disabled")),
        "triggers": [
            Trigger(kind=el.get("kind", ""), spec=el.text or "")
            for el in root.findall("triggers/trigger")
        ],
        "builders": [
            BuildStep(kind=el.get("kind", "shell"), command=el.text or "")
            for el in root.findall("builders/builder")
        ],
    }

    properties = root.find("properties")
    if properties is not None:
        if properties.find("templateProperty") is not None:
            fields["template"] = TemplateProperty()
        policy_el = properties.find("syncPolicy")
        if policy_el is not None:
            policy = {"template_name": policy_el.get("template", "")}
            for attr, field_name in _POLICY_FLAGS.items():
                policy[field_name] = _parse_bool(policy_el.get(attr), default=True)
            fields["implementation"] = SyncPolicy(**policy)
        block = properties.find("parameters")
        if block is not None:
            fields["parameters"] = ParametersProperty(
                definitions=[_parameter_from_element(el) for el in block.findall("parameter")]
            )

    if root.tag == MATRIX_PROJECT_TAG:
        fields["axes"] = [
            Axis(
                name=el.get("name", ""),
                values=[v.text or "" for v in el.findall("value")],
            )
            for el in root.findall("axes/axis")
        ]
        return MatrixProject(**fields)
    return Project(**fields)


def _parameter_from_element(el: ET.Element) -> ParameterDefinition:
    return ParameterDefinition(
        name=el.get("name", ""),
        kind=el.get("kind", "string"),
        description=el.findtext("description") or "",
        default_value=el.findtext("defaultValue"),
        choices=[c.text or "" for c in el.findall("choices/choice")],
    )
