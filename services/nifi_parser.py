from collections import OrderedDict
from typing import Dict, Iterator, Optional

from lxml import etree


class ValidationResult:
    def __init__(self, is_valid: bool, message: str = ""):
        self.is_valid = is_valid
        self.message = message


class NiFiParser:
    """Service for parsing and navigating NiFi flow.xml exports.

    The export has no schema contract beyond element names, so everything here
    works on the generic lxml tree and tolerates missing elements.
    """

    @staticmethod
    def validate_xml_structure(xml_content: bytes) -> ValidationResult:
        """Validate that the XML is well-formed and appears to be a NiFi flow."""
        try:
            root = etree.fromstring(xml_content)

            # Check for NiFi-specific elements
            if root.tag not in ['flowController', 'template', 'templateDTO']:
                return ValidationResult(False, "Not a valid NiFi XML file")

            return ValidationResult(True, "Valid NiFi XML file")
        except etree.XMLSyntaxError as e:
            return ValidationResult(False, f"Invalid XML: {str(e)}")

    @staticmethod
    def parse_flow_xml(xml_content: bytes) -> etree._Element:
        """Parse a flow.xml document and return its root element."""
        parser = etree.XMLParser(huge_tree=True, remove_blank_text=True)
        return etree.fromstring(xml_content, parser=parser)

    @staticmethod
    def find_process_group_by_id(root: etree._Element, group_id: Optional[str]) -> Optional[etree._Element]:
        """Depth-first scan of every processGroup for the one whose <id> equals group_id."""
        if group_id is None or root is None:
            return None
        for group in root.iter('processGroup'):
            if NiFiParser.child_text(group, 'id') == group_id:
                return group
        return None

    @staticmethod
    def child_text(parent: etree._Element, tag: str) -> Optional[str]:
        """Text of the first direct child with the given tag, or None."""
        child = parent.find(tag)
        if child is None:
            return None
        return child.text

    @staticmethod
    def iter_processors(process_group: etree._Element) -> Iterator[etree._Element]:
        """All processor elements below the group, nested groups included."""
        return process_group.iter('processor')

    @staticmethod
    def processor_properties(processor: etree._Element) -> Dict[str, str]:
        """Direct <property> children of a processor as an ordered name -> value map."""
        props = OrderedDict()
        for prop in processor.findall('property'):
            name = NiFiParser.child_text(prop, 'name')
            if name is None:
                continue
            value = NiFiParser.child_text(prop, 'value')
            props[name.strip()] = value if value is not None else ""
        return props

