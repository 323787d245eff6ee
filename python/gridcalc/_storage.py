"""XML spreadsheet files.

Layout::

    <?xml version='1.0' encoding='utf-8'?>
    <spreadsheet version="default">
      <cell>
        <name>a1</name>
        <contents>=b1+2</contents>
      </cell>
    </spreadsheet>
"""

from __future__ import annotations

import logging
import os
import re
import xml.etree.ElementTree as ET

from gridcalc._errors import SpreadsheetReadWriteError
from gridcalc._protocol import SavedSheet

logger = logging.getLogger(__name__)

# Characters outside the XML 1.0 Char production.
_NON_XML_CHAR_RE = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def _check_xml_text(text: str, where: str) -> None:
    m = _NON_XML_CHAR_RE.search(text)
    if m is not None:
        raise SpreadsheetReadWriteError(
            f"Cannot store character {m.group()!r} of {where} in XML"
        )


class XmlStorage:
    """Reads and writes :class:`SavedSheet` as XML."""

    def write(self, sheet: SavedSheet, filename: str | os.PathLike[str]) -> None:
        _check_xml_text(sheet.version, "the version tag")
        root = ET.Element("spreadsheet", version=sheet.version)
        for name, contents in sheet.cells:
            _check_xml_text(name, f"cell name {name!r}")
            _check_xml_text(contents, f"cell {name!r}")
            cell = ET.SubElement(root, "cell")
            ET.SubElement(cell, "name").text = name
            ET.SubElement(cell, "contents").text = contents
        ET.indent(root)
        # A literal CR in character data is read back as LF.
        data = ET.tostring(root, encoding="utf-8", xml_declaration=True)
        data = data.replace(b"\r", b"&#13;")
        try:
            with open(filename, "wb") as f:
                f.write(data)
        except OSError as e:
            raise SpreadsheetReadWriteError(f"Cannot write {os.fspath(filename)!r}: {e}") from e
        logger.debug("Wrote %d cells to %s", len(sheet.cells), os.fspath(filename))

    def read(self, filename: str | os.PathLike[str]) -> SavedSheet:
        try:
            root = ET.parse(filename).getroot()
        except (OSError, ET.ParseError) as e:
            raise SpreadsheetReadWriteError(f"Cannot read {os.fspath(filename)!r}: {e}") from e

        if root.tag != "spreadsheet":
            raise SpreadsheetReadWriteError(f"Expected <spreadsheet> root, found <{root.tag}>")
        version = root.get("version")
        if version is None:
            raise SpreadsheetReadWriteError("Missing version attribute")

        cells: list[tuple[str, str]] = []
        for cell in root.iter("cell"):
            name = cell.findtext("name")
            if name is None:
                raise SpreadsheetReadWriteError("Cell without <name>")
            contents = cell.findtext("contents")
            if contents is None:
                raise SpreadsheetReadWriteError(f"Cell {name!r} without <contents>")
            cells.append((name, contents))

        logger.debug("Read %d cells from %s", len(cells), os.fspath(filename))
        return SavedSheet(version=version, cells=tuple(cells))
