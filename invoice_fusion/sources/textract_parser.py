"""
Textract Response Parser Module.

This module converts a raw AWS Textract AnalyzeDocument response
(FORMS + TABLES features) into a DeterministicSource:
    - LINE blocks → document text and whole-document confidence
    - KEY_VALUE_SET blocks → key-value pairs
    - TABLE/CELL blocks → row-major tables
    - Tables with a recognizable header → line items

Author: ML Engineering Team
"""

from typing import Any, Dict, List, Optional

from invoice_fusion.utils.helpers import safe_float
from invoice_fusion.utils.logger import get_logger
from .models import DeterministicSource, LineItem, RawKeyValue, Table

# Initialize module logger
logger = get_logger(__name__)


class TextractParser:
    """
    Parses Textract block lists into the deterministic source shape.

    Attributes:
        description_terms: Header terms identifying the description column
        quantity_terms: Header terms identifying the quantity column
        price_terms: Header terms identifying the unit price column
        total_terms: Header terms identifying the line total column

    Example:
        >>> parser = TextractParser()
        >>> source = parser.parse(textract_response)
        >>> len(source.key_value_pairs)
        12
    """

    DESCRIPTION_TERMS = ['description', 'item', 'product', 'service']
    QUANTITY_TERMS = ['quantity', 'qty', 'amount']
    PRICE_TERMS = ['price', 'rate', 'unit price', 'cost']
    TOTAL_TERMS = ['total', 'amount', 'line total']

    def __init__(self) -> None:
        self.description_terms = list(self.DESCRIPTION_TERMS)
        self.quantity_terms = list(self.QUANTITY_TERMS)
        self.price_terms = list(self.PRICE_TERMS)
        self.total_terms = list(self.TOTAL_TERMS)

    def parse(self, response: Any) -> DeterministicSource:
        """
        Parse a Textract response.

        Args:
            response: AnalyzeDocument response dict (``{"Blocks": [...]}``).

        Returns:
            DeterministicSource; empty when the response has no blocks.
        """
        blocks = response.get('Blocks') if isinstance(response, dict) else None
        blocks = [b for b in (blocks or []) if isinstance(b, dict)]
        index = {b['Id']: b for b in blocks if 'Id' in b}

        lines = [b for b in blocks if b.get('BlockType') == 'LINE']
        text = '\n'.join(b.get('Text', '') for b in lines)

        key_value_pairs = self._extract_key_value_pairs(blocks, index)
        tables = self._extract_tables(blocks, index)
        line_items = self._extract_line_items(tables)

        pages = sum(1 for b in blocks if b.get('BlockType') == 'PAGE')
        confidence = self._average_confidence(lines)

        logger.info(
            f"Textract: {len(key_value_pairs)} key-value pairs, "
            f"{len(tables)} tables, {len(line_items)} line items "
            f"(confidence {confidence * 100:.1f}%)"
        )

        return DeterministicSource(
            confidence=confidence,
            key_value_pairs=key_value_pairs,
            tables=tables,
            line_items=line_items,
            text=text,
            pages=max(1, pages)
        )

    def _average_confidence(self, blocks: List[Dict[str, Any]]) -> float:
        """Mean block confidence converted from 0-100 to 0-1."""
        if not blocks:
            return 0.0
        total = sum(safe_float(b.get('Confidence'), 0.0) for b in blocks)
        return total / len(blocks) / 100

    def _relationship_ids(self, block: Dict[str, Any], rel_type: str) -> List[str]:
        ids: List[str] = []
        for relationship in block.get('Relationships') or []:
            if relationship.get('Type') == rel_type:
                ids.extend(relationship.get('Ids') or [])
        return ids

    def _block_text(self, block: Dict[str, Any], index: Dict[str, Dict[str, Any]]) -> str:
        """Text of a block, assembled from its CHILD blocks when it has none."""
        if block.get('Text'):
            return block['Text']

        child_texts = [
            index[child_id]['Text']
            for child_id in self._relationship_ids(block, 'CHILD')
            if child_id in index and index[child_id].get('Text')
        ]
        return ' '.join(child_texts)

    def _extract_key_value_pairs(
        self,
        blocks: List[Dict[str, Any]],
        index: Dict[str, Dict[str, Any]]
    ) -> List[RawKeyValue]:
        pairs: List[RawKeyValue] = []

        for block in blocks:
            if block.get('BlockType') != 'KEY_VALUE_SET':
                continue
            if 'KEY' not in (block.get('EntityTypes') or []):
                continue

            value_block = self._first_block(self._relationship_ids(block, 'VALUE'), index)
            if value_block is None:
                continue

            key_text = self._block_text(block, index).strip()
            value_text = self._block_text(value_block, index).strip()

            if key_text and value_text:
                pairs.append(RawKeyValue(key=key_text, value=value_text))

        return pairs

    def _first_block(
        self,
        ids: List[str],
        index: Dict[str, Dict[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        for block_id in ids:
            if block_id in index:
                return index[block_id]
        return None

    def _extract_tables(
        self,
        blocks: List[Dict[str, Any]],
        index: Dict[str, Dict[str, Any]]
    ) -> List[Table]:
        tables: List[Table] = []

        for block in blocks:
            if block.get('BlockType') != 'TABLE':
                continue

            cells = [
                index[cell_id]
                for cell_id in self._relationship_ids(block, 'CHILD')
                if cell_id in index and index[cell_id].get('BlockType') == 'CELL'
            ]
            if not cells:
                continue

            grid: Dict[int, Dict[int, str]] = {}
            for cell in cells:
                row_index = int(safe_float(cell.get('RowIndex'), 0))
                col_index = int(safe_float(cell.get('ColumnIndex'), 0))
                grid.setdefault(row_index, {})[col_index] = self._block_text(cell, index)

            rows = [
                [grid[r][c] or '' for c in sorted(grid[r])]
                for r in sorted(grid)
            ]
            tables.append(Table(rows=rows, confidence=self._average_confidence(cells)))

        return tables

    def _find_column(self, header: List[str], terms: List[str]) -> int:
        for position, title in enumerate(header):
            title_lower = title.lower()
            if any(term in title_lower for term in terms):
                return position
        return -1

    def _extract_line_items(self, tables: List[Table]) -> List[LineItem]:
        """
        Read line items from tables with a header row.

        Rows without a description are skipped.
        """
        items: List[LineItem] = []

        for table in tables:
            if len(table.rows) < 2:
                continue

            header = table.rows[0]
            columns = {
                'description': self._find_column(header, self.description_terms),
                'quantity': self._find_column(header, self.quantity_terms),
                'unit_price': self._find_column(header, self.price_terms),
                'amount': self._find_column(header, self.total_terms),
            }

            for row in table.rows[1:]:
                if not any(cell.strip() for cell in row):
                    continue

                values = {
                    name: row[position].strip()
                    for name, position in columns.items()
                    if 0 <= position < len(row) and row[position].strip()
                }
                if 'description' not in values:
                    continue

                items.append(LineItem(confidence=table.confidence, **values))

        return items


def parse_textract_response(response: Any) -> DeterministicSource:
    """Convenience wrapper around TextractParser.parse."""
    return TextractParser().parse(response)
