"""
Equipment description parsing and formatting.

Reservations keep a combined display string ("Projector (x2), Cable (x1)")
alongside itemized rows. These helpers convert between the two forms and
never raise: anything unrecognised becomes a single item of quantity 1.
"""

import re

from .entities import ReservationItem


# "Projector (x2)" and "Projector x2", case-insensitive
_PAREN_QTY = re.compile(r'^(.*?)\s*\(x(\d+)\)\s*$', re.IGNORECASE)
_BARE_QTY = re.compile(r'^(.*?)\s+x(\d+)$', re.IGNORECASE)

# Joins items in the display string, so it cannot appear inside a name
ITEM_SEPARATOR = ','


def _to_quantity(value) -> int:
    """Coerce a submitted quantity to an integer >= 1."""
    try:
        qty = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    return qty if qty >= 1 else 1


def parse_segment(segment: str) -> ReservationItem:
    """
    Parse one comma-separated segment into an item.

    Args:
        segment: Text such as "Projector (x2)", "Cable x3" or "Whiteboard"

    Returns:
        ReservationItem with the parsed name and quantity
    """
    segment = segment.strip()

    match = _PAREN_QTY.match(segment)
    if match and match.group(1).strip():
        return ReservationItem(name=match.group(1).strip(), quantity=_to_quantity(match.group(2)))

    match = _BARE_QTY.match(segment)
    if match and match.group(1).strip():
        return ReservationItem(name=match.group(1).strip(), quantity=_to_quantity(match.group(2)))

    return ReservationItem(name=segment, quantity=1)


def parse_equipment(value) -> list:
    """
    Normalize an equipment description into an ordered list of items.

    Args:
        value: None, a comma-separated string, a list of names,
               a list of (name, quantity) pairs or a list of
               {'name': ..., 'quantity': ...} dicts

    Returns:
        List of ReservationItem (possibly empty)
    """
    if not value:
        return []

    if isinstance(value, str):
        segments = [part.strip() for part in value.split(ITEM_SEPARATOR)]
        return [parse_segment(part) for part in segments if part]

    items = []
    for entry in value:
        if isinstance(entry, ReservationItem):
            name, qty = entry.name, entry.quantity
        elif isinstance(entry, dict):
            name, qty = entry.get('name'), entry.get('quantity', 1)
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            name, qty = entry
        else:
            name, qty = entry, 1

        name = str(name).strip() if name is not None else ''
        if name:
            items.append(ReservationItem(name=name, quantity=_to_quantity(qty)))
    return items


def items_from_form(names, quantities) -> list:
    """
    Pair repeated equipment_name / equipment_qty form fields.

    Blank names are dropped; missing or invalid quantities become 1.
    """
    if isinstance(names, str) or names is None:
        names = [names]
    if isinstance(quantities, str) or quantities is None:
        quantities = [quantities]

    pairs = []
    for idx, name in enumerate(names):
        qty = quantities[idx] if idx < len(quantities) else 1
        pairs.append((name, qty))
    return parse_equipment(pairs)


def format_equipment(items) -> str:
    """
    Build the combined display string.

    Output is parsed back to the same items by parse_equipment as long as
    no name contains ITEM_SEPARATOR (see names_with_separator).
    """
    return (ITEM_SEPARATOR + ' ').join(
        f'{item.name} (x{item.quantity})' for item in parse_equipment(items)
    )


def names_with_separator(items) -> list:
    """Item names that would split in two when the display string is parsed."""
    return [item.name for item in parse_equipment(items) if ITEM_SEPARATOR in item.name]
