"""
Tests for equipment text parsing and formatting.
"""

from models.entities import ReservationItem
from models.equipment import parse_equipment, items_from_form, format_equipment, names_with_separator


def pairs(items):
    return [item.as_pair() for item in items]


class TestParseEquipment:
    """Tests for parse_equipment."""

    def test_empty_values(self):
        assert parse_equipment(None) == []
        assert parse_equipment('') == []
        assert parse_equipment([]) == []

    def test_combined_string(self):
        items = parse_equipment('Projector (x2), Microphone x3, Whiteboard')
        assert pairs(items) == [('Projector', 2), ('Microphone', 3), ('Whiteboard', 1)]

    def test_quantity_marker_is_case_insensitive(self):
        assert pairs(parse_equipment('Cable (X4)')) == [('Cable', 4)]
        assert pairs(parse_equipment('Cable X4')) == [('Cable', 4)]

    def test_blank_segments_are_dropped(self):
        assert pairs(parse_equipment('Laptop, , ,Mouse (x2),')) == [('Laptop', 1), ('Mouse', 2)]

    def test_zero_quantity_becomes_one(self):
        assert pairs(parse_equipment('Laptop (x0)')) == [('Laptop', 1)]

    def test_unrecognised_text_is_one_item(self):
        assert pairs(parse_equipment('HDMI (2m)')) == [('HDMI (2m)', 1)]

    def test_marker_without_name_is_kept_as_text(self):
        assert pairs(parse_equipment('(x2)')) == [('(x2)', 1)]

    def test_list_of_names(self):
        assert pairs(parse_equipment(['Laptop', ' Mouse ', ''])) == [('Laptop', 1), ('Mouse', 1)]

    def test_list_of_pairs_and_dicts(self):
        items = parse_equipment([('Laptop', '2'), {'name': 'Mouse', 'quantity': 3}])
        assert pairs(items) == [('Laptop', 2), ('Mouse', 3)]

    def test_list_of_items(self):
        items = parse_equipment([ReservationItem('Tripod', 2)])
        assert pairs(items) == [('Tripod', 2)]

    def test_order_is_preserved(self):
        items = parse_equipment('Zeta, Alpha (x2), Mid')
        assert [item.name for item in items] == ['Zeta', 'Alpha', 'Mid']


class TestItemsFromForm:
    """Tests for repeated equipment_name / equipment_qty fields."""

    def test_single_values(self):
        assert pairs(items_from_form('Laptop', '2')) == [('Laptop', 2)]

    def test_parallel_lists(self):
        items = items_from_form(['Laptop', 'Mouse'], ['2', '5'])
        assert pairs(items) == [('Laptop', 2), ('Mouse', 5)]

    def test_missing_and_invalid_quantities(self):
        items = items_from_form(['Laptop', 'Mouse', 'Cable'], ['', 'abc'])
        assert pairs(items) == [('Laptop', 1), ('Mouse', 1), ('Cable', 1)]

    def test_blank_names_dropped(self):
        assert pairs(items_from_form(['', 'Mouse', '  '], ['1', '2', '3'])) == [('Mouse', 2)]

    def test_nothing_submitted(self):
        assert items_from_form(None, None) == []
        assert items_from_form([], []) == []


class TestFormatEquipment:
    """Tests for format_equipment."""

    def test_format(self):
        text = format_equipment([('Projector', 2), ('Cable', 1)])
        assert text == 'Projector (x2), Cable (x1)'

    def test_empty(self):
        assert format_equipment([]) == ''

    def test_formatted_text_parses_back(self):
        items = [ReservationItem('Projector', 2), ReservationItem('Extension cord', 1)]
        assert pairs(parse_equipment(format_equipment(items))) == pairs(items)

    def test_comma_in_name_does_not_survive_parsing(self):
        items = items_from_form(['HDMI, VGA adapter'], ['2'])

        assert names_with_separator(items) == ['HDMI, VGA adapter']
        assert pairs(parse_equipment(format_equipment(items))) != pairs(items)

    def test_names_without_separator(self):
        items = items_from_form(['HDMI to VGA adapter', 'Cable (x3)'], ['2', '1'])

        assert names_with_separator(items) == []
        assert pairs(parse_equipment(format_equipment(items))) == pairs(items)
