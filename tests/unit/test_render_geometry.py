import unittest

from ledgerpress.errors import CellNameError, MissingCellWidthError
from ledgerpress.render.geometry import cell_box, resolve_cells
from ledgerpress.render.spec import (
    ROW_SET_DATA,
    ROW_SET_FIELD_HEADERS,
    ROW_SET_GROUP,
    ROW_SET_PAGE_HEADER,
    BackgroundSpec,
    CellSpec,
)
from tests.test_support import make_layout, make_page


class TestResolveCells(unittest.TestCase):
    def test_full_width_cell_sits_in_first_row(self) -> None:
        cell = CellSpec(name="amount", width="100%")
        mapping: dict[str, int] = {}
        height = resolve_cells([cell], ROW_SET_DATA, make_layout(), cell_mapping=mapping)
        self.assertEqual(cell.full_width, 600.0)
        self.assertEqual(cell.row, 0)
        self.assertEqual(cell.x_border, 0.0)
        self.assertEqual(height, 18.0)
        self.assertEqual(mapping, {"amount": 0})

    def test_defaults_from_font_size(self) -> None:
        cell = CellSpec(name="a", width=200)
        resolve_cells([cell], ROW_SET_DATA, make_layout(), cell_mapping={})
        self.assertEqual(cell.font_size, 12.0)
        self.assertEqual(cell.text_whitespace, 6.0)
        self.assertEqual(cell.x_text, 6.0)
        self.assertEqual(cell.text_width, 188.0)
        self.assertEqual(cell.text_line_height, 18.0)
        self.assertEqual((cell.align, cell.text_align, cell.valign), ("L", "L", "B"))

    def test_overflowing_cell_starts_new_row(self) -> None:
        page = make_page(left_margin=20, right_margin=20)
        first = CellSpec(name="a", width="60%")
        second = CellSpec(name="b", width="60%", font_size=24)
        resolve_cells([first, second], ROW_SET_DATA, make_layout(page), cell_mapping={})
        self.assertEqual(first.full_width, 336.0)
        self.assertEqual((first.row, first.x_border), (0, 20.0))
        self.assertEqual((second.row, second.x_border), (1, 20.0))
        self.assertEqual(first.row_height, 18.0)
        self.assertEqual(second.row_height, 36.0)

    def test_cells_that_fit_share_a_row(self) -> None:
        cells = [CellSpec(name=name, width="25%") for name in "abcd"]
        resolve_cells(cells, ROW_SET_DATA, make_layout(), cell_mapping={})
        self.assertEqual([cell.row for cell in cells], [0, 0, 0, 0])
        self.assertEqual([cell.x_border for cell in cells], [0.0, 150.0, 300.0, 450.0])

    def test_every_cell_needs_a_width(self) -> None:
        with self.assertRaises(MissingCellWidthError) as caught:
            resolve_cells(
                [CellSpec(name="a", width=10), CellSpec(name="b")],
                ROW_SET_DATA,
                make_layout(),
                cell_mapping={},
            )
        self.assertEqual(caught.exception.index, 1)

    def test_data_cells_need_unique_names(self) -> None:
        with self.assertRaises(CellNameError):
            resolve_cells([CellSpec(width=10)], ROW_SET_DATA, make_layout(), cell_mapping={})
        with self.assertRaises(CellNameError):
            resolve_cells(
                [CellSpec(name="a", width=10), CellSpec(name="a", width=10)],
                ROW_SET_DATA,
                make_layout(),
                cell_mapping={},
            )

    def test_filler_cells_are_not_registered(self) -> None:
        cells = [CellSpec(width=50, filler=True), CellSpec(name="a", width=50)]
        mapping: dict[str, int] = {}
        resolve_cells(cells, ROW_SET_DATA, make_layout(), cell_mapping=mapping)
        self.assertEqual(mapping, {"a": 1})
        self.assertIsNone(cells[0].data_index)
        self.assertEqual(cells[1].data_index, 0)

    def test_data_background_is_inherited(self) -> None:
        background = BackgroundSpec(border="grey")
        own = BackgroundSpec(color="red", shape="box")
        cells = [CellSpec(name="a", width=50), CellSpec(name="b", width=50, background=own)]
        resolve_cells(
            cells, ROW_SET_DATA, make_layout(), background=background, cell_mapping={}
        )
        self.assertIs(cells[0].background, background)
        self.assertIs(cells[1].background, own)

    def test_field_headers_take_headings_and_centre(self) -> None:
        headings = CellSpec(bold=True, color="navy")
        cell = CellSpec(name="amount", width=100)
        resolve_cells([cell], ROW_SET_FIELD_HEADERS, make_layout(), headings=headings)
        self.assertEqual(cell.text, "amount")
        self.assertTrue(cell.bold)
        self.assertEqual(cell.color, "navy")
        self.assertEqual((cell.align, cell.valign), ("C", "M"))
        self.assertTrue(cell.wrap_text)

    def test_alignment_words_reduce_to_letters(self) -> None:
        cell = CellSpec(width=100, align="right", valign="top", text_position="left")
        resolve_cells([cell], ROW_SET_PAGE_HEADER, make_layout())
        self.assertEqual((cell.align, cell.text_align, cell.valign), ("R", "R", "T"))
        self.assertEqual(cell.text_position, "L")

    def test_group_aggregate_cells_carry_group_name(self) -> None:
        cell = CellSpec(width=100, aggregate_source=1, text="ignored")
        resolve_cells([cell], ROW_SET_GROUP, make_layout(), group_name="Region")
        self.assertEqual(cell.text, "Region")

    def test_wrapped_text_grows_the_cell(self) -> None:
        cell = CellSpec(width=60, text="abcdefghij", wrap_text=True)
        height = resolve_cells([cell], ROW_SET_PAGE_HEADER, make_layout())
        # 48pt of text width at 6pt per glyph
        self.assertEqual(height, 36.0)

    def test_split_chain_stacks_children(self) -> None:
        child = CellSpec(text="bottom", bold=True)
        parent = CellSpec(width="50%", text="top", color="red", split_down=child)
        height = resolve_cells([parent], ROW_SET_PAGE_HEADER, make_layout())
        self.assertEqual(height, 36.0)
        self.assertEqual(parent.split_y_offset_up, 0.0)
        self.assertEqual(parent.split_y_offset_down, 18.0)
        self.assertEqual(child.split_y_offset_up, 18.0)
        self.assertEqual(child.split_y_offset_down, 0.0)
        self.assertEqual(child.full_width, 300.0)
        self.assertEqual(child.x_border, parent.x_border)
        self.assertEqual(child.color, "red")
        self.assertEqual(child.text, "bottom")


class TestCellBox(unittest.TestCase):
    def test_plain_cell_fills_the_row(self) -> None:
        cell = CellSpec(width=100)
        resolve_cells([cell], ROW_SET_PAGE_HEADER, make_layout())
        box = cell_box(cell, 100.0, 40.0)
        self.assertEqual((box.x, box.y, box.width, box.height), (0.0, 100.0, 100.0, 40.0))

    def test_split_parent_above_child(self) -> None:
        child = CellSpec(text="bottom")
        parent = CellSpec(width=100, text="top", split_down=child)
        height = resolve_cells([parent], ROW_SET_PAGE_HEADER, make_layout())
        parent_box = cell_box(parent, 100.0, height)
        child_box = cell_box(child, 100.0, height)
        self.assertEqual((parent_box.y, parent_box.height), (118.0, 18.0))
        self.assertEqual((child_box.y, child_box.height), (100.0, 18.0))


if __name__ == "__main__":
    unittest.main()
