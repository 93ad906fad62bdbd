import unittest

from ledgerpress.errors import Diagnostics
from ledgerpress.render.draw import (
    CallbackDecorator,
    CellDecorator,
    CellRenderer,
    RenderOptions,
)
from ledgerpress.render.geometry import resolve_cells
from ledgerpress.render.spec import (
    ROW_SET_DATA,
    ROW_SET_PAGE_HEADER,
    BackgroundSpec,
    BarcodeSpec,
    CellSpec,
    ImageFit,
    ImageSpec,
    NumberFormat,
)
from ledgerpress.render.types import UNSET
from tests.test_support import make_canvas, make_layout


def _value_text(cell: CellSpec, options: RenderOptions) -> str | None:
    if not options.has_value:
        return None
    return "" if options.value is None else str(options.value)


def _fixed(text: str | None):
    return lambda cell, options: text


class _BlueText(CellDecorator):
    def resolve_color(self, string, row, options):
        return "blue"


class _RendererCase(unittest.TestCase):
    def setUp(self) -> None:
        self.diagnostics = Diagnostics()
        self.layout = make_layout(diagnostics=self.diagnostics)
        self.canvas = make_canvas()
        self.renderer = CellRenderer(self.canvas, self.layout)

    def _cell(self, **kwargs) -> CellSpec:
        kwargs.setdefault("width", 300)
        cell = CellSpec(**kwargs)
        resolve_cells([cell], ROW_SET_PAGE_HEADER, self.layout)
        return cell

    def _render(
        self,
        cell: CellSpec,
        text_for,
        *,
        value=UNSET,
        y: float = 100.0,
        height: float = 18.0,
        row_type: str = ROW_SET_PAGE_HEADER,
    ):
        options = RenderOptions(
            row=None,
            row_type=row_type,
            cell=cell,
            cell_y_border=y,
            cell_full_height=height,
            page_index=0,
            value=value,
        )
        return self.renderer.render(cell, options, text_for)

    def _calls(self, op: str):
        calls = self.canvas.pages[-1] if self.canvas.pages else []
        return [call for call in calls if call.op == op]


class TestCellRenderer(_RendererCase):
    def test_left_aligned_text_position(self) -> None:
        cell = self._cell()
        result = self._render(cell, _fixed("abc"))
        self.assertTrue(result.text_rendered)
        (call,) = self._calls("text")
        self.assertEqual((call.args["x"], call.args["y"]), (6.0, 106.0))
        self.assertEqual(call.args["color"], "black")
        self.assertEqual((cell.text_string_left, cell.text_string_right), (6.0, 24.0))

    def test_right_and_centre_alignment(self) -> None:
        self._render(self._cell(align="right"), _fixed("abc"))
        self._render(self._cell(align="centre"), _fixed("abc"))
        right, centre = self._calls("text")
        self.assertEqual(right.args["x"], 276.0)
        self.assertEqual(centre.args["x"], 141.0)

    def test_wrapped_lines_step_down(self) -> None:
        cell = self._cell(width=60, wrap_text=True)
        self._render(cell, _fixed("abcdefghij"), height=36.0)
        first, second = self._calls("text")
        self.assertEqual((first.args["text"], first.args["y"]), ("abcdefgh", 124.0))
        self.assertEqual((second.args["text"], second.args["y"]), ("ij", 106.0))

    def test_middle_and_top_valign(self) -> None:
        self._render(self._cell(valign="middle"), _fixed("x"), height=40.0)
        self._render(self._cell(valign="top"), _fixed("x"), height=40.0)
        middle, top = self._calls("text")
        self.assertEqual(middle.args["y"], 117.0)
        self.assertEqual(top.args["y"], 128.0)

    def test_absolute_position(self) -> None:
        self._render(self._cell(x=50, y=700, align="right"), _fixed("abc"))
        (call,) = self._calls("text")
        self.assertEqual((call.args["x"], call.args["y"]), (50.0, 700.0))

    def test_overlong_line_is_truncated(self) -> None:
        self._render(self._cell(width=30), _fixed("abcdefgh"))
        (call,) = self._calls("text")
        self.assertEqual(call.args["text"], "abc")

    def test_number_format_applies_to_data(self) -> None:
        cell = self._cell(format=NumberFormat(decimal_places=2, decimal_fill=True))
        self._render(cell, _value_text, value="3", row_type=ROW_SET_DATA)
        (call,) = self._calls("text")
        self.assertEqual(call.args["text"], "3.00")

    def test_box_background_with_borders(self) -> None:
        background = BackgroundSpec(shape="box", color="red", border="black")
        self._render(self._cell(background=background), _fixed("hi"))
        ops = [call.op for call in self.canvas.pages[-1]]
        self.assertEqual(ops, ["shape", "line", "line", "line", "line", "text"])
        (shape,) = self._calls("shape")
        self.assertEqual(shape.args["kind"], "box")
        self.assertEqual(shape.args["x"], 0.0)
        self.assertAlmostEqual(shape.args["width"], 300.4)
        self.assertAlmostEqual(shape.args["y"], 99.5)
        self.assertAlmostEqual(shape.args["height"], 19.0)
        bottom = self._calls("line")[0]
        self.assertEqual(
            (bottom.args["x1"], bottom.args["y1"], bottom.args["x2"], bottom.args["y2"]),
            (0.0, 100.0, 300.0, 100.0),
        )

    def test_selected_borders_only(self) -> None:
        background = BackgroundSpec(border="grey", borders="tb")
        self._render(self._cell(background=background), _fixed(None))
        self.assertEqual(len(self._calls("line")), 2)
        self.assertEqual(self._calls("shape"), [])
        self.assertEqual(self._calls("text"), [])

    def test_ellipse_background(self) -> None:
        background = BackgroundSpec(shape="ellipse", color="#ff0000")
        self._render(self._cell(background=background), _fixed("x"))
        (shape,) = self._calls("shape")
        self.assertEqual(
            (shape.args["x"], shape.args["y"], shape.args["width"], shape.args["height"]),
            (0.0, 100.0, 300.0, 18.0),
        )

    def test_split_children_render_below(self) -> None:
        cell = self._cell(text="top", split_down=CellSpec(text="bottom"))
        self._render(cell, lambda cell, options: cell.text, height=36.0)
        top, bottom = self._calls("text")
        self.assertEqual((top.args["text"], top.args["y"]), ("top", 124.0))
        self.assertEqual((bottom.args["text"], bottom.args["y"]), ("bottom", 106.0))


class TestDecorators(_RendererCase):
    def test_decorator_colour(self) -> None:
        self._render(self._cell(decorator=_BlueText(), color="red"), _fixed("x"))
        (call,) = self._calls("text")
        self.assertEqual(call.args["color"], "blue")

    def test_callback_background(self) -> None:
        decorator = CallbackDecorator(
            background=lambda value, row, options: {"shape": "box", "colour": "yellow"}
        )
        self._render(self._cell(decorator=decorator), _fixed("x"))
        (shape,) = self._calls("shape")
        self.assertEqual(shape.args["color"], "yellow")

    def test_callback_background_can_suppress(self) -> None:
        decorator = CallbackDecorator(background=lambda value, row, options: None)
        background = BackgroundSpec(shape="box", color="red")
        self._render(self._cell(decorator=decorator, background=background), _fixed("x"))
        self.assertEqual(self._calls("shape"), [])

    def test_render_text_replaces_value(self) -> None:
        decorator = CallbackDecorator(render=lambda options: {"render_text": "42"})
        result = self._render(
            self._cell(decorator=decorator), _value_text, value="7", row_type=ROW_SET_DATA
        )
        (call,) = self._calls("text")
        self.assertEqual(call.args["text"], "42")
        self.assertEqual(result.value, "42")

    def test_rendering_done_skips_cell(self) -> None:
        decorator = CallbackDecorator(render=lambda options: {"rendering_done": True})
        result = self._render(self._cell(decorator=decorator), _fixed("x"))
        self.assertFalse(result.text_rendered)
        self.assertEqual(self._calls("text"), [])
        self.assertEqual(len(self.diagnostics), 0)

    def test_unrecognised_instruction_warns(self) -> None:
        decorator = CallbackDecorator(render=lambda options: "junk")
        result = self._render(self._cell(decorator=decorator), _fixed("x"))
        self.assertFalse(result.text_rendered)
        self.assertEqual(self._calls("text"), [])
        self.assertEqual(len(self.diagnostics), 1)

    def test_base_decorator_keeps_defaults(self) -> None:
        background = BackgroundSpec(shape="box", color="red")
        self._render(
            self._cell(decorator=CellDecorator(), background=background, color="green"),
            _fixed("x"),
        )
        self.assertEqual(len(self._calls("shape")), 1)
        self.assertEqual(self._calls("text")[0].args["color"], "green")


class TestImagesAndBarcodes(_RendererCase):
    def _image_cell(self, kind: str = "PNG", **kwargs) -> CellSpec:
        kwargs.setdefault("width", 100)
        image = ImageSpec(path="logo.png", dynamic=kwargs.pop("dynamic", False))
        cell = self._cell(image=image, **kwargs)
        cell.image.fit = ImageFit(path="logo.png", width=40, height=30, kind=kind, scale=1.0)
        return cell

    def test_image_left_aligned_and_centred_vertically(self) -> None:
        self._render(self._image_cell(), _fixed(None), height=40.0)
        (call,) = self._calls("image")
        self.assertEqual((call.args["x"], call.args["y"]), (0.5, 105.0))
        self.assertEqual(call.args["scale"], 1.0)

    def test_image_centred(self) -> None:
        self._render(self._image_cell(align="centre"), _fixed(None), height=40.0)
        (call,) = self._calls("image")
        self.assertEqual(call.args["x"], 29.5)

    def test_unknown_image_type_warns(self) -> None:
        self._render(self._image_cell(kind="XYZ"), _fixed(None), height=40.0)
        self.assertEqual(self._calls("image"), [])
        self.assertIn("XYZ", self.diagnostics.messages[0])

    def test_dynamic_image_draws_no_text(self) -> None:
        cell = self._image_cell(dynamic=True)
        result = self._render(cell, _fixed("logo.png"), height=40.0)
        self.assertFalse(result.text_rendered)
        self.assertEqual(self._calls("text"), [])
        self.assertEqual(len(self._calls("image")), 1)

    def test_custom_render_swaps_image(self) -> None:
        cell = self._image_cell()
        self.canvas = make_canvas(image_sizer=lambda path: (80.0, 10.0, "JPEG"))
        self.renderer = CellRenderer(self.canvas, self.layout)
        decorator = CallbackDecorator(
            render=lambda options: {"render_image": {"path": "other.jpg"}}
        )
        cell.decorator = decorator
        self._render(cell, _fixed(None), height=40.0)
        (call,) = self._calls("image")
        self.assertEqual(call.args["path"], "other.jpg")
        self.assertAlmostEqual(call.args["scale"], 99 / 80)

    def test_ean13_code_is_padded(self) -> None:
        cell = self._cell(barcode=BarcodeSpec(code="?", kind="ean13"))
        self._render(cell, _fixed(None), value="12345", row_type=ROW_SET_DATA)
        (call,) = self._calls("barcode")
        self.assertEqual(call.args["code"], "123450000000")
        self.assertEqual((call.args["x"], call.args["y"]), (0.0, 100.0))

    def test_barcode_right_aligned(self) -> None:
        barcode = BarcodeSpec(code="AB-?", kind="code128")
        cell = self._cell(barcode=barcode, align="right")
        self._render(cell, _fixed(None), value="7", row_type=ROW_SET_DATA)
        (call,) = self._calls("barcode")
        width = self.canvas.barcode_width(barcode, "AB-7")
        self.assertEqual(call.args["code"], "AB-7")
        self.assertAlmostEqual(call.args["x"], 300 - width)

    def test_unencodable_barcode_warns(self) -> None:
        cell = self._cell(barcode=BarcodeSpec(code="?", kind="code128"))
        self._render(cell, _fixed(None), value="café", row_type=ROW_SET_DATA)
        self.assertEqual(self._calls("barcode"), [])
        self.assertEqual(len(self.diagnostics.messages), 1)


if __name__ == "__main__":
    unittest.main()
