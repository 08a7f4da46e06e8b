import base64
import io
import sys
import tempfile
import unittest
from pathlib import Path

from PIL import Image as PILImage

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "terminal"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from mdtty_renderer import models
from mdtty_renderer.engine import RenderEngine, render
from mdtty_renderer.errors import QuantizationError, StructuralInconsistency, WriteError
from mdtty_renderer.markdown import parse_markdown
from mdtty_renderer.models import (
    Code,
    EndBlock,
    EndInline,
    FontStyle,
    HighlightRegion,
    Image,
    InlineKind,
    LinkEnd,
    LinkStart,
    ResourceAccess,
    Rule,
    SoftBreak,
    StartBlock,
    StartInline,
    Text,
)
from mdtty_terminal.capability import AnsiTerminal, DumbTerminal, ITerm2Terminal
from mdtty_terminal.models import RESET, StyleKind

RULE = "─"


class FakeHighlighter:
    def __init__(self, regions=None):
        self.regions = regions
        self.calls = []

    def highlight(self, code, language):
        self.calls.append((code, language))
        return self.regions


class BrokenStream(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        raise BrokenPipeError("pipe closed")


class RecordingTerminal(AnsiTerminal):
    """ANSI terminal that also records every style instruction and write."""

    def __init__(self, stream):
        super().__init__(stream)
        self.ops = []

    def set_style(self, instruction):
        self.ops.append(("style", instruction))
        super().set_style(instruction)

    def write(self, data):
        if not data.startswith(b"\x1b"):
            self.ops.append(("write", data))
        super().write(data)


def paragraph(*inner):
    block = models.paragraph()
    return [StartBlock(block), *inner, EndBlock(block)]


def run(events, terminal_cls=AnsiTerminal, **kwargs):
    out = io.BytesIO()
    render(list(events), terminal_cls(out), **kwargs)
    return out.getvalue()


def png_bytes():
    buf = io.BytesIO()
    PILImage.new("RGB", (4, 4), (255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


SAMPLE_DOCUMENT = """# Title

Some *emphasis*, **strong** and `code` with a [link](https://example.com/docs).

> Quoted text
> on two lines

- one
- two
  1. nested

```python
def f(x):
    return x + 1
```

---

![logo](https://example.com/logo.png)
"""


class ScenarioTests(unittest.TestCase):
    def test_heading_renders_bold_then_reset_and_blank_line(self):
        heading = models.heading(1)
        out = run([StartBlock(heading), Text("Title"), EndBlock(heading)])
        self.assertEqual(out, b"\x1b[1mTitle\x1b[0m\n\n")

    def test_highlighted_token_is_quantized(self):
        block = models.code_block("rust")
        highlighter = FakeHighlighter(
            [HighlightRegion(rgb=(0xDC, 0x32, 0x2F), font_style=FontStyle.BOLD, text="token text")]
        )
        out = run(
            [StartBlock(block), Text("token text"), EndBlock(block)],
            columns=10,
            highlighter=highlighter,
        )
        border = b"\x1b[32m" + (RULE * 10).encode("utf-8") + b"\x1b[0m\n"
        self.assertEqual(
            out,
            border + b"\x1b[31m\x1b[1mtoken text\x1b[0m\n" + border + b"\x1b[0m\n",
        )
        self.assertEqual(highlighter.calls, [("token text", "rust")])

    def test_remote_image_under_local_only_renders_alt_text(self):
        def fetch(url):
            raise AssertionError("remote fetch must not happen")

        events = paragraph(Image("http://example.com/x.png", "alt"))
        for terminal_cls in (DumbTerminal, AnsiTerminal, ITerm2Terminal):
            with self.subTest(terminal=terminal_cls.name):
                with self.assertLogs("mdtty.renderer", level="WARNING") as logs:
                    out = run(
                        events,
                        terminal_cls,
                        resource_access=ResourceAccess.LOCAL_ONLY,
                        fetch=fetch,
                    )
                self.assertIn(b"alt", out)
                self.assertNotIn(b"1337;File", out)
                self.assertIn("example.com/x.png", logs.output[0])


class PlainOutputTests(unittest.TestCase):
    def test_plain_output_has_no_control_sequences(self):
        out = run(parse_markdown(SAMPLE_DOCUMENT), DumbTerminal, highlighter=FakeHighlighter())
        self.assertNotIn(b"\x1b", out)
        text = out.decode("utf-8")
        for fragment in ["Title", "emphasis", "strong", "code", "link", "Quoted text", "on two lines",
                         "one", "two", "nested", "return x + 1", "logo"]:
            self.assertIn(fragment, text)

    def test_plain_terminal_skips_highlighting(self):
        highlighter = FakeHighlighter()
        block = models.code_block("python")
        out = run([StartBlock(block), Text("code\n"), EndBlock(block)], DumbTerminal, columns=5,
                  highlighter=highlighter)
        self.assertEqual(out, (f"{RULE * 5}\ncode\n{RULE * 5}\n\n").encode("utf-8"))
        self.assertEqual(highlighter.calls, [])

    def test_lists(self):
        bullets = models.bullet_list()
        item = models.item()
        out = run(
            [
                StartBlock(bullets),
                StartBlock(item), Text("one"), EndBlock(item),
                StartBlock(item), Text("two"), EndBlock(item),
                EndBlock(bullets),
            ],
            DumbTerminal,
        )
        self.assertEqual(out.decode("utf-8"), "• one\n• two\n\n")

    def test_ordered_list_counts_from_start(self):
        ordered = models.ordered_list(3)
        item = models.item()
        out = run(
            [
                StartBlock(ordered),
                StartBlock(item), Text("a"), EndBlock(item),
                StartBlock(item), Text("b"), EndBlock(item),
                EndBlock(ordered),
            ],
            DumbTerminal,
        )
        self.assertEqual(out.decode("utf-8"), "3. a\n4. b\n\n")

    def test_ordered_list_can_start_at_zero(self):
        out = run(parse_markdown("0. a\n1. b\n"), DumbTerminal)
        self.assertEqual(out.decode("utf-8"), "0. a\n1. b\n\n")

    def test_nested_list_is_indented(self):
        outer, inner, item = models.bullet_list(), models.bullet_list(), models.item()
        out = run(
            [
                StartBlock(outer), StartBlock(item), Text("a"),
                StartBlock(inner), StartBlock(item), Text("b"), EndBlock(item), EndBlock(inner),
                EndBlock(item), EndBlock(outer),
            ],
            DumbTerminal,
        )
        self.assertEqual(out.decode("utf-8"), "• a\n  • b\n\n")

    def test_block_quote_prefixes_every_line(self):
        quote = models.block_quote()
        out = run(
            [StartBlock(quote), *paragraph(Text("a"), SoftBreak(), Text("b")), EndBlock(quote)],
            DumbTerminal,
        )
        self.assertEqual(out.decode("utf-8"), "│ a\n│ b\n│\n")

    def test_rule_uses_column_budget(self):
        self.assertEqual(run([Rule()], DumbTerminal, columns=4).decode("utf-8"), f"{RULE * 4}\n\n")


class StyleResetTests(unittest.TestCase):
    def test_inline_styles_reset_before_plain_text(self):
        out = run(
            paragraph(
                Text("a "),
                StartInline(InlineKind.EMPHASIS), Text("b"), EndInline(InlineKind.EMPHASIS),
                Text(" c"),
            )
        )
        self.assertEqual(out, b"a \x1b[3mb\x1b[0m c\x1b[0m\n\n")

    def test_nested_styles_are_reapplied(self):
        out = run(
            paragraph(
                StartInline(InlineKind.EMPHASIS), Text("x"),
                StartInline(InlineKind.STRONG), Text("y"), EndInline(InlineKind.STRONG),
                Text("z"), EndInline(InlineKind.EMPHASIS),
            )
        )
        self.assertEqual(out, b"\x1b[3mx\x1b[1my\x1b[0m\x1b[3mz\x1b[0m\x1b[0m\n\n")

    def test_inline_code(self):
        out = run(paragraph(Text("run "), Code("ls")))
        self.assertEqual(out, b"run \x1b[33mls\x1b[0m\x1b[0m\n\n")

    def test_list_marker_written_before_span_style(self):
        bullets, item = models.bullet_list(), models.item()
        out = run([StartBlock(bullets), StartBlock(item), Code("ls"), EndBlock(item), EndBlock(bullets)])
        self.assertEqual(out.decode("utf-8"), "• \x1b[33mls\x1b[0m\x1b[0m\n\x1b[0m\n")

    def test_quote_marker_is_not_styled(self):
        quote = models.block_quote()
        out = run([StartBlock(quote), *paragraph(Text("a"), SoftBreak(), Text("b")), EndBlock(quote)])
        self.assertEqual(
            out.decode("utf-8"),
            "\x1b[3m\x1b[0m│ \x1b[3ma\n"
            "\x1b[0m│ \x1b[3mb\x1b[0m\x1b[3m\n"
            "\x1b[0m│\x1b[3m\n"
            "\x1b[0m",
        )

    def test_code_border_inside_quote_keeps_marker_plain(self):
        quote, block = models.block_quote(), models.code_block()
        out = run([StartBlock(quote), StartBlock(block), Text("x"), EndBlock(block), EndBlock(quote)], columns=6)
        self.assertTrue(out.decode("utf-8").startswith("\x1b[3m\x1b[0m│ \x1b[3m\x1b[32m────\x1b[0m\x1b[3m\n"))

    def test_no_style_leaks_in_full_document(self):
        terminal = RecordingTerminal(io.BytesIO())
        highlighter = FakeHighlighter(
            [
                HighlightRegion(rgb=(0x85, 0x99, 0x00), font_style=FontStyle.NONE, text="def"),
                HighlightRegion(rgb=(0x83, 0x94, 0x96), font_style=FontStyle.ITALIC, text=" f"),
            ]
        )
        render(list(parse_markdown(SAMPLE_DOCUMENT)), terminal, highlighter=highlighter)

        styled = False
        for op, value in terminal.ops:
            if op == "style":
                styled = value != RESET
        self.assertFalse(styled)

        # Every highlighted region is closed by a reset before anything else is written.
        for index, (op, value) in enumerate(terminal.ops):
            if op == "write" and value in (b"def", b" f"):
                self.assertEqual(terminal.ops[index + 1], ("style", RESET))

    def test_highlighting_falls_back_for_unknown_language(self):
        block = models.code_block("nope")
        out = run([StartBlock(block), Text("code"), EndBlock(block)], highlighter=FakeHighlighter(None))
        self.assertIn(b"\x1b[33mcode\x1b[0m", out)

    def test_unknown_colour_aborts_render(self):
        block = models.code_block("python")
        highlighter = FakeHighlighter([HighlightRegion(rgb=(1, 2, 3), font_style=FontStyle.NONE, text="x")])
        with self.assertRaises(QuantizationError):
            run([StartBlock(block), Text("x"), EndBlock(block)], highlighter=highlighter)


class LinkTests(unittest.TestCase):
    def test_link_reference_deferred_to_block_end(self):
        out = run(
            paragraph(Text("see "), LinkStart("https://x.y"), Text("docs"), LinkEnd()),
            DumbTerminal,
        )
        self.assertEqual(out.decode("utf-8"), "see docs[1]\n\n[1]: https://x.y\n\n")

    def test_reference_indices_keep_increasing(self):
        out = run(
            [
                *paragraph(LinkStart("https://a"), Text("a"), LinkEnd()),
                *paragraph(LinkStart("https://b"), Text("b"), LinkEnd()),
            ],
            DumbTerminal,
        ).decode("utf-8")
        self.assertIn("a[1]", out)
        self.assertIn("b[2]", out)
        self.assertIn("[2]: https://b", out)

    def test_autolink_has_no_reference(self):
        out = run(paragraph(LinkStart("https://x.y"), Text("https://x.y"), LinkEnd()), DumbTerminal)
        self.assertEqual(out.decode("utf-8"), "https://x.y\n\n")

    def test_styled_link_colour(self):
        out = run(paragraph(LinkStart("https://x.y"), Text("docs"), LinkEnd()))
        self.assertTrue(out.startswith(b"\x1b[34mdocs\x1b[0m[1]"))

    def test_inline_hyperlinks(self):
        out = run(paragraph(LinkStart("https://x.y"), Text("docs"), LinkEnd()), ITerm2Terminal)
        self.assertIn(b"\x1b]8;;https://x.y\x1b\\", out)
        self.assertIn(b"\x1b]8;;\x1b\\", out)
        self.assertNotIn(b"[1]", out)

    def test_relative_hyperlink_resolved_against_base_dir(self):
        with tempfile.TemporaryDirectory() as tmp:
            out = run(
                paragraph(LinkStart("other.md"), Text("other"), LinkEnd()),
                ITerm2Terminal,
                base_dir=tmp,
            )
        expected = (Path(tmp).resolve() / "other.md").as_uri().encode("utf-8")
        self.assertIn(b"\x1b]8;;" + expected, out)


class ImageTests(unittest.TestCase):
    def test_local_image_inline(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "pic.png").write_bytes(png_bytes())
            out = run(
                paragraph(Image("pic.png", "alt text")),
                ITerm2Terminal,
                base_dir=tmp,
                resource_access=ResourceAccess.LOCAL_ONLY,
            )
        self.assertIn(b"\x1b]1337;File=", out)
        self.assertNotIn(b"alt text", out)

    def test_local_image_with_encoded_name(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "my pic.png").write_bytes(png_bytes())
            out = run(parse_markdown("![alt text](<my pic.png>)\n"), ITerm2Terminal, base_dir=tmp)
        encoded_name = base64.b64encode("my pic.png".encode("utf-8"))
        self.assertIn(b"\x1b]1337;File=name=" + encoded_name, out)
        self.assertNotIn(b"alt text", out)

    def test_remote_image_fetched_when_allowed(self):
        fetched = []

        def fetch(url):
            fetched.append(url)
            return png_bytes()

        out = run(paragraph(Image("https://example.com/x.png", "alt")), ITerm2Terminal, fetch=fetch)
        self.assertEqual(fetched, ["https://example.com/x.png"])
        self.assertIn(b"1337;File=", out)

    def test_missing_image_falls_back_to_alt_text(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertLogs("mdtty.renderer", level="WARNING"):
                out = run(paragraph(Image("missing.png", "alt")), ITerm2Terminal, base_dir=tmp)
        self.assertIn(b"alt", out)
        self.assertNotIn(b"1337;File", out)

    def test_undecodable_image_falls_back_to_alt_text(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "bad.png").write_bytes(b"not an image")
            with self.assertLogs("mdtty.renderer", level="WARNING"):
                out = run(paragraph(Image("bad.png", "alt")), ITerm2Terminal, base_dir=tmp)
        self.assertIn(b"alt", out)

    def test_image_without_inline_support_renders_as_link(self):
        out = run(paragraph(Image("https://e.com/x.png", "pic")), DumbTerminal)
        self.assertEqual(out.decode("utf-8"), "pic[1]\n\n[1]: https://e.com/x.png\n\n")


class StructureTests(unittest.TestCase):
    def test_unclosed_context_fails_without_further_writes(self):
        out = io.BytesIO()
        events = [StartBlock(models.paragraph()), LinkStart("https://a"), Text("t"), LinkEnd()]
        with self.assertRaises(StructuralInconsistency) as ctx:
            render(events, AnsiTerminal(out))
        self.assertIn("Paragraph", str(ctx.exception))
        self.assertEqual(out.getvalue(), b"\x1b[34mt\x1b[0m[1]")

    def test_mismatched_end_fails(self):
        with self.assertRaises(StructuralInconsistency):
            run([StartBlock(models.paragraph()), EndInline(InlineKind.EMPHASIS)])

    def test_end_must_repeat_the_start(self):
        for start, end in [
            (models.heading(1), models.heading(2)),
            (models.bullet_list(), models.ordered_list(3)),
        ]:
            with self.subTest(start=str(start), end=str(end)):
                with self.assertRaises(StructuralInconsistency):
                    run([StartBlock(start), EndBlock(end)])

    def test_end_without_start_fails(self):
        with self.assertRaises(StructuralInconsistency):
            run([EndBlock(models.paragraph())])

    def test_item_outside_list_fails(self):
        with self.assertRaises(StructuralInconsistency):
            run([StartBlock(models.item())])

    def test_write_failure_aborts(self):
        with self.assertRaises(WriteError):
            render(paragraph(Text("x")), AnsiTerminal(BrokenStream()))

    def test_unknown_event_type(self):
        with self.assertRaises(TypeError):
            run(["not an event"])

    def test_columns_must_be_positive(self):
        with self.assertRaises(ValueError):
            RenderEngine(DumbTerminal(io.BytesIO()), columns=0)


class DeterminismTests(unittest.TestCase):
    def test_render_is_idempotent(self):
        events = list(parse_markdown(SAMPLE_DOCUMENT))
        highlighter = FakeHighlighter(
            [HighlightRegion(rgb=(0x26, 0x8B, 0xD2), font_style=FontStyle.UNDERLINE, text="code")]
        )
        first = run(events, highlighter=highlighter)
        second = run(events, highlighter=highlighter)
        self.assertEqual(first, second)

    def test_heading_mark_on_iterm2(self):
        heading = models.heading(2)
        out = run([StartBlock(heading), Text("T"), EndBlock(heading)], ITerm2Terminal)
        self.assertEqual(out, b"\x1b]1337;SetMark\x07\x1b[1mT\x1b[0m\n\n")

    def test_reset_instruction_kind(self):
        self.assertEqual(RESET.kind, StyleKind.RESET)


if __name__ == "__main__":
    unittest.main()
