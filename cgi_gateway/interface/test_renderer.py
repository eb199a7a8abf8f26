import lxml.html
import pytest

from cgi_gateway.interface.options import GatewayOptions
from cgi_gateway.interface.renderer import (
    lines_to_list,
    render_div,
    should_highlight,
)
from cgi_gateway.interface.response import GatewayResult
from cgi_gateway.interface.rewriter import parse_html


def options_with(query_string=None):
    return GatewayOptions(
        SCRIPT_FILENAME="/cgi/test.cgi",
        REQUEST_URI="/cgi/test.cgi",
        PHP_SCRIPT="index.php",
        QUERY_STRING=query_string,
    )


class TestLinesToList:
    def test_alternating_rows(self):
        output = lines_to_list("line1\n\nline2")
        assert output == (
            '<div id="div_pre"><li class="even">line1</li>\n'
            '<li class="odd">&nbsp;</li>\n'
            '<li class="even">line2</li></div>'
        )

    def test_single_line_is_not_a_list(self):
        assert lines_to_list("just one line") == '<div id="div_pre">just one line</div>'
        assert "<li" not in lines_to_list("")

    def test_rows_are_escaped(self):
        output = lines_to_list("#include <stdio.h>\nint a = b && c;")
        assert "&lt;stdio.h&gt;" in output
        assert "b &amp;&amp; c" in output

    def test_whitespace_rows_are_blank(self):
        output = lines_to_list("a\n \t\nb\n")
        fragment = lxml.html.fragment_fromstring(output)
        assert [li.get("class") for li in fragment] == ["even", "odd", "even", "odd"]
        assert [li.text for li in fragment] == ["a", "\xa0", "b", "\xa0"]


class TestShouldHighlight:
    def test_requested(self):
        assert should_highlight(True, options_with("rev=1.2")) is True

    def test_not_requested(self):
        assert should_highlight(False, options_with()) is False

    @pytest.mark.parametrize(
        "query_string", ["content-type=text/plain", "annotate=1.2", "rev=1&annotate=1"]
    )
    def test_plain_views_are_left_alone(self, query_string):
        assert should_highlight(True, options_with(query_string)) is False


class TestRenderDiv:
    def test_plain_text_in_pre(self):
        result = GatewayResult("text/plain", "", "a < b\nc")
        assert render_div(result, None, options_with()) == (
            '<div id="cgi_wrapper"><pre>a &lt; b\nc</pre></div>'
        )

    def test_plain_text_highlighted(self):
        result = GatewayResult("text/plain", "", "line1\n\nline2")
        output = render_div(result, None, options_with(), highlight_rows=True)
        fragment = lxml.html.fragment_fromstring(output)
        items = fragment.findall(".//li")
        assert [li.get("class") for li in items] == ["even", "odd", "even"]
        assert items[1].text == "\xa0"

    def test_other_types_pass_through(self):
        result = GatewayResult("image/png", "Content-Type: image/png", "\x89PNG")
        assert render_div(result, None, options_with(), highlight_rows=True) == "\x89PNG"

    def test_html_without_document(self):
        result = GatewayResult("text/html", "", "")
        assert render_div(result, None, options_with()) == '<div id="cgi_wrapper"></div>'

    def test_html_body_contents(self):
        root = parse_html(
            "<html><head><title>t</title></head>"
            "<body>intro &amp; <p>para</p> tail<hr></body></html>"
        )
        result = GatewayResult("text/html", "", "")
        output = render_div(result, root, options_with())
        assert output.startswith('<div id="cgi_wrapper">')
        assert "intro &amp; " in output
        assert "<p>para</p>" in output
        assert "tail" in output
        assert "<title>" not in output

    def test_html_pre_blocks_highlighted(self):
        root = parse_html(
            "<html><body><h1>file</h1><pre>int main()\n{\n}</pre>after</body></html>"
        )
        result = GatewayResult("text/html", "", "")
        output = render_div(result, root, options_with(), highlight_rows=True)

        fragment = lxml.html.fragment_fromstring(output)
        assert fragment.find(".//pre") is None
        items = fragment.findall(".//div[@id='div_pre']/li")
        assert [li.text for li in items] == ["int main()", "{", "}"]
        assert [li.get("class") for li in items] == ["even", "odd", "even"]
        assert "after" in output
        # the parsed document itself stays untouched
        assert root.find(".//pre") is not None

    def test_html_pre_left_alone_for_annotate(self):
        root = parse_html("<html><body><pre>a\nb</pre></body></html>")
        result = GatewayResult("text/html", "", "")
        output = render_div(
            result, root, options_with("annotate=1.2"), highlight_rows=True
        )
        assert "<pre>" in output
        assert "<li" not in output
