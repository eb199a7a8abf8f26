import logging
from unittest.mock import MagicMock

from cgi_gateway.utils.traced_requests import traced_request


def test_sets_attributes_and_logs(caplog):
    tracer = MagicMock()
    span = tracer.start_as_current_span.return_value.__enter__.return_value

    with caplog.at_level(logging.INFO, logger="uvicorn.error"):
        with traced_request(
            tracer,
            operation="cgi_gateway_request",
            path_info="/src/",
            start_message="[Gateway] Running test.cgi",
            extra_attrs={"cgi.script": "/cgi/test.cgi"},
        ) as yielded:
            assert yielded is span

    tracer.start_as_current_span.assert_called_once_with("cgi_gateway_request")
    span.set_attribute.assert_any_call("gateway.path_info", "/src/")
    span.set_attribute.assert_any_call("cgi.script", "/cgi/test.cgi")
    assert "[Gateway] Running test.cgi" in caplog.text


def test_empty_path_info_is_not_recorded():
    tracer = MagicMock()
    span = tracer.start_as_current_span.return_value.__enter__.return_value

    with traced_request(tracer, "op", path_info=None, start_message="start"):
        pass

    span.set_attribute.assert_not_called()
