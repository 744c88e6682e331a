import logging

import orjson

from shared.logging import get_logger, setup_logging


def test_events_carry_service_and_logger_name(caplog):
    setup_logging("INFO", service_name="catalogue-test")
    logger = get_logger("catalogue.test.events")

    with caplog.at_level(logging.WARNING, logger="catalogue.test.events"):
        logger.warning("store_slow", collection="catalogue_items")

    payload = orjson.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "store_slow"
    assert payload["service"] == "catalogue-test"
    assert payload["logger"] == "catalogue.test.events"
    assert payload["collection"] == "catalogue_items"
    assert "action" not in payload
