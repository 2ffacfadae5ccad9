from datetime import datetime, timezone

from kaboom.models import Link
from kaboom.templating import get_environment


def test_get_environment_registers_link_filter():
    env = get_environment()
    assert "link" in env.filters
    rendered = env.from_string("{{ value | link }}").render(
        value=Link(href="https://example.com/", rel="alternate", hreflang="en")
    )
    assert rendered == "https://example.com/[rel=alternate][lang=en]"


def test_rfc3339_filter_handles_missing_values():
    env = get_environment()
    template = env.from_string("[{{ value | rfc3339 }}]")

    assert template.render(value=None) == "[]"
    assert (
        template.render(value=datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc))
        == "[2024-05-06T07:08:09+00:00]"
    )
